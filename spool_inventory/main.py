"""spool-inventory command line entry point.

Builds the client stack from the environment, restores the session and runs
one sub-command against the device.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from .calibration import build_kinfo_from_selection, list_profiles, profile_keys_from_kinfo
from .cipher import load_cipher
from .columns import get_default_columns, index_of, move_column, set_visibility
from .config import InventoryConfig, load_config
from .device_client import DeviceClient
from .exceptions import DeviceError, ValidationError
from .export import export_csv, export_filename, export_json
from .filaments import get_filament_options, parse_core_weights
from .filters import EncodedFilter, FilterState, LocationFilter, PaStatusFilter, apply_filters
from .forms import FullWhenAdded, SpoolForm
from .logging_config import setup_logging
from .preferences import PreferenceStore, Theme, resolve_theme
from .session import KeySession
from .stats import calculate_stats
from .store import InventoryStore
from .table import (
    PAGE_SIZES,
    SortKey,
    TableContext,
    paginate,
    render_card,
    render_detail,
    render_stats,
    render_table,
    search_spools,
    sort_spools,
)

logger = logging.getLogger(__name__)

# Commands that work without an authenticated session
OFFLINE_COMMANDS = {"login", "logout", "columns", "theme", "catalog"}


def _print_lines(lines: list[str]) -> None:
    for line in lines:
        print(line)


def parse_sort(values: Optional[list[str]]) -> list[SortKey]:
    """Turn --sort values into sort keys; a leading "-" means descending."""
    keys = []
    for value in values or []:
        if value.startswith("-"):
            keys.append(SortKey(value[1:], desc=True))
        else:
            keys.append(SortKey(value))
    return keys


def filters_from_args(args: argparse.Namespace) -> FilterState:
    return FilterState(
        material=args.material or "",
        brand=args.brand or "",
        color=args.color or "",
        location=LocationFilter(args.location),
        pa_status=PaStatusFilter(args.pa_status),
        data_origin=args.data_origin or "",
        min_weight=args.min_weight or "",
        max_weight=args.max_weight or "",
        added_after=args.added_after or "",
        added_before=args.added_before or "",
        encoded=EncodedFilter(args.encoded),
    )


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--material")
    parser.add_argument("--brand")
    parser.add_argument("--color")
    parser.add_argument("--location", choices=[v.value for v in LocationFilter], default=LocationFilter.ALL.value)
    parser.add_argument("--pa-status", choices=[v.value for v in PaStatusFilter], default=PaStatusFilter.ALL.value)
    parser.add_argument("--data-origin")
    parser.add_argument("--min-weight")
    parser.add_argument("--max-weight")
    parser.add_argument("--added-after", metavar="YYYY-MM-DD")
    parser.add_argument("--added-before", metavar="YYYY-MM-DD")
    parser.add_argument("--encoded", choices=[v.value for v in EncodedFilter], default=EncodedFilter.ALL.value)


def _add_form_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--material")
    parser.add_argument("--subtype")
    parser.add_argument("--brand")
    parser.add_argument("--color-name")
    parser.add_argument("--rgba", help="#RRGGBB")
    parser.add_argument("--label-weight", type=int)
    parser.add_argument("--core-weight", type=int)
    parser.add_argument("--slicer-filament")
    parser.add_argument("--note")
    parser.add_argument(
        "--full-when-added", choices=[f.value for f in FullWhenAdded], default=None,
    )
    parser.add_argument(
        "--k-profile", action="append", default=None, metavar="KEY",
        help="Pressure advance profile key (repeatable)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="spool-inventory", description="SpoolEase filament inventory")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Authenticate and remember the security key")
    login.add_argument("security_key")
    sub.add_parser("logout", help="Forget the remembered security key")

    ls = sub.add_parser("list", help="List spools")
    _add_filter_arguments(ls)
    ls.add_argument("--search", default="")
    ls.add_argument("--sort", action="append", metavar="COLUMN", help="Column id; --sort=-id sorts descending")
    ls.add_argument("--page", type=int, default=1)
    ls.add_argument("--page-size", type=int, choices=PAGE_SIZES)
    ls.add_argument("--cards", action="store_true", help="Card view instead of a table")

    show = sub.add_parser("show", help="Show one spool")
    show.add_argument("spool_id")

    sub.add_parser("stats", help="Inventory statistics")

    add = sub.add_parser("add", help="Add a spool")
    _add_form_arguments(add)
    edit = sub.add_parser("edit", help="Edit a spool")
    edit.add_argument("spool_id")
    _add_form_arguments(edit)

    delete = sub.add_parser("delete", help="Delete a spool")
    delete.add_argument("spool_id")

    kinfo = sub.add_parser("kinfo", help="Pressure advance stored on a spool")
    kinfo.add_argument("spool_id")
    pa = sub.add_parser("pa", help="Printer calibrations for a slicer filament code")
    pa.add_argument("filament_code")

    columns = sub.add_parser("columns", help="Show or change the table columns")
    columns.add_argument("action", choices=["show", "hide", "move", "reset"], nargs="?", default="show")
    columns.add_argument("column_id", nargs="?")
    columns.add_argument("position", nargs="?", type=int)

    export = sub.add_parser("export", help="Export the inventory")
    _add_filter_arguments(export)
    export.add_argument("--format", choices=["csv", "json"], default="csv")
    export.add_argument("--output", help="File path, '-' for stdout")

    theme = sub.add_parser("theme", help="Show or set the theme")
    theme.add_argument("value", nargs="?", choices=[t.value for t in Theme])

    sub.add_parser("catalog", help="Filament codes, brands and core weights")
    return parser


# ── Commands ────────────────────────────────────────────────────────


def _context(config: InventoryConfig, store: InventoryStore) -> TableContext:
    return TableContext(
        spools_in_printers=store.state.spools_in_printers,
        low_stock_threshold=config.low_stock_threshold,
        weight_tolerance=config.weight_tolerance,
    )


def cmd_list(args, config, store, preferences) -> int:
    ctx = _context(config, store)
    columns = preferences.load_column_config()
    sorting = parse_sort(args.sort)
    if sorting:
        preferences.save_sorting(sorting)
    else:
        sorting = preferences.load_sorting()
    page_size = args.page_size
    if page_size:
        preferences.save_page_size(page_size)
    else:
        page_size = preferences.load_page_size()

    rows = apply_filters(store.state.spools, filters_from_args(args), store.state.spools_in_printers)
    rows = search_spools(rows, args.search, columns, ctx)
    rows = sort_spools(rows, sorting, ctx)
    page = paginate(rows, args.page - 1, page_size)

    if not page.rows:
        print("No spools match.")
        return 0
    if args.cards:
        for spool in page.rows:
            _print_lines(render_card(spool, ctx))
            print()
    else:
        _print_lines(render_table(page.rows, columns, ctx))
    print(f"Page {page.page_index + 1} of {page.page_count} ({page.total_rows} spools)")
    return 0


async def cmd_show(args, config, store, preferences) -> int:
    spool = store.find_spool(args.spool_id)
    if spool is None:
        print(f"Spool {args.spool_id} not found", file=sys.stderr)
        return 1
    k_info = await store.get_calibration(spool.id) if spool.ext_has_k else None
    _print_lines(render_detail(spool, _context(config, store), k_info))
    return 0


def cmd_stats(args, config, store, preferences) -> int:
    stats = calculate_stats(store.state.spools, store.state.spools_in_printers, config.low_stock_threshold)
    _print_lines(render_stats(stats, config.low_stock_threshold))
    return 0


def _apply_form_args(form: SpoolForm, args: argparse.Namespace) -> None:
    for name in ("material", "subtype", "brand", "color_name", "rgba",
                 "label_weight", "core_weight", "slicer_filament", "note"):
        value = getattr(args, name)
        if value is not None:
            setattr(form, name, value)
    if args.full_when_added:
        form.full_when_added = FullWhenAdded(args.full_when_added)


async def _save_spool(args, store, existing=None) -> int:
    form = SpoolForm.from_spool(existing) if existing is not None else SpoolForm()
    _apply_form_args(form, args)
    if existing is None:
        form.autofill_from_filament(store.state.filament_brands or None)
    draft = form.to_draft(existing)

    # An edit re-sends the stored calibration unless new profiles replace it
    existing_k = await store.get_calibration(existing.id) if existing is not None else None
    printers_pa = None
    if args.k_profile and form.slicer_filament:
        printers_pa = await store.get_pressure_advance_catalog(form.slicer_filament)
    k_info = build_kinfo_from_selection(args.k_profile or [], printers_pa, existing_k)

    if existing is None:
        spool_id = await store.add_spool(draft, k_info)
        print(f"Added spool {spool_id}")
    else:
        spool_id = await store.edit_spool(draft, k_info)
        print(f"Updated spool {spool_id}")
    return 0


async def cmd_add(args, config, store, preferences) -> int:
    return await _save_spool(args, store)


async def cmd_edit(args, config, store, preferences) -> int:
    existing = store.find_spool(args.spool_id)
    if existing is None:
        print(f"Spool {args.spool_id} not found", file=sys.stderr)
        return 1
    return await _save_spool(args, store, existing)


async def cmd_delete(args, config, store, preferences) -> int:
    await store.delete_spool(args.spool_id)
    print(f"Deleted spool {args.spool_id}")
    return 0


async def cmd_kinfo(args, config, store, preferences) -> int:
    k_info = await store.get_calibration(args.spool_id)
    if k_info is None or k_info.is_empty():
        print("No pressure advance stored for this spool.")
        return 0
    print(json.dumps(k_info.to_dict(), indent=2))
    for key in sorted(profile_keys_from_kinfo(k_info)):
        print(key)
    return 0


async def cmd_pa(args, config, store, preferences) -> int:
    printers_pa = await store.get_pressure_advance_catalog(args.filament_code)
    if printers_pa is None:
        print("Failed to load pressure advance calibrations", file=sys.stderr)
        return 1
    profiles = list_profiles(printers_pa)
    if not profiles:
        print("No calibrations for this filament.")
    for key, printer_name, entry in profiles:
        print(f"{key}  {printer_name}  {entry.name}  K={entry.k_value}")
    return 0


def cmd_columns(args, config, store, preferences) -> int:
    columns = preferences.load_column_config()
    if args.action == "reset":
        columns = get_default_columns()
        preferences.save_column_config(columns)
    elif args.action in ("hide", "move") or args.column_id:
        if not args.column_id:
            print("A column id is required", file=sys.stderr)
            return 1
        try:
            index = index_of(columns, args.column_id)
        except KeyError:
            print(f"Unknown column {args.column_id}", file=sys.stderr)
            return 1
        if args.action == "move":
            if args.position is None:
                print("A target position is required", file=sys.stderr)
                return 1
            columns = move_column(columns, index, args.position - 1)
        else:
            columns = set_visibility(columns, args.column_id, args.action != "hide")
        preferences.save_column_config(columns)
    for position, column in enumerate(columns, start=1):
        mark = "x" if column.visible else " "
        print(f"{position:2d} [{mark}] {column.id:<22} {column.label}")
    return 0


def cmd_export(args, config, store, preferences) -> int:
    spools = store.state.spools
    filters = filters_from_args(args)
    if filters.has_active_filters():
        spools = apply_filters(spools, filters, store.state.spools_in_printers)
    if args.format == "json":
        content = export_json(spools)
    else:
        content = export_csv(spools)
    output = args.output or export_filename(args.format)
    if output == "-":
        print(content)
        return 0
    with open(output, "w", newline="") as f:
        f.write(content)
    print(f"Exported {len(spools)} spools to {output}")
    return 0


def cmd_theme(args, config, store, preferences) -> int:
    if args.value:
        preferences.save_theme(Theme(args.value))
    theme = preferences.load_theme()
    print(f"{theme.value} ({resolve_theme(theme).value})")
    return 0


def cmd_catalog(args, config, store, preferences) -> int:
    print("Core weights:")
    for weight in parse_core_weights(store.state.spools_catalog):
        print(f"  {weight} g")
    print("Brands:")
    for brand in store.state.filament_brands:
        print(f"  {brand}")
    print("Slicer filaments:")
    for code, name in get_filament_options():
        print(f"  {code}  {name}")
    return 0


COMMANDS = {
    "list": cmd_list,
    "show": cmd_show,
    "stats": cmd_stats,
    "add": cmd_add,
    "edit": cmd_edit,
    "delete": cmd_delete,
    "kinfo": cmd_kinfo,
    "pa": cmd_pa,
    "columns": cmd_columns,
    "export": cmd_export,
    "theme": cmd_theme,
    "catalog": cmd_catalog,
}


async def run(args: argparse.Namespace) -> int:
    config = load_config()
    setup_logging(config.log_level)

    preferences = PreferenceStore(config.preferences_path)
    if args.command == "logout":
        preferences.clear_location()
        print("Logged out")
        return 0
    if args.command in ("columns", "theme"):
        return COMMANDS[args.command](args, config, None, preferences)

    try:
        cipher = load_cipher(config.cipher_module)
    except DeviceError as e:
        print(str(e), file=sys.stderr)
        return 1
    keys = KeySession(cipher, config.salt)
    client = DeviceClient(config, keys)
    store = InventoryStore(client, preferences)
    logger.info("Device: %s", config.device_base_url)

    try:
        if args.command == "login":
            await store.load_catalogs()
            if not await store.authenticate(args.security_key):
                print(store.state.error, file=sys.stderr)
                return 1
            print(f"Logged in, {len(store.state.spools)} spools")
            return 0

        await store.initialize(passphrase=config.security_key or None)
        if args.command not in OFFLINE_COMMANDS and not store.state.is_authenticated:
            print(store.state.error or "Not logged in. Run 'spool-inventory login <key>'.", file=sys.stderr)
            return 1

        handler = COMMANDS[args.command]
        result = handler(args, config, store, preferences)
        if asyncio.iscoroutine(result):
            result = await result
        return result
    except ValidationError as e:
        print(f"Invalid spool: {e}", file=sys.stderr)
        return 1
    except DeviceError as e:
        logger.error("Device error: %s", e)
        print(store.state.error or str(e), file=sys.stderr)
        return 1
    finally:
        await client.close()


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        sys.exit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
