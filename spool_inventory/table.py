"""Sorting, searching, paging and plain-text rendering of the spool table."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Any, Callable, Iterable, Optional

from .columns import ColumnConfig, visible_columns
from .filaments import get_filament_name
from .formatting import format_date, format_datetime, format_weight
from .models import KInfo, Spool, SpoolsInPrinters
from .stats import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    DEFAULT_WEIGHT_TOLERANCE,
    InventoryStats,
    compare_weights,
    get_gross_weight,
    get_net_weight,
    get_remaining_percent,
    is_low_stock,
    top_materials,
)

PAGE_SIZES = (15, 30, 50, 100)
DEFAULT_PAGE_SIZE = 15
MAX_CELL_WIDTH = 40
PROGRESS_WIDTH = 10

_DIGITS = re.compile(r"(\d+)")


@dataclass
class SortKey:
    id: str
    desc: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "desc": self.desc}


DEFAULT_SORTING = (SortKey("id"),)


@dataclass
class TableContext:
    """Everything a cell needs besides the spool itself."""

    spools_in_printers: SpoolsInPrinters = field(default_factory=dict)
    low_stock_threshold: float = DEFAULT_LOW_STOCK_THRESHOLD
    weight_tolerance: float = DEFAULT_WEIGHT_TOLERANCE
    tz: Optional[tzinfo] = None


@dataclass(frozen=True)
class ColumnDef:
    id: str
    header: str
    value: Callable[[Spool, TableContext], Any]
    cell: Callable[[Spool, TableContext], str]
    sortable: bool = True


def _or_dash(value: Optional[str]) -> str:
    return value or "-"


def _epoch(timestamp: Optional[str]) -> Optional[int]:
    try:
        return int(timestamp) if timestamp else None
    except ValueError:
        return None


def render_progress(remaining: float, total: float, width: int = PROGRESS_WIDTH) -> str:
    """Text progress bar for remaining / total, e.g. [######----] 60%."""
    percent = 0.0 if total <= 0 else max(0.0, min(100.0, remaining / total * 100))
    filled = round(percent / 100 * width)
    return f"[{'#' * filled}{'-' * (width - filled)}] {round(percent)}%"


def _scale_cell(spool: Spool, ctx: TableContext) -> str:
    comparison = compare_weights(spool, ctx.weight_tolerance)
    if comparison.scale_weight is None:
        return "-"
    if comparison.is_match:
        return f"{format_weight(comparison.scale_weight)} ok"
    return f"{format_weight(comparison.scale_weight)} ({comparison.difference:+.0f}g)"


def _location(spool: Spool, ctx: TableContext) -> str:
    return ctx.spools_in_printers.get(spool.id, "")


COLUMN_DEFS: dict[str, ColumnDef] = {c.id: c for c in (
    ColumnDef("id", "ID", lambda s, ctx: s.id, lambda s, ctx: _or_dash(s.id)),
    ColumnDef(
        "added_time", "Added",
        lambda s, ctx: _epoch(s.added_time), lambda s, ctx: format_date(s.added_time, ctx.tz),
    ),
    ColumnDef(
        "encode_time", "Encoded",
        lambda s, ctx: _epoch(s.encode_time), lambda s, ctx: format_date(s.encode_time, ctx.tz),
    ),
    ColumnDef("rgba", "RGBA", lambda s, ctx: s.rgba, lambda s, ctx: s.rgba),
    ColumnDef("material", "Material", lambda s, ctx: s.material, lambda s, ctx: _or_dash(s.material)),
    ColumnDef("subtype", "Subtype", lambda s, ctx: s.subtype, lambda s, ctx: _or_dash(s.subtype)),
    ColumnDef("color_name", "Color", lambda s, ctx: s.color_name, lambda s, ctx: _or_dash(s.color_name)),
    ColumnDef("brand", "Brand", lambda s, ctx: s.brand, lambda s, ctx: _or_dash(s.brand)),
    ColumnDef(
        "slicer_filament", "Slicer Filament",
        lambda s, ctx: s.slicer_filament, lambda s, ctx: _or_dash(get_filament_name(s.slicer_filament)),
    ),
    ColumnDef("location", "Location", _location, lambda s, ctx: _or_dash(_location(s, ctx))),
    ColumnDef(
        "label_weight", "Label",
        lambda s, ctx: s.label_weight, lambda s, ctx: format_weight(s.label_weight or 0),
    ),
    ColumnDef("net", "Net", lambda s, ctx: get_net_weight(s), lambda s, ctx: format_weight(get_net_weight(s))),
    ColumnDef(
        "gross", "Gross", lambda s, ctx: get_gross_weight(s), lambda s, ctx: format_weight(get_gross_weight(s)),
    ),
    ColumnDef("added_full", "Full", lambda s, ctx: s.added_full, lambda s, ctx: "Yes" if s.added_full else "No"),
    ColumnDef(
        "used", "Used",
        lambda s, ctx: s.consumed_since_add, lambda s, ctx: format_weight(s.consumed_since_add or 0),
    ),
    ColumnDef(
        "printed_total", "Printed Total",
        lambda s, ctx: s.consumed_since_add, lambda s, ctx: format_weight(s.consumed_since_add or 0),
    ),
    ColumnDef(
        "printed_since_weight", "Printed Since Weight",
        lambda s, ctx: s.consumed_since_weight, lambda s, ctx: format_weight(s.consumed_since_weight or 0),
    ),
    ColumnDef("note", "Note", lambda s, ctx: s.note, lambda s, ctx: _or_dash(s.note)),
    ColumnDef("pa_k", "PA(K)", lambda s, ctx: s.ext_has_k, lambda s, ctx: "K" if s.ext_has_k else "-"),
    ColumnDef("tag_id", "Tag ID", lambda s, ctx: s.tag_id, lambda s, ctx: _or_dash(s.tag_id)),
    ColumnDef("data_origin", "Data Origin", lambda s, ctx: s.data_origin, lambda s, ctx: _or_dash(s.data_origin)),
    ColumnDef("tag_type", "Linked Tag Type", lambda s, ctx: s.tag_type, lambda s, ctx: _or_dash(s.tag_type)),
    ColumnDef(
        "remaining", "Remaining",
        lambda s, ctx: get_net_weight(s), lambda s, ctx: render_progress(get_net_weight(s), s.label_weight),
    ),
    ColumnDef("scale", "Scale", lambda s, ctx: s.weight_current, _scale_cell),
    ColumnDef("actions", "", lambda s, ctx: None, lambda s, ctx: "", sortable=False),
)}


# ── Sorting ─────────────────────────────────────────────────────────


def _natural_key(value: str) -> tuple:
    """Case-insensitive key where embedded numbers compare numerically (9 before 10)."""
    parts = _DIGITS.split(value.lower())
    return tuple(int(part) if i % 2 else part for i, part in enumerate(parts))


def _sort_value(value: Any) -> Any:
    if isinstance(value, str):
        return _natural_key(value)
    if isinstance(value, bool):
        return int(value)
    return value


def sort_spools(
    spools: Iterable[Spool],
    sorting: Iterable[SortKey],
    ctx: TableContext | None = None,
) -> list[Spool]:
    """Stable multi-key sort; the first key is the primary one.

    Rows whose value is missing go last regardless of direction. Unknown or
    unsortable columns are ignored.
    """
    ctx = ctx or TableContext()
    rows = list(spools)
    for key in reversed(list(sorting)):
        column = COLUMN_DEFS.get(key.id)
        if column is None or not column.sortable:
            continue
        present = []
        missing = []
        for spool in rows:
            value = column.value(spool, ctx)
            (missing if value is None else present).append((_sort_value(value), spool))
        present.sort(key=lambda pair: pair[0], reverse=key.desc)
        rows = [spool for _, spool in present] + [spool for _, spool in missing]
    return rows


# ── Global search ───────────────────────────────────────────────────


def search_spools(
    spools: Iterable[Spool],
    query: str,
    columns: Iterable[ColumnConfig],
    ctx: TableContext | None = None,
) -> list[Spool]:
    """Spools where any visible cell contains ``query`` (case-insensitive)."""
    ctx = ctx or TableContext()
    needle = query.strip().lower()
    if not needle:
        return list(spools)
    defs = [COLUMN_DEFS[c.id] for c in visible_columns(columns) if c.id in COLUMN_DEFS]
    return [
        spool for spool in spools
        if any(needle in column.cell(spool, ctx).lower() for column in defs)
    ]


# ── Pagination ──────────────────────────────────────────────────────


@dataclass
class Page:
    rows: list[Spool]
    page_index: int
    page_size: int
    page_count: int
    total_rows: int


def paginate(rows: list[Spool], page_index: int = 0, page_size: int = DEFAULT_PAGE_SIZE) -> Page:
    """Slice one page; the index is clamped to the available pages."""
    if page_size <= 0:
        page_size = DEFAULT_PAGE_SIZE
    page_count = max(1, math.ceil(len(rows) / page_size))
    page_index = max(0, min(page_index, page_count - 1))
    start = page_index * page_size
    return Page(
        rows=rows[start:start + page_size],
        page_index=page_index,
        page_size=page_size,
        page_count=page_count,
        total_rows=len(rows),
    )


# ── Rendering ───────────────────────────────────────────────────────


def _clip(text: str, width: int = MAX_CELL_WIDTH) -> str:
    text = text.replace("\n", " ")
    if len(text) <= width:
        return text
    return text[:width - 3] + "..."


def render_table(spools: list[Spool], columns: Iterable[ColumnConfig], ctx: TableContext | None = None) -> list[str]:
    """Header, separator and one line per spool for the visible columns."""
    ctx = ctx or TableContext()
    defs = [COLUMN_DEFS[c.id] for c in visible_columns(columns) if c.id in COLUMN_DEFS]
    headers = [column.header for column in defs]
    body = [[_clip(column.cell(spool, ctx)) for column in defs] for spool in spools]
    widths = [len(h) for h in headers]
    for row in body:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]

    def line(cells: list[str]) -> str:
        return "  ".join(cell.ljust(w) for cell, w in zip(cells, widths)).rstrip()

    lines = [line(headers), line(["-" * w for w in widths])]
    lines.extend(line(row) for row in body)
    return lines


def render_card(spool: Spool, ctx: TableContext | None = None) -> list[str]:
    ctx = ctx or TableContext()
    net_weight = get_net_weight(spool)
    title = spool.material + (f" {spool.subtype}" if spool.subtype else "")
    lines = [
        f"#{spool.id}  {title or '-'}  ({spool.brand or 'Unknown Brand'})",
        f"  {spool.color_name or 'Unknown'} {spool.rgba}",
        f"  {render_progress(net_weight, spool.label_weight)}  "
        f"{format_weight(net_weight)} / {format_weight(spool.label_weight)}",
    ]
    if spool.weight_current is not None:
        lines.append(f"  Scale: {format_weight(spool.weight_current)}")

    badges = []
    location = ctx.spools_in_printers.get(spool.id)
    if location:
        badges.append(f"In printer: {location}")
    if is_low_stock(spool, ctx.low_stock_threshold):
        badges.append("Low stock")
    if spool.ext_has_k:
        badges.append("K")
    if spool.data_origin:
        badges.append(spool.data_origin)
    if badges:
        lines.append("  " + " | ".join(badges))

    meta = [f"Added {format_datetime(spool.added_time, ctx.tz)}"]
    if spool.encode_time:
        meta.append("NFC")
    lines.append("  " + " · ".join(meta))
    return lines


def render_detail(spool: Spool, ctx: TableContext | None = None, k_info: Optional[KInfo] = None) -> list[str]:
    """Every field of one spool, then its calibration entries when given."""
    ctx = ctx or TableContext()
    comparison = compare_weights(spool, ctx.weight_tolerance)
    rows = [
        ("ID", spool.id),
        ("Tag ID", _or_dash(spool.tag_id)),
        ("Linked Tag Type", _or_dash(spool.tag_type)),
        ("Material", _or_dash(spool.material)),
        ("Subtype", _or_dash(spool.subtype)),
        ("Brand", _or_dash(spool.brand)),
        ("Color", f"{spool.color_name or '-'} ({spool.rgba})"),
        ("Slicer Filament", _or_dash(get_filament_name(spool.slicer_filament))),
        ("Location", _or_dash(ctx.spools_in_printers.get(spool.id))),
        ("Label Weight", format_weight(spool.label_weight)),
        ("Core Weight", format_weight(spool.core_weight)),
        ("Net", format_weight(get_net_weight(spool))),
        ("Gross", format_weight(get_gross_weight(spool))),
        ("Remaining", f"{get_remaining_percent(spool):.0f}%"),
        ("Used", format_weight(spool.consumed_since_add, decimals=True)),
        ("Printed Since Weight", format_weight(spool.consumed_since_weight, decimals=True)),
        ("Scale", _scale_cell(spool, ctx)),
        ("Calculated Gross", format_weight(comparison.calculated_weight)),
        ("Full When Added", "Yes" if spool.added_full else "No"),
        ("Added", format_datetime(spool.added_time, ctx.tz)),
        ("Encoded", format_datetime(spool.encode_time, ctx.tz)),
        ("Data Origin", _or_dash(spool.data_origin)),
        ("PA(K)", "Yes" if spool.ext_has_k else "No"),
        ("Note", _or_dash(spool.note)),
    ]
    width = max(len(label) for label, _ in rows)
    lines = [f"{label.ljust(width)}  {value}" for label, value in rows]
    if k_info is not None and not k_info.is_empty():
        lines.append("")
        lines.append("Pressure advance:")
        for serial, printer in k_info.printers.items():
            for extruder_index, extruder in sorted(printer.extruders.items()):
                for diameter, nozzle_diameter in extruder.diameters.items():
                    for nozzle_id, nozzle in nozzle_diameter.nozzles.items():
                        lines.append(
                            f"  {serial} ext{extruder_index} {diameter}mm {nozzle_id}: "
                            f"K={nozzle.k_value} ({nozzle.name})"
                        )
    return lines


def render_stats(stats: InventoryStats, low_stock_threshold: float = DEFAULT_LOW_STOCK_THRESHOLD) -> list[str]:
    plural = "" if stats.total_spools == 1 else "s"
    materials = "  ".join(
        f"{material} {format_weight(totals.weight, use_kg=True)}" for material, totals in top_materials(stats)
    )
    return [
        f"Total inventory: {format_weight(stats.total_weight, use_kg=True)} ({stats.total_spools} spool{plural})",
        f"Total consumed:  {format_weight(stats.total_consumed, use_kg=True)}",
        f"By material:     {materials or '-'}",
        f"In printer:      {stats.in_printer}",
        f"Low stock:       {stats.low_stock} (<{low_stock_threshold:g}% remaining)",
        f"With PA(K):      {stats.has_k}",
    ]
