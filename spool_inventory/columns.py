"""Inventory table column layout: order and visibility."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

ACTIONS_COLUMN = "actions"


@dataclass
class ColumnConfig:
    id: str
    label: str
    visible: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "label": self.label, "visible": self.visible}


DEFAULT_COLUMNS: tuple[ColumnConfig, ...] = (
    ColumnConfig("id", "ID"),
    ColumnConfig("added_time", "Added"),
    ColumnConfig("encode_time", "Encoded"),
    ColumnConfig("rgba", "RGBA"),
    ColumnConfig("material", "Material"),
    ColumnConfig("subtype", "Subtype"),
    ColumnConfig("color_name", "Color"),
    ColumnConfig("brand", "Brand"),
    ColumnConfig("slicer_filament", "Slicer Filament"),
    ColumnConfig("location", "Location"),
    ColumnConfig("label_weight", "Label"),
    ColumnConfig("net", "Net"),
    ColumnConfig("gross", "Gross"),
    ColumnConfig("added_full", "Full", visible=False),
    ColumnConfig("used", "Used"),
    ColumnConfig("printed_total", "Printed Total", visible=False),
    ColumnConfig("printed_since_weight", "Printed Since Weight", visible=False),
    ColumnConfig("note", "Note"),
    ColumnConfig("pa_k", "PA(K)"),
    ColumnConfig("tag_id", "Tag ID"),
    ColumnConfig("data_origin", "Data Origin", visible=False),
    ColumnConfig("tag_type", "Linked Tag Type", visible=False),
    ColumnConfig("remaining", "Remaining", visible=False),
    ColumnConfig("scale", "Scale", visible=False),
    ColumnConfig(ACTIONS_COLUMN, "Actions"),
)


def get_default_columns() -> list[ColumnConfig]:
    return [ColumnConfig(c.id, c.label, c.visible) for c in DEFAULT_COLUMNS]


def columns_from_json(data: Any) -> list[ColumnConfig]:
    """Read a persisted column list. Raises ValueError on an unusable shape."""
    if not isinstance(data, list):
        raise ValueError("column config must be a list")
    columns = []
    for item in data:
        if not isinstance(item, dict) or "id" not in item:
            raise ValueError(f"invalid column entry: {item!r}")
        columns.append(ColumnConfig(
            id=str(item["id"]),
            label=str(item.get("label", item["id"])),
            visible=bool(item.get("visible", True)),
        ))
    return columns


def reconcile_columns(saved: Iterable[ColumnConfig]) -> list[ColumnConfig]:
    """Align a saved layout with the current default columns.

    Unknown ids are dropped. Default columns missing from the saved layout
    are inserted before the actions column (or appended when it is absent),
    in default order. Saved order and visibility are otherwise kept.
    """
    defaults = get_default_columns()
    valid_ids = {c.id for c in defaults}
    result = [c for c in saved if c.id in valid_ids]
    saved_ids = {c.id for c in result}
    new_columns = [c for c in defaults if c.id not in saved_ids]
    if new_columns:
        actions_index = next((i for i, c in enumerate(result) if c.id == ACTIONS_COLUMN), None)
        if actions_index is None:
            result.extend(new_columns)
        else:
            result[actions_index:actions_index] = new_columns
    return result


def move_column(columns: list[ColumnConfig], from_index: int, to_index: int) -> list[ColumnConfig]:
    """Return a copy with one column moved; out-of-range targets are ignored."""
    if not 0 <= from_index < len(columns) or not 0 <= to_index < len(columns):
        return list(columns)
    result = list(columns)
    moved = result.pop(from_index)
    result.insert(to_index, moved)
    return result


def set_visibility(columns: list[ColumnConfig], column_id: str, visible: bool) -> list[ColumnConfig]:
    return [
        ColumnConfig(c.id, c.label, visible) if c.id == column_id else c
        for c in columns
    ]


def toggle_visibility(columns: list[ColumnConfig], column_id: str) -> list[ColumnConfig]:
    return [
        ColumnConfig(c.id, c.label, not c.visible) if c.id == column_id else c
        for c in columns
    ]


def index_of(columns: list[ColumnConfig], column_id: str) -> int:
    for i, column in enumerate(columns):
        if column.id == column_id:
            return i
    raise KeyError(column_id)


def visible_columns(columns: Iterable[ColumnConfig]) -> list[ColumnConfig]:
    return [c for c in columns if c.visible]
