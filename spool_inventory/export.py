"""Inventory export as CSV or JSON backup."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from typing import Optional

from .models import Spool

CSV_HEADERS = (
    "ID", "Tag ID", "Material", "Subtype", "Color", "RGBA", "Brand",
    "Label Weight", "Core Weight", "Slicer Filament", "Note", "Added", "Encoded",
)


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def export_csv(spools: list[Spool]) -> str:
    """One header line plus one line per spool. Notes are always quoted."""
    lines = [",".join(CSV_HEADERS)]
    for s in spools:
        row = [
            s.id,
            s.tag_id,
            s.material,
            s.subtype,
            s.color_name,
            s.rgba,
            s.brand,
            str(s.label_weight),
            str(s.core_weight),
            s.slicer_filament,
            _quote(s.note or ""),
            s.added_time or "",
            s.encode_time or "",
        ]
        lines.append(",".join(row))
    return "\n".join(lines)


def export_json(spools: list[Spool], now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    data = {
        "exported_at": now.isoformat(),
        "spools": [s.to_dict() for s in spools],
    }
    return json.dumps(data, indent=2)


def export_filename(kind: str, today: Optional[date] = None) -> str:
    """spoolease-inventory-YYYY-MM-DD.csv or spoolease-backup-YYYY-MM-DD.json."""
    today = today or datetime.now(timezone.utc).date()
    if kind == "json":
        return f"spoolease-backup-{today.isoformat()}.json"
    return f"spoolease-inventory-{today.isoformat()}.csv"
