"""Parse the device's CSV spool record format.

The device serializes its spool records without a header row, one record per
line, fields in a fixed order (see ``parse_spools_csv``). Decoding is best
effort: a malformed field degrades to its default and never drops the row.
Special encodings:
  - color_code: 6 or 8 hex digits (RGB or RGBA)
  - f32 fields: base64 little-endian bytes, empty string for 0.0
  - bool fields: "y"/"n" (also accepts 1/true/yes)
"""

from __future__ import annotations

import base64
import binascii
import re
import struct
from typing import Optional

from .models import Spool

FIELD_COUNT = 21
DEFAULT_COLOR = "#cccccc"
TRUE_VALUES = frozenset({"1", "true", "y", "yes"})

_LEADING_INT = re.compile(r"^\s*([-+]?\d+)")


def parse_csv_line(line: str) -> list[str]:
    """Split one line on commas, honouring double quotes.

    A quote toggles "inside quotes" mode and is itself dropped. Doubled
    quotes are not treated as an escaped quote.
    """
    values = []
    current = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            values.append("".join(current))
            current = []
        else:
            current.append(char)
    values.append("".join(current))
    return values


def color_code_to_rgba(color_code: str) -> str:
    """Convert "RRGGBB[AA]" or "#RRGGBB" into a "#RRGGBB" display color."""
    if not color_code or len(color_code) < 6:
        return DEFAULT_COLOR
    if color_code.startswith("#"):
        return color_code[:7]
    return "#" + color_code[:6]


def decode_base64_float(value: Optional[str]) -> float:
    """Decode a base64 little-endian f32. Padding is optional; bad input gives 0.0."""
    if not value:
        return 0.0
    value = value.strip()
    try:
        raw = base64.b64decode(value + "=" * (-len(value) % 4), validate=True)
    except (binascii.Error, ValueError):
        return 0.0
    if len(raw) != 4:
        return 0.0
    return struct.unpack("<f", raw)[0]


def parse_boolean_field(value: Optional[str]) -> bool:
    if not value:
        return False
    return value.strip().lower() in TRUE_VALUES


def _parse_int(value: Optional[str], default: Optional[int] = 0) -> Optional[int]:
    """Parse the leading integer of a field, e.g. "250g" -> 250."""
    if not value:
        return default
    match = _LEADING_INT.match(value)
    if match is None:
        return default
    return int(match.group(1))


def _parse_optional_str(value: str) -> Optional[str]:
    return value or None


def parse_spool_row(values: list[str]) -> Spool:
    """Build a Spool from one split CSV row. Missing trailing fields are empty."""
    if len(values) < FIELD_COUNT:
        values = values + [""] * (FIELD_COUNT - len(values))
    return Spool(
        id=values[0],
        tag_id=values[1],
        material=values[2],
        subtype=values[3],
        color_name=values[4],
        rgba=color_code_to_rgba(values[5]),
        note=values[6],
        brand=values[7],
        label_weight=_parse_int(values[8]),
        core_weight=_parse_int(values[9]),
        weight_new=_parse_int(values[10], None),
        weight_current=_parse_int(values[11], None),
        slicer_filament=values[12],
        added_time=_parse_optional_str(values[13]),
        encode_time=_parse_optional_str(values[14]),
        added_full=parse_boolean_field(values[15]),
        consumed_since_add=decode_base64_float(values[16]),
        consumed_since_weight=decode_base64_float(values[17]),
        ext_has_k=parse_boolean_field(values[18]),
        data_origin=values[19],
        tag_type=values[20],
    )


def parse_spools_csv(csv_text: str) -> list[Spool]:
    """Parse a decrypted spool CSV snapshot.

    CSV field order:
    id, tag_id, material_type, material_subtype, color_name, color_code,
    note, brand, weight_advertised, weight_core, weight_new, weight_current,
    slicer_filament, added_time, encode_time, added_full,
    consumed_since_add, consumed_since_weight, ext_has_k, data_origin, tag_type
    """
    spools = []
    for line in csv_text.strip().splitlines():
        if not line.strip():
            continue
        spools.append(parse_spool_row(parse_csv_line(line)))
    return spools
