"""Tests for the device CSV spool record parser."""

from __future__ import annotations

import base64
import struct

from spool_inventory.csv_parser import (
    color_code_to_rgba,
    decode_base64_float,
    parse_boolean_field,
    parse_csv_line,
    parse_spools_csv,
)


def _encode_f32(value: float) -> str:
    """Encode a float as base64-no-pad little-endian f32 (matching the device)."""
    if value == 0.0:
        return ""
    raw = struct.pack("<f", value)
    return base64.b64encode(raw).rstrip(b"=").decode("ascii")


class TestDecodeBase64Float:
    def test_empty(self):
        assert decode_base64_float("") == 0.0
        assert decode_base64_float(None) == 0.0

    def test_padded(self):
        assert decode_base64_float("AACAQA==") == 4.0

    def test_unpadded(self):
        assert decode_base64_float("AACAQA") == 4.0

    def test_large_value(self):
        assert abs(decode_base64_float(_encode_f32(1000.0)) - 1000.0) < 0.1

    def test_garbage_is_zero(self):
        assert decode_base64_float("!!!") == 0.0

    def test_wrong_length_is_zero(self):
        assert decode_base64_float(base64.b64encode(b"\x00\x00").decode()) == 0.0


class TestFieldHelpers:
    def test_booleans(self):
        for value in ("y", "Y", "1", "true", "TRUE", "yes"):
            assert parse_boolean_field(value) is True
        for value in ("n", "", None, "0", "false", "maybe"):
            assert parse_boolean_field(value) is False

    def test_color_code(self):
        assert color_code_to_rgba("FF00FF") == "#FF00FF"
        assert color_code_to_rgba("FF00FF80") == "#FF00FF"
        assert color_code_to_rgba("#123456") == "#123456"
        assert color_code_to_rgba("") == "#cccccc"
        assert color_code_to_rgba("FFF") == "#cccccc"

    def test_quoted_comma(self):
        assert parse_csv_line('1,"Note, with comma",x') == ["1", "Note, with comma", "x"]

    def test_trailing_empty_field(self):
        assert parse_csv_line("a,b,") == ["a", "b", ""]


class TestParseSpoolsCsv:
    def _make_row(
        self,
        id: str = "1",
        tag_id: str = "04A3B2C1D5E6F7",
        material: str = "PLA",
        subtype: str = "Basic",
        color_name: str = "Black",
        color_code: str = "000000FF",
        note: str = "",
        brand: str = "Bambu",
        label_weight: str = "1000",
        core_weight: str = "250",
        weight_new: str = "",
        weight_current: str = "",
        slicer_filament: str = "GFA00",
        added_time: str = "1700000000",
        encode_time: str = "",
        added_full: str = "y",
        consumed_since_add: float = 0.0,
        consumed_since_weight: float = 0.0,
        ext_has_k: str = "n",
        data_origin: str = "",
        tag_type: str = "SpoolEaseV1",
    ) -> str:
        return ",".join([
            id, tag_id, material, subtype, color_name, color_code, note, brand,
            label_weight, core_weight, weight_new, weight_current, slicer_filament,
            added_time, encode_time, added_full,
            _encode_f32(consumed_since_add), _encode_f32(consumed_since_weight),
            ext_has_k, data_origin, tag_type,
        ])

    def test_full_row(self):
        spools = parse_spools_csv(self._make_row(consumed_since_add=150.5, weight_current="900", ext_has_k="y"))
        assert len(spools) == 1
        s = spools[0]
        assert s.id == "1"
        assert s.tag_id == "04A3B2C1D5E6F7"
        assert s.material == "PLA"
        assert s.subtype == "Basic"
        assert s.rgba == "#000000"
        assert s.label_weight == 1000
        assert s.core_weight == 250
        assert s.weight_new is None
        assert s.weight_current == 900
        assert s.added_time == "1700000000"
        assert s.encode_time is None
        assert s.added_full is True
        assert abs(s.consumed_since_add - 150.5) < 0.01
        assert s.ext_has_k is True
        assert s.tag_type == "SpoolEaseV1"

    def test_multiple_rows_and_blank_lines(self):
        csv = "\n".join([self._make_row(id="1"), "", "  ", self._make_row(id="2"), ""])
        assert [s.id for s in parse_spools_csv(csv)] == ["1", "2"]

    def test_empty_text(self):
        assert parse_spools_csv("") == []
        assert parse_spools_csv("\n\n") == []

    def test_short_row_is_padded(self):
        spools = parse_spools_csv("7,,PETG")
        assert len(spools) == 1
        assert spools[0].id == "7"
        assert spools[0].material == "PETG"
        assert spools[0].label_weight == 0
        assert spools[0].rgba == "#cccccc"
        assert spools[0].tag_type == ""

    def test_note_with_comma(self):
        s = parse_spools_csv(self._make_row(note='"Dry, then print"'))[0]
        assert s.note == "Dry, then print"
        assert s.brand == "Bambu"

    def test_integer_with_suffix(self):
        s = parse_spools_csv(self._make_row(label_weight="750g", core_weight="abc"))[0]
        assert s.label_weight == 750
        assert s.core_weight == 0

    def test_malformed_float_defaults(self):
        row = self._make_row()
        fields = row.split(",")
        fields[16] = "###"
        s = parse_spools_csv(",".join(fields))[0]
        assert s.consumed_since_add == 0.0
