"""Tests for the filament catalog helpers and formatting."""

from __future__ import annotations

from datetime import timezone

from spool_inventory.filaments import (
    extract_brand_from_filament,
    extract_material_from_filament,
    find_color_preset,
    get_filament_name,
    get_filament_options,
    parse_core_weights,
)
from spool_inventory.formatting import format_date, format_datetime, format_weight


class TestFilaments:
    def test_names(self):
        assert get_filament_name("GFA02") == "Bambu PLA Metal"
        assert get_filament_name("XYZ") == "XYZ"
        assert get_filament_name("") == ""
        assert get_filament_name(None) == ""

    def test_options_sorted_by_name(self):
        names = [name.lower() for _, name in get_filament_options()]
        assert names == sorted(names)

    def test_brand_and_material(self):
        assert extract_brand_from_filament("GFA00") == "Bambu"
        assert extract_brand_from_filament("GFL99") == "Generic"
        assert extract_brand_from_filament("nope") is None
        assert extract_material_from_filament("GFG00") == "PETG"
        assert extract_material_from_filament("GFB00") == "ABS"
        assert extract_material_from_filament("nope") is None

    def test_color_presets(self):
        assert find_color_preset("jade white") == "#E8E8E8"
        assert find_color_preset("Unobtainium") is None

    def test_core_weights(self):
        lines = ["Bambu Lab - Plastic 250", "Generic - Cardboard 180", "Other 250", "No weight here"]
        assert parse_core_weights(lines) == [180, 250]


class TestFormatting:
    def test_weight(self):
        assert format_weight(999.5) == "1000g"
        assert format_weight(1500, use_kg=True) == "1.5kg"
        assert format_weight(999, use_kg=True) == "999g"
        assert format_weight(12.345, decimals=True) == "12.3g"

    def test_dates(self):
        assert format_date(None) == "-"
        assert format_date("garbage") == "-"
        assert format_date("1700000000", timezone.utc) == "14/11/23"
        assert format_datetime("1700000000", timezone.utc) == "14/11/23, 22:13"
