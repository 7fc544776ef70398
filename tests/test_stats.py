"""Tests for weight arithmetic and inventory statistics."""

from __future__ import annotations

from spool_inventory.stats import (
    calculate_stats,
    compare_weights,
    get_gross_weight,
    get_net_weight,
    get_printer_location,
    get_progress_level,
    get_remaining_percent,
    get_usage_percent,
    is_in_printer,
    is_low_stock,
    top_materials,
)


class TestWeights:
    def test_net_and_gross(self, make_spool):
        spool = make_spool(label_weight=1000, core_weight=250, consumed=300.0)
        assert get_net_weight(spool) == 700.0
        assert get_gross_weight(spool) == 950.0

    def test_net_never_negative(self, make_spool):
        spool = make_spool(label_weight=1000, consumed=1200.0)
        assert get_net_weight(spool) == 0.0
        assert get_usage_percent(spool) == 100.0

    def test_zero_label_weight(self, make_spool):
        spool = make_spool(label_weight=0, consumed=10.0)
        assert get_usage_percent(spool) == 0.0
        assert get_remaining_percent(spool) == 100.0

    def test_progress_levels(self, make_spool):
        assert get_progress_level(make_spool(consumed=100.0)) == "high"
        assert get_progress_level(make_spool(consumed=500.0)) == "medium"
        assert get_progress_level(make_spool(consumed=800.0)) == "low"


class TestLowStock:
    def test_threshold_is_strict(self, make_spool):
        assert is_low_stock(make_spool(consumed=850.0)) is True
        assert is_low_stock(make_spool(consumed=750.0)) is False
        # exactly 20% remaining is not low
        assert is_low_stock(make_spool(consumed=800.0)) is False

    def test_custom_threshold(self, make_spool):
        assert is_low_stock(make_spool(consumed=750.0), threshold=30.0) is True


class TestPrinterLocation:
    def test_membership(self, make_spool):
        occupancy = {"1": "X1C AMS 2"}
        assert is_in_printer(make_spool(id="1"), occupancy)
        assert not is_in_printer(make_spool(id="2"), occupancy)
        assert not is_in_printer(make_spool(id="1"), {})
        assert get_printer_location(make_spool(id="1"), occupancy) == "X1C AMS 2"
        assert get_printer_location(make_spool(id="2"), occupancy) is None


class TestCompareWeights:
    def test_no_scale_reading(self, make_spool):
        comparison = compare_weights(make_spool())
        assert comparison.scale_weight is None
        assert comparison.is_match is None
        assert comparison.calculated_weight == 1250.0

    def test_within_tolerance(self, make_spool):
        comparison = compare_weights(make_spool(consumed=200.0, weight_current=1080))
        assert comparison.difference == 30.0
        assert comparison.is_match is True

    def test_outside_tolerance(self, make_spool):
        comparison = compare_weights(make_spool(weight_current=1100), threshold=50.0)
        assert comparison.difference == -150.0
        assert comparison.is_match is False


class TestCalculateStats:
    def test_empty(self):
        stats = calculate_stats([], {})
        assert stats.total_spools == 0
        assert stats.total_weight == 0.0
        assert stats.by_material == {}

    def test_aggregates(self, make_spool):
        spools = [
            make_spool(id="1", material="PLA", brand="Bambu", consumed=100.0, ext_has_k=True),
            make_spool(id="2", material="PLA", brand="eSun", consumed=900.0),
            make_spool(id="3", material="", brand="", consumed=0.0),
        ]
        stats = calculate_stats(spools, {"2": "AMS 1"})
        assert stats.total_spools == 3
        assert stats.total_weight == 900.0 + 100.0 + 1000.0
        assert stats.total_consumed == 1000.0
        assert stats.by_material["PLA"].count == 2
        assert stats.by_material["PLA"].weight == 1000.0
        assert stats.by_material["Unknown"].count == 1
        assert stats.by_brand["Unknown"].weight == 1000.0
        assert stats.in_printer == 1
        assert stats.low_stock == 1
        assert stats.has_k == 1

    def test_top_materials(self, make_spool):
        spools = [
            make_spool(id=str(i), material=material, consumed=consumed)
            for i, (material, consumed) in enumerate(
                [("PLA", 0), ("PETG", 500), ("ABS", 900), ("TPU", 100), ("ASA", 950)]
            )
        ]
        top = top_materials(calculate_stats(spools, {}))
        assert [name for name, _ in top] == ["PLA", "TPU", "PETG", "ABS"]
