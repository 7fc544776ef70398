"""Tests for sorting, search, paging and rendering of the spool table."""

from __future__ import annotations

from datetime import timezone

from spool_inventory.columns import get_default_columns, set_visibility
from spool_inventory.models import KInfo
from spool_inventory.stats import calculate_stats
from spool_inventory.table import (
    DEFAULT_PAGE_SIZE,
    SortKey,
    TableContext,
    paginate,
    render_card,
    render_detail,
    render_progress,
    render_stats,
    render_table,
    search_spools,
    sort_spools,
)


def _ids(spools):
    return [s.id for s in spools]


class TestSort:
    def test_natural_id_order(self, make_spool):
        spools = [make_spool(id="10"), make_spool(id="9"), make_spool(id="100")]
        assert _ids(sort_spools(spools, [SortKey("id")])) == ["9", "10", "100"]
        assert _ids(sort_spools(spools, [SortKey("id", desc=True)])) == ["100", "10", "9"]

    def test_multi_key_is_stable(self, make_spool):
        spools = [
            make_spool(id="1", material="PLA", consumed=100.0),
            make_spool(id="2", material="ABS"),
            make_spool(id="3", material="PLA"),
        ]
        result = sort_spools(spools, [SortKey("material"), SortKey("net", desc=True)])
        assert _ids(result) == ["2", "3", "1"]

    def test_missing_values_last(self, make_spool):
        spools = [make_spool(id="1"), make_spool(id="2", added_time="1700000000"), make_spool(id="3", added_time="1600000000")]
        assert _ids(sort_spools(spools, [SortKey("added_time")])) == ["3", "2", "1"]
        assert _ids(sort_spools(spools, [SortKey("added_time", desc=True)])) == ["2", "3", "1"]

    def test_unknown_and_unsortable_columns_ignored(self, make_spool):
        spools = [make_spool(id="2"), make_spool(id="1")]
        assert _ids(sort_spools(spools, [SortKey("bogus"), SortKey("actions")])) == ["2", "1"]

    def test_location_sort_uses_context(self, make_spool):
        spools = [make_spool(id="1"), make_spool(id="2")]
        ctx = TableContext(spools_in_printers={"1": "B slot", "2": "A slot"})
        assert _ids(sort_spools(spools, [SortKey("location")], ctx)) == ["2", "1"]


class TestSearch:
    def test_matches_visible_cells(self, make_spool):
        spools = [make_spool(id="1", color_name="Jade White"), make_spool(id="2", color_name="Red")]
        columns = get_default_columns()
        assert _ids(search_spools(spools, "jade", columns)) == ["1"]
        assert _ids(search_spools(spools, "  ", columns)) == ["1", "2"]

    def test_hidden_columns_not_searched(self, make_spool):
        spools = [make_spool(id="1", color_name="Jade White")]
        columns = set_visibility(get_default_columns(), "color_name", False)
        assert search_spools(spools, "jade", columns) == []


class TestPaginate:
    def test_pages(self, make_spool):
        rows = [make_spool(id=str(i)) for i in range(35)]
        page = paginate(rows, 2, 15)
        assert page.page_count == 3
        assert len(page.rows) == 5
        assert page.total_rows == 35

    def test_index_is_clamped(self, make_spool):
        rows = [make_spool(id=str(i)) for i in range(5)]
        assert paginate(rows, 9, 15).page_index == 0
        assert paginate(rows, -3, 15).page_index == 0

    def test_empty(self):
        page = paginate([], 0, 0)
        assert page.rows == []
        assert page.page_count == 1
        assert page.page_size == DEFAULT_PAGE_SIZE


class TestRendering:
    def test_progress_bar(self):
        assert render_progress(600, 1000) == "[######----] 60%"
        assert render_progress(10, 0) == "[----------] 0%"

    def test_table_has_visible_headers(self, make_spool):
        lines = render_table([make_spool(id="1", material="PETG")], get_default_columns())
        assert lines[0].startswith("ID")
        assert "Material" in lines[0]
        assert "Data Origin" not in lines[0]
        assert "PETG" in lines[2]

    def test_card_badges(self, make_spool):
        spool = make_spool(id="4", consumed=900.0, ext_has_k=True)
        lines = render_card(spool, TableContext(spools_in_printers={"4": "AMS 2"}))
        text = "\n".join(lines)
        assert "In printer: AMS 2" in text
        assert "Low stock" in text
        assert "100g / 1000g" in text

    def test_detail_with_calibration(self, make_spool):
        spool = make_spool(id="5", added_time="0")
        k_info = KInfo.from_dict({"printers": {"SER": {"extruders": {"0": {"diameters": {
            "0.4": {"nozzles": {"HS00": {"name": "HS", "k_value": "0.02", "cali_idx": 1}}}}}}}}})
        lines = render_detail(spool, TableContext(tz=timezone.utc), k_info)
        text = "\n".join(lines)
        assert "Added" in text and "01/01/70, 00:00" in text
        assert "SER ext0 0.4mm HS00: K=0.02 (HS)" in text

    def test_stats_summary(self, make_spool):
        stats = calculate_stats([make_spool(id="1"), make_spool(id="2", consumed=900.0)], {})
        lines = render_stats(stats)
        assert lines[0] == "Total inventory: 1.1kg (2 spools)"
        assert "Low stock:       1 (<20% remaining)" in lines
