"""Tests for CSV and JSON export."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone

from spool_inventory.csv_parser import parse_csv_line
from spool_inventory.export import CSV_HEADERS, export_csv, export_filename, export_json


class TestExportCsv:
    def test_header_only(self):
        assert export_csv([]) == ",".join(CSV_HEADERS)

    def test_rows(self, make_spool):
        spool = make_spool(id="3", tag_id="04AA", rgba="#FF0000", note='Say "hi", then dry',
                           slicer_filament="GFA00", added_time="1700000000")
        lines = export_csv([spool]).split("\n")
        assert len(lines) == 2
        assert lines[1].startswith("3,04AA,PLA,,Black,#FF0000,Bambu,1000,250,GFA00,")
        assert '"Say ""hi"", then dry"' in lines[1]
        assert lines[1].endswith(",1700000000,")

    def test_empty_note_is_quoted(self, make_spool):
        line = export_csv([make_spool()]).split("\n")[1]
        assert ',"",' in line
        assert len(parse_csv_line(line)) == len(CSV_HEADERS)


class TestExportJson:
    def test_backup_document(self, make_spool):
        now = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)
        data = json.loads(export_json([make_spool(id="1"), make_spool(id="2")], now))
        assert data["exported_at"] == "2025-05-01T12:00:00+00:00"
        assert [s["id"] for s in data["spools"]] == ["1", "2"]
        assert data["spools"][0]["label_weight"] == 1000


class TestFilename:
    def test_names(self):
        today = date(2025, 5, 1)
        assert export_filename("csv", today) == "spoolease-inventory-2025-05-01.csv"
        assert export_filename("json", today) == "spoolease-backup-2025-05-01.json"
