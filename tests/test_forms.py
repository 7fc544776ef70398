"""Tests for the spool form and pressure advance profile selection."""

from __future__ import annotations

import pytest

from spool_inventory.calibration import (
    build_kinfo_from_selection,
    list_profiles,
    profile_keys_from_kinfo,
)
from spool_inventory.exceptions import ValidationError
from spool_inventory.forms import SpoolForm
from spool_inventory.models import KInfo, PrintersFilamentPa


@pytest.fixture
def printers_pa() -> PrintersFilamentPa:
    return PrintersFilamentPa.from_dict({
        "printers": {
            "01S00A": {
                "name": "X1C",
                "extruders": 1,
                "pressure_advance": [
                    {"extruder": 0, "diameter": "0.4", "nozzle_id": "HS00", "name": "PLA HS",
                     "k_value": "0.020", "cali_idx": 3},
                    {"extruder": 0, "diameter": "0.6", "nozzle_id": "HS00", "name": "PLA 0.6",
                     "k_value": "0.015", "cali_idx": 4, "setting_id": "GFSA00"},
                ],
            },
            "22E00B": {
                "name": "",
                "extruders": 2,
                "pressure_advance": [
                    {"extruder": 1, "diameter": "0.4", "nozzle_id": "HH01", "name": "Right",
                     "k_value": "0.030", "cali_idx": 7},
                ],
            },
        },
    })


class TestSpoolForm:
    def test_material_required(self):
        with pytest.raises(ValidationError, match="Material is required"):
            SpoolForm(material="  ").validate()

    def test_negative_weight_rejected(self):
        with pytest.raises(ValidationError):
            SpoolForm(material="PLA", core_weight=-1).validate()

    def test_new_draft(self):
        draft = SpoolForm(material="PLA", rgba="#00AE42", label_weight=750).to_draft()
        assert draft.id == ""
        assert draft.rgba == "00AE42"
        assert draft.label_weight == 750

    def test_edit_carries_identity(self, make_spool):
        spool = make_spool(id="12", tag_id="04A1B2C3D4E5F6", material="PETG", note="dry")
        form = SpoolForm.from_spool(spool)
        assert form.note == "dry"
        form.brand = "Sunlu"
        draft = form.to_draft(spool)
        assert draft.id == "12"
        assert draft.tag_id == "04A1B2C3D4E5F6"
        assert draft.brand == "Sunlu"

    def test_autofill_from_filament(self):
        form = SpoolForm(slicer_filament="GFG00", brand="")
        form.autofill_from_filament(["Bambu", "eSun"])
        assert form.brand == "Bambu"
        assert form.material == "PETG"

    def test_autofill_keeps_user_values_and_unknown_brands(self):
        form = SpoolForm(slicer_filament="GFL99", material="PLA+")
        form.autofill_from_filament(["Bambu"])
        assert form.brand == ""
        assert form.material == "PLA+"


class TestCalibrationSelection:
    def test_list_profiles(self, printers_pa):
        profiles = list_profiles(printers_pa)
        keys = [key for key, _, _ in profiles]
        assert "01S00A:0:0.4:HS00:3" in keys
        assert "22E00B:1:0.4:HH01:7" in keys
        # serial stands in for a missing printer name
        assert ("22E00B:1:0.4:HH01:7", "22E00B") in [(k, name) for k, name, _ in profiles]

    def test_build_from_selection(self, printers_pa):
        k_info = build_kinfo_from_selection(
            ["01S00A:0:0.6:HS00:4", "22E00B:1:0.4:HH01:7"], printers_pa,
        )
        nozzle = k_info.printers["01S00A"].extruders[0].diameters["0.6"].nozzles["HS00"]
        assert nozzle.k_value == "0.015"
        assert nozzle.setting_id == "GFSA00"
        assert 1 in k_info.printers["22E00B"].extruders
        assert profile_keys_from_kinfo(k_info) == {"01S00A:0:0.6:HS00:4", "22E00B:1:0.4:HH01:7"}

    def test_unknown_keys_skipped(self, printers_pa):
        k_info = build_kinfo_from_selection(["01S00A:0:0.4:HS00:3", "NOPE:0:0.4:HS00:1", "bad"], printers_pa)
        assert profile_keys_from_kinfo(k_info) == {"01S00A:0:0.4:HS00:3"}

    def test_nothing_selected_keeps_existing(self, printers_pa):
        existing = KInfo.from_dict({"printers": {"X": {}}})
        assert build_kinfo_from_selection([], printers_pa, existing) is existing
        assert build_kinfo_from_selection(["NOPE:0:0.4:HS00:1"], printers_pa, existing) is existing
        assert build_kinfo_from_selection(["01S00A:0:0.4:HS00:3"], None, existing) is existing

    def test_keys_from_empty_kinfo(self):
        assert profile_keys_from_kinfo(None) == set()
        assert profile_keys_from_kinfo(KInfo()) == set()
