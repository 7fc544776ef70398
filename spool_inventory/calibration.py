"""Selecting pressure advance profiles and folding them into a KInfo tree.

A profile key identifies one calibration as
"printer_serial:extruder:diameter:nozzle_id:cali_idx".
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .models import (
    KExtruder,
    KInfo,
    KNozzleDiameter,
    KNozzleId,
    KPrinter,
    PressureAdvanceEntry,
    PrintersFilamentPa,
)

logger = logging.getLogger(__name__)


def profile_key(printer_serial: str, entry: PressureAdvanceEntry) -> str:
    return f"{printer_serial}:{entry.extruder}:{entry.diameter}:{entry.nozzle_id}:{entry.cali_idx}"


def profile_keys_from_kinfo(k_info: Optional[KInfo]) -> set[str]:
    """Keys for every calibration already stored on a spool."""
    keys = set()
    if k_info is None:
        return keys
    for serial, printer in k_info.printers.items():
        for extruder_index, extruder in printer.extruders.items():
            for diameter, nozzle_diameter in extruder.diameters.items():
                for nozzle_id, nozzle in nozzle_diameter.nozzles.items():
                    keys.add(f"{serial}:{extruder_index}:{diameter}:{nozzle_id}:{nozzle.cali_idx}")
    return keys


def list_profiles(printers_pa: PrintersFilamentPa) -> list[tuple[str, str, PressureAdvanceEntry]]:
    """(key, printer name, entry) for every selectable calibration."""
    return [
        (profile_key(serial, entry), printer.name or serial, entry)
        for serial, printer in printers_pa.printers.items()
        for entry in printer.pressure_advance
    ]


def _find_entry(printers_pa: PrintersFilamentPa, key: str) -> tuple[str, Optional[PressureAdvanceEntry]]:
    parts = key.split(":")
    if len(parts) != 5:
        return "", None
    serial, extruder, diameter, nozzle_id, cali_idx = parts
    printer = printers_pa.printers.get(serial)
    if printer is None:
        return serial, None
    try:
        extruder_index = int(extruder)
        cali_index = int(cali_idx)
    except ValueError:
        return serial, None
    for entry in printer.pressure_advance:
        if (
            entry.extruder == extruder_index
            and entry.diameter == diameter
            and entry.nozzle_id == nozzle_id
            and entry.cali_idx == cali_index
        ):
            return serial, entry
    return serial, None


def build_kinfo_from_selection(
    selected: Iterable[str],
    printers_pa: Optional[PrintersFilamentPa],
    existing: Optional[KInfo] = None,
) -> Optional[KInfo]:
    """Build the calibration tree for the selected profile keys.

    Keys that do not resolve against ``printers_pa`` are skipped. When
    nothing is selected or nothing resolves, ``existing`` is returned.
    """
    selected = list(selected)
    if not selected or printers_pa is None:
        return existing

    k_info = KInfo()
    for key in selected:
        serial, entry = _find_entry(printers_pa, key)
        if entry is None:
            logger.debug("Skipping unknown calibration profile %s", key)
            continue
        printer = k_info.printers.setdefault(serial, KPrinter())
        extruder = printer.extruders.setdefault(entry.extruder, KExtruder())
        nozzle_diameter = extruder.diameters.setdefault(entry.diameter, KNozzleDiameter())
        nozzle_diameter.nozzles[entry.nozzle_id] = KNozzleId(
            name=entry.name,
            k_value=entry.k_value,
            cali_idx=entry.cali_idx,
            setting_id=entry.setting_id,
        )
    return k_info if k_info.printers else existing
