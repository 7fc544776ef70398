"""Slicer filament codes, color presets and catalog helpers."""

from __future__ import annotations

import re
from typing import Optional

# Slicer filament preset code -> display name
FILAMENT_INDEX: dict[str, str] = {
    "GFA00": "Bambu PLA Basic",
    "GFA01": "Bambu PLA Matte",
    "GFA02": "Bambu PLA Metal",
    "GFA05": "Bambu PLA Silk",
    "GFA06": "Bambu PLA Silk+",
    "GFA07": "Bambu PLA Marble",
    "GFA08": "Bambu PLA Sparkle",
    "GFA09": "Bambu PLA Tough",
    "GFA11": "Bambu PLA Aero",
    "GFA12": "Bambu PLA Glow",
    "GFA13": "Bambu PLA Dynamic",
    "GFA15": "Bambu PLA Galaxy",
    "GFA16": "Bambu PLA Wood",
    "GFA17": "Bambu PLA Translucent",
    "GFA18": "Bambu PLA Lite",
    "GFA50": "Bambu PLA-CF",
    "GFB00": "Bambu ABS",
    "GFB01": "Bambu ASA",
    "GFB02": "Bambu ASA-Aero",
    "GFB50": "Bambu ABS-GF",
    "GFB51": "Bambu ASA-CF",
    "GFB60": "PolyLite ABS",
    "GFB61": "PolyLite ASA",
    "GFB98": "Generic ASA",
    "GFB99": "Generic ABS",
    "GFC00": "Bambu PC",
    "GFC01": "Bambu PC FR",
    "GFC99": "Generic PC",
    "GFG00": "Bambu PETG Basic",
    "GFG01": "Bambu PETG Translucent",
    "GFG02": "Bambu PETG HF",
    "GFG50": "Bambu PETG-CF",
    "GFG60": "PolyLite PETG",
    "GFG96": "Generic PETG HF",
    "GFG97": "Generic PCTG",
    "GFG98": "Generic PETG-CF",
    "GFG99": "Generic PETG",
    "GFL00": "PolyLite PLA",
    "GFL01": "PolyTerra PLA",
    "GFL03": "eSUN PLA+",
    "GFL04": "Overture PLA",
    "GFL05": "Overture Matte PLA",
    "GFL06": "Fiberon PETG-ESD",
    "GFL50": "Fiberon PA6-CF",
    "GFL51": "Fiberon PA6-GF",
    "GFL52": "Fiberon PA12-CF",
    "GFL53": "Fiberon PA612-CF",
    "GFL54": "Fiberon PET-CF",
    "GFL55": "Fiberon PETG-rCF",
    "GFL95": "Generic PLA High Speed",
    "GFL96": "Generic PLA Silk",
    "GFL98": "Generic PLA-CF",
    "GFL99": "Generic PLA",
    "GFN03": "Bambu PA-CF",
    "GFN04": "Bambu PAHT-CF",
    "GFN05": "Bambu PA6-CF",
    "GFN06": "Bambu PPA-CF",
    "GFN07": "Bambu PPA-GF",
    "GFN08": "Bambu PA6-GF",
    "GFN96": "Generic PPA-GF",
    "GFN97": "Generic PPA-CF",
    "GFN98": "Generic PA-CF",
    "GFN99": "Generic PA",
    "GFP95": "Generic PP-GF",
    "GFP96": "Generic PP-CF",
    "GFP97": "Generic PP",
    "GFP98": "Generic PE-CF",
    "GFP99": "Generic PE",
    "GFR98": "Generic PHA",
    "GFR99": "Generic EVA",
    "GFS00": "Bambu Support W",
    "GFS01": "Bambu Support G",
    "GFS02": "Bambu Support For PLA",
    "GFS03": "Bambu Support For PA/PET",
    "GFS04": "Bambu PVA",
    "GFS05": "Bambu Support For PLA/PETG",
    "GFS06": "Bambu Support for ABS",
    "GFS97": "Generic BVOH",
    "GFS98": "Generic HIPS",
    "GFS99": "Generic PVA",
    "GFSNL02": "SUNLU PLA Matte",
    "GFSNL03": "SUNLU PLA+",
    "GFSNL04": "SUNLU PLA+ 2.0",
    "GFSNL05": "SUNLU Silk PLA+",
    "GFSNL06": "SUNLU PLA Marble",
    "GFSNL07": "SUNLU Wood PLA",
    "GFSNL08": "SUNLU PETG",
    "GFT01": "Bambu PET-CF",
    "GFT02": "Bambu PPS-CF",
    "GFT97": "Generic PPS",
    "GFT98": "Generic PPS-CF",
    "GFU00": "Bambu TPU 95A HF",
    "GFU01": "Bambu TPU 95A",
    "GFU02": "Bambu TPU for AMS",
    "GFU03": "Bambu TPU 90A",
    "GFU04": "Bambu TPU 85A",
    "GFU98": "Generic TPU for AMS",
    "GFU99": "Generic TPU",
}

BRAND_PREFIXES = ("Bambu", "PolyLite", "PolyTerra", "eSUN", "Overture", "Fiberon", "SUNLU", "Generic")

# Checked in order; the first whole-word match wins
MATERIAL_NAMES = (
    "PLA", "PETG", "ABS", "ASA", "PC", "PA", "TPU", "PVA", "HIPS", "PET",
    "PPS", "PPA", "PP", "PE", "PHA", "EVA", "BVOH", "PCTG",
)

COLOR_PRESETS: tuple[tuple[str, str], ...] = (
    ("Black", "000000"),
    ("White", "FFFFFF"),
    ("Gray", "808080"),
    ("Silver", "C0C0C0"),
    ("Red", "FF0000"),
    ("Dark Red", "8B0000"),
    ("Orange", "FFA500"),
    ("Yellow", "FFFF00"),
    ("Gold", "FFD700"),
    ("Green", "008000"),
    ("Lime", "00FF00"),
    ("Teal", "008080"),
    ("Cyan", "00FFFF"),
    ("Blue", "0000FF"),
    ("Navy", "000080"),
    ("Purple", "800080"),
    ("Magenta", "FF00FF"),
    ("Pink", "FFC0CB"),
    ("Brown", "8B4513"),
    ("Beige", "F5F5DC"),
    ("Ivory", "FFFFF0"),
    ("Titan Gray", "5A5A5A"),
    ("Jade White", "E8E8E8"),
    ("Bambu Green", "00AE42"),
)

_TRAILING_INT = re.compile(r"(\d+)$")


def get_filament_name(code: Optional[str]) -> str:
    """Display name for a slicer code, e.g. GFA02 -> Bambu PLA Metal. Unknown codes pass through."""
    if not code:
        return ""
    return FILAMENT_INDEX.get(code, code)


def get_filament_options() -> list[tuple[str, str]]:
    """All (code, name) pairs sorted by name."""
    return sorted(FILAMENT_INDEX.items(), key=lambda item: item[1].lower())


def extract_brand_from_filament(code: str) -> Optional[str]:
    name = FILAMENT_INDEX.get(code)
    if not name:
        return None
    for brand in BRAND_PREFIXES:
        if name.startswith(brand):
            return brand
    return None


def extract_material_from_filament(code: str) -> Optional[str]:
    name = FILAMENT_INDEX.get(code)
    if not name:
        return None
    for material in MATERIAL_NAMES:
        if re.search(rf"\b{material}\b", name, re.IGNORECASE):
            return material
    return None


def find_color_preset(name: str) -> Optional[str]:
    """Preset hex for a color name (case-insensitive), as "#RRGGBB"."""
    for preset_name, hex_code in COLOR_PRESETS:
        if preset_name.lower() == name.strip().lower():
            return "#" + hex_code
    return None


def parse_core_weights(catalog_lines: list[str]) -> list[int]:
    """Distinct empty-reel weights from catalog lines ending in a number, ascending."""
    weights = set()
    for line in catalog_lines:
        match = _TRAILING_INT.search(line.strip())
        if match:
            weights.add(int(match.group(1)))
    return sorted(weights)
