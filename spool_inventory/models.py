"""Shared data models for the inventory client."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

# spool id -> printer location label; presence means the spool is loaded
SpoolsInPrinters = dict[str, str]


@dataclass
class Spool:
    """One filament reel as reported by the device (decoded CSV row)."""

    id: str
    tag_id: str = ""  # 14-char hex NFC id, may be empty
    material: str = ""  # e.g. "PLA", "PETG"
    subtype: str = ""  # e.g. "Basic", "CF"
    color_name: str = ""
    rgba: str = "#cccccc"  # display color "#RRGGBB", alpha discarded
    brand: str = ""
    core_weight: int = 0  # empty spool weight in grams
    label_weight: int = 0  # advertised filament weight in grams
    weight_new: Optional[int] = None
    weight_current: Optional[int] = None  # latest scale measurement in grams
    note: str = ""
    slicer_filament: str = ""  # slicer code, e.g. "GFA00"
    added_time: Optional[str] = None  # unix timestamp string
    encode_time: Optional[str] = None
    added_full: bool = False
    consumed_since_add: float = 0.0
    consumed_since_weight: float = 0.0
    ext_has_k: bool = False
    data_origin: str = ""
    tag_type: str = ""  # "SpoolEaseV1", "Bambu Lab", "OpenPrintTag"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SpoolDraft:
    """Partial spool sent to the add/edit endpoint.

    An id signals an update to the device; without one it creates a spool.
    """

    id: str = ""
    tag_id: str = ""
    rgba: str = ""
    color_name: str = ""
    material: str = ""
    subtype: str = ""
    brand: str = ""
    core_weight: int = 0
    label_weight: int = 0
    note: str = ""
    slicer_filament: str = ""

    def to_payload(self, k_info: Optional["KInfo"] = None) -> dict[str, Any]:
        rgba = self.rgba or ""
        if rgba.startswith("#"):
            rgba = rgba[1:]
        return {
            "id": self.id or "",
            "tag_id": self.tag_id or "",
            "rgba": rgba,
            "color_name": self.color_name or "",
            "material": self.material or "",
            "subtype": self.subtype or "",
            "brand": self.brand or "",
            "core_weight": self.core_weight or 0,
            "label_weight": self.label_weight or 0,
            "note": self.note or "",
            "slicer_filament": self.slicer_filament or "",
            "full_unused": "y",
            "k_info": k_info.to_dict() if k_info is not None else None,
        }


@dataclass
class UpsertResult:
    id: str
    spools: list[Spool]


# ── Pressure advance calibration tree ───────────────────────────────


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass
class KNozzleId:
    name: str
    k_value: str
    cali_idx: int
    setting_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "KNozzleId":
        data = _as_dict(data)
        setting_id = data.get("setting_id")
        return cls(
            name=str(data.get("name", "")),
            k_value=str(data.get("k_value", "")),
            cali_idx=_as_int(data.get("cali_idx")),
            setting_id=str(setting_id) if setting_id is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "k_value": self.k_value, "cali_idx": self.cali_idx}
        if self.setting_id is not None:
            data["setting_id"] = self.setting_id
        return data


@dataclass
class KNozzleDiameter:
    nozzles: dict[str, KNozzleId] = field(default_factory=dict)  # nozzle id (e.g. "HH00")

    @classmethod
    def from_dict(cls, data: Any) -> "KNozzleDiameter":
        nozzles = _as_dict(_as_dict(data).get("nozzles"))
        return cls(nozzles={nid: KNozzleId.from_dict(n) for nid, n in nozzles.items()})

    def to_dict(self) -> dict[str, Any]:
        return {"nozzles": {nid: n.to_dict() for nid, n in self.nozzles.items()}}


@dataclass
class KExtruder:
    diameters: dict[str, KNozzleDiameter] = field(default_factory=dict)  # e.g. "0.4"

    @classmethod
    def from_dict(cls, data: Any) -> "KExtruder":
        diameters = _as_dict(_as_dict(data).get("diameters"))
        return cls(diameters={d: KNozzleDiameter.from_dict(v) for d, v in diameters.items()})

    def to_dict(self) -> dict[str, Any]:
        return {"diameters": {d: v.to_dict() for d, v in self.diameters.items()}}


@dataclass
class KPrinter:
    extruders: dict[int, KExtruder] = field(default_factory=dict)  # extruder index

    @classmethod
    def from_dict(cls, data: Any) -> "KPrinter":
        extruders = {}
        for index, extruder in _as_dict(_as_dict(data).get("extruders")).items():
            try:
                extruders[int(index)] = KExtruder.from_dict(extruder)
            except (TypeError, ValueError):
                continue
        return cls(extruders=extruders)

    def to_dict(self) -> dict[str, Any]:
        # JSON object keys are strings
        return {"extruders": {str(i): e.to_dict() for i, e in self.extruders.items()}}


@dataclass
class KInfo:
    """Per-spool calibration: printer serial -> extruder -> diameter -> nozzle."""

    printers: dict[str, KPrinter] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "KInfo":
        printers = _as_dict(_as_dict(data).get("printers"))
        return cls(printers={serial: KPrinter.from_dict(p) for serial, p in printers.items()})

    def to_dict(self) -> dict[str, Any]:
        return {"printers": {serial: p.to_dict() for serial, p in self.printers.items()}}

    def is_empty(self) -> bool:
        return not self.printers


# ── Pressure advance catalog (per slicer filament) ──────────────────


@dataclass
class PressureAdvanceEntry:
    extruder: int
    diameter: str
    nozzle_id: str
    name: str
    k_value: str
    cali_idx: int
    setting_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "PressureAdvanceEntry":
        data = _as_dict(data)
        setting_id = data.get("setting_id")
        return cls(
            extruder=_as_int(data.get("extruder")),
            diameter=str(data.get("diameter", "")),
            nozzle_id=str(data.get("nozzle_id", "")),
            name=str(data.get("name", "")),
            k_value=str(data.get("k_value", "")),
            cali_idx=_as_int(data.get("cali_idx")),
            setting_id=str(setting_id) if setting_id is not None else None,
        )


@dataclass
class PrinterEntry:
    name: str
    extruders: int
    pressure_advance: list[PressureAdvanceEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "PrinterEntry":
        data = _as_dict(data)
        entries = data.get("pressure_advance")
        if not isinstance(entries, list):
            entries = []
        return cls(
            name=str(data.get("name", "")),
            extruders=_as_int(data.get("extruders"), 1),
            pressure_advance=[PressureAdvanceEntry.from_dict(e) for e in entries],
        )


@dataclass
class PrintersFilamentPa:
    printers: dict[str, PrinterEntry] = field(default_factory=dict)  # keyed by printer serial

    @classmethod
    def from_dict(cls, data: Any) -> "PrintersFilamentPa":
        printers = _as_dict(_as_dict(data).get("printers"))
        return cls(printers={serial: PrinterEntry.from_dict(p) for serial, p in printers.items()})
