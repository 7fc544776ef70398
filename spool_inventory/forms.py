"""Add/edit spool form state and validation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .exceptions import ValidationError
from .filaments import extract_brand_from_filament, extract_material_from_filament
from .models import Spool, SpoolDraft

MATERIALS = ("PLA", "PETG", "ABS", "TPU", "ASA", "PC", "PA", "PVA", "HIPS")
LABEL_WEIGHTS = (250, 500, 750, 1000)


class FullWhenAdded(str, Enum):
    YES = "yes"
    NO = "no"
    UNSPECIFIED = "unspecified"


@dataclass
class SpoolForm:
    material: str = ""
    subtype: str = ""
    brand: str = ""
    color_name: str = ""
    rgba: str = "#cccccc"
    label_weight: int = 1000
    core_weight: int = 250
    slicer_filament: str = ""
    note: str = ""
    # Collected for parity with the device UI; the add/edit payload has no field for it
    full_when_added: FullWhenAdded = FullWhenAdded.UNSPECIFIED

    @classmethod
    def from_spool(cls, spool: Spool) -> "SpoolForm":
        return cls(
            material=spool.material or "",
            subtype=spool.subtype or "",
            brand=spool.brand or "",
            color_name=spool.color_name or "",
            rgba=spool.rgba or "#cccccc",
            label_weight=spool.label_weight or 1000,
            core_weight=spool.core_weight or 250,
            slicer_filament=spool.slicer_filament or "",
            note=spool.note or "",
        )

    def validate(self) -> None:
        if not self.material.strip():
            raise ValidationError("Material is required")
        if self.label_weight < 0 or self.core_weight < 0:
            raise ValidationError("Weights cannot be negative")

    def autofill_from_filament(self, known_brands: Optional[list[str]] = None) -> None:
        """Fill an empty brand/material from the slicer filament code.

        The brand is only taken when it is one of ``known_brands``.
        """
        if not self.slicer_filament:
            return
        brand = extract_brand_from_filament(self.slicer_filament)
        if brand and not self.brand and (known_brands is None or brand in known_brands):
            self.brand = brand
        material = extract_material_from_filament(self.slicer_filament)
        if material and not self.material:
            self.material = material

    def to_draft(self, existing: Optional[Spool] = None) -> SpoolDraft:
        """Validated draft; editing carries the existing id and tag id."""
        self.validate()
        draft = SpoolDraft(
            material=self.material,
            subtype=self.subtype,
            brand=self.brand,
            color_name=self.color_name,
            rgba=self.rgba.replace("#", ""),
            label_weight=self.label_weight,
            core_weight=self.core_weight,
            slicer_filament=self.slicer_filament,
            note=self.note,
        )
        if existing is not None:
            draft.id = existing.id
            draft.tag_id = existing.tag_id
        return draft
