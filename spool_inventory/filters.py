"""Inventory filter criteria and the pure filtering function."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from .csv_parser import _parse_int
from .models import Spool, SpoolsInPrinters
from .stats import get_net_weight


class LocationFilter(str, Enum):
    ALL = "all"
    IN_PRINTER = "in_printer"
    IN_STORAGE = "in_storage"


class PaStatusFilter(str, Enum):
    ALL = "all"
    HAS_K = "has_k"
    NO_K = "no_k"


class EncodedFilter(str, Enum):
    ALL = "all"
    ENCODED = "encoded"
    NOT_ENCODED = "not_encoded"


@dataclass(frozen=True)
class FilterState:
    """Snapshot of the filter bar. Empty strings and ALL mean "no constraint"."""

    material: str = ""
    brand: str = ""
    color: str = ""  # substring of the color name
    location: LocationFilter = LocationFilter.ALL
    pa_status: PaStatusFilter = PaStatusFilter.ALL
    data_origin: str = ""
    min_weight: str = ""  # grams of net weight
    max_weight: str = ""
    added_after: str = ""  # YYYY-MM-DD
    added_before: str = ""
    encoded: EncodedFilter = EncodedFilter.ALL

    def has_active_filters(self) -> bool:
        return self != DEFAULT_FILTERS

    def update(self, **changes) -> "FilterState":
        return replace(self, **changes)

    def active_fields(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) != getattr(DEFAULT_FILTERS, f.name)]


DEFAULT_FILTERS = FilterState()


def _date_boundary(value: str) -> Optional[float]:
    """Midnight UTC of a YYYY-MM-DD date as epoch seconds."""
    if not value:
        return None
    try:
        day = datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return None
    return day.replace(tzinfo=timezone.utc).timestamp()


def _epoch(timestamp: Optional[str]) -> Optional[int]:
    if not timestamp:
        return None
    try:
        return int(timestamp)
    except ValueError:
        return None


def apply_filters(
    spools: list[Spool],
    filters: FilterState,
    spools_in_printers: SpoolsInPrinters,
) -> list[Spool]:
    """Spools matching every active criterion, in their original order."""
    color = filters.color.lower()
    min_weight = _parse_int(filters.min_weight, None)
    max_weight = _parse_int(filters.max_weight, None)
    added_after = _date_boundary(filters.added_after)
    added_before = _date_boundary(filters.added_before)

    def matches(spool: Spool) -> bool:
        if filters.material and spool.material != filters.material:
            return False
        if filters.brand and spool.brand != filters.brand:
            return False
        if color and color not in spool.color_name.lower():
            return False

        in_printer = spool.id in spools_in_printers
        if filters.location == LocationFilter.IN_PRINTER and not in_printer:
            return False
        if filters.location == LocationFilter.IN_STORAGE and in_printer:
            return False

        if filters.pa_status == PaStatusFilter.HAS_K and not spool.ext_has_k:
            return False
        if filters.pa_status == PaStatusFilter.NO_K and spool.ext_has_k:
            return False

        if filters.data_origin and spool.data_origin != filters.data_origin:
            return False

        net_weight = get_net_weight(spool)
        if min_weight is not None and net_weight < min_weight:
            return False
        if max_weight is not None and net_weight > max_weight:
            return False

        # A spool without an added timestamp is not subject to the date range
        added = _epoch(spool.added_time)
        if added is not None:
            if added_after is not None and added < added_after:
                return False
            if added_before is not None and added > added_before:
                return False

        if filters.encoded == EncodedFilter.ENCODED and not spool.encode_time:
            return False
        if filters.encoded == EncodedFilter.NOT_ENCODED and spool.encode_time:
            return False

        return True

    return [spool for spool in spools if matches(spool)]


def get_unique_values(spools: list[Spool]) -> dict[str, list[str]]:
    """Sorted distinct materials, brands and subtypes for filter choices."""
    return {
        "materials": sorted({s.material for s in spools if s.material}),
        "brands": sorted({s.brand for s in spools if s.brand}),
        "subtypes": sorted({s.subtype for s in spools if s.subtype}),
    }


def get_data_origins(spools: list[Spool]) -> list[str]:
    return sorted({s.data_origin for s in spools if s.data_origin})
