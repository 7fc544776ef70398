"""Per-spool weight arithmetic and inventory-wide aggregates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .models import Spool, SpoolsInPrinters

DEFAULT_LOW_STOCK_THRESHOLD = 20.0  # percent remaining
DEFAULT_WEIGHT_TOLERANCE = 50.0  # grams


def get_net_weight(spool: Spool) -> float:
    """Remaining filament: label weight minus consumption, never negative."""
    return max(0.0, spool.label_weight - spool.consumed_since_add)


def get_gross_weight(spool: Spool) -> float:
    """Net weight plus the empty reel."""
    return get_net_weight(spool) + spool.core_weight


def get_usage_percent(spool: Spool) -> float:
    if spool.label_weight <= 0:
        return 0.0
    return min(100.0, spool.consumed_since_add / spool.label_weight * 100)


def get_remaining_percent(spool: Spool) -> float:
    return 100.0 - get_usage_percent(spool)


def get_progress_level(spool: Spool) -> str:
    remaining = get_remaining_percent(spool)
    if remaining > 50:
        return "high"
    if remaining > 20:
        return "medium"
    return "low"


def is_low_stock(spool: Spool, threshold: float = DEFAULT_LOW_STOCK_THRESHOLD) -> bool:
    return get_remaining_percent(spool) < threshold


def is_in_printer(spool: Spool, spools_in_printers: SpoolsInPrinters) -> bool:
    if not spool.id or not spools_in_printers:
        return False
    return bool(spools_in_printers.get(spool.id))


def get_printer_location(spool: Spool, spools_in_printers: SpoolsInPrinters) -> Optional[str]:
    return spools_in_printers.get(spool.id) or None


@dataclass
class WeightComparison:
    scale_weight: Optional[float]
    calculated_weight: float
    difference: Optional[float]
    is_match: Optional[bool]


def compare_weights(spool: Spool, threshold: float = DEFAULT_WEIGHT_TOLERANCE) -> WeightComparison:
    """Compare the last scale reading against net + core weight."""
    calculated = get_gross_weight(spool)
    if spool.weight_current is None:
        return WeightComparison(None, calculated, None, None)
    difference = spool.weight_current - calculated
    return WeightComparison(
        scale_weight=float(spool.weight_current),
        calculated_weight=calculated,
        difference=difference,
        is_match=abs(difference) <= threshold,
    )


@dataclass
class GroupTotals:
    count: int = 0
    weight: float = 0.0


@dataclass
class InventoryStats:
    total_spools: int = 0
    total_weight: float = 0.0
    total_consumed: float = 0.0
    by_material: dict[str, GroupTotals] = field(default_factory=dict)
    by_brand: dict[str, GroupTotals] = field(default_factory=dict)
    in_printer: int = 0
    low_stock: int = 0
    has_k: int = 0


def calculate_stats(
    spools: list[Spool],
    spools_in_printers: SpoolsInPrinters,
    low_stock_threshold: float = DEFAULT_LOW_STOCK_THRESHOLD,
) -> InventoryStats:
    stats = InventoryStats(total_spools=len(spools))
    for spool in spools:
        net_weight = get_net_weight(spool)
        stats.total_weight += net_weight
        stats.total_consumed += spool.consumed_since_add

        material = stats.by_material.setdefault(spool.material or "Unknown", GroupTotals())
        material.count += 1
        material.weight += net_weight

        brand = stats.by_brand.setdefault(spool.brand or "Unknown", GroupTotals())
        brand.count += 1
        brand.weight += net_weight

        if is_in_printer(spool, spools_in_printers):
            stats.in_printer += 1
        if is_low_stock(spool, low_stock_threshold):
            stats.low_stock += 1
        if spool.ext_has_k:
            stats.has_k += 1
    return stats


def top_materials(stats: InventoryStats, limit: int = 4) -> list[tuple[str, GroupTotals]]:
    """Materials with the most remaining weight first."""
    ranked = sorted(stats.by_material.items(), key=lambda item: item[1].weight, reverse=True)
    return ranked[:limit]
