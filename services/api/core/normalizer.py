# services/api/core/normalizer.py
"""
Line-item normalizer: raw extracted items -> priced, category-sorted WorkItems.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from core.pricing_catalog import find_pricing
from models import WorkItem
from schemas.assessment import RawWorkItem

logger = logging.getLogger(__name__)


@dataclass
class NormalizationResult:
    items: List[WorkItem] = field(default_factory=list)
    # (input index, reason) for every raw item that was excluded
    skipped: List[Tuple[int, str]] = field(default_factory=list)

    @property
    def unpriced(self) -> List[WorkItem]:
        return [i for i in self.items if not i.catalog_match]


def _invalid_reason(raw: RawWorkItem) -> str | None:
    if not raw.category:
        return "missing category"
    if not raw.item:
        return "missing item"
    if raw.quantity is None:
        return "missing quantity"
    if not math.isfinite(raw.quantity):
        return f"non-finite quantity {raw.quantity}"
    if raw.quantity <= 0:
        return f"non-positive quantity {raw.quantity:g}"
    return None


def price_item(raw: RawWorkItem) -> WorkItem:
    """
    Resolve one valid raw item against the catalog.
    A catalog miss prices the item at 0 instead of failing.
    """
    entry = find_pricing(raw.category, raw.item, raw.description)
    if entry is None:
        logger.warning(
            "No catalog price for (%r, %r, %r); defaulting unit price to 0",
            raw.category, raw.item, raw.description,
        )
        return WorkItem(
            category=raw.category,
            item=raw.item,
            description=raw.description,
            unit=raw.unit,
            quantity=raw.quantity,
            unit_price=0.0,
            notes=raw.notes,
            materials_cost=False,
            catalog_match=False,
        )

    return WorkItem(
        category=raw.category,
        item=raw.item,
        description=raw.description or entry.description,
        unit=raw.unit or entry.unit,
        quantity=raw.quantity,
        unit_price=entry.price_per_unit,
        notes=raw.notes,
        materials_cost=entry.materials_cost,
        catalog_match=True,
    )


def sort_by_category(items: Iterable[WorkItem]) -> List[WorkItem]:
    """Alphabetical by category; `sorted` is stable so input order survives within a category."""
    return sorted(items, key=lambda i: i.category)


def normalize_work_items(raw_items: Iterable[RawWorkItem]) -> NormalizationResult:
    result = NormalizationResult()
    priced: List[WorkItem] = []

    for idx, raw in enumerate(raw_items):
        reason = _invalid_reason(raw)
        if reason:
            logger.warning("Skipping work item #%d: %s", idx + 1, reason)
            result.skipped.append((idx, reason))
            continue
        priced.append(price_item(raw))

    result.items = sort_by_category(priced)
    return result
