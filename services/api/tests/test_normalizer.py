"""
Tests for the pricing catalog and the line-item normalizer.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from core.normalizer import normalize_work_items, price_item, sort_by_category
from core.pricing_catalog import PRICING_CATALOG, find_pricing, get_items_for_category
from schemas.assessment import RawWorkItem


def raw(category="Painting", item="Clean Walls", description="Clean", quantity=100, **kw):
    return RawWorkItem(category=category, item=item, description=description, quantity=quantity, **kw)


class TestPricingCatalog:
    def test_categories(self):
        cats = list(PRICING_CATALOG)
        assert len(cats) == 10
        assert "Painting" in cats and "Clean Up" in cats

    def test_exact_lookup(self):
        entry = find_pricing("Floor & Molding", 'Base Molding 4"', "Paint")
        assert entry.price_per_unit == 0.66
        assert entry.unit == "LF"

    def test_empty_description_matches_first(self):
        """Without a description the first entry for the item wins."""
        entry = find_pricing("Floor & Molding", 'Base Molding 4"')
        assert entry.description == "Remove & Install"

    def test_miss(self):
        assert find_pricing("Painting", "Gold leaf", "Paint") is None
        assert find_pricing("Nope", "Clean Walls") is None
        assert get_items_for_category("Nope") == []


class TestPriceItem:
    def test_catalog_match(self):
        item = price_item(raw(quantity=200))
        assert item.unit_price == 0.15
        assert item.unit == "SF"
        assert item.catalog_match is True
        assert item.total == pytest.approx(30.0)

    def test_materials_flag(self):
        item = price_item(raw("Electrical Installation", "Light Fixture", "Remove & Install", 2))
        assert item.materials_cost is True
        assert item.total == pytest.approx(120.0)

    def test_catalog_miss_kept_at_zero(self):
        """An unmatched item is priced at 0, not dropped."""
        item = price_item(raw(item="Mystery work", description="Other", quantity=3))
        assert item.unit_price == 0.0
        assert item.total == 0.0
        assert item.catalog_match is False
        assert item.materials_cost is False

    def test_client_prices_ignored(self):
        """Caller-supplied price/total fields never reach the WorkItem."""
        r = RawWorkItem.model_validate(
            {
                "category": "Painting",
                "item": "Clean Walls",
                "description": "Clean",
                "quantity": 10,
                "pricePerUnit": 999,
                "total": 9999,
            }
        )
        assert price_item(r).total == pytest.approx(1.5)


class TestRawWorkItem:
    def test_quantity_aliases(self):
        assert RawWorkItem.model_validate({"multiplier": "4"}).quantity == 4.0
        assert RawWorkItem.model_validate({"amount": 2.5}).quantity == 2.5

    def test_blank_quantity_is_missing(self):
        assert RawWorkItem.model_validate({"quantity": " "}).quantity is None

    def test_text_stripped(self):
        r = RawWorkItem.model_validate({"category": " Painting ", "item": None})
        assert r.category == "Painting"
        assert r.item == ""


class TestNormalizeWorkItems:
    def test_sorted_by_category_stable(self):
        """Alphabetical by category; ties keep input order."""
        result = normalize_work_items([
            raw("Painting", "Clean Walls", quantity=1, notes="p1"),
            raw("Clean Up", "Oven", "Clean", 1, notes="c1"),
            raw("Painting", "Clean Ceiling", quantity=1, notes="p2"),
            raw("Clean Up", "Refrigerator", "Clean", 1, notes="c2"),
        ])
        assert [i.notes for i in result.items] == ["c1", "c2", "p1", "p2"]

    def test_category_contiguity(self):
        cats = ["B", "A", "C", "A", "B", "C", "A"]
        items = normalize_work_items([raw(c, "x", "y", 1) for c in cats]).items
        ordered = [i.category for i in items]
        for i in range(len(ordered)):
            for j in range(i, len(ordered)):
                for k in range(j, len(ordered)):
                    if ordered[i] == ordered[k]:
                        assert ordered[j] == ordered[i]

    def test_invalid_items_skipped_with_reason(self):
        result = normalize_work_items([
            raw(category=""),
            raw(item=""),
            raw(quantity=None),
            raw(quantity=0),
            raw(quantity=-2),
            raw(quantity=5),
        ])
        assert len(result.items) == 1
        assert [idx for idx, _ in result.skipped] == [0, 1, 2, 3, 4]
        assert result.skipped[0][1] == "missing category"
        assert result.skipped[2][1] == "missing quantity"
        assert "non-positive" in result.skipped[3][1]

    @pytest.mark.parametrize("quantity", ["nan", "inf", "-inf"])
    def test_non_finite_quantity_skipped(self, quantity):
        """NaN and infinity never reach pricing or the totals."""
        result = normalize_work_items([
            RawWorkItem.model_validate({"category": "Painting", "item": "Gold", "quantity": quantity}),
            raw(quantity=10),
        ])
        assert len(result.items) == 1
        assert [idx for idx, _ in result.skipped] == [0]
        assert result.skipped[0][1].startswith("non-finite quantity")
        assert sum(i.total for i in result.items) == pytest.approx(1.5)

    def test_unpriced_reported(self):
        result = normalize_work_items([raw(), raw(item="Custom thing")])
        assert [i.item for i in result.unpriced] == ["Custom thing"]

    def test_grand_total_uses_catalog_prices(self):
        result = normalize_work_items([
            raw(quantity=100),                                       # 0.15 * 100
            raw("Clean Up", "Oven", "Clean", 2),                      # 45 * 2
            raw("Outlets No Wiring", "GFCI Outlet", "Remove & Install", 1),  # 90
        ])
        assert sum(i.total for i in result.items) == pytest.approx(15 + 90 + 90)

    def test_sort_by_category_helper(self):
        items = normalize_work_items([raw("Painting"), raw("Clean Up", "Oven", "Clean", 1)]).items
        assert sort_by_category(reversed(items)) == items
