# services/api/core/pricing_catalog.py
"""
Static pricing catalog transcribed from the turnover template.

Keyed by category; each entry prices one (item, work type) pair.
"""
from __future__ import annotations

from typing import Dict, List, NamedTuple, Optional


class CatalogEntry(NamedTuple):
    item: str
    description: str
    unit: str
    price_per_unit: float
    materials_cost: bool = False


def _e(item: str, description: str, unit: str, price: float, materials: bool = False) -> CatalogEntry:
    return CatalogEntry(item, description, unit, price, materials)


PRICING_CATALOG: Dict[str, List[CatalogEntry]] = {
    "Painting": [
        _e("Clean Walls", "Clean", "SF", 0.15),
        _e("Clean Ceiling", "Clean", "SF", 0.20),
        _e('Patch small hole (2")', "Install", "EA", 4.00),
        _e("Patch Hole", "Install", "SF", 15.50),
        _e("Prep & Paint Walls 2 Coats", "Paint", "SF", 0.68),
        _e("Extra Coat of Paint", "Paint", "SF", 0.35),
        _e("Prep & Paint Ceiling 2 Coats", "Paint", "SF", 0.73),
    ],
    "Floor & Molding": [
        _e("Flooring", "Demolition", "SF", 1.20),
        _e("Vinyl Plank Flooring", "Install", "SF", 3.85),
        _e('Base Molding 4"', "Remove & Install", "LF", 3.86),
        _e('Base Molding 4"', "Clean", "LF", 0.27),
        _e('Base Molding 4"', "Paint", "LF", 0.66),
        _e('Vinyl Base 4"', "Remove & Install", "LF", 3.50),
        _e('Vinyl Base 4"', "Clean", "LF", 0.50),
        _e("Shoe Molding", "Remove & Install", "LF", 2.75),
        _e("Shoe Molding", "Clean", "LF", 0.18),
        _e("Shoe Molding", "Paint", "LF", 0.70),
    ],
    "Doors & Windows": [
        _e("Paint Window Frame", "Paint", "LF", 1.00),
        _e("Clean Window Frame", "Clean", "LF", 0.50),
        _e("Repair Blind Chain", "Repair", "EA", 20.00),
        _e('Paint 36" Door', "Paint", "EA", 40.00),
        _e("Paint up to 6' Closet Door", "Paint", "EA", 90.00),
        _e("Clean Doors", "Clean", "EA", 10.00),
        _e("Paint Frame Only", "Paint", "EA", 25.00),
        _e("Remove and Install Door w/frame", "Remove & Install", "EA", 120.00, True),
        _e("Remove and Install Door Hardware", "Remove & Install", "EA", 45.00, True),
    ],
    "Other": [
        _e("Countertop Butcherblock", "Remove & Install", "SF", 30.00),
        _e("Countertop Butcherblock", "Refinish", "SF", 6.00),
        _e("Shower Curtain Hooks", "Install", "SET", 25.00),
        _e("Shower Curtain", "Install", "EA", 20.00),
        _e("Blinds", "Remove & Install, HD Contractor Grade", "SF", 5.47),
        _e("Blinds", "Clean", "SF", 0.60),
        # custom pricing, entered by the office
        _e("Other repairs", "Repair", "EA", 0.00),
    ],
    "Outlets No Wiring": [
        _e("120V Outlet", "Remove & Install", "EA", 60.00),
        _e("Plate Only", "Remove & Install", "EA", 12.00),
        _e("GFCI Outlet", "Remove & Install", "EA", 90.00),
    ],
    "Light Switch No Wiring": [
        _e("Single", "Remove & Install", "EA", 41.00),
        _e("Plate Only", "Remove & Install", "EA", 11.00),
        _e("Double", "Remove & Install", "EA", 57.00),
        _e("Triple", "Remove & Install", "EA", 85.00),
        _e("Dimmer", "Remove & Install", "EA", 75.00),
    ],
    "Electrical Installation": [
        _e("Light Fixture", "Remove & Install", "EA", 60.00, True),
        _e("Garbage Disposal", "Remove & Install", "EA", 90.00, True),
        _e("Range Hood Vented", "Remove & Install", "EA", 140.00, True),
        _e("Range Hood Ventless", "Remove & Install", "EA", 130.00, True),
        _e("Bathroom Exhaust", "Remove & Install", "EA", 75.00, True),
        _e("Smoke Detector Wired", "Remove & Install", "EA", 45.00, True),
        _e("Smoke Detector Batteries", "Remove & Install", "EA", 35.00, True),
    ],
    "Plumbing Installation": [
        _e("Floor Mounted toilet w/ tank", "Remove & Install", "EA", 160.00, True),
        _e("Wall Mounted Toilet w/Flush Valve", "Remove & Install", "EA", 180.00, True),
        _e("Urinal", "Remove & Install", "EA", 170.00, True),
        _e("Seat", "Remove & Install", "EA", 30.00, True),
        _e("Faucet", "Remove & Install", "EA", 65.00, True),
        _e("Drain Basket", "Remove & Install", "EA", 50.00, True),
        _e("Shower Head", "Remove & Install", "EA", 35.00, True),
        _e("Shower Rod", "Remove & Install", "EA", 40.00, True),
        _e("Shower Faucet Set", "Remove & Install", "EA", 95.00, True),
        _e("Soap Dispenser", "Remove & Install", "EA", 35.00, True),
        _e("Towel Bar", "Remove & Install", "EA", 30.00, True),
    ],
    "Plumbing Repairs": [
        _e("Install or Replace New Sloan or Similar Brand Flush Valve", "Repairs", "EA", 155.00, True),
        _e(
            "General Plumbing Repairs (faucet rebuild, replace fill valve, toilet tank rebuild, "
            "handle repairs, replace P traps)",
            "Repairs",
            "EA",
            45.00,
            True,
        ),
        _e("Tub Stopper", "Remove & Install", "EA", 25.00),
        _e("Caulking", "Remove & Install", "LF", 7.00),
    ],
    "Clean Up": [
        _e("General Clean", "Clean", "SF", 0.10),
        _e("Refrigerator", "Clean", "EA", 45.00),
        _e("Oven", "Clean", "EA", 45.00),
        _e("Wall Coverings", "Clean", "SF", 1.00),
        _e("Replace Batteries", "Other", "EA", 15.00),
        _e("Outlet & Switch Plates", "Clean", "EA", 2.00),
    ],
}


def get_items_for_category(category: str) -> List[CatalogEntry]:
    return list(PRICING_CATALOG.get(category, []))


def find_pricing(category: str, item: str, description: Optional[str] = None) -> Optional[CatalogEntry]:
    """
    Exact lookup of (category, item, description).

    An empty description matches the first entry for (category, item),
    mirroring how the field template is filled in by hand.
    """
    for entry in get_items_for_category(category):
        if entry.item != item:
            continue
        if not description or entry.description == description:
            return entry
    return None
