"""Canonical supermarket aisles and the synonyms models use for them."""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping, Optional

from aislewise.models.shopping import ShoppingList

PRODUCE = "Produce"
DAIRY = "Dairy"
MEAT_SEAFOOD = "Meat & Seafood"
PANTRY = "Pantry/Dry Goods"
FROZEN = "Frozen Foods"
BAKERY = "Bakery"
CANNED = "Canned Goods"
CONDIMENTS = "Condiments & Sauces"
SPICES = "Spices & Seasonings"
BEVERAGES = "Beverages"

CANONICAL_AISLES: tuple[str, ...] = (
    PRODUCE,
    DAIRY,
    MEAT_SEAFOOD,
    PANTRY,
    FROZEN,
    BAKERY,
    CANNED,
    CONDIMENTS,
    SPICES,
    BEVERAGES,
)

_SYNONYMS: dict[str, list[str]] = {
    PRODUCE: [
        "produce",
        "fruit",
        "fruits",
        "vegetables",
        "veggies",
        "fruits & vegetables",
        "fruit & veg",
        "fresh produce",
        "herbs",
        "fresh herbs",
    ],
    DAIRY: ["dairy", "dairy & eggs", "eggs", "milk & dairy", "cheese", "refrigerated"],
    MEAT_SEAFOOD: [
        "meat & seafood",
        "meat",
        "meats",
        "seafood",
        "fish",
        "poultry",
        "meat & poultry",
        "butcher",
        "deli",
        "protein",
        "proteins",
    ],
    PANTRY: [
        "pantry/dry goods",
        "pantry",
        "dry goods",
        "pantry & dry goods",
        "pantry / dry goods",
        "pantry dry goods",
        "baking",
        "baking supplies",
        "grains",
        "pasta & grains",
        "pasta & rice",
    ],
    FROZEN: ["frozen foods", "frozen", "frozen food", "freezer"],
    BAKERY: ["bakery", "bread", "breads", "baked goods"],
    CANNED: ["canned goods", "canned", "canned food", "canned foods", "cans", "jarred goods"],
    CONDIMENTS: [
        "condiments & sauces",
        "condiments",
        "sauces",
        "sauces & condiments",
        "oils & vinegars",
        "oils",
        "dressings",
    ],
    SPICES: [
        "spices & seasonings",
        "spices",
        "seasonings",
        "seasoning",
        "herbs & spices",
        "spices & herbs",
        "spice rack",
    ],
    BEVERAGES: ["beverages", "drinks", "beverage", "alcohol", "wine & beer"],
}

AISLE_SYNONYMS: Mapping[str, str] = MappingProxyType(
    {synonym: aisle for aisle, synonyms in _SYNONYMS.items() for synonym in synonyms}
)

_SEPARATOR_RE = re.compile(r"[_\-]+")
_AND_RE = re.compile(r"\s+and\s+")
_SPACE_RE = re.compile(r"\s+")


def _relaxed(key: str) -> str:
    relaxed = _SEPARATOR_RE.sub(" ", key)
    relaxed = _AND_RE.sub(" & ", f" {relaxed} ")
    relaxed = relaxed.replace("&", " & ")
    return _SPACE_RE.sub(" ", relaxed).strip()


def canonical_aisle(key: str) -> Optional[str]:
    """Return the canonical aisle for ``key`` or ``None`` when it is not a known synonym."""

    lowered = key.strip().lower()
    if lowered in AISLE_SYNONYMS:
        return AISLE_SYNONYMS[lowered]
    return AISLE_SYNONYMS.get(_relaxed(lowered))


def empty_shopping_list() -> ShoppingList:
    """Return a fresh list with every canonical aisle present and empty."""

    return {aisle: [] for aisle in CANONICAL_AISLES}


__all__ = [
    "AISLE_SYNONYMS",
    "CANONICAL_AISLES",
    "canonical_aisle",
    "empty_shopping_list",
]
