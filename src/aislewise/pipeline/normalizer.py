"""Map untyped parsed model output onto the canonical shopping list shape.

Every function here is total over :data:`~aislewise.pipeline.parser.JsonValue`: malformed
input degrades to empty aisles instead of raising.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from aislewise.models.shopping import Ingredient, ShoppingList
from aislewise.pipeline.aisles import canonical_aisle, empty_shopping_list
from aislewise.pipeline.parser import JsonValue

logger = logging.getLogger(__name__)

UNKNOWN_ITEM = "Unknown item"
DEFAULT_QUANTITY = "1"

_INGREDIENT_KEYS = ("ingredient", "name", "item")
_QUANTITY_KEYS = ("quantity", "amount", "qty")


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (bool, dict, list)):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _first_present(entry: dict, keys: Iterable[str]) -> Optional[str]:
    for key in keys:
        if key in entry:
            text = _as_text(entry[key])
            if text is not None:
                return text
    return None


def _flatten(value: JsonValue) -> List[Any]:
    if not isinstance(value, list):
        return []
    if value and isinstance(value[0], list):
        flattened: List[Any] = []
        for entry in value:
            if isinstance(entry, list):
                flattened.extend(entry)
            else:
                flattened.append(entry)
        return flattened
    return value


def _coerce_entry(entry: Any) -> Optional[Ingredient]:
    if isinstance(entry, str):
        name: Optional[str] = entry.strip() or None
        quantity: Optional[str] = None
    elif isinstance(entry, dict):
        name = _first_present(entry, _INGREDIENT_KEYS)
        quantity = _first_present(entry, _QUANTITY_KEYS)
    else:
        name = quantity = None

    if name is None or name == UNKNOWN_ITEM:
        return None
    return Ingredient(ingredient=name, quantity=quantity or DEFAULT_QUANTITY)


def _coerce_sequence(value: JsonValue) -> List[Ingredient]:
    items: List[Ingredient] = []
    dropped = 0
    for entry in _flatten(value):
        ingredient = _coerce_entry(entry)
        if ingredient is None:
            dropped += 1
            continue
        items.append(ingredient)
    if dropped:
        logger.debug("Dropped %s unrecoverable entries", dropped)
    return items


def normalize(value: JsonValue) -> ShoppingList:
    """Return a shopping list with every canonical aisle present.

    Aisle keys are folded onto canonical names where a synonym is known; unknown keys are
    kept verbatim. Entries from several keys that fold onto the same aisle are
    concatenated in input order.
    """

    shopping_list = empty_shopping_list()
    if not isinstance(value, dict):
        return shopping_list

    assigned: set[str] = set()
    for raw_key, raw_items in value.items():
        key = str(raw_key)
        aisle = canonical_aisle(key) or key
        items = _coerce_sequence(raw_items)
        if aisle in assigned:
            shopping_list[aisle].extend(items)
        else:
            shopping_list[aisle] = items
            assigned.add(aisle)
    return shopping_list


def has_valid_items(shopping_list: ShoppingList) -> bool:
    """Return True when at least one aisle has something to buy."""

    return any(items for items in shopping_list.values())


def coerce_ingredients(value: JsonValue) -> List[Ingredient]:
    """Return the flat ingredient list contained in ``value``.

    Accepts a bare list, an object with an ``ingredients`` list, or an object whose first
    list value holds the entries.
    """

    if isinstance(value, dict):
        candidate = value.get("ingredients")
        if not isinstance(candidate, list):
            candidate = next((entry for entry in value.values() if isinstance(entry, list)), None)
        value = candidate
    return _coerce_sequence(value)


__all__ = [
    "DEFAULT_QUANTITY",
    "UNKNOWN_ITEM",
    "coerce_ingredients",
    "has_valid_items",
    "normalize",
]
