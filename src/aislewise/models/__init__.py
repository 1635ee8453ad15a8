"""Pydantic models defining shared data contracts."""

from aislewise.models.shopping import (
    GenerationResult,
    Ingredient,
    IngredientListResult,
    ShoppingList,
)

__all__ = [
    "GenerationResult",
    "Ingredient",
    "IngredientListResult",
    "ShoppingList",
]
