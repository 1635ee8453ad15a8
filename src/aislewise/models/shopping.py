"""Shopping list models."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Ingredient(BaseModel):
    """Single line on an aisle: what to buy and how much."""

    ingredient: str = Field(min_length=1)
    quantity: str = Field(default="1", min_length=1)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)


ShoppingList = Dict[str, List[Ingredient]]


class GenerationResult(BaseModel):
    """Aisle-grouped shopping list plus details about how it was produced."""

    organized_ingredients: ShoppingList = Field(alias="organizedIngredients")
    model_used: str = Field(alias="modelUsed")
    response_time_ms: int = Field(alias="responseTimeMs", ge=0)
    warning: Optional[str] = Field(default=None)

    model_config = ConfigDict(frozen=True, populate_by_name=True, protected_namespaces=())


class IngredientListResult(BaseModel):
    """Flat ingredient list for a recipe, before aisle grouping."""

    ingredients: List[Ingredient]
    model_used: str = Field(alias="modelUsed")
    response_time_ms: int = Field(alias="responseTimeMs", ge=0)
    warning: Optional[str] = Field(default=None)

    model_config = ConfigDict(frozen=True, populate_by_name=True, protected_namespaces=())


__all__ = ["Ingredient", "ShoppingList", "GenerationResult", "IngredientListResult"]
