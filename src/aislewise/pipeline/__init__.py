"""Response recovery pipeline: clean, parse, normalize, escalate."""

from .aisles import AISLE_SYNONYMS, CANONICAL_AISLES, canonical_aisle, empty_shopping_list
from .cleaner import clean
from .normalizer import has_valid_items, normalize
from .orchestrator import (
    EmptyResultError,
    GenerationPolicy,
    RecipeValidationError,
    ShoppingListGenerator,
    Stage,
    build_generator,
)
from .parser import ParseError, parse

__all__ = [
    "AISLE_SYNONYMS",
    "CANONICAL_AISLES",
    "EmptyResultError",
    "GenerationPolicy",
    "ParseError",
    "RecipeValidationError",
    "ShoppingListGenerator",
    "Stage",
    "build_generator",
    "canonical_aisle",
    "clean",
    "empty_shopping_list",
    "has_valid_items",
    "normalize",
    "parse",
]
