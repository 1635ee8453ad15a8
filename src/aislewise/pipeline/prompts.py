"""Prompt templates for the generation stages."""

from __future__ import annotations

import json
from typing import Sequence

from aislewise.models.shopping import Ingredient
from aislewise.pipeline.aisles import CANONICAL_AISLES

_AISLE_LIST = ", ".join(CANONICAL_AISLES)

SHOPPING_LIST_PROMPT = (
    'Generate a shopping list for "{recipe_name}" organized by supermarket aisle.\n\n'
    "CRITICAL: Your response must be ONLY valid JSON, no extra text or formatting.\n\n"
    "Required JSON format:\n"
    "{{\n"
    '  "Produce": [{{"ingredient": "onions", "quantity": "2 large"}}],\n'
    '  "Dairy": [{{"ingredient": "milk", "quantity": "1 cup"}}]\n'
    "}}\n\n"
    "Available aisles: {aisles}.\n\n"
    "Recipe: {recipe_name}\n\n"
    "JSON response:"
)

CLEANUP_PROMPT = (
    "Reformat the text below into a JSON object that maps supermarket aisle names to arrays "
    'of {{"ingredient": string, "quantity": string}} objects. Use only these aisles: '
    "{aisles}. Keep every ingredient that appears in the text and do not invent new ones. "
    "Return only the JSON object.\n\n"
    "Text:\n{raw_text}\n\n"
    "JSON response:"
)

INGREDIENTS_PROMPT = (
    'For the recipe "{recipe_name}", provide a detailed list of ingredients with quantities. '
    'Format the response as a JSON array where each item has "ingredient" and "quantity" '
    "fields. Only return the JSON array, no additional text.\n\n"
    "Example format:\n"
    "[\n"
    '  {{"ingredient": "flour", "quantity": "2 cups"}},\n'
    '  {{"ingredient": "eggs", "quantity": "3 large"}}\n'
    "]\n\n"
    "Recipe: {recipe_name}"
)

INGREDIENTS_CLEANUP_PROMPT = (
    'Reformat the text below into a JSON object of the form {{"ingredients": [{{"ingredient": '
    'string, "quantity": string}}]}}. Keep every ingredient that appears in the text and do '
    "not invent new ones. Return only the JSON object.\n\n"
    "Text:\n{raw_text}\n\n"
    "JSON response:"
)

ORGANIZE_PROMPT = (
    "Organize the following ingredients by supermarket aisle. Group them as they would "
    "appear in a typical supermarket. Return a JSON object where keys are aisle names and "
    'values are arrays of {{"ingredient": string, "quantity": string}} objects.\n\n'
    "Available aisles: {aisles}.\n\n"
    "Ingredients to organize:\n{ingredient_lines}\n\n"
    "Return only the JSON object, no additional text."
)

# Raw responses fed back to the cleanup stage are capped to keep the prompt small.
MAX_CLEANUP_INPUT_CHARS = 4000


def shopping_list_prompt(recipe_name: str) -> str:
    return SHOPPING_LIST_PROMPT.format(recipe_name=recipe_name, aisles=_AISLE_LIST)


def ingredients_prompt(recipe_name: str) -> str:
    return INGREDIENTS_PROMPT.format(recipe_name=recipe_name)


def organize_prompt(ingredients: Sequence[Ingredient]) -> str:
    lines = "\n".join(f"{item.quantity} {item.ingredient}" for item in ingredients)
    return ORGANIZE_PROMPT.format(aisles=_AISLE_LIST, ingredient_lines=lines)


def _trim(raw_text: str) -> str:
    trimmed = raw_text.strip()
    if len(trimmed) > MAX_CLEANUP_INPUT_CHARS:
        trimmed = trimmed[:MAX_CLEANUP_INPUT_CHARS] + "\n...[truncated]"
    return trimmed


def cleanup_prompt(raw_text: str) -> str:
    """Ask the model to reformat arbitrary text into the aisle-keyed JSON shape."""

    return CLEANUP_PROMPT.format(aisles=_AISLE_LIST, raw_text=_trim(raw_text))


def ingredients_cleanup_prompt(raw_text: str) -> str:
    return INGREDIENTS_CLEANUP_PROMPT.format(raw_text=_trim(raw_text))


def structured_ingredients_prompt(recipe_name: str) -> str:
    """Object-rooted variant of the ingredients prompt for providers whose JSON mode needs one."""

    example = json.dumps({"ingredients": [{"ingredient": "flour", "quantity": "2 cups"}]})
    return (
        f'List the ingredients with quantities for the recipe "{recipe_name}". '
        f"Respond with a JSON object shaped like {example}."
    )


__all__ = [
    "cleanup_prompt",
    "ingredients_cleanup_prompt",
    "ingredients_prompt",
    "organize_prompt",
    "shopping_list_prompt",
    "structured_ingredients_prompt",
]
