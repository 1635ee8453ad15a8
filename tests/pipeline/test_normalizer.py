"""Tests for shopping list normalization."""

from __future__ import annotations

import pytest

from aislewise.models.shopping import Ingredient
from aislewise.pipeline.aisles import CANONICAL_AISLES
from aislewise.pipeline.normalizer import (
    UNKNOWN_ITEM,
    coerce_ingredients,
    has_valid_items,
    normalize,
)


@pytest.mark.parametrize(
    "value",
    [None, True, 3, 2.5, "Produce", [], [{"Produce": ["onion"]}], {}],
)
def test_non_objects_and_empty_objects_yield_empty_canonical_list(value):
    result = normalize(value)
    assert list(result) == list(CANONICAL_AISLES)
    assert not has_valid_items(result)


def test_canonical_aisles_always_present_with_novel_keys_appended():
    result = normalize({"Dairy": ["milk"], "Snacks": ["pretzels"], "Deli Counter": []})
    assert set(result) == set(CANONICAL_AISLES) | {"Snacks", "Deli Counter"}
    assert list(result)[: len(CANONICAL_AISLES)] == list(CANONICAL_AISLES)
    assert result["Snacks"] == [Ingredient(ingredient="pretzels", quantity="1")]
    assert result["Deli Counter"] == []


def test_nested_arrays_are_flattened_one_level():
    result = normalize({"Produce": [[{"ingredient": "x", "quantity": "1"}]]})
    assert result["Produce"] == [Ingredient(ingredient="x", quantity="1")]
    assert all(result[aisle] == [] for aisle in CANONICAL_AISLES if aisle != "Produce")


@pytest.mark.parametrize(
    "key",
    ["meat_and_seafood", "Meat & Seafood", "MEAT AND SEAFOOD", "meat-and-seafood", "Seafood"],
)
def test_synonyms_fold_onto_canonical_aisle(key):
    entries = [{"ingredient": "salmon fillet", "quantity": "2"}]
    assert normalize({key: entries}) == normalize({"Meat & Seafood": entries})


def test_strings_become_ingredients_with_default_quantity():
    result = normalize({"produce": ["  lemons  ", ""]})
    assert result["Produce"] == [Ingredient(ingredient="lemons", quantity="1")]


def test_object_fields_are_coerced_to_strings():
    result = normalize(
        {
            "Pantry": [
                {"ingredient": "rice", "quantity": 2},
                {"ingredient": "lentils", "quantity": 1.5},
                {"ingredient": "oats", "quantity": 3.0},
                {"ingredient": "sugar"},
                {"ingredient": "salt", "quantity": None},
            ]
        }
    )
    assert [(item.ingredient, item.quantity) for item in result["Pantry/Dry Goods"]] == [
        ("rice", "2"),
        ("lentils", "1.5"),
        ("oats", "3"),
        ("sugar", "1"),
        ("salt", "1"),
    ]


def test_alias_keys_are_accepted():
    result = normalize({"Dairy": [{"name": "cheddar", "amount": "200 g"}, {"item": "cream"}]})
    assert result["Dairy"] == [
        Ingredient(ingredient="cheddar", quantity="200 g"),
        Ingredient(ingredient="cream", quantity="1"),
    ]


def test_unrecoverable_entries_are_dropped():
    result = normalize(
        {
            "Bakery": [
                {"quantity": "1 loaf"},
                {"ingredient": UNKNOWN_ITEM, "quantity": "2"},
                {"ingredient": {"nested": True}},
                42,
                None,
                "bagels",
            ]
        }
    )
    assert result["Bakery"] == [Ingredient(ingredient="bagels", quantity="1")]
    for items in result.values():
        assert all(item.ingredient != UNKNOWN_ITEM for item in items)


def test_non_list_values_become_empty_aisles():
    result = normalize({"Beverages": "water", "Frozen": {"ingredient": "peas"}})
    assert result["Beverages"] == []
    assert result["Frozen Foods"] == []


def test_keys_folding_to_same_aisle_are_concatenated_in_order():
    result = normalize({"Fruits": ["apples"], "Vegetables": ["carrots"], "Produce": ["kale"]})
    assert [item.ingredient for item in result["Produce"]] == ["apples", "carrots", "kale"]


def test_ingredient_order_is_preserved():
    names = ["zucchini", "apples", "mint"]
    result = normalize({"Produce": names})
    assert [item.ingredient for item in result["Produce"]] == names


def test_has_valid_items_requires_one_non_empty_aisle():
    assert not has_valid_items(normalize({"Produce": []}))
    assert has_valid_items(normalize({"Spices": ["cumin"]}))


@pytest.mark.parametrize(
    "value",
    [
        [{"ingredient": "flour", "quantity": "2 cups"}],
        {"ingredients": [{"ingredient": "flour", "quantity": "2 cups"}]},
        {"items": [{"ingredient": "flour", "quantity": "2 cups"}]},
    ],
)
def test_coerce_ingredients_accepts_list_or_wrapped_list(value):
    assert coerce_ingredients(value) == [Ingredient(ingredient="flour", quantity="2 cups")]


def test_coerce_ingredients_without_list_is_empty():
    assert coerce_ingredients({"recipe": "pancakes"}) == []
    assert coerce_ingredients("flour") == []
