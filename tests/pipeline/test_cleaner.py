"""Tests for model output cleaning."""

from __future__ import annotations

import json

import pytest

from aislewise.pipeline.cleaner import clean, extract_array, strip_code_fences
from aislewise.pipeline.parser import ParseError, parse

NOISY_SAMPLES = [
    "",
    "   ",
    '{"Produce": [{"ingredient": "onion", "quantity": "1"}]}',
    '```json\n{"Dairy": [{"ingredient": "milk", "quantity": "1 cup"}]}\n```',
    '```\n{"Dairy": []}\n```\nLet me know if you need anything else!',
    'Sure! Here is your list: {"Bakery": [{"ingredient": "bread", "quantity": "1 loaf"}]} Enjoy.',
    '[ "Produce": [{"ingredient":"eggs","quantity":"2"}] ]',
    '[\n  "Produce": [{"ingredient":"eggs","quantity":"2"}]\n]',
    '[\n  "Dairy": [{"ingredient": "milk", "quantity": "1 cup"}],\n  "Produce": ["chives"]\n]\nEnjoy!',
    "[[{'ingredient': 'eggs', 'quantity': '2'}]]",
    "{'Produce': [{'ingredient': \"baker's yeast\", 'quantity': '1 packet',},],,}",
    '{"Produce": [{"ingredient": "eggs", "quantity": "2"}',
    "I'm sorry, I can't help with that.",
    "no braces } here\nand more prose",
]


@pytest.mark.parametrize("raw", NOISY_SAMPLES)
def test_clean_is_idempotent(raw):
    once = clean(raw)
    assert clean(once) == once


def test_clean_removes_language_tagged_fences():
    raw = '```json\n{"Pantry/Dry Goods": [{"ingredient": "flour", "quantity": "2 cups"}]}\n```'
    assert clean(raw) == '{"Pantry/Dry Goods": [{"ingredient": "flour", "quantity": "2 cups"}]}'


def test_clean_drops_trailing_commentary_lines():
    raw = '{"Dairy": [{"ingredient": "butter", "quantity": "2 tbsp"}]}\n\nNote: adjust to taste.'
    assert clean(raw).endswith("}")
    assert "Note" not in clean(raw)


def test_clean_extracts_object_from_prose():
    raw = 'Here you go: {"Bakery": ["baguette"]} Happy cooking!'
    assert clean(raw) == '{"Bakery": ["baguette"]}'


@pytest.mark.parametrize(
    "raw",
    [
        '[ "Produce": [{"ingredient":"eggs","quantity":"2"}] ]',
        '[\n  "Produce": [{"ingredient":"eggs","quantity":"2"}]\n]',
        '```json\n[\n  "Produce": [{"ingredient":"eggs","quantity":"2"}]\n]\n```',
    ],
)
def test_clean_repairs_array_root_with_keys(raw):
    parsed = parse(clean(raw))
    assert isinstance(parsed, dict)
    assert parsed["Produce"] == [{"ingredient": "eggs", "quantity": "2"}]


def test_clean_repairs_only_the_outer_bracket_of_a_multiline_array_root():
    raw = (
        "[\n"
        '  "Dairy": [{"ingredient": "milk", "quantity": "1 cup"}],\n'
        '  "Produce": [{"ingredient": "chives", "quantity": "1 bunch"}]\n'
        "]"
    )
    assert parse(clean(raw)) == {
        "Dairy": [{"ingredient": "milk", "quantity": "1 cup"}],
        "Produce": [{"ingredient": "chives", "quantity": "1 bunch"}],
    }


def test_clean_normalizes_quotes_and_commas():
    raw = "{'Produce': [{'ingredient': \"baker's yeast\", 'quantity': '1 packet',},],,}"
    parsed = json.loads(clean(raw))
    assert parsed == {"Produce": [{"ingredient": "baker's yeast", "quantity": "1 packet"}]}


def test_clean_keeps_apostrophes_inside_double_quoted_strings():
    raw = '{"Condiments & Sauces": [{"ingredient": "Frank\'s hot sauce", "quantity": "2 tbsp"}]}'
    assert json.loads(clean(raw))["Condiments & Sauces"][0]["ingredient"] == "Frank's hot sauce"


def test_clean_collapses_repeated_commas():
    raw = '{"Produce": ["onion",, "garlic",,, "leek"]}'
    assert json.loads(clean(raw)) == {"Produce": ["onion", "garlic", "leek"]}


def test_clean_leaves_commas_inside_strings_alone():
    raw = '{"Produce": [{"ingredient": "tomatoes, diced,", "quantity": "2"}]}'
    assert json.loads(clean(raw))["Produce"][0]["ingredient"] == "tomatoes, diced,"


def test_clean_never_raises_on_prose():
    cleaned = clean("  I'm not sure what you mean.  ")
    assert cleaned.startswith("I")
    with pytest.raises(ParseError):
        parse(cleaned)


def test_strip_code_fences_only_touches_fences():
    assert strip_code_fences("```python\n[1, 2]\n```") == "[1, 2]"


def test_extract_array_keeps_array_root():
    raw = 'Ingredients:\n[{"ingredient": "flour", "quantity": "2 cups"},]\nEnjoy!'
    assert json.loads(extract_array(raw)) == [{"ingredient": "flour", "quantity": "2 cups"}]
