"""Tests for the command-line interface."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from aislewise import cli
from aislewise.config import get_settings
from aislewise.llm.client import MissingCredentialsError
from aislewise.llm.interface import StaticModelClient


@pytest.fixture()
def runner(monkeypatch) -> CliRunner:
    # Keep pipeline logs off stderr so stdout holds only the JSON document.
    monkeypatch.setenv("AISLEWISE_LOG_LEVEL", "ERROR")
    get_settings.cache_clear()
    return CliRunner()


@pytest.fixture()
def stub_client(monkeypatch):
    def _install(*responses: str) -> StaticModelClient:
        stub = StaticModelClient(responses)
        monkeypatch.setattr(cli, "build_model_client", lambda settings: stub)
        return stub

    return _install


def test_shopping_list_command_prints_json(runner, stub_client, pancakes_response):
    stub_client(pancakes_response)

    result = runner.invoke(cli.app, ["shopping-list", "Pancakes"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["organizedIngredients"]["Dairy"] == [{"ingredient": "milk", "quantity": "1 cup"}]
    assert "warning" not in payload


def test_shopping_list_command_rejects_blank_name(runner, stub_client):
    stub = stub_client()

    result = runner.invoke(cli.app, ["shopping-list", "   "])

    assert result.exit_code == 1
    assert stub.calls == []


def test_missing_credentials_exit_code(runner, monkeypatch):
    def _raise(settings):
        raise MissingCredentialsError("No API key configured")

    monkeypatch.setattr(cli, "build_model_client", _raise)

    result = runner.invoke(cli.app, ["ingredients", "Pancakes"])

    assert result.exit_code == 2


def test_ingredients_command(runner, stub_client):
    stub_client('[{"ingredient": "flour", "quantity": "2 cups"}]')

    result = runner.invoke(cli.app, ["ingredients", "Pancakes", "--pretty"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["ingredients"] == [{"ingredient": "flour", "quantity": "2 cups"}]


def test_organize_command_reads_file(runner, stub_client, tmp_path):
    stub_client('{"Produce": [{"ingredient": "limes", "quantity": "2"}]}')
    path = tmp_path / "ingredients.json"
    path.write_text(json.dumps([{"ingredient": "limes", "quantity": "2"}]), encoding="utf-8")

    result = runner.invoke(cli.app, ["organize", str(path)])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["organizedIngredients"]["Produce"] == [
        {"ingredient": "limes", "quantity": "2"}
    ]


def test_organize_command_rejects_invalid_file(runner, stub_client, tmp_path):
    stub = stub_client()
    path = tmp_path / "ingredients.json"
    path.write_text('{"ingredient": "limes"}', encoding="utf-8")

    result = runner.invoke(cli.app, ["organize", str(path)])

    assert result.exit_code == 1
    assert stub.calls == []
