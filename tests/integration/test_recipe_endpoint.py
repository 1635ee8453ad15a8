"""Integration tests for the recipe ingredients endpoint."""

from __future__ import annotations

from fastapi import status

from aislewise.llm.interface import StaticModelClient


def test_recipe_lists_ingredients(client, use_model_client):
    use_model_client(
        StaticModelClient(['[{"ingredient": "arborio rice", "quantity": "300 g"}, "parmesan"]'])
    )

    response = client.post("/recipe", json={"recipeName": "Risotto"})

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["ingredients"] == [
        {"ingredient": "arborio rice", "quantity": "300 g"},
        {"ingredient": "parmesan", "quantity": "1"},
    ]
    assert "warning" not in body


def test_recipe_requires_name(client, use_model_client):
    use_model_client(StaticModelClient())

    response = client.post("/recipe", json={"recipeName": " "})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Recipe name is required"
