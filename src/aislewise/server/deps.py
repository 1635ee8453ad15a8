"""Dependency definitions for the Aislewise API server."""

from __future__ import annotations

from fastapi import Depends, Request

from aislewise.config import Settings, get_settings
from aislewise.llm.interface import ModelClient
from aislewise.pipeline.orchestrator import ShoppingListGenerator, build_generator


def get_model_client(request: Request) -> ModelClient:
    """Return the process-wide model client created at startup."""

    return request.app.state.model_client


def get_generator(
    client: ModelClient = Depends(get_model_client),
    settings: Settings = Depends(get_settings),
) -> ShoppingListGenerator:
    """Return a generator bound to the shared client; cheap enough to build per request."""

    return build_generator(client, settings)
