"""Shared pytest fixtures for the Aislewise test suite."""

from __future__ import annotations

import os
from typing import Callable, Generator, Iterable, Union

# The app module builds its model client at import time and refuses to start without a key.
os.environ.setdefault("AISLEWISE_LLM_API_KEY", "test-api-key")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from aislewise.config import get_settings
from aislewise.llm.interface import UpstreamTransportError
from aislewise.pipeline.orchestrator import GenerationPolicy, ShoppingListGenerator
from aislewise.server import deps
from aislewise.server.app import create_app

PANCAKES_RESPONSE = (
    "```json\n"
    '{"Pantry/Dry Goods":[{"ingredient":"flour","quantity":"2 cups"}],'
    '"Dairy":[{"ingredient":"milk","quantity":"1 cup"}]}\n'
    "```"
)

Scripted = Union[str, BaseException]


class ScriptedModelClient:
    """Model client stub that replays scripted responses or raises scripted errors."""

    def __init__(self, script: Iterable[Scripted]):
        self._script = list(script)
        self.calls: list[dict[str, object]] = []

    async def generate(
        self,
        model_id: str,
        prompt: str,
        *,
        max_output_tokens: int,
        temperature: float,
        structured_output: bool = False,
    ) -> str:
        self.calls.append(
            {
                "model": model_id,
                "prompt": prompt,
                "max_output_tokens": max_output_tokens,
                "temperature": temperature,
                "structured_output": structured_output,
            }
        )
        if not self._script:
            raise UpstreamTransportError("script exhausted")
        step = self._script.pop(0)
        if isinstance(step, BaseException):
            raise step
        return step

    async def aclose(self) -> None:
        return None


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep developer .env files and env overrides out of the tests."""

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("AISLEWISE_LLM_API_KEY", "test-api-key")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def policy() -> GenerationPolicy:
    return GenerationPolicy(
        fast_model="fast-model",
        reliable_model="reliable-model",
        call_timeout=1.0,
    )


@pytest.fixture()
def scripted_client() -> Callable[..., ScriptedModelClient]:
    """Return a factory: ``scripted_client("raw", UpstreamTransportError(...), ...)``."""

    return lambda *script: ScriptedModelClient(script)


@pytest.fixture()
def generator_for(policy) -> Callable[[ScriptedModelClient], ShoppingListGenerator]:
    return lambda client: ShoppingListGenerator(client, policy)


@pytest.fixture()
def app() -> Generator[FastAPI, None, None]:
    """Create a new FastAPI app instance for each test and reset overrides."""

    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    """Return a test client bound to the FastAPI app."""

    return TestClient(app)


@pytest.fixture()
def use_model_client(app) -> Callable[[object], None]:
    """Route the app's model client dependency to a stub."""

    def _install(stub: object) -> None:
        app.dependency_overrides[deps.get_model_client] = lambda: stub

    return _install


@pytest.fixture()
def pancakes_response() -> str:
    return PANCAKES_RESPONSE
