"""LLM runtime abstraction layer."""

from __future__ import annotations

from typing import Iterable, Protocol


class UpstreamTransportError(RuntimeError):
    """Raised when a model call fails in transport, at the provider, or returns no text."""


class ModelClient(Protocol):
    """Protocol for text generation backends."""

    async def generate(
        self,
        model_id: str,
        prompt: str,
        *,
        max_output_tokens: int,
        temperature: float,
        structured_output: bool = False,
    ) -> str:
        """Return generated text for the supplied prompt."""


class StaticModelClient:
    """Deterministic client for development that replays canned responses in order.

    The last response is repeated once the sequence is exhausted. Each call is recorded in
    ``calls`` as ``(model_id, temperature, structured_output)``.
    """

    def __init__(self, responses: Iterable[str] = ('{"Produce": []}',)) -> None:
        self._responses = list(responses) or ['{"Produce": []}']
        self.calls: list[tuple[str, float, bool]] = []

    async def generate(
        self,
        model_id: str,
        prompt: str,
        *,
        max_output_tokens: int,
        temperature: float,
        structured_output: bool = False,
    ) -> str:
        index = min(len(self.calls), len(self._responses) - 1)
        self.calls.append((model_id, temperature, structured_output))
        return self._responses[index]

    async def aclose(self) -> None:
        return None


__all__ = ["ModelClient", "StaticModelClient", "UpstreamTransportError"]
