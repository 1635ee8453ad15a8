"""HTTP client for Cohere, OpenAI-compatible and Ollama chat endpoints."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Optional

import httpx

from aislewise import metrics
from aislewise.config import Settings
from aislewise.llm.interface import UpstreamTransportError

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("cohere", "openai", "ollama")
HOSTED_PROVIDERS = ("cohere", "openai")

DEFAULT_BASE_URLS = {
    "cohere": "https://api.cohere.com",
    "openai": "https://api.openai.com/v1",
    "ollama": "http://localhost:11434",
}

_ENDPOINT_SUFFIXES = {
    "cohere": "/v2/chat",
    "openai": "/chat/completions",
    "ollama": "/api/chat",
}


class MissingCredentialsError(RuntimeError):
    """Raised at startup when a hosted provider is configured without an API key."""


class HttpModelClient:
    """Call a chat endpoint and return the generated text."""

    def __init__(
        self,
        *,
        provider: str,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._provider = (provider or "cohere").strip().lower()
        if self._provider not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Unsupported LLM provider '{provider}'. Expected one of {', '.join(SUPPORTED_PROVIDERS)}."
            )
        endpoint = (base_url or DEFAULT_BASE_URLS[self._provider]).rstrip("/")
        suffix = _ENDPOINT_SUFFIXES[self._provider]
        if not endpoint.endswith(suffix):
            endpoint = f"{endpoint}{suffix}"
        self._endpoint = endpoint

        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._http = httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport)

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def generate(
        self,
        model_id: str,
        prompt: str,
        *,
        max_output_tokens: int,
        temperature: float,
        structured_output: bool = False,
    ) -> str:
        payload = self._build_payload(
            model_id,
            prompt,
            max_output_tokens=max(1, int(max_output_tokens)),
            temperature=min(1.0, max(0.0, float(temperature))),
            structured_output=structured_output,
        )
        started = perf_counter()
        try:
            response = await self._http.post(self._endpoint, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            raise UpstreamTransportError(
                f"{self._provider} returned HTTP {exc.response.status_code} for model {model_id}"
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamTransportError(
                f"{self._provider} request failed for model {model_id}: {exc!r}"
            ) from exc
        except ValueError as exc:
            raise UpstreamTransportError(
                f"{self._provider} returned a non-JSON body for model {model_id}"
            ) from exc
        finally:
            metrics.UPSTREAM_LATENCY.labels(model=model_id).observe(perf_counter() - started)

        content = self._extract_content(body)
        if not content:
            raise UpstreamTransportError(
                f"{self._provider} response for model {model_id} did not include content."
            )
        return content

    async def aclose(self) -> None:
        await self._http.aclose()

    def _build_payload(
        self,
        model_id: str,
        prompt: str,
        *,
        max_output_tokens: int,
        temperature: float,
        structured_output: bool,
    ) -> dict[str, Any]:
        messages = [{"role": "user", "content": prompt}]
        if self._provider == "ollama":
            payload: dict[str, Any] = {
                "model": model_id,
                "messages": messages,
                "stream": False,
                "options": {
                    "temperature": temperature,
                    "num_predict": max_output_tokens,
                },
            }
            if structured_output:
                payload["format"] = "json"
            return payload

        payload = {
            "model": model_id,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_output_tokens,
        }
        if structured_output:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def _extract_content(self, body: Any) -> str:
        if not isinstance(body, dict):
            return ""
        if self._provider == "openai":
            choices = body.get("choices") or []
            if not choices:
                return ""
            message = choices[0].get("message") or {}
            return (message.get("content") or "").strip()

        message = body.get("message") or {}
        content = message.get("content")
        if self._provider == "cohere" and isinstance(content, list):
            content = "".join(
                block.get("text") or ""
                for block in content
                if isinstance(block, dict) and block.get("type", "text") == "text"
            )
        if not isinstance(content, str):
            return ""
        return content.strip()


def build_model_client(settings: Settings) -> HttpModelClient:
    """Create the process-wide model client from settings."""

    provider = (settings.llm_provider or "cohere").strip().lower()
    if provider in HOSTED_PROVIDERS and not settings.llm_api_key:
        raise MissingCredentialsError(
            f"No API key configured for provider '{provider}'. "
            "Set AISLEWISE_LLM_API_KEY (or COHERE_API_KEY)."
        )
    logger.debug("Configuring %s model client base_url=%s", provider, settings.llm_base_url)
    return HttpModelClient(
        provider=provider,
        base_url=settings.llm_base_url,
        api_key=settings.llm_api_key,
        timeout=settings.llm_timeout,
    )


__all__ = [
    "HttpModelClient",
    "MissingCredentialsError",
    "build_model_client",
]
