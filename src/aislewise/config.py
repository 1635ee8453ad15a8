"""Application configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_FILE_CANDIDATES = (Path(".env"), Path(".env.local"))


class Settings(BaseModel):
    """Global application settings loaded from environment variables or .env files."""

    llm_provider: str = Field(
        default="cohere",
        description="Text generation provider (cohere, openai or ollama).",
    )
    llm_base_url: Optional[str] = Field(
        default=None,
        description="Provider base URL. Defaults to the provider's public endpoint.",
    )
    llm_api_key: Optional[str] = Field(
        default=None,
        description="API key sent as a bearer token. Required for hosted providers.",
    )
    fast_model: str = Field(
        default="command-r7b-12-2024",
        description="Low-cost model used for the first attempts and the cleanup pass.",
    )
    reliable_model: str = Field(
        default="command-a-03-2025",
        description="Higher-cost model used with structured output as the last resort.",
    )
    fast_attempts: int = Field(
        default=3,
        ge=1,
        description="Number of attempts against the fast model before escalating.",
    )
    fast_temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sampling temperature for the first fast attempt.",
    )
    fast_temperature_step: float = Field(
        default=0.1,
        ge=0.0,
        description="Temperature increase applied on each fast retry.",
    )
    fast_max_tokens: int = Field(
        default=500,
        ge=1,
        description="Maximum output tokens for fast and cleanup calls.",
    )
    reliable_temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Sampling temperature for the reliable model.",
    )
    reliable_max_tokens: int = Field(
        default=800,
        ge=1,
        description="Maximum output tokens for the reliable model.",
    )
    llm_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds allowed for a single model call.",
    )
    log_level: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        default="plain",
        description="Logging format (plain/json).",
    )
    log_requests: bool = Field(
        default=True,
        description="Emit request access logs when true.",
    )

    model_config = ConfigDict(frozen=True)


def _coerce_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_env_file(path: Path) -> dict[str, str]:
    payload: dict[str, str] = {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, raw_value = line.split("=", 1)
                payload[key.strip()] = raw_value.strip().strip('"').strip("'")
    except FileNotFoundError:
        return {}
    return payload


def _load_env_file_values() -> dict[str, str]:
    values: dict[str, str] = {}
    for candidate in ENV_FILE_CANDIDATES:
        values.update(_parse_env_file(candidate))
    return values


_NUMERIC_FIELDS: dict[str, tuple[str, Callable[[str], object]]] = {
    "AISLEWISE_FAST_ATTEMPTS": ("fast_attempts", int),
    "AISLEWISE_FAST_TEMPERATURE": ("fast_temperature", float),
    "AISLEWISE_FAST_TEMPERATURE_STEP": ("fast_temperature_step", float),
    "AISLEWISE_FAST_MAX_TOKENS": ("fast_max_tokens", int),
    "AISLEWISE_RELIABLE_TEMPERATURE": ("reliable_temperature", float),
    "AISLEWISE_RELIABLE_MAX_TOKENS": ("reliable_max_tokens", int),
    "AISLEWISE_LLM_TIMEOUT": ("llm_timeout", float),
}


def _load_from_env() -> dict[str, object]:
    """Load optional overrides from env vars (with .env fallbacks)."""

    file_values = _load_env_file_values()

    def _env(key: str) -> Optional[str]:
        return os.environ.get(key) or file_values.get(key)

    payload: dict[str, object] = {}
    if (provider := _env("AISLEWISE_LLM_PROVIDER")):
        payload["llm_provider"] = provider.strip().lower()
    if (base_url := _env("AISLEWISE_LLM_BASE_URL")):
        payload["llm_base_url"] = base_url
    if (api_key := _env("AISLEWISE_LLM_API_KEY") or _env("COHERE_API_KEY")):
        payload["llm_api_key"] = api_key
    if (fast_model := _env("AISLEWISE_FAST_MODEL")):
        payload["fast_model"] = fast_model
    if (reliable_model := _env("AISLEWISE_RELIABLE_MODEL")):
        payload["reliable_model"] = reliable_model
    for env_key, (field_name, converter) in _NUMERIC_FIELDS.items():
        if (raw := _env(env_key)):
            try:
                payload[field_name] = converter(raw)
            except ValueError:
                pass
    if (log_level := _env("AISLEWISE_LOG_LEVEL")):
        payload["log_level"] = log_level
    if (log_format := _env("AISLEWISE_LOG_FORMAT")):
        payload["log_format"] = log_format
    if (log_requests := _env("AISLEWISE_LOG_REQUESTS")):
        payload["log_requests"] = _coerce_bool(log_requests)
    return payload


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(**_load_from_env())
