"""Logging setup: plain or JSON output, request correlation and API key redaction."""

from __future__ import annotations

import json
import logging
import re
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Iterable, Optional

REDACTED = "[redacted]"

_KEY_PATTERNS = (
    re.compile(r"(Bearer\s+)([A-Za-z0-9\-._~+/=]+)", re.IGNORECASE),
    re.compile(r"((?:api_key|apikey|api-key)[=:]\s*)([^&\s,]+)", re.IGNORECASE),
)

# Pipeline and request attributes surfaced by both formatters when set.
CONTEXT_FIELDS = ("request_id", "stage", "model", "attempt")

_SKIP_ATTRIBUTES = frozenset({"msg", "args", "levelname", "name", "exc_text"})

_current_request_id: ContextVar[Optional[str]] = ContextVar("aislewise_request_id", default=None)


def bind_request_id(request_id: str) -> Token:
    """Attach ``request_id`` to every record logged from the current context."""

    return _current_request_id.set(request_id)


def reset_request_id(token: Token) -> None:
    _current_request_id.reset(token)


def redact(text: str, secrets: Iterable[str] = ()) -> str:
    """Mask bearer tokens, ``api_key=`` pairs and any literal ``secrets`` in ``text``."""

    for pattern in _KEY_PATTERNS:
        text = pattern.sub(r"\1" + REDACTED, text)
    for secret in secrets:
        text = text.replace(secret, REDACTED)
    return text


class SensitiveDataFilter(logging.Filter):
    """Rewrite records so the provider API key never reaches a handler."""

    def __init__(self, secrets: Iterable[str]):
        super().__init__()
        self._secrets = tuple({secret.strip() for secret in secrets if secret and secret.strip()})

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401 - standard interface
        rendered = record.getMessage()
        masked = redact(rendered, self._secrets)
        if masked != rendered:
            record.msg, record.args = masked, ()

        for attribute, value in vars(record).items():
            if attribute not in _SKIP_ATTRIBUTES and isinstance(value, str):
                setattr(record, attribute, redact(value, self._secrets))
        return True


class RequestContextFilter(logging.Filter):
    """Fill ``record.request_id`` from the bound request when the caller did not pass one."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401 - standard interface
        if getattr(record, "request_id", None) is None:
            record.request_id = _current_request_id.get()
        return True


def _context_of(record: logging.LogRecord) -> dict[str, object]:
    context: dict[str, object] = {}
    for field in CONTEXT_FIELDS:
        value = getattr(record, field, None)
        if value is not None:
            context[field] = value
    return context


class PlainFormatter(logging.Formatter):
    """Human readable lines with pipeline context appended as ``key=value`` pairs."""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - override
        line = super().format(record)
        context = _context_of(record)
        if not context:
            return line
        head, newline, tail = line.partition("\n")
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{head} | {pairs}{newline}{tail}"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, suitable for log shippers."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - override
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_context_of(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def configure_logging(level_name: str, fmt: str, secrets: Iterable[str]) -> None:
    """Install a single stderr handler on the root logger.

    Uvicorn's loggers are routed through the same handler so access and error lines are
    redacted too.
    """

    level = getattr(logging, (level_name or "INFO").upper(), logging.INFO)
    redaction = SensitiveDataFilter(secrets)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if (fmt or "").lower() == "json" else PlainFormatter())
    handler.addFilter(redaction)
    handler.addFilter(RequestContextFilter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    logging.captureWarnings(True)

    # httpx logs every request line at INFO.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        server_logger = logging.getLogger(name)
        server_logger.handlers = []
        server_logger.setLevel(level)
        server_logger.propagate = True
        server_logger.addFilter(redaction)


__all__ = [
    "CONTEXT_FIELDS",
    "JsonFormatter",
    "PlainFormatter",
    "REDACTED",
    "RequestContextFilter",
    "SensitiveDataFilter",
    "bind_request_id",
    "configure_logging",
    "redact",
    "reset_request_id",
]
