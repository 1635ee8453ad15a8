"""Strict JSON parsing for cleaned model output."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

JsonValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]

_CLOSERS = {"{": "}", "[": "]"}


class ParseError(ValueError):
    """Raised when cleaned text is not syntactically valid JSON."""

    def __init__(self, message: str, text: str) -> None:
        self.preview = text.strip().replace("\n", " ")[:200]
        super().__init__(f"{message}: payload={self.preview}")


def _close_truncated(text: str) -> Optional[str]:
    """Cut back to the last fully closed value and append the missing closers.

    Returns ``None`` when the brackets are already balanced or cannot be repaired.
    """

    stack: list[str] = []
    in_string = False
    escaped = False
    cut: Optional[tuple[int, list[str]]] = None
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(_CLOSERS[char])
        elif char in "}]":
            if not stack or stack[-1] != char:
                return None
            stack.pop()
            cut = (index + 1, list(stack))
    if not stack or cut is None:
        return None
    end, remaining = cut
    head = text[:end].rstrip().rstrip(",").rstrip()
    return head + "".join(reversed(remaining))


def parse(cleaned: str) -> JsonValue:
    """Parse ``cleaned`` into a plain JSON value, repairing truncated output once."""

    try:
        return json.loads(cleaned)
    except (ValueError, RecursionError) as exc:
        original_error: Exception = exc

    repaired = _close_truncated(cleaned)
    if repaired is not None:
        try:
            value = json.loads(repaired)
        except (ValueError, RecursionError):
            pass
        else:
            logger.info(
                "Recovered truncated model JSON; kept %s of %s chars",
                len(repaired),
                len(cleaned),
            )
            return value

    logger.debug("JSON parsing failed: %s", original_error)
    raise ParseError(f"Model returned invalid JSON: {original_error}", cleaned) from original_error


__all__ = ["JsonValue", "ParseError", "parse"]
