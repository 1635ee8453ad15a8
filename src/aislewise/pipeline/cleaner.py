"""Strip formatting noise from model output so it has a chance of parsing as JSON.

Every step is idempotent and the composition is too, so cleaned text can be fed back
through :func:`clean` without changing.
"""

from __future__ import annotations

import re

_FENCE_RE = re.compile(r"```[A-Za-z0-9_+-]*[ \t]*")
_ARRAY_ROOT_RE = re.compile(r'^\[\s*"[^"\n]+"\s*:')
_LEADING_BRACKETS_RE = re.compile(r"^[\s\[]+")


def strip_code_fences(raw: str) -> str:
    """Trim the text and drop fenced code-block delimiters."""

    return _FENCE_RE.sub("", raw.strip()).strip()


def _truncate_after_last_brace_line(text: str) -> str:
    lines = text.splitlines()
    for index in range(len(lines) - 1, -1, -1):
        if "}" in lines[index]:
            return "\n".join(lines[: index + 1]).strip()
    return text


def _matching_close(text: str, start: int) -> int:
    """Return the index of the bracket closing ``text[start]``, or -1 if it never closes."""

    depth = 0
    index = start
    while index < len(text):
        char = text[index]
        if char == '"':
            index = _scan_double_quoted(text, index)
            continue
        if char in "[{":
            depth += 1
        elif char in "]}":
            depth -= 1
            if depth == 0:
                return index
        index += 1
    return -1


def _repair_array_root(text: str) -> str:
    if not _ARRAY_ROOT_RE.match(text):
        return text
    closing = _matching_close(text, 0)
    if closing == -1:
        # The closing bracket went with the lines after the last brace.
        return "{" + text[1:].rstrip() + "}"
    return "{" + text[1:closing] + "}" + text[closing + 1 :]


def _extract_object_span(text: str) -> str:
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start : end + 1]
    return text


def _scan_double_quoted(text: str, start: int) -> int:
    """Return the index just past the string literal opening at ``start``."""

    index = start + 1
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == '"':
            return index + 1
        index += 1
    return len(text)


def _convert_single_quoted(text: str, start: int) -> tuple[str, int]:
    pieces = ['"']
    index = start + 1
    while index < len(text):
        char = text[index]
        if char == "\\" and index + 1 < len(text):
            following = text[index + 1]
            pieces.append("'" if following == "'" else char + following)
            index += 2
            continue
        if char == "'":
            pieces.append('"')
            return "".join(pieces), index + 1
        pieces.append('\\"' if char == '"' else char)
        index += 1
    return "".join(pieces), index


def _normalize_tokens(text: str) -> str:
    """Fix quoting and comma noise outside of string literals."""

    pieces: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == '"':
            end = _scan_double_quoted(text, index)
            pieces.append(text[index:end])
            index = end
        elif char == "'":
            converted, index = _convert_single_quoted(text, index)
            pieces.append(converted)
        elif char == ",":
            lookahead = index + 1
            while lookahead < len(text) and (text[lookahead].isspace() or text[lookahead] == ","):
                lookahead += 1
            gap = text[index + 1 : lookahead].replace(",", "")
            if lookahead < len(text) and text[lookahead] in "}]":
                pieces.append(gap)
            else:
                pieces.append("," + gap)
            index = lookahead
        else:
            pieces.append(char)
            index += 1
    return "".join(pieces)


def clean(raw: str) -> str:
    """Return ``raw`` with fences, surrounding prose and JSON noise removed."""

    text = strip_code_fences(raw)
    text = _truncate_after_last_brace_line(text)
    text = _repair_array_root(text)
    text = _LEADING_BRACKETS_RE.sub("", text)
    text = _extract_object_span(text)
    return _normalize_tokens(text).strip()


def extract_array(raw: str) -> str:
    """Return the outermost ``[...]`` span of ``raw`` with JSON noise removed.

    Used where a bare array is the expected root, which :func:`clean` would unwrap.
    """

    text = strip_code_fences(raw)
    start = text.find("[")
    end = text.rfind("]")
    if start != -1 and end > start:
        text = text[start : end + 1]
    else:
        text = _extract_object_span(text)
    return _normalize_tokens(text).strip()


__all__ = ["clean", "extract_array", "strip_code_fences"]
