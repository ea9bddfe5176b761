"""Recover a JSON value from free-form model output.

Models wrap JSON in prose or markdown fences often enough that a plain
``json.loads`` is not sufficient. The strategies below are tried in order
and each returns either a parsed value or ``NO_VALUE``; ``null`` is a
legitimate parse result and must not be confused with "nothing found".
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterator
from typing import Any

from .errors import ParseError

PARSE_FAILURE_MESSAGE = "Model did not return parseable JSON."

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


class _NoValue:
    __slots__ = ()

    def __repr__(self) -> str:
        return "NO_VALUE"


NO_VALUE: Any = _NoValue()


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return NO_VALUE


def _fenced_blocks(text: str) -> Iterator[str]:
    for match in _FENCE_RE.finditer(text):
        yield match.group(1).strip()


def parse_direct(text: str) -> Any:
    return _loads(text)


def parse_fenced(text: str) -> Any:
    """First fenced block (```` ``` ```` or ```` ```json ````) that parses."""
    for block in _fenced_blocks(text):
        value = _loads(block)
        if value is not NO_VALUE:
            return value
    return NO_VALUE


def parse_brace_slice(text: str) -> Any:
    """Parse the span from the first ``{`` to the last ``}``."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return NO_VALUE
    return _loads(text[start : end + 1])


STRATEGIES: tuple[Callable[[str], Any], ...] = (parse_direct, parse_fenced, parse_brace_slice)


def extract_json(text: str) -> Any:
    """Return the first JSON value any strategy recovers from *text*.

    Raises:
        ParseError: when no strategy yields a value.
    """
    trimmed = (text or "").strip()
    for strategy in STRATEGIES:
        value = strategy(trimmed)
        if value is not NO_VALUE:
            return value
    raise ParseError(PARSE_FAILURE_MESSAGE)
