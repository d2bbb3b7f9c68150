"""Small JSONPath accessor used by template paths and ``json_body`` assertions.

Supports the subset the flow editor produces::

    $                   the document itself
    $.user.name         dotted property access
    $.items[0]          array index
    $['odd key']        bracketed key
    $.items[*].id       wildcard, later properties project over the elements
    $.items[1:3]        slice

Missing segments resolve to ``None`` instead of raising.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

_INDEX_RE = re.compile(r"^\d+$")


@dataclass(frozen=True)
class PathStep:
    kind: str  # "property", "index", "key", "wildcard" or "slice"
    value: Any = None
    end: int | None = None


def _tokenize(path: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    current = ""
    in_brackets = False
    quote: str | None = None

    for char in path:
        if in_brackets:
            if quote:
                current += char
                if char == quote:
                    quote = None
            elif char in "'\"":
                quote = char
                current += char
            elif char == "]":
                tokens.append(("bracket", current.strip()))
                current = ""
                in_brackets = False
            else:
                current += char
        elif char == "[":
            if current:
                tokens.append(("property", current))
                current = ""
            in_brackets = True
        elif char == ".":
            if current:
                tokens.append(("property", current))
                current = ""
        else:
            current += char

    if in_brackets:
        raise ValueError(f"Unclosed bracket in JSONPath: {path}")
    if current:
        tokens.append(("property", current))
    return tokens


def _parse_bracket(content: str) -> PathStep:
    if content == "*":
        return PathStep("wildcard")
    if len(content) >= 2 and content[0] == content[-1] and content[0] in "'\"":
        return PathStep("key", content[1:-1])
    if ":" in content:
        start_text, _, end_text = content.partition(":")
        start = int(start_text) if start_text.strip() else 0
        end = int(end_text) if end_text.strip() else None
        return PathStep("slice", start, end)
    if _INDEX_RE.match(content):
        return PathStep("index", int(content))
    return PathStep("key", content)


@lru_cache(maxsize=512)
def compile_path(path: str) -> tuple[PathStep, ...]:
    """Parse *path* into steps. Raises ``ValueError`` for malformed paths."""
    path = path.strip()
    if path.startswith("$"):
        path = path[1:]

    steps: list[PathStep] = []
    for kind, value in _tokenize(path):
        if kind == "property":
            steps.append(PathStep("wildcard") if value == "*" else PathStep("property", value))
        else:
            steps.append(_parse_bracket(value))
    return tuple(steps)


def _apply(step: PathStep, data: Any) -> Any:
    if step.kind in ("property", "key"):
        if isinstance(data, dict):
            return data.get(step.value)
        if isinstance(data, list) and step.kind == "property":
            # Project over the elements, e.g. $.items[*].id
            return [item.get(step.value) if isinstance(item, dict) else None for item in data]
        return None
    if step.kind == "index":
        if isinstance(data, list) and step.value < len(data):
            return data[step.value]
        return None
    if step.kind == "wildcard":
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            return list(data.values())
        return None
    if step.kind == "slice":
        if isinstance(data, list):
            return data[step.value : step.end]
        return None
    raise ValueError(f"Unknown JSONPath step: {step.kind}")


def extract(data: Any, path: str | None) -> Any:
    """Evaluate *path* against *data*."""
    if not path or path.strip() == "$":
        return data

    current = data
    for step in compile_path(path):
        if current is None:
            return None
        current = _apply(step, current)
    return current
