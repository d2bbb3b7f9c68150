"""Data structures shared by the template engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal

TemplateSource = Literal["res", "proc", "param", "func", "env"]

TemplateFunction = Callable[..., Any]


class TemplateResolutionError(ValueError):
    """A template expression could not be resolved against its context."""


@dataclass
class TemplateContext:
    """Runtime lookup bundle for template resolution.

    Attributes:
        responses: Response bodies of previous steps, keyed by step key
            (e.g. ``"step1-0"``, step id plus endpoint index).
        transformed_data: Derived values of previous steps, keyed by step key
            and then by transformation alias.
        parameters: Flow parameter values by name.
        environment: Environment variables by name. ``None`` means the flow
            runs without an environment, which is reported differently from
            a variable missing from an existing environment.
        functions: Extra template functions; they take precedence over the
            built-in ones.
    """

    responses: dict[str, Any]
    transformed_data: dict[str, dict[str, Any]]
    parameters: dict[str, Any]
    environment: dict[str, Any] | None = None
    functions: dict[str, TemplateFunction] | None = None


@dataclass(frozen=True)
class TemplateExpression:
    """One parsed ``{{source:path}}`` or ``{{{source:path}}}`` token."""

    source: TemplateSource
    path: str
    preserve_type: bool


@dataclass
class TemplateResolutionResult:
    value: Any
    success: bool
    error: str | None = None
