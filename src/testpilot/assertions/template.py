"""Template handling for assertion expected values."""

from __future__ import annotations

import re
from typing import Any

from testpilot.assertions.base import ValidationResult
from testpilot.template import (
    TemplateContext,
    TemplateResolutionResult,
    has_template_expressions,
    parse_template_expression,
    resolve_template_expression,
    stringify_value,
)
from testpilot.template.engine import resolve_expression
from testpilot.template.types import TemplateResolutionError

_BARE_DOUBLE_RE = re.compile(r"^\{\{(?!\{)[^}]+\}\}$")
_QUOTED_DOUBLE_RE = re.compile(r'^"(\{\{(?!\{)[^}]+\}\})"$')
_EXPRESSION_RE = re.compile(r"\{\{\{[^}]+\}\}\}|\{\{[^}]+\}\}")
_OUTER_BRACES_RE = re.compile(r"^\{\{\{?|\}\}\}?$")

VALIDATED_SOURCES = ("res", "proc", "param", "func")


def resolve_assertion_expected_value(
    expected_value: Any, context: TemplateContext
) -> TemplateResolutionResult:
    """Resolve a templated expected value without raising.

    An expected value that is a single bare ``{{source:path}}`` keeps the
    resolved value's native type, so ``{{res:step1-0.$.id}}`` compares as
    ``123``. Wrapping it in double quotes, ``"{{res:step1-0.$.id}}"``, asks
    for the string form ``"123"`` instead.
    """
    if not isinstance(expected_value, str) or not has_template_expressions(expected_value):
        return TemplateResolutionResult(value=expected_value, success=True)

    bare = _BARE_DOUBLE_RE.match(expected_value)
    quoted = _QUOTED_DOUBLE_RE.match(expected_value)
    token = expected_value if bare else quoted.group(1) if quoted else None
    expression = parse_template_expression(token) if token else None
    if expression is None:
        return resolve_template_expression(expected_value, context)

    try:
        value = resolve_expression(expression, context)
    except TemplateResolutionError as e:
        return TemplateResolutionResult(value=expected_value, success=False, error=str(e))
    return TemplateResolutionResult(value=stringify_value(value) if quoted else value, success=True)


def _validate_expression(expression: str) -> ValidationResult:
    inner = _OUTER_BRACES_RE.sub("", expression)
    if ":" not in inner:
        return ValidationResult(
            valid=False, error=f"Template expression missing source prefix: {expression}"
        )
    source = inner.split(":", 1)[0]
    if source not in VALIDATED_SOURCES:
        return ValidationResult(valid=False, error=f"Unknown template source: {source}")
    return ValidationResult(valid=True)


def validate_assertion_expected_value(
    expected_value: Any, is_template_expression: bool
) -> ValidationResult:
    """Check the syntax of a templated expected value.

    Only ``res``, ``proc``, ``param`` and ``func`` are accepted here; ``env``
    references resolve at run time but are not offered to assertion authors.
    """
    if not is_template_expression:
        return ValidationResult(valid=True)

    if not isinstance(expected_value, str):
        return ValidationResult(valid=False, error="Template expressions must be strings")

    expressions = _EXPRESSION_RE.findall(expected_value)
    if not expressions:
        return ValidationResult(valid=False, error="No valid template expressions found")

    for expression in expressions:
        result = _validate_expression(expression)
        if not result.valid:
            return result
    return ValidationResult(valid=True)
