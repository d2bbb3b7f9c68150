"""Template expression engine.

Templates embed ``{{source:path}}`` (string substitution) and
``{{{source:path}}}`` (type-preserving substitution) tokens in strings. A
quoted triple-brace token, ``"{{{res:step1-0.$.id}}}"``, is replaced by the
JSON encoding of the resolved value, so a template that spells out a JSON
document comes back as the parsed document with native field types.

Sources are ``res`` (previous responses), ``proc`` (transformed data),
``param`` (flow parameters), ``env`` (environment variables) and ``func``
(template functions).
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from testpilot import jsonpath
from testpilot.template.functions import create_template_functions
from testpilot.template.types import (
    TemplateContext,
    TemplateExpression,
    TemplateFunction,
    TemplateResolutionError,
    TemplateResolutionResult,
    TemplateSource,
)

logger = logging.getLogger(__name__)

_DETECT_RE = re.compile(r"\{\{[^}]+\}\}")
_TOKEN_RE = re.compile(r'"\{\{\{[^}]+\}\}\}"|\{\{\{[^}]+\}\}\}|\{\{[^}]+\}\}')
_SINGLE_TRIPLE_RE = re.compile(r"^\{\{\{[^}]+\}\}\}$")
_TRIPLE_RE = re.compile(r"^\{\{\{([^:]+):(.+)\}\}\}$", re.DOTALL)
_DOUBLE_RE = re.compile(r"^\{\{([^:]+):(.+)\}\}$", re.DOTALL)
_FUNCTION_RE = re.compile(r"^([A-Za-z0-9_]+)\s*\((.*)\)$", re.DOTALL)
_TRANSFORM_ALIAS_RE = re.compile(r"^([^.\[]+)(.*)$", re.DOTALL)

_SOURCE_ALIASES: dict[str, TemplateSource] = {
    "res": "res",
    "response": "res",
    "proc": "proc",
    "process": "proc",
    "transform": "proc",
    "param": "param",
    "parameter": "param",
    "var": "param",
    "func": "func",
    "function": "func",
    "env": "env",
    "environment": "env",
}


def has_template_expressions(text: Any) -> bool:
    """Return True if *text* contains a ``{{...}}`` or ``{{{...}}}`` region."""
    if not isinstance(text, str):
        return False
    return _DETECT_RE.search(text) is not None


def normalize_source(source: str) -> TemplateSource | None:
    return _SOURCE_ALIASES.get(source.strip().lower())


def parse_template_expression(raw: str) -> TemplateExpression | None:
    """Parse a single token including its braces.

    Returns None when the token has no ``source:`` prefix or an unknown
    source; callers treat such text as a literal.
    """
    for pattern, preserve_type in ((_TRIPLE_RE, True), (_DOUBLE_RE, False)):
        match = pattern.match(raw)
        if match:
            source = normalize_source(match.group(1))
            if source is None:
                return None
            return TemplateExpression(
                source=source, path=match.group(2).strip(), preserve_type=preserve_type
            )
    return None


def _format_number(value: int | float) -> str:
    if isinstance(value, float):
        if value != value:
            return "NaN"
        if value in (float("inf"), float("-inf")):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
    return repr(value)


def _to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def stringify_value(value: Any) -> str:
    """String form used by ``{{...}}`` substitution."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def _extract(data: Any, accessor: str) -> Any:
    try:
        return jsonpath.extract(data, accessor)
    except ValueError as e:
        raise TemplateResolutionError(f"Invalid JSONPath {accessor}: {e}") from e


def _resolve_response(path: str, context: TemplateContext) -> Any:
    step_key, _, accessor = path.partition(".")
    if step_key not in context.responses:
        available = ", ".join(context.responses)
        raise TemplateResolutionError(
            f"Response data not found for: {step_key}. Available keys: {available}"
        )
    return _extract(context.responses[step_key], accessor or "$")


def _resolve_transformation(path: str, context: TemplateContext) -> Any:
    step_key, _, rest = path.partition(".")
    if rest == "$" or rest.startswith("$."):
        rest = rest[2:]
    match = _TRANSFORM_ALIAS_RE.match(rest)
    if not step_key or not match:
        raise TemplateResolutionError(
            f"Invalid transformation template: {path}. Format should be stepId-endpointIndex.$.alias.path"
        )
    alias, accessor = match.group(1), match.group(2)

    if step_key not in context.transformed_data:
        available = ", ".join(context.transformed_data)
        raise TemplateResolutionError(
            f"Transformation data not found for: {step_key}. Available keys: {available}"
        )
    step_data = context.transformed_data[step_key] or {}
    if alias not in step_data:
        available = ", ".join(step_data)
        raise TemplateResolutionError(
            f"Transformation alias not found: {alias} for step {step_key}. Available aliases: {available}"
        )

    value = step_data[alias]
    if accessor:
        return _extract(value, accessor)
    return value


def _resolve_parameter(name: str, context: TemplateContext) -> Any:
    if name not in context.parameters:
        available = ", ".join(context.parameters)
        raise TemplateResolutionError(
            f"Parameter not found: {name}. Available parameters: {available}"
        )
    return context.parameters[name]


def _resolve_environment(name: str, context: TemplateContext) -> Any:
    if context.environment is None:
        raise TemplateResolutionError("Environment context not available")
    if name not in context.environment:
        raise TemplateResolutionError(f"Environment variable not found: {name}")
    return context.environment[name]


def _split_arguments(text: str) -> list[str]:
    """Split on commas that are not inside quotes."""
    parts: list[str] = []
    current = ""
    quote: str | None = None
    escaped = False

    for char in text:
        if escaped:
            current += char
            escaped = False
        elif char == "\\" and quote:
            current += char
            escaped = True
        elif quote:
            current += char
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
            current += char
        elif char == ",":
            parts.append(current.strip())
            current = ""
        else:
            current += char

    parts.append(current.strip())
    return parts


def _parse_argument(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "'\"":
            return raw[1:-1]
        return raw


def parse_function_call(expression: str) -> tuple[str, list[Any]]:
    """Split ``name(arg, arg)`` into the name and decoded arguments."""
    match = _FUNCTION_RE.match(expression.strip())
    if not match:
        raise TemplateResolutionError(f"Invalid function template format: {expression}")
    name, args_text = match.group(1), match.group(2).strip()
    args = [_parse_argument(arg) for arg in _split_arguments(args_text)] if args_text else []
    return name, args


def _resolve_function(expression: str, functions: dict[str, TemplateFunction]) -> Any:
    name, args = parse_function_call(expression)
    function = functions.get(name)
    if not callable(function):
        available = ", ".join(functions)
        raise TemplateResolutionError(
            f"Function not found: {name}. Available functions: {available}"
        )
    logger.debug(f"Calling template function {name} with args {args}")
    try:
        return function(*args)
    except Exception as e:
        raise TemplateResolutionError(f"Function {name} failed: {e}") from e


def resolve_expression(
    expression: TemplateExpression,
    context: TemplateContext,
    functions: dict[str, TemplateFunction] | None = None,
) -> Any:
    """Resolve one parsed expression to its native value.

    Raises TemplateResolutionError when the referenced data is missing.
    """
    if expression.source == "res":
        return _resolve_response(expression.path, context)
    if expression.source == "proc":
        return _resolve_transformation(expression.path, context)
    if expression.source == "param":
        return _resolve_parameter(expression.path, context)
    if expression.source == "env":
        return _resolve_environment(expression.path, context)
    if expression.source == "func":
        if functions is None:
            functions = create_template_functions(context)
        return _resolve_function(expression.path, functions)
    raise TemplateResolutionError(f"Unknown template source: {expression.source}")


def resolve_template_expression(template: Any, context: TemplateContext) -> TemplateResolutionResult:
    """Resolve every expression in *template*.

    Never raises: a failing reference yields ``success=False`` with the
    original template as the value.
    """
    if not has_template_expressions(template):
        return TemplateResolutionResult(value=template, success=True)

    functions = create_template_functions(context)
    typed = False

    def _substitute(match: re.Match[str]) -> str:
        nonlocal typed
        token = match.group(0)
        quoted = token.startswith('"')
        expression = parse_template_expression(token[1:-1] if quoted else token)
        if expression is None:
            logger.debug(f"Leaving invalid template expression as text: {token}")
            return token

        value = resolve_expression(expression, context, functions)
        if quoted:
            typed = True
            return _to_json(value)
        if expression.preserve_type:
            return value if isinstance(value, str) else _to_json(value)
        return stringify_value(value)

    try:
        if _SINGLE_TRIPLE_RE.match(template):
            expression = parse_template_expression(template)
            if expression is None:
                return TemplateResolutionResult(value=template, success=True)
            value = resolve_expression(expression, context, functions)
            return TemplateResolutionResult(value=value, success=True)

        processed = _TOKEN_RE.sub(_substitute, template)
    except TemplateResolutionError as e:
        logger.debug(f"Template resolution failed for {template!r}: {e}")
        return TemplateResolutionResult(value=template, success=False, error=str(e))

    if typed:
        try:
            return TemplateResolutionResult(value=json.loads(processed), success=True)
        except json.JSONDecodeError:
            logger.debug(f"Resolved template is not valid JSON, returning it as text: {processed!r}")

    return TemplateResolutionResult(value=processed, success=True)


def resolve_template(template: Any, context: TemplateContext) -> Any:
    """Strict variant of resolve_template_expression.

    Raises TemplateResolutionError on the first unresolved reference.
    """
    result = resolve_template_expression(template, context)
    if not result.success:
        raise TemplateResolutionError(result.error or "Template resolution failed")
    return result.value


def resolve_template_object(obj: Any, context: TemplateContext) -> Any:
    """Resolve every string inside a JSON-like structure, keys included.

    A string that is exactly one ``{{{...}}}`` token is replaced by the
    native value, so ``{"id": "{{{param:userId}}}"}`` keeps a numeric id.
    """
    if isinstance(obj, str):
        return resolve_template(obj, context)
    if isinstance(obj, dict):
        resolved: dict[Any, Any] = {}
        for key, value in obj.items():
            if isinstance(key, str):
                key = stringify_value(resolve_template(key, context))
            resolved[key] = resolve_template_object(value, context)
        return resolved
    if isinstance(obj, (list, tuple)):
        return [resolve_template_object(item, context) for item in obj]
    return obj
