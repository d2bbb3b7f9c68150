"""Template expression engine for test flows."""

from testpilot.template.context import create_template_context, create_template_context_from_maps
from testpilot.template.engine import (
    has_template_expressions,
    parse_template_expression,
    resolve_template,
    resolve_template_expression,
    resolve_template_object,
    stringify_value,
)
from testpilot.template.functions import DEFAULT_TEMPLATE_FUNCTIONS, create_template_functions
from testpilot.template.types import (
    TemplateContext,
    TemplateExpression,
    TemplateResolutionError,
    TemplateResolutionResult,
)

__all__ = [
    "DEFAULT_TEMPLATE_FUNCTIONS",
    "TemplateContext",
    "TemplateExpression",
    "TemplateResolutionError",
    "TemplateResolutionResult",
    "create_template_context",
    "create_template_context_from_maps",
    "create_template_functions",
    "has_template_expressions",
    "parse_template_expression",
    "resolve_template",
    "resolve_template_expression",
    "resolve_template_object",
    "stringify_value",
]
