"""Assertion system for evaluating endpoint responses."""

from testpilot.assertions.base import (
    Assertion,
    AssertionResult,
    AssertionRunResult,
    ValidationResult,
)
from testpilot.assertions.engine import evaluate_assertion, extract_assertion_value, run_assertions
from testpilot.assertions.operators import (
    get_all_operators,
    get_operator,
    is_valid_operator,
    register_operator,
)
from testpilot.assertions.template import (
    resolve_assertion_expected_value,
    validate_assertion_expected_value,
)

__all__ = [
    "Assertion",
    "AssertionResult",
    "AssertionRunResult",
    "ValidationResult",
    "evaluate_assertion",
    "extract_assertion_value",
    "get_all_operators",
    "get_operator",
    "is_valid_operator",
    "register_operator",
    "resolve_assertion_expected_value",
    "run_assertions",
    "validate_assertion_expected_value",
]
