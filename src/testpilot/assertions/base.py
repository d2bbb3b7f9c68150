"""Base data structures for the assertion system."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

AssertionDataSource = Literal["response", "transformed_data"]

AssertionType = Literal["status_code", "response_time", "header", "json_body"]

AssertionOperator = Literal[
    "equals",
    "not_equals",
    "contains",
    "exists",
    "greater_than",
    "less_than",
    "starts_with",
    "ends_with",
    "matches_regex",
    "not_contains",
    "is_empty",
    "is_not_empty",
    "greater_than_or_equal",
    "less_than_or_equal",
    "between",
    "not_between",
    "has_length",
    "length_greater_than",
    "length_less_than",
    "contains_all",
    "contains_any",
    "not_contains_any",
    "one_of",
    "not_one_of",
    "is_type",
    "is_null",
    "is_not_null",
]


class Assertion(BaseModel):
    """A declarative check on one value of an endpoint response.

    ``operator`` is a plain string so that operators registered at runtime
    can be used; unknown names are reported when the assertion is evaluated.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    data_source: AssertionDataSource = "response"
    assertion_type: AssertionType
    data_id: str = ""
    operator: str
    expected_value: Any = None
    enabled: bool = True
    is_template_expression: bool = False


@dataclass
class AssertionResult:
    """Result of evaluating a single assertion.

    Attributes:
        passed: Whether the operator accepted the actual value.
        actual_value: Value extracted from the response or transformed data.
        expected_value: Expected value after template resolution.
        original_expected_value: Expected value before template resolution.
            Set only for templated assertions, even when resolution failed.
        message: Human-readable summary of the check.
        error: Why the check could not be performed. Implies ``passed`` is
            False.
    """

    passed: bool
    actual_value: Any
    expected_value: Any
    original_expected_value: Any = None
    message: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AssertionRunResult:
    """Outcome of a fail-fast run over an endpoint's assertions."""

    passed: bool
    results: list[AssertionResult] = field(default_factory=list)
    failure_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "results": [r.to_dict() for r in self.results],
            "failure_message": self.failure_message,
        }


@dataclass
class ValidationResult:
    valid: bool
    error: str | None = None
