"""Evaluate assertions against endpoint responses."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping, Protocol

from testpilot import jsonpath
from testpilot.assertions.base import Assertion, AssertionResult, AssertionRunResult
from testpilot.assertions.operators import get_operator
from testpilot.assertions.template import resolve_assertion_expected_value
from testpilot.template import TemplateContext, stringify_value

_logger = logging.getLogger(__name__)


class ResponseLike(Protocol):
    status_code: int

    @property
    def headers(self) -> Mapping[str, Any]: ...


def _json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def _coerce(assertion: Assertion | Mapping[str, Any]) -> Assertion:
    if isinstance(assertion, Assertion):
        return assertion
    return Assertion.model_validate(dict(assertion))


def evaluate_assertion(
    assertion: Assertion | Mapping[str, Any],
    actual_value: Any,
    template_context: TemplateContext | None = None,
    *,
    logger: logging.Logger | None = None,
) -> AssertionResult:
    """Evaluate one assertion against an already extracted value.

    Never raises for data problems: template failures, unknown operators and
    operator exceptions all come back as a failing result. So does a mapping
    that is not a valid assertion.
    """
    log = logger or _logger
    try:
        assertion = _coerce(assertion)
    except ValueError as e:
        log.debug(f"Invalid assertion: {e}")
        return AssertionResult(
            passed=False,
            actual_value=actual_value,
            expected_value=assertion.get("expected_value"),
            message=f"Error evaluating assertion: {e}",
        )
    templated = assertion.is_template_expression
    original = assertion.expected_value if templated else None
    expected = assertion.expected_value

    try:
        if templated and template_context is not None:
            resolution = resolve_assertion_expected_value(expected, template_context)
            if not resolution.success:
                log.debug(f"Assertion {assertion.id}: template resolution failed: {resolution.error}")
                return AssertionResult(
                    passed=False,
                    actual_value=actual_value,
                    expected_value=resolution.value,
                    original_expected_value=original,
                    error=f"Template resolution failed: {resolution.error}",
                )
            expected = resolution.value

        operator = get_operator(assertion.operator)
        passed = bool(operator(actual_value, expected))
    except Exception as e:
        log.debug(f"Assertion {assertion.id}: evaluation error: {e}")
        return AssertionResult(
            passed=False,
            actual_value=actual_value,
            expected_value=assertion.expected_value,
            original_expected_value=original,
            message=f"Error evaluating assertion: {e}",
        )

    if templated:
        shown = f"{stringify_value(original)} → {_json(expected)}"
    else:
        shown = _json(expected)
    summary = f"{assertion.assertion_type} {assertion.data_id} {assertion.operator} {shown}"
    if passed:
        message = f"Assertion passed: {summary}"
    else:
        message = f"Assertion failed: {summary}, actual value: {_json(actual_value)}"
    log.debug(message)

    return AssertionResult(
        passed=passed,
        actual_value=actual_value,
        expected_value=expected,
        original_expected_value=original,
        message=message,
    )


def _header(headers: Mapping[str, Any], name: str) -> Any:
    if name in headers:
        return headers[name]
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def extract_assertion_value(
    assertion: Assertion | Mapping[str, Any],
    response: ResponseLike,
    response_data: Any,
    transformed_data: Mapping[str, Any] | None = None,
    response_time: float = 0.0,
) -> Any:
    """Pick the value an assertion checks out of a response.

    Raises:
        ValueError: For an unknown assertion type or a failed JSONPath lookup.
    """
    assertion = _coerce(assertion)
    if assertion.data_source == "transformed_data" and transformed_data:
        source = transformed_data
    else:
        source = response_data

    kind = assertion.assertion_type
    if kind == "status_code":
        return response.status_code
    if kind == "response_time":
        return response_time
    if kind == "header":
        return _header(response.headers, assertion.data_id)
    if kind == "json_body":
        try:
            return jsonpath.extract(source, assertion.data_id)
        except Exception as e:
            raise ValueError(f"Failed to evaluate JSONPath: {e}") from e
    raise ValueError(f"Unknown assertion type: {kind}")


def run_assertions(
    assertions: Iterable[Assertion | Mapping[str, Any]],
    response: ResponseLike,
    response_data: Any,
    transformed_data: Mapping[str, Any] | None = None,
    response_time: float = 0.0,
    template_context: TemplateContext | None = None,
    *,
    logger: logging.Logger | None = None,
) -> AssertionRunResult:
    """Run the enabled assertions in order, stopping at the first failure."""
    log = logger or _logger
    results: list[AssertionResult] = []

    for raw in assertions:
        try:
            assertion = _coerce(raw)
        except ValueError as e:
            message = f"Error extracting assertion value: {e}"
            log.info(f"Assertion {raw.get('id')}: {message}")
            results.append(
                AssertionResult(
                    passed=False,
                    actual_value=None,
                    expected_value=raw.get("expected_value"),
                    message=message,
                )
            )
            return AssertionRunResult(passed=False, results=results, failure_message=message)
        if not assertion.enabled:
            continue

        try:
            actual = extract_assertion_value(
                assertion, response, response_data, transformed_data, response_time
            )
        except ValueError as e:
            message = f"Error extracting assertion value: {e}"
            log.info(f"Assertion {assertion.id}: {message}")
            results.append(
                AssertionResult(
                    passed=False,
                    actual_value=None,
                    expected_value=assertion.expected_value,
                    original_expected_value=(
                        assertion.expected_value if assertion.is_template_expression else None
                    ),
                    message=message,
                )
            )
            return AssertionRunResult(passed=False, results=results, failure_message=message)

        result = evaluate_assertion(assertion, actual, template_context, logger=log)
        results.append(result)
        if not result.passed:
            failure = result.message or result.error
            log.info(f"Assertion {assertion.id} failed: {failure}")
            return AssertionRunResult(passed=False, results=results, failure_message=failure)

    return AssertionRunResult(passed=True, results=results)
