from __future__ import annotations

import pytest
from junitparser import Error, Failure, JUnitXml, Skipped

from testpilot.assertions import AssertionResult
from testpilot.reporting.junit import write_junit
from testpilot.runner import StepResult


@pytest.fixture
def step_results() -> list[StepResult]:
    return [
        StepResult(
            step_id="step1-0",
            name="create pet",
            passed=True,
            results=[
                AssertionResult(
                    passed=True,
                    actual_value=200,
                    expected_value=200,
                    message="Assertion passed: status_code  equals 200",
                ),
                AssertionResult(
                    passed=True,
                    actual_value="doggie",
                    expected_value="doggie",
                    message='Assertion passed: json_body $.name equals "doggie"',
                ),
            ],
        ),
        StepResult(
            step_id="step2-0",
            name="step2-0",
            passed=False,
            results=[
                AssertionResult(
                    passed=False,
                    actual_value=1,
                    expected_value=2,
                    message="Assertion failed: json_body $.id equals 2, actual value: 1",
                ),
            ],
            failure_message="Assertion failed: json_body $.id equals 2, actual value: 1",
        ),
        StepResult(
            step_id="step3-0",
            name="step3-0",
            passed=False,
            results=[
                AssertionResult(
                    passed=False,
                    actual_value=None,
                    expected_value="{{param:x}}",
                    original_expected_value="{{param:x}}",
                    error="Template resolution failed: Parameter not found: x",
                ),
            ],
        ),
        StepResult(step_id="step4-0", name="step4-0", passed=False, skipped=True),
    ]


def _suites(path) -> dict:
    return {s.name: s for s in JUnitXml.fromfile(str(path))}


def test_write_junit_creates_file(tmp_path, step_results):
    path = write_junit(tmp_path, "petstore", step_results)
    assert path == tmp_path / "junit.xml"
    assert path.exists()


def test_one_suite_per_step(tmp_path, step_results):
    suites = _suites(write_junit(tmp_path, "petstore", step_results))
    assert list(suites) == [
        "petstore / step1-0",
        "petstore / step2-0",
        "petstore / step3-0",
        "petstore / step4-0",
    ]


def test_passing_step_cases(tmp_path, step_results):
    suite = _suites(write_junit(tmp_path, "petstore", step_results))["petstore / step1-0"]
    cases = list(suite)
    assert suite.tests == 2
    assert suite.failures == 0
    assert [c.name for c in cases] == [
        "#1 status_code  equals 200",
        '#2 json_body $.name equals "doggie"',
    ]
    assert all(c.classname == "step1-0" for c in cases)
    assert all(not c.result for c in cases)

    props = {p.name: p.value for p in suite.properties()}
    assert props == {"step_name": "create pet"}


def test_failed_assertion_is_failure(tmp_path, step_results):
    suite = _suites(write_junit(tmp_path, "petstore", step_results))["petstore / step2-0"]
    case = next(iter(suite))
    assert suite.failures == 1
    assert isinstance(case.result[0], Failure)
    assert case.result[0].message == "Assertion failed: json_body $.id equals 2, actual value: 1"


def test_errored_assertion_is_error(tmp_path, step_results):
    suite = _suites(write_junit(tmp_path, "petstore", step_results))["petstore / step3-0"]
    case = next(iter(suite))
    assert suite.errors == 1
    assert isinstance(case.result[0], Error)
    assert "Parameter not found: x" in case.result[0].message


def test_skipped_step(tmp_path, step_results):
    suite = _suites(write_junit(tmp_path, "petstore", step_results))["petstore / step4-0"]
    case = next(iter(suite))
    assert suite.skipped == 1
    assert isinstance(case.result[0], Skipped)


def test_empty_results(tmp_path):
    path = write_junit(tmp_path, "empty", [])
    assert list(JUnitXml.fromfile(str(path))) == []
