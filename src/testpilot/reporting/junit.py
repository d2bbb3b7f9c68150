"""JUnit XML output for suite runs."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from junitparser import Error, Failure, JUnitXml, Skipped, TestCase, TestSuite

if TYPE_CHECKING:
    from testpilot.runner import StepResult


def _case_name(index: int, result) -> str:
    message = result.message or result.error or ""
    # Drop the "Assertion passed: " style prefix, keep the description
    _, sep, description = message.partition(": ")
    return f"#{index + 1} {description if sep else message}".strip()


def write_junit(run_dir: Path, suite_name: str, step_results: list[StepResult]) -> Path:
    """Write junit.xml with one test suite per step, return path."""
    xml = JUnitXml()

    for step in step_results:
        suite = TestSuite(f"{suite_name} / {step.step_id}")
        if step.name != step.step_id:
            suite.add_property("step_name", step.name)

        if step.skipped:
            case = TestCase("skipped")
            case.classname = step.step_id
            case.result = [Skipped("Step skipped after an earlier failure")]
            suite.add_testcase(case)
        else:
            for index, result in enumerate(step.results):
                case = TestCase(_case_name(index, result))
                case.classname = step.step_id
                if result.error:
                    case.result = [Error(result.error)]
                elif not result.passed:
                    case.result = [Failure(result.message or "")]
                suite.add_testcase(case)

        # Use append (not +=) to preserve properties
        xml.append(suite)

    junit_path = run_dir / "junit.xml"
    xml.write(str(junit_path), pretty=True)
    return junit_path
