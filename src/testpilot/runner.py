"""Replay a suite of recorded responses and record per-step results."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from testpilot.assertions import AssertionResult, run_assertions
from testpilot.config import StepConfig, SuiteConfig
from testpilot.template import TemplateContext, create_template_context
from testpilot.template.types import TemplateFunction
from testpilot.verbose import setup_logger


@dataclass
class StepResult:
    step_id: str
    name: str
    passed: bool
    skipped: bool = False
    results: list[AssertionResult] = field(default_factory=list)
    failure_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "step_id": self.step_id,
            "name": self.name,
            "passed": self.passed,
            "skipped": self.skipped,
            "results": [r.to_dict() for r in self.results],
            "failure_message": self.failure_message,
        }


class Runner:
    """Replays a suite's recorded responses through its assertions."""

    def __init__(
        self,
        config: SuiteConfig,
        output_dir: Path,
        verbose: bool = False,
        functions: Mapping[str, TemplateFunction] | None = None,
    ):
        self.config = config
        self.output_dir = output_dir
        self.verbose = verbose
        self.functions = dict(functions) if functions else None
        self.results: list[StepResult] = []

    @property
    def all_passed(self) -> bool:
        return all(r.passed or r.skipped for r in self.results)

    def execute(self) -> Path:
        """Run every step of the suite in order. Returns the run directory."""
        run_id = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H%M%S")
        run_dir = self.output_dir / run_id
        run_dir.mkdir(parents=True, exist_ok=True)

        # note: logger name must be unique per run to avoid handler collision
        logger = setup_logger(
            run_dir / "debug.log",
            verbose=self.verbose,
            logger_name=f"testpilot_{self.config.name}_{uuid.uuid4().hex[:8]}",
        )
        logger.info(f"Starting suite '{self.config.name}' ({len(self.config.steps)} step(s))")

        responses: dict[str, Any] = {}
        transformed_data: dict[str, dict[str, Any]] = {}
        self.results = []
        halted = False

        try:
            for index, step in enumerate(self.config.steps, start=1):
                if halted:
                    result = StepResult(
                        step_id=step.id, name=step.label, passed=False, skipped=True
                    )
                    logger.info(f"Skipping step '{step.id}' after an earlier failure")
                else:
                    responses[step.id] = step.response.body
                    transformed_data[step.id] = dict(step.transformations)
                    context = create_template_context(
                        responses=responses,
                        transformed_data=transformed_data,
                        parameters=self.config.parameters,
                        functions=self.functions,
                        environment=self.config.environment,
                    )
                    result = self._run_step(step, context, logger)
                    if not result.passed and self.config.stop_on_error:
                        halted = True

                self.results.append(result)
                self._print_progress(index, result)

            self._write_results(run_dir)
            logger.info(
                f"Suite '{self.config.name}' finished: "
                f"{sum(1 for r in self.results if r.passed)}/{len(self.results)} step(s) passed"
            )
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

        return run_dir

    def _run_step(
        self, step: StepConfig, context: TemplateContext, logger: logging.Logger
    ) -> StepResult:
        logger.debug(f"Running step '{step.id}' with {len(step.assertions)} assertion(s)")

        outcome = run_assertions(
            step.assertions,
            step.response,
            step.response.body,
            transformed_data=step.transformations or None,
            response_time=step.response.response_time,
            template_context=context,
            logger=logger,
        )

        n_passed = sum(1 for r in outcome.results if r.passed)
        logger.debug(
            f"Step '{step.id}' completed: {n_passed}/{len(outcome.results)} assertions passed"
        )
        return StepResult(
            step_id=step.id,
            name=step.label,
            passed=outcome.passed,
            results=outcome.results,
            failure_message=outcome.failure_message,
        )

    def _print_progress(self, index: int, result: StepResult) -> None:
        total = len(self.config.steps)
        if result.skipped:
            status = "SKIP"
        else:
            status = "PASS" if result.passed else "FAIL"
        n_passed = sum(1 for r in result.results if r.passed)
        label = result.step_id if result.name == result.step_id else f"{result.step_id} ({result.name})"
        line = f"  [{index}/{total}] {status}  {label} ({n_passed}/{len(result.results)} assertions)"
        if result.failure_message:
            line += f"\n      {result.failure_message}"
        print(line)

    def _write_results(self, run_dir: Path) -> None:
        """Write junit.xml and meta.yaml to the run directory."""
        from testpilot.reporting.junit import write_junit

        write_junit(run_dir, self.config.name, self.results)

        try:
            import importlib.metadata

            testpilot_version = importlib.metadata.version("testpilot")
        except Exception:
            testpilot_version = "unknown"

        meta: dict[str, Any] = {
            "run_id": run_dir.name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "suite": self.config.name,
            "steps": [s.id for s in self.config.steps],
            "stop_on_error": self.config.stop_on_error,
            "passed": self.all_passed,
            "testpilot_version": testpilot_version,
        }

        (run_dir / "meta.yaml").write_text(yaml.dump(meta, default_flow_style=False))
