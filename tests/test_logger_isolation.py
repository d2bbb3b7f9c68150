"""Test logger isolation to prevent debug.log mixing between runs."""

from __future__ import annotations

from pathlib import Path

import pytest

from testpilot.runner import Runner
from testpilot.config import SuiteConfig
from testpilot.verbose import setup_logger


def test_unique_logger_names_create_separate_instances(tmp_path: Path):
    """Test that different logger names create independent logger instances."""
    log1 = tmp_path / "run1.log"
    log2 = tmp_path / "run2.log"

    logger1 = setup_logger(log1, verbose=False, logger_name="testpilot_run1")
    logger2 = setup_logger(log2, verbose=False, logger_name="testpilot_run2")

    assert logger1 is not logger2

    logger1.debug("Message from run1")
    logger2.debug("Message from run2")

    log1_content = log1.read_text()
    log2_content = log2.read_text()

    assert "Message from run1" in log1_content
    assert "Message from run2" not in log1_content

    assert "Message from run2" in log2_content
    assert "Message from run1" not in log2_content


def test_same_logger_name_raises_error(tmp_path: Path):
    """Test that reusing the same logger name raises RuntimeError."""
    logger1 = setup_logger(tmp_path / "log1.log", verbose=False, logger_name="testpilot_shared_test")
    logger1.debug("First message")

    with pytest.raises(RuntimeError) as exc_info:
        setup_logger(tmp_path / "log2.log", verbose=False, logger_name="testpilot_shared_test")

    error_msg = str(exc_info.value)
    assert "testpilot_shared_test" in error_msg
    assert "already exists" in error_msg


def test_runs_of_the_same_suite_keep_separate_logs(tmp_path: Path):
    """Two runners of one suite must not write into each other's debug.log."""
    config = SuiteConfig(
        name="iso",
        steps=[{"id": "step1-0", "response": {"status_code": 200}}],
    )
    run_a = Runner(config=config, output_dir=tmp_path / "a").execute()
    run_b = Runner(config=config, output_dir=tmp_path / "b").execute()

    log_a = (run_a / "debug.log").read_text()
    log_b = (run_b / "debug.log").read_text()
    assert log_a.count("Starting suite 'iso'") == 1
    assert log_b.count("Starting suite 'iso'") == 1
