"""Pytest configuration and fixtures."""

import logging

import pytest

from testpilot.template import TemplateContext, create_template_context


@pytest.fixture(autouse=True)
def cleanup_loggers():
    """Clean up testpilot run loggers after each test to prevent name collisions."""
    yield

    # Remove all per-run loggers from registry
    loggers_to_remove = [
        name
        for name in logging.Logger.manager.loggerDict.keys()
        if name.startswith("testpilot_")
    ]

    for name in loggers_to_remove:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
        del logging.Logger.manager.loggerDict[name]


@pytest.fixture
def template_context() -> TemplateContext:
    """Context with one recorded step, its transformations, parameters and env."""
    return create_template_context(
        responses={
            "step1-0": {
                "id": 123,
                "name": "Ada",
                "tags": ["a", "b"],
                "active": True,
                "meta": {"k": "v"},
                "score": 1.5,
                "nothing": None,
            }
        },
        transformed_data={
            "step1-0": {"userId": 123, "profile": {"email": "ada@example.com"}}
        },
        parameters={"userId": 42, "env": "staging"},
        environment={"API_KEY": "secret"},
    )
