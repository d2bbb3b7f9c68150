"""Helpers that assemble a TemplateContext from flow-runner state."""

from __future__ import annotations

from typing import Any, Mapping

from testpilot.template.types import TemplateContext, TemplateFunction


def create_template_context(
    responses: Mapping[str, Any] | None = None,
    transformed_data: Mapping[str, Mapping[str, Any]] | None = None,
    parameters: Mapping[str, Any] | None = None,
    functions: Mapping[str, TemplateFunction] | None = None,
    environment: Mapping[str, Any] | None = None,
) -> TemplateContext:
    """Build a context from the runner's stored responses and transformations.

    The mappings are copied one level deep so later writes by the runner do
    not leak into a context that is already in use.
    """
    return TemplateContext(
        responses=dict(responses or {}),
        transformed_data={key: dict(value) for key, value in (transformed_data or {}).items()},
        parameters=dict(parameters or {}),
        environment=dict(environment) if environment is not None else None,
        functions=dict(functions) if functions is not None else None,
    )


def create_template_context_from_maps(
    responses: Mapping[str, Any],
    transformed_data: Mapping[str, Any],
    parameters: Mapping[str, Any],
) -> TemplateContext:
    """Build a context from loosely typed maps, dropping non-mapping transformations."""
    return TemplateContext(
        responses=dict(responses),
        transformed_data={
            key: dict(value) for key, value in transformed_data.items() if isinstance(value, Mapping)
        },
        parameters=dict(parameters),
    )
