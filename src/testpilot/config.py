"""Suite YAML models and loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from expandvars import expandvars
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from testpilot.assertions.base import Assertion


class RecordedResponse(BaseModel):
    """An endpoint response captured by the host application."""

    model_config = ConfigDict(extra="forbid")
    status_code: int = 200
    headers: dict[str, str] = {}
    body: Any = None
    response_time: float = Field(default=0.0, ge=0)

    @field_validator("headers", mode="before")
    @classmethod
    def stringify_header_values(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {
                name: value if isinstance(value, str) else str(value)
                for name, value in v.items()
            }
        return v


class StepConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: str
    name: str | None = None
    response: RecordedResponse
    transformations: dict[str, Any] = {}
    assertions: list[Assertion] = []

    @field_validator("id")
    @classmethod
    def id_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("step id must not be empty")
        if "." in v:
            raise ValueError(f"step id '{v}' must not contain a dot")
        return v

    @property
    def label(self) -> str:
        return self.name or self.id


class SuiteConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str
    parameters: dict[str, Any] = {}
    environment: dict[str, Any] | None = None
    stop_on_error: bool = True
    steps: list[StepConfig]

    @field_validator("steps")
    @classmethod
    def steps_must_not_be_empty(cls, v: list[StepConfig]) -> list[StepConfig]:
        if not v:
            raise ValueError("steps must not be empty")
        return v

    @model_validator(mode="after")
    def step_ids_must_be_unique(self) -> SuiteConfig:
        seen: set[str] = set()
        duplicates: list[str] = []
        for step in self.steps:
            if step.id in seen and step.id not in duplicates:
                duplicates.append(step.id)
            seen.add(step.id)
        if duplicates:
            raise ValueError(f"duplicate step ids: {', '.join(duplicates)}")
        return self

    @model_validator(mode="after")
    def expand_environment(self) -> SuiteConfig:
        """Expand ${VAR} references in environment values.

        Raises ValueError listing every variable that is unset and has no
        default, so they can all be fixed at once.
        """
        if not self.environment:
            return self

        missing: list[str] = []
        expanded: dict[str, Any] = {}
        for key, value in self.environment.items():
            if not isinstance(value, str):
                expanded[key] = value
                continue
            try:
                expanded[key] = expandvars(value, nounset=True)
            except Exception:
                # Variable is missing and has no default
                missing.append(f"  {key}={value}")

        if missing:
            details = "\n".join(missing)
            raise ValueError(
                f"Suite '{self.name}' has missing environment variables:\n{details}"
            )

        self.environment = expanded
        return self


def load_config(path: Path) -> SuiteConfig:
    """Load and validate a suite config from a YAML file."""
    with open(path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")

    return SuiteConfig(**raw)
