"""Generate JSON Schema and docs for the suite YAML format."""

from __future__ import annotations

import json
from pathlib import Path

from testpilot.assertions.base import Assertion
from testpilot.assertions.operators import get_all_operators
from testpilot.config import RecordedResponse, StepConfig, SuiteConfig
from testpilot.template.functions import DEFAULT_TEMPLATE_FUNCTIONS


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


_DEF_PREFIX = "#/$defs/"


def _model_dependencies(node: object) -> list[str]:
    """Model names a schema node points at, in the order they appear."""
    if isinstance(node, list):
        return [name for item in node for name in _model_dependencies(item)]
    if not isinstance(node, dict):
        return []
    found = []
    ref = node.get("$ref")
    if isinstance(ref, str) and ref.startswith(_DEF_PREFIX):
        found.append(ref[len(_DEF_PREFIX):])
    for value in node.values():
        found.extend(_model_dependencies(value))
    return found


def _dependencies_first(defs: dict[str, dict]) -> dict[str, dict]:
    """Reorder *defs* so a step's assertion and response models come before the step."""
    ordered: dict[str, dict] = {}
    seen: set[str] = set()

    def _place(name: str) -> None:
        if name in seen or name not in defs:
            return
        seen.add(name)
        for dependency in _model_dependencies(defs[name]):
            _place(dependency)
        ordered[name] = defs[name]

    for name in defs:
        _place(name)
    return ordered


def generate_json_schema() -> dict:
    """JSON Schema for a suite file, with nested models listed before their users."""
    schema = SuiteConfig.model_json_schema()
    if "$defs" in schema:
        schema["$defs"] = _dependencies_first(schema["$defs"])
    return schema


def write_json_schema(path: Path) -> None:
    _ensure_parent(path)
    schema = generate_json_schema()
    path.write_text(json.dumps(schema, indent=2) + "\n")


def _field_lines(model: type) -> list[str]:
    lines = []
    for name, info in model.model_fields.items():
        required = "required" if info.is_required() else f"default: {info.default!r}"
        lines.append(f"- `{name}` ({required})")
    return lines


def generate_schema_doc() -> str:
    lines: list[str] = []
    lines.append("# testpilot YAML Schema")
    lines.append("")
    lines.append("This doc is generated from the Pydantic models.")
    lines.append("")
    lines.append("## Suite")
    lines.extend(_field_lines(SuiteConfig))
    lines.append("")
    lines.append("## Step")
    lines.extend(_field_lines(StepConfig))
    lines.append("")
    lines.append("## Recorded response")
    lines.extend(_field_lines(RecordedResponse))
    lines.append("")
    lines.append("## Assertion")
    lines.extend(_field_lines(Assertion))
    lines.append("")
    lines.append("## Operators")
    lines.extend(f"- `{name}`" for name in get_all_operators())
    lines.append("")
    lines.append("## Template sources")
    lines.append("- `{{res:<step id>.<path>}}`: a previous step's response body")
    lines.append("- `{{proc:<step id>.<alias>.<path>}}`: a step's transformed data")
    lines.append("- `{{param:<name>}}`: a suite parameter")
    lines.append("- `{{env:<name>}}`: a suite environment value")
    lines.append("- `{{func:<name>(<args>)}}`: a template function")
    lines.append("")
    lines.append("Triple braces (`{{{...}}}`) keep the resolved value's type.")
    lines.append("")
    lines.append("## Template functions")
    lines.extend(f"- `{name}`" for name in DEFAULT_TEMPLATE_FUNCTIONS)
    lines.append("")
    return "\n".join(lines)


def write_schema_doc(path: Path) -> None:
    _ensure_parent(path)
    path.write_text(generate_schema_doc())
