"""Command-line interface for running and inspecting suites."""

from __future__ import annotations

import json
from pathlib import Path

import typer

app = typer.Typer(name="testpilot", help="Evaluate API test assertions and templates")
schema_app = typer.Typer(name="schema", help="Generate schema tooling")
app.add_typer(schema_app, name="schema")


def _load(config: str):
    """Load a suite config or exit with an error message."""
    import yaml

    from testpilot.config import load_config

    config_path = Path(config)
    if not config_path.exists():
        typer.echo(f"Error: config file not found: {config}", err=True)
        raise typer.Exit(1)

    try:
        return load_config(config_path)
    except (ValueError, yaml.YAMLError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def run(
    config: str = typer.Argument(help="Path to suite YAML config"),
    output_dir: str = typer.Option("runs", help="Output directory for run results"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output to terminal"
    ),
):
    """Run a suite's assertions against its recorded responses."""
    from testpilot.runner import Runner

    suite_config = _load(config)
    runner = Runner(config=suite_config, output_dir=Path(output_dir), verbose=verbose)

    typer.echo(f"Running {len(suite_config.steps)} step(s) of suite '{suite_config.name}'...")
    run_dir = runner.execute()

    typer.echo(f"Run complete: {run_dir}")
    typer.echo(f"JUnit report: {run_dir / 'junit.xml'}")
    if not verbose:
        typer.echo(f"Debug log: {run_dir / 'debug.log'}")

    # Exit with non-zero if any step failed
    if not runner.all_passed:
        raise typer.Exit(1)


@app.command()
def validate(
    config: str = typer.Argument(help="Path to suite YAML config"),
):
    """Check a suite's operators and template expressions without running it."""
    from testpilot.assertions import is_valid_operator, validate_assertion_expected_value

    suite_config = _load(config)

    problems: list[str] = []
    for step in suite_config.steps:
        for assertion in step.assertions:
            where = f"{step.id} / {assertion.id}"
            if not is_valid_operator(assertion.operator):
                problems.append(f"{where}: Unknown operator: {assertion.operator}")
            result = validate_assertion_expected_value(
                assertion.expected_value, assertion.is_template_expression
            )
            if not result.valid:
                problems.append(f"{where}: {result.error}")

    if problems:
        for problem in problems:
            typer.echo(f"  {problem}", err=True)
        typer.echo(f"Error: {len(problems)} problem(s) found in {config}", err=True)
        raise typer.Exit(1)

    n_assertions = sum(len(s.assertions) for s in suite_config.steps)
    typer.echo(
        f"OK: {len(suite_config.steps)} step(s), {n_assertions} assertion(s) in {config}"
    )


@app.command()
def resolve(
    config: str = typer.Argument(help="Path to suite YAML config"),
    template: str = typer.Argument(help="Template string to resolve"),
    as_object: bool = typer.Option(
        False, "--object", help="Parse TEMPLATE as JSON and resolve every string in it"
    ),
):
    """Resolve a template against a suite's parameters and recorded responses."""
    from testpilot.template import (
        TemplateResolutionError,
        create_template_context,
        resolve_template_expression,
        resolve_template_object,
    )

    suite_config = _load(config)
    context = create_template_context(
        responses={s.id: s.response.body for s in suite_config.steps},
        transformed_data={s.id: s.transformations for s in suite_config.steps},
        parameters=suite_config.parameters,
        environment=suite_config.environment,
    )

    if as_object:
        try:
            document = json.loads(template)
        except json.JSONDecodeError as e:
            typer.echo(f"Error: TEMPLATE is not valid JSON: {e}", err=True)
            raise typer.Exit(1)
        try:
            value = resolve_template_object(document, context)
        except TemplateResolutionError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)
    else:
        result = resolve_template_expression(template, context)
        if not result.success:
            typer.echo(f"Error: {result.error}", err=True)
            raise typer.Exit(1)
        value = result.value

    typer.echo(json.dumps(value, indent=2, ensure_ascii=False, default=str))


@app.command()
def operators():
    """List the registered assertion operators."""
    from testpilot.assertions import get_all_operators

    for name in get_all_operators():
        typer.echo(name)


@app.command()
def init(
    dir: str = typer.Option(
        "testpilot", "--dir", help="Directory to initialize the suite project in"
    ),
):
    """Initialize a new suite project with an example config."""
    project_dir = Path(dir)

    # Create the project directory if it doesn't exist
    if not project_dir.exists():
        project_dir.mkdir(parents=True, exist_ok=True)

    example = project_dir / "suite.yaml"
    if example.exists():
        typer.echo(f"suite.yaml already exists in {dir}, skipping.")
        return

    example.write_text("""\
name: hello-api
parameters:
  userId: 1
steps:
  - id: step1-0
    name: fetch user
    response:
      status_code: 200
      headers:
        Content-Type: application/json
      body:
        id: 1
        name: Ada
      response_time: 42
    assertions:
      - id: status-ok
        assertion_type: status_code
        operator: equals
        expected_value: 200
      - id: same-user
        assertion_type: json_body
        data_id: $.id
        operator: equals
        expected_value: "{{{param:userId}}}"
        is_template_expression: true
""")

    typer.echo(f"Initialized suite project in {dir}:")
    typer.echo("  suite.yaml       - example suite config")


@schema_app.command("generate")
def schema_generate(
    dir: str = typer.Option(
        "testpilot", "--dir", help="Project directory for default schema/doc outputs"
    ),
    out: str | None = typer.Option(
        None,
        help="Output path for JSON Schema (defaults to <dir>/schemas/testpilot.schema.json)",
    ),
    doc: str | None = typer.Option(
        None, help="Output path for schema docs (defaults to <dir>/docs/schema.md)"
    ),
):
    """Generate JSON Schema and docs for the suite YAML format."""
    from testpilot.schema import write_json_schema, write_schema_doc

    project_dir = Path(dir)
    out_path = (
        Path(out)
        if out is not None
        else project_dir / "schemas" / "testpilot.schema.json"
    )
    doc_path = Path(doc) if doc is not None else project_dir / "docs" / "schema.md"
    write_json_schema(out_path)
    write_schema_doc(doc_path)
    typer.echo(f"Wrote schema: {out_path}")
    typer.echo(f"Wrote docs: {doc_path}")
