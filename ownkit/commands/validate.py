"""Validate command implementation."""

import asyncio
import json
import sys
from pathlib import Path

import click

from ownkit import load_config, setup_logging
from ownkit.errors import ConfigError, ConfigNotInitializedError, describe
from ownkit.validator import ValidationResult, validate_project

from .utils import EXIT_FAILURE, cwd_option


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.option("--typecheck", is_flag=True, help="Also run 'npx tsc --noEmit' and report type errors")
@cwd_option
@click.pass_context
def validate(ctx, as_json: bool, typecheck: bool, cwd: Path):
    """Check the installed tree for broken imports and missing files."""
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    setup_logging(debug)
    project_root = Path(cwd).resolve()

    try:
        config = load_config(project_root)
    except ConfigError as e:
        _report_setup_problem(as_json, "CONFIG_ERROR", describe(e), str(e))
        sys.exit(EXIT_FAILURE)
    if config is None:
        error = ConfigNotInitializedError(project_root)
        _report_setup_problem(as_json, "NO_CONFIG", describe(error), "Run 'ownkit init' first")
        sys.exit(EXIT_FAILURE)

    result = asyncio.run(validate_project(config, project_root, typecheck=typecheck))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        display_result(result, len(config.installed_components), len(config.installed_lib))

    if not result.valid:
        sys.exit(EXIT_FAILURE)


def _report_setup_problem(as_json: bool, code: str, message: str, suggestion: str) -> None:
    if as_json:
        payload = ValidationResult(suggestions=[suggestion]).to_dict()
        payload["valid"] = False
        payload["errors"] = [{"file": "ownkit.json", "message": message, "code": code, "line": None}]
        click.echo(json.dumps(payload, indent=2))
    else:
        click.echo(message, err=True)


def display_result(result: ValidationResult, component_count: int, lib_count: int) -> None:
    if not result.errors and not result.warnings:
        click.secho("✅ ownkit installation is valid", fg="green")
        click.echo(f"   {component_count} component(s) installed")
        click.echo(f"   {lib_count} lib module(s) installed")
        return

    if result.errors:
        click.secho(f"\n❌ Found {len(result.errors)} error(s):\n", fg="red")
        for error in result.errors:
            location = f":{error.line}" if error.line else ""
            click.secho(f"  ✗ {error.file}{location}", fg="red")
            click.echo(f"    {error.message}")

    if result.warnings:
        click.secho(f"\n⚠️  Found {len(result.warnings)} warning(s):\n", fg="yellow")
        for warning in result.warnings:
            click.secho(f"  ⚠ {warning.file}", fg="yellow")
            click.echo(f"    {warning.message}")

    if result.suggestions:
        click.secho("\n💡 Suggestions:\n", fg="cyan")
        for i, suggestion in enumerate(result.suggestions, 1):
            click.secho(f"  {i}. {suggestion}", fg="cyan")
    click.echo("")
