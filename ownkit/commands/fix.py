"""Fix command implementation."""

import sys
from pathlib import Path

import click

from ownkit import format_suggestion, setup_logging
from ownkit.errors import OwnkitError
from ownkit.fixer import FixAction, Fixer
from ownkit.prompts import confirm_fixes, is_interactive

from .utils import EXIT_INVALID_ARGS, cwd_option, fail, require_config


def _describe(action: FixAction) -> str:
    location = f"{action.file}:{action.line}" if action.line else action.file
    return f"{location} [{action.code}] {action.description}"


@click.command()
@click.option("--dry-run", "-n", is_flag=True, help="Show what would be fixed without writing")
@click.option("--yes", "-y", is_flag=True, help="Apply fixes without asking")
@cwd_option
@click.pass_context
def fix(ctx, dry_run: bool, yes: bool, cwd: Path):
    """Repair common problems in installed components."""
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    setup_logging(debug)
    project_root = Path(cwd).resolve()
    try:
        config = require_config(project_root)
    except OwnkitError as e:
        fail(e)

    fixer = Fixer(config, project_root)
    plan = fixer.plan()

    if not plan.actions:
        click.secho("✅ No issues found!", fg="green")
        return

    if plan.fixed:
        click.secho("Would fix:" if dry_run else "Fixes:", bold=True)
        for action in plan.fixed:
            click.echo(f"   ✓ {_describe(action)}")
    if plan.skipped:
        click.secho("Needs manual attention:", fg="yellow", bold=True)
        for action in plan.skipped:
            click.echo(f"   ⏭ {_describe(action)}")

    if plan.changes and not dry_run:
        if not yes:
            if not is_interactive():
                click.echo(format_suggestion("fixes not applied", "re-run with --yes or --dry-run"), err=True)
                sys.exit(EXIT_INVALID_ARGS)
            if not confirm_fixes(len(plan.changes)):
                click.echo("Cancelled.")
                return
        written = fixer.apply(plan)
        click.echo(f"\nRewrote {len(written)} file(s).")

    click.secho("\nFix Summary", bold=True)
    verb = "fixable" if dry_run else "fixed"
    click.echo(f"   {len(plan.fixed)} {verb}, {len(plan.skipped)} skipped")
    if dry_run and plan.changes:
        click.echo("Run without --dry-run to apply these fixes.")
