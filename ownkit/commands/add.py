"""Add command implementation."""

import asyncio
import logging
import shlex
import sys
from pathlib import Path

import click

from ownkit import format_error, format_suggestion, save_config, setup_logging
from ownkit.errors import OwnkitError
from ownkit.index_generator import IndexGenerator
from ownkit.installer import (
    BatchReport,
    Installer,
    InstallStatus,
    ItemKind,
    detect_package_manager,
    find_missing_packages,
    install_command,
    install_packages,
    plan_install,
    render_plan,
    resolve,
)
from ownkit.prompts import (
    confirm_dependency_install,
    confirm_overwrite,
    is_interactive,
    select_components_interactive,
)
from ownkit.registry import Registry

from .utils import (
    EXIT_FAILURE,
    EXIT_INVALID_ARGS,
    EXIT_SUCCESS,
    cwd_option,
    fail,
    open_registry,
    registry_option,
    require_config,
)

_logging = logging.getLogger(__name__)


@click.command()
@click.argument("names", nargs=-1)
@click.option("--category", default=None, help="Add every component in a category")
@click.option("--all", "all_components", is_flag=True, help="Add every component in the registry")
@click.option("--overwrite", "-o", is_flag=True, help="Replace components that are already installed")
@click.option("--dry-run", "-n", is_flag=True, help="Show what would be installed without writing")
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Never prompt: skip installed components and install missing npm packages",
)
@click.option("--with-api", is_flag=True, help="Also install the registry's API lib modules")
@cwd_option
@registry_option
@click.pass_context
def add(
    ctx,
    names: tuple[str, ...],
    category: str | None,
    all_components: bool,
    overwrite: bool,
    dry_run: bool,
    yes: bool,
    with_api: bool,
    cwd: Path,
    registry_path: Path | None,
):
    """Copy components and their dependencies into the project."""
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    setup_logging(debug)
    try:
        exit_code = run_add(
            names, category, all_components, overwrite, dry_run, yes, with_api, cwd, registry_path
        )
    except OwnkitError as e:
        fail(e)
    if exit_code != EXIT_SUCCESS:
        sys.exit(exit_code)


def select_targets(
    registry: Registry,
    names: tuple[str, ...],
    category: str | None,
    all_components: bool,
) -> list[str] | None:
    """Pick the requested names: explicit names, then category, then all."""
    if names:
        return list(names)
    if category:
        if category not in registry.category_names() and not registry.components_in_category(category):
            return None
        return [c.name for c in registry.components_in_category(category)]
    if all_components:
        return [c.name for c in registry.components]
    return []


def run_add(
    names: tuple[str, ...],
    category: str | None,
    all_components: bool,
    overwrite: bool,
    dry_run: bool,
    yes: bool,
    with_api: bool,
    cwd: Path,
    registry_path: Path | None,
) -> int:
    project_root = Path(cwd).resolve()
    config = require_config(project_root)
    registry = open_registry(registry_path)
    interactive = is_interactive() and not yes

    selection_given = bool(names or category or all_components or with_api)
    requested = select_targets(registry, names, category, all_components)
    if requested is None:
        available = ", ".join(registry.category_names()) or "none"
        click.echo(format_suggestion(f"category '{category}' not found", f"available: {available}"), err=True)
        return EXIT_INVALID_ARGS
    if not selection_given:
        if not interactive:
            click.echo(
                format_suggestion("no components given", "pass component names, --category NAME or --all"),
                err=True,
            )
            return EXIT_INVALID_ARGS
        requested = select_components_interactive(registry, config)
        if requested is None:
            click.echo("Cancelled.")
            return EXIT_SUCCESS
    if not requested and not with_api:
        click.echo("Nothing selected.")
        return EXIT_SUCCESS

    extra_lib = None
    if with_api:
        if registry.api_lib:
            extra_lib = registry.api_lib
        else:
            click.secho("⚠️  Registry declares no API lib modules; --with-api ignored", fg="yellow")

    if dry_run:
        report = plan_install(requested, registry, config, project_root, overwrite=overwrite, extra_lib=extra_lib)
        click.echo(render_plan(report))
        return EXIT_SUCCESS

    installer = Installer(registry, config, project_root)
    report = resolve(
        requested,
        registry,
        config,
        installer,
        overwrite=overwrite,
        interactive=interactive,
        confirm_overwrite=confirm_overwrite if interactive else None,
        extra_lib=extra_lib,
    )

    if report.changed:
        save_config(project_root, config)
        index = IndexGenerator(registry, config, project_root).generate()
        report.warnings.extend(index.warnings)
        _logging.debug(f"Index has {len(index.exports)} export(s)")

    print_summary(report)

    if report.changed:
        handle_external_dependencies(report, project_root, yes, interactive)

    if report.with_status(InstallStatus.FAILED):
        return EXIT_FAILURE
    return EXIT_SUCCESS


def _label(name: str, kind: ItemKind) -> str:
    return f"lib/{name}" if kind == ItemKind.LIB else name


def print_summary(report: BatchReport) -> None:
    installed = report.with_status(InstallStatus.INSTALLED)
    skipped = report.with_status(InstallStatus.SKIPPED, ItemKind.COMPONENT)
    failed = report.with_status(InstallStatus.FAILED) + report.with_status(InstallStatus.MISSING)

    click.echo("")
    if installed:
        click.secho(f"✅ Installed {len(installed)} item(s):", fg="green")
        for result in installed:
            click.echo(f"   • {_label(result.name, result.kind)} ({len(result.files)} file(s))")
    else:
        click.echo("No files were written.")

    if skipped:
        click.secho(f"⏭  Skipped {len(skipped)} component(s):", fg="yellow")
        for result in skipped:
            click.echo(f"   • {result.name} ({result.reason})")
        if any(r.reason == "already installed" for r in skipped):
            click.echo("   Use --overwrite to replace installed components.")

    if failed:
        click.secho(f"❌ {len(failed)} item(s) failed or missing:", fg="red")
        for result in failed:
            click.echo(f"   • {_label(result.name, result.kind)}: {result.reason or result.status.value}")

    if report.warnings:
        click.secho(f"⚠️  {len(report.warnings)} warning(s):", fg="yellow")
        for warning in report.warnings:
            click.echo(f"   • {warning}")


def handle_external_dependencies(
    report: BatchReport, project_root: Path, yes: bool, interactive: bool
) -> None:
    missing = find_missing_packages(report.external_dependencies, project_root)
    if not missing:
        if report.external_dependencies:
            click.echo("✅ All external dependencies are declared in package.json")
        return

    manager = detect_package_manager(project_root)
    command = shlex.join(install_command(manager, missing))
    click.echo("")
    click.secho("📦 Missing npm dependencies:", fg="yellow")
    for package in missing:
        click.echo(f"   • {package}")

    if yes or (interactive and confirm_dependency_install(missing, command)):
        click.echo(f"Running: {command}")
        output, returncode = asyncio.run(install_packages(missing, project_root, manager))
        if returncode == 0:
            click.secho("✅ Dependencies installed", fg="green")
        else:
            click.echo(format_error(f"dependency install failed: {output}"), err=True)
            click.echo("Copied components are unaffected; install the packages manually.", err=True)
        return

    click.echo(f"Install them with: {command}")


__all__ = ["add", "run_add", "select_targets", "print_summary"]
