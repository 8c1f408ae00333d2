"""Diff command implementation."""

from pathlib import Path, PurePosixPath

import click

from ownkit import setup_logging
from ownkit.errors import OwnkitError
from ownkit.installer import Installer
from ownkit.installer.dependencies import package_name, read_declared_packages
from ownkit.transformer import SCRIPT_SUFFIXES

from .utils import cwd_option, fail, open_registry, registry_option, require_config


def changed_lines(original: str, rewritten: str) -> list[tuple[str, str]]:
    """Pair up lines that differ between two texts with the same line count."""
    return [
        (before, after)
        for before, after in zip(original.splitlines(), rewritten.splitlines())
        if before != after
    ]


@click.command()
@click.argument("name")
@cwd_option
@registry_option
@click.pass_context
def diff(ctx, name: str, cwd: Path, registry_path: Path | None):
    """Preview what adding a component would change, without writing."""
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    setup_logging(debug)
    project_root = Path(cwd).resolve()
    try:
        config = require_config(project_root)
        registry = open_registry(registry_path)
        component = registry.find_component(name)
    except OwnkitError as e:
        fail(e)

    installer = Installer(registry, config, project_root, dry_run=True)
    source_root = config.source_root(project_root)

    click.secho(f"\n📋 Preview: {component.title}", bold=True)
    click.echo(component.description)

    click.secho("\nFiles to be created:", bold=True)
    for mapping in component.files:
        target = installer.target_path(mapping, is_component=True)
        shown = target.relative_to(project_root).as_posix()
        if target.exists():
            click.secho(f"  ⚠ {shown} (exists, will be overwritten)", fg="yellow")
        else:
            click.secho(f"  + {shown}", fg="green")

    if component.internal_dependencies:
        click.secho("\nLib modules required:", bold=True)
        for lib_name in component.internal_dependencies:
            if config.is_lib_installed(lib_name):
                click.echo(f"  ✓ {lib_name} (already installed)")
                continue
            click.echo(f"  → {lib_name}")
            module = registry.get_lib(lib_name)
            for mapping in module.files if module else []:
                click.echo(f"      + {mapping.target}")

    if component.dependencies:
        click.secho("\nExternal dependencies:", bold=True)
        declared = read_declared_packages(project_root) or set()
        for spec in component.dependencies:
            if package_name(spec) in declared:
                click.echo(f"  ✓ {spec}")
            else:
                click.secho(f"  ⚠ {spec} (not in package.json)", fg="yellow")

    scripts = [m for m in component.files if PurePosixPath(m.source).suffix in SCRIPT_SUFFIXES]
    if scripts:
        mapping = scripts[0]
        click.secho("\nImport transformation preview:", bold=True)
        source = registry.root / mapping.source
        try:
            content = source.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            click.echo("  (source file not available)")
        else:
            target_rel = installer.target_path(mapping, is_component=True).relative_to(source_root).as_posix()
            pairs = changed_lines(content, installer.transformer.rewrite_imports(content, target_rel))
            if not pairs:
                click.echo("  (no registry imports to rewrite)")
            for before, after in pairs:
                click.secho(f"  - {before.strip()}", fg="red")
                click.secho(f"  + {after.strip()}", fg="green")

    click.echo(f"\nRun 'ownkit add {component.name}' to add this component.")
