"""List command implementation."""

import json
from pathlib import Path

import click

from ownkit import load_config, setup_logging
from ownkit.errors import OwnkitError
from ownkit.registry import ComponentEntry, Registry

from .utils import cwd_option, fail, open_registry, registry_option


def group_by_category(registry: Registry, only: str | None = None) -> list[tuple[str, list[ComponentEntry]]]:
    """Group components by category, declared categories first."""
    titles = {c.name: c.title for c in registry.categories}
    order = registry.category_names() + [
        c.category for c in registry.components if c.category not in titles
    ]
    groups = []
    for name in dict.fromkeys(order):
        if only and name != only:
            continue
        members = registry.components_in_category(name)
        if members:
            groups.append((titles.get(name, name), members))
    return groups


@click.command(name="list")
@click.option("--category", default=None, help="Only show one category")
@click.option("--json", "as_json", is_flag=True, help="Print components as JSON")
@cwd_option
@registry_option
@click.pass_context
def list_components(ctx, category: str | None, as_json: bool, cwd: Path, registry_path: Path | None):
    """List registry components, marking installed ones."""
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    setup_logging(debug)
    try:
        registry = open_registry(registry_path)
        config = load_config(Path(cwd).resolve())
    except OwnkitError as e:
        fail(e)

    installed = set(config.installed_components) if config else set()
    groups = group_by_category(registry, category)

    if as_json:
        payload = [
            {
                "name": c.name,
                "title": c.title,
                "description": c.description,
                "category": c.category,
                "installed": c.name in installed,
            }
            for _, members in groups
            for c in members
        ]
        click.echo(json.dumps(payload, indent=2))
        return

    if not groups:
        click.echo("No components found.")
        return

    click.echo(f"{registry.name} {registry.version}\n")
    for title, members in groups:
        click.secho(title, bold=True)
        for component in members:
            marker = "✓" if component.name in installed else " "
            click.echo(f"  {marker} {component.name:<24} {component.description}")
        click.echo("")
    if config is None:
        click.echo("Run 'ownkit init' to start installing components.")
