"""Info command implementation."""

import json
from pathlib import Path

import click

from ownkit import setup_logging
from ownkit.dependency_tree import total_dependencies
from ownkit.errors import OwnkitError
from ownkit.registry import ComponentEntry, Registry

from .utils import fail, open_registry, registry_option


def component_info(component: ComponentEntry, registry: Registry) -> dict:
    titles = {c.name: c.title for c in registry.categories}
    totals = total_dependencies(component, registry)
    return {
        "name": component.name,
        "title": component.title,
        "description": component.description,
        "category": component.category,
        "categoryTitle": titles.get(component.category, component.category),
        "files": [{"source": f.source, "target": f.target} for f in component.files],
        "dependencies": list(component.dependencies),
        "internalDependencies": list(component.internal_dependencies),
        "registryDependencies": list(component.registry_dependencies),
        "totalDependencies": totals.to_dict(),
    }


@click.command()
@click.argument("name")
@click.option("--json", "as_json", is_flag=True, help="Print component details as JSON")
@registry_option
@click.pass_context
def info(ctx, name: str, as_json: bool, registry_path: Path | None):
    """Show details about a registry component."""
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    setup_logging(debug)
    try:
        registry = open_registry(registry_path)
        component = registry.find_component(name)
    except OwnkitError as e:
        fail(e)

    details = component_info(component, registry)
    if as_json:
        click.echo(json.dumps(details, indent=2))
        return

    click.secho(f"\n{component.title}", bold=True)
    click.echo(f"{component.name} · {details['categoryTitle']}")
    click.echo(f"\n{component.description}")

    click.secho("\nSource files:", bold=True)
    for mapping in component.files:
        click.echo(f"   {mapping.source} → {mapping.target}")

    if component.dependencies:
        click.secho("\nnpm dependencies:", bold=True)
        for package in component.dependencies:
            click.echo(f"   • {package}")

    if component.internal_dependencies:
        click.secho("\nLib modules:", bold=True)
        for lib_name in component.internal_dependencies:
            module = registry.get_lib(lib_name)
            description = f" - {module.description}" if module and module.description else ""
            click.echo(f"   • {lib_name}{description}")

    if component.registry_dependencies:
        click.secho("\nComponent dependencies:", bold=True)
        for dep_name in component.registry_dependencies:
            click.echo(f"   • {dep_name}")

    totals = details["totalDependencies"]
    click.secho("\nInstallation summary:", bold=True)
    click.echo(f"   {len(totals['components'])} component(s), {len(totals['libs'])} lib module(s), "
               f"{len(totals['npm'])} npm package(s)")

    click.secho("\nUsage:", bold=True)
    click.echo(f"   ownkit add {component.name}")
    click.echo(f"   ownkit tree {component.name}")
