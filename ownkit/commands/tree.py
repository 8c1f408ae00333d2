"""Tree command implementation."""

import json
import shlex
from pathlib import Path

import click

from ownkit import setup_logging
from ownkit.dependency_tree import DEFAULT_TREE_DEPTH, build_tree, flatten_tree, render_tree
from ownkit.errors import OwnkitError
from ownkit.installer import PackageManager, install_command

from .utils import fail, open_registry, registry_option


@click.command()
@click.argument("name")
@click.option("--json", "as_json", is_flag=True, help="Print the tree and summary as JSON")
@click.option(
    "--depth",
    type=click.IntRange(min=1),
    default=DEFAULT_TREE_DEPTH,
    show_default=True,
    help="How many levels of component dependencies to expand",
)
@registry_option
@click.pass_context
def tree(ctx, name: str, as_json: bool, depth: int, registry_path: Path | None):
    """Show the dependency tree of a component."""
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    setup_logging(debug)
    try:
        registry = open_registry(registry_path)
        component = registry.find_component(name)
    except OwnkitError as e:
        fail(e)

    root = build_tree(component, registry, max_depth=depth)
    summary = flatten_tree(root)

    if as_json:
        click.echo(json.dumps({"tree": root.to_dict(), "summary": summary.to_dict()}, indent=2))
        return

    click.secho(f"\n🌳 Dependency Tree: {component.title}\n", bold=True)
    for line in render_tree(root):
        click.echo(line)

    click.secho("\n📊 Summary", bold=True)
    click.echo(f"   📦 Components: {len(summary.components)}")
    click.echo(f"   🔧 Lib modules: {len(summary.libs)} ({', '.join(summary.libs) or 'none'})")
    click.echo(f"   📚 npm packages: {len(summary.npm)}")

    if summary.npm:
        click.secho("\nInstall npm dependencies:", bold=True)
        click.echo(f"   {shlex.join(install_command(PackageManager.NPM, summary.npm))}")

    click.secho("\nAdd this component:", bold=True)
    click.echo(f"   ownkit add {component.name}")
