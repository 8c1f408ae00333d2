"""CLI command definitions for ownkit."""

import click

from ownkit import __version__
from ownkit.commands.add import add
from ownkit.commands.diff import diff
from ownkit.commands.fix import fix
from ownkit.commands.info import info
from ownkit.commands.init import init
from ownkit.commands.list import list_components
from ownkit.commands.outdated import outdated
from ownkit.commands.status import status
from ownkit.commands.tree import tree
from ownkit.commands.validate import validate


@click.group()
@click.version_option(__version__, prog_name="ownkit")
@click.option("--debug", is_flag=True, help="Enable debug output for troubleshooting")
@click.pass_context
def cli(ctx, debug):
    """Copy registry UI components into your project and own the code."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


cli.add_command(init)
cli.add_command(add)
cli.add_command(validate)
cli.add_command(list_components, name="list")
cli.add_command(status)
cli.add_command(outdated)
cli.add_command(info)
cli.add_command(tree)
cli.add_command(diff)
cli.add_command(fix)

__all__ = ["cli"]


if __name__ == "__main__":
    cli()
