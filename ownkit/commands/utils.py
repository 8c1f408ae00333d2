"""Shared helpers for commands."""

import sys
from pathlib import Path

import click

from ownkit.config import InstallConfig, load_config
from ownkit.errors import (
    ComponentNotFoundError,
    ConfigNotInitializedError,
    OwnkitError,
    RegistryError,
    describe,
)
from ownkit.paths import REGISTRY_ENV_VAR, get_registry_root
from ownkit.registry import Registry, load_registry

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INVALID_ARGS = 2

cwd_option = click.option(
    "--cwd",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Project root to operate on",
)
registry_option = click.option(
    "--registry",
    "registry_path",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help=f"Registry root directory (default: ${REGISTRY_ENV_VAR})",
)


def require_config(project_root: Path) -> InstallConfig:
    """Load ownkit.json or raise ConfigNotInitializedError."""
    config = load_config(project_root)
    if config is None:
        raise ConfigNotInitializedError(project_root)
    return config


def open_registry(registry_path: Path | None) -> Registry:
    root = get_registry_root(registry_path)
    if root is None:
        error = RegistryError("no registry location given")
        error.hint = f"pass --registry PATH or set {REGISTRY_ENV_VAR}"
        raise error
    return load_registry(root)


def fail(error: OwnkitError, exit_code: int = EXIT_FAILURE):
    """Print an ownkit error the standard way and exit."""
    click.echo(describe(error), err=True)
    if isinstance(error, ComponentNotFoundError) and error.suggestions:
        click.echo("Did you mean:", err=True)
        for suggestion in error.suggestions:
            click.echo(f"  • {suggestion}", err=True)
    sys.exit(exit_code)
