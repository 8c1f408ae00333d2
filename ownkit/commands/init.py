"""Initialize project command implementation."""

import sys
from pathlib import Path

import click

from ownkit import ConfigError, InstallConfig, format_error, save_config, setup_logging
from ownkit.config import DEFAULT_COMPONENTS_ALIAS, DEFAULT_LIB_ALIAS
from ownkit.paths import get_config_path
from ownkit.prompts import confirm_project_layout, is_interactive

from .utils import EXIT_FAILURE, cwd_option


def detect_layout(project_root: Path) -> tuple[bool, bool]:
    """Guess (tsx, src_dir) from tsconfig.json and an existing src/ directory."""
    tsx = (project_root / "tsconfig.json").exists() or not (project_root / "jsconfig.json").exists()
    src_dir = (project_root / "src").is_dir()
    return tsx, src_dir


@click.command(name="init")
@click.option("--yes", "-y", is_flag=True, help="Accept detected defaults without prompting")
@click.option("--tsx/--no-tsx", default=None, help="Install typed (.tsx/.ts) or untyped (.jsx/.js) files")
@click.option("--src-dir/--no-src-dir", default=None, help="Resolve '@/' aliases under src/")
@click.option("--components-alias", default=DEFAULT_COMPONENTS_ALIAS, show_default=True)
@click.option("--lib-alias", default=DEFAULT_LIB_ALIAS, show_default=True)
@click.option("--force", "-f", is_flag=True, help="Re-initialize, backing up the existing ownkit.json")
@cwd_option
@click.pass_context
def init(
    ctx,
    yes: bool,
    tsx: bool | None,
    src_dir: bool | None,
    components_alias: str,
    lib_alias: str,
    force: bool,
    cwd: Path,
):
    """Create ownkit.json for a project.

    Layout flags not given on the command line are detected from the project
    (tsconfig.json, src/) and, in a terminal, confirmed interactively.
    """
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    setup_logging(debug)
    project_root = Path(cwd).resolve()
    config_path = get_config_path(project_root)

    if config_path.exists() and not force:
        click.echo(f"Config file already exists: {config_path}")
        click.echo("Use --force to re-initialize (creates backup first).")
        sys.exit(EXIT_FAILURE)

    detected_tsx, detected_src = detect_layout(project_root)
    if (tsx is None or src_dir is None) and not yes and is_interactive():
        answer = confirm_project_layout(
            detected_tsx if tsx is None else tsx,
            detected_src if src_dir is None else src_dir,
        )
        if answer is None:
            click.echo("Cancelled.")
            return
        tsx, src_dir = answer
    tsx = detected_tsx if tsx is None else tsx
    src_dir = detected_src if src_dir is None else src_dir

    if config_path.exists():
        backup_path = config_path.with_suffix(".json.bak")
        click.echo(f"Backing up existing config to {backup_path}...")
        config_path.replace(backup_path)

    config = InstallConfig(
        tsx=tsx,
        src_dir=src_dir,
        components_alias=components_alias,
        lib_alias=lib_alias,
    )
    try:
        save_config(project_root, config)
        config.components_dir(project_root).mkdir(parents=True, exist_ok=True)
    except (OSError, ConfigError) as e:
        click.echo(format_error(f"initialization failed: {e}"), err=True)
        sys.exit(EXIT_FAILURE)

    click.echo(f"✅ Created {config_path}")
    click.echo(f"   Components: {components_alias} -> {config.components_dir(project_root)}")
    click.echo(f"   Lib:        {lib_alias} -> {config.lib_dir(project_root)}")
    click.echo(f"   Files:      {'TypeScript' if tsx else 'JavaScript'}")
    click.echo("\nNext: ownkit add <component>")
