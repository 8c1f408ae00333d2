"""Status command implementation."""

import json
from pathlib import Path

import click

from ownkit import InstallConfig, setup_logging
from ownkit.errors import OwnkitError
from ownkit.transformer import SCRIPT_SUFFIXES, extract_origin_info

from .utils import cwd_option, fail, require_config


def scan_origin_files(config: InstallConfig, project_root: Path) -> list[dict[str, str]]:
    """Find copied files by their origin header, sorted by path."""
    found = []
    seen = set()
    for root in (config.components_dir(project_root), config.lib_dir(project_root)):
        if not root.is_dir():
            continue
        for path in sorted(root.rglob("*")):
            if path in seen or path.suffix not in SCRIPT_SUFFIXES or not path.is_file():
                continue
            seen.add(path)
            try:
                # the header sits in the first few lines
                head = path.read_text(encoding="utf-8")[:1024]
            except (OSError, UnicodeDecodeError):
                continue
            info = extract_origin_info(head)
            if info:
                found.append({"file": path.relative_to(project_root).as_posix(), **info})
    return sorted(found, key=lambda item: item["file"])


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print status as JSON")
@cwd_option
@click.pass_context
def status(ctx, as_json: bool, cwd: Path):
    """Show installed components and the files copied into the project."""
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    setup_logging(debug)
    project_root = Path(cwd).resolve()
    try:
        config = require_config(project_root)
    except OwnkitError as e:
        fail(e)

    files = scan_origin_files(config, project_root)

    if as_json:
        payload = {
            "installedComponents": list(config.installed_components),
            "installedLib": list(config.installed_lib),
            "registryVersion": config.registry_version,
            "files": files,
        }
        click.echo(json.dumps(payload, indent=2))
        return

    click.secho("Installed components:", bold=True)
    if config.installed_components:
        for name in config.installed_components:
            info = config.component_versions.get(name)
            click.echo(f"  • {name} ({info.version if info else 'unknown version'})")
    else:
        click.echo("  (none)")

    click.secho("\nInstalled lib modules:", bold=True)
    if config.installed_lib:
        for name in config.installed_lib:
            click.echo(f"  • {name}")
    else:
        click.echo("  (none)")

    click.secho(f"\nCopied files ({len(files)}):", bold=True)
    for item in files:
        click.echo(f"  {item['file']}  {item['origin']} @ {item['version']} ({item['date']})")
