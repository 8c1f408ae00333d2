"""Outdated command implementation."""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path

import click
from packaging.version import InvalidVersion, Version

from ownkit import InstallConfig, setup_logging
from ownkit.errors import OwnkitError

from .utils import cwd_option, fail, open_registry, registry_option, require_config


@dataclass
class OutdatedItem:
    name: str
    installed_version: str
    latest_version: str
    installed_at: str


@dataclass
class OutdatedReport:
    registry_version: str
    installed_registry_version: str | None
    outdated: list[OutdatedItem] = field(default_factory=list)
    up_to_date: list[str] = field(default_factory=list)
    unknown: list[str] = field(default_factory=list)


def is_older(installed: str, latest: str) -> bool:
    """Compare versions with PEP 440 rules, falling back to inequality."""
    try:
        return Version(installed) < Version(latest)
    except InvalidVersion:
        return installed != latest


def check_outdated(config: InstallConfig, registry_version: str) -> OutdatedReport:
    report = OutdatedReport(registry_version, config.registry_version)
    keys = list(config.installed_components) + [f"lib/{name}" for name in config.installed_lib]
    for key in keys:
        info = config.component_versions.get(key)
        if info is None:
            report.unknown.append(key)
        elif is_older(info.version, registry_version):
            report.outdated.append(OutdatedItem(key, info.version, registry_version, info.installed_at))
        else:
            report.up_to_date.append(key)
    return report


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@cwd_option
@registry_option
@click.pass_context
def outdated(ctx, as_json: bool, cwd: Path, registry_path: Path | None):
    """Compare installed component versions with the registry."""
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    setup_logging(debug)
    try:
        config = require_config(Path(cwd).resolve())
        registry = open_registry(registry_path)
    except OwnkitError as e:
        fail(e)

    report = check_outdated(config, registry.version)

    if as_json:
        click.echo(json.dumps(asdict(report), indent=2))
        return

    click.echo(f"Registry version: {report.registry_version}")
    click.echo(f"Installed at registry version: {report.installed_registry_version or 'unknown'}")

    if report.outdated:
        click.secho(f"\n⚠️  {len(report.outdated)} item(s) have updates available:", fg="yellow")
        for item in report.outdated:
            click.echo(f"   • {item.name}: {item.installed_version} → {item.latest_version}")
        components = [item.name for item in report.outdated if not item.name.startswith("lib/")]
        if components:
            click.echo(f"\n   Update with: ownkit add {' '.join(components)} --overwrite")

    if report.unknown:
        click.echo(f"\n{len(report.unknown)} item(s) without version info:")
        for name in report.unknown:
            click.echo(f"   - {name}")
        click.echo("Reinstall with --overwrite to enable version tracking.")

    if not report.outdated and not report.unknown:
        click.secho("\n✅ All components are up to date", fg="green")

    click.echo(
        f"\nUp to date: {len(report.up_to_date)}  Outdated: {len(report.outdated)}  Unknown: {len(report.unknown)}"
    )
