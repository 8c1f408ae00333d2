"""Dry-run planning and rendering."""

from pathlib import Path

from ..config import InstallConfig
from ..registry import Registry
from .installation import Installer
from .models import BatchReport, InstallStatus, ItemKind
from .resolution import resolve


def plan_install(
    requested: list[str],
    registry: Registry,
    config: InstallConfig,
    project_root: Path,
    overwrite: bool = False,
    extra_lib: list[str] | None = None,
) -> BatchReport:
    """Run the normal resolution path with a non-writing installer.

    Never prompts: an installed requested component is reported as skipped
    unless overwrite is set.
    """
    installer = Installer(registry, config, project_root, dry_run=True)
    return resolve(
        requested,
        registry,
        config,
        installer,
        overwrite=overwrite,
        extra_lib=extra_lib,
    )


def render_plan(report: BatchReport) -> str:
    lines = ["Installation Plan (dry run)", ""]

    if not report.plan:
        lines.append("Nothing to install.")
    else:
        lines.append("Steps:")
        for i, entry in enumerate(report.plan, 1):
            label = "lib" if entry.kind == ItemKind.LIB else "component"
            lines.append(f"  {i}. [{label}] {entry.name}")
            for path in entry.files:
                lines.append(f"     + {path}")
            if entry.lib_dependencies:
                lines.append(f"     lib: {', '.join(entry.lib_dependencies)}")
            if entry.dependencies:
                lines.append(f"     npm: {', '.join(entry.dependencies)}")

    skipped = report.with_status(InstallStatus.SKIPPED)
    if skipped:
        lines.append("")
        lines.append("Skipped:")
        for result in skipped:
            lines.append(f"   • {result.name} ({result.reason})")

    missing = report.with_status(InstallStatus.MISSING)
    if missing:
        lines.append("")
        lines.append("❌ Missing:")
        for result in missing:
            lines.append(f"   • {result.reason}")

    if report.warnings:
        lines.append("")
        lines.append("⚠️  Warnings:")
        for warning in report.warnings:
            lines.append(f"   • {warning}")

    if report.external_dependencies:
        lines.append("")
        lines.append(f"External dependencies: {', '.join(report.external_dependencies)}")

    return "\n".join(lines)


__all__ = [
    "plan_install",
    "render_plan",
]
