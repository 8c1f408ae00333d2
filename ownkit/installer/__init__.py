"""Install engine: resolution, copying and dry-run planning."""

from .dependencies import (
    PackageManager,
    detect_package_manager,
    find_missing_packages,
    install_command,
    install_packages,
)
from .installation import Installer
from .models import (
    BatchReport,
    Decision,
    InstallSession,
    InstallStatus,
    ItemKind,
    ItemResult,
    PlanEntry,
)
from .planning import plan_install, render_plan
from .resolution import DependencyResolver, decide_overwrite, resolve

__all__ = [
    "ItemKind",
    "InstallStatus",
    "Decision",
    "InstallSession",
    "PlanEntry",
    "ItemResult",
    "BatchReport",
    "Installer",
    "DependencyResolver",
    "decide_overwrite",
    "resolve",
    "plan_install",
    "render_plan",
    "PackageManager",
    "detect_package_manager",
    "find_missing_packages",
    "install_command",
    "install_packages",
]
