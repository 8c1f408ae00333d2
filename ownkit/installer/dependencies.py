"""External npm dependency checks for installed components."""

import logging
import shutil
from enum import Enum
from pathlib import Path

from ..config import load_document
from ..errors import ConfigError
from ..execution import INSTALL_TIMEOUT, run_command_async

_logging = logging.getLogger(__name__)

PACKAGE_JSON_SECTIONS = ("dependencies", "devDependencies", "peerDependencies")


class PackageManager(Enum):
    PNPM = "pnpm"
    YARN = "yarn"
    NPM = "npm"


LOCKFILES = {
    "pnpm-lock.yaml": PackageManager.PNPM,
    "yarn.lock": PackageManager.YARN,
    "package-lock.json": PackageManager.NPM,
}


def package_name(spec: str) -> str:
    """Strip a version range from a dependency spec.

    Examples:
        >>> package_name("@mantine/core@^7")
        '@mantine/core'
        >>> package_name("dayjs")
        'dayjs'
    """
    at = spec.find("@", 1)
    return spec if at == -1 else spec[:at]


def read_declared_packages(project_root: Path) -> set[str] | None:
    """Return every package named in the project's package.json.

    Returns None when there is no package.json.
    """
    path = Path(project_root) / "package.json"
    if not path.exists():
        return None
    try:
        data = load_document(path)
    except ConfigError as e:
        _logging.warning(f"Ignoring unreadable package.json: {e}")
        return set()

    declared = set()
    for section in PACKAGE_JSON_SECTIONS:
        entries = data.get(section)
        if isinstance(entries, dict):
            declared.update(entries)
    return declared


def find_missing_packages(required: list[str], project_root: Path) -> list[str]:
    """List required packages not declared in package.json, in input order."""
    declared = read_declared_packages(project_root)
    if declared is None:
        return list(required)
    return [spec for spec in required if package_name(spec) not in declared]


def detect_package_manager(project_root: Path) -> PackageManager:
    for lockfile, manager in LOCKFILES.items():
        if (Path(project_root) / lockfile).exists():
            return manager
    for manager in PackageManager:
        if shutil.which(manager.value):
            return manager
    return PackageManager.NPM


def install_command(manager: PackageManager, packages: list[str]) -> list[str]:
    verb = "install" if manager == PackageManager.NPM else "add"
    return [manager.value, verb, *packages]


async def install_packages(
    packages: list[str], project_root: Path, manager: PackageManager | None = None
) -> tuple[str, int]:
    manager = manager or detect_package_manager(project_root)
    return await run_command_async(
        install_command(manager, packages), cwd=project_root, timeout=INSTALL_TIMEOUT
    )


__all__ = [
    "PackageManager",
    "package_name",
    "read_declared_packages",
    "find_missing_packages",
    "detect_package_manager",
    "install_command",
    "install_packages",
]
