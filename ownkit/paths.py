"""Path helpers for registry and consumer project layout."""

import os
from pathlib import Path

CONFIG_FILENAME = "ownkit.json"
REGISTRY_ENV_VAR = "OWNKIT_REGISTRY"
REGISTRY_FILENAMES = ("registry.json", "registry.yaml", "registry.yml")


def get_config_path(project_root: Path) -> Path:
    """Return path to the project's ownkit.json."""
    return Path(project_root) / CONFIG_FILENAME


def get_registry_root(explicit: str | Path | None = None) -> Path | None:
    """Return the registry root directory.

    Priority:
    1. Explicit path (the --registry option)
    2. OWNKIT_REGISTRY environment variable (if set)

    Returns None when neither is given.
    """
    if explicit:
        return Path(explicit).expanduser().resolve()
    if os.environ.get(REGISTRY_ENV_VAR):
        return Path(os.environ[REGISTRY_ENV_VAR]).expanduser().resolve()
    return None


def find_registry_document(registry_root: Path) -> Path | None:
    """Return the first registry document present in the registry root."""
    for name in REGISTRY_FILENAMES:
        candidate = registry_root / name
        if candidate.is_file():
            return candidate
    return None


def get_source_root(project_root: Path, src_dir: bool) -> Path:
    """Return the directory registry targets are relative to."""
    project_root = Path(project_root)
    return project_root / "src" if src_dir else project_root


def resolve_alias(alias: str, project_root: Path, src_dir: bool) -> Path:
    """Resolve an import alias like '@/components/ui' to a directory.

    '@/x' maps to <root>/src/x when src_dir is set and <root>/x otherwise;
    anything else is taken as relative to the project root.
    """
    if alias.startswith("@/"):
        return get_source_root(project_root, src_dir) / alias[2:]
    return Path(project_root) / alias.removeprefix("./")


__all__ = [
    "CONFIG_FILENAME",
    "REGISTRY_ENV_VAR",
    "REGISTRY_FILENAMES",
    "get_config_path",
    "get_registry_root",
    "find_registry_document",
    "get_source_root",
    "resolve_alias",
]
