"""Copy-and-own installer for registry UI components."""

import logging

from .config import (
    InstallConfig,
    VersionInfo,
    load_config,
    load_document,
    save_config,
)
from .errors import (
    ComponentNotFoundError,
    ConfigError,
    ConfigNotInitializedError,
    LibModuleNotFoundError,
    OwnkitError,
    RegistryError,
    SourceFileMissingError,
    TransformError,
    describe,
    format_error,
    format_field_error,
    format_suggestion,
)
from .execution import INSTALL_TIMEOUT, TYPECHECK_TIMEOUT, run_command_async
from .paths import get_config_path, get_registry_root
from .registry import Registry, load_registry

__version__ = "0.4.0"

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def setup_logging(debug: bool = False) -> None:
    """Configure root logging once per command invocation."""
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


__all__ = [
    "__version__",
    "setup_logging",
    "InstallConfig",
    "VersionInfo",
    "load_config",
    "load_document",
    "save_config",
    "OwnkitError",
    "ConfigError",
    "RegistryError",
    "ConfigNotInitializedError",
    "ComponentNotFoundError",
    "LibModuleNotFoundError",
    "SourceFileMissingError",
    "TransformError",
    "describe",
    "format_error",
    "format_field_error",
    "format_suggestion",
    "INSTALL_TIMEOUT",
    "TYPECHECK_TIMEOUT",
    "run_command_async",
    "get_config_path",
    "get_registry_root",
    "Registry",
    "load_registry",
]
