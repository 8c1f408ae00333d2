"""Project configuration (ownkit.json) and JSON-ish document loading."""

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from .errors import ConfigError
from .paths import get_config_path, get_source_root, resolve_alias

_logging = logging.getLogger(__name__)

CONFIG_SCHEMA_URL = "https://ownkit.dev/schema.json"
DEFAULT_COMPONENTS_ALIAS = "@/components/ui"
DEFAULT_LIB_ALIAS = "@/lib/ownkit"


def preprocess_jsonish(text: str) -> str:
    """Preprocess JSON-ish text into strict JSON.

    Handles:
    - // line comments (replaced with spaces)
    - Trailing commas before ] or } (replaced with space)
    - Strings, including escaped quotes, are passed through untouched

    Stripped characters become spaces so line/column positions in
    json.loads() errors still point into the original text.
    """
    out: list[str] = []
    i = 0
    n = len(text)
    in_string = False

    while i < n:
        char = text[i]

        if in_string:
            out.append(char)
            if char == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
            continue

        if char == '"':
            in_string = True
            out.append(char)
            i += 1
        elif char == "/" and i + 1 < n and text[i + 1] == "/":
            while i < n and text[i] != "\n":
                out.append(" ")
                i += 1
        elif char == "," and _is_trailing_comma(text, i + 1):
            out.append(" ")
            i += 1
        else:
            out.append(char)
            i += 1

    return "".join(out)


def _is_trailing_comma(text: str, start: int) -> bool:
    j = start
    n = len(text)
    while j < n:
        if text[j] in " \t\r\n":
            j += 1
        elif text.startswith("//", j):
            while j < n and text[j] != "\n":
                j += 1
        else:
            return text[j] in "]}"
    return False


def _format_syntax_error(source: str, original_text: str, error: json.JSONDecodeError) -> str:
    lines = original_text.split("\n")
    parts = [f"{source}: syntax error at line {error.lineno}, col {error.colno}: {error.msg}"]
    if 1 <= error.lineno <= len(lines):
        parts.append(lines[error.lineno - 1])
        parts.append(" " * (error.colno - 1) + "^")
    return "\n".join(parts)


def load_document(path: Path) -> dict:
    """Load a JSON-ish file and return its top-level object.

    Raises:
        ConfigError: If the file cannot be read, has syntax errors, or is
            not a JSON object.
    """
    try:
        original_text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"File not found: {path}")
    except UnicodeDecodeError:
        raise ConfigError(f"File is not valid UTF-8: {path}")
    except OSError as e:
        raise ConfigError(f"Error reading {path}: {e}")

    try:
        result = json.loads(preprocess_jsonish(original_text))
    except json.JSONDecodeError as e:
        raise ConfigError(_format_syntax_error(path.name, original_text, e)) from e

    if not isinstance(result, dict):
        raise ConfigError(f"{path.name} must be a JSON object, got {type(result).__name__}")
    return result


@dataclass
class VersionInfo:
    version: str
    installed_at: str
    source: str

    def to_dict(self) -> dict:
        return {"version": self.version, "installedAt": self.installed_at, "source": self.source}


@dataclass
class InstallConfig:
    """Persisted per-project install state.

    installed_components and installed_lib are kept as insertion-ordered
    duplicate-free lists; mutate them through the upsert helpers.
    """

    tsx: bool = True
    src_dir: bool = False
    components_alias: str = DEFAULT_COMPONENTS_ALIAS
    lib_alias: str = DEFAULT_LIB_ALIAS
    installed_components: list[str] = field(default_factory=list)
    installed_lib: list[str] = field(default_factory=list)
    component_versions: dict[str, VersionInfo] = field(default_factory=dict)
    registry_version: str | None = None

    def is_component_installed(self, name: str) -> bool:
        return name in self.installed_components

    def is_lib_installed(self, name: str) -> bool:
        return name in self.installed_lib

    def upsert_component(self, name: str, version: str, source: str) -> None:
        if name not in self.installed_components:
            self.installed_components.append(name)
        self._stamp(name, version, source)

    def upsert_lib(self, name: str, version: str, source: str) -> None:
        if name not in self.installed_lib:
            self.installed_lib.append(name)
        self._stamp(f"lib/{name}", version, source)

    def _stamp(self, key: str, version: str, source: str) -> None:
        self.component_versions[key] = VersionInfo(
            version=version,
            installed_at=datetime.now(UTC).isoformat(timespec="seconds"),
            source=source,
        )
        self.registry_version = version

    def source_root(self, project_root: Path) -> Path:
        return get_source_root(project_root, self.src_dir)

    def components_dir(self, project_root: Path) -> Path:
        return resolve_alias(self.components_alias, project_root, self.src_dir)

    def lib_dir(self, project_root: Path) -> Path:
        return resolve_alias(self.lib_alias, project_root, self.src_dir)

    @property
    def script_ext(self) -> str:
        return ".ts" if self.tsx else ".js"

    @classmethod
    def from_dict(cls, data: dict) -> "InstallConfig":
        aliases = data.get("aliases") or {}
        if not isinstance(aliases, dict):
            raise ConfigError("ownkit.json field 'aliases' must be an object")

        versions = {}
        for key, info in (data.get("componentVersions") or {}).items():
            if not isinstance(info, dict) or "version" not in info:
                raise ConfigError(f"ownkit.json componentVersions['{key}'] must have a version")
            versions[key] = VersionInfo(
                version=str(info["version"]),
                installed_at=str(info.get("installedAt", "")),
                source=str(info.get("source", "")),
            )

        for list_field in ("installedComponents", "installedLib"):
            value = data.get(list_field, [])
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"ownkit.json field '{list_field}' must be an array of strings")

        return cls(
            tsx=bool(data.get("tsx", True)),
            src_dir=bool(data.get("srcDir", False)),
            components_alias=aliases.get("components", DEFAULT_COMPONENTS_ALIAS),
            lib_alias=aliases.get("lib", DEFAULT_LIB_ALIAS),
            installed_components=list(dict.fromkeys(data.get("installedComponents", []))),
            installed_lib=list(dict.fromkeys(data.get("installedLib", []))),
            component_versions=versions,
            registry_version=data.get("registryVersion"),
        )

    def to_dict(self) -> dict:
        data = {
            "$schema": CONFIG_SCHEMA_URL,
            "model": "copy-own",
            "tsx": self.tsx,
            "srcDir": self.src_dir,
            "aliases": {
                "components": self.components_alias,
                "lib": self.lib_alias,
            },
            "installedComponents": list(self.installed_components),
            "installedLib": list(self.installed_lib),
            "componentVersions": {
                key: info.to_dict() for key, info in self.component_versions.items()
            },
        }
        if self.registry_version is not None:
            data["registryVersion"] = self.registry_version
        return data


def load_config(project_root: Path) -> InstallConfig | None:
    """Load ownkit.json from the project root.

    Returns:
        The parsed InstallConfig, or None when the project is not initialized.

    Raises:
        ConfigError: If ownkit.json exists but is malformed.
    """
    path = get_config_path(project_root)
    if not path.exists():
        return None
    return InstallConfig.from_dict(load_document(path))


def save_config(project_root: Path, config: InstallConfig) -> Path:
    path = get_config_path(project_root)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2) + "\n", encoding="utf-8")
    _logging.debug(f"Saved {path}")
    return path


__all__ = [
    "ConfigError",
    "InstallConfig",
    "VersionInfo",
    "DEFAULT_COMPONENTS_ALIAS",
    "DEFAULT_LIB_ALIAS",
    "preprocess_jsonish",
    "load_document",
    "load_config",
    "save_config",
]
