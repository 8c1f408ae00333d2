"""Barrel file generation for the components directory.

The index is rebuilt from scratch out of config.installed_components every
time, so its content depends only on the installed set and the files on
disk.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from .config import InstallConfig
from .registry import ComponentEntry, Registry
from .transformer import SCRIPT_SUFFIXES, normalize_extension

_logging = logging.getLogger(__name__)

INDEX_HEADER = (
    "// Generated by ownkit from ownkit.json installedComponents.\n"
    "// Manual edits are lost the next time components are added.\n"
)

# Browser-only modules and the SSR-safe wrappers that must be exported instead.
SSR_WRAPPERS = {
    "input-block-editor": "input-block-editor-wrapper",
}

MODULE_SUFFIXES = (".tsx", ".ts", ".jsx", ".js")

_EXPORT_STAR = re.compile(r"""^\s*export\s+\*\s+from\s+['"](?P<path>[^'"]+)['"]""", re.MULTILINE)
_EXPORT_DECLARATION = re.compile(
    r"^export\s+(?:declare\s+)?(?:async\s+)?(?:abstract\s+)?"
    r"(?:const|let|var|function\*?|class|type|interface|enum)\s+(?P<name>[A-Za-z_$][\w$]*)",
    re.MULTILINE,
)
_EXPORT_LIST = re.compile(r"^export\s+(?:type\s+)?\{(?P<names>[^}]*)\}", re.MULTILINE)


@dataclass
class ExportCollision:
    name: str
    modules: list[str]

    def describe(self) -> str:
        return f"'{self.name}' is exported by {', '.join(self.modules)}"


@dataclass
class IndexResult:
    path: Path
    exports: list[str]
    collisions: list[ExportCollision] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def scan_named_exports(text: str) -> list[str]:
    """Return the top-level named exports declared in a module's text.

    Star re-exports are not expanded here; see collect_named_exports.
    """
    names = [m.group("name") for m in _EXPORT_DECLARATION.finditer(text)]
    for match in _EXPORT_LIST.finditer(text):
        for item in match.group("names").split(","):
            item = item.strip()
            if not item:
                continue
            exported = item.split(" as ")[-1].strip()
            exported = exported.removeprefix("type ").strip()
            if exported and exported != "default":
                names.append(exported)
    return list(dict.fromkeys(names))


def parse_index_exports(text: str) -> list[str]:
    """Return the module paths of every `export * from` line, in file order."""
    return [m.group("path") for m in _EXPORT_STAR.finditer(text)]


def render_index(exports: list[str]) -> str:
    lines = [f"export * from '{path}';" for path in exports]
    return INDEX_HEADER + "\n" + "\n".join(lines) + ("\n" if lines else "")


def find_collisions(exports_by_module: dict[str, list[str]]) -> list[ExportCollision]:
    """Find names exported by more than one module, sorted by name."""
    owners: dict[str, list[str]] = {}
    for module, names in exports_by_module.items():
        for name in names:
            owners.setdefault(name, []).append(module)
    return [
        ExportCollision(name, modules)
        for name, modules in sorted(owners.items())
        if len(modules) > 1
    ]


def resolve_module(base_dir: Path, spec: str) -> Path | None:
    """Find the file a relative module specifier refers to."""
    target = base_dir / spec
    if target.is_file():
        return target
    for suffix in MODULE_SUFFIXES:
        candidate = target.with_name(target.name + suffix)
        if candidate.is_file():
            return candidate
    for suffix in MODULE_SUFFIXES:
        candidate = target / f"index{suffix}"
        if candidate.is_file():
            return candidate
    return None


def collect_named_exports(components_dir: Path, exports: list[str]) -> dict[str, list[str]]:
    """Map each exported module path to the names it makes visible.

    Star re-exports inside a module are followed so a composite folder's
    index contributes the names of everything it re-exports.
    """
    result = {}
    for spec in exports:
        module = resolve_module(components_dir, spec)
        if module is None:
            _logging.debug(f"Cannot resolve {spec} for export scan")
            result[spec] = []
            continue
        result[spec] = _names_from(module, set())
    return result


def _names_from(module: Path, seen: set[Path]) -> list[str]:
    if module in seen:
        return []
    seen.add(module)
    try:
        text = module.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _logging.warning(f"Cannot read {module}: {e}")
        return []

    names = scan_named_exports(text)
    for spec in parse_index_exports(text):
        if not spec.startswith("."):
            continue
        nested = resolve_module(module.parent, spec)
        if nested is not None:
            names.extend(_names_from(nested, seen))
    return list(dict.fromkeys(names))


class IndexGenerator:
    def __init__(self, registry: Registry, config: InstallConfig, project_root: Path):
        self.registry = registry
        self.config = config
        self.project_root = Path(project_root)
        self.components_dir = config.components_dir(self.project_root)
        self._source_root = config.source_root(self.project_root)

    @property
    def index_path(self) -> Path:
        return self.components_dir / f"index{self.config.script_ext}"

    def export_path_for(self, component: ComponentEntry) -> str | None:
        """Work out the single module path the index exports for a component.

        A component whose files all live in one subfolder of the components
        directory is exported by folder; otherwise its first top-level script
        file is exported, swapped for its SSR wrapper when one is on disk.
        """
        relative = []
        for mapping in component.files:
            target = normalize_extension(self._source_root / mapping.target, self.config.tsx)
            try:
                relative.append(PurePosixPath(target.relative_to(self.components_dir).as_posix()))
            except ValueError:
                continue

        if not relative:
            return None

        folders = {path.parts[0] for path in relative if len(path.parts) > 1}
        if len(folders) == 1 and all(len(path.parts) > 1 for path in relative):
            return f"./{folders.pop()}"

        scripts = [
            path for path in relative
            if len(path.parts) == 1 and path.suffix in SCRIPT_SUFFIXES and not path.name.endswith(".d.ts")
        ]
        if not scripts:
            return None
        stem = scripts[0].stem
        wrapper = SSR_WRAPPERS.get(stem)
        if wrapper and resolve_module(self.components_dir, f"./{wrapper}") is not None:
            stem = wrapper
        return f"./{stem}"

    def export_paths(self) -> tuple[list[str], list[str]]:
        """Return (sorted unique export paths, warnings)."""
        exports = []
        warnings = []
        for name in sorted(self.config.installed_components):
            component = self.registry.get_component(name)
            if component is None:
                if resolve_module(self.components_dir, f"./{name}") is not None:
                    path = f"./{name}"
                else:
                    warnings.append(f"installed component '{name}' is not in the registry; left out of the index")
                    continue
            else:
                path = self.export_path_for(component)
                if path is None:
                    warnings.append(f"component '{name}' has no module to export")
                    continue
            if path in exports:
                _logging.debug(f"Export path {path} already emitted; skipping duplicate for '{name}'")
                continue
            exports.append(path)
        return sorted(exports), warnings

    def generate(self, write: bool = True) -> IndexResult:
        exports, warnings = self.export_paths()
        collisions = find_collisions(collect_named_exports(self.components_dir, exports))
        for collision in collisions:
            _logging.warning(f"Export collision: {collision.describe()}")
            warnings.append(f"export collision: {collision.describe()}")

        if write:
            self.components_dir.mkdir(parents=True, exist_ok=True)
            self.index_path.write_text(render_index(exports), encoding="utf-8")
            _logging.debug(f"Wrote {self.index_path} with {len(exports)} export(s)")
        return IndexResult(self.index_path, exports, collisions, warnings)


__all__ = [
    "SSR_WRAPPERS",
    "ExportCollision",
    "IndexResult",
    "IndexGenerator",
    "scan_named_exports",
    "parse_index_exports",
    "render_index",
    "find_collisions",
    "resolve_module",
    "collect_named_exports",
]
