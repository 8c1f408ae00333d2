"""Source transforms applied to every copied file.

Copied files must be self-contained in the consumer project, so references to
the registry's internal packages (@ownkit/*) become project-local alias paths,
relative imports are re-derived for the flattened target layout, and an origin
header records where the file came from.
"""

import logging
import os
import re
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath

from .config import InstallConfig
from .errors import TransformError
from .registry import Registry

_logging = logging.getLogger(__name__)

REGISTRY_NAMESPACE = "@ownkit"
LIB_PACKAGE_TAG = f"{REGISTRY_NAMESPACE}/lib"

# package -> (root, subpath) where root is "lib" or "components"
PACKAGE_TARGETS = {
    "types": ("lib", "types"),
    "services": ("lib", "services"),
    "hooks": ("lib", "hooks"),
    "utils": ("lib", "utils"),
    "ui-interfaces": ("components", ""),
    "ui-collections": ("components", ""),
    "ui-form": ("components", "vform"),
    "ui-table": ("components", "vtable"),
}

# Multi-file composites that keep their folder structure. Rules are keyed by
# the subfolder a source file lives in.
COMPOSITE_FAMILIES = {
    "vform": {
        "components": {"../types": "../types", "./types": "../types"},
        "utils": {"../types": "../types", "./types": "../types"},
        "root": {"./types": "./types"},
    },
}

SCRIPT_SUFFIXES = (".ts", ".tsx", ".js", ".jsx")
SOURCE_CANDIDATES = ("", ".ts", ".tsx", ".js", ".jsx", "/index.ts", "/index.tsx", "/index.js", "/index.jsx")

_NAMESPACE_IMPORT = re.compile(
    r"(?P<prefix>\bfrom\s+|\bimport\s+|\bimport\(\s*|\brequire\(\s*)"
    r"(?P<quote>['\"])" + re.escape(REGISTRY_NAMESPACE) + r"/(?P<package>[a-z0-9][a-z0-9-]*)"
    r"(?P<subpath>/[^'\"]*)?(?P=quote)"
)
_RELATIVE_IMPORT = re.compile(
    r"(?P<prefix>\bfrom\s+|\bimport\s+|\bimport\(\s*|\brequire\(\s*)"
    r"(?P<quote>['\"])(?P<spec>\.{1,2}/[^'\"]*)(?P=quote)"
)
_SIBLING_COMPONENT = re.compile(r"^\.\./([a-zA-Z][-a-zA-Z0-9]*)(?:/[A-Z][a-zA-Z0-9]*)?$")
_USE_CLIENT = re.compile(r"^([\"']use client[\"'];?[ \t]*\r?\n)")
_ORIGIN_BLOCK = re.compile(r"/\*\*\n \* @ownkit-origin .*?\*/\n\n?", re.DOTALL)


def to_kebab_case(value: str) -> str:
    """Convert PascalCase or camelCase to kebab-case."""
    value = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", value)
    return re.sub(r"[\s_]+", "-", value).lower()


def to_pascal_case(value: str) -> str:
    return "".join(word[:1].upper() + word[1:] for word in value.split("-"))


def package_tag_for(source: str) -> str:
    """Derive the originating package tag from a registry source path."""
    return f"{REGISTRY_NAMESPACE}/{PurePosixPath(source).parts[0]}"


def normalize_extension(path: Path, tsx: bool) -> Path:
    """Switch a component file to the project's typed/untyped variant."""
    if tsx or path.name.endswith(".d.ts"):
        return path
    if path.suffix == ".tsx":
        return path.with_suffix(".jsx")
    if path.suffix == ".ts":
        return path.with_suffix(".js")
    return path


def has_origin(content: str) -> bool:
    return "@ownkit-origin" in content


def extract_origin_info(content: str) -> dict[str, str] | None:
    """Extract origin, version and date from an origin header."""
    origin = re.search(r"@ownkit-origin\s+([^\n*]+)", content)
    if not origin:
        return None
    version = re.search(r"@ownkit-version\s+([^\n*]+)", content)
    date = re.search(r"@ownkit-date\s+([^\n*]+)", content)
    return {
        "origin": origin.group(1).strip(),
        "version": version.group(1).strip() if version else "unknown",
        "date": date.group(1).strip() if date else "unknown",
    }


def _relative_to(path: Path, base: Path) -> PurePosixPath:
    return PurePosixPath(os.path.relpath(path, base).replace(os.sep, "/"))


def _is_within(path: PurePosixPath, root: PurePosixPath) -> bool:
    return path == root or root in path.parents


def _relative_spec(from_dir: PurePosixPath, to: PurePosixPath) -> str:
    spec = os.path.relpath(str(to), str(from_dir)).replace(os.sep, "/")
    return spec if spec.startswith(".") else f"./{spec}"


def _strip_script_suffix(path: PurePosixPath) -> PurePosixPath:
    if path.suffix in SCRIPT_SUFFIXES:
        path = path.with_suffix("")
    if path.name == "index":
        path = path.parent
    return path


class FileTransformer:
    """Rewrites registry sources for their place in a consumer project.

    Paths handed to the rewrite methods are POSIX strings: sources relative to
    the registry root, targets relative to the project's source root.

    Without a registry only rewrite_imports applies, which is enough to
    repair files that are already installed.
    """

    def __init__(self, config: InstallConfig, registry: Registry | None, project_root: Path):
        self.config = config
        self.registry = registry
        self.project_root = Path(project_root)
        self._source_map = registry.source_to_target() if registry else {}
        source_root = config.source_root(self.project_root)
        self._lib_rel = _relative_to(config.lib_dir(self.project_root), source_root)
        self._components_rel = _relative_to(config.components_dir(self.project_root), source_root)

    def rewrite_imports(self, content: str, target_path: str | None = None) -> str:
        """Replace @ownkit/* package references with project-local paths.

        Files landing inside the lib directory reference sibling lib modules
        by relative path; everything else goes through the configured aliases.
        """
        target_dir = PurePosixPath(target_path).parent if target_path else None
        in_lib = target_dir is not None and _is_within(target_dir, self._lib_rel)

        def replace(match: re.Match) -> str:
            package = match.group("package")
            if package not in PACKAGE_TARGETS:
                _logging.debug(f"Leaving unknown package {REGISTRY_NAMESPACE}/{package} untouched")
                return match.group(0)
            root, subpath = PACKAGE_TARGETS[package]
            rest = (match.group("subpath") or "").strip("/")
            parts = [p for p in (subpath, rest) if p]

            if root == "lib" and in_lib:
                spec = _relative_spec(target_dir, self._lib_rel.joinpath(*parts))
            else:
                alias = self.config.lib_alias if root == "lib" else self.config.components_alias
                spec = "/".join([alias.rstrip("/"), *parts])
            quote = match.group("quote")
            return f"{match.group('prefix')}{quote}{spec}{quote}"

        return _NAMESPACE_IMPORT.sub(replace, content)

    def rewrite_relative_imports(
        self,
        content: str,
        source_path: str,
        target_path: str,
        alias_root: str,
        only: set[str] | None = None,
    ) -> str:
        """Re-derive relative imports for the file's new location.

        An import resolving to another registry source is pointed at that
        source's install target. Unknown sibling-folder imports such as
        '../upload' fall back to the flat component layout. When only is
        given, specs outside it are left alone.
        """
        source_dir = PurePosixPath(source_path).parent
        target_dir = PurePosixPath(target_path).parent

        def replace(match: re.Match) -> str:
            spec = match.group("spec")
            if only is not None and spec not in only:
                return match.group(0)
            resolved = PurePosixPath(os.path.normpath(str(source_dir / spec)).replace(os.sep, "/"))
            new_spec = None

            for candidate in SOURCE_CANDIDATES:
                mapped = self._source_map.get(f"{resolved}{candidate}")
                if mapped is None:
                    continue
                mapped_path = PurePosixPath(mapped)
                if candidate == "" and mapped_path.suffix not in SCRIPT_SUFFIXES:
                    new_spec = _relative_spec(target_dir, mapped_path)
                else:
                    new_spec = _relative_spec(target_dir, _strip_script_suffix(mapped_path))
                break

            if new_spec is None:
                sibling = _SIBLING_COMPONENT.match(spec)
                if not sibling or not _is_within(target_dir, self._components_rel):
                    return match.group(0)
                kebab = to_kebab_case(sibling.group(1))
                if target_dir == self._components_rel:
                    new_spec = f"./{kebab}"
                else:
                    new_spec = f"{alias_root.rstrip('/')}/{kebab}"

            quote = match.group("quote")
            return f"{match.group('prefix')}{quote}{new_spec}{quote}"

        return _RELATIVE_IMPORT.sub(replace, content)

    def rewrite_composite_imports(self, content: str, family: str, source_path: str) -> str:
        """Apply the per-family rules for a multi-file composite component."""
        rules = COMPOSITE_FAMILIES.get(family)
        if not rules:
            return content

        folder = "root"
        if "/components/" in source_path:
            folder = "components"
        elif "/utils/" in source_path:
            folder = "utils"

        for old, new in rules.get(folder, {}).items():
            pattern = re.compile(r"(from\s+['\"])" + re.escape(old) + r"(['\"])")
            content = pattern.sub(lambda m: f"{m.group(1)}{new}{m.group(2)}", content)
        return content

    def stamp_origin(self, content: str, name: str, package_tag: str, version: str) -> str:
        """Insert the origin header, after a 'use client' directive if present."""
        content = _ORIGIN_BLOCK.sub("", content, count=1)
        today = datetime.now(UTC).date().isoformat()
        if package_tag == LIB_PACKAGE_TAG:
            update = "reinstall a component that uses it with --overwrite"
        else:
            update = f"run: ownkit add {name} --overwrite"
        header = (
            "/**\n"
            f" * @ownkit-origin {package_tag}/{name}\n"
            f" * @ownkit-version {version}\n"
            f" * @ownkit-date {today}\n"
            " *\n"
            " * This file was copied from the ownkit registry and is now yours to edit.\n"
            f" * To update, {update}\n"
            " */\n\n"
        )
        directive = _USE_CLIENT.match(content)
        if directive:
            return directive.group(1) + header + content[directive.end():]
        return header + content

    def transform(
        self,
        content: str,
        source: str,
        target: str,
        origin_name: str,
        package_tag: str,
        family: str | None = None,
    ) -> str:
        """Run every pass over one file.

        Raises:
            TransformError: If any pass fails on this file.
        """
        original_specs = {m.group("spec") for m in _RELATIVE_IMPORT.finditer(content)}
        try:
            content = self.rewrite_imports(content, target)
            content = self.rewrite_relative_imports(
                content, source, target, self.config.components_alias, only=original_specs
            )
            if family:
                content = self.rewrite_composite_imports(content, family, source)
            return self.stamp_origin(content, origin_name, package_tag, self.registry.version)
        except (re.error, ValueError) as e:
            raise TransformError(source, str(e)) from e


__all__ = [
    "REGISTRY_NAMESPACE",
    "LIB_PACKAGE_TAG",
    "PACKAGE_TARGETS",
    "COMPOSITE_FAMILIES",
    "FileTransformer",
    "to_kebab_case",
    "to_pascal_case",
    "package_tag_for",
    "normalize_extension",
    "has_origin",
    "extract_origin_info",
]
