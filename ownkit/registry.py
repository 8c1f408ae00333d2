"""Registry model, loading and component lookup.

The registry document is parsed into dataclasses and validated eagerly, so a
malformed registry is rejected before any resolution starts. JSON documents
may carry // comments and trailing commas; YAML documents are also accepted.
"""

import logging
import re
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from pathlib import Path, PurePosixPath

import yaml

from .config import load_document
from .errors import ComponentNotFoundError, ConfigError, RegistryError, format_field_error
from .paths import find_registry_document

_logging = logging.getLogger(__name__)

# Common alternate names, applied only when the target exists in the registry.
BUILTIN_ALIASES = {
    "form": "vform",
    "dropdown": "select-dropdown",
    "checkbox": "boolean",
    "switch": "toggle",
    "wysiwyg": "rich-text-html",
    "markdown": "rich-text-markdown",
    "editor": "input-block-editor",
    "datepicker": "datetime",
    "date": "datetime",
    "table": "vtable",
}

SUGGESTION_LIMIT = 5
SUGGESTION_MIN_SCORE = 0.5


@dataclass(frozen=True)
class FileMapping:
    source: str
    target: str


@dataclass
class LibModule:
    name: str
    description: str
    files: list[FileMapping]
    internal_dependencies: list[str] = field(default_factory=list)
    single_file: bool = False


@dataclass
class ComponentEntry:
    name: str
    title: str
    description: str
    category: str
    files: list[FileMapping]
    dependencies: list[str] = field(default_factory=list)
    internal_dependencies: list[str] = field(default_factory=list)
    registry_dependencies: list[str] = field(default_factory=list)


@dataclass
class Category:
    name: str
    title: str
    description: str = ""


@dataclass
class Registry:
    version: str
    name: str
    lib: dict[str, LibModule]
    components: list[ComponentEntry]
    categories: list[Category] = field(default_factory=list)
    aliases: dict[str, str] = field(default_factory=dict)
    api_lib: list[str] = field(default_factory=list)
    root: Path | None = None

    def get_component(self, name: str) -> ComponentEntry | None:
        return next((c for c in self.components if c.name == name), None)

    def get_lib(self, name: str) -> LibModule | None:
        return self.lib.get(name)

    def components_in_category(self, category: str) -> list[ComponentEntry]:
        return [c for c in self.components if c.category == category]

    def category_names(self) -> list[str]:
        return [c.name for c in self.categories]

    def source_to_target(self) -> dict[str, str]:
        """Map every registry source path to its install target."""
        mapping = {}
        for module in self.lib.values():
            for f in module.files:
                mapping[_normalize_posix(f.source)] = f.target
        for component in self.components:
            for f in component.files:
                mapping[_normalize_posix(f.source)] = f.target
        return mapping

    def find_component(self, query: str) -> ComponentEntry:
        """Match a user-supplied name against the registry.

        Tries, in order: exact name, title, normalized name/title, and the
        alias tables.

        Raises:
            ComponentNotFoundError: With ranked suggestions when nothing matches.
        """
        lowered = query.strip().lower()
        for component in self.components:
            if component.name.lower() == lowered:
                return component
        for component in self.components:
            if component.title.lower() == lowered:
                return component

        normalized = normalize_name(query)
        for component in self.components:
            if normalize_name(component.name) == normalized or normalize_name(component.title) == normalized:
                return component

        for table in (self.aliases, BUILTIN_ALIASES):
            for alias, target in table.items():
                if normalize_name(alias) == normalized:
                    component = self.get_component(target)
                    if component:
                        _logging.debug(f"Resolved alias '{query}' -> '{target}'")
                        return component

        raise ComponentNotFoundError(query, self.suggest(query))

    def suggest(self, query: str) -> list[str]:
        """Rank near-miss component names and matching categories."""
        normalized = normalize_name(query)
        scored = []
        for component in self.components:
            score = max(
                _similarity(normalized, normalize_name(component.name)),
                _similarity(normalized, normalize_name(component.title)),
            )
            if normalized and normalized in normalize_name(component.name):
                score = max(score, 0.8)
            if score >= SUGGESTION_MIN_SCORE:
                scored.append((score, component))

        scored.sort(key=lambda item: (-item[0], item[1].name))
        suggestions = [
            f"{c.name} ({c.title}) [{c.category}]" for _, c in scored[:SUGGESTION_LIMIT]
        ]

        for category in self.categories:
            if normalized in (normalize_name(category.name), normalize_name(category.title)):
                suggestions.append(
                    f"category '{category.name}': try 'ownkit add --category {category.name}'"
                )
        return suggestions


def normalize_name(value: str) -> str:
    """Lowercase and drop everything but letters and digits."""
    return re.sub(r"[^a-z0-9]", "", value.lower())


def _similarity(a: str, b: str) -> float:
    if not a or not b:
        return 0.0
    return SequenceMatcher(None, a, b).ratio()


def _normalize_posix(path: str) -> str:
    return str(PurePosixPath(path))


def _require_str_field(data: dict, field_name: str, entity: str) -> str:
    if field_name not in data:
        raise RegistryError(f"{entity} missing required field: {field_name}")
    value = data[field_name]
    if not isinstance(value, str) or not value.strip():
        raise RegistryError(format_field_error(entity, field_name, "must be a non-empty string"))
    return value


def _string_list(data: dict, field_name: str, entity: str) -> list[str]:
    value = data.get(field_name)
    if value is None:
        return []
    if not isinstance(value, list):
        raise RegistryError(format_field_error(entity, field_name, "must be an array"))
    for i, item in enumerate(value):
        if not isinstance(item, str) or not item.strip():
            raise RegistryError(f"{entity} {field_name}[{i}] must be a non-empty string")
    return list(value)


def _parse_file_mapping(data, entity: str, index: int) -> FileMapping:
    label = f"{entity} files[{index}]"
    if not isinstance(data, dict):
        raise RegistryError(f"{label} must be an object")
    source = _require_str_field(data, "source", label)
    target = _require_str_field(data, "target", label)
    _check_target(target, label)
    return FileMapping(source=source, target=target)


def _check_target(target: str, label: str) -> None:
    path = PurePosixPath(target)
    if path.is_absolute() or ".." in path.parts:
        raise RegistryError(format_field_error(label, "target", "must be a relative path inside the project"))


def _parse_lib_module(key: str, data) -> LibModule:
    entity = f"Lib module '{key}'"
    if not isinstance(data, dict):
        raise RegistryError(f"{entity} must be an object")

    description = data.get("description", "")
    if not isinstance(description, str):
        raise RegistryError(format_field_error(entity, "description", "must be a string"))
    # lib modules are installed and recorded under their key
    if "name" in data and data["name"] != key:
        _logging.debug(f"{entity} declares name '{data['name']}'; using the key")

    has_path = "path" in data or "target" in data
    has_files = "files" in data
    if has_path == has_files:
        raise RegistryError(f"{entity} must define either 'path' and 'target' or 'files'")

    if has_path:
        source = _require_str_field(data, "path", entity)
        target = _require_str_field(data, "target", entity)
        _check_target(target, entity)
        files = [FileMapping(source=source, target=target)]
    else:
        if not isinstance(data["files"], list):
            raise RegistryError(format_field_error(entity, "files", "must be an array"))
        files = [_parse_file_mapping(f, entity, i) for i, f in enumerate(data["files"])]

    return LibModule(
        name=key,
        description=description,
        files=files,
        internal_dependencies=_string_list(data, "internalDependencies", entity),
        single_file=has_path,
    )


def _parse_component(data, index: int) -> ComponentEntry:
    if not isinstance(data, dict):
        raise RegistryError(f"components[{index}] must be an object")
    name = _require_str_field(data, "name", f"components[{index}]")
    entity = f"Component '{name}'"

    for field_name in ("title", "description", "category"):
        _require_str_field(data, field_name, entity)

    files = data.get("files")
    if not isinstance(files, list):
        raise RegistryError(format_field_error(entity, "files", "must be an array"))

    return ComponentEntry(
        name=name,
        title=data["title"],
        description=data["description"],
        category=data["category"],
        files=[_parse_file_mapping(f, entity, i) for i, f in enumerate(files)],
        dependencies=_string_list(data, "dependencies", entity),
        internal_dependencies=_string_list(data, "internalDependencies", entity),
        registry_dependencies=_string_list(data, "registryDependencies", entity),
    )


def _parse_category(data, index: int) -> Category:
    if not isinstance(data, dict):
        raise RegistryError(f"categories[{index}] must be an object")
    name = _require_str_field(data, "name", f"categories[{index}]")
    return Category(
        name=name,
        title=data.get("title") or name,
        description=data.get("description", ""),
    )


def parse_registry(data: dict, root: Path | None = None) -> Registry:
    """Validate a raw registry document and build a Registry.

    Raises:
        RegistryError: If any part of the document is malformed.
    """
    if not isinstance(data, dict):
        raise RegistryError(f"Registry must be an object, got {type(data).__name__}")

    version = _require_str_field(data, "version", "Registry")
    name = _require_str_field(data, "name", "Registry")

    lib_data = data.get("lib", {})
    if not isinstance(lib_data, dict):
        raise RegistryError(format_field_error("Registry", "lib", "must be an object"))
    lib = {key: _parse_lib_module(key, value) for key, value in lib_data.items()}

    components_data = data.get("components")
    if not isinstance(components_data, list):
        raise RegistryError(format_field_error("Registry", "components", "must be an array"))
    components = [_parse_component(c, i) for i, c in enumerate(components_data)]

    categories_data = data.get("categories", [])
    if not isinstance(categories_data, list):
        raise RegistryError(format_field_error("Registry", "categories", "must be an array"))
    categories = [_parse_category(c, i) for i, c in enumerate(categories_data)]

    names = [c.name for c in components]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise RegistryError(f"Registry has duplicate component names: {', '.join(duplicates)}")

    known = set(names)
    for component in components:
        for dep in component.registry_dependencies:
            if dep not in known:
                raise RegistryError(
                    f"Component '{component.name}' registryDependencies references unknown component '{dep}'"
                )
        for dep in component.internal_dependencies:
            if dep not in lib:
                _logging.warning(f"Component '{component.name}' depends on unknown lib module '{dep}'")

    category_names = {c.name for c in categories}
    for component in components:
        if categories and component.category not in category_names:
            _logging.warning(f"Component '{component.name}' uses undeclared category '{component.category}'")

    aliases = data.get("aliases", {})
    if not isinstance(aliases, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in aliases.items()
    ):
        raise RegistryError(format_field_error("Registry", "aliases", "must map strings to strings"))
    for alias, target in aliases.items():
        if target not in known:
            raise RegistryError(f"Registry alias '{alias}' points to unknown component '{target}'")

    return Registry(
        version=version,
        name=name,
        lib=lib,
        components=components,
        categories=categories,
        aliases=dict(aliases),
        api_lib=_string_list(data, "apiLib", "Registry"),
        root=root,
    )


def load_registry(registry_root: Path) -> Registry:
    """Load and validate the registry document under registry_root.

    Raises:
        RegistryError: If no registry document exists or it is malformed.
    """
    registry_root = Path(registry_root)
    document = find_registry_document(registry_root)
    if document is None:
        raise RegistryError(f"No registry.json or registry.yaml found in {registry_root}")

    if document.suffix == ".json":
        try:
            data = load_document(document)
        except ConfigError as e:
            raise RegistryError(str(e)) from e
    else:
        try:
            with open(document, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise RegistryError(f"Failed to parse {document.name}: {e}") from e

    registry = parse_registry(data, root=registry_root)
    _logging.debug(
        f"Loaded registry {registry.name}@{registry.version}: "
        f"{len(registry.components)} components, {len(registry.lib)} lib modules"
    )
    return registry


__all__ = [
    "FileMapping",
    "LibModule",
    "ComponentEntry",
    "Category",
    "Registry",
    "BUILTIN_ALIASES",
    "normalize_name",
    "parse_registry",
    "load_registry",
]
