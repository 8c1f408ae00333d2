"""Copying, transforming and recording resolved items."""

import logging
from pathlib import Path, PurePosixPath

from ..config import InstallConfig
from ..errors import SourceFileMissingError, TransformError
from ..registry import ComponentEntry, FileMapping, LibModule, Registry
from ..transformer import (
    COMPOSITE_FAMILIES,
    LIB_PACKAGE_TAG,
    SCRIPT_SUFFIXES,
    FileTransformer,
    normalize_extension,
    package_tag_for,
)
from .models import InstallStatus, ItemKind, ItemResult, PlanEntry

_logging = logging.getLogger(__name__)


class Installer:
    """Installs single components and lib modules into a project.

    The Installer never decides whether something should be installed; that
    is the resolver's job. With dry_run set nothing is read from or written
    to the project and each item yields a PlanEntry instead.
    """

    def __init__(
        self,
        registry: Registry,
        config: InstallConfig,
        project_root: Path,
        dry_run: bool = False,
    ):
        if registry.root is None:
            raise ValueError("Registry has no root directory to copy sources from")
        self.registry = registry
        self.config = config
        self.project_root = Path(project_root)
        self.dry_run = dry_run
        self.transformer = FileTransformer(config, registry, self.project_root)
        self._source_root = config.source_root(self.project_root)

    def target_path(self, mapping: FileMapping, is_component: bool) -> Path:
        target = self._source_root / mapping.target
        if is_component:
            target = normalize_extension(target, self.config.tsx)
        return target

    def install_component(self, component: ComponentEntry) -> ItemResult:
        family = component.name if component.name in COMPOSITE_FAMILIES else None
        if self.dry_run:
            return self._planned(
                component.name,
                ItemKind.COMPONENT,
                component.files,
                is_component=True,
                dependencies=component.dependencies,
                lib_dependencies=component.internal_dependencies,
                registry_dependencies=component.registry_dependencies,
            )

        written, warnings = self._install_files(
            component.files, component.name, None, family, is_component=True
        )
        result = self._finish(component.name, ItemKind.COMPONENT, component.files, written, warnings)
        if result.status == InstallStatus.INSTALLED:
            source = package_tag_for(component.files[0].source) if component.files else self.registry.name
            self.config.upsert_component(component.name, self.registry.version, source)
        return result

    def install_lib(self, module: LibModule) -> ItemResult:
        if self.dry_run:
            return self._planned(
                module.name,
                ItemKind.LIB,
                module.files,
                is_component=False,
                lib_dependencies=module.internal_dependencies,
            )

        written, warnings = self._install_files(
            module.files, module.name, LIB_PACKAGE_TAG, None, is_component=False
        )
        result = self._finish(module.name, ItemKind.LIB, module.files, written, warnings)
        if result.status == InstallStatus.INSTALLED:
            self.config.upsert_lib(module.name, self.registry.version, LIB_PACKAGE_TAG)
        return result

    def _finish(
        self,
        name: str,
        kind: ItemKind,
        files: list[FileMapping],
        written: list[str],
        warnings: list[str],
    ) -> ItemResult:
        if files and not written:
            return ItemResult(
                name, kind, InstallStatus.FAILED, warnings=warnings, reason="no files could be installed"
            )
        _logging.debug(f"Installed {kind.value} '{name}' ({len(written)} file(s))")
        return ItemResult(name, kind, InstallStatus.INSTALLED, files=written, warnings=warnings)

    def _planned(
        self,
        name: str,
        kind: ItemKind,
        files: list[FileMapping],
        is_component: bool,
        dependencies: list[str] | None = None,
        lib_dependencies: list[str] | None = None,
        registry_dependencies: list[str] | None = None,
    ) -> ItemResult:
        targets = []
        warnings = []
        for mapping in files:
            if not (self.registry.root / mapping.source).is_file():
                warnings.append(f"{name}: {SourceFileMissingError(mapping.source)}")
            targets.append(self._display(self.target_path(mapping, is_component)))
        entry = PlanEntry(
            name=name,
            kind=kind,
            files=targets,
            dependencies=list(dependencies or []),
            lib_dependencies=list(lib_dependencies or []),
            registry_dependencies=list(registry_dependencies or []),
        )
        return ItemResult(name, kind, InstallStatus.PLANNED, files=targets, warnings=warnings, entry=entry)

    def _install_files(
        self,
        files: list[FileMapping],
        name: str,
        package_tag: str | None,
        family: str | None,
        is_component: bool,
    ) -> tuple[list[str], list[str]]:
        written = []
        warnings = []
        for mapping in files:
            try:
                target = self._copy_file(mapping, name, package_tag, family, is_component)
            except SourceFileMissingError as e:
                _logging.warning(f"{name}: {e}")
                warnings.append(f"{name}: {e}")
                continue
            except TransformError as e:
                _logging.error(f"{name}: {e}")
                warnings.append(f"{name}: {e}")
                continue
            written.append(self._display(target))
        return written, warnings

    def _copy_file(
        self,
        mapping: FileMapping,
        name: str,
        package_tag: str | None,
        family: str | None,
        is_component: bool,
    ) -> Path:
        source = self.registry.root / mapping.source
        if not source.is_file():
            raise SourceFileMissingError(mapping.source)

        target = self.target_path(mapping, is_component)
        if PurePosixPath(mapping.source).suffix in SCRIPT_SUFFIXES:
            try:
                content = source.read_text(encoding="utf-8")
            except UnicodeDecodeError as e:
                raise TransformError(mapping.source, "file is not valid UTF-8") from e
            target_rel = target.relative_to(self._source_root).as_posix()
            content = self.transformer.transform(
                content,
                mapping.source,
                target_rel,
                origin_name=name,
                package_tag=package_tag or package_tag_for(mapping.source),
                family=family,
            )
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(source.read_bytes())

        _logging.debug(f"  {mapping.source} -> {self._display(target)}")
        return target

    def _display(self, path: Path) -> str:
        return path.relative_to(self.project_root).as_posix()


__all__ = ["Installer"]
