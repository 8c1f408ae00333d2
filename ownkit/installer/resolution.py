"""Dependency resolution for add-batches."""

import logging
from collections.abc import Callable

from ..config import InstallConfig
from ..errors import LibModuleNotFoundError, RegistryError
from ..registry import ComponentEntry, Registry
from .installation import Installer
from .models import (
    BatchReport,
    Decision,
    InstallSession,
    InstallStatus,
    ItemKind,
    ItemResult,
)

_logging = logging.getLogger(__name__)

ConfirmOverwrite = Callable[[ComponentEntry], bool]


def decide_overwrite(installed: bool, overwrite: bool, interactive: bool, requested: bool) -> Decision:
    """Decide what to do with a component that may already be installed.

    Prerequisites that are already installed count as satisfied and are never
    asked about.
    """
    if not installed or overwrite:
        return Decision.PROCEED
    if not requested:
        return Decision.SKIP
    return Decision.ASK if interactive else Decision.SKIP


class DependencyResolver:
    """Depth-first walk that installs prerequisites before each target.

    Lib modules come before prerequisite components, both in registry
    declaration order. The session breaks cycles and stops the same name
    from being processed twice in one batch.
    """

    def __init__(
        self,
        registry: Registry,
        config: InstallConfig,
        installer: Installer,
        session: InstallSession | None = None,
        overwrite: bool = False,
        interactive: bool = False,
        confirm_overwrite: ConfirmOverwrite | None = None,
    ):
        if interactive and confirm_overwrite is None:
            raise ValueError("interactive resolution needs a confirm_overwrite callback")
        self.registry = registry
        self.config = config
        self.installer = installer
        self.session = session or InstallSession()
        self.overwrite = overwrite
        self.interactive = interactive
        self.confirm_overwrite = confirm_overwrite
        self.report = BatchReport(dry_run=installer.dry_run)

    def resolve(self, component: ComponentEntry, requested: bool = True) -> ItemResult:
        kind = ItemKind.COMPONENT
        if self.session.is_visiting(kind, component.name):
            _logging.debug(f"'{component.name}' already handled in this batch")
            return ItemResult(component.name, kind, InstallStatus.IN_BATCH)

        decision = decide_overwrite(
            installed=self.config.is_component_installed(component.name),
            overwrite=self.overwrite,
            interactive=self.interactive,
            requested=requested,
        )
        if decision == Decision.ASK:
            decision = Decision.PROCEED if self.confirm_overwrite(component) else Decision.SKIP
        if decision == Decision.SKIP:
            self.session.enter(kind, component.name)
            reason = "already installed" if requested else "already satisfied"
            _logging.debug(f"Skipping '{component.name}': {reason}")
            return self.report.record(ItemResult(component.name, kind, InstallStatus.SKIPPED, reason=reason))

        self.session.enter(kind, component.name)
        for lib_name in component.internal_dependencies:
            self.resolve_lib(lib_name, required_by=component.name)
        for dep_name in component.registry_dependencies:
            dependency = self.registry.get_component(dep_name)
            if dependency is None:
                raise RegistryError(
                    f"Component '{component.name}' depends on unknown component '{dep_name}'"
                )
            self.resolve(dependency, requested=False)

        result = self.installer.install_component(component)
        if result.status in (InstallStatus.INSTALLED, InstallStatus.PLANNED):
            self.report.add_external(component.dependencies)
        return self.report.record(result)

    def resolve_lib(self, name: str, required_by: str | None = None) -> ItemResult:
        kind = ItemKind.LIB
        if self.session.is_visiting(kind, name):
            return ItemResult(name, kind, InstallStatus.IN_BATCH)
        self.session.enter(kind, name)

        module = self.registry.get_lib(name)
        if module is None:
            error = LibModuleNotFoundError(name, required_by)
            _logging.warning(str(error))
            return self.report.record(ItemResult(name, kind, InstallStatus.MISSING, reason=str(error)))

        if self.config.is_lib_installed(name) and not self.overwrite:
            return self.report.record(ItemResult(name, kind, InstallStatus.SKIPPED, reason="already installed"))

        for dep_name in module.internal_dependencies:
            self.resolve_lib(dep_name, required_by=f"lib/{name}")

        return self.report.record(self.installer.install_lib(module))


def resolve(
    requested: list[str],
    registry: Registry,
    config: InstallConfig,
    installer: Installer,
    session: InstallSession | None = None,
    overwrite: bool = False,
    interactive: bool = False,
    confirm_overwrite: ConfirmOverwrite | None = None,
    extra_lib: list[str] | None = None,
) -> BatchReport:
    """Resolve and install a batch of requested component names.

    Every name is matched before anything is written, so a typo aborts the
    batch up front.

    Raises:
        ComponentNotFoundError: If a requested name matches no component.
        RegistryError: If a component depends on a component the registry lacks.
    """
    components = []
    for name in requested:
        component = registry.find_component(name)
        if component not in components:
            components.append(component)

    resolver = DependencyResolver(
        registry,
        config,
        installer,
        session=session,
        overwrite=overwrite,
        interactive=interactive,
        confirm_overwrite=confirm_overwrite,
    )
    for lib_name in extra_lib or []:
        resolver.resolve_lib(lib_name, required_by="--with-api")
    for component in components:
        resolver.resolve(component)
    return resolver.report


__all__ = [
    "ConfirmOverwrite",
    "DependencyResolver",
    "decide_overwrite",
    "resolve",
]
