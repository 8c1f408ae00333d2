"""Data models for the install engine."""

from dataclasses import dataclass, field
from enum import Enum


class ItemKind(Enum):
    COMPONENT = "component"
    LIB = "lib"


class InstallStatus(Enum):
    INSTALLED = "installed"
    PLANNED = "planned"
    SKIPPED = "skipped"
    IN_BATCH = "in-batch"
    MISSING = "missing"
    FAILED = "failed"


class Decision(Enum):
    PROCEED = "proceed"
    SKIP = "skip"
    ASK = "ask"


@dataclass
class InstallSession:
    """Batch-scoped record of names already entered during resolution.

    Names are never removed while the batch runs, so membership means
    "being resolved or already handled".
    """

    visiting: set[str] = field(default_factory=set)

    @staticmethod
    def key(kind: ItemKind, name: str) -> str:
        return f"{kind.value}:{name}"

    def is_visiting(self, kind: ItemKind, name: str) -> bool:
        return self.key(kind, name) in self.visiting

    def enter(self, kind: ItemKind, name: str) -> None:
        self.visiting.add(self.key(kind, name))


@dataclass
class PlanEntry:
    name: str
    kind: ItemKind
    files: list[str]
    dependencies: list[str] = field(default_factory=list)
    lib_dependencies: list[str] = field(default_factory=list)
    registry_dependencies: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "files": list(self.files),
            "dependencies": list(self.dependencies),
            "libDependencies": list(self.lib_dependencies),
            "registryDependencies": list(self.registry_dependencies),
        }


@dataclass
class ItemResult:
    name: str
    kind: ItemKind
    status: InstallStatus
    files: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    reason: str | None = None
    entry: PlanEntry | None = None


@dataclass
class BatchReport:
    """Everything one add-batch did, in resolution order."""

    dry_run: bool = False
    results: list[ItemResult] = field(default_factory=list)
    plan: list[PlanEntry] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    external_dependencies: list[str] = field(default_factory=list)

    def record(self, result: ItemResult) -> ItemResult:
        self.results.append(result)
        self.warnings.extend(result.warnings)
        if result.entry is not None:
            self.plan.append(result.entry)
        return result

    def add_external(self, packages: list[str]) -> None:
        for package in packages:
            if package not in self.external_dependencies:
                self.external_dependencies.append(package)

    def with_status(self, status: InstallStatus, kind: ItemKind | None = None) -> list[ItemResult]:
        return [
            r for r in self.results
            if r.status == status and (kind is None or r.kind == kind)
        ]

    @property
    def changed(self) -> bool:
        """True when at least one item was written to the project."""
        return any(r.status == InstallStatus.INSTALLED for r in self.results)


__all__ = [
    "ItemKind",
    "InstallStatus",
    "Decision",
    "InstallSession",
    "PlanEntry",
    "ItemResult",
    "BatchReport",
]
