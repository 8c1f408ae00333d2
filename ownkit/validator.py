"""Read-only static checks over an installed project.

Each check is a pure scan over text or path sets plus a thin wrapper that
reads the filesystem. The validator never touches the registry, so it
reports on what is actually in the tree.
"""

import asyncio
import logging
import re
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from pathlib import Path

from .config import InstallConfig
from .execution import TYPECHECK_TIMEOUT, run_command_async
from .index_generator import SSR_WRAPPERS, collect_named_exports, find_collisions, parse_index_exports
from .transformer import REGISTRY_NAMESPACE, SCRIPT_SUFFIXES

_logging = logging.getLogger(__name__)

RELATIVE_CANDIDATES = (
    "", ".ts", ".tsx", ".js", ".jsx", ".d.ts",
    "/index.ts", "/index.tsx", "/index.js", "/index.jsx",
)

REQUIRED_LIB_FILES = {
    "types": ("types/index.ts", "types/core.ts"),
    "services": ("services/index.ts", "services/api-request.ts"),
    "hooks": ("hooks/index.ts",),
    "utils": ("utils.ts",),
}

REQUIRED_API_ROUTES = (
    "fields/[collection]",
    "items/[collection]",
    "items/[collection]/[id]",
    "permissions/me",
)

CSS_REQUIREMENTS = {
    "input-block-editor": "InputBlockEditor.css",
    "rich-text-html": "RichTextHTML.css",
    "rich-text-markdown": "RichTextMarkdown.css",
}

REINSTALL_ALL = "ownkit add --all --overwrite --yes"

SUGGESTIONS = {
    "UNTRANSFORMED_IMPORT": "Fix {count} untransformed import(s) by running: " + REINSTALL_ALL,
    "BROKEN_RELATIVE_IMPORT": "Fix {count} broken relative import(s) by running: " + REINSTALL_ALL,
    "MISSING_LIB_FILE": "Restore {count} missing lib file(s) by running: " + REINSTALL_ALL,
    "MISSING_INTERFACE_REGISTRY": "Add the missing interface-registry.ts by running: " + REINSTALL_ALL,
    "SSR_UNSAFE_EXPORT": "Export {count} browser-only component(s) from their SSR wrapper in the components index",
    "MISSING_API_ROUTE": "Create {count} missing API route(s) under app/api",
    "DUPLICATE_EXPORT": "Resolve {count} duplicate export name(s) with explicit named exports in the components index",
    "MISSING_CSS": "Restore {count} missing CSS file(s) by reinstalling the component with --overwrite",
    "DUPLICATE_EXPORT_PATH": "Regenerate the components index to drop {count} repeated export(s) by running: "
    + REINSTALL_ALL,
    "TYPE_ERROR": "Fix {count} type error(s) reported by tsc in installed files",
    "TYPECHECK_FAILED": "Make sure typescript is installed and 'npx tsc --noEmit' runs in the project",
}

_NAMESPACE_REFERENCE = re.compile(r"""['"]""" + re.escape(REGISTRY_NAMESPACE) + "/")
_RELATIVE_REFERENCE = re.compile(
    r"""(?:\bfrom\s+|\bimport\s+|\bimport\(\s*|\brequire\(\s*)['"](?P<spec>\.{1,2}/[^'"]*)['"]"""
)
_TSC_DIAGNOSTIC = re.compile(r"^(.+?)\((\d+),(\d+)\): (error|warning) (TS\d+): (.*)$")


@dataclass
class ValidationError:
    file: str
    message: str
    code: str
    line: int | None = None


@dataclass
class ValidationWarning:
    file: str
    message: str
    code: str


@dataclass
class ValidationResult:
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "errors": [asdict(e) for e in self.errors],
            "warnings": [asdict(w) for w in self.warnings],
            "suggestions": list(self.suggestions),
        }


@dataclass
class TscDiagnostic:
    file: str
    line: int
    column: int
    severity: str
    code: str
    message: str


def _is_comment(line: str) -> bool:
    stripped = line.lstrip()
    return stripped.startswith(("//", "*", "/*"))


def scan_untransformed_imports(text: str, file: str) -> list[ValidationError]:
    """Report every non-comment line that still references the registry namespace."""
    errors = []
    for number, line in enumerate(text.splitlines(), 1):
        if _is_comment(line) or not _NAMESPACE_REFERENCE.search(line):
            continue
        errors.append(
            ValidationError(
                file=file,
                line=number,
                message=f"Untransformed import: {line.strip()}",
                code="UNTRANSFORMED_IMPORT",
            )
        )
    return errors


def scan_relative_imports(text: str) -> list[tuple[int, str]]:
    """Return (line, specifier) for every relative import outside comments."""
    found = []
    for number, line in enumerate(text.splitlines(), 1):
        if _is_comment(line):
            continue
        found.extend((number, m.group("spec")) for m in _RELATIVE_REFERENCE.finditer(line))
    return found


def relative_import_resolves(base_dir: Path, spec: str) -> bool:
    target = str(base_dir / spec).rstrip("/")
    return any(Path(target + candidate).is_file() for candidate in RELATIVE_CANDIDATES)


def find_missing_lib_files(installed_lib: Iterable[str], existing: set[str]) -> list[tuple[str, str]]:
    """Return (module, file) pairs required by installed modules but absent.

    existing holds POSIX paths relative to the lib directory.
    """
    missing = []
    for module in installed_lib:
        for required in REQUIRED_LIB_FILES.get(module, ()):
            if required not in existing:
                missing.append((module, required))
    return missing


def scan_ssr_exports(exports: list[str]) -> list[str]:
    """Return browser-only modules exported directly instead of via their wrapper."""
    unsafe = []
    for module, wrapper in SSR_WRAPPERS.items():
        if f"./{module}" in exports and f"./{wrapper}" not in exports:
            unsafe.append(module)
    return unsafe


def find_missing_routes(existing: set[str]) -> list[str]:
    """Return required API routes with no route file.

    existing holds route directories relative to app/api.
    """
    return [route for route in REQUIRED_API_ROUTES if route not in existing]


def find_missing_css(existing: set[str]) -> list[tuple[str, str]]:
    """Return (component, stylesheet) pairs whose component file exists without its CSS.

    existing holds file names directly inside the components directory.
    """
    missing = []
    for component, stylesheet in CSS_REQUIREMENTS.items():
        installed = any(f"{component}{suffix}" in existing for suffix in SCRIPT_SUFFIXES)
        if installed and stylesheet not in existing:
            missing.append((component, stylesheet))
    return missing


def find_duplicate_paths(exports: list[str]) -> list[str]:
    seen = set()
    duplicates = []
    for path in exports:
        if path in seen and path not in duplicates:
            duplicates.append(path)
        seen.add(path)
    return duplicates


def parse_tsc_output(output: str) -> list[TscDiagnostic]:
    diagnostics = []
    for line in output.splitlines():
        match = _TSC_DIAGNOSTIC.match(line.strip())
        if match:
            file, line_no, column, severity, code, message = match.groups()
            diagnostics.append(
                TscDiagnostic(file.replace("\\", "/"), int(line_no), int(column), severity, code, message)
            )
    return diagnostics


def build_suggestions(errors: list[ValidationError], warnings: list[ValidationWarning]) -> list[str]:
    counts: dict[str, int] = {}
    for finding in [*errors, *warnings]:
        counts[finding.code] = counts.get(finding.code, 0) + 1
    return [
        template.format(count=counts[code])
        for code, template in SUGGESTIONS.items()
        if code in counts
    ]


class Validator:
    def __init__(self, config: InstallConfig, project_root: Path):
        self.config = config
        self.project_root = Path(project_root)
        self.components_dir = config.components_dir(self.project_root)
        self.lib_dir = config.lib_dir(self.project_root)

    def _rel(self, path: Path) -> str:
        try:
            return path.relative_to(self.project_root).as_posix()
        except ValueError:
            return path.as_posix()

    def script_files(self) -> list[Path]:
        files = []
        for root in (self.components_dir, self.lib_dir):
            if not root.is_dir():
                continue
            for path in sorted(root.rglob("*")):
                if "node_modules" in path.parts or not path.is_file():
                    continue
                if path.suffix in SCRIPT_SUFFIXES and path not in files:
                    files.append(path)
        return files

    def _read(self, path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            _logging.warning(f"Cannot read {path}: {e}")
            return None

    def check_untransformed_imports(self) -> list[ValidationError]:
        errors = []
        for path in self.script_files():
            text = self._read(path)
            if text is not None:
                errors.extend(scan_untransformed_imports(text, self._rel(path)))
        return errors

    def check_relative_imports(self) -> list[ValidationError]:
        errors = []
        for path in self.script_files():
            text = self._read(path)
            if text is None:
                continue
            for line, spec in scan_relative_imports(text):
                if not relative_import_resolves(path.parent, spec):
                    errors.append(
                        ValidationError(
                            file=self._rel(path),
                            line=line,
                            message=f"Relative import '{spec}' does not resolve to a file",
                            code="BROKEN_RELATIVE_IMPORT",
                        )
                    )
        return errors

    def check_lib_files(self) -> list[ValidationError]:
        existing = set()
        if self.lib_dir.is_dir():
            existing = {p.relative_to(self.lib_dir).as_posix() for p in self.lib_dir.rglob("*") if p.is_file()}

        errors = [
            ValidationError(
                file=self._rel(self.lib_dir / required),
                message=f"Missing required file for {module} module",
                code="MISSING_LIB_FILE",
            )
            for module, required in find_missing_lib_files(self.config.installed_lib, existing)
        ]
        if "define-interface.ts" in existing and "interface-registry.ts" not in existing:
            errors.append(
                ValidationError(
                    file=self._rel(self.lib_dir / "interface-registry.ts"),
                    message="Missing interface-registry.ts (required by define-interface.ts)",
                    code="MISSING_INTERFACE_REGISTRY",
                )
            )
        return errors

    def index_file(self) -> Path | None:
        for name in ("index.ts", "index.js", "index.tsx", "index.jsx"):
            path = self.components_dir / name
            if path.is_file():
                return path
        return None

    def _index(self) -> tuple[Path, list[str]] | None:
        path = self.index_file()
        if path is None:
            return None
        text = self._read(path)
        return (path, parse_index_exports(text)) if text is not None else None

    def check_ssr_exports(self) -> list[ValidationWarning]:
        index = self._index()
        if index is None:
            return []
        path, exports = index
        return [
            ValidationWarning(
                file=self._rel(path),
                message=f"'{module}' is exported directly and may break server rendering; "
                f"export './{SSR_WRAPPERS[module]}' instead",
                code="SSR_UNSAFE_EXPORT",
            )
            for module in scan_ssr_exports(exports)
        ]

    def check_api_routes(self) -> list[ValidationWarning]:
        candidates = [self.config.source_root(self.project_root) / "app" / "api", self.project_root / "app" / "api"]
        api_dir = next((d for d in candidates if d.is_dir()), None)
        if api_dir is None:
            return []

        existing = {
            p.parent.relative_to(api_dir).as_posix()
            for p in api_dir.rglob("route.*")
            if p.suffix in SCRIPT_SUFFIXES
        }
        return [
            ValidationWarning(
                file=self._rel(api_dir / route / "route.ts"),
                message="Missing API route required by data-bound components",
                code="MISSING_API_ROUTE",
            )
            for route in find_missing_routes(existing)
        ]

    def check_duplicate_exports(self) -> list[ValidationWarning]:
        index = self._index()
        if index is None:
            return []
        path, exports = index
        file = self._rel(path)
        warnings = [
            ValidationWarning(file=file, message=f"'{spec}' is exported more than once", code="DUPLICATE_EXPORT_PATH")
            for spec in find_duplicate_paths(exports)
        ]
        unique = list(dict.fromkeys(exports))
        for collision in find_collisions(collect_named_exports(self.components_dir, unique)):
            warnings.append(ValidationWarning(file=file, message=collision.describe(), code="DUPLICATE_EXPORT"))
        return warnings

    def check_missing_css(self) -> list[ValidationWarning]:
        existing = set()
        if self.components_dir.is_dir():
            existing = {p.name for p in self.components_dir.iterdir() if p.is_file()}
        return [
            ValidationWarning(
                file=self._rel(self.components_dir / stylesheet),
                message=f"Missing CSS file for {component}",
                code="MISSING_CSS",
            )
            for component, stylesheet in find_missing_css(existing)
        ]

    async def check_types(self) -> tuple[list[ValidationError], list[ValidationWarning]]:
        output, returncode = await run_command_async(
            ["npx", "tsc", "--noEmit", "--pretty", "false"],
            cwd=self.project_root,
            timeout=TYPECHECK_TIMEOUT,
        )
        roots = [self._rel(self.components_dir), self._rel(self.lib_dir)]
        diagnostics = parse_tsc_output(output)
        errors = [
            ValidationError(
                file=d.file,
                line=d.line,
                message=f"{d.code}: {d.message}",
                code="TYPE_ERROR",
            )
            for d in diagnostics
            if d.severity == "error" and any(d.file == r or d.file.startswith(f"{r}/") for r in roots)
        ]
        warnings = []
        if returncode != 0 and not diagnostics:
            first_line = output.splitlines()[0] if output else "no output"
            warnings.append(
                ValidationWarning(file="tsconfig.json", message=f"tsc did not run: {first_line}", code="TYPECHECK_FAILED")
            )
        return errors, warnings

    async def run(self, typecheck: bool = False) -> ValidationResult:
        checks = (
            self.check_untransformed_imports,
            self.check_relative_imports,
            self.check_lib_files,
            self.check_ssr_exports,
            self.check_api_routes,
            self.check_duplicate_exports,
            self.check_missing_css,
        )
        outcomes = await asyncio.gather(*(asyncio.to_thread(check) for check in checks))

        result = ValidationResult()
        for findings in outcomes:
            for finding in findings:
                if isinstance(finding, ValidationError):
                    result.errors.append(finding)
                else:
                    result.warnings.append(finding)

        if typecheck:
            type_errors, type_warnings = await self.check_types()
            result.errors.extend(type_errors)
            result.warnings.extend(type_warnings)

        result.suggestions = build_suggestions(result.errors, result.warnings)
        _logging.debug(f"Validation finished: {len(result.errors)} error(s), {len(result.warnings)} warning(s)")
        return result


async def validate_project(config: InstallConfig, project_root: Path, typecheck: bool = False) -> ValidationResult:
    return await Validator(config, project_root).run(typecheck=typecheck)


__all__ = [
    "ValidationError",
    "ValidationWarning",
    "ValidationResult",
    "TscDiagnostic",
    "SUGGESTIONS",
    "REQUIRED_LIB_FILES",
    "REQUIRED_API_ROUTES",
    "CSS_REQUIREMENTS",
    "Validator",
    "validate_project",
    "scan_untransformed_imports",
    "scan_relative_imports",
    "relative_import_resolves",
    "find_missing_lib_files",
    "scan_ssr_exports",
    "find_missing_routes",
    "find_duplicate_paths",
    "find_missing_css",
    "parse_tsc_output",
    "build_suggestions",
]
