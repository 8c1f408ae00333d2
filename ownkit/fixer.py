"""Repairs for the problems the validator can fix without the registry.

A fix run is planned first: every rewrite is computed in memory and only
written by apply(). Problems with no safe automatic repair are reported
as skipped actions so the summary still accounts for them.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from .config import InstallConfig
from .index_generator import SSR_WRAPPERS, parse_index_exports, resolve_module
from .transformer import FileTransformer, to_kebab_case
from .validator import (
    Validator,
    relative_import_resolves,
    scan_relative_imports,
    scan_ssr_exports,
    scan_untransformed_imports,
)

_logging = logging.getLogger(__name__)


@dataclass
class FixAction:
    file: str
    code: str
    description: str
    fixed: bool
    line: int | None = None


@dataclass
class FixPlan:
    actions: list[FixAction] = field(default_factory=list)
    changes: dict[Path, str] = field(default_factory=dict)

    @property
    def fixed(self) -> list[FixAction]:
        return [a for a in self.actions if a.fixed]

    @property
    def skipped(self) -> list[FixAction]:
        return [a for a in self.actions if not a.fixed]


def kebab_case_spec(spec: str) -> str | None:
    """Return spec with its last segment in kebab-case, or None if unchanged.

    Examples:
        >>> kebab_case_spec("../FileUpload")
        '../file-upload'
        >>> kebab_case_spec("./input") is None
        True
    """
    trimmed = spec.rstrip("/")
    name = PurePosixPath(trimmed).name
    kebab = to_kebab_case(name)
    if kebab == name:
        return None
    prefix = trimmed[: len(trimmed) - len(name)]
    return prefix + kebab


def replace_spec(line: str, old: str, new: str) -> str:
    """Replace a quoted module specifier on one line, keeping its quotes."""
    return re.sub(r"""(['"])""" + re.escape(old) + r"""\1""", lambda m: f"{m.group(1)}{new}{m.group(1)}", line)


def swap_ssr_export(text: str, module: str, wrapper: str) -> str:
    pattern = re.compile(r"""(export\s+\*\s+from\s+)(['"])\./""" + re.escape(module) + r"""\2""")
    return pattern.sub(lambda m: f"{m.group(1)}{m.group(2)}./{wrapper}{m.group(2)}", text)


class Fixer:
    def __init__(self, config: InstallConfig, project_root: Path):
        self.config = config
        self.project_root = Path(project_root)
        self.validator = Validator(config, self.project_root)
        self.transformer = FileTransformer(config, None, self.project_root)
        self._source_root = config.source_root(self.project_root)

    def _rel(self, path: Path) -> str:
        return path.relative_to(self.project_root).as_posix()

    def _read(self, path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            _logging.warning(f"Cannot read {path}: {e}")
            return None

    def fix_untransformed_imports(self, path: Path, text: str, plan: FixPlan) -> str:
        before = scan_untransformed_imports(text, self._rel(path))
        if not before:
            return text
        rewritten = self.transformer.rewrite_imports(text, path.relative_to(self._source_root).as_posix())
        remaining = {e.line for e in scan_untransformed_imports(rewritten, self._rel(path))}
        for error in before:
            fixed = error.line not in remaining
            description = "rewrote registry import" if fixed else "unknown registry package, left as is"
            plan.actions.append(FixAction(error.file, error.code, description, fixed, error.line))
        return rewritten

    def fix_relative_imports(self, path: Path, text: str, plan: FixPlan) -> str:
        lines = text.splitlines(keepends=True)
        for number, spec in scan_relative_imports(text):
            if relative_import_resolves(path.parent, spec):
                continue
            candidate = kebab_case_spec(spec)
            if candidate and relative_import_resolves(path.parent, candidate):
                lines[number - 1] = replace_spec(lines[number - 1], spec, candidate)
                action = FixAction(
                    self._rel(path), "BROKEN_RELATIVE_IMPORT", f"'{spec}' → '{candidate}'", True, number
                )
            else:
                action = FixAction(
                    self._rel(path), "BROKEN_RELATIVE_IMPORT", f"'{spec}' has no matching file", False, number
                )
            plan.actions.append(action)
        return "".join(lines)

    def fix_ssr_exports(self, plan: FixPlan) -> None:
        index = self.validator.index_file()
        if index is None:
            return
        text = plan.changes.get(index)
        if text is None:
            text = self._read(index)
            if text is None:
                return

        updated = text
        for module in scan_ssr_exports(parse_index_exports(text)):
            wrapper = SSR_WRAPPERS[module]
            if resolve_module(self.validator.components_dir, f"./{wrapper}") is None:
                plan.actions.append(
                    FixAction(self._rel(index), "SSR_UNSAFE_EXPORT", f"'{wrapper}' is not installed", False)
                )
                continue
            updated = swap_ssr_export(updated, module, wrapper)
            description = f"export './{wrapper}' instead of './{module}'"
            plan.actions.append(FixAction(self._rel(index), "SSR_UNSAFE_EXPORT", description, True))
        if updated != text:
            plan.changes[index] = updated

    def report_unfixable(self, plan: FixPlan) -> None:
        for warning in self.validator.check_duplicate_exports():
            plan.actions.append(
                FixAction(warning.file, warning.code, f"{warning.message}; fix the index by hand", False)
            )
        for warning in self.validator.check_missing_css():
            plan.actions.append(
                FixAction(warning.file, warning.code, f"{warning.message}; reinstall it with --overwrite", False)
            )

    def plan(self) -> FixPlan:
        plan = FixPlan()
        for path in self.validator.script_files():
            text = self._read(path)
            if text is None:
                continue
            updated = self.fix_untransformed_imports(path, text, plan)
            updated = self.fix_relative_imports(path, updated, plan)
            if updated != text:
                plan.changes[path] = updated
        self.fix_ssr_exports(plan)
        self.report_unfixable(plan)
        _logging.debug(f"Fix plan: {len(plan.fixed)} fixable, {len(plan.skipped)} skipped")
        return plan

    def apply(self, plan: FixPlan) -> list[str]:
        written = []
        for path, content in plan.changes.items():
            path.write_text(content, encoding="utf-8")
            written.append(self._rel(path))
            _logging.debug(f"Rewrote {self._rel(path)}")
        return written


__all__ = [
    "FixAction",
    "FixPlan",
    "Fixer",
    "kebab_case_spec",
    "replace_spec",
    "swap_ssr_export",
]
