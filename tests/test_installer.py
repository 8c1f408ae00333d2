"""Tests for the install engine: resolution, copying and dry-run planning."""

from unittest.mock import Mock

import pytest

from ownkit.config import InstallConfig, load_config, save_config
from ownkit.errors import ComponentNotFoundError, RegistryError
from ownkit.installer import (
    Decision,
    DependencyResolver,
    Installer,
    InstallSession,
    InstallStatus,
    ItemKind,
    decide_overwrite,
    plan_install,
    render_plan,
    resolve,
)
from ownkit.registry import ComponentEntry, Registry, parse_registry

from .conftest import snapshot


def _install(names, registry, project_root, **kwargs):
    config = load_config(project_root)
    installer = Installer(registry, config, project_root)
    report = resolve(names, registry, config, installer, **kwargs)
    return config, report


def _statuses(report):
    return [(r.kind.value, r.name, r.status) for r in report.results]


class TestDecideOverwrite:
    """Tests for the pure overwrite policy."""

    @pytest.mark.parametrize(
        "installed, overwrite, interactive, requested, expected",
        [
            (False, False, False, True, Decision.PROCEED),
            (True, True, False, True, Decision.PROCEED),
            (True, True, True, True, Decision.PROCEED),
            (True, False, False, True, Decision.SKIP),
            (True, False, True, True, Decision.ASK),
            (True, False, True, False, Decision.SKIP),
        ],
    )
    def test_policy(self, installed, overwrite, interactive, requested, expected):
        assert decide_overwrite(installed, overwrite, interactive, requested) == expected


class TestInstallSession:
    def test_keys_are_scoped_by_kind(self):
        session = InstallSession()
        session.enter(ItemKind.LIB, "types")
        assert session.is_visiting(ItemKind.LIB, "types")
        assert not session.is_visiting(ItemKind.COMPONENT, "types")
        assert session.visiting == {"lib:types"}


class TestResolve:
    """Tests for dependency resolution and installation."""

    def test_installs_prerequisites_first(self, registry, project_root):
        """Lib modules install before the component that needs them."""
        config, report = _install(["input"], registry, project_root)

        assert _statuses(report) == [
            ("lib", "types", InstallStatus.INSTALLED),
            ("lib", "utils", InstallStatus.INSTALLED),
            ("component", "input", InstallStatus.INSTALLED),
        ]
        assert config.installed_lib == ["types", "utils"]
        assert config.installed_components == ["input"]
        assert (project_root / "lib/ownkit/types/core.ts").exists()
        assert (project_root / "lib/ownkit/utils.ts").exists()

    def test_dependency_completeness(self, registry, project_root):
        """Every transitive prerequisite ends up installed, in DFS order."""
        config, report = _install(["select-dropdown"], registry, project_root)

        installed = [r.name for r in report.with_status(InstallStatus.INSTALLED)]
        assert installed == ["types", "utils", "input", "select-dropdown"]
        assert set(config.installed_components) == {"input", "select-dropdown"}
        assert report.external_dependencies == ["@mantine/core", "clsx@^2"]

    def test_copied_files_are_transformed(self, registry, project_root):
        _install(["select-dropdown"], registry, project_root)

        input_text = (project_root / "components/ui/input.tsx").read_text()
        assert input_text.startswith("'use client';\n/**\n * @ownkit-origin @ownkit/ui-interfaces/input\n")
        assert "from '@/lib/ownkit/types'" in input_text
        assert "from '@/lib/ownkit/utils'" in input_text

        select_text = (project_root / "components/ui/select-dropdown.tsx").read_text()
        assert "from './input'" in select_text

        utils_text = (project_root / "lib/ownkit/utils.ts").read_text()
        assert "from './types'" in utils_text
        assert "@ownkit-origin @ownkit/lib/utils" in utils_text

    def test_idempotent_second_run(self, registry, project_root):
        """A repeated non-interactive add changes nothing."""
        config, _ = _install(["select-dropdown"], registry, project_root)
        save_config(project_root, config)
        before = snapshot(project_root)

        config, report = _install(["select-dropdown"], registry, project_root)

        assert _statuses(report) == [("component", "select-dropdown", InstallStatus.SKIPPED)]
        assert not report.changed
        assert snapshot(project_root) == before
        assert config.installed_components == ["input", "select-dropdown"]

    def test_cycle_terminates(self, registry, project_root):
        """Mutual registryDependencies install both components once."""
        config, report = _install(["alpha"], registry, project_root)

        assert [r.name for r in report.results] == ["beta", "alpha"]
        assert config.installed_components == ["beta", "alpha"]

    def test_requested_twice_is_processed_once(self, registry, project_root):
        _, report = _install(["input", "Input", "select-dropdown"], registry, project_root)
        names = [r.name for r in report.results]
        assert names.count("input") == 1
        assert names.count("types") == 1

    def test_installed_prerequisite_is_satisfied_silently(self, registry, project_root):
        config, _ = _install(["input"], registry, project_root)
        save_config(project_root, config)
        confirm = Mock(return_value=True)

        config, report = _install(
            ["select-dropdown"], registry, project_root, interactive=True, confirm_overwrite=confirm
        )

        confirm.assert_not_called()
        assert ("component", "input", InstallStatus.SKIPPED) in _statuses(report)
        assert report.with_status(InstallStatus.INSTALLED)[-1].name == "select-dropdown"

    def test_unknown_name_aborts_before_writing(self, registry, project_root):
        before = snapshot(project_root)
        with pytest.raises(ComponentNotFoundError):
            _install(["input", "nonexistent-widget"], registry, project_root)
        assert snapshot(project_root) == before

    def test_with_api_lib(self, registry, project_root):
        config, report = _install([], registry, project_root, extra_lib=registry.api_lib)
        assert config.installed_lib == ["types", "services"]
        assert (project_root / "lib/ownkit/services/api-request.ts").exists()
        assert "from '../types'" in (project_root / "lib/ownkit/services/api-request.ts").read_text()


class TestOverwrite:
    """Tests for the three-way overwrite policy end to end."""

    @pytest.fixture
    def installed(self, registry, project_root):
        config, _ = _install(["input"], registry, project_root)
        save_config(project_root, config)
        target = project_root / "components/ui/input.tsx"
        target.write_text("// my edits\n")
        return target

    def test_non_interactive_skips_without_prompt(self, registry, project_root, installed):
        config_before = load_config(project_root).to_dict()
        confirm = Mock(return_value=True)

        config, report = _install(["input"], registry, project_root, confirm_overwrite=confirm)

        assert _statuses(report) == [("component", "input", InstallStatus.SKIPPED)]
        confirm.assert_not_called()
        assert installed.read_text() == "// my edits\n"
        assert config.to_dict() == config_before

    def test_interactive_decline_skips(self, registry, project_root, installed):
        confirm = Mock(return_value=False)

        _, report = _install(["input"], registry, project_root, interactive=True, confirm_overwrite=confirm)

        confirm.assert_called_once_with(registry.get_component("input"))
        assert report.results[0].status == InstallStatus.SKIPPED
        assert installed.read_text() == "// my edits\n"

    def test_interactive_accept_reinstalls_component(self, registry, project_root, installed):
        _, report = _install(
            ["input"], registry, project_root, interactive=True, confirm_overwrite=Mock(return_value=True)
        )
        assert _statuses(report) == [
            ("lib", "types", InstallStatus.SKIPPED),
            ("lib", "utils", InstallStatus.SKIPPED),
            ("component", "input", InstallStatus.INSTALLED),
        ]
        assert "@ownkit-origin" in installed.read_text()

    def test_forced_overwrite_reinstalls_everything(self, registry, project_root, installed):
        _, report = _install(["input"], registry, project_root, overwrite=True)
        assert all(r.status == InstallStatus.INSTALLED for r in report.results)
        assert "@ownkit-origin" in installed.read_text()

    def test_interactive_needs_callback(self, registry, project_root):
        config = load_config(project_root)
        with pytest.raises(ValueError):
            DependencyResolver(registry, config, Installer(registry, config, project_root), interactive=True)


class TestRecoverableFailures:
    """Missing lib modules and source files do not abort the batch."""

    @pytest.fixture
    def broken_registry(self, temp_dir):
        root = temp_dir / "broken"
        (root / "ui").mkdir(parents=True)
        (root / "ui/widget.tsx").write_text("export const Widget = 1;\n")
        (root / "ui/styles.css").write_text(".widget {}\n")
        return parse_registry(
            {
                "version": "1.0.0",
                "name": "broken",
                "lib": {},
                "components": [
                    {
                        "name": "widget",
                        "title": "Widget",
                        "description": "Needs a lib module that does not exist",
                        "category": "misc",
                        "files": [
                            {"source": "ui/widget.tsx", "target": "components/ui/widget.tsx"},
                            {"source": "ui/styles.css", "target": "components/ui/widget.css"},
                            {"source": "ui/gone.tsx", "target": "components/ui/gone.tsx"},
                        ],
                        "internalDependencies": ["ghost"],
                    },
                    {
                        "name": "phantom",
                        "title": "Phantom",
                        "description": "Every source is missing",
                        "category": "misc",
                        "files": [{"source": "ui/phantom.tsx", "target": "components/ui/phantom.tsx"}],
                    },
                ],
            },
            root=root,
        )

    def test_missing_lib_module_is_reported(self, broken_registry, project_root):
        config, report = _install(["widget"], broken_registry, project_root)

        missing = report.with_status(InstallStatus.MISSING)
        assert [r.name for r in missing] == ["ghost"]
        assert "required by widget" in missing[0].reason
        assert config.installed_components == ["widget"]

    def test_missing_source_skips_only_that_file(self, broken_registry, project_root):
        _, report = _install(["widget"], broken_registry, project_root)

        widget = report.results[-1]
        assert widget.status == InstallStatus.INSTALLED
        assert widget.files == ["components/ui/widget.tsx", "components/ui/widget.css"]
        assert any("ui/gone.tsx" in w for w in report.warnings)
        assert (project_root / "components/ui/widget.css").read_text() == ".widget {}\n"

    def test_all_sources_missing_fails_item(self, broken_registry, project_root):
        config, report = _install(["phantom"], broken_registry, project_root)
        assert report.results[0].status == InstallStatus.FAILED
        assert config.installed_components == []


class TestLibGraphs:
    """Lib modules that depend on each other, or are named apart from their key."""

    @pytest.fixture
    def lib_registry(self, temp_dir):
        root = temp_dir / "libs"
        root.mkdir()
        for name in ("a", "b", "c1", "c2"):
            (root / f"{name}.ts").write_text(f"export const {name} = 1;\n")

        def component(name):
            return {
                "name": name,
                "title": name.upper(),
                "description": "Needs lib a",
                "category": "misc",
                "files": [{"source": f"{name}.ts", "target": f"components/ui/{name}.tsx"}],
                "internalDependencies": ["a"],
            }

        return parse_registry(
            {
                "version": "1.0.0",
                "name": "libs",
                "lib": {
                    "a": {
                        "name": "alpha-lib",
                        "path": "a.ts",
                        "target": "lib/ownkit/a.ts",
                        "internalDependencies": ["b"],
                    },
                    "b": {"path": "b.ts", "target": "lib/ownkit/b.ts", "internalDependencies": ["a"]},
                },
                "components": [component("c1"), component("c2")],
            },
            root=root,
        )

    def test_lib_cycle_terminates(self, lib_registry, project_root):
        config, report = _install(["c1"], lib_registry, project_root)

        assert _statuses(report) == [
            ("lib", "b", InstallStatus.INSTALLED),
            ("lib", "a", InstallStatus.INSTALLED),
            ("component", "c1", InstallStatus.INSTALLED),
        ]
        assert config.installed_lib == ["b", "a"]

    def test_installed_lib_is_not_reinstalled(self, lib_registry, project_root):
        config, _ = _install(["c1"], lib_registry, project_root)
        save_config(project_root, config)
        edited = project_root / "lib/ownkit/a.ts"
        edited.write_text("export const a = 2;\n")

        config, report = _install(["c2"], lib_registry, project_root)

        assert edited.read_text() == "export const a = 2;\n"
        assert ("lib", "a", InstallStatus.SKIPPED) in _statuses(report)
        assert config.installed_lib == ["b", "a"]
        assert config.is_lib_installed("a")


class TestHandBuiltRegistry:
    def test_unknown_registry_dependency_raises(self, temp_dir, project_root):
        registry = Registry(
            version="1.0.0",
            name="hand",
            lib={},
            components=[
                ComponentEntry(
                    name="lonely",
                    title="Lonely",
                    description="Depends on a component that is not there",
                    category="misc",
                    files=[],
                    registry_dependencies=["ghost"],
                )
            ],
            root=temp_dir,
        )
        with pytest.raises(RegistryError, match="unknown component 'ghost'"):
            _install(["lonely"], registry, project_root)


class TestUntypedProject:
    def test_component_extensions_follow_config(self, registry, temp_dir):
        project = temp_dir / "js-project"
        project.mkdir()
        save_config(project, InstallConfig(tsx=False, src_dir=True))

        _install(["input"], registry, project)

        assert (project / "src/components/ui/input.jsx").exists()
        assert (project / "src/lib/ownkit/utils.ts").exists()


class TestPlanning:
    """Tests for dry-run planning."""

    def test_dry_run_writes_nothing(self, registry, project_root):
        before = snapshot(project_root)
        config = load_config(project_root)

        report = plan_install(["select-dropdown"], registry, config, project_root)

        assert snapshot(project_root) == before
        assert config.installed_components == []
        assert not report.changed
        assert [(e.kind.value, e.name) for e in report.plan] == [
            ("lib", "types"),
            ("lib", "utils"),
            ("component", "input"),
            ("component", "select-dropdown"),
        ]

    def test_plan_entry_manifest(self, registry, project_root):
        report = plan_install(["input"], registry, load_config(project_root), project_root)
        entry = report.plan[-1]
        assert entry.files == ["components/ui/input.tsx"]
        assert entry.dependencies == ["@mantine/core"]
        assert entry.lib_dependencies == ["types", "utils"]

    def test_render_plan(self, registry, project_root):
        report = plan_install(["input"], registry, load_config(project_root), project_root)
        output = render_plan(report)
        assert "Installation Plan (dry run)" in output
        assert "3. [component] input" in output
        assert "+ components/ui/input.tsx" in output
        assert "External dependencies: @mantine/core" in output

    def test_render_plan_nothing_to_do(self, registry, project_root):
        config, _ = _install(["input"], registry, project_root)
        report = plan_install(["input"], registry, config, project_root)
        output = render_plan(report)
        assert "Nothing to install." in output
        assert "input (already installed)" in output
