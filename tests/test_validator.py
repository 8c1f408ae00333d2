"""Tests for the project validator."""

from unittest.mock import AsyncMock, patch

import pytest

from ownkit.config import InstallConfig
from ownkit.validator import (
    ValidationError,
    Validator,
    build_suggestions,
    find_duplicate_paths,
    find_missing_lib_files,
    find_missing_css,
    parse_tsc_output,
    relative_import_resolves,
    scan_relative_imports,
    scan_ssr_exports,
    scan_untransformed_imports,
    validate_project,
)

from .conftest import write_tree

HEALTHY_TREE = {
    "lib/ownkit/types/index.ts": "export * from './core';\n",
    "lib/ownkit/types/core.ts": "export interface Field { name: string }\n",
    "lib/ownkit/utils.ts": "import type { Field } from './types';\nexport const id = (f: Field) => f.name;\n",
    "components/ui/input.tsx": "import { id } from '@/lib/ownkit/utils';\nexport function Input() {}\n",
    "components/ui/index.ts": "export * from './input';\n",
}


@pytest.fixture
def config():
    return InstallConfig(installed_components=["input"], installed_lib=["types", "utils"])


@pytest.fixture
def healthy_project(temp_dir):
    write_tree(temp_dir, HEALTHY_TREE)
    return temp_dir


class TestScanners:
    """Tests for the pure scanning functions."""

    def test_untransformed_import_location(self):
        text = "import a from 'react';\n\nimport { Field } from '@ownkit/types';\n"
        errors = scan_untransformed_imports(text, "components/ui/input.tsx")
        assert len(errors) == 1
        assert errors[0].file == "components/ui/input.tsx"
        assert errors[0].line == 3
        assert errors[0].code == "UNTRANSFORMED_IMPORT"

    def test_comments_are_ignored(self):
        text = "/**\n * @ownkit-origin @ownkit/ui-interfaces/input\n */\n// import x from '@ownkit/types';\n"
        assert scan_untransformed_imports(text, "a.tsx") == []

    def test_scan_relative_imports(self):
        text = "import a from './a';\nconst b = require('../b');\n// import c from './c';\nimport d from 'd';\n"
        assert scan_relative_imports(text) == [(1, "./a"), (2, "../b")]

    def test_relative_import_candidates(self, temp_dir):
        write_tree(temp_dir, {"a.ts": "", "pkg/index.tsx": "", "decl.d.ts": ""})
        assert relative_import_resolves(temp_dir, "./a")
        assert relative_import_resolves(temp_dir, "./pkg")
        assert relative_import_resolves(temp_dir, "./decl")
        assert not relative_import_resolves(temp_dir, "./missing")

    def test_missing_lib_files(self):
        existing = {"types/index.ts", "utils.ts"}
        assert find_missing_lib_files(["types", "utils", "custom"], existing) == [("types", "types/core.ts")]

    def test_ssr_exports(self):
        assert scan_ssr_exports(["./input-block-editor"]) == ["input-block-editor"]
        assert scan_ssr_exports(["./input-block-editor", "./input-block-editor-wrapper"]) == []

    def test_missing_css(self):
        assert find_missing_css({"rich-text-html.jsx", "input.tsx"}) == [("rich-text-html", "RichTextHTML.css")]
        assert find_missing_css({"rich-text-html.tsx", "RichTextHTML.css"}) == []
        assert find_missing_css({"RichTextMarkdown.css"}) == []

    def test_duplicate_paths(self):
        assert find_duplicate_paths(["./a", "./b", "./a", "./a"]) == ["./a"]

    def test_parse_tsc_output(self):
        output = (
            "components/ui/input.tsx(4,10): error TS2304: Cannot find name 'x'.\n"
            "Found 1 error.\n"
        )
        diagnostics = parse_tsc_output(output)
        assert len(diagnostics) == 1
        assert diagnostics[0].file == "components/ui/input.tsx"
        assert diagnostics[0].line == 4
        assert diagnostics[0].code == "TS2304"

    def test_suggestions_carry_counts(self):
        errors = [
            ValidationError(file="a.tsx", message="m", code="UNTRANSFORMED_IMPORT", line=1),
            ValidationError(file="b.tsx", message="m", code="UNTRANSFORMED_IMPORT", line=2),
        ]
        assert build_suggestions(errors, []) == [
            "Fix 2 untransformed import(s) by running: ownkit add --all --overwrite --yes"
        ]


class TestValidator:
    """Tests for Validator against trees on disk."""

    @pytest.mark.asyncio
    async def test_healthy_project_is_valid(self, config, healthy_project):
        result = await validate_project(config, healthy_project)
        assert result.valid
        assert result.errors == []
        assert result.suggestions == []

    @pytest.mark.asyncio
    async def test_untransformed_import(self, config, healthy_project):
        (healthy_project / "components/ui/input.tsx").write_text(
            "import { id } from '@ownkit/utils';\nexport function Input() {}\n"
        )
        result = await validate_project(config, healthy_project)

        assert not result.valid
        assert [(e.code, e.file, e.line) for e in result.errors] == [
            ("UNTRANSFORMED_IMPORT", "components/ui/input.tsx", 1)
        ]
        assert result.suggestions == [
            "Fix 1 untransformed import(s) by running: ownkit add --all --overwrite --yes"
        ]

    @pytest.mark.asyncio
    async def test_missing_lib_file_reported_once(self, config, healthy_project):
        (healthy_project / "lib/ownkit/types/core.ts").unlink()
        (healthy_project / "lib/ownkit/types/index.ts").write_text("export {};\n")

        result = await validate_project(config, healthy_project)

        assert [(e.code, e.file) for e in result.errors] == [("MISSING_LIB_FILE", "lib/ownkit/types/core.ts")]

    @pytest.mark.asyncio
    async def test_broken_relative_import(self, config, healthy_project):
        (healthy_project / "lib/ownkit/types/index.ts").write_text("export * from './gone';\n")
        result = await validate_project(config, healthy_project)

        assert [(e.code, e.file, e.line) for e in result.errors] == [
            ("BROKEN_RELATIVE_IMPORT", "lib/ownkit/types/index.ts", 1)
        ]

    @pytest.mark.asyncio
    async def test_interface_registry_required(self, config, healthy_project):
        write_tree(healthy_project, {"lib/ownkit/define-interface.ts": "export {};\n"})
        result = await validate_project(config, healthy_project)
        assert [e.code for e in result.errors] == ["MISSING_INTERFACE_REGISTRY"]

    @pytest.mark.asyncio
    async def test_warnings_do_not_invalidate(self, config, healthy_project):
        write_tree(healthy_project, {
            "components/ui/input-block-editor.tsx": "export function InputBlockEditor() {}\n",
            "components/ui/InputBlockEditor.css": ".editor {}\n",
            "components/ui/other.tsx": "export function Input() {}\n",
            "components/ui/index.ts": (
                "export * from './input';\nexport * from './input-block-editor';\n"
                "export * from './other';\nexport * from './input';\n"
            ),
        })
        result = await validate_project(config, healthy_project)

        codes = sorted(w.code for w in result.warnings)
        assert codes == ["DUPLICATE_EXPORT", "DUPLICATE_EXPORT_PATH", "SSR_UNSAFE_EXPORT"]
        assert result.valid

    @pytest.mark.asyncio
    async def test_missing_api_routes(self, config, healthy_project):
        write_tree(healthy_project, {
            "app/api/fields/[collection]/route.ts": "",
            "app/api/items/[collection]/route.ts": "",
        })
        result = await validate_project(config, healthy_project)

        routes = [w.file for w in result.warnings if w.code == "MISSING_API_ROUTE"]
        assert routes == ["app/api/items/[collection]/[id]/route.ts", "app/api/permissions/me/route.ts"]

    @pytest.mark.asyncio
    async def test_missing_css_is_a_warning(self, config, healthy_project):
        write_tree(healthy_project, {"components/ui/rich-text-markdown.tsx": "export function RichTextMarkdown() {}\n"})
        result = await validate_project(config, healthy_project)

        assert result.valid
        assert [(w.code, w.file) for w in result.warnings] == [
            ("MISSING_CSS", "components/ui/RichTextMarkdown.css")
        ]
        assert result.suggestions == [
            "Restore 1 missing CSS file(s) by reinstalling the component with --overwrite"
        ]

    @pytest.mark.asyncio
    async def test_no_api_dir_means_no_route_warnings(self, config, healthy_project):
        result = await validate_project(config, healthy_project)
        assert not any(w.code == "MISSING_API_ROUTE" for w in result.warnings)

    def test_script_files_cover_both_roots(self, config, healthy_project):
        files = Validator(config, healthy_project).script_files()
        names = sorted(p.name for p in files)
        assert names == ["core.ts", "index.ts", "index.ts", "input.tsx", "utils.ts"]


class TestTypecheck:
    """Tests for the optional tsc pass."""

    @pytest.mark.asyncio
    async def test_type_errors_scoped_to_installed_dirs(self, config, healthy_project):
        output = (
            "components/ui/input.tsx(2,8): error TS2322: Type 'string' is not assignable to type 'number'.\n"
            "app/page.tsx(1,1): error TS2304: Cannot find name 'y'.\n"
        )
        runner = AsyncMock(return_value=(output, 2))
        with patch("ownkit.validator.run_command_async", runner):
            result = await validate_project(config, healthy_project, typecheck=True)

        assert runner.call_args.args[0] == ["npx", "tsc", "--noEmit", "--pretty", "false"]
        assert [(e.code, e.file, e.line) for e in result.errors] == [("TYPE_ERROR", "components/ui/input.tsx", 2)]

    @pytest.mark.asyncio
    async def test_tsc_not_runnable_is_a_warning(self, config, healthy_project):
        runner = AsyncMock(return_value=("Error: command not found: npx", 1))
        with patch("ownkit.validator.run_command_async", runner):
            result = await validate_project(config, healthy_project, typecheck=True)

        assert result.valid
        assert [w.code for w in result.warnings] == ["TYPECHECK_FAILED"]

    @pytest.mark.asyncio
    async def test_typecheck_off_by_default(self, config, healthy_project):
        runner = AsyncMock(return_value=("", 0))
        with patch("ownkit.validator.run_command_async", runner):
            await validate_project(config, healthy_project)
        runner.assert_not_called()
