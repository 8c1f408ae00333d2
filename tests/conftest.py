"""Pytest fixtures and utilities for ownkit tests."""

import json
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from ownkit.config import InstallConfig, save_config
from ownkit.registry import Registry, load_registry

REGISTRY_JSON = """\
{
  // test registry; comments and trailing commas are allowed
  "version": "1.2.0",
  "name": "ownkit-test",
  "categories": [
    {"name": "input", "title": "Inputs", "description": "Form inputs"},
    {"name": "layout", "title": "Layout"},
  ],
  "aliases": {"text-field": "input"},
  "apiLib": ["services"],
  "lib": {
    "types": {
      "description": "Shared types",
      "files": [
        {"source": "types/src/index.ts", "target": "lib/ownkit/types/index.ts"},
        {"source": "types/src/core.ts", "target": "lib/ownkit/types/core.ts"}
      ]
    },
    "utils": {
      "description": "Helpers",
      "path": "utils/src/index.ts",
      "target": "lib/ownkit/utils.ts",
      "internalDependencies": ["types"]
    },
    "services": {
      "description": "API client",
      "files": [
        {"source": "services/src/index.ts", "target": "lib/ownkit/services/index.ts"},
        {"source": "services/src/api-request.ts", "target": "lib/ownkit/services/api-request.ts"}
      ],
      "internalDependencies": ["types"]
    }
  },
  "components": [
    {
      "name": "input",
      "title": "Input",
      "description": "Single line text input",
      "category": "input",
      "files": [{"source": "ui-interfaces/src/input/Input.tsx", "target": "components/ui/input.tsx"}],
      "dependencies": ["@mantine/core"],
      "internalDependencies": ["types", "utils"]
    },
    {
      "name": "select-dropdown",
      "title": "Select Dropdown",
      "description": "Dropdown select",
      "category": "input",
      "files": [
        {"source": "ui-interfaces/src/select-dropdown/SelectDropdown.tsx", "target": "components/ui/select-dropdown.tsx"}
      ],
      "dependencies": ["@mantine/core", "clsx@^2"],
      "internalDependencies": ["types"],
      "registryDependencies": ["input"]
    },
    {
      "name": "alpha",
      "title": "Alpha",
      "description": "Half of a cycle",
      "category": "layout",
      "files": [{"source": "ui-interfaces/src/alpha/Alpha.tsx", "target": "components/ui/alpha.tsx"}],
      "registryDependencies": ["beta"]
    },
    {
      "name": "beta",
      "title": "Beta",
      "description": "Other half of a cycle",
      "category": "layout",
      "files": [{"source": "ui-interfaces/src/beta/Beta.tsx", "target": "components/ui/beta.tsx"}],
      "registryDependencies": ["alpha"],
    },
  ],
}
"""

REGISTRY_SOURCES = {
    "types/src/index.ts": "export * from './core';\n",
    "types/src/core.ts": "export interface Field {\n  name: string;\n}\n",
    "utils/src/index.ts": (
        "import type { Field } from '@ownkit/types';\n"
        "\n"
        "export function fieldLabel(field: Field): string {\n"
        "  return field.name;\n"
        "}\n"
    ),
    "services/src/index.ts": "export * from './api-request';\n",
    "services/src/api-request.ts": (
        "import type { Field } from '@ownkit/types';\n"
        "\n"
        "export async function apiRequest(path: string): Promise<Field[]> {\n"
        "  return [];\n"
        "}\n"
    ),
    "ui-interfaces/src/input/Input.tsx": (
        "'use client';\n"
        "import type { Field } from '@ownkit/types';\n"
        "import { fieldLabel } from '@ownkit/utils';\n"
        "\n"
        "export function Input({ field }: { field: Field }) {\n"
        "  return fieldLabel(field);\n"
        "}\n"
    ),
    "ui-interfaces/src/select-dropdown/SelectDropdown.tsx": (
        "'use client';\n"
        "import { Input } from '../input';\n"
        "\n"
        "export function SelectDropdown() {\n"
        "  return Input;\n"
        "}\n"
    ),
    "ui-interfaces/src/alpha/Alpha.tsx": "export function Alpha() {\n  return null;\n}\n",
    "ui-interfaces/src/beta/Beta.tsx": "export function Beta() {\n  return null;\n}\n",
}


def write_tree(root: Path, files: dict[str, str]) -> None:
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def snapshot(root: Path) -> dict[str, str]:
    """Map every file under root to its content."""
    return {
        p.relative_to(root).as_posix(): p.read_text(encoding="utf-8")
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def registry_root(temp_dir: Path) -> Path:
    """A registry tree with registry.json and every source it maps."""
    root = temp_dir / "registry"
    write_tree(root, {"registry.json": REGISTRY_JSON, **REGISTRY_SOURCES})
    return root


@pytest.fixture
def registry(registry_root: Path) -> Registry:
    return load_registry(registry_root)


@pytest.fixture
def project_root(temp_dir: Path) -> Path:
    """An initialized consumer project whose package.json declares every npm dependency."""
    root = temp_dir / "project"
    root.mkdir()
    package_json = {
        "name": "consumer",
        "dependencies": {"@mantine/core": "^7.0.0", "clsx": "^2.0.0", "react": "^18.0.0"},
    }
    (root / "package.json").write_text(json.dumps(package_json, indent=2), encoding="utf-8")
    save_config(root, InstallConfig())
    return root


@pytest.fixture
def config() -> InstallConfig:
    return InstallConfig()
