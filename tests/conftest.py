"""
Shared test fixtures and configuration.
"""

import json
from pathlib import Path

import pytest

from skillrouter.core.models.module import CapabilityModule, ModuleKey
from skillrouter.core.persistence.registry import CapabilityRegistry


def write_package_json(root: Path, deps: dict[str, str], dev: dict[str, str] | None = None) -> Path:
    """Write a package.json with the given dependencies."""
    data: dict = {"name": "app", "version": "0.0.0", "dependencies": deps}
    if dev:
        data["devDependencies"] = dev
    path = root / "package.json"
    path.write_text(json.dumps(data, indent=2))
    return path


@pytest.fixture
def react_workspace(tmp_path: Path) -> Path:
    """A React + Vite workspace with no skillrouter.yml."""
    root = tmp_path / "app"
    root.mkdir()
    (root / "vite.config.ts").write_text("export default {}\n")
    write_package_json(root, {"react": "^18.2.0", "react-dom": "^18.2.0"}, dev={"vite": "^5.0.0"})
    return root


@pytest.fixture
def registry(tmp_path: Path) -> CapabilityRegistry:
    """An empty registry rooted in tmp_path."""
    return CapabilityRegistry(tmp_path / "skills")


@pytest.fixture
def react_key() -> ModuleKey:
    return ModuleKey(layer="frontend", stack="react-vite")


@pytest.fixture
def react_module(react_key: ModuleKey) -> CapabilityModule:
    return CapabilityModule(
        name=react_key.module_name,
        key=react_key,
        version="1.0.0",
        declared_libraries={"a": "1", "b": "2"},
        created_at="2026-01-01T00:00:00+00:00",
        payload="# impl-frontend-react-vite\n\nBody text.\n",
    )
