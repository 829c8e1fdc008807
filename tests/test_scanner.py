"""
Tests for the signal scanner and manifest parsers.
"""

import textwrap
from pathlib import Path

import pytest

from skillrouter.core.models.signal import SignalKind
from skillrouter.core.services.manifests import (
    ManifestParseError,
    normalize_python_name,
    parse_cargo_toml,
    parse_go_mod,
    parse_package_json,
    parse_pyproject_toml,
    parse_requirements_txt,
)
from skillrouter.core.services.signal_scanner import scan_workspace

from conftest import write_package_json

# ── Manifest parsers ─────────────────────────────────────────────────


class TestManifestParsers:
    def test_package_json_sections(self, tmp_path: Path):
        path = write_package_json(tmp_path, {"react": "^18"}, dev={"vite": "^5"})
        assert parse_package_json(path) == [("react", "^18"), ("vite", "^5")]

    def test_package_json_invalid(self, tmp_path: Path):
        path = tmp_path / "package.json"
        path.write_text("{not json")
        with pytest.raises(ManifestParseError):
            parse_package_json(path)

    def test_package_json_non_object_section(self, tmp_path: Path):
        path = tmp_path / "package.json"
        path.write_text('{"dependencies": ["react"]}')
        with pytest.raises(ManifestParseError):
            parse_package_json(path)

    def test_pyproject_pep621_and_poetry(self, tmp_path: Path):
        path = tmp_path / "pyproject.toml"
        path.write_text(textwrap.dedent("""\
            [project]
            name = "svc"
            dependencies = ["FastAPI>=0.110", "pydantic[email]>=2; python_version>'3.10'"]

            [project.optional-dependencies]
            test = ["pytest"]

            [tool.poetry.dependencies]
            python = "^3.11"
            Flask_Cors = {version = "^4.0"}
        """))
        assert parse_pyproject_toml(path) == [
            ("fastapi", ">=0.110"),
            ("pydantic", ">=2"),
            ("pytest", ""),
            ("flask-cors", "^4.0"),
        ]

    def test_pyproject_invalid_toml(self, tmp_path: Path):
        path = tmp_path / "pyproject.toml"
        path.write_text("[project\nname=")
        with pytest.raises(ManifestParseError):
            parse_pyproject_toml(path)

    @pytest.mark.parametrize("body", [
        "[project]\ndependencies = 5\n",
        "[project]\ndependencies = \"flask\"\n",
        "[project]\ndependencies = [5]\n",
        "[project.optional-dependencies]\ndev = 5\n",
        "[tool.poetry.dependencies]\nflask = 3\n",
    ])
    def test_pyproject_wrong_shapes(self, tmp_path: Path, body: str):
        path = tmp_path / "pyproject.toml"
        path.write_text(body)
        with pytest.raises(ManifestParseError):
            parse_pyproject_toml(path)

    def test_cargo_wrong_version_type(self, tmp_path: Path):
        path = tmp_path / "Cargo.toml"
        path.write_text("[dependencies]\nserde = 1\n")
        with pytest.raises(ManifestParseError):
            parse_cargo_toml(path)

    def test_requirements_skips_options_and_urls(self, tmp_path: Path):
        path = tmp_path / "requirements.txt"
        path.write_text(textwrap.dedent("""\
            # comment
            -r base.txt
            Django==5.0  # pinned
            git+https://example.com/pkg.git
            requests
        """))
        assert parse_requirements_txt(path) == [("django", "==5.0"), ("requests", "")]

    def test_cargo(self, tmp_path: Path):
        path = tmp_path / "Cargo.toml"
        path.write_text(textwrap.dedent("""\
            [dependencies]
            axum = "0.7"
            tokio = { version = "1", features = ["full"] }
        """))
        assert parse_cargo_toml(path) == [("axum", "0.7"), ("tokio", "1")]

    def test_go_mod(self, tmp_path: Path):
        path = tmp_path / "go.mod"
        path.write_text(textwrap.dedent("""\
            module example.com/svc

            go 1.22

            require github.com/google/uuid v1.6.0

            require (
                github.com/gin-gonic/gin v1.9.1 // indirect
            )
        """))
        assert parse_go_mod(path) == [
            ("github.com/google/uuid", "v1.6.0"),
            ("github.com/gin-gonic/gin", "v1.9.1"),
        ]

    def test_normalize_python_name(self):
        assert normalize_python_name("Flask_SQLAlchemy") == "flask-sqlalchemy"
        assert normalize_python_name("zope.interface") == "zope-interface"


# ── Scanner ──────────────────────────────────────────────────────────


class TestScanWorkspace:
    def test_react_vite_signals(self, react_workspace: Path):
        result = scan_workspace(react_workspace)
        assert "file:vite.config.*" in result.refs
        assert "file:package.json" in result.refs
        assert "dep:react" in result.refs
        assert result.errors == []

        vite = next(s for s in result.file_signals if s.key == "vite.config.*")
        assert vite.source == "vite.config.ts"

    def test_file_signals_precede_manifest_signals(self, react_workspace: Path):
        kinds = [s.kind for s in scan_workspace(react_workspace).signals]
        first_manifest = kinds.index(SignalKind.MANIFEST_KEY)
        assert SignalKind.FILE_EXISTS not in kinds[first_manifest:]

    def test_empty_workspace(self, tmp_path: Path):
        result = scan_workspace(tmp_path)
        assert result.signals == []
        assert result.errors == []

    def test_missing_root(self, tmp_path: Path):
        result = scan_workspace(tmp_path / "nope")
        assert result.signals == []
        assert len(result.errors) == 1

    def test_malformed_manifest_is_recovered(self, tmp_path: Path):
        (tmp_path / "package.json").write_text("{broken")
        (tmp_path / "requirements.txt").write_text("flask==3.0\n")

        result = scan_workspace(tmp_path)

        assert [e.source for e in result.errors] == ["package.json"]
        assert result.dependencies() == {"flask": "==3.0"}
        # The file probe still sees the broken manifest
        assert "file:package.json" in result.refs

    def test_wrongly_shaped_pyproject_is_recovered(self, tmp_path: Path):
        (tmp_path / "pyproject.toml").write_text("[project]\ndependencies = 5\n")
        (tmp_path / "requirements.txt").write_text("flask==3.0\n")

        result = scan_workspace(tmp_path)

        assert [e.source for e in result.errors] == ["pyproject.toml"]
        assert "not an array" in result.errors[0].message
        assert result.dependencies() == {"flask": "==3.0"}

    def test_glob_does_not_recurse(self, tmp_path: Path):
        nested = tmp_path / "web"
        nested.mkdir()
        (nested / "vite.config.js").write_text("")
        assert "file:vite.config.*" not in scan_workspace(tmp_path).refs

    def test_deterministic(self, react_workspace: Path):
        assert scan_workspace(react_workspace) == scan_workspace(react_workspace)
