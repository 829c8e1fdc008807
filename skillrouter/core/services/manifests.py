"""
Dependency manifest parsers.

Pure functions that extract (name, version) pairs from the manifest
files of each ecosystem. A parser raises ``ManifestParseError`` on a
malformed document; the scanner turns that into a ScanError for the
one probe instead of failing the whole scan.
"""

from __future__ import annotations

import json
import re
import tomllib
from pathlib import Path
from typing import Callable


class ManifestParseError(ValueError):
    """A manifest exists but could not be parsed."""


Dependency = tuple[str, str]

_PEP508_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)(\[[^\]]*\])?\s*(.*)$")
_PEP503_SEP = re.compile(r"[-_.]+")


def normalize_python_name(name: str) -> str:
    """PEP 503 normalization: ``Flask_SQLAlchemy`` → ``flask-sqlalchemy``."""
    return _PEP503_SEP.sub("-", name).lower()


def _split_pep508(spec: str) -> Dependency | None:
    # Drop environment markers: "foo>=1; python_version<'3.12'"
    spec = spec.split(";", 1)[0].strip()
    match = _PEP508_NAME.match(spec)
    if not match:
        return None
    return normalize_python_name(match.group(1)), match.group(3).strip()


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ManifestParseError(f"{path.name} is not valid UTF-8: {e}") from e


def _load_toml(path: Path) -> dict:
    try:
        return tomllib.loads(_read_text(path))
    except tomllib.TOMLDecodeError as e:
        raise ManifestParseError(f"Invalid TOML in {path.name}: {e}") from e


def _table(data: dict, key: str, path: Path) -> dict:
    """A sub-table that must be a mapping when present."""
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ManifestParseError(f"'{key}' in {path.name} is not a table")
    return value


def _array(data: dict, key: str, path: Path) -> list:
    """An array that must be a list when present."""
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ManifestParseError(f"'{key}' in {path.name} is not an array")
    return value


def _version(name: str, spec: object, path: Path) -> str:
    """A table-style version: ``"^1.0"`` or ``{version = "^1.0"}``."""
    if isinstance(spec, dict):
        spec = spec.get("version", "")
    if not isinstance(spec, str):
        raise ManifestParseError(f"Unsupported version for '{name}' in {path.name}")
    return spec


# ── Parsers ─────────────────────────────────────────────────────


def parse_package_json(path: Path) -> list[Dependency]:
    """package.json → dependencies, devDependencies, peerDependencies."""
    try:
        data = json.loads(_read_text(path))
    except json.JSONDecodeError as e:
        raise ManifestParseError(f"Invalid JSON in {path.name}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestParseError(f"{path.name} is not a JSON object")

    deps: list[Dependency] = []
    for section in ("dependencies", "devDependencies", "peerDependencies"):
        block = data.get(section) or {}
        if not isinstance(block, dict):
            raise ManifestParseError(f"'{section}' in {path.name} is not an object")
        for name, version in block.items():
            deps.append((name, str(version)))
    return deps


def parse_pyproject_toml(path: Path) -> list[Dependency]:
    """pyproject.toml → PEP 621 dependencies and Poetry dependencies."""
    data = _load_toml(path)
    deps: list[Dependency] = []

    project = _table(data, "project", path)
    specs = list(_array(project, "dependencies", path))
    optional = _table(project, "optional-dependencies", path)
    for group in optional:
        specs.extend(_array(optional, group, path))
    for spec in specs:
        if not isinstance(spec, str):
            raise ManifestParseError(f"Non-string requirement {spec!r} in {path.name}")
        parsed = _split_pep508(spec)
        if parsed:
            deps.append(parsed)

    poetry = _table(_table(data, "tool", path), "poetry", path)
    for section in ("dependencies", "dev-dependencies"):
        for name, spec in _table(poetry, section, path).items():
            if name.lower() == "python":
                continue
            deps.append((normalize_python_name(name), _version(name, spec, path)))
    return deps


def parse_requirements_txt(path: Path) -> list[Dependency]:
    """requirements.txt → one dependency per requirement line."""
    deps: list[Dependency] = []
    for line in _read_text(path).splitlines():
        line = line.split("#", 1)[0].strip()
        if not line or line.startswith("-") or "://" in line:
            continue
        parsed = _split_pep508(line)
        if parsed:
            deps.append(parsed)
    return deps


def parse_cargo_toml(path: Path) -> list[Dependency]:
    """Cargo.toml → [dependencies], [dev-dependencies], [build-dependencies]."""
    data = _load_toml(path)
    deps: list[Dependency] = []
    for section in ("dependencies", "dev-dependencies", "build-dependencies"):
        for name, spec in _table(data, section, path).items():
            deps.append((name, _version(name, spec, path)))
    return deps


def parse_go_mod(path: Path) -> list[Dependency]:
    """go.mod → require directives (single-line and block form)."""
    deps: list[Dependency] = []
    in_require = False
    for line in _read_text(path).splitlines():
        stripped = line.split("//", 1)[0].strip()
        if stripped.startswith("require ("):
            in_require = True
            continue
        if in_require and stripped == ")":
            in_require = False
            continue
        if in_require or stripped.startswith("require "):
            parts = stripped.removeprefix("require ").split()
            if len(parts) >= 2:
                deps.append((parts[0], parts[1]))
    return deps


# Probe order matters: it decides which manifest wins when two declare
# the same dependency.
MANIFEST_PARSERS: dict[str, Callable[[Path], list[Dependency]]] = {
    "package.json": parse_package_json,
    "pyproject.toml": parse_pyproject_toml,
    "requirements.txt": parse_requirements_txt,
    "Cargo.toml": parse_cargo_toml,
    "go.mod": parse_go_mod,
}
