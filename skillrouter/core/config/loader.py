"""
Configuration loader — reads skillrouter.yml into a Workspace.

This is the primary entry point for locating a workspace. It finds the
config file (walking up from the current directory), validates it
against the Settings schema and resolves every configured path
against the workspace root.

A workspace without skillrouter.yml is valid: the current directory
becomes the root and every setting takes its default.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from skillrouter.core.data import DEFAULT_RULES_FILE, DEFAULT_TRIGGERS_FILE
from skillrouter.core.errors import ConfigError
from skillrouter.core.models.stack import TieBreak

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "skillrouter.yml"

__all__ = [
    "CONFIG_FILE",
    "ConfigError",
    "Settings",
    "Workspace",
    "find_config_file",
    "load_settings",
    "load_workspace",
]


class Settings(BaseModel):
    """Validated contents of skillrouter.yml."""

    registry_dir: str = "skills"
    templates_dir: str = "templates"
    state_dir: str = ".skillrouter"
    rules_file: str | None = None
    triggers_file: str | None = None
    tie_break: TieBreak = TieBreak.DECLARATION
    install_target: str = "~/.claude/skills"


@dataclass
class Workspace:
    """A workspace root plus its resolved settings."""

    root: Path
    settings: Settings = field(default_factory=Settings)
    config_path: Path | None = None

    def _resolve(self, value: str) -> Path:
        path = Path(value).expanduser()
        return path if path.is_absolute() else self.root / path

    @property
    def registry_path(self) -> Path:
        return self._resolve(self.settings.registry_dir)

    @property
    def templates_path(self) -> Path:
        return self._resolve(self.settings.templates_dir)

    @property
    def state_path(self) -> Path:
        return self._resolve(self.settings.state_dir)

    @property
    def rules_path(self) -> Path:
        if self.settings.rules_file:
            return self._resolve(self.settings.rules_file)
        return DEFAULT_RULES_FILE

    @property
    def triggers_path(self) -> Path:
        if self.settings.triggers_file:
            return self._resolve(self.settings.triggers_file)
        return DEFAULT_TRIGGERS_FILE

    @property
    def install_target(self) -> Path:
        return Path(self.settings.install_target).expanduser()

    @property
    def audit_path(self) -> Path:
        return self.state_path / "audit.ndjson"

    def to_dict(self) -> dict:
        return {
            "root": str(self.root),
            "config_path": str(self.config_path) if self.config_path else None,
            "settings": self.settings.model_dump(mode="json"),
        }


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for skillrouter.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to skillrouter.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_settings(path: Path) -> Settings:
    """Load and validate a settings file.

    Raises:
        ConfigError: If the file is unreadable, not YAML, or invalid.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def load_workspace(
    config_path: Path | None = None,
    start_dir: Path | None = None,
) -> Workspace:
    """Resolve the workspace for this invocation.

    Args:
        config_path: Explicit skillrouter.yml. Must exist when given.
        start_dir: Where to start searching when no path is given.

    Returns:
        Workspace rooted at the config file's directory, or at
        ``start_dir`` / cwd with default settings when none is found.

    Raises:
        ConfigError: If the config file is missing (when explicit) or invalid.
    """
    if config_path is None:
        config_path = find_config_file(start_dir)

    if config_path is None:
        root = (start_dir or Path.cwd()).resolve()
        logger.debug("No %s found; using defaults at %s", CONFIG_FILE, root)
        return Workspace(root=root)

    settings = load_settings(config_path)
    workspace = Workspace(
        root=config_path.parent.resolve(),
        settings=settings,
        config_path=config_path,
    )
    logger.info("Loaded workspace %s (registry=%s)", workspace.root, workspace.registry_path)
    return workspace
