"""
Capability module model — a registered, stack-specific skill.

A module is identified by its (layer, stack) key. The registry owns it:
the lifecycle manager creates it, the sync reconciler updates its
declared libraries, and nothing deletes it automatically.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

MODULE_PREFIX = "impl"


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class ModuleKey(BaseModel):
    """Registry key: which layer and stack a module serves."""

    model_config = ConfigDict(frozen=True)

    layer: str
    stack: str

    @property
    def module_name(self) -> str:
        """Directory / skill name, e.g. ``impl-frontend-react-vite``."""
        return f"{MODULE_PREFIX}-{self.layer}-{self.stack}"

    def __str__(self) -> str:
        return f"{self.layer}/{self.stack}"


class CapabilityModule(BaseModel):
    """A capability module with its declared reference libraries.

    ``payload`` is the free-form knowledge body. The core stores and
    copies it but never interprets it.
    """

    name: str
    key: ModuleKey
    version: str = "1.0.0"
    description: str = ""
    declared_libraries: dict[str, str] = Field(default_factory=dict)
    created_at: str = Field(default_factory=_now_iso)
    last_sync_at: str | None = None
    payload: str = ""

    def bump_version(self) -> str:
        """Next patch version, e.g. ``1.0.3`` → ``1.0.4``.

        Versions that are not dotted integers get ``.1`` appended.
        """
        parts = self.version.split(".")
        if parts and all(p.isdigit() for p in parts):
            parts[-1] = str(int(parts[-1]) + 1)
            return ".".join(parts)
        return f"{self.version}.1"

    def to_dict(self, include_payload: bool = False) -> dict:
        data = self.model_dump(mode="json")
        if not include_payload:
            data.pop("payload", None)
        return data
