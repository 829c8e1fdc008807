"""
Error taxonomy for the routing and synchronization core.

Only genuine failures are exceptions. Expected non-nominal outcomes
(an unknown stack, a request no trigger matches, a manifest that could
not be parsed) are tagged results on the models instead.
"""

from __future__ import annotations


class SkillRouterError(Exception):
    """Base class for every error raised by the core."""


class ConfigError(SkillRouterError):
    """Raised when skillrouter.yml, a rule table or a trigger table is invalid."""


class RegistryError(SkillRouterError):
    """Raised when a registry record cannot be read or written."""


class RegistryConflict(RegistryError):
    """Raised by ``insert`` when a module already exists for the key.

    Callers that want to change an existing module must go through
    ``update`` instead.
    """

    def __init__(self, key: object) -> None:
        super().__init__(f"A capability module already exists for {key}")
        self.key = key


class RegistryKeyMissing(RegistryError):
    """Raised by ``update`` when no module exists for the key."""

    def __init__(self, key: object) -> None:
        super().__init__(f"No capability module registered for {key}")
        self.key = key


class TemplateError(SkillRouterError):
    """Raised when a template still has placeholders nobody can fill."""

    def __init__(self, missing: list[str], template: str = "") -> None:
        names = ", ".join("{{" + m + "}}" for m in missing)
        where = f" in {template}" if template else ""
        super().__init__(f"Unresolved template placeholders{where}: {names}")
        self.missing = missing
        self.template = template


class InvalidTransition(SkillRouterError):
    """Raised when a lifecycle or plan transition is not allowed."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot move from '{current}' to '{target}'")
        self.current = current
        self.target = target


class SyncConflict(SkillRouterError):
    """Raised when a sync plan no longer matches the module it was computed for."""
