"""
Module use cases — list and inspect registered capability modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from skillrouter.core.config.loader import load_workspace
from skillrouter.core.errors import SkillRouterError
from skillrouter.core.models.module import CapabilityModule, ModuleKey
from skillrouter.core.persistence.registry import CapabilityRegistry


@dataclass
class ModulesResult:
    modules: list[CapabilityModule] = field(default_factory=list)
    registry_path: Path | None = None
    error: str | None = None

    def to_dict(self, include_payload: bool = False) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "registry": str(self.registry_path),
            "modules": [m.to_dict(include_payload=include_payload) for m in self.modules],
        }


def list_modules(
    config_path: Path | None = None,
    start_dir: Path | None = None,
) -> ModulesResult:
    result = ModulesResult()
    try:
        workspace = load_workspace(config_path, start_dir)
        registry = CapabilityRegistry(workspace.registry_path)
        result.registry_path = registry.root
        result.modules = registry.list_modules()
    except SkillRouterError as e:
        result.error = str(e)
    return result


def get_module(
    layer: str,
    stack: str,
    config_path: Path | None = None,
    start_dir: Path | None = None,
) -> ModulesResult:
    """Look up one module. Sets ``error`` when it is not registered."""
    result = ModulesResult()
    try:
        workspace = load_workspace(config_path, start_dir)
        registry = CapabilityRegistry(workspace.registry_path)
        result.registry_path = registry.root
        key = ModuleKey(layer=layer, stack=stack)
        module = registry.lookup(key)
        if module is None:
            result.error = f"No capability module registered for {key}"
        else:
            result.modules = [module]
    except SkillRouterError as e:
        result.error = str(e)
    return result
