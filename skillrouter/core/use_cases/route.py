"""
Route use case — pick the downstream workflow for a request.

Classification is optional context: when the workspace can be
classified, the decision carries the profile (and the module the
workflow should act on, if one is registered).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from skillrouter.core.config.loader import load_workspace
from skillrouter.core.config.rules_loader import load_triggers
from skillrouter.core.errors import SkillRouterError
from skillrouter.core.models.routing import RouteDecision
from skillrouter.core.persistence.registry import CapabilityRegistry
from skillrouter.core.services.router import Router
from skillrouter.core.use_cases.detect import detect_workspace

logger = logging.getLogger(__name__)


@dataclass
class RouteResult:
    """Result of the route use case."""

    decision: RouteDecision | None = None
    module_name: str | None = None
    error: str | None = None

    @property
    def needs_clarification(self) -> bool:
        return self.decision is not None and not self.decision.matched

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        assert self.decision is not None
        result = self.decision.to_dict()
        result["module"] = self.module_name
        result["needs_clarification"] = self.needs_clarification
        return result


def route_request(
    text: str,
    config_path: Path | None = None,
    start_dir: Path | None = None,
    with_profile: bool = True,
) -> RouteResult:
    """Route a free-form request.

    Args:
        text: The request as the user wrote it.
        config_path: Optional explicit path to skillrouter.yml.
        start_dir: Where to look for the workspace (default: cwd).
        with_profile: Classify the workspace and attach the profile.
    """
    result = RouteResult()
    try:
        workspace = load_workspace(config_path, start_dir)
        router = Router(load_triggers(workspace.triggers_path))

        profile = None
        if with_profile:
            detection = detect_workspace(workspace)
            profile = detection.profile
            if detection.key is not None:
                module = CapabilityRegistry(workspace.registry_path).lookup(detection.key)
                result.module_name = module.name if module else None

        result.decision = router.route(text, profile)
    except SkillRouterError as e:
        result.error = str(e)
    return result
