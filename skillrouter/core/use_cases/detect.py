"""
Detection use case — scan, classify, and look up the capability module.

Ties together workspace config, the signal scanner, the classifier and
the registry. The outcome tells the caller which branch comes next:
sync an existing module, or draft a new one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from skillrouter.core.config.loader import Workspace, load_workspace
from skillrouter.core.config.rules_loader import load_rules
from skillrouter.core.errors import SkillRouterError
from skillrouter.core.models.module import CapabilityModule, ModuleKey
from skillrouter.core.models.signal import ScanResult
from skillrouter.core.models.stack import StackProfile
from skillrouter.core.persistence.registry import CapabilityRegistry
from skillrouter.core.services.classifier import classify
from skillrouter.core.services.signal_scanner import scan_workspace

logger = logging.getLogger(__name__)


@dataclass
class Detection:
    """One scan + classification of a workspace."""

    scan: ScanResult
    profile: StackProfile
    rules_loaded: int = 0

    @property
    def dependencies(self) -> dict[str, str]:
        return self.scan.dependencies()

    @property
    def key(self) -> ModuleKey | None:
        if self.profile.is_unknown:
            return None
        return ModuleKey(layer=self.profile.layer, stack=self.profile.id)


def detect_workspace(workspace: Workspace) -> Detection:
    """Scan and classify a workspace.

    Raises:
        ConfigError: If the classification table is invalid.
    """
    rules = load_rules(workspace.rules_path)
    scan = scan_workspace(workspace.root)
    profile = classify(scan.signals, rules, workspace.settings.tie_break)
    return Detection(scan=scan, profile=profile, rules_loaded=len(rules))


@dataclass
class DetectResult:
    """Result of the detect use case."""

    workspace: Workspace | None = None
    detection: Detection | None = None
    module: CapabilityModule | None = None
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def next_step(self) -> str:
        """``sync`` on a registry hit, ``create`` on a miss, ``none`` if unknown."""
        if self.detection is None or self.detection.profile.is_unknown:
            return "none"
        return "sync" if self.module is not None else "create"

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        assert self.workspace is not None and self.detection is not None
        result["workspace"] = str(self.workspace.root)
        result["rules_loaded"] = self.detection.rules_loaded
        result["profile"] = self.detection.profile.to_dict()
        result["dependencies"] = self.detection.dependencies
        result["scan_errors"] = [e.model_dump(mode="json") for e in self.detection.scan.errors]
        result["module"] = self.module.to_dict() if self.module else None
        result["next_step"] = self.next_step
        if self.warnings:
            result["warnings"] = self.warnings
        return result


def run_detect(
    config_path: Path | None = None,
    start_dir: Path | None = None,
) -> DetectResult:
    """Run detection and resolve the classification to a module.

    Args:
        config_path: Optional explicit path to skillrouter.yml.
        start_dir: Where to look for the workspace (default: cwd).

    Returns:
        DetectResult; ``error`` is set instead of raising.
    """
    result = DetectResult()

    try:
        workspace = load_workspace(config_path, start_dir)
        result.workspace = workspace
        detection = detect_workspace(workspace)
        result.detection = detection

        if detection.key is not None:
            registry = CapabilityRegistry(workspace.registry_path)
            result.module = registry.lookup(detection.key)
    except SkillRouterError as e:
        result.error = str(e)
        return result

    for scan_error in detection.scan.errors:
        result.warnings.append(f"{scan_error.source}: {scan_error.message}")

    logger.info(
        "Detect: %s → %s (next: %s)",
        workspace.root, detection.profile.id, result.next_step,
    )
    return result
