"""
Sync use case — plan and decide library reconciliations.

Planning runs detection, finds the workspace's module and diffs its
declared libraries against the live dependencies. A non-empty plan is
saved as pending; approving or rejecting it is a separate step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from skillrouter.core.config.loader import Workspace, load_workspace
from skillrouter.core.errors import SkillRouterError
from skillrouter.core.models.module import CapabilityModule
from skillrouter.core.models.sync import SyncPlan
from skillrouter.core.persistence.audit import AuditWriter
from skillrouter.core.persistence.pending import PendingNotFound, PlanStore
from skillrouter.core.persistence.registry import CapabilityRegistry
from skillrouter.core.services.reconciler import SyncReconciler
from skillrouter.core.use_cases.detect import detect_workspace

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Result of a sync use case step."""

    plan: SyncPlan | None = None
    module: CapabilityModule | None = None
    plans: list[SyncPlan] = field(default_factory=list)
    saved: bool = False
    not_found: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
        if self.plan is not None:
            result["plan"] = self.plan.to_dict()
            result["saved"] = self.saved
        if self.module is not None:
            result["module"] = self.module.to_dict()
        if self.plans:
            result["plans"] = [p.to_dict() for p in self.plans]
        return result


def _reconciler(workspace: Workspace) -> SyncReconciler:
    return SyncReconciler(
        registry=CapabilityRegistry(workspace.registry_path),
        audit=AuditWriter(workspace.audit_path),
    )


def plan_sync(
    config_path: Path | None = None,
    start_dir: Path | None = None,
) -> SyncResult:
    """Diff the workspace's module against live dependencies."""
    result = SyncResult()
    try:
        workspace = load_workspace(config_path, start_dir)
        detection = detect_workspace(workspace)

        if detection.key is None:
            result.error = "Workspace stack is unknown; nothing to sync."
            return result

        module = CapabilityRegistry(workspace.registry_path).lookup(detection.key)
        if module is None:
            result.error = (
                f"No capability module for {detection.key}. Draft a proposal first."
            )
            return result

        result.module = module
        plan = _reconciler(workspace).plan(module, detection.dependencies)
        result.plan = plan
        if not plan.in_sync:
            PlanStore(workspace.state_path).save(plan)
            result.saved = True
    except SkillRouterError as e:
        result.error = str(e)
    return result


def list_plans(
    config_path: Path | None = None,
    start_dir: Path | None = None,
    pending_only: bool = True,
) -> SyncResult:
    result = SyncResult()
    try:
        workspace = load_workspace(config_path, start_dir)
        store = PlanStore(workspace.state_path)
        result.plans = store.pending() if pending_only else store.list_all()
    except SkillRouterError as e:
        result.error = str(e)
    return result


def show_plan(
    plan_id: str,
    config_path: Path | None = None,
    start_dir: Path | None = None,
) -> SyncResult:
    result = SyncResult()
    try:
        workspace = load_workspace(config_path, start_dir)
        result.plan = PlanStore(workspace.state_path).load(plan_id)
    except PendingNotFound as e:
        result.error = str(e)
        result.not_found = True
    except SkillRouterError as e:
        result.error = str(e)
    return result


def approve_plan(
    plan_id: str,
    approver: str = "user",
    retain: Iterable[str] = (),
    config_path: Path | None = None,
    start_dir: Path | None = None,
) -> SyncResult:
    """Apply a pending plan. A stale plan stays pending with an error."""
    result = SyncResult()
    try:
        workspace = load_workspace(config_path, start_dir)
        store = PlanStore(workspace.state_path)
        plan = store.load(plan_id)
        result.plan = plan
        result.module = _reconciler(workspace).approve(plan, approver=approver, retain=retain)
        store.save(plan)
        result.saved = True
    except PendingNotFound as e:
        result.error = str(e)
        result.not_found = True
    except SkillRouterError as e:
        result.error = str(e)
    return result


def reject_plan(
    plan_id: str,
    approver: str = "user",
    config_path: Path | None = None,
    start_dir: Path | None = None,
) -> SyncResult:
    result = SyncResult()
    try:
        workspace = load_workspace(config_path, start_dir)
        store = PlanStore(workspace.state_path)
        plan = _reconciler(workspace).reject(store.load(plan_id), approver=approver)
        result.plan = plan
        store.save(plan)
        result.saved = True
    except PendingNotFound as e:
        result.error = str(e)
        result.not_found = True
    except SkillRouterError as e:
        result.error = str(e)
    return result
