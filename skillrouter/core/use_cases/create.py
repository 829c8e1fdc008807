"""
Creation use case — draft, approve and reject capability module proposals.

A draft runs detection, opens a creation request and saves it in the
proposal store, where it waits (indefinitely) for approve or reject.
Each decision reloads the request, drives the lifecycle and saves the
request again, whatever the outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from skillrouter.core.config.loader import Workspace, load_workspace
from skillrouter.core.errors import RegistryConflict, SkillRouterError, TemplateError
from skillrouter.core.models.lifecycle import CreationRequest
from skillrouter.core.models.module import CapabilityModule
from skillrouter.core.persistence.audit import AuditWriter
from skillrouter.core.persistence.pending import PendingNotFound, ProposalStore
from skillrouter.core.persistence.registry import CapabilityRegistry
from skillrouter.core.services.lifecycle import LifecycleManager
from skillrouter.core.use_cases.detect import detect_workspace

logger = logging.getLogger(__name__)


@dataclass
class CreateResult:
    """Result of a creation use case step."""

    request: CreationRequest | None = None
    module: CapabilityModule | None = None
    requests: list[CreationRequest] = field(default_factory=list)
    error: str | None = None
    missing_placeholders: list[str] = field(default_factory=list)
    not_found: bool = False

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            if self.missing_placeholders:
                result["missing_placeholders"] = self.missing_placeholders
        if self.request is not None:
            result["request"] = self.request.to_dict()
        if self.module is not None:
            result["module"] = self.module.to_dict()
        if self.requests:
            result["requests"] = [r.to_dict() for r in self.requests]
        return result


def _manager(workspace: Workspace) -> LifecycleManager:
    return LifecycleManager(
        registry=CapabilityRegistry(workspace.registry_path),
        templates_dir=workspace.templates_path,
        audit=AuditWriter(workspace.audit_path),
    )


def draft_proposal(
    config_path: Path | None = None,
    start_dir: Path | None = None,
) -> CreateResult:
    """Classify the workspace and draft a module proposal for it."""
    result = CreateResult()
    try:
        workspace = load_workspace(config_path, start_dir)
        detection = detect_workspace(workspace)

        if detection.profile.is_unknown:
            result.error = "Workspace stack is unknown; nothing to create."
            return result

        request = _manager(workspace).open(detection.profile, detection.dependencies)
        ProposalStore(workspace.state_path).save(request)
        result.request = request
    except RegistryConflict as e:
        result.error = f"{e}. Run a sync instead."
    except SkillRouterError as e:
        result.error = str(e)
    return result


def list_proposals(
    config_path: Path | None = None,
    start_dir: Path | None = None,
    pending_only: bool = True,
) -> CreateResult:
    """List stored creation requests."""
    result = CreateResult()
    try:
        workspace = load_workspace(config_path, start_dir)
        store = ProposalStore(workspace.state_path)
        result.requests = store.pending() if pending_only else store.list_all()
    except SkillRouterError as e:
        result.error = str(e)
    return result


def show_proposal(
    request_id: str,
    config_path: Path | None = None,
    start_dir: Path | None = None,
) -> CreateResult:
    result = CreateResult()
    try:
        workspace = load_workspace(config_path, start_dir)
        result.request = ProposalStore(workspace.state_path).load(request_id)
    except PendingNotFound as e:
        result.error = str(e)
        result.not_found = True
    except SkillRouterError as e:
        result.error = str(e)
    return result


def approve_proposal(
    request_id: str,
    approver: str = "user",
    config_path: Path | None = None,
    start_dir: Path | None = None,
) -> CreateResult:
    """Approve a pending proposal and generate the module.

    A failed generation leaves the request awaiting approval, with the
    error stored on it and surfaced verbatim on the result.
    """
    result = CreateResult()
    try:
        workspace = load_workspace(config_path, start_dir)
        store = ProposalStore(workspace.state_path)
        request = store.load(request_id)
        result.request = request
    except PendingNotFound as e:
        result.error = str(e)
        result.not_found = True
        return result
    except SkillRouterError as e:
        result.error = str(e)
        return result

    try:
        result.module = _manager(workspace).approve(request, approver=approver)
    except TemplateError as e:
        result.error = str(e)
        result.missing_placeholders = list(e.missing)
    except (SkillRouterError, OSError, UnicodeDecodeError) as e:
        result.error = str(e)

    store.save(request)
    return result


def reject_proposal(
    request_id: str,
    approver: str = "user",
    reason: str = "",
    config_path: Path | None = None,
    start_dir: Path | None = None,
) -> CreateResult:
    """Reject a pending proposal. Nothing is created."""
    result = CreateResult()
    try:
        workspace = load_workspace(config_path, start_dir)
        store = ProposalStore(workspace.state_path)
        request = store.load(request_id)
        result.request = _manager(workspace).reject(request, approver=approver, reason=reason)
        store.save(request)
    except PendingNotFound as e:
        result.error = str(e)
        result.not_found = True
    except SkillRouterError as e:
        result.error = str(e)
    return result
