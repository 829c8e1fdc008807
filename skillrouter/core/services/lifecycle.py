"""
Lifecycle manager — create a missing capability module, behind approval.

    open()     NOT_FOUND → PROPOSAL_DRAFTED → AWAITING_APPROVAL   (automatic)
    approve()  AWAITING_APPROVAL → APPROVED → GENERATING → CREATED
    reject()   AWAITING_APPROVAL → REJECTED → CANCELLED

AWAITING_APPROVAL is the human-in-the-loop checkpoint. There is no
timeout and no path to CREATED that skips approve(). If generation
fails (unresolved placeholder, insert conflict, unreadable template or
a failed write) the request falls back to AWAITING_APPROVAL with the
error recorded, and nothing reaches the registry.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from skillrouter.core.errors import InvalidTransition, RegistryConflict, SkillRouterError
from skillrouter.core.models.lifecycle import (
    ALLOWED_TRANSITIONS,
    CreationRequest,
    LifecycleState,
    Proposal,
    Transition,
)
from skillrouter.core.models.module import CapabilityModule, ModuleKey
from skillrouter.core.models.stack import StackProfile
from skillrouter.core.persistence.audit import AuditEntry, AuditWriter
from skillrouter.core.persistence.registry import CapabilityRegistry
from skillrouter.core.services import templates

logger = logging.getLogger(__name__)

INITIAL_VERSION = "1.0.0"


class LifecycleManager:
    """Drives CreationRequests through the approval-gated state machine.

    Args:
        registry: Where created modules are inserted.
        templates_dir: Workspace template directory (optional).
        audit: Ledger for decisions (optional).
    """

    def __init__(
        self,
        registry: CapabilityRegistry,
        templates_dir: Path | None = None,
        audit: AuditWriter | None = None,
    ):
        self._registry = registry
        self._templates_dir = templates_dir
        self._audit = audit

    # ── Transitions ─────────────────────────────────────────────

    def _transition(
        self,
        request: CreationRequest,
        target: LifecycleState,
        actor: str = "system",
        note: str = "",
    ) -> None:
        if target not in ALLOWED_TRANSITIONS[request.state]:
            raise InvalidTransition(request.state.value, target.value)
        request.history.append(
            Transition(from_state=request.state, to_state=target, actor=actor, note=note)
        )
        logger.info("Creation %s: %s → %s", request.id, request.state.value, target.value)
        request.state = target

    def _record(self, request: CreationRequest, status: str, actor: str, **context) -> None:
        if self._audit is None:
            return
        self._audit.write(AuditEntry(
            operation_id=request.id,
            operation_type="create",
            module=str(request.key),
            status=status,
            actor=actor,
            errors=[request.last_error] if status == "failed" and request.last_error else [],
            context=context,
        ))

    def _template_path(self, layer: str) -> Path:
        if self._templates_dir is None:
            return templates.DEFAULT_TEMPLATE_FILE
        return templates.resolve_template(self._templates_dir, layer)

    # ── Public API ──────────────────────────────────────────────

    def open(self, profile: StackProfile, dependencies: dict[str, str]) -> CreationRequest:
        """Start a creation request and draft its proposal.

        Raises:
            ValueError: If the profile is unknown.
            RegistryConflict: If a module already exists for the stack.
        """
        if profile.is_unknown:
            raise ValueError("Cannot create a capability module for an unknown stack")

        key = ModuleKey(layer=profile.layer, stack=profile.id)
        if self._registry.contains(key):
            raise RegistryConflict(key)

        request = CreationRequest(profile=profile, dependencies=dict(dependencies))

        request.proposal = Proposal(
            module_name=key.module_name,
            key=key,
            libraries=dict(sorted(dependencies.items())),
            template=str(self._template_path(key.layer)),
        )
        self._transition(request, LifecycleState.PROPOSAL_DRAFTED)
        self._transition(request, LifecycleState.AWAITING_APPROVAL)

        self._record(request, "drafted", "system", libraries=len(dependencies))
        return request

    def approve(self, request: CreationRequest, approver: str = "user") -> CapabilityModule:
        """Approve a pending request and generate the module.

        Raises:
            InvalidTransition: If the request is not awaiting approval.
            TemplateError: If the template has unresolved placeholders.
            RegistryConflict: If the key was registered in the meantime.
            RegistryError: If the module record cannot be written.
            SkillRouterError: If the request carries no proposal.
        """
        if request.state != LifecycleState.AWAITING_APPROVAL:
            raise InvalidTransition(request.state.value, LifecycleState.APPROVED.value)
        proposal = self._proposal(request)

        self._transition(request, LifecycleState.APPROVED, actor=approver)
        self._transition(request, LifecycleState.GENERATING)

        # Any generation failure leaves the request decidable again.
        try:
            module = self._generate(request, proposal)
            self._registry.insert(module)
        except (SkillRouterError, OSError, UnicodeDecodeError) as e:
            request.last_error = str(e)
            self._transition(request, LifecycleState.AWAITING_APPROVAL, note=str(e))
            self._record(request, "failed", approver)
            raise

        request.last_error = None
        self._transition(request, LifecycleState.CREATED)
        self._record(request, "created", approver, module=module.name)
        return module

    def reject(
        self,
        request: CreationRequest,
        approver: str = "user",
        reason: str = "",
    ) -> CreationRequest:
        """Reject a pending request. Nothing is created.

        Raises:
            InvalidTransition: If the request is not awaiting approval.
        """
        self._transition(request, LifecycleState.REJECTED, actor=approver, note=reason)
        self._transition(request, LifecycleState.CANCELLED)
        self._record(request, "cancelled", approver, reason=reason)
        return request

    # ── Generation ──────────────────────────────────────────────

    @staticmethod
    def _proposal(request: CreationRequest) -> Proposal:
        if request.proposal is None:
            raise SkillRouterError(f"Creation request {request.id} has no drafted proposal")
        return request.proposal

    def _generate(self, request: CreationRequest, proposal: Proposal) -> CapabilityModule:
        """Fill the template. Raises before anything is persisted."""
        template_path = Path(proposal.template) if proposal.template else self._template_path(
            proposal.key.layer
        )
        text = template_path.read_text(encoding="utf-8")

        created = datetime.now(UTC).isoformat()
        context = templates.build_context(
            name=proposal.module_name,
            key=proposal.key,
            version=INITIAL_VERSION,
            created=created,
            libraries=proposal.libraries,
            signals=request.profile.matched_signals,
        )
        payload = templates.render(text, context, source=template_path.name)

        return CapabilityModule(
            name=proposal.module_name,
            key=proposal.key,
            version=INITIAL_VERSION,
            description=f"Implementation guidance for {proposal.key.stack} "
                        f"({proposal.key.layer}) workspaces.",
            declared_libraries=dict(proposal.libraries),
            created_at=created,
            payload=payload,
        )
