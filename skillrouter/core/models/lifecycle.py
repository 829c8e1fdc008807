"""
Lifecycle models — the creation request for a missing capability module.

States:
    NOT_FOUND          → classified stack has no registry entry
    PROPOSAL_DRAFTED   → module name, key and libraries proposed
    AWAITING_APPROVAL  → suspended until a human decides
    APPROVED           → decision recorded
    GENERATING         → template being filled
    CREATED            → module inserted into the registry
    REJECTED           → decision recorded
    CANCELLED          → terminal, nothing created

Transitions:
    NOT_FOUND → PROPOSAL_DRAFTED → AWAITING_APPROVAL
    AWAITING_APPROVAL → APPROVED → GENERATING → CREATED
    GENERATING → AWAITING_APPROVAL   (template or insert failure)
    AWAITING_APPROVAL → REJECTED → CANCELLED
"""

from __future__ import annotations

import secrets
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from skillrouter.core.models.module import ModuleKey
from skillrouter.core.models.stack import StackProfile


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _make_request_id() -> str:
    ts = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
    return f"create_{ts}_{secrets.token_hex(2)}"


class LifecycleState(StrEnum):
    NOT_FOUND = "not_found"
    PROPOSAL_DRAFTED = "proposal_drafted"
    AWAITING_APPROVAL = "awaiting_approval"
    APPROVED = "approved"
    GENERATING = "generating"
    CREATED = "created"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: dict[LifecycleState, frozenset[LifecycleState]] = {
    LifecycleState.NOT_FOUND: frozenset({LifecycleState.PROPOSAL_DRAFTED}),
    LifecycleState.PROPOSAL_DRAFTED: frozenset({LifecycleState.AWAITING_APPROVAL}),
    LifecycleState.AWAITING_APPROVAL: frozenset({
        LifecycleState.APPROVED,
        LifecycleState.REJECTED,
    }),
    LifecycleState.APPROVED: frozenset({LifecycleState.GENERATING}),
    LifecycleState.GENERATING: frozenset({
        LifecycleState.CREATED,
        LifecycleState.AWAITING_APPROVAL,
    }),
    LifecycleState.REJECTED: frozenset({LifecycleState.CANCELLED}),
    LifecycleState.CREATED: frozenset(),
    LifecycleState.CANCELLED: frozenset(),
}

TERMINAL_STATES = frozenset({LifecycleState.CREATED, LifecycleState.CANCELLED})


class Transition(BaseModel):
    """One recorded step in a request's history."""

    from_state: LifecycleState
    to_state: LifecycleState
    at: str = Field(default_factory=_now_iso)
    actor: str = "system"
    note: str = ""


class Proposal(BaseModel):
    """What will be created if the request is approved."""

    module_name: str
    key: ModuleKey
    libraries: dict[str, str] = Field(default_factory=dict)
    template: str = ""


class CreationRequest(BaseModel):
    """A pending (or finished) request to create a capability module."""

    id: str = Field(default_factory=_make_request_id)
    profile: StackProfile
    dependencies: dict[str, str] = Field(default_factory=dict)
    state: LifecycleState = LifecycleState.NOT_FOUND
    proposal: Proposal | None = None
    history: list[Transition] = Field(default_factory=list)
    last_error: str | None = None
    created_at: str = Field(default_factory=_now_iso)

    @property
    def key(self) -> ModuleKey:
        return ModuleKey(layer=self.profile.layer, stack=self.profile.id)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def is_pending(self) -> bool:
        return self.state == LifecycleState.AWAITING_APPROVAL

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")
