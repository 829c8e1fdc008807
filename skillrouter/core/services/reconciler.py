"""
Sync reconciler — diff a module's declared libraries against live dependencies.

With D the declared names and L the live names:

    ToAdd    = L \\ D
    ToUpdate = {n ∈ D ∩ L : D[n] ≠ L[n]}
    ToRemove = D \\ L

Actions come out as adds, then updates, then removes, each group
sorted by name. Removals are proposals only: the approver can retain
any of them. Nothing touches the registry until a plan is approved.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Iterable, Mapping

from skillrouter.core.errors import InvalidTransition, RegistryKeyMissing, SyncConflict
from skillrouter.core.models.module import CapabilityModule
from skillrouter.core.models.sync import (
    AddLibrary,
    PlanStatus,
    RemoveLibrary,
    SyncAction,
    SyncPlan,
    UpdateLibrary,
)
from skillrouter.core.persistence.audit import AuditEntry, AuditWriter
from skillrouter.core.persistence.registry import CapabilityRegistry

logger = logging.getLogger(__name__)


def diff(declared: Mapping[str, str], live: Mapping[str, str]) -> list[SyncAction]:
    """Three-way diff: additions first, then updates, then removals."""
    to_add = sorted(set(live) - set(declared))
    to_update = sorted(n for n in set(declared) & set(live) if declared[n] != live[n])
    to_remove = sorted(set(declared) - set(live))

    actions: list[SyncAction] = []
    actions.extend(AddLibrary(name=n, version=live[n]) for n in to_add)
    actions.extend(
        UpdateLibrary(name=n, from_version=declared[n], to_version=live[n]) for n in to_update
    )
    actions.extend(RemoveLibrary(name=n) for n in to_remove)
    return actions


def apply(
    libraries: Mapping[str, str],
    actions: Iterable[SyncAction],
    retain: Iterable[str] = (),
) -> dict[str, str]:
    """Apply actions to a library map and return the new map.

    Pure and idempotent: applying the same actions again gives the same
    result. Removals of names in ``retain`` are skipped.
    """
    keep = set(retain)
    result = dict(libraries)
    for action in actions:
        if isinstance(action, AddLibrary):
            result[action.name] = action.version
        elif isinstance(action, UpdateLibrary):
            result[action.name] = action.to_version
        elif isinstance(action, RemoveLibrary) and action.name not in keep:
            result.pop(action.name, None)
    return dict(sorted(result.items()))


class SyncReconciler:
    """Plans library syncs and applies them once approved.

    Args:
        registry: The registry holding the modules.
        audit: Ledger for decisions (optional).
    """

    def __init__(self, registry: CapabilityRegistry, audit: AuditWriter | None = None):
        self._registry = registry
        self._audit = audit

    def _record(self, plan: SyncPlan, status: str, actor: str, **context) -> None:
        if self._audit is None:
            return
        self._audit.write(AuditEntry(
            operation_id=plan.id,
            operation_type="sync",
            module=str(plan.key),
            status=status,
            actor=actor,
            context=context,
        ))

    def plan(self, module: CapabilityModule, live: Mapping[str, str]) -> SyncPlan:
        """Compute a pending plan for one module. Writes nothing."""
        actions = diff(module.declared_libraries, live)
        plan = SyncPlan(
            key=module.key,
            base_libraries=dict(module.declared_libraries),
            actions=actions,
        )
        logger.info(
            "Sync plan %s for %s: %d add, %d update, %d remove",
            plan.id, module.key, len(plan.additions), len(plan.updates), len(plan.removals),
        )
        return plan

    def approve(
        self,
        plan: SyncPlan,
        approver: str = "user",
        retain: Iterable[str] = (),
    ) -> CapabilityModule:
        """Apply an approved plan to the registry in one atomic update.

        Sets ``declared_libraries`` and ``last_sync_at`` and bumps the
        module's patch version together.

        Raises:
            InvalidTransition: If the plan is not pending.
            SyncConflict: If the module changed since the plan was made.
            RegistryKeyMissing: If the module no longer exists.
        """
        if plan.status != PlanStatus.PENDING:
            raise InvalidTransition(plan.status.value, PlanStatus.APPLIED.value)

        retained = sorted(set(retain) & {a.name for a in plan.removals})

        if plan.in_sync:
            module = self._registry.lookup(plan.key)
            if module is None:
                raise RegistryKeyMissing(plan.key)
            plan.status = PlanStatus.APPLIED
            plan.decided_at = datetime.now(UTC).isoformat()
            plan.decided_by = approver
            self._record(plan, "applied", approver, actions=0, retained=[])
            return module

        def mutation(module: CapabilityModule) -> CapabilityModule:
            if module.declared_libraries != plan.base_libraries:
                raise SyncConflict(
                    f"{module.key} changed since plan {plan.id} was computed; re-run the plan"
                )
            module.declared_libraries = apply(module.declared_libraries, plan.actions, retained)
            module.last_sync_at = datetime.now(UTC).isoformat()
            module.version = module.bump_version()
            return module

        updated = self._registry.update(plan.key, mutation)

        plan.status = PlanStatus.APPLIED
        plan.decided_at = updated.last_sync_at
        plan.decided_by = approver
        plan.retained = retained
        self._record(plan, "applied", approver, actions=len(plan.actions), retained=retained)
        return updated

    def reject(self, plan: SyncPlan, approver: str = "user") -> SyncPlan:
        """Reject a pending plan. The module is left untouched."""
        if plan.status != PlanStatus.PENDING:
            raise InvalidTransition(plan.status.value, PlanStatus.REJECTED.value)
        plan.status = PlanStatus.REJECTED
        plan.decided_at = datetime.now(UTC).isoformat()
        plan.decided_by = approver
        self._record(plan, "rejected", approver)
        return plan
