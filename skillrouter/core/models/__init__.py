"""
Domain models — Pydantic types for the routing and sync core.

All models are re-exported here for convenient access:

    from skillrouter.core.models import Signal, StackProfile, CapabilityModule, SyncPlan
"""

from skillrouter.core.models.lifecycle import (
    CreationRequest,
    LifecycleState,
    Proposal,
    Transition,
)
from skillrouter.core.models.module import CapabilityModule, ModuleKey
from skillrouter.core.models.routing import RouteCategory, RouteDecision, TriggerRule
from skillrouter.core.models.signal import ScanError, ScanResult, Signal, SignalKind
from skillrouter.core.models.stack import ClassificationRule, StackProfile, TieBreak
from skillrouter.core.models.sync import (
    AddLibrary,
    PlanStatus,
    RemoveLibrary,
    SyncAction,
    SyncPlan,
    UpdateLibrary,
)

__all__ = [
    # sync.py
    "AddLibrary",
    # module.py
    "CapabilityModule",
    # stack.py
    "ClassificationRule",
    # lifecycle.py
    "CreationRequest",
    "LifecycleState",
    "ModuleKey",
    "PlanStatus",
    "Proposal",
    "RemoveLibrary",
    # routing.py
    "RouteCategory",
    "RouteDecision",
    # signal.py
    "ScanError",
    "ScanResult",
    "Signal",
    "SignalKind",
    "StackProfile",
    "SyncAction",
    "SyncPlan",
    "TieBreak",
    "Transition",
    "TriggerRule",
    "UpdateLibrary",
]
