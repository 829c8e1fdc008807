"""
Routing models — trigger rules and the decision they produce.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel

from skillrouter.core.models.stack import StackProfile


class RouteCategory(StrEnum):
    """Downstream workflows a request can be handed to."""

    IMPLEMENTATION = "implementation"
    SYNCHRONIZATION = "synchronization"
    QUALITY_REVIEW = "quality-review"


class TriggerRule(BaseModel):
    """A static pattern → category mapping. Lower priority runs first."""

    pattern: str
    category: RouteCategory
    priority: int = 100


class RouteDecision(BaseModel):
    """Outcome of matching one request against the trigger table.

    ``RouteDecision.no_match()`` is the ``NoRouteMatch`` outcome: the
    caller must ask for clarification instead of guessing.
    """

    category: RouteCategory | None = None
    matched_rule: TriggerRule | None = None
    profile: StackProfile | None = None

    @classmethod
    def no_match(cls, profile: StackProfile | None = None) -> RouteDecision:
        return cls(profile=profile)

    @property
    def matched(self) -> bool:
        return self.matched_rule is not None

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["matched"] = self.matched
        return data
