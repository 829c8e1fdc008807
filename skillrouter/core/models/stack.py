"""
Stack model — classification rules and the profile they produce.

Rules are loaded from classification_rules.yml and evaluated in
declaration order. A rule is a conjunction of signal references; its
specificity weight is the number of references it requires.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from skillrouter.core.models.signal import Signal

UNKNOWN_STACK = "unknown"


class TieBreak(StrEnum):
    """How equally scored rules are ordered.

    DECLARATION   earliest rule in the table wins (default)
    ALPHABETICAL  lowest stack id wins
    """

    DECLARATION = "declaration"
    ALPHABETICAL = "alphabetical"


class ClassificationRule(BaseModel):
    """One row of the classification table.

    ``requires`` holds signal references such as ``file:vite.config.*``
    or ``dep:react``. Every reference must be present for the rule to
    score; there are no partial matches.
    """

    stack: str
    layer: str = "frontend"
    requires: list[str] = Field(default_factory=list)
    description: str = ""

    @property
    def weight(self) -> int:
        """Specificity: the number of required signals."""
        return len(self.requires)

    def score(self, refs: set[str]) -> int:
        """``weight`` if every required reference is present, else 0."""
        if self.requires and all(r in refs for r in self.requires):
            return self.weight
        return 0


class StackProfile(BaseModel):
    """The classified technology identity of a workspace."""

    id: str
    layer: str = ""
    score: int = 0
    matched_signals: list[Signal] = Field(default_factory=list)

    @classmethod
    def unknown(cls) -> StackProfile:
        """The ``ClassificationUnknown`` outcome: no rule scored."""
        return cls(id=UNKNOWN_STACK)

    @property
    def is_unknown(self) -> bool:
        return self.id == UNKNOWN_STACK

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")
