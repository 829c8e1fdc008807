"""
Stack classifier — map a signal set to one stack profile.

Pure logic, no I/O. Every rule is scored against the signal set; the
highest score wins and ties fall back to the configured policy. Given
the same signals and the same rule table the answer never changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from skillrouter.core.models.signal import Signal
from skillrouter.core.models.stack import ClassificationRule, StackProfile, TieBreak

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleScore:
    """A rule, its position in the table, and how it scored."""

    rule: ClassificationRule
    position: int
    score: int


def score_rules(
    signals: Iterable[Signal],
    rules: Sequence[ClassificationRule],
) -> list[RuleScore]:
    """Score every rule against the signal set, in table order."""
    refs = {s.ref for s in signals}
    return [RuleScore(rule, i, rule.score(refs)) for i, rule in enumerate(rules)]


def _rank_key(tie_break: TieBreak):
    if tie_break == TieBreak.ALPHABETICAL:
        return lambda rs: (-rs.score, rs.rule.stack, rs.position)
    return lambda rs: (-rs.score, rs.position)


def _matched_signals(rule: ClassificationRule, signals: list[Signal]) -> list[Signal]:
    """The first signal satisfying each required reference, in rule order."""
    by_ref: dict[str, Signal] = {}
    for signal in signals:
        by_ref.setdefault(signal.ref, signal)
    return [by_ref[r] for r in rule.requires if r in by_ref]


def classify(
    signals: Iterable[Signal],
    rules: Sequence[ClassificationRule],
    tie_break: TieBreak = TieBreak.DECLARATION,
) -> StackProfile:
    """Select the single best-matching stack.

    Args:
        signals: Signals from one scan.
        rules: Classification table, most specific rules first.
        tie_break: Policy for equal scores.

    Returns:
        The winning StackProfile, or ``StackProfile.unknown()`` when no
        rule scores above zero.
    """
    signal_list = list(signals)
    scored = [rs for rs in score_rules(signal_list, rules) if rs.score > 0]
    if not scored:
        logger.info("No classification rule matched %d signals", len(signal_list))
        return StackProfile.unknown()

    best = min(scored, key=_rank_key(tie_break))
    tied = [rs.rule.stack for rs in scored if rs.score == best.score]
    if len(tied) > 1:
        logger.info(
            "Tie at score %d between %s; %s policy picked '%s'",
            best.score, tied, tie_break.value, best.rule.stack,
        )

    profile = StackProfile(
        id=best.rule.stack,
        layer=best.rule.layer,
        score=best.score,
        matched_signals=_matched_signals(best.rule, signal_list),
    )
    logger.debug("Classified as %s (score=%d)", profile.id, profile.score)
    return profile
