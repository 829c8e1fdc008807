"""
Request router — match free-form request text to a workflow category.

Single pass, priority order, first match wins. A rule matches when its
normalized pattern occurs as a substring of the normalized request.
When nothing matches the router says so; it never guesses.
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

from skillrouter.core.models.routing import RouteDecision, TriggerRule
from skillrouter.core.models.stack import StackProfile

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Lower-case, trim, and collapse runs of whitespace to one space."""
    return _WHITESPACE.sub(" ", text.strip().lower())


class Router:
    """Priority-ordered trigger table.

    Rules are sorted once by priority; the sort is stable, so rules with
    equal priority keep their table order.
    """

    def __init__(self, rules: Sequence[TriggerRule]):
        self._rules = sorted(rules, key=lambda r: r.priority)
        self._patterns = [normalize(r.pattern) for r in self._rules]

    @property
    def rules(self) -> list[TriggerRule]:
        return list(self._rules)

    def route(self, text: str, profile: StackProfile | None = None) -> RouteDecision:
        """Route one request.

        Args:
            text: Raw request text.
            profile: Current classification, carried on the decision so the
                downstream workflow knows which module to act on.

        Returns:
            RouteDecision for the first matching rule, or
            ``RouteDecision.no_match()``.
        """
        request = normalize(text)
        if request:
            for rule, pattern in zip(self._rules, self._patterns):
                if pattern and pattern in request:
                    logger.debug("Request matched '%s' → %s", rule.pattern, rule.category)
                    return RouteDecision(category=rule.category, matched_rule=rule, profile=profile)

        logger.info("No trigger matched request (%d chars)", len(request))
        return RouteDecision.no_match(profile)
