"""
Rules loader — loads the classification table and the trigger table.

Both tables are static YAML documents read once per invocation. Order
in the file is meaningful for both: it is the classifier's default
tie-break and the router's order among equal priorities. Unlike module
records, a broken table is a configuration error, not something to skip.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from skillrouter.core.errors import ConfigError
from skillrouter.core.models.routing import TriggerRule
from skillrouter.core.models.signal import REF_PREFIXES
from skillrouter.core.models.stack import ClassificationRule

logger = logging.getLogger(__name__)

_VALID_PREFIXES = frozenset(REF_PREFIXES.values())


def _load_list(path: Path, key: str) -> list:
    """Read ``path`` and return the list stored under ``key``."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get(key), list):
        raise ConfigError(f"{path} must be a mapping with a '{key}' list")
    return data[key]


def _check_rule(rule: ClassificationRule, path: Path, index: int) -> None:
    if not rule.requires:
        raise ConfigError(f"{path}: rule #{index} ({rule.stack}) requires no signals")
    for ref in rule.requires:
        prefix, sep, value = ref.partition(":")
        if not sep or not value or prefix not in _VALID_PREFIXES:
            raise ConfigError(
                f"{path}: rule #{index} ({rule.stack}) has invalid reference '{ref}' "
                f"(expected one of {sorted(_VALID_PREFIXES)} followed by ':')"
            )


def load_rules(path: Path) -> list[ClassificationRule]:
    """Load classification rules in declaration order.

    Raises:
        ConfigError: On unreadable files, invalid entries, or a rule that
            repeats an earlier rule exactly.
    """
    rules: list[ClassificationRule] = []
    seen: set[tuple[str, frozenset[str]]] = set()

    for index, entry in enumerate(_load_list(path, "rules"), start=1):
        try:
            rule = ClassificationRule.model_validate(entry)
        except ValidationError as e:
            raise ConfigError(f"{path}: invalid rule #{index}: {e}") from e
        _check_rule(rule, path, index)

        signature = (rule.stack, frozenset(rule.requires))
        if signature in seen:
            raise ConfigError(f"{path}: rule #{index} duplicates an earlier {rule.stack} rule")
        seen.add(signature)
        rules.append(rule)

    logger.debug("Loaded %d classification rules from %s", len(rules), path)
    return rules


def load_triggers(path: Path) -> list[TriggerRule]:
    """Load trigger rules in file order.

    Raises:
        ConfigError: On unreadable files, blank patterns, or unknown
            categories.
    """
    triggers: list[TriggerRule] = []
    for index, entry in enumerate(_load_list(path, "triggers"), start=1):
        try:
            trigger = TriggerRule.model_validate(entry)
        except ValidationError as e:
            raise ConfigError(f"{path}: invalid trigger #{index}: {e}") from e
        if not trigger.pattern.strip():
            raise ConfigError(f"{path}: trigger #{index} has an empty pattern")
        triggers.append(trigger)

    logger.debug("Loaded %d trigger rules from %s", len(triggers), path)
    return triggers
