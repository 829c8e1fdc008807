"""
Packaged default data — classification rules, trigger table, module template.

Workspaces can override each file through skillrouter.yml; these are the
fallbacks used when no override is configured.
"""

from __future__ import annotations

from pathlib import Path

DATA_DIR = Path(__file__).parent

DEFAULT_RULES_FILE = DATA_DIR / "classification_rules.yml"
DEFAULT_TRIGGERS_FILE = DATA_DIR / "triggers.yml"
DEFAULT_TEMPLATE_FILE = DATA_DIR / "templates" / "skill.md"
