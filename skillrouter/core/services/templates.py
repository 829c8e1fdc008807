"""
Module templates — ``{{NAME}}``-style placeholder substitution.

Rendering is all-or-nothing: if any placeholder has no value the
render raises TemplateError naming every missing one, and no partial
text is returned.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Mapping

from skillrouter.core.data import DEFAULT_TEMPLATE_FILE
from skillrouter.core.errors import TemplateError
from skillrouter.core.models.module import ModuleKey
from skillrouter.core.models.signal import Signal

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\{\{\s*([A-Z][A-Z0-9_]*)\s*\}\}")

DEFAULT_TEMPLATE_NAME = "skill.md"


def find_placeholders(text: str) -> list[str]:
    """Placeholder names in order of first appearance."""
    return list(dict.fromkeys(m.group(1) for m in PLACEHOLDER.finditer(text)))


def render(text: str, context: Mapping[str, str | None], source: str = "") -> str:
    """Substitute every placeholder in ``text``.

    Raises:
        TemplateError: If any placeholder is absent from ``context`` or None.
    """
    missing = [name for name in find_placeholders(text) if context.get(name) is None]
    if missing:
        raise TemplateError(missing, template=source)
    return PLACEHOLDER.sub(lambda m: str(context[m.group(1)]), text)


def resolve_template(templates_dir: Path, layer: str) -> Path:
    """Pick the template for a layer.

    Order: ``<templates_dir>/<layer>.md``, ``<templates_dir>/skill.md``,
    then the packaged default.
    """
    for candidate in (templates_dir / f"{layer}.md", templates_dir / DEFAULT_TEMPLATE_NAME):
        if candidate.is_file():
            return candidate
    return DEFAULT_TEMPLATE_FILE


def _bullets(lines: Iterable[str], empty: str) -> str:
    items = [f"- {line}" for line in lines]
    return "\n".join(items) if items else empty


def build_context(
    name: str,
    key: ModuleKey,
    version: str,
    created: str,
    libraries: Mapping[str, str],
    signals: Iterable[Signal] = (),
) -> dict[str, str]:
    """Standard placeholder values for a new capability module."""
    return {
        "NAME": name,
        "LAYER": key.layer,
        "STACK": key.stack,
        "VERSION": version,
        "CREATED": created,
        "LIBRARIES": _bullets(
            (f"`{n}` {v}".rstrip() for n, v in sorted(libraries.items())),
            "_No libraries detected._",
        ),
        "SIGNALS": _bullets(
            (f"`{s.ref}`" + (f" ({s.source})" if s.source and s.source != s.key else "")
             for s in signals),
            "_No signals recorded._",
        ),
    }
