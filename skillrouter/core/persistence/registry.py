"""
Capability registry — durable store of installed capability modules.

Each module lives in its own directory under the registry root:

    skills/
        impl-frontend-react-vite/
            SKILL.md        # YAML header + opaque knowledge payload

The header block carries name, description, version, created,
last_sync, layer, stack (list, first entry is the stack id) and
libraries (list of {name, version}). The payload after the header is
stored exactly as given and never parsed.

Writes are atomic (temp file in the same directory, then rename), so
a record is either fully replaced or left untouched. Mutations take a
per-key lock; concurrent writers to the same (layer, stack) serialize.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Callable

import yaml
from pydantic import ValidationError

from skillrouter.core.errors import RegistryConflict, RegistryError, RegistryKeyMissing
from skillrouter.core.models.module import CapabilityModule, ModuleKey

logger = logging.getLogger(__name__)

RECORD_FILE = "SKILL.md"
_DELIMITER = "---"

# ── Thread safety ───────────────────────────────────────────────
# One lock per registry key, shared by every CapabilityRegistry
# instance in the process (the web server builds one per request).
_key_locks: dict[str, threading.Lock] = {}
_key_locks_guard = threading.Lock()


def _get_key_lock(root: Path, key: ModuleKey) -> threading.Lock:
    """Get or create the lock for one key of one registry root."""
    lock_id = f"{root.resolve()}::{key}"
    with _key_locks_guard:
        if lock_id not in _key_locks:
            _key_locks[lock_id] = threading.Lock()
        return _key_locks[lock_id]


# ── Record format ───────────────────────────────────────────────


def serialize_module(module: CapabilityModule) -> str:
    """Render a module as its persisted record."""
    header = {
        "name": module.name,
        "description": module.description,
        "version": module.version,
        "created": module.created_at,
        "last_sync": module.last_sync_at,
        "layer": module.key.layer,
        "stack": [module.key.stack],
        "libraries": [
            {"name": name, "version": version}
            for name, version in sorted(module.declared_libraries.items())
        ],
    }
    front = yaml.safe_dump(header, sort_keys=False, allow_unicode=True)
    return f"{_DELIMITER}\n{front}{_DELIMITER}\n{module.payload}"


def _timestamp(value: object) -> str | None:
    # Hand-edited headers may carry unquoted timestamps that YAML loads as datetimes
    if value is None or value == "":
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def parse_module(text: str, source: str = "<record>") -> CapabilityModule:
    """Parse a persisted record back into a module.

    Raises:
        RegistryError: If the header block is missing or invalid.
    """
    if not text.startswith(_DELIMITER + "\n"):
        raise RegistryError(f"{source}: missing header block")

    end = text.find(f"\n{_DELIMITER}\n", len(_DELIMITER))
    if end == -1:
        raise RegistryError(f"{source}: unterminated header block")

    header_text = text[len(_DELIMITER) + 1:end + 1]
    payload = text[end + len(_DELIMITER) + 2:]

    try:
        header = yaml.safe_load(header_text) or {}
    except yaml.YAMLError as e:
        raise RegistryError(f"{source}: invalid header YAML: {e}") from e
    if not isinstance(header, dict):
        raise RegistryError(f"{source}: header is not a mapping")

    stack = header.get("stack")
    if isinstance(stack, str):
        stack = [stack]
    if not stack or not header.get("layer"):
        raise RegistryError(f"{source}: header needs 'layer' and a non-empty 'stack' list")

    libraries: dict[str, str] = {}
    for entry in header.get("libraries") or []:
        if not isinstance(entry, dict) or "name" not in entry:
            raise RegistryError(f"{source}: malformed library entry {entry!r}")
        libraries[str(entry["name"])] = str(entry.get("version") or "")

    try:
        return CapabilityModule(
            name=str(header.get("name") or ""),
            key=ModuleKey(layer=str(header["layer"]), stack=str(stack[0])),
            version=str(header.get("version") or "1.0.0"),
            description=str(header.get("description") or ""),
            declared_libraries=libraries,
            created_at=_timestamp(header.get("created")) or "",
            last_sync_at=_timestamp(header.get("last_sync")),
            payload=payload,
        )
    except ValidationError as e:
        raise RegistryError(f"{source}: {e}") from e


def _atomic_write(path: Path, content: str) -> None:
    """Write-to-temp-then-rename so readers never see a partial record."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".skill_", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


# ── Registry ────────────────────────────────────────────────────


class CapabilityRegistry:
    """Key-value store of capability modules, keyed by (layer, stack).

    insert  fails with RegistryConflict when the key exists
    update  fails with RegistryKeyMissing when the key is absent
    Nothing here deletes a module.
    """

    def __init__(self, root: Path):
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def record_path(self, key: ModuleKey) -> Path:
        return self._root / key.module_name / RECORD_FILE

    def _read(self, path: Path) -> CapabilityModule:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise RegistryError(f"Cannot read {path}: {e}") from e
        return parse_module(text, source=str(path))

    def _write(self, module: CapabilityModule) -> None:
        path = self.record_path(module.key)
        try:
            _atomic_write(path, serialize_module(module))
        except OSError as e:
            raise RegistryError(f"Cannot write {path}: {e}") from e
        logger.debug("Registry record written: %s", path)

    def lookup(self, key: ModuleKey) -> CapabilityModule | None:
        """Return the module for ``key``, or None when not registered.

        Raises:
            RegistryError: If a record exists but cannot be parsed.
        """
        path = self.record_path(key)
        if not path.is_file():
            return None
        module = self._read(path)
        if module.key != key:
            logger.warning("Record %s belongs to %s, not %s", path, module.key, key)
            return None
        return module

    def contains(self, key: ModuleKey) -> bool:
        return self.record_path(key).is_file()

    def insert(self, module: CapabilityModule) -> CapabilityModule:
        """Add a new module. Never overwrites.

        Raises:
            RegistryConflict: If a record already exists for the key.
        """
        with _get_key_lock(self._root, module.key):
            if self.contains(module.key):
                raise RegistryConflict(module.key)
            self._write(module)
        logger.info("Registered capability module %s (%s)", module.name, module.key)
        return module

    def update(
        self,
        key: ModuleKey,
        mutation: Callable[[CapabilityModule], CapabilityModule],
    ) -> CapabilityModule:
        """Replace a module's record with ``mutation(current)``.

        The mutation receives a deep copy and must keep the key. The
        record is replaced in full or not at all.

        Raises:
            RegistryKeyMissing: If no module exists for the key.
            RegistryError: If the mutation changes the key or the write fails.
        """
        with _get_key_lock(self._root, key):
            current = self.lookup(key)
            if current is None:
                raise RegistryKeyMissing(key)
            updated = mutation(current.model_copy(deep=True))
            if updated.key != key:
                raise RegistryError(f"Update of {key} tried to change its key to {updated.key}")
            self._write(updated)
        logger.info("Updated capability module %s (%s)", updated.name, key)
        return updated

    def list_modules(self) -> list[CapabilityModule]:
        """All readable modules, sorted by key. Corrupt records are skipped."""
        if not self._root.is_dir():
            return []

        modules: list[CapabilityModule] = []
        for child in sorted(self._root.iterdir()):
            record = child / RECORD_FILE
            if not child.is_dir() or not record.is_file():
                continue
            try:
                modules.append(self._read(record))
            except RegistryError as e:
                logger.warning("Skipping unreadable module %s: %s", child.name, e)

        return sorted(modules, key=lambda m: (m.key.layer, m.key.stack))
