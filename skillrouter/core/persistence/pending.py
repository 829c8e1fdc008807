"""
Pending decision stores — creation requests and sync plans awaiting approval.

The approval checkpoint may span separate invocations (draft today,
approve tomorrow), so each pending item is saved as one JSON file:

    .skillrouter/
        proposals/<request_id>.json
        plans/<plan_id>.json

Writes are atomic (write to temp file, then rename). Finished items
stay on disk as a record of the decision.
"""

from __future__ import annotations

import json
import logging
import re
import tempfile
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from skillrouter.core.errors import SkillRouterError
from skillrouter.core.models.lifecycle import CreationRequest
from skillrouter.core.models.sync import PlanStatus, SyncPlan

logger = logging.getLogger(__name__)

PROPOSALS_DIR = "proposals"
PLANS_DIR = "plans"

_SAFE_ID = re.compile(r"^[A-Za-z0-9_.-]+$")

M = TypeVar("M", bound=BaseModel)


class PendingNotFound(SkillRouterError):
    """Raised when no stored item has the requested id."""


class JsonStore(Generic[M]):
    """One JSON file per item, keyed by the item's ``id``."""

    def __init__(self, directory: Path, model: type[M]):
        self._dir = directory
        self._model = model

    @property
    def directory(self) -> Path:
        return self._dir

    def _path(self, item_id: str) -> Path:
        if not _SAFE_ID.match(item_id):
            raise PendingNotFound(f"Invalid id: {item_id!r}")
        return self._dir / f"{item_id}.json"

    def save(self, item: M) -> Path:
        """Persist an item (atomic write)."""
        path = self._path(getattr(item, "id"))
        path.parent.mkdir(parents=True, exist_ok=True)

        content = json.dumps(item.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"

        _fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".pending_", suffix=".tmp")
        tmp = Path(tmp_path)
        try:
            with open(_fd, "w", encoding="utf-8") as f:
                f.write(content)
            tmp.replace(path)
            logger.debug("Saved %s to %s", self._model.__name__, path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
        return path

    def load(self, item_id: str) -> M:
        """Load one item.

        Raises:
            PendingNotFound: If the id is unknown.
            SkillRouterError: If the stored file is corrupt.
        """
        path = self._path(item_id)
        if not path.is_file():
            raise PendingNotFound(f"No {self._model.__name__} with id '{item_id}'")
        try:
            return self._model.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise SkillRouterError(f"Corrupt {self._model.__name__} file {path}: {e}") from e

    def list_all(self) -> list[M]:
        """All readable items, oldest id first. Corrupt files are skipped."""
        if not self._dir.is_dir():
            return []
        items: list[M] = []
        for path in sorted(self._dir.glob("*.json")):
            try:
                items.append(self._model.model_validate_json(path.read_text(encoding="utf-8")))
            except (OSError, ValidationError) as e:
                logger.warning("Skipping corrupt pending file %s: %s", path, e)
        return items


class ProposalStore(JsonStore[CreationRequest]):
    def __init__(self, state_dir: Path):
        super().__init__(state_dir / PROPOSALS_DIR, CreationRequest)

    def pending(self) -> list[CreationRequest]:
        return [r for r in self.list_all() if r.is_pending]


class PlanStore(JsonStore[SyncPlan]):
    def __init__(self, state_dir: Path):
        super().__init__(state_dir / PLANS_DIR, SyncPlan)

    def pending(self) -> list[SyncPlan]:
        return [p for p in self.list_all() if p.status == PlanStatus.PENDING]
