"""
Sync models — proposed changes to a module's declared libraries.

A SyncAction is a tagged variant discriminated on ``op``. Actions are
grouped into a SyncPlan, which waits for an explicit decision before
anything touches the registry.
"""

from __future__ import annotations

import secrets
from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from skillrouter.core.models.module import ModuleKey


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _make_plan_id() -> str:
    ts = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
    return f"plan_{ts}_{secrets.token_hex(2)}"


class AddLibrary(BaseModel):
    op: Literal["add"] = "add"
    name: str
    version: str = ""

    def describe(self) -> str:
        return f"Add {self.name} {self.version}".rstrip()


class UpdateLibrary(BaseModel):
    op: Literal["update"] = "update"
    name: str
    from_version: str = ""
    to_version: str = ""

    def describe(self) -> str:
        return f"Update {self.name} {self.from_version or '?'} → {self.to_version or '?'}"


class RemoveLibrary(BaseModel):
    op: Literal["remove"] = "remove"
    name: str

    def describe(self) -> str:
        return f"Remove {self.name}"


SyncAction = Annotated[
    Union[AddLibrary, UpdateLibrary, RemoveLibrary],
    Field(discriminator="op"),
]


class PlanStatus(StrEnum):
    PENDING = "pending"
    APPLIED = "applied"
    REJECTED = "rejected"


class SyncPlan(BaseModel):
    """A reviewed-before-applied set of library changes for one module.

    ``base_libraries`` is the module's declared set at planning time.
    Applying a plan whose base no longer matches the module is refused.
    """

    id: str = Field(default_factory=_make_plan_id)
    key: ModuleKey
    base_libraries: dict[str, str] = Field(default_factory=dict)
    actions: list[SyncAction] = Field(default_factory=list)
    status: PlanStatus = PlanStatus.PENDING
    created_at: str = Field(default_factory=_now_iso)
    decided_at: str | None = None
    decided_by: str = ""
    retained: list[str] = Field(default_factory=list)

    @property
    def in_sync(self) -> bool:
        return not self.actions

    @property
    def additions(self) -> list[AddLibrary]:
        return [a for a in self.actions if isinstance(a, AddLibrary)]

    @property
    def updates(self) -> list[UpdateLibrary]:
        return [a for a in self.actions if isinstance(a, UpdateLibrary)]

    @property
    def removals(self) -> list[RemoveLibrary]:
        return [a for a in self.actions if isinstance(a, RemoveLibrary)]

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["in_sync"] = self.in_sync
        return data
