"""
Signal model — facts observed about a workspace.

Signals are produced fresh on every scan and never persisted. The
classifier only ever sees signals, never the filesystem.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class SignalKind(StrEnum):
    """What kind of observation a signal records."""

    FILE_EXISTS = "file_exists"
    MANIFEST_KEY = "manifest_key"


# Reference prefixes used by classification rules
REF_PREFIXES: dict[SignalKind, str] = {
    SignalKind.FILE_EXISTS: "file",
    SignalKind.MANIFEST_KEY: "dep",
}


class Signal(BaseModel):
    """A single observed fact about a workspace.

    ``file_exists``:  key is the probe pattern, source the matched file.
    ``manifest_key``: key is the dependency name, value its version,
                      source the manifest it was read from.
    """

    model_config = ConfigDict(frozen=True)

    kind: SignalKind
    key: str
    value: str | None = None
    source: str | None = None

    @property
    def ref(self) -> str:
        """The rule reference this signal satisfies, e.g. ``dep:react``."""
        return f"{REF_PREFIXES[self.kind]}:{self.key}"

    @classmethod
    def file(cls, pattern: str, source: str | None = None) -> Signal:
        return cls(kind=SignalKind.FILE_EXISTS, key=pattern, source=source or pattern)

    @classmethod
    def dependency(cls, name: str, version: str = "", source: str | None = None) -> Signal:
        return cls(kind=SignalKind.MANIFEST_KEY, key=name, value=version, source=source)


class ScanError(BaseModel):
    """A manifest that could not be read or parsed.

    Recovered locally: the probe contributes no signals and the rest
    of the scan carries on.
    """

    source: str
    message: str


class ScanResult(BaseModel):
    """Everything one scan of a workspace observed."""

    root: str
    signals: list[Signal] = Field(default_factory=list)
    errors: list[ScanError] = Field(default_factory=list)

    @property
    def refs(self) -> set[str]:
        return {s.ref for s in self.signals}

    @property
    def file_signals(self) -> list[Signal]:
        return [s for s in self.signals if s.kind == SignalKind.FILE_EXISTS]

    @property
    def manifest_signals(self) -> list[Signal]:
        return [s for s in self.signals if s.kind == SignalKind.MANIFEST_KEY]

    def dependencies(self) -> dict[str, str]:
        """The live DependencySet: name → version.

        When several manifests declare the same name, the manifest
        probed first wins.
        """
        deps: dict[str, str] = {}
        for signal in self.manifest_signals:
            deps.setdefault(signal.key, signal.value or "")
        return deps

    def to_dict(self) -> dict:
        return {
            "root": self.root,
            "signals": [s.model_dump(mode="json") for s in self.signals],
            "errors": [e.model_dump(mode="json") for e in self.errors],
        }
