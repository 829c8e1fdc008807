"""
Signal scanner — read-only inspection of a workspace.

Runs a fixed list of file-existence probes and a fixed list of
manifest probes against the workspace root and returns the signals
they produce. Each probe costs at most one directory listing or one
file read; nothing recurses.

A malformed manifest degrades to "no signals from that manifest" plus
a ScanError on the result. It never aborts the scan.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable

from skillrouter.core.models.signal import ScanError, ScanResult, Signal
from skillrouter.core.services.manifests import (
    MANIFEST_PARSERS,
    Dependency,
    ManifestParseError,
)

logger = logging.getLogger(__name__)


# Marker files probed by presence. Globs match in the root only.
FILE_PROBES: tuple[str, ...] = (
    "package.json",
    "pyproject.toml",
    "requirements.txt",
    "Cargo.toml",
    "go.mod",
    "vite.config.*",
    "next.config.*",
    "svelte.config.*",
    "nuxt.config.*",
    "angular.json",
    "tsconfig.json",
    "manage.py",
    "Dockerfile",
)


def _probe_file(root: Path, pattern: str) -> Signal | None:
    """Check one file probe; return a signal naming the first match."""
    if any(ch in pattern for ch in "*?["):
        matches = sorted(p for p in root.glob(pattern) if p.is_file())
        if matches:
            return Signal.file(pattern, source=matches[0].name)
        return None
    if (root / pattern).is_file():
        return Signal.file(pattern)
    return None


def _probe_manifest(
    root: Path,
    filename: str,
    parser: Callable[[Path], list[Dependency]],
) -> tuple[list[Signal], ScanError | None]:
    """Parse one manifest. Missing → no signals, malformed → ScanError."""
    path = root / filename
    if not path.is_file():
        return [], None

    try:
        deps = parser(path)
    except (ManifestParseError, OSError) as e:
        logger.warning("Skipping manifest %s: %s", path, e)
        return [], ScanError(source=filename, message=str(e))

    signals = [Signal.dependency(name, version, source=filename) for name, version in deps]
    logger.debug("Manifest %s: %d dependencies", filename, len(signals))
    return signals, None


def scan_workspace(
    root: Path,
    probes: Iterable[str] = FILE_PROBES,
    manifests: dict[str, Callable[[Path], list[Dependency]]] | None = None,
) -> ScanResult:
    """Scan a workspace and collect its signals.

    Args:
        root: Workspace root directory.
        probes: File patterns to probe for presence.
        manifests: Manifest filename → parser. Defaults to MANIFEST_PARSERS.

    Returns:
        ScanResult with file signals first (probe order), then manifest
        signals (manifest order), plus any recovered ScanErrors.
    """
    if manifests is None:
        manifests = MANIFEST_PARSERS

    result = ScanResult(root=str(root))

    if not root.is_dir():
        logger.warning("Workspace root %s is not a directory", root)
        result.errors.append(ScanError(source=str(root), message="Workspace root not found"))
        return result

    for pattern in probes:
        try:
            signal = _probe_file(root, pattern)
        except OSError as e:
            logger.warning("File probe %s failed: %s", pattern, e)
            result.errors.append(ScanError(source=pattern, message=str(e)))
            continue
        if signal is not None:
            result.signals.append(signal)

    seen: set[Signal] = set()
    for filename, parser in manifests.items():
        signals, error = _probe_manifest(root, filename, parser)
        if error is not None:
            result.errors.append(error)
        for signal in signals:
            if signal not in seen:
                seen.add(signal)
                result.signals.append(signal)

    logger.info(
        "Scanned %s: %d signals, %d errors",
        root, len(result.signals), len(result.errors),
    )
    return result
