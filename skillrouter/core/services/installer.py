"""
Installer — copy the registry into a runtime location.

Materializes every module directory (and the trigger document, when
present) under the destination root. Returns a process exit code:
0 when everything was copied, 1 on any failure.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from skillrouter.core.persistence.registry import RECORD_FILE

logger = logging.getLogger(__name__)

TRIGGERS_DOC = "TRIGGERS.md"


def install(source: Path, destination: Path) -> int:
    """Copy module directories from ``source`` into ``destination``.

    Existing files at the destination are overwritten; unrelated files
    there are left alone.
    """
    if not source.is_dir():
        logger.error("Install source %s is not a directory", source)
        return 1

    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Cannot create install target %s: %s", destination, e)
        return 1

    failures = 0
    copied = 0
    for child in sorted(source.iterdir()):
        try:
            if child.is_dir() and (child / RECORD_FILE).is_file():
                shutil.copytree(child, destination / child.name, dirs_exist_ok=True)
                copied += 1
            elif child.is_file() and child.name == TRIGGERS_DOC:
                shutil.copy2(child, destination / child.name)
        except (OSError, shutil.Error) as e:
            failures += 1
            logger.error("Failed to copy %s: %s", child, e)

    if failures:
        logger.error("Install finished with %d failure(s)", failures)
        return 1

    logger.info("Installed %d module(s) from %s to %s", copied, source, destination)
    return 0
