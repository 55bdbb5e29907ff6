"""Copies documentation sources from a repository checkout into a staging area."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Iterator

from .logging import get_logger
from .models import StagedFileMap

SOURCE_SUFFIX = ".rst"

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    "__pycache__",
}


def _iter_sources(root: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
        current_dir = Path(dirpath)
        for filename in sorted(filenames):
            if filename.lower().endswith(SOURCE_SUFFIX):
                yield current_dir / filename


class SourceCollector:
    """Stages `*.rst` sources, preserving their layout relative to the sources root."""

    def __init__(self) -> None:
        self.logger = get_logger("collector")

    def collect(self, source_root: Path, staging_root: Path) -> StagedFileMap:
        """Copy matching sources and return the original -> staged path mapping.

        Any previous staging tree is removed first. When the sources root holds
        no documentation files the mapping is empty and no staging tree exists
        afterwards, so callers can skip compilation altogether.
        """
        if staging_root.exists():
            shutil.rmtree(staging_root)

        staged: StagedFileMap = {}
        if not source_root.is_dir():
            self.logger.debug("Sources directory %s does not exist", source_root)
            return staged

        for source_path in _iter_sources(source_root):
            destination = staging_root / source_path.relative_to(source_root)
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source_path, destination)
            staged[source_path] = destination

        self.logger.debug("Staged %d source files from %s", len(staged), source_root)
        return staged


__all__ = ["SOURCE_SUFFIX", "SourceCollector"]
