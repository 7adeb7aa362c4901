"""Enumerate the Rust sources a crate's build depends on.

The walk is iterative (explicit stack) so deeply nested source trees do
not hit the recursion limit.  A directory that cannot be read contributes
no entries; it never aborts the walk.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

RUST_SUFFIX = ".rs"
SOURCE_DIR_NAME = "src"


class DependencyEnumerator:
    """Lists ``*.rs`` files under ``<crate>/src``.

    Parameters
    ----------
    suffix:
        File-name suffix identifying source files.
    source_dir_name:
        Name of the source directory relative to the crate root.
    """

    def __init__(
        self,
        suffix: str = RUST_SUFFIX,
        source_dir_name: str = SOURCE_DIR_NAME,
    ) -> None:
        self._suffix = suffix
        self._source_dir_name = source_dir_name

    def source_dir(self, crate_dir: Path) -> Path:
        return crate_dir / self._source_dir_name

    def sources(self, crate_dir: Path) -> list[Path]:
        """Return every source file under the crate's source directory."""
        found: list[Path] = []
        stack: list[str] = [str(self.source_dir(crate_dir))]
        while stack:
            current = stack.pop()
            try:
                with os.scandir(current) as entries:
                    children = list(entries)
            except OSError as exc:
                logger.debug("Skipping unreadable directory %s: %s", current, exc)
                continue
            for entry in children:
                try:
                    is_dir = entry.is_dir()
                except OSError:
                    is_dir = False
                if is_dir:
                    stack.append(entry.path)
                elif entry.name.endswith(self._suffix):
                    found.append(Path(entry.path))
        found.sort()
        return found

    def newest_mtime(self, crate_dir: Path) -> float | None:
        """Return the newest modification time among the crate's sources.

        Returns ``None`` when the crate has no source files.

        Raises
        ------
        OSError
            If a listed source file vanished before it could be stat'ed.
        """
        newest: float | None = None
        for path in self.sources(crate_dir):
            mtime = path.stat().st_mtime
            if newest is None or mtime > newest:
                newest = mtime
        return newest

    def watch_files(self, manifest_path: Path) -> list[Path]:
        """Return the manifest followed by every source file of its crate."""
        return [manifest_path, *self.sources(manifest_path.parent)]
