"""In-memory cache of wasm-bindgen outputs keyed by manifest path."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """Artifacts produced by one successful pipeline run.

    Parameters
    ----------
    bridge_module:
        The generated JavaScript module (``index.js``).  This is the
        primary artifact whose mtime staleness is measured against.
    binary:
        The bound WebAssembly binary (``index_bg.wasm``).
    type_declarations:
        The generated TypeScript declarations (``index.d.ts``), or
        ``None`` when declaration output was disabled.
    """

    bridge_module: Path
    binary: Path
    type_declarations: Path | None = None

    @property
    def primary(self) -> Path:
        return self.bridge_module

    @property
    def artifacts(self) -> tuple[Path, ...]:
        """Every file this entry references."""
        paths = [self.bridge_module, self.binary]
        if self.type_declarations is not None:
            paths.append(self.type_declarations)
        return tuple(paths)


class ResultCache:
    """Maps a manifest path to the last successful :class:`CacheEntry`."""

    def __init__(self) -> None:
        self._entries: dict[Path, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, manifest_path: object) -> bool:
        return manifest_path in self._entries

    def keys(self) -> Iterator[Path]:
        return iter(list(self._entries))

    def lookup(self, manifest_path: Path) -> CacheEntry | None:
        return self._entries.get(manifest_path)

    def store(self, manifest_path: Path, entry: CacheEntry) -> None:
        """Record ``entry`` for ``manifest_path``, replacing any prior entry."""
        self._entries[manifest_path] = entry
        logger.debug("Cached %s for %s", entry.bridge_module, manifest_path)

    def invalidate(self, manifest_path: Path) -> bool:
        """Forget the entry for ``manifest_path``.  Returns whether one existed."""
        return self._entries.pop(manifest_path, None) is not None

    @staticmethod
    def is_valid(
        entry: CacheEntry,
        manifest_path: Path,
        newest_source_mtime: float | None,
    ) -> bool:
        """Decide whether ``entry`` can be reused.

        The entry is valid when every artifact exists, and neither the
        manifest nor the newest source file is more recent than the
        primary artifact.  Any failure to stat a file makes the entry
        invalid.
        """
        try:
            if not all(path.exists() for path in entry.artifacts):
                return False
            artifact_mtime = entry.primary.stat().st_mtime
            if manifest_path.stat().st_mtime > artifact_mtime:
                return False
        except OSError:
            return False
        if newest_source_mtime is not None and newest_source_mtime > artifact_mtime:
            return False
        return True
