"""Result cache and staleness inputs for the build orchestrator."""
from __future__ import annotations

from wasmbridge.cache.dependencies import DependencyEnumerator
from wasmbridge.cache.result_cache import CacheEntry, ResultCache

__all__ = ["CacheEntry", "DependencyEnumerator", "ResultCache"]
