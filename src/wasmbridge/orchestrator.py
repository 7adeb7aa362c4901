"""Incremental build orchestrator.

``BuildOrchestrator.resolve_and_build`` is the single entry point: given
the path of a crate's ``lib.rs`` it returns the generated bridge module,
reusing the previous build when nothing relevant changed and otherwise
running the compile → optimize → bind pipeline.

The orchestrator exclusively owns its result cache, target-directory
memo, completion barrier, and in-flight build map.  Nothing else
reaches into them except through the methods below.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Hashable
from dataclasses import dataclass, field
from pathlib import Path

from wasmbridge.barrier import CompletionBarrier, CycleOutcome
from wasmbridge.cache.dependencies import DependencyEnumerator
from wasmbridge.cache.result_cache import CacheEntry, ResultCache
from wasmbridge.config import BuildOptions
from wasmbridge.pipeline.pipeline import BuildPipeline
from wasmbridge.toolchain.manifest import ManifestResolver, ProjectDescriptor
from wasmbridge.toolchain.metadata import TargetDirResolver
from wasmbridge.toolchain.process import ProcessRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    """Outcome of one :meth:`BuildOrchestrator.resolve_and_build` call.

    Parameters
    ----------
    descriptor:
        The crate that was resolved.
    entry:
        The (cached or freshly built) artifacts.
    dependencies:
        Files the host should watch: the manifest first, then every
        source file.  Reported on cache hits as well as rebuilds.
    rebuilt:
        ``True`` when this call ran (or joined) a pipeline run.
    """

    descriptor: ProjectDescriptor
    entry: CacheEntry
    dependencies: list[Path] = field(default_factory=list)
    rebuilt: bool = False

    @property
    def bridge_module(self) -> Path:
        return self.entry.bridge_module


class BuildOrchestrator:
    """Decides between the cached result and a rebuild for each request.

    Parameters
    ----------
    options:
        Build options.  Defaults to :class:`~wasmbridge.config.BuildOptions`.
    runner:
        Process runner for every external command.  Defaults to
        :class:`~wasmbridge.toolchain.process.ProcessRunner`.
    """

    def __init__(
        self,
        options: BuildOptions | None = None,
        runner: ProcessRunner | None = None,
    ) -> None:
        self._options = options if options is not None else BuildOptions()
        self._runner = runner if runner is not None else ProcessRunner()
        cargo = self._options.toolchain.cargo
        self._manifests = ManifestResolver(self._runner, cargo)
        self._target_dirs = TargetDirResolver(self._runner, cargo)
        self._dependencies = DependencyEnumerator()
        self._pipeline = BuildPipeline(self._options, self._runner)
        self._cache = ResultCache()
        self._barrier = CompletionBarrier()
        self._in_flight: dict[Path, asyncio.Task[CacheEntry]] = {}

    @property
    def options(self) -> BuildOptions:
        return self._options

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def resolve_and_build(
        self,
        source: Path | str,
        *,
        cycle_key: Hashable | None = None,
    ) -> BuildResult:
        """Return up-to-date wasm-bindgen output for the crate owning ``source``.

        Parameters
        ----------
        source:
            Path of a Rust source file, normally the crate's ``lib.rs``.
        cycle_key:
            Build cycle this request belongs to.  Joins the pending cycle
            with that key, or starts (and releases) a new one.  ``None``
            uses a fresh anonymous cycle.

        Raises
        ------
        NoSuchTargetError
            The crate has no ``cdylib`` target.
        ToolchainInvocationError
            ``cargo read-manifest`` or ``cargo metadata`` failed.
        ToolchainSpawnError
            A toolchain executable could not be started.
        StepFailedError
            A pipeline step exited non-zero.
        """
        key = cycle_key if cycle_key is not None else self._barrier.anonymous_key()
        async with self._barrier.participate(key):
            descriptor = await self.resolve_project(source)
            dependencies = self._dependencies.watch_files(descriptor.manifest_path)

            cached = self._cached_entry(descriptor)
            if cached is not None:
                logger.debug("Using cached build for %s", descriptor.crate_dir)
                return BuildResult(descriptor, cached, dependencies, rebuilt=False)

            task = self._in_flight.get(descriptor.manifest_path)
            if task is None or task.done():
                task = asyncio.ensure_future(self._build(descriptor))
                self._in_flight[descriptor.manifest_path] = task
                task.add_done_callback(self._forget_build)
            else:
                logger.debug("Joining in-flight build for %s", descriptor.crate_dir)
            # Shared with joined requests; cancelling one caller leaves the build running.
            entry = await asyncio.shield(task)
            return BuildResult(descriptor, entry, dependencies, rebuilt=True)

    async def resolve_project(self, source: Path | str) -> ProjectDescriptor:
        """Resolve the crate owning ``source`` via ``cargo read-manifest``."""
        return await self._manifests.resolve(Path(source).resolve().parent)

    async def _build(self, descriptor: ProjectDescriptor) -> CacheEntry:
        try:
            logger.info("Compiling Rust crate: %s", descriptor.crate_dir)
            target_dir = await self._target_dirs.resolve(descriptor.crate_dir)
            entry = await self._pipeline.run(descriptor, target_dir)
        except Exception:
            logger.error("Failed to compile Rust crate at: %s", descriptor.crate_dir)
            raise
        self._cache.store(descriptor.manifest_path, entry)
        logger.info("Successfully compiled: %s", descriptor.target_name)
        return entry

    def _forget_build(self, task: asyncio.Task[CacheEntry]) -> None:
        for manifest_path, pending in list(self._in_flight.items()):
            if pending is task:
                del self._in_flight[manifest_path]

    def _cached_entry(self, descriptor: ProjectDescriptor) -> CacheEntry | None:
        entry = self._cache.lookup(descriptor.manifest_path)
        if entry is None:
            return None
        try:
            newest = self._dependencies.newest_mtime(descriptor.crate_dir)
        except OSError:
            return None
        if not self._cache.is_valid(entry, descriptor.manifest_path, newest):
            return None
        return entry

    # ------------------------------------------------------------------
    # Cache inspection
    # ------------------------------------------------------------------

    def cached_manifests(self) -> list[Path]:
        """Manifest paths with a stored result, in insertion order."""
        return list(self._cache.keys())

    def lookup(self, manifest_path: Path) -> CacheEntry | None:
        """Return the stored entry for ``manifest_path`` without validating it."""
        return self._cache.lookup(manifest_path)

    def is_fresh(self, descriptor: ProjectDescriptor) -> bool:
        """Return whether a cached, still-valid entry exists for ``descriptor``."""
        return self._cached_entry(descriptor) is not None

    def source_dir(self, manifest_path: Path) -> Path:
        return self._dependencies.source_dir(manifest_path.parent)

    def dependencies(self, manifest_path: Path) -> list[Path]:
        """Files to watch for ``manifest_path``: the manifest and its sources."""
        return self._dependencies.watch_files(manifest_path)

    # ------------------------------------------------------------------
    # Barrier
    # ------------------------------------------------------------------

    def begin_cycle(self, key: Hashable) -> None:
        """Open a build cycle that requests can join with ``cycle_key=key``."""
        self._barrier.start(key)

    def end_cycle(self, key: Hashable) -> CycleOutcome | None:
        """Release the cycle for ``key``; waiters resume with its outcome."""
        return self._barrier.release(key)

    async def wait_for_cycle(self, key: Hashable) -> CycleOutcome | None:
        """Block until the cycle for ``key`` is released.

        Returns ``None`` immediately if no such cycle is pending.
        """
        return await self._barrier.wait(key)
