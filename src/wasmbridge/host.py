"""Glue between a host build graph and the orchestrator.

A host (a bundler, a dev server, a task runner) drives ``BridgePlugin``
through a handful of hooks:

``prepare()``
    Before the first build: create the cache directory.
``build_started(build)`` / ``build_finished(build)``
    Bracket one host build.  ``build`` is any hashable identity.
``before_resolve(request, context, build=build)``
    For every import request.  Requests ending in ``lib.rs`` are built
    and replaced by the generated JavaScript module; anything else
    returns ``None`` and is left to the host.
``wait_for_build(build)``
    Used by a secondary consumer (e.g. a type checker) that must not
    start before the build's wasm output exists.
``watch_set()``
    Files and directories the host's watcher should track.
"""
from __future__ import annotations

import logging
from collections.abc import Hashable
from dataclasses import dataclass, field
from pathlib import Path

from wasmbridge.barrier import CycleOutcome
from wasmbridge.config import BuildOptions
from wasmbridge.errors import SourceNotFoundError
from wasmbridge.orchestrator import BuildOrchestrator
from wasmbridge.toolchain.process import ProcessRunner

logger = logging.getLogger(__name__)

ENTRY_SUFFIX = "lib.rs"


@dataclass(frozen=True)
class ResolvedImport:
    """Replacement for an intercepted import request.

    Parameters
    ----------
    request:
        Path of the generated bridge module to load instead.
    dependencies:
        Files the host should register as build dependencies.
    rebuilt:
        Whether the pipeline ran for this request.
    """

    request: Path
    dependencies: list[Path] = field(default_factory=list)
    rebuilt: bool = False


@dataclass(frozen=True)
class WatchSet:
    """Files and directories a host watcher should track."""

    files: list[Path] = field(default_factory=list)
    directories: list[Path] = field(default_factory=list)


class BridgePlugin:
    """Intercepts ``lib.rs`` imports and serves wasm-bindgen output instead.

    Parameters
    ----------
    options:
        Build options.  Defaults to :class:`~wasmbridge.config.BuildOptions`.
    runner:
        Process runner; mostly useful for tests.
    """

    def __init__(
        self,
        options: BuildOptions | None = None,
        runner: ProcessRunner | None = None,
    ) -> None:
        self._orchestrator = BuildOrchestrator(options, runner)

    @property
    def orchestrator(self) -> BuildOrchestrator:
        return self._orchestrator

    def prepare(self) -> None:
        self._orchestrator.options.cache_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def intercepts(request: str) -> bool:
        return request.endswith(ENTRY_SUFFIX)

    async def before_resolve(
        self,
        request: str,
        context: Path | str,
        *,
        build: Hashable | None = None,
    ) -> ResolvedImport | None:
        """Build the crate behind ``request`` if it is a ``lib.rs`` import.

        Parameters
        ----------
        request:
            The import string as written in the importing module.
        context:
            Directory of the importing module; relative requests are
            resolved against it.
        build:
            The host build this request belongs to, as passed to
            :meth:`build_started`.

        Raises
        ------
        SourceNotFoundError
            If the referenced ``lib.rs`` does not exist.
        """
        if not self.intercepts(request):
            return None

        lib_rs = (Path(context) / request).resolve()
        if not lib_rs.is_file():
            raise SourceNotFoundError(str(lib_rs))

        result = await self._orchestrator.resolve_and_build(lib_rs, cycle_key=build)
        return ResolvedImport(
            request=result.bridge_module,
            dependencies=result.dependencies,
            rebuilt=result.rebuilt,
        )

    def build_started(self, build: Hashable) -> None:
        self._orchestrator.begin_cycle(build)

    def build_finished(self, build: Hashable) -> CycleOutcome | None:
        return self._orchestrator.end_cycle(build)

    async def wait_for_build(self, build: Hashable) -> CycleOutcome | None:
        logger.debug("Waiting for build %r before type checking", build)
        outcome = await self._orchestrator.wait_for_cycle(build)
        logger.debug("Build %r done", build)
        return outcome

    def watch_set(self) -> WatchSet:
        """Return every known manifest and existing ``src`` directory."""
        files: list[Path] = []
        directories: list[Path] = []
        for manifest_path in self._orchestrator.cached_manifests():
            files.append(manifest_path)
            source_dir = self._orchestrator.source_dir(manifest_path)
            if source_dir.is_dir():
                directories.append(source_dir)
        return WatchSet(files=files, directories=directories)
