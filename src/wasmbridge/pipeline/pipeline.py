"""Linear compile → optimize → bind pipeline."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from wasmbridge.pipeline.base import BuildStep, StepContext
from wasmbridge.pipeline.steps import BindStep, CompileStep, OptimizeStep

if TYPE_CHECKING:
    from wasmbridge.cache.result_cache import CacheEntry
    from wasmbridge.config import BuildOptions
    from wasmbridge.toolchain.manifest import ProjectDescriptor
    from wasmbridge.toolchain.process import ProcessRunner

logger = logging.getLogger(__name__)


class BuildPipeline:
    """Runs the build steps strictly in order, threading artifacts through.

    A failing step aborts the remaining ones; the exception propagates
    unchanged so nothing is promoted to the result cache.

    Parameters
    ----------
    options:
        Build options shared with the orchestrator.
    runner:
        Process runner used by every step.
    """

    def __init__(self, options: BuildOptions, runner: ProcessRunner) -> None:
        self._options = options
        self._runner = runner
        self._bind = BindStep()
        self._steps: tuple[BuildStep, ...] = (CompileStep(), OptimizeStep(), self._bind)

    @property
    def steps(self) -> tuple[BuildStep, ...]:
        return self._steps

    async def run(self, descriptor: ProjectDescriptor, target_dir: Path) -> CacheEntry:
        context = StepContext(
            descriptor=descriptor,
            target_dir=target_dir,
            options=self._options,
            runner=self._runner,
        )
        artifact: Path | None = None
        for step in self._steps:
            logger.debug("Step %s for %s", step.name, descriptor.target_name)
            artifact = await step.run(context, artifact)
        return self._bind.entry(context)
