"""Abstract base class for build pipeline steps.

Each step (compile, optimize, bind) implements ``BuildStep``.  A step
receives the artifact produced by the previous step and returns the
artifact the next step should consume.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from wasmbridge.errors import StepFailedError, ToolchainInvocationError

if TYPE_CHECKING:
    from wasmbridge.config import BuildOptions
    from wasmbridge.toolchain.manifest import ProjectDescriptor
    from wasmbridge.toolchain.process import ProcessResult, ProcessRunner


@dataclass(frozen=True)
class StepContext:
    """Everything a step needs besides its input artifact.

    Parameters
    ----------
    descriptor:
        The crate being built.
    target_dir:
        Cargo's target directory for the crate.
    options:
        The orchestrator's build options.
    runner:
        Process runner used for every external invocation.
    """

    descriptor: ProjectDescriptor
    target_dir: Path
    options: BuildOptions
    runner: ProcessRunner


class BuildStep(ABC):
    """Abstract base class for one external invocation in the pipeline.

    Subclasses must implement :attr:`name` and :meth:`run`.

    The contract for :meth:`run` is:

    * **Blocking** from the pipeline's view: it returns only after its
      process has terminated.
    * **Attributed** failures: a non-zero exit surfaces as
      :class:`~wasmbridge.errors.StepFailedError` carrying :attr:`name`.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short step name, e.g. ``"compile"``."""

    @abstractmethod
    async def run(self, context: StepContext, artifact: Path | None) -> Path:
        """Execute the step.

        Parameters
        ----------
        context:
            Build context shared by every step.
        artifact:
            Output of the previous step, ``None`` for the first step.

        Returns
        -------
        Path
            The artifact produced by this step.
        """

    async def _invoke(
        self,
        context: StepContext,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
    ) -> ProcessResult:
        """Run ``command`` and attribute a non-zero exit to this step."""
        try:
            return await context.runner.run(command, cwd=cwd, label=Path(command[0]).name)
        except ToolchainInvocationError as exc:
            raise StepFailedError(self.name, exc.exit_code, exc.stderr) from exc
