"""Asynchronous execution of external toolchain commands.

``ProcessRunner`` is the only place that spawns processes.  Everything
above it (manifest resolution, metadata queries, pipeline steps) talks to
a runner instance, which keeps the orchestration logic testable with a
scripted fake runner.
"""
from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from wasmbridge.errors import ToolchainInvocationError, ToolchainSpawnError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Captured output of a successful process run."""

    stdout: str
    stderr: str


class ProcessRunner:
    """Spawns commands and waits for them without blocking the event loop.

    Standard input is inherited from the current process; standard output
    and standard error are captured.  There is no timeout: the caller
    awaits the natural termination of the process.
    """

    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | str | None = None,
        label: str | None = None,
    ) -> ProcessResult:
        """Run ``command`` and return its captured output.

        ``label`` names the command in error messages, e.g. ``"cargo build"``.

        Raises
        ------
        ToolchainSpawnError
            If the executable cannot be started.
        ToolchainInvocationError
            If the process exits with a non-zero status.
        """
        argv = [str(part) for part in command]
        logger.debug("Running %s (cwd=%s)", " ".join(argv), cwd)
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                cwd=None if cwd is None else str(cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ToolchainSpawnError(argv, exc.strerror or str(exc)) from exc

        out, err = await proc.communicate()
        stdout = out.decode("utf-8", errors="replace")
        stderr = err.decode("utf-8", errors="replace")

        if proc.returncode != 0:
            raise ToolchainInvocationError(
                argv, proc.returncode, stderr, label=label
            )
        return ProcessResult(stdout=stdout, stderr=stderr)


def decode_json_object(command: Sequence[str], stdout: str, label: str) -> dict:
    """Parse ``stdout`` as a JSON object or raise ``ToolchainInvocationError``."""
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as exc:
        raise ToolchainInvocationError(
            command, 0, stdout, detail=f"could not parse output as JSON: {exc}", label=label
        ) from exc
    if not isinstance(data, dict):
        raise ToolchainInvocationError(
            command, 0, stdout, detail="expected a JSON object", label=label
        )
    return data
