"""Discover and memoize Cargo's target directory per crate."""
from __future__ import annotations

import logging
from pathlib import Path

from wasmbridge.errors import ToolchainInvocationError
from wasmbridge.toolchain.process import ProcessRunner, decode_json_object

logger = logging.getLogger(__name__)


class TargetDirResolver:
    """Runs ``cargo metadata`` once per crate root and remembers the answer.

    The memo is never invalidated: the target directory is assumed to stay
    put for the lifetime of the resolver.  Failed lookups are not
    memoized, so the next call retries.
    """

    def __init__(self, runner: ProcessRunner, cargo: str = "cargo") -> None:
        self._runner = runner
        self._cargo = cargo
        self._target_dirs: dict[Path, Path] = {}

    def cached(self, crate_dir: Path) -> Path | None:
        """Return the memoized target directory for ``crate_dir``, if any."""
        return self._target_dirs.get(crate_dir)

    async def resolve(self, crate_dir: Path) -> Path:
        if crate_dir in self._target_dirs:
            return self._target_dirs[crate_dir]

        command = [self._cargo, "metadata", "--format-version", "1"]
        result = await self._runner.run(command, cwd=crate_dir, label="cargo metadata")
        metadata = decode_json_object(command, result.stdout, "cargo metadata")

        target_directory = metadata.get("target_directory")
        if not isinstance(target_directory, str):
            raise ToolchainInvocationError(
                command,
                0,
                result.stderr,
                detail="output is missing 'target_directory'",
                label="cargo metadata",
            )

        target_dir = Path(target_directory)
        self._target_dirs[crate_dir] = target_dir
        logger.debug("Cargo target directory: %s", target_dir)
        return target_dir
