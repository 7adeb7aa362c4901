"""Resolve the Cargo manifest and ``cdylib`` target for a source directory."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from wasmbridge.errors import NoSuchTargetError, ToolchainInvocationError
from wasmbridge.toolchain.process import ProcessRunner, decode_json_object

logger = logging.getLogger(__name__)

CDYLIB = "cdylib"


@dataclass(frozen=True)
class ProjectDescriptor:
    """A buildable crate.

    Parameters
    ----------
    manifest_path:
        Absolute path to ``Cargo.toml``.
    crate_dir:
        Directory owning the manifest.
    target_name:
        Name of the ``cdylib`` target, used for the ``.wasm`` file name
        and the output subdirectory.
    """

    manifest_path: Path
    crate_dir: Path
    target_name: str


class ManifestResolver:
    """Runs ``cargo read-manifest`` and picks the ``cdylib`` target."""

    def __init__(self, runner: ProcessRunner, cargo: str = "cargo") -> None:
        self._runner = runner
        self._cargo = cargo

    async def resolve(self, source_dir: Path) -> ProjectDescriptor:
        command = [self._cargo, "read-manifest"]
        result = await self._runner.run(
            command, cwd=source_dir, label="cargo read-manifest"
        )
        manifest = decode_json_object(command, result.stdout, "cargo read-manifest")

        manifest_path = manifest.get("manifest_path")
        targets = manifest.get("targets")
        if not isinstance(manifest_path, str) or not isinstance(targets, list):
            raise ToolchainInvocationError(
                command,
                0,
                result.stderr,
                detail="output is missing 'manifest_path' or 'targets'",
                label="cargo read-manifest",
            )

        for target in targets:
            if not isinstance(target, dict):
                continue
            crate_types = target.get("crate_types")
            if not isinstance(crate_types, list):
                raise ToolchainInvocationError(
                    command,
                    0,
                    result.stderr,
                    detail="target 'crate_types' is not a list",
                    label="cargo read-manifest",
                )
            if CDYLIB not in crate_types:
                continue
            name = target.get("name")
            if not isinstance(name, str):
                raise ToolchainInvocationError(
                    command,
                    0,
                    result.stderr,
                    detail="target is missing 'name'",
                    label="cargo read-manifest",
                )
            path = Path(manifest_path)
            logger.debug("Found cdylib target %r in %s", name, path)
            return ProjectDescriptor(
                manifest_path=path,
                crate_dir=path.parent,
                target_name=name,
            )

        raise NoSuchTargetError(manifest_path, CDYLIB)
