"""Test helpers: fixed timestamps and a scripted toolchain.

``FakeRunner`` stands in for cargo, wasm-opt and wasm-bindgen: it records
every command, fakes the JSON output of cargo, and writes the files
wasm-bindgen would produce.
"""
from __future__ import annotations

import asyncio
import json
import os
from collections.abc import Sequence
from pathlib import Path

from wasmbridge.errors import ToolchainInvocationError, ToolchainSpawnError
from wasmbridge.toolchain.process import ProcessResult, ProcessRunner

# Fixed timestamps keep mtime comparisons deterministic.
T0 = 1_600_000_000.0
T1 = T0 + 100


def touch(path: Path, when: float) -> None:
    """Set both atime and mtime of ``path`` to ``when``."""
    os.utime(path, (when, when))


class FakeRunner(ProcessRunner):
    """Scripted toolchain.

    Attributes
    ----------
    calls:
        Every argv received, in order.
    failures:
        ``label -> (exit_code, stderr)``; matching commands exit non-zero.
    missing:
        Executable names that fail to spawn.
    gates:
        ``label -> asyncio.Event``; matching commands wait for the event.
    targets:
        ``crate_dir -> targets`` list returned by ``cargo read-manifest``.
    clock:
        When set, files written by fake tools get this mtime.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.failures: dict[str, tuple[int, str]] = {}
        self.missing: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self.targets: dict[Path, list[dict[str, object]]] = {}
        self.stdout_overrides: dict[str, str] = {}
        self.clock: float | None = T1

    @staticmethod
    def label_for(argv: Sequence[str]) -> str:
        program = Path(argv[0]).name
        if program == "cargo" and len(argv) > 1:
            return f"cargo {argv[1]}"
        return program

    def count(self, label: str) -> int:
        return sum(1 for call in self.calls if self.label_for(call) == label)

    @property
    def build_calls(self) -> list[tuple[str, ...]]:
        """Every call except ``cargo read-manifest``."""
        return [c for c in self.calls if self.label_for(c) != "cargo read-manifest"]

    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | str | None = None,
        label: str | None = None,
    ) -> ProcessResult:
        argv = tuple(str(part) for part in command)
        self.calls.append(argv)
        key = self.label_for(argv)

        if key in self.gates:
            await self.gates[key].wait()
        if Path(argv[0]).name in self.missing:
            raise ToolchainSpawnError(argv, "No such file or directory")
        if key in self.failures:
            code, stderr = self.failures[key]
            raise ToolchainInvocationError(argv, code, stderr, label=label)
        if key in self.stdout_overrides:
            return ProcessResult(self.stdout_overrides[key], "")

        stdout = ""
        if key == "cargo read-manifest":
            stdout = self._read_manifest(argv, Path(cwd or "."))
        elif key == "cargo metadata":
            stdout = json.dumps({"target_directory": str(Path(cwd or ".") / "target")})
        elif key == "wasm-opt":
            self._write(Path(argv[argv.index("-o") + 1]), b"\0asm-opt")
        elif key == "wasm-bindgen":
            out_dir = Path(argv[argv.index("--out-dir") + 1])
            name = argv[argv.index("--out-name") + 1]
            self._write(out_dir / f"{name}.js", b"export {};\n")
            self._write(out_dir / f"{name}_bg.wasm", b"\0asm")
            if "--typescript" in argv:
                self._write(out_dir / f"{name}.d.ts", b"export {};\n")
        return ProcessResult(stdout, "")

    def _write(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        if self.clock is not None:
            touch(path, self.clock)

    def _read_manifest(self, argv: tuple[str, ...], cwd: Path) -> str:
        for directory in (cwd, *cwd.parents):
            manifest = directory / "Cargo.toml"
            if manifest.is_file():
                break
        else:
            raise ToolchainInvocationError(
                argv, 101, "error: could not find `Cargo.toml`", label="cargo read-manifest"
            )
        targets = self.targets.get(
            directory,
            [
                {
                    "name": directory.name.replace("-", "_"),
                    "kind": ["cdylib", "rlib"],
                    "crate_types": ["cdylib", "rlib"],
                }
            ],
        )
        return json.dumps(
            {"name": directory.name, "manifest_path": str(manifest), "targets": targets}
        )

