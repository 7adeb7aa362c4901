"""Exception types raised by wasm-bindgen-bridge.

Every error the orchestrator can surface derives from
``WasmBridgeError`` so that host integrations can catch a single base
class and report the failure of one import without affecting others.
The toolchain errors carry the command line and captured output so the
user can see exactly what cargo or wasm-bindgen complained about.
"""
from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class WasmBridgeError(Exception):
    """Base class for all wasm-bindgen-bridge errors."""


class ToolchainError(WasmBridgeError):
    """Base class for failures of an external toolchain process."""


class ToolchainInvocationError(ToolchainError):
    """Raised when a toolchain command ran but did not succeed.

    Parameters
    ----------
    command:
        The full argument vector that was executed.
    exit_code:
        The process exit status.  ``0`` when the process succeeded but
        its output could not be interpreted.
    stderr:
        Captured standard error text.
    detail:
        Optional explanation used instead of the default message body,
        e.g. for malformed JSON output.
    label:
        Short name for the command in the message, e.g. ``"cargo build"``.
        Defaults to the executable name.
    """

    def __init__(
        self,
        command: Sequence[str],
        exit_code: int,
        stderr: str = "",
        detail: str | None = None,
        label: str | None = None,
    ) -> None:
        self.command = tuple(command)
        self.exit_code = exit_code
        self.stderr = stderr
        if label is None:
            label = Path(self.command[0]).name if self.command else "<empty>"
        if detail is not None:
            message = f"{label}: {detail}"
        else:
            message = f"{label} failed with exit code {exit_code}:\n{stderr}"
        super().__init__(message)


class ToolchainSpawnError(ToolchainError):
    """Raised when a toolchain command could not be started at all.

    This is distinct from :class:`ToolchainInvocationError` so callers
    can tell "tool missing" apart from "tool rejected its input".
    """

    def __init__(self, command: Sequence[str], reason: str) -> None:
        self.command = tuple(command)
        self.reason = reason
        super().__init__(
            f"Failed to spawn {self.command[0] if self.command else '<empty>'}: {reason}"
        )


class NoSuchTargetError(WasmBridgeError):
    """Raised when a crate declares no ``cdylib`` target."""

    def __init__(self, manifest_path: str, crate_type: str = "cdylib") -> None:
        self.manifest_path = manifest_path
        self.crate_type = crate_type
        super().__init__(
            f"No {crate_type} target found in {manifest_path}. "
            f'Make sure your Cargo.toml includes [lib] with crate-type = ["{crate_type}"]'
        )


class StepFailedError(WasmBridgeError):
    """Raised when one step of the build pipeline exits non-zero.

    Parameters
    ----------
    step:
        Name of the failing step: ``"compile"``, ``"optimize"`` or ``"bind"``.
    exit_code:
        Exit status of the step's process.
    stderr:
        Captured standard error of the step's process.
    """

    def __init__(self, step: str, exit_code: int, stderr: str) -> None:
        self.step = step
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(
            f"Build step {step!r} failed with exit code {exit_code}:\n{stderr}"
        )


class SourceNotFoundError(WasmBridgeError):
    """Raised when an intercepted ``lib.rs`` import does not exist on disk."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"lib.rs not found at {path}")


class CycleInFlightError(WasmBridgeError):
    """Raised when starting a build cycle whose key is still pending."""

    def __init__(self, key: object) -> None:
        self.key = key
        super().__init__(
            f"Build cycle {key!r} is already in flight. "
            "Release it before starting a new cycle with the same key."
        )


class ConfigError(WasmBridgeError):
    """Raised when build options cannot be loaded or contain unknown keys."""


__all__ = [
    "WasmBridgeError",
    "ToolchainError",
    "ToolchainInvocationError",
    "ToolchainSpawnError",
    "NoSuchTargetError",
    "StepFailedError",
    "SourceNotFoundError",
    "CycleInFlightError",
    "ConfigError",
]
