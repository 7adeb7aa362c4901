"""wasm-bindgen-bridge — incremental Rust → WebAssembly builds for host build graphs.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import asyncio
    import wasmbridge

    options = wasmbridge.BuildOptions(optimize_webassembly=True)
    orchestrator = wasmbridge.BuildOrchestrator(options)

    result = asyncio.run(orchestrator.resolve_and_build("rust-lib/src/lib.rs"))
    print(result.bridge_module)       # .cache/wasm/rust_lib/index.js
    print(result.dependencies)        # Cargo.toml + every .rs file

    # One-shot convenience wrapper
    result = wasmbridge.build("rust-lib/src/lib.rs", options)

    wasmbridge.__version__
    '0.1.0'
"""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from wasmbridge.cache.result_cache import CacheEntry
from wasmbridge.config import BuildOptions, Toolchain, load_options
from wasmbridge.errors import (
    ConfigError,
    CycleInFlightError,
    NoSuchTargetError,
    SourceNotFoundError,
    StepFailedError,
    ToolchainError,
    ToolchainInvocationError,
    ToolchainSpawnError,
    WasmBridgeError,
)
from wasmbridge.orchestrator import BuildOrchestrator, BuildResult
from wasmbridge.toolchain.manifest import ProjectDescriptor

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from wasmbridge.host import BridgePlugin


def build(source: Path | str, options: BuildOptions | None = None) -> BuildResult:
    """Build the crate owning ``source`` once and return the result.

    Each call uses a fresh orchestrator, so nothing is cached between
    calls.  Long-running hosts should keep a :class:`BuildOrchestrator`
    (or :class:`~wasmbridge.host.BridgePlugin`) instead.

    Parameters
    ----------
    source:
        Path to the crate's ``lib.rs``.
    options:
        Build options; defaults apply when omitted.

    Returns
    -------
    BuildResult
        The generated artifacts and the crate's dependency files.
    """
    orchestrator = BuildOrchestrator(options)
    return asyncio.run(orchestrator.resolve_and_build(source))


def plugin(options: BuildOptions | None = None) -> "BridgePlugin":
    """Create a :class:`~wasmbridge.host.BridgePlugin` for a host build graph."""
    from wasmbridge.host import BridgePlugin

    return BridgePlugin(options)


__all__ = [
    "__version__",
    "build",
    "plugin",
    "BuildOptions",
    "Toolchain",
    "load_options",
    "BuildOrchestrator",
    "BuildResult",
    "CacheEntry",
    "ProjectDescriptor",
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
