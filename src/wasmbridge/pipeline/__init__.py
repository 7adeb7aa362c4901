"""Build pipeline — turns a Cargo crate into a loadable wasm-bindgen package.

Public API
----------
The stable surface is ``BuildPipeline`` plus the step classes, which
hosts may inspect (for example to show which step is running).

Example
-------
::

    from wasmbridge.config import BuildOptions
    from wasmbridge.pipeline import BuildPipeline
    from wasmbridge.toolchain import ProcessRunner

    pipeline = BuildPipeline(BuildOptions(), ProcessRunner())
    entry = await pipeline.run(descriptor, target_dir)
    print(entry.bridge_module)
"""
from __future__ import annotations

from wasmbridge.pipeline.base import BuildStep, StepContext
from wasmbridge.pipeline.pipeline import BuildPipeline
from wasmbridge.pipeline.steps import (
    OPTIMIZED_SUFFIX,
    OUT_NAME,
    WASM_TARGET,
    BindStep,
    CompileStep,
    OptimizeStep,
    profile_dir,
)

__all__ = [
    "BuildPipeline",
    "BuildStep",
    "StepContext",
    "CompileStep",
    "OptimizeStep",
    "BindStep",
    "profile_dir",
    "WASM_TARGET",
    "OUT_NAME",
    "OPTIMIZED_SUFFIX",
]
