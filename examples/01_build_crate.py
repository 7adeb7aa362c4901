#!/usr/bin/env python3
"""Example: Build a crate — wasm-bindgen-bridge

Build a Rust crate's ``lib.rs`` into a wasm-bindgen package, then ask
again to show that an unchanged crate is served from the cache.

Usage:
    python examples/01_build_crate.py path/to/crate/src/lib.rs

Requirements:
    pip install wasm-bindgen-bridge
    rustup target add wasm32-unknown-unknown
    cargo install wasm-bindgen-cli
"""
from __future__ import annotations

import asyncio
import sys

import wasmbridge


async def run(lib_rs: str) -> None:
    options = wasmbridge.BuildOptions(optimize_webassembly=False)
    orchestrator = wasmbridge.BuildOrchestrator(options)

    # Step 1: Cold build runs cargo build and wasm-bindgen
    result = await orchestrator.resolve_and_build(lib_rs)
    print(f"Built crate '{result.descriptor.target_name}'")
    print(f"  bridge module: {result.bridge_module}")
    print(f"  wasm binary:   {result.entry.binary}")

    # Step 2: Same request again is a cache hit
    again = await orchestrator.resolve_and_build(lib_rs)
    print(f"Second request rebuilt: {again.rebuilt}")

    # Step 3: Files a watcher should track
    print(f"Tracking {len(again.dependencies)} file(s):")
    for path in again.dependencies[:5]:
        print(f"  {path}")


def main() -> None:
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)
    print(f"wasm-bindgen-bridge version: {wasmbridge.__version__}")
    try:
        asyncio.run(run(sys.argv[1]))
    except wasmbridge.StepFailedError as exc:
        print(f"Step {exc.step!r} failed (exit code {exc.exit_code})")
        print(exc.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
