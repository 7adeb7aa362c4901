#!/usr/bin/env python3
"""Example: Host build cycle with a type-check consumer

Drives ``BridgePlugin`` the way a bundler would: open a build cycle,
resolve a ``lib.rs`` import inside it, and run a type-check task that
waits for the cycle to finish before it reads the generated ``.d.ts``.

Usage:
    python examples/02_host_build_cycle.py path/to/crate/src/lib.rs

Requirements:
    pip install wasm-bindgen-bridge
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import wasmbridge


async def typecheck(bridge, build: str) -> None:
    outcome = await bridge.wait_for_build(build)
    if outcome is not None and not outcome.succeeded:
        print("[typecheck] build failed, checking with stale declarations")
    else:
        print("[typecheck] wasm output ready, checking")


async def run(lib_rs: Path) -> None:
    bridge = wasmbridge.plugin()
    bridge.prepare()

    build = "build-1"
    bridge.build_started(build)
    checker = asyncio.create_task(typecheck(bridge, build))

    try:
        resolved = await bridge.before_resolve(lib_rs.name, lib_rs.parent, build=build)
        if resolved is not None:
            print(f"[bundler] import replaced by {resolved.request}")
    except wasmbridge.WasmBridgeError as exc:
        print(f"[bundler] import failed: {exc}")
    finally:
        bridge.build_finished(build)

    await checker

    watch = bridge.watch_set()
    print(f"Watching {len(watch.files)} manifest(s), {len(watch.directories)} directory(ies)")


def main() -> None:
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)
    asyncio.run(run(Path(sys.argv[1]).resolve()))


if __name__ == "__main__":
    main()
