"""Command-line interface for wasm-bindgen-bridge.

``main`` holds the Click group and the ``build``, ``deps``, ``config``
and ``version`` commands.  Commands import from the top-level
``wasmbridge`` package only.
"""
from __future__ import annotations
