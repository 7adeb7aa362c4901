"""Shared test fixtures for wasm-bindgen-bridge.

Fixtures defined here are available to all tests in the suite without
needing an explicit import. Add project-wide fixtures here; keep
domain-specific fixtures close to the tests that use them.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from helpers import T0, FakeRunner, touch
from wasmbridge.config import BuildOptions


@pytest.fixture()
def runner() -> FakeRunner:
    """Return a fresh scripted toolchain."""
    return FakeRunner()


@pytest.fixture()
def crate(tmp_path: Path) -> Path:
    """Create a ``rust-lib`` crate with nested sources, all stamped at ``T0``.

    Layout::

        rust-lib/
          Cargo.toml
          README.md
          examples/demo.rs
          src/lib.rs
          src/util/mod.rs
          src/util/deep/leaf.rs
    """
    root = tmp_path / "rust-lib"
    files = {
        "Cargo.toml": '[package]\nname = "rust-lib"\n\n[lib]\ncrate-type = ["cdylib"]\n',
        "README.md": "# rust-lib\n",
        "examples/demo.rs": "fn main() {}\n",
        "src/lib.rs": "mod util;\n",
        "src/util/mod.rs": "mod deep;\n",
        "src/util/deep/leaf.rs": "pub fn leaf() {}\n",
    }
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        touch(path, T0)
    return root.resolve()


@pytest.fixture()
def options(tmp_path: Path) -> BuildOptions:
    """Return build options writing into a temporary cache directory."""
    return BuildOptions(cache_dir=tmp_path / "cache")
