"""Build options for the orchestrator.

Options can be constructed directly, from a plain mapping, or from a
YAML file::

    # wasmbridge.yaml
    cache_dir: .cache/wasm
    cargo_args: ["--release"]
    wasm_bindgen_args: ["--target", "bundler"]
    optimize_webassembly: true
    toolchain:
      wasm_opt: /opt/binaryen/bin/wasm-opt

Relative ``cache_dir`` values are resolved against the current working
directory at construction time.
"""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from wasmbridge.errors import ConfigError

DEFAULT_CACHE_DIR = Path(".cache") / "wasm"


@dataclass(frozen=True)
class Toolchain:
    """Executable names (or paths) of the external build tools."""

    cargo: str = "cargo"
    wasm_opt: str = "wasm-opt"
    wasm_bindgen: str = "wasm-bindgen"


def _default_cache_dir() -> Path:
    return Path.cwd() / DEFAULT_CACHE_DIR


def _default_cargo_args() -> list[str]:
    return ["--release"]


@dataclass
class BuildOptions:
    """Configuration consumed by :class:`~wasmbridge.orchestrator.BuildOrchestrator`.

    Parameters
    ----------
    cache_dir:
        Directory where ``wasm-bindgen`` output is written, one
        subdirectory per crate.
    cargo_args:
        Extra flags appended verbatim to ``cargo build`` after the
        mandatory ``--target`` and ``--target-dir`` flags.
    wasm_bindgen_args:
        Extra flags appended verbatim to ``wasm-bindgen``.
    optimize_webassembly:
        Run ``wasm-opt`` on the compiled module before binding.
    toolchain:
        Names of the external executables.
    """

    cache_dir: Path = field(default_factory=_default_cache_dir)
    cargo_args: list[str] = field(default_factory=_default_cargo_args)
    wasm_bindgen_args: list[str] = field(default_factory=list)
    optimize_webassembly: bool = False
    toolchain: Toolchain = field(default_factory=Toolchain)

    def __post_init__(self) -> None:
        self.cache_dir = Path(self.cache_dir).resolve()
        self.cargo_args = list(self.cargo_args)
        self.wasm_bindgen_args = list(self.wasm_bindgen_args)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> BuildOptions:
        """Build options from a plain mapping, rejecting unknown keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(
                f"Unknown option(s): {', '.join(unknown)}. "
                f"Valid options: {', '.join(sorted(known))}"
            )

        kwargs: dict[str, Any] = dict(data)
        if "cache_dir" in kwargs and not isinstance(kwargs["cache_dir"], (str, Path)):
            raise ConfigError("Option 'cache_dir' must be a path")
        for name in ("cargo_args", "wasm_bindgen_args"):
            if name in kwargs and not _is_string_list(kwargs[name]):
                raise ConfigError(f"Option {name!r} must be a list of strings")
        if "optimize_webassembly" in kwargs and not isinstance(
            kwargs["optimize_webassembly"], bool
        ):
            raise ConfigError("Option 'optimize_webassembly' must be true or false")
        if "toolchain" in kwargs:
            kwargs["toolchain"] = _toolchain_from_mapping(kwargs["toolchain"])
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Return a YAML/JSON-friendly representation of these options."""
        return {
            "cache_dir": str(self.cache_dir),
            "cargo_args": list(self.cargo_args),
            "wasm_bindgen_args": list(self.wasm_bindgen_args),
            "optimize_webassembly": self.optimize_webassembly,
            "toolchain": dataclasses.asdict(self.toolchain),
        }


def _is_string_list(value: object) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _toolchain_from_mapping(data: object) -> Toolchain:
    if isinstance(data, Toolchain):
        return data
    if not isinstance(data, Mapping):
        raise ConfigError("Option 'toolchain' must be a mapping")
    known = {f.name for f in dataclasses.fields(Toolchain)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown toolchain entry: {', '.join(unknown)}")
    return Toolchain(**{key: str(value) for key, value in data.items()})


def load_options(path: Path | str) -> BuildOptions:
    """Load :class:`BuildOptions` from a YAML file.

    An empty file yields the defaults.

    Raises
    ------
    ConfigError
        If the file cannot be read, is not valid YAML, does not contain
        a mapping, or names an unknown option.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping of options")
    return BuildOptions.from_mapping(data)


__all__ = ["BuildOptions", "Toolchain", "load_options", "DEFAULT_CACHE_DIR"]
