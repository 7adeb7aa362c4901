"""Concrete pipeline steps: ``cargo build``, ``wasm-opt`` and ``wasm-bindgen``."""
from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path

from wasmbridge.cache.result_cache import CacheEntry
from wasmbridge.pipeline.base import BuildStep, StepContext

logger = logging.getLogger(__name__)

WASM_TARGET = "wasm32-unknown-unknown"
OUT_NAME = "index"
OPTIMIZED_SUFFIX = ".opt.wasm"


def profile_dir(cargo_args: Sequence[str]) -> str:
    """Return the target subdirectory cargo writes to for ``cargo_args``.

    ``--release`` selects ``release``; ``--profile NAME`` selects ``NAME``
    except that the ``dev`` profile lives in ``debug``.  Without either,
    cargo builds the ``dev`` profile.
    """
    profile = "debug"
    args = list(cargo_args)
    for index, arg in enumerate(args):
        if arg in ("--release", "-r"):
            profile = "release"
        elif arg == "--profile" and index + 1 < len(args):
            profile = args[index + 1]
        elif arg.startswith("--profile="):
            profile = arg.split("=", 1)[1]
    return "debug" if profile == "dev" else profile


class CompileStep(BuildStep):
    """Compile the crate to ``wasm32-unknown-unknown``."""

    @property
    def name(self) -> str:
        return "compile"

    def output_path(self, context: StepContext) -> Path:
        file_name = context.descriptor.target_name.replace("-", "_") + ".wasm"
        return (
            context.target_dir
            / WASM_TARGET
            / profile_dir(context.options.cargo_args)
            / file_name
        )

    async def run(self, context: StepContext, artifact: Path | None) -> Path:
        command = [
            context.options.toolchain.cargo,
            "build",
            "--target",
            WASM_TARGET,
            "--target-dir",
            str(context.target_dir),
            *context.options.cargo_args,
        ]
        await self._invoke(context, command, cwd=context.descriptor.crate_dir)
        return self.output_path(context)


class OptimizeStep(BuildStep):
    """Run ``wasm-opt -O`` when optimization is enabled, else pass through."""

    @property
    def name(self) -> str:
        return "optimize"

    @staticmethod
    def output_path(wasm_file: Path) -> Path:
        return wasm_file.with_suffix(OPTIMIZED_SUFFIX)

    async def run(self, context: StepContext, artifact: Path | None) -> Path:
        assert artifact is not None
        if not context.options.optimize_webassembly:
            return artifact

        optimized = self.output_path(artifact)
        logger.info("Running wasm-opt on: %s", artifact)
        command = [
            context.options.toolchain.wasm_opt,
            str(artifact),
            "-o",
            str(optimized),
            "-O",
        ]
        await self._invoke(context, command)
        return optimized


class BindStep(BuildStep):
    """Generate JavaScript bindings and a ``package.json`` for the crate."""

    @property
    def name(self) -> str:
        return "bind"

    @staticmethod
    def output_dir(context: StepContext) -> Path:
        return context.options.cache_dir / context.descriptor.target_name

    @staticmethod
    def emits_declarations(context: StepContext) -> bool:
        return "--no-typescript" not in context.options.wasm_bindgen_args

    def entry(self, context: StepContext) -> CacheEntry:
        """Return the cache entry describing this step's output files."""
        out_dir = self.output_dir(context)
        declarations = (
            out_dir / f"{OUT_NAME}.d.ts" if self.emits_declarations(context) else None
        )
        return CacheEntry(
            bridge_module=out_dir / f"{OUT_NAME}.js",
            binary=out_dir / f"{OUT_NAME}_bg.wasm",
            type_declarations=declarations,
        )

    async def run(self, context: StepContext, artifact: Path | None) -> Path:
        assert artifact is not None
        out_dir = self.output_dir(context)
        out_dir.mkdir(parents=True, exist_ok=True)

        command = [
            context.options.toolchain.wasm_bindgen,
            str(artifact),
            "--out-dir",
            str(out_dir),
            "--out-name",
            OUT_NAME,
        ]
        if self.emits_declarations(context):
            command.append("--typescript")
        command.extend(context.options.wasm_bindgen_args)
        await self._invoke(context, command)
        self._write_package_json(context, out_dir)
        return self.entry(context).bridge_module

    def _write_package_json(self, context: StepContext, out_dir: Path) -> None:
        package: dict[str, object] = {
            "name": context.descriptor.target_name,
            "version": "0.0.0",
            "main": f"{OUT_NAME}.js",
        }
        if self.emits_declarations(context):
            package["types"] = f"{OUT_NAME}.d.ts"
        package["sideEffects"] = True
        package["private"] = True
        (out_dir / "package.json").write_text(
            json.dumps(package, indent=2) + "\n", encoding="utf-8"
        )
