"""CLI entry point for wasm-bindgen-bridge.

Invoked as::

    wasmbridge [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m wasmbridge.cli.main

Commands
--------
build       Build a crate's lib.rs into a wasm-bindgen package
deps        List the files a crate's build depends on
config      Show the effective build options
version     Show version information
"""
from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from wasmbridge import BuildOptions

console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    """Route the package's log records through Rich."""
    handler = RichHandler(console=err_console, show_path=False, show_time=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger = logging.getLogger("wasmbridge")
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    package_logger.propagate = False


def _fail(message: str) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {escape(message)}")
    sys.exit(1)


def build_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options shared by every command that builds or resolves."""
    decorators = [
        click.option(
            "--config",
            "config_path",
            type=click.Path(exists=False, dir_okay=False),
            default=None,
            help="YAML file with build options",
        ),
        click.option("--cache-dir", default=None, help="Directory for wasm-bindgen output"),
        click.option(
            "--cargo-arg",
            "cargo_args",
            multiple=True,
            help="Extra cargo build flag (repeatable, replaces the default --release)",
        ),
        click.option(
            "--bindgen-arg",
            "bindgen_args",
            multiple=True,
            help="Extra wasm-bindgen flag (repeatable)",
        ),
        click.option(
            "--optimize/--no-optimize",
            default=None,
            help="Run wasm-opt before wasm-bindgen",
        ),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def _load_options(
    config_path: str | None,
    cache_dir: str | None,
    cargo_args: tuple[str, ...],
    bindgen_args: tuple[str, ...],
    optimize: bool | None,
) -> "BuildOptions":
    """Merge the config file (if any) with command-line overrides."""
    from wasmbridge import BuildOptions, ConfigError, load_options

    try:
        options = load_options(config_path) if config_path else BuildOptions()
    except ConfigError as exc:
        _fail(str(exc))

    if cache_dir is not None:
        options.cache_dir = Path(cache_dir).resolve()
    if cargo_args:
        options.cargo_args = list(cargo_args)
    if bindgen_args:
        options.wasm_bindgen_args = list(bindgen_args)
    if optimize is not None:
        options.optimize_webassembly = optimize
    return options


def _report_error(exc: Exception) -> NoReturn:
    """Print a build failure, including captured tool output when present."""
    from wasmbridge import StepFailedError, ToolchainInvocationError

    if isinstance(exc, StepFailedError):
        err_console.print(
            f"[red]Build failed[/red] at step [bold]{exc.step}[/bold] "
            f"(exit code {exc.exit_code})"
        )
        if exc.stderr.strip():
            err_console.print(
                Panel(Text(exc.stderr.rstrip()), title="stderr", border_style="red")
            )
    elif isinstance(exc, ToolchainInvocationError) and exc.stderr.strip():
        err_console.print(f"[red]Error:[/red] {escape(str(exc).splitlines()[0])}")
        err_console.print(
            Panel(Text(exc.stderr.rstrip()), title="output", border_style="red")
        )
    else:
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
    sys.exit(1)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="wasm-bindgen-bridge")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Show debug logging")
def cli(verbose: bool) -> None:
    """Incremental Rust to WebAssembly builds with cargo, wasm-opt and wasm-bindgen."""
    _configure_logging(verbose)


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from wasmbridge import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]wasm-bindgen-bridge[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# build command
# ---------------------------------------------------------------------------


@cli.command(name="build")
@click.argument("lib_rs", type=click.Path(exists=False))
@build_options
def build_command(
    lib_rs: str,
    config_path: str | None,
    cache_dir: str | None,
    cargo_args: tuple[str, ...],
    bindgen_args: tuple[str, ...],
    optimize: bool | None,
) -> None:
    """Build the crate owning LIB_RS into a wasm-bindgen package.

    LIB_RS is the path to the crate's src/lib.rs.
    """
    from wasmbridge import BuildOrchestrator, WasmBridgeError

    if not Path(lib_rs).is_file():
        _fail(f"lib.rs not found at {lib_rs}")

    options = _load_options(config_path, cache_dir, cargo_args, bindgen_args, optimize)
    orchestrator = BuildOrchestrator(options)
    try:
        result = asyncio.run(orchestrator.resolve_and_build(lib_rs))
    except WasmBridgeError as exc:
        _report_error(exc)

    table = Table(title=f"Built: {result.descriptor.target_name}", show_lines=False)
    table.add_column("Artifact", style="bold", min_width=12)
    table.add_column("Path")
    table.add_row("bridge", str(result.entry.bridge_module))
    table.add_row("wasm", str(result.entry.binary))
    if result.entry.type_declarations is not None:
        table.add_row("types", str(result.entry.type_declarations))
    console.print(table)
    console.print(
        f"\n[green]OK[/green] {len(result.dependencies)} dependency file(s) tracked"
    )


# ---------------------------------------------------------------------------
# deps command
# ---------------------------------------------------------------------------


@cli.command(name="deps")
@click.argument("lib_rs", type=click.Path(exists=False))
@build_options
def deps_command(
    lib_rs: str,
    config_path: str | None,
    cache_dir: str | None,
    cargo_args: tuple[str, ...],
    bindgen_args: tuple[str, ...],
    optimize: bool | None,
) -> None:
    """List the files a build of LIB_RS depends on.

    The manifest comes first, followed by every Rust source file.
    """
    from wasmbridge import BuildOrchestrator, WasmBridgeError

    if not Path(lib_rs).is_file():
        _fail(f"lib.rs not found at {lib_rs}")

    options = _load_options(config_path, cache_dir, cargo_args, bindgen_args, optimize)
    orchestrator = BuildOrchestrator(options)
    try:
        descriptor = asyncio.run(orchestrator.resolve_project(lib_rs))
    except WasmBridgeError as exc:
        _report_error(exc)

    for path in orchestrator.dependencies(descriptor.manifest_path):
        click.echo(str(path))


# ---------------------------------------------------------------------------
# config command
# ---------------------------------------------------------------------------


@cli.command(name="config")
@build_options
def config_command(
    config_path: str | None,
    cache_dir: str | None,
    cargo_args: tuple[str, ...],
    bindgen_args: tuple[str, ...],
    optimize: bool | None,
) -> None:
    """Show the effective build options as YAML."""
    options = _load_options(config_path, cache_dir, cargo_args, bindgen_args, optimize)
    text = yaml.safe_dump(options.to_dict(), default_flow_style=False, sort_keys=False)
    console.print(Syntax(text, "yaml"))


if __name__ == "__main__":
    cli()
