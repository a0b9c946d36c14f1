"""
Unity Editor Relay - Typer Application
======================================

``serve`` runs the MCP stdio server together with the WebSocket endpoint
the Unity Editor connects to. The other commands inspect the tool and
resource catalogue and the effective configuration.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer

from unity_editor_relay import __version__
from unity_editor_relay.cli.output import (
    console,
    print_error,
    print_json,
    print_key_value,
    print_resources_table,
    print_success,
    print_tools_table,
)
from unity_editor_relay.config import CONFIG_FILE_NAME, BridgeConfig
from unity_editor_relay.exceptions import BindError
from unity_editor_relay.resources import get_all_resources
from unity_editor_relay.server import BridgeServer
from unity_editor_relay.tools import get_all_tools

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# =============================================================================
# Context Object
# =============================================================================


@dataclass
class CLIContext:
    """Context object shared across commands via ctx.obj."""

    config: BridgeConfig
    config_file: Path | None = None
    json_mode: bool = False


# =============================================================================
# Main Application
# =============================================================================

app = typer.Typer(
    name="unity-editor-relay",
    help="Unity Editor Relay - MCP tools for a live Unity Editor",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help=f"Config file (default: search for {CONFIG_FILE_NAME})",
            envvar="UNITY_RELAY_CONFIG",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output JSON format",
        ),
    ] = False,
) -> None:
    """Unity Editor Relay - MCP tools for a live Unity Editor."""
    try:
        config = BridgeConfig.load(config_path)
    except ValueError as e:
        print_error(f"Invalid configuration: {e}", "INVALID_CONFIG")
        raise typer.Exit(1) from None

    ctx.obj = CLIContext(
        config=config,
        config_file=config_path if config_path and config_path.exists() else BridgeConfig._find_config_file(),
        json_mode=json_output,
    )


# =============================================================================
# Basic Commands
# =============================================================================


@app.command()
def version() -> None:
    """Show relay version."""
    console.print(f"unity-editor-relay {__version__}")


@app.command()
def serve(
    ctx: typer.Context,
    host: Annotated[
        str | None,
        typer.Option("--host", help="Host the Unity Editor connects to", envvar="UNITY_RELAY_HOST"),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Port the Unity Editor connects to", envvar="UNITY_RELAY_PORT"),
    ] = None,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging"),
    ] = False,
) -> None:
    """Run the MCP server on stdio and wait for the Unity Editor."""
    context: CLIContext = ctx.obj

    overrides = {}
    if host is not None:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port

    try:
        config = dataclasses.replace(context.config, **overrides)
    except ValueError as e:
        print_error(f"Invalid configuration: {e}", "INVALID_CONFIG")
        raise typer.Exit(1) from None

    # stdout carries the MCP stream
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )

    server = BridgeServer(config)
    try:
        asyncio.run(server.run())
    except BindError as e:
        print_error(e.message, e.code)
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        pass


@app.command()
def tools(ctx: typer.Context) -> None:
    """List the tools offered to the agent."""
    context: CLIContext = ctx.obj
    definitions = get_all_tools().definitions()

    if context.json_mode:
        print_json(
            [
                {
                    "name": d.name,
                    "category": d.category,
                    "tags": list(d.tags),
                    "description": d.description,
                    "inputSchema": d.input_schema,
                }
                for d in definitions
            ]
        )
    else:
        print_tools_table(definitions)


@app.command()
def resources(ctx: typer.Context) -> None:
    """List the help resources offered to the agent."""
    context: CLIContext = ctx.obj
    items = get_all_resources(context.config.resource_dir)

    if context.json_mode:
        print_json([dataclasses.asdict(r.definition) for r in items])
    else:
        print_resources_table(items)


# =============================================================================
# Config Commands
# =============================================================================

config_app = typer.Typer(help="Configuration commands")
app.add_typer(config_app, name="config")


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show current configuration."""
    context: CLIContext = ctx.obj
    data = {"config_file": str(context.config_file) if context.config_file else None}
    data.update(
        {
            key: str(value) if isinstance(value, Path) else value
            for key, value in dataclasses.asdict(context.config).items()
        }
    )

    if context.json_mode:
        print_json(data)
    else:
        print_key_value(data, title="=== Unity Editor Relay Configuration ===")


@config_app.command("init")
def config_init(
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output path"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite existing config"),
    ] = False,
) -> None:
    """Generate default .unity-editor-relay.toml configuration file."""
    output_path = output or Path(CONFIG_FILE_NAME)

    if output_path.exists() and not force:
        print_error(f"{output_path} already exists. Use --force to overwrite.")
        raise typer.Exit(1) from None

    output_path.write_text(BridgeConfig().to_toml())
    print_success(f"Created {output_path}")


if __name__ == "__main__":
    app()
