"""Rich-based output formatting for the relay CLI.

``serve`` owns stdout for the MCP stream, so anything printed while the
relay runs must go through ``err_console``.
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from unity_editor_relay.resources import TextResource
from unity_editor_relay.tools import ToolDefinition

console = Console()
err_console = Console(stderr=True)


def print_json(data: Any) -> None:
    console.print_json(json.dumps(data, ensure_ascii=False))


def print_error(message: str, code: str | None = None) -> None:
    """Print error message to stderr.

    Args:
        message: Error message (will be escaped to prevent markup injection)
        code: Optional error code
    """
    text = Text()
    text.append("Error: ", style="bold red")
    text.append(escape(message))
    err_console.print(text)

    if code:
        code_text = Text()
        code_text.append("Code: ", style="dim")
        code_text.append(escape(code), style="yellow")
        err_console.print(code_text)


def print_success(message: str) -> None:
    text = Text()
    text.append("[OK] ", style="bold green")
    text.append(message)
    console.print(text)


def print_tools_table(definitions: list[ToolDefinition]) -> None:
    """Print tool definitions as a formatted table.

    Args:
        definitions: Tool definitions in registry order
    """
    table = Table(title=f"Tools ({len(definitions)})")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Category", style="green")
    table.add_column("Description", overflow="fold")

    for definition in definitions:
        table.add_row(
            escape(definition.name),
            escape(definition.category),
            escape(definition.description),
        )

    console.print(table)


def print_resources_table(resources: list[TextResource]) -> None:
    if not resources:
        console.print("No resources available", style="dim")
        return

    table = Table(title=f"Resources ({len(resources)})")
    table.add_column("URI", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Description", overflow="fold")

    for resource in resources:
        definition = resource.definition
        table.add_row(escape(definition.uri), escape(definition.name), escape(definition.description))

    console.print(table)


def print_key_value(data: dict[str, Any], title: str | None = None) -> None:
    """Print dict as key-value pairs.

    Args:
        data: Dict to display
        title: Optional title
    """
    if title:
        console.print(f"[bold]{escape(title)}[/bold]")

    for key, value in data.items():
        console.print(f"  [cyan]{escape(str(key))}:[/cyan] {escape(str(value))}")
