"""
MCP Bridge Server

Exposes the relay tools and help resources to an agent over MCP stdio,
while the RelaySession serves the Unity Editor over WebSocket.

Error mapping:
  ValidationError            -> INVALID_PARAMS
  unknown tool / resource    -> METHOD_NOT_FOUND
  everything else            -> INTERNAL_ERROR
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import signal
import time
from collections.abc import Iterable
from typing import Any

from mcp import types
from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from . import __version__
from .config import BridgeConfig
from .exceptions import NotConnectedError, RelayError, ToolNotFoundError, ValidationError
from .resources import TextResource, get_all_resources
from .session import NOT_CONNECTED_MESSAGE, RelaySession
from .tools import ToolRegistry, get_all_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "unity-editor-relay"


def mcp_error(code: int, message: str) -> McpError:
    return McpError(types.ErrorData(code=code, message=message))


class BridgeServer:
    """MCP front end over a RelaySession"""

    def __init__(
        self,
        config: BridgeConfig | None = None,
        session: RelaySession | None = None,
        tools: ToolRegistry | None = None,
        resources: Iterable[TextResource] | None = None,
    ) -> None:
        self.config = config or BridgeConfig()
        self.session = session or RelaySession(self.config)
        self.tools = tools or get_all_tools()
        self.resources: dict[str, TextResource] = {
            r.uri: r for r in (resources if resources is not None else get_all_resources(self.config.resource_dir))
        }

        self._tasks: list[asyncio.Task[None]] = []

        self.server: Server = Server(SERVER_NAME, version=__version__)
        self.server.list_tools()(self.list_tools)
        # Not via call_tool(): McpError codes must reach the client as JSON-RPC errors
        self.server.request_handlers[types.CallToolRequest] = self.handle_call_tool
        self.server.list_resources()(self.list_resources)
        self.server.read_resource()(self.read_resource)

    # ===== Tools =====

    async def list_tools(self) -> list[types.Tool]:
        return [
            types.Tool(name=d.name, description=d.description, inputSchema=d.input_schema)
            for d in self.tools.definitions()
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        """Run one tool call.

        Raises:
            McpError: With the code matching the failure category.
        """
        try:
            tool = self.tools.get(name)
        except ToolNotFoundError as e:
            raise mcp_error(types.METHOD_NOT_FOUND, e.message) from e

        started = time.monotonic()
        logger.info(f"Tool call started: {name}")

        try:
            if tool.requires_connection:
                await self._ensure_connected()
            result = await tool.execute(arguments, self.session)
        except ValidationError as e:
            logger.info(f"Tool call rejected: {name}: {e.message}")
            raise mcp_error(types.INVALID_PARAMS, e.message) from e
        except RelayError as e:
            logger.warning(f"Tool call failed: {name} ({e.code}): {e.message}")
            raise mcp_error(types.INTERNAL_ERROR, e.message) from e
        except Exception as e:
            logger.exception(f"Unexpected error in tool {name}")
            raise mcp_error(types.INTERNAL_ERROR, f"Internal error while running {name}: {e}") from e

        elapsed_ms = (time.monotonic() - started) * 1000
        logger.info(f"Tool call finished: {name} in {elapsed_ms:.0f}ms")
        return [types.TextContent(type="text", text=json.dumps(result, indent=2, ensure_ascii=False, default=str))]

    async def handle_call_tool(self, req: types.CallToolRequest) -> types.ServerResult:
        content = await self.call_tool(req.params.name, req.params.arguments)
        return types.ServerResult(types.CallToolResult(content=content, isError=False))

    async def _ensure_connected(self) -> None:
        """Connection gate: bounded waits for the Editor.

        Raises:
            NotConnectedError: If the Editor did not connect in time.
        """
        if self.session.is_connected():
            return

        retries = self.config.connect_retries
        interval_ms = self.config.connect_retry_interval_ms
        for attempt in range(1, retries + 1):
            logger.warning(
                f"Unity Editor not connected. Waiting {interval_ms / 1000:g}s... ({attempt}/{retries})"
            )
            if await self.session.wait_for_connection(interval_ms):
                return

        raise NotConnectedError(NOT_CONNECTED_MESSAGE)

    # ===== Resources =====

    async def list_resources(self) -> list[types.Resource]:
        return [
            types.Resource(
                uri=r.definition.uri,
                name=r.definition.name,
                description=r.definition.description,
                mimeType=r.definition.mime_type,
            )
            for r in self.resources.values()
        ]

    async def read_resource(self, uri: Any) -> list[ReadResourceContents]:
        """Return the contents of one resource.

        Raises:
            McpError: METHOD_NOT_FOUND if the uri is unknown.
        """
        resource = self.resources.get(str(uri))
        if resource is None:
            available = ", ".join(self.resources)
            raise mcp_error(types.METHOD_NOT_FOUND, f"Resource not found: {uri}. Available resources: {available}")
        return [ReadResourceContents(content=resource.read(), mime_type=resource.definition.mime_type)]

    # ===== Lifecycle =====

    async def serve_stdio(self) -> None:
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(read_stream, write_stream, self.server.create_initialization_options())

    def shutdown(self) -> None:
        """Cancel the startup wait and the stdio loop (SIGINT/SIGTERM handler)"""
        for task in self._tasks:
            task.cancel()

    async def _await_editor(self) -> None:
        wait_ms = self.config.startup_wait_ms
        if await self.session.wait_for_connection(wait_ms):
            logger.info("Unity Editor connected")
        else:
            logger.warning(f"Unity Editor did not connect within {wait_ms}ms")

    async def run(self) -> None:
        """Serve until stdin closes or SIGINT/SIGTERM.

        Raises:
            BindError: If the Editor endpoint cannot listen.
        """
        await self.session.start()
        logger.info(f"Unity Editor endpoint listening on ws://{self.config.host}:{self.session.endpoint.port}")

        loop = asyncio.get_running_loop()
        stdio_task = asyncio.create_task(self.serve_stdio())
        startup_task = asyncio.create_task(self._await_editor()) if self.config.startup_wait_ms > 0 else None
        self._tasks = [t for t in (startup_task, stdio_task) if t is not None]
        if startup_task is not None:
            stdio_task.add_done_callback(lambda _: startup_task.cancel())

        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, self.shutdown)

        try:
            for task in self._tasks:
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                with contextlib.suppress(NotImplementedError):
                    loop.remove_signal_handler(sig)
            for task in self._tasks:
                if not task.done():
                    task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await task
            self._tasks = []
            await self.session.stop()
            logger.info("Relay stopped")
