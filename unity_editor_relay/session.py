"""
Relay Session

Owns every piece of mutable relay state: the Editor endpoint, the log
buffer, the pending-exchange registry and the router that connects them.
One session is constructed per process and passed to every tool.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from .config import BridgeConfig
from .exceptions import NotConnectedError
from .log_buffer import LogBuffer
from .pending import ExchangeKind, PendingExchangeRegistry
from .protocol import ExecuteEditorCommandMessage, GetEditorStateMessage
from .router import MessageRouter
from .transport import EditorEndpoint

logger = logging.getLogger(__name__)

NOT_CONNECTED_MESSAGE = (
    "Unity Editor is not connected. Please ensure the Unity Editor is running and the UnityMCP window is open."
)

CorrelatedRequest = ExecuteEditorCommandMessage | GetEditorStateMessage


class RelaySession:
    """Relay state shared by the MCP adapter and the tools"""

    def __init__(
        self,
        config: BridgeConfig | None = None,
        endpoint: EditorEndpoint | None = None,
    ) -> None:
        self.config = config or BridgeConfig()
        self.log_buffer = LogBuffer(self.config.log_capacity)
        self.registry = PendingExchangeRegistry()
        self.router = MessageRouter(
            self.log_buffer,
            self.registry,
            package_path_prefix=self.config.package_path_prefix if self.config.exclude_package_paths else None,
        )
        self.endpoint = endpoint or EditorEndpoint(self.config.host, self.config.port)
        self.endpoint.on_message = self.router.dispatch
        self.endpoint.on_close = self._on_peer_closed

    async def start(self) -> None:
        await self.endpoint.start()

    async def stop(self) -> None:
        self.registry.reject_all(NotConnectedError("Relay is shutting down"))
        await self.endpoint.stop()

    def is_connected(self) -> bool:
        return self.endpoint.is_connected()

    async def wait_for_connection(self, timeout_ms: int) -> bool:
        return await self.endpoint.wait_for_connection(timeout_ms)

    async def request(
        self,
        kind: ExchangeKind,
        message: CorrelatedRequest,
        timeout_ms: int,
        on_send: Callable[[], None] | None = None,
    ) -> Any:
        """Send a correlated request and await its reply.

        Requests of one kind are single-flight: a second caller queues until
        the first exchange settles. The timeout starts when the frame is sent.
        on_send runs once the slot is held, right before the frame goes out.

        Raises:
            NotConnectedError: If no Editor is connected or the send failed.
            TimeoutError: If the reply did not arrive within timeout_ms.
        """
        async with self.registry.single_flight(kind):
            if not self.endpoint.is_connected():
                raise NotConnectedError(NOT_CONNECTED_MESSAGE)

            exchange = self.registry.register(kind, message.id)
            if on_send is not None:
                on_send()
            if not await self.endpoint.send(message):
                self.registry.discard(exchange.request_id)
                raise NotConnectedError(NOT_CONNECTED_MESSAGE)

            return await self.registry.wait(exchange, timeout_ms)

    def _on_peer_closed(self) -> None:
        self.registry.reject_all(NotConnectedError("Unity Editor disconnected before replying"))
