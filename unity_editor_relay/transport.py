"""
Editor Endpoint

WebSocket server the Unity Editor connects to. Exactly one Editor peer is
tracked at a time; a new connection takes over from the previous one.
Reconnection is the Editor's responsibility.
"""

from __future__ import annotations

import asyncio
import builtins
import logging
from collections.abc import Callable

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed, ConnectionClosedError
from websockets.protocol import State

from .exceptions import BindError
from .protocol import DEFAULT_HOST, DEFAULT_PORT, Message, encode_message

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str | bytes], None]
LifecycleHandler = Callable[[], None]
ErrorHandler = Callable[[Exception], None]


class EditorEndpoint:
    """
    Single-peer WebSocket endpoint.

    Handlers (all optional, invoked on the event loop):
    - on_message(frame): every inbound frame of the tracked peer
    - on_connect(): a peer became the tracked peer
    - on_close(): the tracked peer went away (closed or replaced)
    - on_error(exc): the peer connection failed abnormally
    """

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
        self.host = host
        self._port = port
        self._server: Server | None = None
        self._peer: ServerConnection | None = None
        self._connection_waiters: set[asyncio.Future[bool]] = set()
        self.on_message: MessageHandler | None = None
        self.on_connect: LifecycleHandler | None = None
        self.on_close: LifecycleHandler | None = None
        self.on_error: ErrorHandler | None = None

    @property
    def port(self) -> int:
        """Bound port once started, configured port otherwise"""
        if self._server is not None:
            for sock in self._server.sockets:
                return int(sock.getsockname()[1])
        return self._port

    @property
    def is_serving(self) -> bool:
        return self._server is not None

    async def start(self) -> None:
        """Bind and listen.

        Raises:
            BindError: If the port cannot be bound.
        """
        try:
            self._server = await serve(self._handle_peer, self.host, self._port)
        except OSError as e:
            raise BindError(f"Cannot listen on {self.host}:{self._port}: {e}") from e

        addrs = ", ".join(str(sock.getsockname()) for sock in self._server.sockets)
        logger.info(f"Editor endpoint listening on {addrs}")

    async def stop(self) -> None:
        """Close the peer connection and the listening socket"""
        if self._server is None:
            return
        logger.info("Stopping editor endpoint...")
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        self._peer = None
        logger.info("Editor endpoint stopped")

    def is_connected(self) -> bool:
        return self._peer is not None and self._peer.state is State.OPEN

    async def send(self, message: Message) -> bool:
        """Send an envelope to the tracked peer.

        Returns:
            False if no peer is connected or it closed during the send.
        """
        peer = self._peer
        if peer is None or peer.state is not State.OPEN:
            logger.warning(f"Cannot send {message.type}: Unity Editor not connected")
            return False

        try:
            await peer.send(encode_message(message))
        except ConnectionClosed as e:
            logger.warning(f"Failed to send {message.type}: connection closed ({e})")
            return False

        logger.debug(f"Sent {message.type} (id={message.id})")
        return True

    async def wait_for_connection(self, timeout_ms: int) -> bool:
        """Wait until a peer is connected.

        Returns:
            True once connected, False if timeout_ms elapsed first.
        """
        if self.is_connected():
            return True

        waiter: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        self._connection_waiters.add(waiter)
        try:
            return await asyncio.wait_for(waiter, timeout=timeout_ms / 1000)
        except builtins.TimeoutError:
            return False
        finally:
            self._connection_waiters.discard(waiter)

    # ===== Connection Handling =====

    async def _handle_peer(self, connection: ServerConnection) -> None:
        """Track one Unity Editor connection until it closes"""
        peername = connection.remote_address
        previous = self._peer
        self._peer = connection

        if previous is not None and previous is not connection:
            logger.info(f"Takeover: replacing Unity Editor {previous.remote_address} with {peername}")
            self._emit_close()
            await previous.close(reason="Replaced by a newer Unity Editor connection")

        logger.info(f"Unity Editor connected from {peername}")
        self._emit_connect()

        try:
            async for frame in connection:
                self._dispatch(frame)
        except ConnectionClosedError as e:
            logger.warning(f"Unity Editor connection lost: {e}")
            self._emit_error(e)
        finally:
            if self._peer is connection:
                self._peer = None
                logger.info("Unity Editor disconnected")
                self._emit_close()

    def _dispatch(self, frame: str | bytes) -> None:
        if self.on_message is None:
            return
        try:
            self.on_message(frame)
        except Exception:
            logger.exception("Unhandled error while processing Unity Editor message")

    def _emit_connect(self) -> None:
        for waiter in list(self._connection_waiters):
            if not waiter.done():
                waiter.set_result(True)
        if self.on_connect is not None:
            self.on_connect()

    def _emit_close(self) -> None:
        if self.on_close is not None:
            self.on_close()

    def _emit_error(self, exc: Exception) -> None:
        if self.on_error is not None:
            self.on_error(exc)
