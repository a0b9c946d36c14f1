"""
Message Router

Decodes inbound frames and hands each typed message to its consumer.
Bad frames are logged and dropped; they never reach a waiting caller.
"""

from __future__ import annotations

import logging

from .exceptions import ProtocolError
from .log_buffer import LogBuffer
from .pending import ExchangeKind, PendingExchangeRegistry
from .protocol import (
    CommandResultMessage,
    EditorStateMessage,
    LogMessage,
    decode_message,
)

logger = logging.getLogger(__name__)


class MessageRouter:
    """Routes commandResult / editorState to the registry and log to the buffer"""

    def __init__(
        self,
        log_buffer: LogBuffer,
        registry: PendingExchangeRegistry,
        package_path_prefix: str | None = None,
    ) -> None:
        self.log_buffer = log_buffer
        self.registry = registry
        # None disables package filtering of editor state
        self.package_path_prefix = package_path_prefix

    def dispatch(self, frame: str | bytes) -> None:
        try:
            message = decode_message(frame)
        except ProtocolError as e:
            logger.warning(f"Dropping inbound frame ({e.code}): {e.message}")
            return

        logger.debug(f"Received {message.type} (id={message.id})")

        if isinstance(message, CommandResultMessage):
            self.registry.resolve(ExchangeKind.COMMAND, message.data, message.id)

        elif isinstance(message, EditorStateMessage):
            snapshot = message.data
            if self.package_path_prefix:
                snapshot = snapshot.without_package_paths(self.package_path_prefix)
            self.registry.resolve(ExchangeKind.STATE, snapshot, message.id)

        elif isinstance(message, LogMessage):
            self.log_buffer.append(message.data)
