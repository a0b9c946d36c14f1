"""Exception hierarchy for the Unity Editor relay.

Every error carries a human-readable message and a stable ``ErrorCode``
value so the MCP adapter can map it onto an error envelope without
inspecting message text.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_PARAMS = "INVALID_PARAMS"
    NOT_CONNECTED = "NOT_CONNECTED"
    TIMEOUT = "TIMEOUT"
    REMOTE_EXECUTION_FAILED = "REMOTE_EXECUTION_FAILED"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    MALFORMED_JSON = "MALFORMED_JSON"
    UNKNOWN_MESSAGE_TYPE = "UNKNOWN_MESSAGE_TYPE"
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    BIND_FAILED = "BIND_FAILED"


class RelayError(Exception):
    """Base class for relay errors"""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class ValidationError(RelayError):
    """Tool arguments were rejected before any network I/O"""

    def __init__(self, message: str, code: str = ErrorCode.INVALID_PARAMS.value) -> None:
        super().__init__(message, code)


class NotConnectedError(RelayError):
    """No Unity Editor peer is connected"""

    def __init__(self, message: str, code: str = ErrorCode.NOT_CONNECTED.value) -> None:
        super().__init__(message, code)


class TimeoutError(RelayError):
    """No correlated reply arrived within the bound"""

    def __init__(self, message: str, code: str = ErrorCode.TIMEOUT.value) -> None:
        super().__init__(message, code)


class RemoteExecutionError(RelayError):
    """The Unity Editor reported a failure"""

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.REMOTE_EXECUTION_FAILED.value,
        remote_type: str | None = None,
        remote_stack_trace: str | None = None,
    ) -> None:
        super().__init__(message, code)
        self.remote_type = remote_type
        self.remote_stack_trace = remote_stack_trace


class ProtocolError(RelayError):
    """Malformed or unrecognised inbound frame"""

    def __init__(self, message: str, code: str = ErrorCode.PROTOCOL_ERROR.value) -> None:
        super().__init__(message, code)


class ToolNotFoundError(RelayError):
    """Requested tool is not in the registry"""

    def __init__(self, name: str, available: list[str]) -> None:
        super().__init__(
            f"Unknown tool: {name}. Available tools are: {', '.join(available)}",
            ErrorCode.TOOL_NOT_FOUND.value,
        )
        self.name = name
        self.available = available


class BindError(RelayError):
    """The WebSocket endpoint could not bind its port"""

    def __init__(self, message: str, code: str = ErrorCode.BIND_FAILED.value) -> None:
        super().__init__(message, code)
