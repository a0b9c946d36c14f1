"""
Unity Editor Relay Protocol

Framing: one JSON object per WebSocket text frame
Envelope: {"type": <string>, "data": <any>, "id"?: <string>}

Correlated requests (executeEditorCommand, getEditorState) carry a unique
"id" that the Editor echoes back on its reply. Replies without an id are
matched to the single in-flight exchange of their kind.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from .exceptions import ErrorCode, ProtocolError

# Constants
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
PACKAGE_PATH_PREFIX = "Packages/"


class MessageType(str, Enum):
    # Unity -> Relay
    COMMAND_RESULT = "commandResult"
    EDITOR_STATE = "editorState"
    LOG = "log"

    # Relay -> Unity
    EXECUTE_EDITOR_COMMAND = "executeEditorCommand"
    GET_EDITOR_STATE = "getEditorState"


class LogType(str, Enum):
    LOG = "Log"
    WARNING = "Warning"
    ERROR = "Error"
    EXCEPTION = "Exception"


class PlayModeState(str, Enum):
    PLAYING = "Playing"
    STOPPED = "Stopped"
    UNKNOWN = "Unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_request_id(client_id: str | None = None) -> str:
    """Generate a unique request ID"""
    if client_id:
        return f"{client_id}:{uuid.uuid4()}"
    return str(uuid.uuid4())


def parse_timestamp(value: Any) -> Any:
    """Coerce ISO-8601 input to an aware UTC datetime.

    Unity serialises DateTime.UtcNow with seven fractional digits and a
    trailing "Z"; naive values are assumed to be UTC. Anything that cannot
    be parsed is returned unchanged so pydantic reports it.
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError:
            return value
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _list_or_empty(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, list):
        return [item for item in value if item is not None]
    return value


class WireModel(BaseModel):
    """Immutable model serialised with camelCase wire names"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True, by_alias=True)


# Payloads


class LogRecord(WireModel):
    """A single Unity console entry"""

    message: str = ""
    stack_trace: str = Field(default="", alias="stackTrace")
    log_type: LogType = Field(default=LogType.LOG, alias="logType")
    timestamp: datetime = Field(default_factory=_utcnow)

    @field_validator("message", "stack_trace", mode="before")
    @classmethod
    def validate_text(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("log_type", mode="before")
    @classmethod
    def validate_log_type(cls, v: Any) -> Any:
        # Unity's LogType.Assert is reported alongside errors
        if v == "Assert":
            return LogType.ERROR
        return v

    @field_validator("timestamp", mode="before")
    @classmethod
    def validate_timestamp(cls, v: Any) -> Any:
        return parse_timestamp(v)


class ErrorDetails(WireModel):
    message: str = ""
    stack_trace: str = Field(default="", alias="stackTrace")
    type: str = ""


class CommandResult(WireModel):
    """Reply body of executeEditorCommand"""

    result: Any = None
    logs: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    execution_success: bool = Field(default=True, alias="executionSuccess")
    error_details: ErrorDetails | None = Field(default=None, alias="errorDetails")

    @field_validator("logs", "errors", "warnings", mode="before")
    @classmethod
    def validate_lists(cls, v: Any) -> Any:
        return _list_or_empty(v)

    @property
    def failure_message(self) -> str:
        """Best available description of a failed execution"""
        if self.error_details and self.error_details.message:
            return self.error_details.message
        if self.errors:
            return "\n".join(self.errors)
        return "Command reported failure without details"


class HierarchyNode(WireModel):
    name: str = "Unnamed"
    components: list[str] = Field(default_factory=list)
    children: list[HierarchyNode] = Field(default_factory=list)

    @field_validator("components", "children", mode="before")
    @classmethod
    def validate_lists(cls, v: Any) -> Any:
        return _list_or_empty(v)


class EditorStateSnapshot(WireModel):
    """Full editor state as produced by the Unity side"""

    active_game_objects: list[str] = Field(default_factory=list, alias="activeGameObjects")
    selected_objects: list[str] = Field(default_factory=list, alias="selectedObjects")
    play_mode_state: PlayModeState = Field(default=PlayModeState.UNKNOWN, alias="playModeState")
    scene_hierarchy: list[HierarchyNode] = Field(default_factory=list, alias="sceneHierarchy")
    project_structure: dict[str, list[str]] = Field(default_factory=dict, alias="projectStructure")

    @field_validator("active_game_objects", "selected_objects", "scene_hierarchy", mode="before")
    @classmethod
    def validate_lists(cls, v: Any) -> Any:
        return _list_or_empty(v)

    @field_validator("play_mode_state", mode="before")
    @classmethod
    def validate_play_mode_state(cls, v: Any) -> Any:
        try:
            return PlayModeState(v)
        except ValueError:
            return PlayModeState.UNKNOWN

    @field_validator("project_structure", mode="before")
    @classmethod
    def validate_project_structure(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, dict):
            return {key: _list_or_empty(paths) for key, paths in v.items()}
        return v

    def without_package_paths(self, prefix: str = PACKAGE_PATH_PREFIX) -> EditorStateSnapshot:
        """Copy with every project_structure entry under prefix removed"""
        filtered = {
            category: [path for path in paths if not path.startswith(prefix)]
            for category, paths in self.project_structure.items()
        }
        return self.model_copy(update={"project_structure": filtered})

    def scripts(self) -> list[str]:
        return list(self.project_structure.get("scripts", []))

    def without_scripts(self) -> dict[str, Any]:
        data = self.to_dict()
        data["projectStructure"].pop("scripts", None)
        return data


# Envelopes


class Message(WireModel):
    """Base envelope"""

    type: str
    id: str | None = None


# Unity -> Relay Messages


class CommandResultMessage(Message):
    type: Literal["commandResult"] = "commandResult"
    data: CommandResult = Field(default_factory=CommandResult)


class EditorStateMessage(Message):
    type: Literal["editorState"] = "editorState"
    data: EditorStateSnapshot = Field(default_factory=EditorStateSnapshot)


class LogMessage(Message):
    type: Literal["log"] = "log"
    data: LogRecord


# Relay -> Unity Messages


class ExecuteEditorCommandData(WireModel):
    code: str


class ExecuteEditorCommandMessage(Message):
    type: Literal["executeEditorCommand"] = "executeEditorCommand"
    id: str = Field(default_factory=generate_request_id)
    data: ExecuteEditorCommandData


class GetEditorStateMessage(Message):
    type: Literal["getEditorState"] = "getEditorState"
    id: str = Field(default_factory=generate_request_id)
    data: dict[str, Any] = Field(default_factory=dict)


InboundMessage = Annotated[
    Union[CommandResultMessage, EditorStateMessage, LogMessage],
    Field(discriminator="type"),
]

INBOUND_TYPES = frozenset(
    {
        MessageType.COMMAND_RESULT.value,
        MessageType.EDITOR_STATE.value,
        MessageType.LOG.value,
    }
)

_inbound_adapter: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


def encode_message(message: Message) -> str:
    """Serialise an envelope to a text frame"""
    return json.dumps(message.to_dict(), ensure_ascii=False)


def decode_message(raw: str | bytes) -> CommandResultMessage | EditorStateMessage | LogMessage:
    """Decode a text frame into a typed inbound message.

    Raises:
        ProtocolError: If the frame is not JSON, is not an object, has no
            or an unknown "type", or its body does not match the type.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"Invalid JSON frame: {e}", ErrorCode.MALFORMED_JSON.value) from e

    if not isinstance(payload, dict):
        raise ProtocolError(
            f"Frame must be a JSON object, got {type(payload).__name__}",
            ErrorCode.PROTOCOL_ERROR.value,
        )

    msg_type = payload.get("type")
    if not msg_type or not isinstance(msg_type, str):
        raise ProtocolError("Missing 'type' field", ErrorCode.PROTOCOL_ERROR.value)
    if msg_type not in INBOUND_TYPES:
        raise ProtocolError(f"Unknown message type: {msg_type}", ErrorCode.UNKNOWN_MESSAGE_TYPE.value)

    try:
        return _inbound_adapter.validate_python(payload)
    except pydantic.ValidationError as e:
        raise ProtocolError(
            f"Invalid '{msg_type}' frame: {e.error_count()} validation error(s)",
            ErrorCode.PROTOCOL_ERROR.value,
        ) from e
