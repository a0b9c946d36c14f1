"""get_logs: query the buffered Unity console output."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from unity_editor_relay.log_buffer import LogQuery
from unity_editor_relay.protocol import LogRecord, LogType, parse_timestamp
from unity_editor_relay.tools.base import Tool, ToolDefinition, ToolExample

if TYPE_CHECKING:
    from unity_editor_relay.session import RelaySession

DEFAULT_LOG_COUNT = 100
MAX_LOG_COUNT = 1000

LogField = Literal["message", "stackTrace", "logType", "timestamp"]
LOG_FIELDS: tuple[str, ...] = ("message", "stackTrace", "logType", "timestamp")


class GetLogsArgs(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    types: list[LogType] | None = None
    count: int = Field(default=DEFAULT_LOG_COUNT, ge=1, le=MAX_LOG_COUNT)
    fields: list[LogField] | None = None
    message_contains: str | None = Field(default=None, alias="messageContains", min_length=1)
    stack_trace_contains: str | None = Field(default=None, alias="stackTraceContains", min_length=1)
    timestamp_after: datetime | None = Field(default=None, alias="timestampAfter")
    timestamp_before: datetime | None = Field(default=None, alias="timestampBefore")

    @field_validator("count", mode="before")
    @classmethod
    def default_count(cls, v: Any) -> Any:
        return DEFAULT_LOG_COUNT if v is None else v

    @field_validator("timestamp_after", "timestamp_before", mode="before")
    @classmethod
    def validate_timestamp(cls, v: Any) -> Any:
        return parse_timestamp(v)

    def to_query(self) -> LogQuery:
        return LogQuery(
            types=frozenset(self.types) if self.types is not None else None,
            message_contains=self.message_contains,
            stack_trace_contains=self.stack_trace_contains,
            after=self.timestamp_after,
            before=self.timestamp_before,
            limit=self.count,
        )


def project_record(record: LogRecord, fields: list[str] | None) -> dict[str, Any]:
    """Keep only the requested fields. None or empty returns all."""
    data = record.to_dict()
    if not fields:
        return data
    fields_set = set(fields)
    return {k: v for k, v in data.items() if k in fields_set}


class GetLogsTool(Tool):
    definition = ToolDefinition(
        name="get_logs",
        description=(
            "Retrieve Unity Editor logs with filtering options. This tool provides access to editor logs, "
            "console messages, and debug information from the Unity Editor."
        ),
        category="Debugging",
        tags=("unity", "editor", "logs", "debugging", "console"),
        input_schema={
            "type": "object",
            "properties": {
                "types": {
                    "type": "array",
                    "items": {"type": "string", "enum": [t.value for t in LogType]},
                    "description": "Filter logs by type. If not specified, all types are included.",
                },
                "count": {
                    "type": "number",
                    "description": "Maximum number of log entries to return",
                    "minimum": 1,
                    "maximum": MAX_LOG_COUNT,
                    "default": DEFAULT_LOG_COUNT,
                },
                "fields": {
                    "type": "array",
                    "items": {"type": "string", "enum": list(LOG_FIELDS)},
                    "description": "Specify which fields to include in the output. If not specified, all fields are included.",
                },
                "messageContains": {
                    "type": "string",
                    "description": "Filter logs to only include entries where the message contains this string",
                    "minLength": 1,
                },
                "stackTraceContains": {
                    "type": "string",
                    "description": "Filter logs to only include entries where the stack trace contains this string",
                    "minLength": 1,
                },
                "timestampAfter": {
                    "type": "string",
                    "description": "Filter logs after this ISO timestamp",
                },
                "timestampBefore": {
                    "type": "string",
                    "description": "Filter logs before this ISO timestamp",
                },
            },
            "additionalProperties": False,
        },
        examples=(
            ToolExample(
                description="Get recent error logs",
                input={"types": ["Error", "Exception"], "count": 10},
                output='[{"message": "NullReferenceException", "stackTrace": "...", "logType": "Exception", ...}]',
            ),
            ToolExample(
                description="Get only messages mentioning the player",
                input={"messageContains": "Player", "fields": ["message", "timestamp"]},
                output='[{"message": "Player spawned", "timestamp": "2024-01-01T00:00:00+00:00"}]',
            ),
        ),
    )
    arguments_model = GetLogsArgs
    requires_connection = False

    async def execute(self, arguments: dict[str, Any] | None, session: RelaySession) -> list[dict[str, Any]]:
        args = self.parse_arguments(arguments)
        records = session.log_buffer.filter(args.to_query())
        return [project_record(record, args.fields) for record in records]
