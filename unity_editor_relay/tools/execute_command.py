"""execute_editor_command: run C# inside the Unity Editor."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, field_validator

from unity_editor_relay.exceptions import (
    RelayError,
    RemoteExecutionError,
    TimeoutError,
    ValidationError,
)
from unity_editor_relay.pending import ExchangeKind
from unity_editor_relay.protocol import (
    CommandResult,
    ExecuteEditorCommandData,
    ExecuteEditorCommandMessage,
)
from unity_editor_relay.tools.base import Tool, ToolDefinition, ToolExample

if TYPE_CHECKING:
    from unity_editor_relay.log_buffer import LogBuffer
    from unity_editor_relay.session import RelaySession

NULL_REFERENCE_HINT = (
    "The code attempted to access a null object. Please check that all GameObject references exist."
)
COMPILE_ERROR_HINT = "C# compilation error. Please check the syntax of your code."

_COMPILE_MARKERS = ("CompileError", "Compilation failed")

_EXAMPLE_CODE = """using UnityEngine;
using UnityEditor;
using System;
using System.Linq;
using System.Collections.Generic;
using System.IO;
using System.Reflection;

public class EditorCommand
{
  public static object Execute()
  {
      Selection.activeGameObject.transform.position = Vector3.zero;
      EditorApplication.isPlaying = !EditorApplication.isPlaying;
      return "Success";
  }
}"""


class ExecuteEditorCommandArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("The code parameter cannot be empty")
        return v


@dataclass
class ExecutionWindow:
    """Log watermark and start time of one command, opened when it is sent"""

    log_buffer: LogBuffer
    watermark: int = 0
    started: float = 0.0

    def open(self) -> None:
        self.watermark = self.log_buffer.mark()
        self.started = time.monotonic()

    def logs(self) -> list[dict[str, Any]]:
        return [record.to_dict() for record in self.log_buffer.since(self.watermark)]

    @property
    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.started) * 1000


def classify_failure(reply: CommandResult) -> RelayError:
    """Map a failed remote execution onto the tool error taxonomy"""
    message = reply.failure_message
    details = reply.error_details
    remote_type = details.type if details else ""
    haystack = f"{remote_type}\n{message}"

    if "NullReferenceException" in haystack:
        return ValidationError(NULL_REFERENCE_HINT)
    if any(marker in haystack for marker in _COMPILE_MARKERS):
        return ValidationError(f"{COMPILE_ERROR_HINT}\n{message}")
    return RemoteExecutionError(
        f"Failed to execute command: {message}",
        remote_type=remote_type or None,
        remote_stack_trace=details.stack_trace if details else None,
    )


class ExecuteEditorCommandTool(Tool):
    definition = ToolDefinition(
        name="execute_editor_command",
        description=(
            "Execute arbitrary C# code file within the Unity Editor context. This powerful tool allows for "
            "direct manipulation of the Unity Editor, GameObjects, components, and project assets using the "
            "Unity Editor API."
        ),
        category="Editor Control",
        tags=("unity", "editor", "command", "c#", "scripting"),
        input_schema={
            "type": "object",
            "properties": {
                "code": {
                    "type": "string",
                    "description": (
                        "C# code file to execute in the Unity Editor context.\n"
                        "The code has access to all UnityEditor and UnityEngine APIs.\n"
                        "Include any necessary using directives at the top of the code.\n"
                        "The code must have a EditorCommand class with a static Execute method that returns "
                        "an object."
                    ),
                    "minLength": 1,
                },
            },
            "required": ["code"],
            "additionalProperties": False,
        },
        examples=(
            ToolExample(
                description="Center selected object",
                input={"code": _EXAMPLE_CODE},
                output='{ "result": "Success", "logs": [], "executionTime": "42ms", "status": "success" }',
            ),
        ),
    )
    arguments_model = ExecuteEditorCommandArgs

    async def execute(self, arguments: dict[str, Any] | None, session: RelaySession) -> dict[str, Any]:
        args = self.parse_arguments(arguments)
        timeout_ms = session.config.command_timeout_ms

        window = ExecutionWindow(session.log_buffer)
        message = ExecuteEditorCommandMessage(data=ExecuteEditorCommandData(code=args.code))

        try:
            reply: CommandResult = await session.request(
                ExchangeKind.COMMAND, message, timeout_ms, on_send=window.open
            )
        except TimeoutError as e:
            raise TimeoutError(
                f"Command execution timed out after {timeout_ms / 1000:g} seconds. "
                "This may indicate a long-running operation or an issue with the Unity Editor."
            ) from e

        if not reply.execution_success:
            raise classify_failure(reply)

        return {
            "result": reply.result,
            "logs": window.logs(),
            "executionTime": f"{window.elapsed_ms:.0f}ms",
            "status": "success",
        }
