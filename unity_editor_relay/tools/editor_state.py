"""get_editor_state: snapshot of the Unity Editor."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, field_validator

from unity_editor_relay.exceptions import TimeoutError
from unity_editor_relay.pending import ExchangeKind
from unity_editor_relay.protocol import EditorStateSnapshot, GetEditorStateMessage
from unity_editor_relay.tools.base import Tool, ToolDefinition, ToolExample

if TYPE_CHECKING:
    from unity_editor_relay.session import RelaySession

FORMAT_RAW = "Raw"
FORMAT_SCRIPTS_ONLY = "scripts only"
FORMAT_NO_SCRIPTS = "no scripts"
VALID_FORMATS = (FORMAT_RAW, FORMAT_SCRIPTS_ONLY, FORMAT_NO_SCRIPTS)


class GetEditorStateArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    format: str = FORMAT_RAW

    @field_validator("format", mode="before")
    @classmethod
    def validate_format(cls, v: Any) -> Any:
        if v is None:
            return FORMAT_RAW
        if v not in VALID_FORMATS:
            raise ValueError(f'Invalid format: "{v}". Valid formats are: {", ".join(VALID_FORMATS)}')
        return v


class GetEditorStateTool(Tool):
    definition = ToolDefinition(
        name="get_editor_state",
        description=(
            "Retrieve the current state of the Unity Editor, including active GameObjects, selection state, "
            "play mode status, scene hierarchy, and project structure. This tool provides a comprehensive "
            "snapshot of the editor's current context."
        ),
        category="Editor State",
        tags=("unity", "editor", "state", "hierarchy", "project"),
        input_schema={
            "type": "object",
            "properties": {
                "format": {
                    "type": "string",
                    "enum": list(VALID_FORMATS),
                    "description": (
                        "Specify the output format:\n"
                        "- Raw: Complete editor state including all available data\n"
                        "- scripts only: Returns only the list of script files in the project\n"
                        "- no scripts: Returns everything except script-related information"
                    ),
                    "default": FORMAT_RAW,
                },
            },
            "additionalProperties": False,
        },
        examples=(
            ToolExample(
                description="Get complete editor state",
                input={},
                output='{ "activeGameObjects": ["Main Camera", "Directional Light"], ... }',
            ),
            ToolExample(
                description="Get only script files",
                input={"format": FORMAT_SCRIPTS_ONLY},
                output='["Assets/Scripts/Player.cs", "Assets/Scripts/Enemy.cs"]',
            ),
        ),
    )
    arguments_model = GetEditorStateArgs

    async def execute(self, arguments: dict[str, Any] | None, session: RelaySession) -> Any:
        args = self.parse_arguments(arguments)
        timeout_ms = session.config.state_timeout_ms

        try:
            snapshot: EditorStateSnapshot = await session.request(
                ExchangeKind.STATE, GetEditorStateMessage(), timeout_ms
            )
        except TimeoutError as e:
            raise TimeoutError(
                f"Editor state request timed out after {timeout_ms / 1000:g} seconds. "
                "The Unity Editor may be busy compiling or reloading."
            ) from e

        if args.format == FORMAT_SCRIPTS_ONLY:
            return snapshot.scripts()
        if args.format == FORMAT_NO_SCRIPTS:
            return snapshot.without_scripts()
        return snapshot.to_dict()
