"""Agent-facing tools exposed by the relay."""

from unity_editor_relay.tools.base import Tool, ToolDefinition, ToolExample, ToolRegistry
from unity_editor_relay.tools.editor_state import GetEditorStateTool
from unity_editor_relay.tools.execute_command import ExecuteEditorCommandTool
from unity_editor_relay.tools.logs import GetLogsTool


def get_all_tools() -> ToolRegistry:
    return ToolRegistry([GetEditorStateTool(), ExecuteEditorCommandTool(), GetLogsTool()])


__all__ = [
    "ExecuteEditorCommandTool",
    "GetEditorStateTool",
    "GetLogsTool",
    "Tool",
    "ToolDefinition",
    "ToolExample",
    "ToolRegistry",
    "get_all_tools",
]
