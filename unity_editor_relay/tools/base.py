"""Tool base classes and the fixed tool registry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

import pydantic
from pydantic import BaseModel

from unity_editor_relay.exceptions import ToolNotFoundError, ValidationError

if TYPE_CHECKING:
    from unity_editor_relay.session import RelaySession


@dataclass(frozen=True)
class ToolExample:
    description: str
    input: dict[str, Any]
    output: str


@dataclass(frozen=True)
class ToolDefinition:
    """Static tool metadata advertised to the agent"""

    name: str
    description: str
    input_schema: dict[str, Any]
    category: str = ""
    tags: tuple[str, ...] = ()
    examples: tuple[ToolExample, ...] = ()


def format_validation_error(error: pydantic.ValidationError) -> str:
    """Flatten pydantic errors into one readable line"""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        parts.append(f"{location}: {item['msg']}")
    return "Invalid arguments: " + "; ".join(parts)


class Tool(ABC):
    """A stateless validate -> request -> transform pipeline"""

    definition: ClassVar[ToolDefinition]
    arguments_model: ClassVar[type[BaseModel]]
    # Tools answering from local state skip the connection gate
    requires_connection: ClassVar[bool] = True

    @property
    def name(self) -> str:
        return self.definition.name

    def parse_arguments(self, arguments: dict[str, Any] | None) -> Any:
        """Validate raw arguments.

        Raises:
            ValidationError: If the arguments do not match the model.
        """
        try:
            return self.arguments_model.model_validate(arguments or {})
        except pydantic.ValidationError as e:
            raise ValidationError(format_validation_error(e)) from e

    @abstractmethod
    async def execute(self, arguments: dict[str, Any] | None, session: RelaySession) -> Any:
        """Run the tool and return a JSON-serialisable result"""


class ToolRegistry:
    """Immutable name -> tool mapping"""

    def __init__(self, tools: Iterable[Tool]) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self._tools[tool.name] = tool

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def get(self, name: str) -> Tool:
        """Exact-name lookup.

        Raises:
            ToolNotFoundError: With the list of valid names.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name, self.names)
        return tool

    def definitions(self) -> list[ToolDefinition]:
        return [tool.definition for tool in self._tools.values()]
