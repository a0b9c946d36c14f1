"""Shared fixtures: an in-memory stand-in for the Editor WebSocket endpoint"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any

import pytest

from unity_editor_relay.config import BridgeConfig
from unity_editor_relay.protocol import Message
from unity_editor_relay.session import RelaySession


class FakeEndpoint:
    """EditorEndpoint double that records sent envelopes.

    ``responder`` is called with every sent message and may schedule
    replies through ``deliver``.
    """

    def __init__(self, connected: bool = True) -> None:
        self.connected = connected
        self.sent: list[Message] = []
        self.wait_calls: list[int] = []
        self.connect_on_wait = False
        self.send_result = True
        self.responder: Callable[[Message], None] | None = None
        self.started = False
        self.port = 0
        self.on_message: Callable[[str | bytes], None] | None = None
        self.on_connect: Callable[[], None] | None = None
        self.on_close: Callable[[], None] | None = None
        self.on_error: Callable[[Exception], None] | None = None

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.started = False

    def is_connected(self) -> bool:
        return self.connected

    async def send(self, message: Message) -> bool:
        if not self.connected or not self.send_result:
            return False
        self.sent.append(message)
        if self.responder is not None:
            self.responder(message)
        return True

    async def wait_for_connection(self, timeout_ms: int) -> bool:
        self.wait_calls.append(timeout_ms)
        if self.connect_on_wait:
            self.connected = True
        return self.connected

    def deliver(self, payload: dict[str, Any] | str) -> None:
        """Feed one inbound frame to the router"""
        assert self.on_message is not None
        self.on_message(payload if isinstance(payload, str) else json.dumps(payload))

    def deliver_soon(self, payload: dict[str, Any] | str, delay: float = 0.0) -> None:
        asyncio.get_running_loop().call_later(delay, self.deliver, payload)

    def disconnect(self) -> None:
        self.connected = False
        if self.on_close is not None:
            self.on_close()


def command_reply(message: Message, result: Any = None, **overrides: Any) -> dict[str, Any]:
    data = {"result": result, "logs": [], "errors": [], "warnings": [], "executionSuccess": True}
    data.update(overrides)
    return {"type": "commandResult", "id": message.id, "data": data}


def state_reply(message: Message | None = None, **overrides: Any) -> dict[str, Any]:
    data = {
        "activeGameObjects": ["Main Camera", "Directional Light"],
        "selectedObjects": ["Main Camera"],
        "playModeState": "Stopped",
        "sceneHierarchy": [{"name": "Main Camera", "components": ["Transform", "Camera"], "children": []}],
        "projectStructure": {
            "scenes": ["Assets/Scenes/Main.unity"],
            "scripts": ["Assets/Scripts/Player.cs", "Packages/com.vrchat.udon/Runtime/Udon.cs"],
            "prefabs": ["Packages/com.vrchat.base/Prefabs/VRCWorld.prefab"],
        },
    }
    data.update(overrides)
    payload: dict[str, Any] = {"type": "editorState", "data": data}
    if message is not None:
        payload["id"] = message.id
    return payload


@pytest.fixture
def endpoint() -> FakeEndpoint:
    return FakeEndpoint()


@pytest.fixture
def config() -> BridgeConfig:
    return BridgeConfig(
        command_timeout_ms=1000,
        state_timeout_ms=1000,
        connect_retries=2,
        connect_retry_interval_ms=10,
    )


@pytest.fixture
def session(config: BridgeConfig, endpoint: FakeEndpoint) -> RelaySession:
    return RelaySession(config, endpoint=endpoint)  # type: ignore[arg-type]
