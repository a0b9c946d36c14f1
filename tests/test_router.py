"""Tests for unity_editor_relay/router.py - Inbound dispatch"""

from __future__ import annotations

import json

import pytest

from unity_editor_relay.log_buffer import LogBuffer
from unity_editor_relay.pending import ExchangeKind, PendingExchangeRegistry
from unity_editor_relay.protocol import CommandResult, EditorStateSnapshot
from unity_editor_relay.router import MessageRouter


class TestMessageRouter:
    """Test MessageRouter"""

    @pytest.fixture
    def log_buffer(self) -> LogBuffer:
        return LogBuffer(10)

    @pytest.fixture
    def registry(self) -> PendingExchangeRegistry:
        return PendingExchangeRegistry()

    @pytest.fixture
    def sut(self, log_buffer: LogBuffer, registry: PendingExchangeRegistry) -> MessageRouter:
        return MessageRouter(log_buffer, registry)

    def test_log_appended(self, sut: MessageRouter, log_buffer: LogBuffer) -> None:
        sut.dispatch(json.dumps({"type": "log", "data": {"message": "hello", "logType": "Warning"}}))
        assert [r.message for r in log_buffer] == ["hello"]

    @pytest.mark.asyncio
    async def test_command_result_resolves(self, sut: MessageRouter, registry: PendingExchangeRegistry) -> None:
        exchange = registry.register(ExchangeKind.COMMAND, "req-1")
        sut.dispatch(json.dumps({"type": "commandResult", "id": "req-1", "data": {"result": 1}}))

        result = exchange.future.result()
        assert isinstance(result, CommandResult)
        assert result.result == 1

    @pytest.mark.asyncio
    async def test_editor_state_resolves_without_id(
        self, sut: MessageRouter, registry: PendingExchangeRegistry
    ) -> None:
        exchange = registry.register(ExchangeKind.STATE, "req-1")
        sut.dispatch(json.dumps({"type": "editorState", "data": {"activeGameObjects": ["Cube"]}}))

        snapshot = exchange.future.result()
        assert isinstance(snapshot, EditorStateSnapshot)
        assert snapshot.active_game_objects == ["Cube"]

    @pytest.mark.asyncio
    async def test_malformed_frame_does_not_disturb_pending(
        self, sut: MessageRouter, registry: PendingExchangeRegistry, log_buffer: LogBuffer
    ) -> None:
        exchange = registry.register(ExchangeKind.COMMAND, "req-1")

        sut.dispatch("{definitely not json")
        sut.dispatch(json.dumps({"type": "commandResult", "id": "req-1", "data": "bad"}))
        assert not exchange.future.done()
        assert len(log_buffer) == 0

        sut.dispatch(json.dumps({"type": "commandResult", "id": "req-1", "data": {"result": "ok"}}))
        assert exchange.future.result().result == "ok"

    @pytest.mark.asyncio
    async def test_unknown_type_changes_nothing(
        self, sut: MessageRouter, registry: PendingExchangeRegistry, log_buffer: LogBuffer
    ) -> None:
        exchange = registry.register(ExchangeKind.COMMAND, "req-1")
        sut.dispatch(json.dumps({"type": "somethingElse", "id": "req-1", "data": {"message": "x"}}))

        assert not exchange.future.done()
        assert registry.pending_count == 1
        assert len(log_buffer) == 0

    @pytest.mark.asyncio
    async def test_package_paths_filtered(self, log_buffer: LogBuffer, registry: PendingExchangeRegistry) -> None:
        sut = MessageRouter(log_buffer, registry, package_path_prefix="Packages/")
        exchange = registry.register(ExchangeKind.STATE, "req-1")
        sut.dispatch(
            json.dumps(
                {
                    "type": "editorState",
                    "id": "req-1",
                    "data": {"projectStructure": {"scripts": ["Assets/A.cs", "Packages/x/B.cs"]}},
                }
            )
        )
        assert exchange.future.result().project_structure == {"scripts": ["Assets/A.cs"]}

    @pytest.mark.asyncio
    async def test_package_paths_kept_by_default(self, sut: MessageRouter, registry: PendingExchangeRegistry) -> None:
        exchange = registry.register(ExchangeKind.STATE, "req-1")
        sut.dispatch(
            json.dumps(
                {"type": "editorState", "id": "req-1", "data": {"projectStructure": {"scripts": ["Packages/x/B.cs"]}}}
            )
        )
        assert exchange.future.result().scripts() == ["Packages/x/B.cs"]
