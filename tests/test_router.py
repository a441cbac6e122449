"""Tests for MessageRouter.dispatch: parse, route by topic, drop malformed input."""

import json
from unittest.mock import AsyncMock

import pytest

from conftest import frame
from gamesapp.bus.models import ControlBody, UiEventBody
from gamesapp.controller.router import MessageRouter


@pytest.fixture
def handlers() -> tuple[AsyncMock, AsyncMock]:
    return AsyncMock(), AsyncMock()


@pytest.fixture
def router(handlers: tuple[AsyncMock, AsyncMock]) -> MessageRouter:
    on_control, on_event = handlers
    return MessageRouter(on_control=on_control, on_event=on_event)


class TestMessageRouterDispatch:
    @pytest.mark.asyncio
    async def test_taskmanager_goes_to_control(self, router, handlers) -> None:
        on_control, on_event = handlers
        await router.dispatch(frame({"ability": "games", "command": "start"}, "abc"), "taskmanager")
        on_control.assert_awaited_once()
        envelope, body = on_control.await_args.args
        assert isinstance(body, ControlBody)
        assert body.command == "start"
        assert envelope.correlation_id == "abc"
        on_event.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("topic", ["UIEvents", "UCEvents"])
    async def test_ui_topics_go_to_conversation(self, router, handlers, topic) -> None:
        on_control, on_event = handlers
        await router.dispatch(frame({"ability": "games", "action": "selectgame"}), topic)
        on_event.assert_awaited_once()
        _, body = on_event.await_args.args
        assert isinstance(body, UiEventBody)
        assert body.action == "selectgame"
        on_control.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_topic_is_ignored(self, router, handlers) -> None:
        await router.dispatch(frame({"ability": "games"}), "SomethingElse")
        handlers[0].assert_not_awaited()
        handlers[1].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_only_last_record_is_dispatched(self, router, handlers) -> None:
        raw = frame({"ability": "games", "command": "start"}) + frame(
            {"ability": "games", "command": "stop"}
        )
        await router.dispatch(raw, "taskmanager")
        _, body = handlers[0].await_args.args
        assert body.command == "stop"

    @pytest.mark.asyncio
    async def test_invalid_json_is_dropped(
        self, router, handlers, caplog: pytest.LogCaptureFixture
    ) -> None:
        raw = frame({"ability": "games"}) + "data: {broken\n\n"
        await router.dispatch(raw, "taskmanager")
        handlers[0].assert_not_awaited()
        assert "parse error" in caplog.text

    @pytest.mark.asyncio
    async def test_missing_body_is_dropped(
        self, router, handlers, caplog: pytest.LogCaptureFixture
    ) -> None:
        await router.dispatch("data: " + json.dumps({"correlationId": "x"}), "UIEvents")
        handlers[1].assert_not_awaited()
        assert "No `body` found" in caplog.text

    @pytest.mark.asyncio
    async def test_malformed_body_is_dropped(self, router, handlers) -> None:
        await router.dispatch("data: " + json.dumps({"body": "{oops"}), "UIEvents")
        handlers[1].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_handler_for_binds_topic(self, router, handlers) -> None:
        handle = router.handler_for("UCEvents")
        await handle(frame({"ability": "games", "event": "config"}))
        handlers[1].assert_awaited_once()
