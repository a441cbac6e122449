"""Shared fixtures: an in-memory bus implementing EventBusClient."""

import asyncio
import json
from pathlib import Path
from typing import Any

import pytest

from gamesapp.bus.client import BusErrorKind, BusResult, RawHandler
from gamesapp.catalog import GameCatalog
from gamesapp.i18n import Translator


async def wait_until(predicate, timeout: float = 0.5) -> None:
    """Poll predicate until it holds; fail the test if it never does."""
    for _ in range(int(timeout / 0.01)):
        if predicate():
            return
        await asyncio.sleep(0.01)
    assert predicate()


class FakeBus:
    """In-memory bus. Records every call; a second subscribe under the same identity is refused."""

    def __init__(self, topics: list[str] | None = None) -> None:
        self.topics: list[str] = list(topics or [])
        self.subscriptions: dict[str, dict[str, RawHandler]] = {}
        self.published: list[tuple[str, dict[str, Any]]] = []
        self.calls: list[tuple[str, ...]] = []
        # op name -> result returned instead of performing the op
        self.fail: dict[str, BusResult] = {}
        self.closed = False

    def _failure(self, op: str) -> BusResult | None:
        return self.fail.get(op)

    async def list_topics(self) -> BusResult[list[str]]:
        self.calls.append(("list_topics",))
        return self._failure("list_topics") or BusResult.success(list(self.topics))

    async def create_topic(self, name: str) -> BusResult[None]:
        self.calls.append(("create_topic", name))
        if failed := self._failure("create_topic"):
            return failed
        if name in self.topics:
            return BusResult.failure(BusErrorKind.STATUS, "HTTP 409", 409)
        self.topics.append(name)
        return BusResult.success()

    async def delete_topic(self, name: str) -> BusResult[None]:
        self.calls.append(("delete_topic", name))
        if failed := self._failure("delete_topic"):
            return failed
        if name not in self.topics:
            return BusResult.failure(BusErrorKind.STATUS, "HTTP 404", 404)
        self.topics.remove(name)
        return BusResult.success()

    async def list_subscribers(self, topic: str) -> BusResult[list[str]]:
        self.calls.append(("list_subscribers", topic))
        return self._failure("list_subscribers") or BusResult.success(
            list(self.subscriptions.get(topic, {}))
        )

    async def subscribe(self, topic: str, subscriber: str, handler: RawHandler) -> BusResult[None]:
        self.calls.append(("subscribe", topic, subscriber))
        if failed := self._failure("subscribe"):
            return failed
        subs = self.subscriptions.setdefault(topic, {})
        if subscriber in subs:
            return BusResult.failure(BusErrorKind.STATUS, "HTTP 409", 409)
        subs[subscriber] = handler
        return BusResult.success()

    async def unsubscribe(self, topic: str, subscriber: str) -> BusResult[None]:
        self.calls.append(("unsubscribe", topic, subscriber))
        if failed := self._failure("unsubscribe"):
            return failed
        if subscriber not in self.subscriptions.get(topic, {}):
            return BusResult.failure(BusErrorKind.STATUS, "HTTP 404", 404)
        del self.subscriptions[topic][subscriber]
        return BusResult.success()

    async def publish(self, topic: str, envelope: dict[str, Any]) -> BusResult[None]:
        self.calls.append(("publish", topic))
        if failed := self._failure("publish"):
            return failed
        if topic not in self.topics:
            return BusResult.failure(BusErrorKind.STATUS, "HTTP 404", 404)
        self.published.append((topic, envelope))
        return BusResult.success()

    async def aclose(self) -> None:
        self.closed = True

    async def deliver(self, topic: str, body: dict[str, Any], correlation_id: str | None = None) -> None:
        """Push a message to every handler subscribed to `topic`, framed like the bus stream."""
        raw = frame(body, correlation_id)
        for handler in list(self.subscriptions.get(topic, {}).values()):
            await handler(raw)

    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(env["body"]) for _, env in self.published]

    def op_names(self) -> list[str]:
        return [c[0] for c in self.calls]


def frame(body: dict[str, Any], correlation_id: str | None = None) -> str:
    envelope: dict[str, Any] = {"body": json.dumps(body)}
    if correlation_id is not None:
        envelope["correlationId"] = correlation_id
    return "data: " + json.dumps(envelope) + "\n\n"


@pytest.fixture
def fake_bus() -> FakeBus:
    return FakeBus(topics=["taskmanager"])


@pytest.fixture
def catalog(tmp_path: Path) -> GameCatalog:
    games = tmp_path / "games"
    games.mkdir()
    (games / "mario.swf").write_bytes(b"FWS-mario")
    (games / "luigi.swf").write_bytes(b"FWS-luigi")
    return GameCatalog.scan(games)


@pytest.fixture
def translator() -> Translator:
    return Translator(
        {
            "en-GB": {
                "Which game would you like to play?": "Which game would you like to play?",
                "What would you like to do?": "What would you like to do?",
                "Play? ": "Play? ",
                "Instructions? ": "Instructions? ",
                "play_keywords": "play, start",
                "instructions_keywords": "instructions, help",
                "mario": "Super Mario",
                "mario instructions": "Jump on things.",
            },
            "it-IT": {
                "Which game would you like to play?": "A quale gioco vorresti giocare?",
                "What would you like to do?": "Cosa vorresti fare?",
                "Play? ": "Giocare? ",
                "Instructions? ": "Istruzioni? ",
                "play_keywords": "gioca, inizia",
                "instructions_keywords": "istruzioni, aiuto",
                "mario": "Super Mario",
                "mario instructions": "Salta sulle cose.",
            },
        }
    )
