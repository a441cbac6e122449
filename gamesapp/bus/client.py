"""Event bus client: topic and subscription CRUD plus publish over the bus REST API.

Every call returns a BusResult instead of raising on transport problems, so
callers decide per call whether a failure is retryable, ignorable or fatal.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Awaitable, Callable, Generic, Protocol, TypeVar, runtime_checkable
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

RawHandler = Callable[[str], Awaitable[None]]

DEFAULT_TIMEOUT = 10.0


class BusErrorKind(StrEnum):
    TRANSPORT = "transport"  # connection refused, timeout, stream broken
    STATUS = "status"  # bus answered with a non-2xx status
    DECODE = "decode"  # bus answered 2xx with an unexpected body


@dataclass(frozen=True)
class BusResult(Generic[T]):
    """Outcome of a bus call: a value on success, an error kind otherwise."""

    ok: bool
    value: T | None = None
    error: BusErrorKind | None = None
    detail: str = ""
    status: int | None = None  # HTTP status when error is STATUS

    @classmethod
    def success(cls, value: T | None = None) -> "BusResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(
        cls, error: BusErrorKind, detail: str = "", status: int | None = None
    ) -> "BusResult[T]":
        return cls(ok=False, error=error, detail=detail, status=status)

    @property
    def not_found(self) -> bool:
        return self.error is BusErrorKind.STATUS and self.status == 404

    def __str__(self) -> str:
        if self.ok:
            return "ok"
        return f"{self.error}: {self.detail}" if self.detail else str(self.error)


@runtime_checkable
class EventBusClient(Protocol):
    """Operations the controller needs from the bus."""

    async def list_topics(self) -> BusResult[list[str]]: ...

    async def create_topic(self, name: str) -> BusResult[None]: ...

    async def delete_topic(self, name: str) -> BusResult[None]: ...

    async def list_subscribers(self, topic: str) -> BusResult[list[str]]: ...

    async def subscribe(
        self, topic: str, subscriber: str, handler: RawHandler
    ) -> BusResult[None]: ...

    async def unsubscribe(self, topic: str, subscriber: str) -> BusResult[None]: ...

    async def publish(self, topic: str, envelope: dict[str, Any]) -> BusResult[None]: ...

    async def aclose(self) -> None: ...


def _topic_path(topic: str) -> str:
    return f"/topics/{quote(topic, safe='')}"


def _subscription_path(topic: str, subscriber: str) -> str:
    return f"{_topic_path(topic)}/subscriptions/{quote(subscriber, safe='')}"


class HttpEventBusClient:
    """EventBusClient over HTTP (httpx). Subscriptions are long-lived streaming GETs."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )
        self._streams: dict[tuple[str, str], asyncio.Task[None]] = {}

    async def _request(self, method: str, path: str, **kwargs: Any) -> BusResult[httpx.Response]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            return BusResult.failure(BusErrorKind.TRANSPORT, f"{method} {path}: {e!r}")
        if response.is_error:
            return BusResult.failure(
                BusErrorKind.STATUS,
                f"{method} {path}: HTTP {response.status_code}",
                response.status_code,
            )
        return BusResult.success(response)

    async def _get_names(self, path: str) -> BusResult[list[str]]:
        result = await self._request("GET", path)
        if not result.ok or result.value is None:
            return BusResult.failure(
                result.error or BusErrorKind.TRANSPORT, result.detail, result.status
            )
        try:
            data = result.value.json()
        except ValueError as e:
            return BusResult.failure(BusErrorKind.DECODE, f"GET {path}: {e}")
        if not isinstance(data, list):
            return BusResult.failure(BusErrorKind.DECODE, f"GET {path}: expected a JSON array")
        return BusResult.success([str(x) for x in data])

    async def _call(self, method: str, path: str, **kwargs: Any) -> BusResult[None]:
        result = await self._request(method, path, **kwargs)
        if not result.ok:
            return BusResult.failure(
                result.error or BusErrorKind.TRANSPORT, result.detail, result.status
            )
        return BusResult.success()

    async def list_topics(self) -> BusResult[list[str]]:
        return await self._get_names("/topics")

    async def create_topic(self, name: str) -> BusResult[None]:
        return await self._call("PUT", _topic_path(name))

    async def delete_topic(self, name: str) -> BusResult[None]:
        return await self._call("DELETE", _topic_path(name))

    async def list_subscribers(self, topic: str) -> BusResult[list[str]]:
        return await self._get_names(f"{_topic_path(topic)}/subscriptions")

    async def publish(self, topic: str, envelope: dict[str, Any]) -> BusResult[None]:
        return await self._call("POST", f"{_topic_path(topic)}/messages", json=envelope)

    async def subscribe(
        self, topic: str, subscriber: str, handler: RawHandler
    ) -> BusResult[None]:
        """Register the subscription, then read its stream in a background task."""
        path = _subscription_path(topic, subscriber)
        result = await self._call("PUT", path)
        if not result.ok:
            return result
        key = (topic, subscriber)
        await self._cancel_stream(key)
        self._streams[key] = asyncio.create_task(
            self._read_stream(topic, subscriber, handler),
            name=f"bus-stream:{topic}:{subscriber}",
        )
        return result

    async def unsubscribe(self, topic: str, subscriber: str) -> BusResult[None]:
        await self._cancel_stream((topic, subscriber))
        return await self._call("DELETE", _subscription_path(topic, subscriber))

    async def aclose(self) -> None:
        for key in list(self._streams):
            await self._cancel_stream(key)
        await self._client.aclose()

    def is_streaming(self, topic: str, subscriber: str) -> bool:
        task = self._streams.get((topic, subscriber))
        return task is not None and not task.done()

    async def _cancel_stream(self, key: tuple[str, str]) -> None:
        task = self._streams.pop(key, None)
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _read_stream(self, topic: str, subscriber: str, handler: RawHandler) -> None:
        path = _subscription_path(topic, subscriber)
        try:
            async with self._client.stream("GET", path, timeout=None) as response:
                if response.is_error:
                    logger.warning(
                        "Subscription stream %s refused: HTTP %d", path, response.status_code
                    )
                    return
                async for chunk in response.aiter_text():
                    if not chunk.strip():
                        continue
                    try:
                        await handler(chunk)
                    except Exception as e:
                        logger.exception(
                            "Handler for %s/%s failed: %s", topic, subscriber, e
                        )
        except httpx.HTTPError as e:
            logger.warning("Subscription stream %s broken: %r", path, e)
            return
        logger.info("Subscription stream %s closed by the bus", path)
