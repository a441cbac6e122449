"""App lifecycle on the bus, driven by task manager control messages.

    start       Idle -> TopicEnsuring -> Announced
    subscribed  Announced -> AwaitingSubscriptionAck -> Operating
    stop        Operating -> Stopping -> Stopped

Replies to the task manager carry the inbound correlation id unchanged.
"""

import asyncio
import logging
from enum import Enum

from gamesapp.bus.client import EventBusClient
from gamesapp.bus.models import (
    ConfigRequest,
    ControlBody,
    CorrelationId,
    Envelope,
    ResourcesDeclaration,
    StoppedNotice,
)
from gamesapp.bus.topics import ControlCommand, ControlState
from gamesapp.controller.poller import TopicPoller
from gamesapp.controller.publisher import TopicPublisher
from gamesapp.controller.reconciler import SubscriptionReconciler
from gamesapp.controller.router import MessageRouter
from gamesapp.controller.session import SessionContext
from gamesapp.errors import GamesAppError, TopicDeleteError, UnsubscribeError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_REQUEST_INTERVAL = 1.0


class LifecycleState(Enum):
    IDLE = "idle"
    TOPIC_ENSURING = "topic_ensuring"
    ANNOUNCED = "announced"
    AWAITING_SUBSCRIPTION_ACK = "awaiting_subscription_ack"
    OPERATING = "operating"
    STOPPING = "stopping"
    STOPPED = "stopped"


_START_FROM = frozenset({LifecycleState.IDLE, LifecycleState.STOPPED})
_STOP_FROM = frozenset(
    {
        LifecycleState.ANNOUNCED,
        LifecycleState.AWAITING_SUBSCRIPTION_ACK,
        LifecycleState.OPERATING,
        LifecycleState.STOPPING,
    }
)


def _log_task_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("%s failed: %s", task.get_name(), exc, exc_info=exc)


class LifecycleMachine:
    """Owns the app topic, the resource subscriptions and the config request loop."""

    def __init__(
        self,
        bus: EventBusClient,
        session: SessionContext,
        publisher: TopicPublisher,
        poller: TopicPoller,
        reconciler: SubscriptionReconciler,
        subscriber_id: str,
        resources: list[str],
        resource_topics: list[str],
        config_request_interval: float = DEFAULT_CONFIG_REQUEST_INTERVAL,
        strict_resource_subscription: bool = False,
    ) -> None:
        self._bus = bus
        self._session = session
        self._publisher = publisher
        self._poller = poller
        self._reconciler = reconciler
        self._subscriber_id = subscriber_id
        self._resources = list(resources)
        self._resource_topics = list(resource_topics)
        self._config_request_interval = config_request_interval
        self._strict = strict_resource_subscription
        self._router: MessageRouter | None = None
        self._state = LifecycleState.IDLE
        self._subscribed_topics: set[str] = set()
        # Topics whose subscribe call may have reached the bus but is not confirmed yet.
        self._pending_topics: set[str] = set()
        self._resource_tasks: dict[str, asyncio.Task[None]] = {}
        self._config_task: asyncio.Task[None] | None = None
        self._operating_task: asyncio.Task[None] | None = None

    @property
    def topic(self) -> str:
        return self._publisher.topic

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def subscribed_topics(self) -> frozenset[str]:
        return frozenset(self._subscribed_topics)

    def set_router(self, router: MessageRouter) -> None:
        """Router whose handlers are attached to resource topic subscriptions."""
        self._router = router

    def _transition(self, new_state: LifecycleState) -> None:
        logger.debug("lifecycle %s -> %s", self._state.value, new_state.value)
        self._state = new_state

    async def handle_control(self, envelope: Envelope, body: ControlBody) -> None:
        """Entry point for every decoded task manager message."""
        if body.ability != self.topic:
            logger.debug("ignoring control message for ability %r", body.ability)
            return
        correlation_id = envelope.reply_correlation_id
        if body.command is not None:
            match body.command:
                case ControlCommand.START:
                    await self.on_start(body.resources)
                case ControlCommand.STOP:
                    await self.on_stop(correlation_id)
                case _:
                    logger.warning("unhandled command %r", body.command)
        elif body.state is not None:
            match body.state:
                case ControlState.SUBSCRIBED:
                    await self.on_subscribed(correlation_id)
                case ControlState.RUNNING:
                    pass
                case _:
                    logger.warning("Wrong message format. Unknown state %r.", body.state)
        else:
            logger.warning("Wrong message format. No command or state.")

    async def on_start(self, resources: list[str] | None = None) -> None:
        """Create the app topic unless it already exists."""
        if self._state not in _START_FROM:
            logger.info("ignoring start in state %s", self._state.value)
            return
        if resources:
            logger.debug("start requested with resources %s", resources)
        self._transition(LifecycleState.TOPIC_ENSURING)
        topics = await self._bus.list_topics()
        if not topics.ok:
            logger.warning("could not list topics (%s); trying to create %s", topics, self.topic)
        if topics.ok and self.topic in (topics.value or []):
            logger.info("%s existed already.", self.topic)
        else:
            created = await self._bus.create_topic(self.topic)
            if not created.ok:
                logger.error("failed to create topic: %s (%s) aborting...", self.topic, created)
                self._transition(LifecycleState.IDLE)
                return
            logger.info("%s created successfully.", self.topic)
        self._transition(LifecycleState.ANNOUNCED)

    async def on_subscribed(self, correlation_id: CorrelationId | None = None) -> None:
        """Declare resources, subscribe to resource topics, and ask the UI for its config."""
        if self._state is not LifecycleState.ANNOUNCED:
            logger.info("ignoring subscribed ack in state %s", self._state.value)
            return
        self._transition(LifecycleState.AWAITING_SUBSCRIPTION_ACK)
        await self._publisher.publish(
            ResourcesDeclaration(resources=self._resources), correlation_id
        )
        for topic in self._resource_topics:
            self._start_resource_subscription(topic)
        self._start_config_requests()
        if self._strict and self._resource_tasks:
            # Runs beside the control stream so a stop can still arrive while topics are missing.
            self._operating_task = asyncio.create_task(
                self._operate_when_subscribed(list(self._resource_tasks.values())),
                name="await-resources",
            )
            self._operating_task.add_done_callback(_log_task_failure)
            return
        self._transition(LifecycleState.OPERATING)

    async def _operate_when_subscribed(self, tasks: list[asyncio.Task[None]]) -> None:
        """Enter Operating once every resource subscription task has finished."""
        await asyncio.wait(tasks)
        if any(t.cancelled() for t in tasks):
            return
        if self._state is not LifecycleState.AWAITING_SUBSCRIPTION_ACK:
            return
        logger.info("subscribed to every resource topic: %s", sorted(self._subscribed_topics))
        self._transition(LifecycleState.OPERATING)

    async def on_stop(self, correlation_id: CorrelationId | None = None) -> None:
        """Unsubscribe resources, announce `stopped`, then delete the app topic."""
        if self._state not in _STOP_FROM:
            logger.info("ignoring stop in state %s", self._state.value)
            return
        self._transition(LifecycleState.STOPPING)
        await self._cancel_background()
        for topic in sorted(self._subscribed_topics | self._pending_topics):
            result = await self._bus.unsubscribe(topic, self._subscriber_id)
            if not result.ok and topic not in self._subscribed_topics and result.not_found:
                self._pending_topics.discard(topic)
                logger.debug("no subscription to %s was left on the bus", topic)
                continue
            if not result.ok:
                raise UnsubscribeError(
                    f"{self._subscriber_id} failed to unsubscribe from topic: {topic} ({result})"
                )
            self._subscribed_topics.discard(topic)
            self._pending_topics.discard(topic)
            logger.info("%s successfully unsubscribed from topic %s", self._subscriber_id, topic)

        published = await self._publisher.publish(StoppedNotice(), correlation_id)
        if not published.ok:
            # The topic stays until the stop notice is delivered; a repeated stop retries.
            return
        deleted = await self._bus.delete_topic(self.topic)
        if not deleted.ok:
            raise TopicDeleteError(f"failed to delete topic: {self.topic} ({deleted}) aborting...")
        logger.info("%s deleted successfully.", self.topic)
        self._session.subscribed = False
        self._transition(LifecycleState.STOPPED)

    async def shutdown(self) -> None:
        """Cancel background work on process exit. Does not touch the bus."""
        await self._cancel_background()

    def _start_resource_subscription(self, topic: str) -> None:
        existing = self._resource_tasks.get(topic)
        if existing is not None and not existing.done():
            return
        task = asyncio.create_task(self._subscribe_resource(topic), name=f"subscribe:{topic}")
        task.add_done_callback(_log_task_failure)
        self._resource_tasks[topic] = task

    async def _subscribe_resource(self, topic: str) -> None:
        if self._router is None:
            raise GamesAppError("lifecycle has no router to attach subscriptions to")
        await self._poller.ensure_topic(topic)
        logger.info("topic: %s exists, will try to subscribe", topic)
        self._pending_topics.add(topic)
        result = await self._reconciler.reconcile_subscribe(
            topic, self._subscriber_id, self._router.handler_for(topic)
        )
        self._pending_topics.discard(topic)
        if result.ok:
            self._subscribed_topics.add(topic)

    def _start_config_requests(self) -> None:
        if self._config_task is not None and not self._config_task.done():
            return
        self._config_task = asyncio.create_task(
            self._request_config_until_subscribed(), name="config-requests"
        )
        self._config_task.add_done_callback(_log_task_failure)

    async def _request_config_until_subscribed(self) -> None:
        """Ask the UI for username/locale every interval until a config event arrives."""
        while True:
            await self._publisher.publish(ConfigRequest())
            await asyncio.sleep(self._config_request_interval)
            if self._session.subscribed:
                logger.info("UI sent its config; no more config requests")
                return

    async def _cancel_background(self) -> None:
        tasks = [t for t in self._resource_tasks.values() if not t.done()]
        if self._operating_task is not None and not self._operating_task.done():
            tasks.append(self._operating_task)
        if self._config_task is not None and not self._config_task.done():
            tasks.append(self._config_task)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._resource_tasks.clear()
        self._config_task = None
        self._operating_task = None
