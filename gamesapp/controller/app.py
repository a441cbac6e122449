"""GamesApp: wires the bus client to the lifecycle and conversation machines."""

import logging
from typing import Any

from gamesapp.bus.client import BusResult, EventBusClient
from gamesapp.bus.topics import Topics
from gamesapp.catalog import GameCatalog
from gamesapp.controller.conversation import ConversationMachine
from gamesapp.controller.lifecycle import LifecycleMachine
from gamesapp.controller.poller import TopicPoller
from gamesapp.controller.publisher import TopicPublisher
from gamesapp.controller.reconciler import SubscriptionReconciler
from gamesapp.controller.router import MessageRouter
from gamesapp.controller.session import SessionContext
from gamesapp.i18n import Translator
from gamesapp.settings import get_setting

logger = logging.getLogger(__name__)


class GamesApp:
    """One app on the bus: its topic, its subscriber identity and its conversation."""

    def __init__(
        self,
        bus: EventBusClient,
        catalog: GameCatalog,
        translator: Translator,
        settings: dict[str, Any],
    ) -> None:
        self.topic: str = get_setting(settings, "app.topic", "games")
        self.subscriber: str = get_setting(settings, "app.subscriber", "games_app")
        resource_topics: list[str] = get_setting(
            settings, "app.resource_topics", [Topics.UI_EVENTS, Topics.UC_EVENTS]
        )
        self.bus = bus
        self.session = SessionContext(locale=get_setting(settings, "app.locale", "en-GB"))
        self.publisher = TopicPublisher(bus, self.topic)
        self.poller = TopicPoller(bus, get_setting(settings, "controller.poll_interval", 0.5))
        self.reconciler = SubscriptionReconciler(bus)
        self.lifecycle = LifecycleMachine(
            bus=bus,
            session=self.session,
            publisher=self.publisher,
            poller=self.poller,
            reconciler=self.reconciler,
            subscriber_id=self.subscriber,
            resources=get_setting(settings, "app.resources", ["UI"]),
            resource_topics=resource_topics,
            config_request_interval=get_setting(
                settings, "controller.config_request_interval", 1.0
            ),
            strict_resource_subscription=bool(
                get_setting(settings, "controller.strict_resource_subscription", False)
            ),
        )
        self.conversation = ConversationMachine(
            topic=self.topic,
            session=self.session,
            catalog=catalog,
            translator=translator,
            publisher=self.publisher,
            file_host=get_setting(settings, "app.advertised_host", "localhost"),
            file_port=int(get_setting(settings, "server.port", 8085)),
        )
        self.router = MessageRouter(
            on_control=self.lifecycle.handle_control,
            on_event=self.conversation.handle_event,
            event_topics=resource_topics,
        )
        self.lifecycle.set_router(self.router)

    async def run(self) -> BusResult[None]:
        """Wait for the task manager topic, then subscribe to it under the app identity."""
        await self.poller.ensure_topic(Topics.TASKMANAGER)
        logger.info("topic: %s exists, will try to subscribe", Topics.TASKMANAGER)
        return await self.reconciler.reconcile_subscribe(
            Topics.TASKMANAGER,
            self.subscriber,
            self.router.handler_for(Topics.TASKMANAGER),
        )

    async def close(self) -> None:
        await self.lifecycle.shutdown()
        await self.bus.aclose()
