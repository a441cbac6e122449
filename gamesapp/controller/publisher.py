"""Publishes outbound bodies to the app's own topic, which must still exist."""

import json
import logging

from pydantic import BaseModel

from gamesapp.bus.client import BusResult, EventBusClient
from gamesapp.bus.models import CorrelationId, make_envelope
from gamesapp.errors import TopicMissingError

logger = logging.getLogger(__name__)


class TopicPublisher:
    def __init__(self, bus: EventBusClient, topic: str) -> None:
        self._bus = bus
        self._topic = topic

    @property
    def topic(self) -> str:
        return self._topic

    async def publish(
        self, body: BaseModel, correlation_id: CorrelationId | None = None
    ) -> BusResult[None]:
        """Publish `body` wrapped in an envelope. Raises TopicMissingError if the topic is gone."""
        envelope = make_envelope(body, correlation_id)
        topics = await self._bus.list_topics()
        if not topics.ok or self._topic not in (topics.value or []):
            raise TopicMissingError(f"{self._topic} no longer exists ({topics})")
        result = await self._bus.publish(self._topic, envelope)
        if result.ok:
            logger.info("successfully posted: %s", json.dumps(envelope))
        else:
            logger.warning("post failed: %s error: %s", json.dumps(envelope), result)
        return result
