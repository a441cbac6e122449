"""Subscription reconciler: the only path to (re)subscribe under the app's subscriber identity.

A subscription is keyed by subscriber name, not by process. A crashed run
leaves its entry behind, so an existing entry is removed before subscribing.
"""

import logging

from gamesapp.bus.client import BusResult, EventBusClient, RawHandler

logger = logging.getLogger(__name__)


class SubscriptionReconciler:
    def __init__(self, bus: EventBusClient) -> None:
        self._bus = bus

    async def reconcile_subscribe(
        self, topic: str, subscriber_id: str, handler: RawHandler
    ) -> BusResult[None]:
        """Unsubscribe a stale `subscriber_id` from `topic` if listed, then subscribe fresh."""
        subscribers = await self._bus.list_subscribers(topic)
        if not subscribers.ok:
            logger.warning(
                "could not list subscribers of %s (%s); subscribing directly", topic, subscribers
            )
        if subscribers.ok and subscriber_id in (subscribers.value or []):
            logger.info(
                "subscriber %s to topic %s exists, removing...", subscriber_id, topic
            )
            removed = await self._bus.unsubscribe(topic, subscriber_id)
            if removed.ok:
                logger.info(
                    "subscriber %s to topic %s removed, re-subscribing", subscriber_id, topic
                )
            else:
                logger.warning(
                    "removing stale subscriber %s from %s failed (%s); re-subscribing anyway",
                    subscriber_id,
                    topic,
                    removed,
                )
        else:
            logger.info(
                "subscriber %s to topic %s does not exist, subscribing", subscriber_id, topic
            )
        result = await self._bus.subscribe(topic, subscriber_id, handler)
        if result.ok:
            logger.info("%s subscribed to %s", subscriber_id, topic)
        else:
            logger.warning("%s failed to subscribe to %s: %s", subscriber_id, topic, result)
        return result
