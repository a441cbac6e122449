"""Topic existence poller: wait, at a constant interval, until a topic shows up on the bus."""

import asyncio
import logging

from gamesapp.bus.client import EventBusClient

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.5


class TopicPoller:
    """Retries forever. Cancel the awaiting task to give up."""

    def __init__(self, bus: EventBusClient, interval: float = DEFAULT_POLL_INTERVAL) -> None:
        self._bus = bus
        self._interval = interval

    async def ensure_topic(self, name: str) -> int:
        """Return once `name` is listed by the bus. Returns the number of attempts made."""
        attempt = 0
        while True:
            attempt += 1
            result = await self._bus.list_topics()
            if result.ok and name in (result.value or []):
                logger.info("topic %s exists (attempt %d)", name, attempt)
                return attempt
            if result.ok:
                logger.info(
                    "topic %s not found. Will try again in %.1f seconds...",
                    name,
                    self._interval,
                )
            else:
                # A broken bus connection looks the same as a missing topic to the caller.
                logger.warning(
                    "listing topics failed while waiting for %s (%s). Will try again in %.1f seconds...",
                    name,
                    result,
                    self._interval,
                )
            await asyncio.sleep(self._interval)
