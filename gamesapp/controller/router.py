"""Message router: decode a raw subscription chunk and hand it to the handler for its topic."""

import logging
from typing import Awaitable, Callable, Iterable

from pydantic import ValidationError

from gamesapp.bus.client import RawHandler
from gamesapp.bus.framing import ParseError, parse_frame
from gamesapp.bus.models import ControlBody, Envelope, UiEventBody, decode_body
from gamesapp.bus.topics import Topics

logger = logging.getLogger(__name__)

ControlHandler = Callable[[Envelope, ControlBody], Awaitable[None]]
EventHandler = Callable[[Envelope, UiEventBody], Awaitable[None]]


class MessageRouter:
    """taskmanager -> control handler; UI/UC event topics -> event handler; anything else dropped."""

    def __init__(
        self,
        on_control: ControlHandler,
        on_event: EventHandler,
        control_topic: str = Topics.TASKMANAGER,
        event_topics: Iterable[str] = (Topics.UI_EVENTS, Topics.UC_EVENTS),
    ) -> None:
        self._on_control = on_control
        self._on_event = on_event
        self._control_topic = control_topic
        self._event_topics = frozenset(event_topics)

    def handler_for(self, topic: str) -> RawHandler:
        """Bus subscription handler bound to `topic`."""

        async def _handle(raw: str) -> None:
            await self.dispatch(raw, topic)

        return _handle

    async def dispatch(self, raw: str, topic: str) -> None:
        data = parse_frame(raw)
        if isinstance(data, ParseError):
            logger.warning("parse error on %s: %s; dropping %r", topic, data.reason, data.raw)
            return
        if topic == self._control_topic:
            envelope = self._envelope(data, topic)
            if envelope is None:
                return
            body = decode_body(envelope, ControlBody)
            if isinstance(body, ParseError):
                logger.warning("dropping control message: %s", body.reason)
                return
            await self._on_control(envelope, body)
        elif topic in self._event_topics:
            envelope = self._envelope(data, topic)
            if envelope is None:
                return
            event = decode_body(envelope, UiEventBody)
            if isinstance(event, ParseError):
                logger.warning("dropping %s event: %s", topic, event.reason)
                return
            await self._on_event(envelope, event)
        else:
            logger.debug("no route for topic %s", topic)

    @staticmethod
    def _envelope(data: dict, topic: str) -> Envelope | None:
        try:
            return Envelope.model_validate(data)
        except ValidationError:
            logger.warning("Wrong message format on %s. No `body` found.", topic)
            return None
