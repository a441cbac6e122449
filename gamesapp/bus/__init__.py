"""Event bus: client, wire models and raw framing."""

from gamesapp.bus.client import BusErrorKind, BusResult, EventBusClient, HttpEventBusClient
from gamesapp.bus.framing import ParseError, parse_frame
from gamesapp.bus.topics import Topics

__all__ = [
    "BusErrorKind",
    "BusResult",
    "EventBusClient",
    "HttpEventBusClient",
    "ParseError",
    "Topics",
    "parse_frame",
]
