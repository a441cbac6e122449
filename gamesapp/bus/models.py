"""Wire models: envelope, inbound bodies and outbound screens.

The envelope's `body` is JSON text, not a nested object, so every message is
decoded twice: once for the envelope and once for the body.
"""

import json
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gamesapp.bus.framing import ParseError
from gamesapp.bus.topics import ControlState, ScreenAction, Targets

__all__ = [
    "ArticleScreen",
    "ConfigRequest",
    "ControlBody",
    "CorrelationId",
    "Envelope",
    "ExternalScreen",
    "MenuOption",
    "OptionsScreen",
    "ResourcesDeclaration",
    "StoppedNotice",
    "UiEventBody",
    "decode_body",
    "make_envelope",
]

_BodyT = TypeVar("_BodyT", bound=BaseModel)

# Opaque: passed back exactly as received, string or number.
CorrelationId = str | int


class Envelope(BaseModel):
    """Bus message envelope. `correlationId` links a reply to its request."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    body: str
    correlation_id: CorrelationId | None = Field(default=None, alias="correlationId")
    message_id: CorrelationId | None = Field(default=None, alias="messageId")

    @property
    def reply_correlation_id(self) -> CorrelationId | None:
        """Id to put on a reply: the inbound correlation id, else the bus message id."""
        if self.correlation_id is not None:
            return self.correlation_id
        return self.message_id


class ControlBody(BaseModel):
    """Body of a task manager control message."""

    model_config = ConfigDict(extra="ignore")

    ability: str | None = None
    command: str | None = None
    resources: list[str] | None = None
    state: str | None = None


class UiEventBody(BaseModel):
    """Body of a UI / user-context event."""

    model_config = ConfigDict(extra="ignore")

    ability: str | None = None
    event: str | None = None
    action: str | None = None
    locale: str | None = None
    username: str | None = None


class ResourcesDeclaration(BaseModel):
    targets: list[str] = Field(default_factory=lambda: [Targets.TASKMANAGER])
    resources: list[str]


class ConfigRequest(BaseModel):
    targets: list[str] = Field(default_factory=lambda: [Targets.UI])
    action: str = ScreenAction.SENDCONFIG.value
    configs: list[str] = Field(default_factory=lambda: ["username", "locale"])


class MenuOption(BaseModel):
    name: str
    img: str
    action: str
    keywords: list[str]


class OptionsScreen(BaseModel):
    targets: list[str] = Field(default_factory=lambda: [Targets.UI])
    action: str = ScreenAction.SHOWOPTIONS.value
    heading: str
    options: list[MenuOption]


class ArticleScreen(BaseModel):
    targets: list[str] = Field(default_factory=lambda: [Targets.UI])
    action: str = ScreenAction.SHOWARTICLE.value
    title: str
    text: str
    img: str
    nextaction: str


class ExternalScreen(BaseModel):
    targets: list[str] = Field(default_factory=lambda: [Targets.UI])
    action: str = ScreenAction.SHOWEXTERNAL.value
    name: str
    url: str
    # The UI expects the string "false", not a JSON boolean.
    arrowkeys: str = "false"


class StoppedNotice(BaseModel):
    state: str = ControlState.STOPPED.value


def make_envelope(body: BaseModel, correlation_id: CorrelationId | None = None) -> dict[str, Any]:
    """Wrap a body as an outbound envelope. The correlation id is omitted when None."""
    envelope: dict[str, Any] = {}
    if correlation_id is not None:
        envelope["correlationId"] = correlation_id
    envelope["body"] = body.model_dump_json()
    return envelope


def decode_body(envelope: Envelope, model: type[_BodyT]) -> _BodyT | ParseError:
    """Second-stage decode of the envelope's JSON-text body into `model`."""
    try:
        data = json.loads(envelope.body)
    except json.JSONDecodeError as e:
        return ParseError(reason=f"body is not JSON: {e}", raw=envelope.body)
    if not isinstance(data, dict):
        return ParseError(reason="body is not a JSON object", raw=envelope.body)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        return ParseError(reason=f"invalid {model.__name__}: {e}", raw=envelope.body)
