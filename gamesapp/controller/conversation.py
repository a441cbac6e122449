"""Menu conversation driven by UI action events.

    selectgame          -> list of games
    gamehome?game=G     -> play / instructions choice for G
    instructions?game=G -> instructions article for G, next action playgame
    playgame?game=G     -> external content: the game file served over HTTP

A `config` event updates the session and lands the user on the game list.
"""

import logging
from dataclasses import dataclass, field
from urllib.parse import parse_qsl, urlsplit

from gamesapp.bus.models import (
    ArticleScreen,
    Envelope,
    ExternalScreen,
    MenuOption,
    OptionsScreen,
    UiEventBody,
)
from gamesapp.bus.topics import UiAction, UiEvent
from gamesapp.catalog import GameCatalog
from gamesapp.controller.publisher import TopicPublisher
from gamesapp.controller.session import SessionContext
from gamesapp.i18n import Translator

logger = logging.getLogger(__name__)

SELECT_GAME_HEADING = "Which game would you like to play?"
GAME_HOME_HEADING = "What would you like to do?"
PLAY_OPTION = "Play? "
INSTRUCTIONS_OPTION = "Instructions? "
PLAY_KEYWORDS = "play_keywords"
INSTRUCTIONS_KEYWORDS = "instructions_keywords"


@dataclass(frozen=True)
class ActionRequest:
    """`<path>?<query>` from a UI event, e.g. `gamehome?game=mario`."""

    name: str
    params: dict[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, action: str) -> "ActionRequest":
        parts = urlsplit(action)
        return cls(name=parts.path, params=dict(parse_qsl(parts.query, keep_blank_values=True)))


class ConversationMachine:
    """Turns action requests into screens published on the app topic."""

    def __init__(
        self,
        topic: str,
        session: SessionContext,
        catalog: GameCatalog,
        translator: Translator,
        publisher: TopicPublisher,
        file_host: str,
        file_port: int,
    ) -> None:
        self._topic = topic
        self._session = session
        self._catalog = catalog
        self._translator = translator
        self._publisher = publisher
        self._file_host = file_host
        self._file_port = file_port

    def _t(self, key: str) -> str:
        return self._translator.dgettext(self._session.locale, key)

    async def handle_event(self, envelope: Envelope, body: UiEventBody) -> None:
        """Entry point for every decoded UI/UC event. The action runs before a config update."""
        if body.ability != self._topic:
            logger.debug("ignoring event for ability %r", body.ability)
            return
        if body.action is not None:
            await self.handle_action(ActionRequest.parse(body.action))
        if body.event == UiEvent.CONFIG:
            await self.handle_config(body.locale, body.username)

    async def handle_action(self, request: ActionRequest) -> None:
        match request.name:
            case UiAction.SELECTGAME:
                await self._publisher.publish(self.game_list())
                return
            case UiAction.GAMEHOME | UiAction.INSTRUCTIONS | UiAction.PLAYGAME:
                pass
            case _:
                logger.info("unhandled action %r", request.name)
                return

        game = request.params.get("game")
        if not game:
            logger.warning("action %s without a game parameter; dropping", request.name)
            return
        match request.name:
            case UiAction.GAMEHOME:
                await self._publisher.publish(self.game_home(game))
            case UiAction.INSTRUCTIONS:
                await self._publisher.publish(self.instructions(game))
            case UiAction.PLAYGAME:
                screen = self.external(game)
                if screen is None:
                    logger.warning("game %s is not in the catalog", game)
                    return
                await self._publisher.publish(screen)

    async def handle_config(self, locale: str | None, username: str | None) -> None:
        self._session.apply_config(locale=locale, username=username)
        logger.info(
            "UI config received: locale=%s username=%s",
            self._session.locale,
            self._session.username,
        )
        await self._publisher.publish(self.game_list(translate_names=False))

    def game_list(self, translate_names: bool = True) -> OptionsScreen:
        options = []
        for game in self._catalog.game_names:
            label = self._t(game)
            options.append(
                MenuOption(
                    name=f"{label}? " if translate_names else game,
                    img=self._catalog.image_for(game),
                    action=f"{UiAction.GAMEHOME}?game={game}",
                    keywords=label.split(" "),
                )
            )
        return OptionsScreen(heading=self._t(SELECT_GAME_HEADING), options=options)

    def game_home(self, game: str) -> OptionsScreen:
        return OptionsScreen(
            heading=self._t(GAME_HOME_HEADING),
            options=[
                MenuOption(
                    name=self._t(PLAY_OPTION),
                    img=self._catalog.asset("play.png"),
                    action=f"{UiAction.PLAYGAME}?game={game}",
                    keywords=self._t(PLAY_KEYWORDS).split(", "),
                ),
                MenuOption(
                    name=self._t(INSTRUCTIONS_OPTION),
                    img=self._catalog.asset("manual.png"),
                    action=f"{UiAction.INSTRUCTIONS}?game={game}",
                    keywords=self._t(INSTRUCTIONS_KEYWORDS).split(", "),
                ),
            ],
        )

    def instructions(self, game: str) -> ArticleScreen:
        return ArticleScreen(
            title=self._t(game),
            text=self._t(f"{game} instructions"),
            img=self._catalog.image_for(game),
            nextaction=f"{UiAction.PLAYGAME}?game={game}",
        )

    def external(self, game: str) -> ExternalScreen | None:
        url = self._catalog.url_for(game, self._file_host, self._file_port)
        if url is None:
            return None
        return ExternalScreen(name=self._t(game), url=url)
