"""Well-known bus topics and message vocabulary shared with the task manager and the UI."""

from enum import StrEnum


class Topics:
    """Topics owned by other parts of the system. The app's own topic comes from settings."""

    # Task manager control channel: start/stop commands and subscription acks
    TASKMANAGER = "taskmanager"

    # UI action events (touch) and user-context events (speech, config)
    UI_EVENTS = "UIEvents"
    UC_EVENTS = "UCEvents"


class Targets:
    """Values for the `targets` field of outbound bodies."""

    TASKMANAGER = "taskmanager"
    UI = "UI"


class ControlCommand(StrEnum):
    START = "start"
    STOP = "stop"


class ControlState(StrEnum):
    SUBSCRIBED = "subscribed"
    RUNNING = "running"
    STOPPED = "stopped"


class UiEvent(StrEnum):
    CONFIG = "config"


class UiAction(StrEnum):
    """Inbound action paths understood by the conversation."""

    SELECTGAME = "selectgame"
    GAMEHOME = "gamehome"
    INSTRUCTIONS = "instructions"
    PLAYGAME = "playgame"


class ScreenAction(StrEnum):
    """Outbound `action` values telling the UI what to render."""

    SENDCONFIG = "sendconfig"
    SHOWOPTIONS = "showoptions"
    SHOWARTICLE = "showarticle"
    SHOWEXTERNAL = "showexternal"
