"""Per-process conversation context shared by the lifecycle and conversation machines."""

from dataclasses import dataclass


@dataclass
class SessionContext:
    """Mutable session state. Only a UI `config` event sets `subscribed`; stop clears it."""

    locale: str = "en-GB"
    username: str = ""
    subscribed: bool = False

    def apply_config(self, locale: str | None = None, username: str | None = None) -> None:
        if locale is not None:
            self.locale = locale
        if username is not None:
            self.username = username
        self.subscribed = True
