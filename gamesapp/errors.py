"""Fatal controller errors: the bus no longer matches what the app registered."""


class GamesAppError(Exception):
    """Base for errors that abort a lifecycle step."""


class TopicMissingError(GamesAppError):
    """The app's own topic vanished while the app still owns it."""


class UnsubscribeError(GamesAppError):
    """The bus refused to drop one of the app's subscriptions during stop."""


class TopicDeleteError(GamesAppError):
    """The bus refused to delete the app's own topic during stop."""
