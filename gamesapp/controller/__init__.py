"""Controller: topic lifecycle, subscription handling and the menu conversation."""

from gamesapp.controller.app import GamesApp
from gamesapp.controller.conversation import ActionRequest, ConversationMachine
from gamesapp.controller.lifecycle import LifecycleMachine, LifecycleState
from gamesapp.controller.poller import TopicPoller
from gamesapp.controller.publisher import TopicPublisher
from gamesapp.controller.reconciler import SubscriptionReconciler
from gamesapp.controller.router import MessageRouter
from gamesapp.controller.session import SessionContext

__all__ = [
    "ActionRequest",
    "ConversationMachine",
    "GamesApp",
    "LifecycleMachine",
    "LifecycleState",
    "MessageRouter",
    "SessionContext",
    "SubscriptionReconciler",
    "TopicPoller",
    "TopicPublisher",
]
