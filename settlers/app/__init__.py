"""Services d'application pour orchestrer le moteur."""

from .event_bus import EventBus
from .events import ActionAppliedEvent, ActionRejectedEvent, GameEndedEvent, GameStartedEvent
from .game_service import GameService

__all__ = [
    "ActionAppliedEvent",
    "ActionRejectedEvent",
    "EventBus",
    "GameEndedEvent",
    "GameService",
    "GameStartedEvent",
]
