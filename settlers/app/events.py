"""Évènements publiés par `GameService`."""

from __future__ import annotations

from dataclasses import dataclass

from settlers.engine.actions import Action
from settlers.engine.state import GameState


@dataclass(frozen=True)
class GameStartedEvent:
    """Émis lorsqu'une nouvelle partie est initialisée (ou restaurée)."""

    state: GameState


@dataclass(frozen=True)
class ActionAppliedEvent:
    """Émis après qu'une action a été acceptée par le moteur."""

    action: Action
    player_id: str
    previous_state: GameState
    new_state: GameState


@dataclass(frozen=True)
class ActionRejectedEvent:
    action: Action
    player_id: str
    state: GameState
    error: str | None


@dataclass(frozen=True)
class GameEndedEvent:
    """Émis quand la partie passe en phase `ended`."""

    state: GameState
    winner_id: str | None


__all__ = [
    "ActionAppliedEvent",
    "ActionRejectedEvent",
    "GameEndedEvent",
    "GameStartedEvent",
]
