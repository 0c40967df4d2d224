"""Moteur de règles: état, actions et machine à états du tour."""

from . import rules  # re-export for convenience
from .actions import Action
from .errors import BoardGenerationError, InvariantViolation, ValidationResult
from .state import GameState, Phase
from .turn import (
    ActionResult,
    TurnPhaseStateMachine,
    get_valid_actions,
    initialize_game,
    process_action,
)

__all__ = [
    "Action",
    "ActionResult",
    "BoardGenerationError",
    "GameState",
    "InvariantViolation",
    "Phase",
    "TurnPhaseStateMachine",
    "ValidationResult",
    "get_valid_actions",
    "initialize_game",
    "process_action",
    "rules",
]
