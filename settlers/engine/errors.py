"""Résultats de validation et erreurs du moteur.

Trois niveaux:
- erreur utilisateur: `ValidationResult` invalide, renvoyé tel quel à l'appelant
- violation d'invariant: bug du moteur ou de l'appelant, journalisée puis levée
- échec de génération du plateau: remonté à l'initialisation de la partie
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NoReturn

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    """Résultat `{valid, reason}` d'une vérification de règle."""

    valid: bool
    reason: str | None = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, reason: str) -> "ValidationResult":
        return cls(valid=False, reason=reason)

    def __bool__(self) -> bool:
        return self.valid


class InvariantViolation(RuntimeError):
    """État incohérent: indique un bug, jamais une erreur de jeu."""


class BoardGenerationError(RuntimeError):
    """Le placement des jetons a échoué après le nombre maximal d'essais."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


def fail_invariant(message: str, **context: Any) -> NoReturn:
    """Journalise puis lève `InvariantViolation`."""

    logger.error("invariant_violation", message=message, **context)
    raise InvariantViolation(message)


def invariant(condition: bool, message: str, **context: Any) -> None:
    if not condition:
        fail_invariant(message, **context)


__all__ = [
    "BoardGenerationError",
    "InvariantViolation",
    "ValidationResult",
    "fail_invariant",
    "invariant",
]
