"""Bus d'évènements synchrone pour la couche application."""

from __future__ import annotations

from typing import Callable, List, Tuple, Type

import structlog

logger = structlog.get_logger(__name__)

Subscriber = Callable[[object], None]


class EventBus:
    """Diffuse les évènements aux abonnés, dans l'ordre d'enregistrement.

    Un abonné peut filtrer sur un type d'évènement (`event_type`). Une
    exception levée par un abonné interrompt la diffusion et remonte à
    l'appelant de `publish`.
    """

    __slots__ = ("_subscribers",)

    def __init__(self) -> None:
        self._subscribers: List[Tuple[Subscriber, Type[object] | None]] = []

    def subscribe(
        self,
        callback: Subscriber,
        event_type: Type[object] | None = None,
    ) -> Callable[[], None]:
        """Enregistre un abonné et retourne une fonction de désabonnement idempotente."""

        entry = (callback, event_type)
        self._subscribers.append(entry)

        def unsubscribe() -> None:
            if entry in self._subscribers:
                self._subscribers.remove(entry)

        return unsubscribe

    def publish(self, event: object) -> None:
        # Copie: un abonné peut se désinscrire pendant la diffusion.
        receivers = [
            callback
            for callback, event_type in list(self._subscribers)
            if event_type is None or isinstance(event, event_type)
        ]
        logger.debug("event_published", event_type=type(event).__name__, receivers=len(receivers))
        for callback in receivers:
            callback(event)


__all__ = ["EventBus", "Subscriber"]
