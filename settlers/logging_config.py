"""Configuration du logging structuré (structlog)."""

from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(environment: str = "development", level: int | None = None) -> None:
    """Configure structlog: JSON en production, rendu console sinon.

    Le moteur ne configure jamais le logging lui-même; l'application hôte
    (serveur, simulation, tests) appelle cette fonction une fois au démarrage.
    """

    if level is None:
        level = logging.INFO if environment == "production" else logging.DEBUG

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    renderer = (
        structlog.processors.JSONRenderer()
        if environment == "production"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


__all__ = ["configure_logging"]
