"""API middleware for deckexport."""

from deckexport.api.middleware.logging import LoggingMiddleware

__all__ = [
    "LoggingMiddleware",
]
