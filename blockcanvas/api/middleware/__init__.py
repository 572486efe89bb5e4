"""API middleware for BlockCanvas."""

from blockcanvas.api.middleware.logging import LoggingMiddleware

__all__ = [
    "LoggingMiddleware",
]
