from __future__ import annotations


class LogisticsError(Exception):
    """Base class for logistics planning failures."""


class NotFound(LogisticsError):
    """An explicitly requested item or production order does not exist."""


class InvalidInput(LogisticsError):
    """Negative horizon, malformed filter or similar caller error."""


class UpstreamUnavailable(LogisticsError):
    """A required snapshot read failed; nothing was computed."""
