"""Shared exceptions for Panchang Bot modules."""

from __future__ import annotations


class PanchangBotError(Exception):
    """Base class for errors raised by the bot's own modules."""


class ValidationError(PanchangBotError):
    """User input did not match the format a dialogue step expects.

    ``field`` names the rejected input (``time``, ``city``, ``date``,
    ``city_date`` or ``menu``) so the caller can pick the right guidance.
    """

    def __init__(self, field: str, value: str | None = None) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}: {value!r}")


class NotFoundError(PanchangBotError):
    """Data needed by an operation does not exist."""


class CityNotFoundError(NotFoundError):
    def __init__(self, city: str) -> None:
        self.city = city
        super().__init__(f"No timezone found for city {city!r}")


class TransientInfraError(PanchangBotError):
    """A backing service is unavailable or too slow; retrying later may work."""


class StoreUnavailableError(TransientInfraError):
    pass


class ResolverUnavailableError(TransientInfraError):
    pass


class ContentHandlerError(TransientInfraError):
    """The content backend failed to produce or deliver a table."""

    def __init__(self, kind: str, message: str) -> None:
        self.kind = kind
        super().__init__(f"{kind}: {message}")
