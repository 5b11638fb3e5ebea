"""Custom exception hierarchy for tornwatch."""

from __future__ import annotations


class TornError(Exception):
    """Base exception for all tornwatch errors."""


class TornConfigError(TornError):
    """Invalid or missing configuration."""


class TornInputError(TornError, ValueError):
    """Operator input could not be accepted.

    Raised for unparseable durations, unknown state names, duplicate
    tracking requests and similar problems that must be reported back to
    whoever issued the command.
    """


class TornTransportError(TornError):
    """HTTP-level failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class TornApiError(TornError):
    """API returned an ``error`` object (application-level error)."""

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


class TornAuthenticationError(TornApiError):
    """The API key is missing, wrong, disabled or paused."""


class TornRateLimitError(TornApiError):
    """Rate limited by the API.

    Raised both for HTTP 429 and for Torn error code ``5``
    ("Too many requests").  Pollers log it distinctly and simply retry
    on a later tick.
    """


class TornDataError(TornError):
    """The response parsed but cannot be trusted.

    Covers missing expected fields and empty faction rosters.  The
    affected poll item is skipped for this tick.
    """

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class TornPersistenceError(TornError):
    """Reading or writing the state file failed."""


class TornNotificationError(TornError):
    """A notification sink failed to deliver a message."""

    def __init__(self, message: str, *, status_code: int | None = None, retry_after: float | None = None) -> None:
        self.status_code = status_code
        self.retry_after = retry_after
        super().__init__(message)
