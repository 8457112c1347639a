"""Domain exceptions.

Only ``BackendError`` subclasses and ``RequestCancelled`` cross component
boundaries, and none of them escape the completion provider: every failure
path ends in a well-formed (possibly empty) result.
"""

__all__ = [
    "ExpandError",
    "BackendError",
    "BackendUnavailable",
    "MalformedResponse",
    "ExpansionFailure",
    "RequestCancelled",
    "ConfigError",
]


class ExpandError(Exception):
    """Base class for all LLM Expand errors."""


class BackendError(ExpandError):
    """The inference backend could not serve a request."""


class BackendUnavailable(BackendError):
    """Transport failure or non-success HTTP status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(BackendError):
    """The backend answered, but without the fields we need."""


class ExpansionFailure(BackendError):
    """A single branch could not be expanded.

    Raised and handled inside the backend client; callers only ever see the
    unexpanded token.
    """

    def __init__(self, token: str, cause: Exception):
        super().__init__(f"Expansion of {token!r} failed: {cause}")
        self.token = token
        self.cause = cause


class RequestCancelled(ExpandError):
    """The request's cancellation token fired before the call completed."""


class ConfigError(ExpandError):
    """Settings could not be loaded or failed validation."""
