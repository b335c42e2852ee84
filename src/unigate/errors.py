"""Error hierarchy for the unigate translation layer.

Parameter errors are raised while building the outbound provider body, so a
bad request never reaches the network. Provider failures are normally
returned as ``UnifiedError`` values by the response transformer; the typed
``ProviderError`` subclasses exist for callers that prefer exceptions and
are produced from an HTTP status via :func:`error_from_status`.
"""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    """Base exception for all unigate errors."""

    @property
    def is_retryable(self) -> bool:
        """Whether this error is safe to retry."""
        return False


# ---------------------------------------------------------------------------
# Request-building errors
# ---------------------------------------------------------------------------


class ParameterError(GatewayError):
    """A unified parameter could not be mapped to the provider body.

    Attributes:
        name: The unified parameter name.
    """

    def __init__(self, message: str, *, name: str) -> None:
        super().__init__(message)
        self.name = name


class MissingRequiredParameter(ParameterError):
    """A required parameter has no value and no default."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Missing required parameter: {name!r}", name=name)


class ParameterOutOfRange(ParameterError):
    """A numeric parameter falls outside its declared ``[min, max]`` range."""

    def __init__(
        self,
        name: str,
        value: float,
        *,
        minimum: float | None = None,
        maximum: float | None = None,
    ) -> None:
        low = "-inf" if minimum is None else minimum
        high = "inf" if maximum is None else maximum
        super().__init__(
            f"Parameter {name!r}={value!r} is outside the range [{low}, {high}]",
            name=name,
        )
        self.value = value
        self.minimum = minimum
        self.maximum = maximum


# ---------------------------------------------------------------------------
# Stream errors
# ---------------------------------------------------------------------------


class StreamParseError(GatewayError):
    """A content-bearing stream fragment carried malformed JSON.

    Attributes:
        fragment: The offending raw fragment.
    """

    def __init__(self, message: str, *, fragment: str = "") -> None:
        super().__init__(message)
        self.fragment = fragment


# ---------------------------------------------------------------------------
# Provider errors
# ---------------------------------------------------------------------------


class ProviderError(GatewayError):
    """Base class for errors returned by an upstream provider.

    Attributes:
        provider: Which provider returned the error.
        status_code: HTTP status code, if applicable.
        error_type: Provider-specific error type (e.g. ``overloaded_error``).
        retryable: Whether this error is safe to retry.
        raw: Raw error response body from the provider.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str = "",
        status_code: int | None = None,
        error_type: str | None = None,
        retryable: bool = False,
        raw: Any = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.error_type = error_type
        self.retryable = retryable
        self.raw = raw

    @property
    def is_retryable(self) -> bool:
        """Whether this error is safe to retry."""
        return self.retryable


class InvalidRequestError(ProviderError):
    """400/413/422: Malformed request or invalid parameters."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)


class AuthenticationError(ProviderError):
    """401: Invalid API key."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)


class PermissionDeniedError(ProviderError):
    """403: Key lacks permission for the resource."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)


class NotFoundError(ProviderError):
    """404: Unknown model or endpoint."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)


class RateLimitError(ProviderError):
    """429: Rate limit exceeded."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)


class ServerError(ProviderError):
    """500-599: Provider internal error."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)


class OverloadedError(ServerError):
    """529: Provider temporarily overloaded."""


# ---------------------------------------------------------------------------
# Non-provider errors
# ---------------------------------------------------------------------------


class TransportError(GatewayError):
    """Network-level failure while talking to the provider."""

    @property
    def is_retryable(self) -> bool:
        return True


class ConfigurationError(GatewayError):
    """Misconfiguration (unknown provider, invalid settings, etc.)."""


# ---------------------------------------------------------------------------
# HTTP status code mapping
# ---------------------------------------------------------------------------

_STATUS_TO_ERROR: dict[int, type[ProviderError]] = {
    400: InvalidRequestError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
    413: InvalidRequestError,
    422: InvalidRequestError,
    429: RateLimitError,
    500: ServerError,
    502: ServerError,
    503: ServerError,
    504: ServerError,
    529: OverloadedError,
}


def error_from_status(
    status_code: int,
    message: str,
    *,
    provider: str = "",
    error_type: str | None = None,
    raw: Any = None,
) -> ProviderError:
    """Create the appropriate ProviderError subclass from an HTTP status code.

    Unknown 5xx statuses map to ``ServerError``; anything else unknown maps
    to a plain, non-retryable ``ProviderError``.

    Args:
        status_code: HTTP status code from the provider response.
        message: Error message.
        provider: Provider name.
        error_type: Provider-specific error type string.
        raw: Raw error response body.

    Returns:
        An instance of the appropriate ProviderError subclass.
    """
    cls = _STATUS_TO_ERROR.get(status_code)
    if cls is None:
        cls = ServerError if 500 <= status_code < 600 else ProviderError
    return cls(
        message,
        provider=provider,
        status_code=status_code,
        error_type=error_type,
        raw=raw,
    )
