"""Error taxonomy for the streaming client.

Two families live here:

    - Hard failures (`ConfigurationError` and subclasses) signal contract
      violations before any network call: unknown provider or model,
      missing credential fields, malformed configuration. They are never
      retryable.
    - Canonical upstream error codes (`ApiErrorCode`) with a fixed
      human-readable message each. Streams surface these as terminal
      `error` events instead of raising.
"""

from enum import IntEnum
from typing import Optional


# ═══════════════════════════════════════════════════════════════════════════
# CANONICAL ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════

class ApiErrorCode(IntEnum):
    """Canonical error codes surfaced to stream consumers.

    HTTP-derived codes keep their status value. `NETWORK_REFUSED` uses the
    sentinel `1` because no response was ever received.
    """
    INVALID_REQUEST = 400
    AUTHENTICATION = 401
    PAYMENT_REQUIRED = 402
    PERMISSION = 403
    NOT_FOUND = 404
    REQUEST_TOO_LARGE = 413
    RATE_LIMIT = 429
    API_ERROR = 500
    OVERLOADED = 529
    NETWORK_REFUSED = 1


API_ERROR_MESSAGES: dict[ApiErrorCode, str] = {
    ApiErrorCode.INVALID_REQUEST: "There was an issue with the format or content of your request.",
    ApiErrorCode.AUTHENTICATION: "Unauthorized. Please check your API key.",
    ApiErrorCode.PAYMENT_REQUIRED: "Payment Required. Please add credits to your account.",
    ApiErrorCode.PERMISSION: "Your API key does not have permission to use the specified resource.",
    ApiErrorCode.NOT_FOUND: "The requested resource was not found.",
    ApiErrorCode.REQUEST_TOO_LARGE: "Request exceeds the maximum allowed number of bytes.",
    ApiErrorCode.RATE_LIMIT: "Your account has hit a rate limit.",
    ApiErrorCode.API_ERROR: "An unexpected error has occurred.",
    ApiErrorCode.OVERLOADED: "The API is temporarily overloaded.",
    ApiErrorCode.NETWORK_REFUSED: "Network refused to connect",
}

UNKNOWN_ERROR_MESSAGE = "Unknown error"


def message_for_code(code: int) -> str:
    """Return the fixed message for a canonical code, or "Unknown error"."""
    try:
        return API_ERROR_MESSAGES[ApiErrorCode(code)]
    except ValueError:
        return UNKNOWN_ERROR_MESSAGE


# ═══════════════════════════════════════════════════════════════════════════
# EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════

class ConduitError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(ConduitError):
    """Fatal configuration problem detected before any network call."""


class ProviderNotFoundError(ConfigurationError):
    """The requested provider id is not registered."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"Unknown provider: {provider!r}")


class ModelNotFoundError(ConfigurationError):
    """The requested model id is absent from the provider's catalog."""

    def __init__(self, provider: str, model_id: str) -> None:
        self.provider = provider
        self.model_id = model_id
        super().__init__(f"Unknown model {model_id!r} for provider {provider!r}")


class MissingCredentialsError(ConfigurationError):
    """Required credential fields are absent from the provider settings."""

    def __init__(self, provider: str, fields: list[str]) -> None:
        self.provider = provider
        self.fields = fields
        super().__init__(
            f"Provider {provider!r} requires non-empty settings: {', '.join(fields)}"
        )


class ApiError(ConduitError):
    """An upstream failure expressed as a canonical error code.

    Attributes:
        code: The canonical (or raw, if unknown) error code.
        detail: Optional backend-provided detail text.

    Example:
        >>> err = ApiError(429)
        >>> str(err)
        'Your account has hit a rate limit.'
    """

    def __init__(self, code: int, detail: Optional[str] = None) -> None:
        self.code = code
        self.detail = detail
        super().__init__(message_for_code(code))


class CacheError(ConduitError):
    """A remote metadata cache could not produce any data at all."""
