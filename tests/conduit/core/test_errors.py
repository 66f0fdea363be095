"""Test suite for the error taxonomy: canonical codes, messages and exceptions."""

import pytest

from conduit.core.errors import (
    API_ERROR_MESSAGES,
    ApiError,
    ApiErrorCode,
    ConduitError,
    ConfigurationError,
    MissingCredentialsError,
    ModelNotFoundError,
    ProviderNotFoundError,
    UNKNOWN_ERROR_MESSAGE,
    message_for_code,
)


# ═══════════════════════════════════════════════════════════════════════════
# MESSAGE TABLE
# ═══════════════════════════════════════════════════════════════════════════

class TestMessageTable:
    """Fixed human-readable message per canonical code."""

    @pytest.mark.parametrize("code, expected", [
        (400, "There was an issue with the format or content of your request."),
        (401, "Unauthorized. Please check your API key."),
        (402, "Payment Required. Please add credits to your account."),
        (403, "Your API key does not have permission to use the specified resource."),
        (404, "The requested resource was not found."),
        (413, "Request exceeds the maximum allowed number of bytes."),
        (429, "Your account has hit a rate limit."),
        (500, "An unexpected error has occurred."),
        (529, "The API is temporarily overloaded."),
        (1, "Network refused to connect"),
    ])
    def test_known_codes(self, code: int, expected: str) -> None:
        """Should return the exact message for every canonical code."""
        assert message_for_code(code) == expected

    def test_every_code_has_a_message(self) -> None:
        """Should cover every enum member in the message table."""
        assert set(API_ERROR_MESSAGES) == set(ApiErrorCode)

    @pytest.mark.parametrize("code", [0, 418, 502, -1])
    def test_unknown_codes(self, code: int) -> None:
        """Should fall back to 'Unknown error' for codes outside the table."""
        assert message_for_code(code) == UNKNOWN_ERROR_MESSAGE


# ═══════════════════════════════════════════════════════════════════════════
# EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════

class TestExceptionHierarchy:
    """Configuration errors are fatal; api errors carry a code."""

    @pytest.mark.parametrize("exc", [
        ProviderNotFoundError("nope"),
        ModelNotFoundError("anthropic", "claude-0"),
        MissingCredentialsError("openai", ["api_key"]),
    ])
    def test_configuration_subclasses(self, exc: Exception) -> None:
        """Should classify lookup and credential failures as configuration errors."""
        assert isinstance(exc, ConfigurationError)
        assert isinstance(exc, ConduitError)

    def test_missing_credentials_lists_fields(self) -> None:
        """Should name every missing field in the message."""
        exc = MissingCredentialsError("aider", ["api_key", "base_url"])
        assert exc.fields == ["api_key", "base_url"]
        assert "api_key, base_url" in str(exc)

    def test_model_not_found_attributes(self) -> None:
        """Should keep provider and model id for error responses."""
        exc = ModelNotFoundError("anthropic", "claude-0")
        assert (exc.provider, exc.model_id) == ("anthropic", "claude-0")

    def test_api_error_message_from_code(self) -> None:
        """Should use the canonical message as the exception text."""
        exc = ApiError(429, detail="slow down")
        assert exc.code == 429
        assert exc.detail == "slow down"
        assert str(exc) == "Your account has hit a rate limit."

    def test_api_error_unknown_code(self) -> None:
        """Should produce 'Unknown error' for codes outside the table."""
        assert str(ApiError(418)) == "Unknown error"
