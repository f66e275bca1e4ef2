"""
Core exception hierarchy for the Lemmy service adapter.

Provides standardized exception types with categorization for retry logic.
Structural "feature not available" outcomes are not exceptions; those are
returned as ``Unimplemented`` by the service layer.
"""

from typing import Any, Optional


# =============================================================================
# Base Exceptions
# =============================================================================


class LemmyServiceError(Exception):
    """Base exception for all adapter errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class RetryableError(LemmyServiceError):
    """
    Transient errors that should be retried.

    Examples: Rate limits, timeouts, instance temporarily down.
    """

    pass


class PermanentError(LemmyServiceError):
    """
    Errors that won't be fixed by retrying.

    Examples: Unknown community, malformed request, authentication failures.
    """

    pass


# =============================================================================
# Upstream Errors
# =============================================================================


class UpstreamError(LemmyServiceError):
    """Base exception for errors raised while talking to a Lemmy instance."""

    def __init__(
        self,
        instance: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.instance = instance
        super().__init__(f"[{instance}] {message}", details)


class UpstreamRateLimitError(UpstreamError, RetryableError):
    """Raised when the instance rate limits us."""

    pass


class UpstreamTimeoutError(UpstreamError, RetryableError):
    """Raised when a request to the instance times out."""

    pass


class UpstreamUnavailableError(UpstreamError, RetryableError):
    """Raised when the instance answers with a 5xx."""

    pass


class UpstreamAuthError(UpstreamError, PermanentError):
    """Raised when the instance refuses the request."""

    pass


class UpstreamNotFoundError(UpstreamError, PermanentError):
    """Raised when the requested community, post or person does not exist."""

    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(PermanentError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        self.config_key = config_key
        details = {"config_key": config_key} if config_key else None
        super().__init__(message, details)
