"""
Core infrastructure modules for the Lemmy service adapter.

Provides common utilities used across the package:
- exceptions: Standardized exception hierarchy
- concurrency: Fan-out that cancels siblings on failure
- logging: structlog configuration
"""

from lemmy_service.core.exceptions import (
    LemmyServiceError,
    RetryableError,
    PermanentError,
    UpstreamError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
    UpstreamAuthError,
    UpstreamNotFoundError,
    ConfigurationError,
)
from lemmy_service.core.concurrency import gather_or_cancel
from lemmy_service.core.logging import configure_logging

__all__ = [
    # Exceptions
    "LemmyServiceError",
    "RetryableError",
    "PermanentError",
    "UpstreamError",
    "UpstreamRateLimitError",
    "UpstreamTimeoutError",
    "UpstreamUnavailableError",
    "UpstreamAuthError",
    "UpstreamNotFoundError",
    "ConfigurationError",
    # Concurrency
    "gather_or_cancel",
    # Logging
    "configure_logging",
]
