"""
Provider errors.

Errors are raised inside the reconciliation core and converted to diagnostics
at the reconciler boundary. Callers outside the core only see diagnostics.
"""

from typing import Optional


class ProviderError(Exception):
    """Base error for the YouTube provider."""

    def __init__(self, message: str, summary: Optional[str] = None):
        self.message = message
        self.summary = summary
        super().__init__(message)


class ValidationError(ProviderError):
    """Declaration or argument does not match the schema. No network call was made."""


class GatewayError(ProviderError):
    """Transport, auth or cancellation failure talking to the remote API."""

    def __init__(
        self,
        message: str,
        summary: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, summary)
        self.status_code = status_code


class AuthenticationError(GatewayError):
    """The remote API rejected the bootstrap credential."""


class NotFoundError(ProviderError):
    """The remote API returned zero items for the identifier."""


class UnsupportedOperationError(ProviderError):
    """Lifecycle operation this provider never performs."""


class SessionNotConfiguredError(ProviderError):
    """The provider session has no gateway because configuration failed."""
