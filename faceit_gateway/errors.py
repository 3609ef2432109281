"""Failure classes raised by the FACEIT gateway."""

from typing import Optional


class GatewayError(Exception):
    """Base class for every failure the gateway raises."""


class QuotaExceededError(GatewayError):
    """Upstream rejected the credential (rate limited or unauthorized)."""

    def __init__(self, status: Optional[int], message: str = ""):
        self.status = status
        super().__init__(f"FACEIT API quota error {status}: {message}".strip())


class UpstreamTimeoutError(GatewayError):
    """The call did not finish within the configured deadline."""

    def __init__(self, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(f"Request timeout after {timeout_ms} ms")


class TransientUpstreamError(GatewayError):
    """Network error, non-quota error status, or an unreadable body."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class UpstreamNotFoundError(GatewayError):
    """The requested upstream resource does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"FACEIT resource not found: {path}")


class ExhaustedRetriesError(GatewayError):
    """Every attempt across every key failed."""

    def __init__(self, attempts: int, last_error: Optional[BaseException]):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"FACEIT API failed after {attempts} attempts: {last_error}")


class InvalidRequestError(GatewayError):
    """A required identifier or query value is missing."""
