"""Failures of the TURN credential fetch.

Every error carries the machine-readable event name it is logged under. None
of them ever escape the ICE configuration builder; they only decide how far
the configuration degrades.
"""
from typing import Optional


class FetchError(Exception):
    event = "fetch_error"
    severity = "warn"
    retryable = True

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotConfiguredError(FetchError):
    """No Metered API key is set; retrying cannot help."""
    event = "config_missing"
    retryable = False

    def __init__(self, message: str = "METERED_API_KEY is not configured"):
        super().__init__(message)


class FetchTimeoutError(FetchError):
    event = "fetch_timeout"

    def __init__(self, timeout: float):
        super().__init__(f"Request timeout after {timeout:g}s when fetching TURN credentials")
        self.timeout = timeout


class ServiceError(FetchError):
    """The credential API answered with a non-2xx status."""
    event = "fetch_failed"

    def __init__(self, status: int, reason: Optional[str] = None):
        message = f"Credential API returned {status}"
        if reason:
            message += f" {reason}"
        super().__init__(message)
        self.status = status
        self.reason = reason


class InvalidPayloadError(FetchError):
    event = "invalid_payload"


class UnreachableError(FetchError):
    """Connection refused, DNS failure, reset and similar transport errors."""
    event = "fetch_error"


class UnexpectedFetchError(FetchError):
    """Any other failure, such as a malformed endpoint URL."""
    event = "fetch_error_unknown"
    severity = "error"
