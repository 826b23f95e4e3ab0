"""Custom exception classes for the resilient HTTP client."""

from typing import Any, Optional


class ResilientHTTPError(Exception):
    """Base exception class for all client errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class ConfigurationError(ResilientHTTPError):
    """Raised when the client is created with invalid configuration."""

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.config_file = config_file
        self.field = field


class TransportError(ResilientHTTPError):
    """Raised when the underlying transport fails to complete an attempt.

    ``response`` holds the response-shaped record of the failed attempt when
    the server answered at all, and ``None`` for connection level failures.
    """

    def __init__(
        self,
        message: str,
        response: Optional[Any] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause)
        self.response = response

    @property
    def status(self) -> Optional[int]:
        return getattr(self.response, "status", None)


class NetworkError(TransportError):
    """Raised when network-related errors occur."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(f"Network error: {message}", cause=cause)


class TimeoutError(TransportError):
    """Raised when requests timeout."""

    def __init__(
        self,
        message: str = "Request timed out",
        timeout_seconds: Optional[float] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause=cause)
        self.timeout_seconds = timeout_seconds


class HTTPStatusError(TransportError):
    """Raised when the server answers with a status outside the 2xx range."""

    def __init__(self, response: Any):
        super().__init__(
            f"Request failed with status code {response.status}",
            response=response,
        )


class RetryExhaustedError(ResilientHTTPError):
    """Raised when maximum retry attempts are exceeded."""

    def __init__(
        self,
        message: str,
        max_attempts: int,
        response: Optional[Any] = None,
        last_exception: Optional[Exception] = None,
    ):
        super().__init__(message, last_exception)
        self.max_attempts = max_attempts
        self.response = response
        self.last_exception = last_exception
