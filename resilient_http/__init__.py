"""HTTP client wrapper adding fixed-delay retries and per-attempt logging."""

from .client import RetryingClient, create
from .exceptions import (
    ConfigurationError,
    HTTPStatusError,
    NetworkError,
    ResilientHTTPError,
    RetryExhaustedError,
    TimeoutError,
    TransportError,
)
from .models import (
    ClientConfig,
    LogEntry,
    RequestEnvelope,
    RequestRecord,
    ResponseRecord,
    RetryOptions,
    Settings,
)

__all__ = [
    "create",
    "RetryingClient",
    "ResilientHTTPError",
    "ConfigurationError",
    "TransportError",
    "NetworkError",
    "TimeoutError",
    "HTTPStatusError",
    "RetryExhaustedError",
    "ClientConfig",
    "RetryOptions",
    "Settings",
    "RequestRecord",
    "RequestEnvelope",
    "ResponseRecord",
    "LogEntry",
]
