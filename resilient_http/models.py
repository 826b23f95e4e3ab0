"""Data models for client configuration and request/response handling."""

import math
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .exceptions import ConfigurationError

MAX_RETRY_DELAY_MS = 60_000
DEFAULT_RETRY_DELAY_MS = 1000
DEFAULT_MAX_ATTEMPTS = 3
MAX_ATTEMPTS_LIMIT = 10


@dataclass
class ClientConfig:
    """Baseline transport configuration shared by every request of a client."""

    base_url: Optional[str] = None
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    timeout: float = 30
    max_connections: int = 100

    def __post_init__(self):
        """Validate transport configuration after initialization."""
        if self.headers is None:
            self.headers = {}
        if self.params is None:
            self.params = {}

        if not isinstance(self.headers, dict):
            raise ConfigurationError("Default headers must be a dictionary", field="headers")

        if not isinstance(self.params, dict):
            raise ConfigurationError("Default params must be a dictionary", field="params")

        if not _is_number(self.timeout) or self.timeout <= 0:
            raise ConfigurationError("Timeout must be a positive number", field="timeout")

        if not isinstance(self.max_connections, int) or self.max_connections <= 0:
            raise ConfigurationError(
                "Max connections must be a positive integer", field="max_connections"
            )


@dataclass
class RetryOptions:
    """Retry scheduling options.

    ``delay_ms`` is the fixed pause between two attempts of the same call;
    ``max_attempts`` counts the initial attempt too.
    """

    delay_ms: float = DEFAULT_RETRY_DELAY_MS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def __post_init__(self):
        """Validate retry options after initialization."""
        if not _is_number(self.delay_ms):
            raise ConfigurationError("Retry time must be a number", field="delay_ms")

        if (
            not math.isfinite(self.delay_ms)
            or self.delay_ms < 0
            or self.delay_ms > MAX_RETRY_DELAY_MS
        ):
            raise ConfigurationError(
                f"Retry time must be between 0 and {MAX_RETRY_DELAY_MS} milliseconds",
                field="delay_ms",
            )

        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            raise ConfigurationError("Max attempts must be an integer", field="max_attempts")

        if not (1 <= self.max_attempts <= MAX_ATTEMPTS_LIMIT):
            raise ConfigurationError(
                f"Max attempts must be between 1 and {MAX_ATTEMPTS_LIMIT}",
                field="max_attempts",
            )

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000


@dataclass
class Settings:
    """Client configuration together with its retry options."""

    client: ClientConfig
    retry: RetryOptions

    @classmethod
    def from_file(cls, config_file: Union[str, Path]) -> "Settings":
        """Load settings from a YAML file.

        Args:
          config_file: Path to the YAML file

        Returns:
          Settings instance loaded from file

        Raises:
          ConfigurationError: If file not found or invalid
        """
        config_file = Path(config_file)

        if not config_file.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_file}",
                config_file=str(config_file),
            )

        try:
            with open(config_file) as f:
                config_dict = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {e}", config_file=str(config_file)
            )
        except OSError as e:
            raise ConfigurationError(
                f"Error reading configuration file: {e}", config_file=str(config_file)
            )

        if config_dict is None:
            config_dict = {}

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                "Configuration file must contain a YAML dictionary",
                config_file=str(config_file),
            )

        resolved_config = cls._resolve_environment_variables(config_dict)

        return cls.from_dict(resolved_config, str(config_file))

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any], config_file: str = "") -> "Settings":
        """Create Settings from a dictionary with ``client`` and ``retry`` sections.

        Raises:
          ConfigurationError: If a section is malformed
        """
        sections = {}
        for name, model in (("client", ClientConfig), ("retry", RetryOptions)):
            section = config_dict.get(name) or {}
            if not isinstance(section, dict):
                raise ConfigurationError(
                    f"The '{name}' section must be a dictionary",
                    config_file=config_file,
                    field=name,
                )
            try:
                sections[name] = model(**section)
            except TypeError as e:
                raise ConfigurationError(
                    f"Invalid '{name}' configuration: {e}",
                    config_file=config_file,
                    field=name,
                )
            except ConfigurationError as e:
                e.config_file = config_file
                e.field = f"{name}.{e.field}" if e.field else name
                raise

        return cls(client=sections["client"], retry=sections["retry"])

    @staticmethod
    def _resolve_environment_variables(config_dict: dict[str, Any]) -> dict[str, Any]:
        """Resolve ${VAR} patterns in configuration with environment variables.

        Raises:
          ConfigurationError: If required environment variable is missing
        """

        def resolve_value(value: Any) -> Any:
            if isinstance(value, str):
                resolved_value = value
                for var_name in re.findall(r"\$\{([^}]+)\}", value):
                    env_value = os.getenv(var_name)
                    if env_value is None:
                        raise ConfigurationError(
                            f"Environment variable '{var_name}' is not set"
                        )
                    resolved_value = resolved_value.replace(f"${{{var_name}}}", env_value)
                return resolved_value
            elif isinstance(value, dict):
                return {k: resolve_value(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [resolve_value(item) for item in value]
            else:
                return value

        return resolve_value(config_dict)


@dataclass
class RequestRecord:
    """Outgoing request of a single attempt."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    data: Any = None
    params: dict[str, Any] = field(default_factory=dict)
    is_json: bool = False

    def __post_init__(self):
        self.method = self.method.upper()
        if self.headers is None:
            self.headers = {}
        if self.params is None:
            self.params = {}


@dataclass
class RequestEnvelope:
    """Retry bookkeeping carried alongside a request across its attempts.

    The shadow copy of headers and body is taken once, before the first
    attempt, and restored onto ``payload`` before every retry.
    """

    payload: RequestRecord
    attempt: int = 0
    original_headers: Optional[dict[str, str]] = None
    original_data: Any = None
    captured: bool = False


@dataclass
class ResponseRecord:
    """Response-shaped record of one attempt, successful or not."""

    status: Optional[int]
    data: Any
    request: Optional[RequestRecord] = None
    headers: dict[str, str] = field(default_factory=dict)
    error: Optional[Exception] = None

    @property
    def config(self) -> Optional[RequestRecord]:
        return self.request

    @property
    def ok(self) -> bool:
        return self.error is None and self.status is not None and 200 <= self.status < 300

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class LogEntry:
    """Transport-agnostic projection of an exchange handed to the log sink."""

    status: Optional[int]
    data: Any
    request: dict[str, Any]
    type: str = "response"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "data": self.data,
            "request": dict(self.request),
            "type": self.type,
        }


class AttemptState(Enum):
    """States of a logical call while it works through its attempts."""

    SENDING = "sending"
    AWAITING_DELAY = "awaiting_delay"
    RESOLVED = "resolved"
    REJECTED = "rejected"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
