"""Structured logging and exchange logging for the resilient HTTP client."""

import logging
import os
import sys
from typing import Any, Callable, Dict, Optional

import structlog

from .models import LogEntry, ResponseRecord

LogSink = Callable[[Dict[str, Any], str], Any]

# Every exchange is tagged with this label, failed attempts included.
RESPONSE_DIRECTION = "response"


class SensitiveDataFilter:
  """Filter to prevent credentials from being logged."""
  
  SENSITIVE_KEYS = {
    "api_key", "apikey", "authorization", "bearer", "password", "secret",
    "token", "cookie", "credential", "x_api_key", "session"
  }
  
  @classmethod
  def filter_sensitive_data(cls, data: Any) -> Any:
    """Recursively filter sensitive data from dictionaries and other structures.
    
    Args:
      data: Data structure to filter
      
    Returns:
      Filtered data structure with sensitive values replaced
    """
    if isinstance(data, dict):
      filtered = {}
      for key, value in data.items():
        if isinstance(key, str) and cls._is_sensitive_key(key):
          filtered[key] = cls._mask_sensitive_value(value)
        else:
          filtered[key] = cls.filter_sensitive_data(value)
      return filtered
    elif isinstance(data, list):
      return [cls.filter_sensitive_data(item) for item in data]
    elif isinstance(data, tuple):
      return tuple(cls.filter_sensitive_data(item) for item in data)
    else:
      return data
  
  @classmethod
  def _is_sensitive_key(cls, key: str) -> bool:
    key_lower = key.lower().replace("-", "_").replace(" ", "_")
    return any(sensitive in key_lower for sensitive in cls.SENSITIVE_KEYS)
  
  @classmethod
  def _mask_sensitive_value(cls, value: Any) -> str:
    """Mask a sensitive value, keeping the first and last 4 characters of long values."""
    if value is None:
      return "[NONE]"
    
    value_str = str(value)
    if len(value_str) <= 8:
      return "[REDACTED]"
    return f"{value_str[:4]}...{value_str[-4:]}"


def configure_logging(
  debug_mode: bool = False,
  log_level: Optional[str] = None,
  log_file: Optional[str] = None,
  structured: bool = True,
) -> None:
  """Configure structured logging for the client.
  
  Args:
    debug_mode: Enable debug mode with detailed logging
    log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
    log_file: Optional file path for log output
    structured: Use structured JSON logging format
  """
  if log_level:
    level = getattr(logging, log_level.upper(), logging.INFO)
  elif debug_mode:
    level = logging.DEBUG
  else:
    level = logging.INFO
  
  processors = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    _add_process_context,
    _filter_sensitive_processor,
  ]
  
  if structured:
    processors.append(structlog.processors.JSONRenderer())
  else:
    processors.append(structlog.dev.ConsoleRenderer())
  
  structlog.configure(
    processors=processors,
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
  )
  
  handlers = [logging.StreamHandler(sys.stderr)]
  if log_file:
    handlers.append(logging.FileHandler(log_file))
  for handler in handlers:
    handler.setLevel(level)
  
  logging.basicConfig(
    level=level,
    handlers=handlers,
    format="%(message)s" if structured else "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    force=True,
  )
  
  logging.getLogger("aiohttp").setLevel(logging.WARNING)


def _add_process_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
  event_dict["process_id"] = os.getpid()
  return event_dict


def _filter_sensitive_processor(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
  return SensitiveDataFilter.filter_sensitive_data(event_dict)


def get_logger(name: str, **context: Any) -> Any:
  """Get a structlog logger with optional bound context."""
  logger = structlog.get_logger(name)
  if context:
    logger = logger.bind(**context)
  return logger


def build_log_entry(record: Any, direction: str = RESPONSE_DIRECTION) -> LogEntry:
  """Project a response-or-error record onto a LogEntry.
  
  Args:
    record: ResponseRecord, or any object exposing ``status``, ``data`` and
      ``request``/``config``
    direction: Label stored in the entry's ``type`` field
    
  Returns:
    LogEntry with the request sub-object taken from the originating request
  """
  status = getattr(record, "status", None)
  data = getattr(record, "data", None)
  request = getattr(record, "request", None) or getattr(record, "config", None)
  
  return LogEntry(
    status=status,
    data=data,
    request={
      "data": getattr(request, "data", None),
      "url": getattr(request, "url", None),
      "headers": getattr(request, "headers", None),
    },
    type=direction,
  )


def structlog_sink(entry: Dict[str, Any], direction: str) -> None:
  """Default log sink: emit the entry through structlog with headers masked."""
  entry = SensitiveDataFilter.filter_sensitive_data(entry)
  request = entry.get("request") or {}
  status = entry.get("status")
  context = {
    "event_type": "http_exchange",
    "direction": direction,
    "status_code": status,
    "url": request.get("url"),
    "request_headers": request.get("headers"),
  }
  
  logger = get_logger("resilient_http.exchange")
  if logging.getLogger("resilient_http.exchange").isEnabledFor(logging.DEBUG):
    context["request_data"] = request.get("data")
    context["response_data"] = entry.get("data")
  
  if status is None or status >= 400:
    logger.warning("HTTP exchange failed", **context)
  else:
    logger.info("HTTP exchange completed", **context)


class ExchangeLogger:
  """Forwards one LogEntry per attempt to a user supplied sink."""
  
  def __init__(self, sink: Optional[LogSink] = None):
    self.sink = sink if sink is not None else structlog_sink
    self._logger = get_logger(__name__)
  
  def log(self, record: ResponseRecord, direction: str = RESPONSE_DIRECTION) -> None:
    """Build the entry for ``record`` and hand it to the sink.
    
    Failures raised by the sink are reported and dropped so they cannot
    change the outcome of the call being logged.
    """
    # direction is accepted but entries are always labelled as responses
    entry = build_log_entry(record, RESPONSE_DIRECTION)
    try:
      self.sink(entry.to_dict(), RESPONSE_DIRECTION)
    except Exception as e:
      self._logger.warning(
        "Log sink raised an exception",
        error=str(e),
        error_type=type(e).__name__,
        url=entry.request.get("url"),
      )
