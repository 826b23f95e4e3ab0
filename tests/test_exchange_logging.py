"""Unit tests for exchange logging and structured logging support."""

import logging

import pytest
import structlog

from resilient_http.logging import (
  RESPONSE_DIRECTION,
  ExchangeLogger,
  SensitiveDataFilter,
  build_log_entry,
  configure_logging,
  get_logger,
  structlog_sink,
)
from resilient_http.models import RequestRecord, ResponseRecord


@pytest.fixture
def response():
  request = RequestRecord(
    "POST",
    "https://api.example.com/orders",
    headers={"Authorization": "Bearer secret-token-value"},
    data={"qty": 1},
  )
  return ResponseRecord(status=201, data={"id": 5}, request=request, headers={"X-Internal": "1"})


class TestBuildLogEntry:
  """Test cases for build_log_entry."""

  def test_projection(self, response):
    entry = build_log_entry(response).to_dict()
    
    assert entry == {
      "status": 201,
      "data": {"id": 5},
      "request": {
        "data": {"qty": 1},
        "url": "https://api.example.com/orders",
        "headers": {"Authorization": "Bearer secret-token-value"},
      },
      "type": "response",
    }

  def test_record_without_request(self):
    entry = build_log_entry(ResponseRecord(status=None, data=None))
    
    assert entry.status is None
    assert entry.request == {"data": None, "url": None, "headers": None}

  def test_config_alias_is_used(self):
    class Foreign:
      status = 404
      data = "missing"
      config = RequestRecord("GET", "/missing")
    
    entry = build_log_entry(Foreign())
    
    assert entry.request["url"] == "/missing"


class TestExchangeLogger:
  """Test cases for ExchangeLogger."""

  def test_sink_receives_entry_and_direction(self, response, sink):
    ExchangeLogger(sink).log(response)
    
    assert len(sink.calls) == 1
    entry, direction = sink.calls[0]
    assert direction == RESPONSE_DIRECTION
    assert entry["status"] == 201

  def test_direction_is_always_response(self, response, sink):
    ExchangeLogger(sink).log(response, "request")
    
    entry, direction = sink.calls[0]
    assert direction == "response"
    assert entry["type"] == "response"

  def test_sink_failure_is_reported_not_raised(self, response):
    def broken(entry, direction):
      raise RuntimeError("sink down")
    
    ExchangeLogger(broken).log(response)

  def test_default_sink(self):
    assert ExchangeLogger().sink is structlog_sink


class TestStructlogSink:
  """Test cases for the default sink."""

  def test_masks_credentials(self, response):
    with structlog.testing.capture_logs() as logs:
      structlog_sink(build_log_entry(response).to_dict(), "response")
    
    assert len(logs) == 1
    assert logs[0]["event"] == "HTTP exchange completed"
    assert logs[0]["status_code"] == 201
    assert logs[0]["request_headers"]["Authorization"] == "Bear...alue"

  def test_failed_exchange_is_a_warning(self):
    entry = {"status": None, "data": None, "request": {"url": "https://x.test"}}
    
    with structlog.testing.capture_logs() as logs:
      structlog_sink(entry, "response")
    
    assert logs[0]["log_level"] == "warning"
    assert logs[0]["event"] == "HTTP exchange failed"


class TestSensitiveDataFilter:
  """Test sensitive data filtering functionality."""

  def test_filter_nested_headers(self):
    data = {
      "headers": {"Cookie": "session=abcdef123456", "Accept": "application/json"},
      "items": [{"api_key": "k1"}],
    }
    
    filtered = SensitiveDataFilter.filter_sensitive_data(data)
    
    assert filtered["headers"]["Cookie"] == "sess...3456"
    assert filtered["headers"]["Accept"] == "application/json"
    assert filtered["items"][0]["api_key"] == "[REDACTED]"

  def test_none_value(self):
    assert SensitiveDataFilter.filter_sensitive_data({"token": None}) == {"token": "[NONE]"}


class TestConfigureLogging:
  """Test logging configuration."""

  def test_log_level_override(self):
    configure_logging(log_level="ERROR", structured=False)
    assert logging.getLogger().level == logging.ERROR
    assert logging.getLogger("aiohttp").level == logging.WARNING

  def test_debug_mode(self, tmp_path):
    log_file = tmp_path / "client.log"
    configure_logging(debug_mode=True, log_file=str(log_file))
    
    assert logging.getLogger().level == logging.DEBUG
    get_logger("tests").debug("written")
    assert log_file.exists()
