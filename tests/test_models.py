"""Unit tests for configuration and record models."""

import pytest

from resilient_http.exceptions import ConfigurationError
from resilient_http.models import (
  AttemptState,
  ClientConfig,
  LogEntry,
  RequestRecord,
  ResponseRecord,
  RetryOptions,
  Settings,
)


class TestClientConfig:
  """Test cases for ClientConfig."""

  def test_defaults(self):
    config = ClientConfig()
    assert config.base_url is None
    assert config.headers == {}
    assert config.params == {}
    assert config.timeout == 30
    assert config.max_connections == 100

  @pytest.mark.parametrize(
    "kwargs,field",
    [
      ({"timeout": 0}, "timeout"),
      ({"timeout": "30"}, "timeout"),
      ({"max_connections": -1}, "max_connections"),
      ({"headers": ["Accept"]}, "headers"),
      ({"params": "a=b"}, "params"),
    ],
  )
  def test_invalid_values(self, kwargs, field):
    with pytest.raises(ConfigurationError) as exc_info:
      ClientConfig(**kwargs)
    assert exc_info.value.field == field


class TestRetryOptions:
  """Test cases for RetryOptions."""

  def test_defaults(self):
    options = RetryOptions()
    assert options.delay_ms == 1000
    assert options.max_attempts == 3
    assert options.delay_seconds == 1.0

  @pytest.mark.parametrize("delay_ms", [-1, 60000.5, float("nan"), float("inf")])
  def test_delay_range(self, delay_ms):
    with pytest.raises(ConfigurationError, match="between 0 and 60000"):
      RetryOptions(delay_ms=delay_ms)

  @pytest.mark.parametrize("max_attempts", [0, 11, 2.5, True])
  def test_max_attempts_validation(self, max_attempts):
    with pytest.raises(ConfigurationError):
      RetryOptions(max_attempts=max_attempts)


class TestSettings:
  """Test cases for Settings loading."""

  def test_from_file(self, tmp_path, monkeypatch):
    monkeypatch.setenv("ORDERS_TOKEN", "abc123")
    config_file = tmp_path / "client.yaml"
    config_file.write_text(
      "client:\n"
      "  base_url: https://orders.example.com\n"
      "  headers:\n"
      "    Authorization: Bearer ${ORDERS_TOKEN}\n"
      "  timeout: 5\n"
      "retry:\n"
      "  delay_ms: 250\n"
      "  max_attempts: 4\n"
    )
    
    settings = Settings.from_file(config_file)
    
    assert settings.client.base_url == "https://orders.example.com"
    assert settings.client.headers == {"Authorization": "Bearer abc123"}
    assert settings.client.timeout == 5
    assert settings.retry.delay_ms == 250
    assert settings.retry.max_attempts == 4

  def test_empty_file_uses_defaults(self, tmp_path):
    config_file = tmp_path / "empty.yaml"
    config_file.write_text("")
    
    settings = Settings.from_file(config_file)
    
    assert settings.client == ClientConfig()
    assert settings.retry == RetryOptions()

  def test_missing_file(self, tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
      Settings.from_file(tmp_path / "nope.yaml")

  def test_invalid_yaml(self, tmp_path):
    config_file = tmp_path / "bad.yaml"
    config_file.write_text("client: [unclosed")
    
    with pytest.raises(ConfigurationError, match="Invalid YAML"):
      Settings.from_file(config_file)

  def test_non_mapping_document(self, tmp_path):
    config_file = tmp_path / "list.yaml"
    config_file.write_text("- a\n- b\n")
    
    with pytest.raises(ConfigurationError, match="YAML dictionary"):
      Settings.from_file(config_file)

  def test_missing_environment_variable(self, tmp_path, monkeypatch):
    monkeypatch.delenv("UNSET_TOKEN_VAR", raising=False)
    config_file = tmp_path / "env.yaml"
    config_file.write_text("client:\n  headers:\n    X-Token: ${UNSET_TOKEN_VAR}\n")
    
    with pytest.raises(ConfigurationError, match="UNSET_TOKEN_VAR"):
      Settings.from_file(config_file)

  def test_invalid_section_value_reports_field(self):
    with pytest.raises(ConfigurationError) as exc_info:
      Settings.from_dict({"retry": {"delay_ms": 90000}}, "client.yaml")
    
    assert exc_info.value.field == "retry.delay_ms"
    assert exc_info.value.config_file == "client.yaml"

  def test_unknown_key(self):
    with pytest.raises(ConfigurationError, match="Invalid 'client' configuration"):
      Settings.from_dict({"client": {"base": "x"}})

  def test_section_must_be_mapping(self):
    with pytest.raises(ConfigurationError, match="must be a dictionary"):
      Settings.from_dict({"retry": 5})


class TestRecords:
  """Test cases for request and response records."""

  def test_request_method_is_uppercased(self):
    assert RequestRecord("patch", "/x").method == "PATCH"

  def test_response_flags(self):
    request = RequestRecord("GET", "/x")
    ok = ResponseRecord(status=204, data=None, request=request)
    failed = ResponseRecord(status=500, data=None, request=request, error=RuntimeError("x"))
    
    assert ok.ok and not ok.failed
    assert failed.failed and not failed.ok
    assert ok.config is request

  def test_log_entry_to_dict_copies_request(self):
    entry = LogEntry(status=200, data="ok", request={"url": "/x"})
    
    as_dict = entry.to_dict()
    as_dict["request"]["url"] = "/y"
    
    assert entry.request == {"url": "/x"}
    assert as_dict["type"] == "response"

  def test_attempt_states(self):
    assert {state.value for state in AttemptState} == {"sending", "awaiting_delay", "resolved", "rejected"}
