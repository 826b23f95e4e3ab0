"""Shared fixtures for client and retry tests."""

from typing import Any, Callable, Optional

import pytest

from resilient_http.exceptions import HTTPStatusError
from resilient_http.http.tagger import snapshot
from resilient_http.models import ClientConfig, RequestRecord, ResponseRecord


class StubTransport:
  """Scripted stand-in for the aiohttp transport.

  ``outcomes`` holds one entry per attempt: a status code, an exception to
  raise, or a callable producing either from the sent request. Every sent
  request is recorded as a copy.
  """

  def __init__(self, outcomes, config: Optional[ClientConfig] = None, mutate: Optional[Callable] = None):
    self.config = config or ClientConfig()
    self.outcomes = list(outcomes)
    self.mutate = mutate
    self.sent: list[RequestRecord] = []
    self.closed = False

  async def send(self, request: RequestRecord) -> ResponseRecord:
    self.sent.append(snapshot(request))
    outcome = self.outcomes[min(len(self.sent), len(self.outcomes)) - 1]
    if callable(outcome):
      outcome = outcome(request)
    if self.mutate is not None:
      self.mutate(request)
    if isinstance(outcome, Exception):
      raise outcome
    
    record = ResponseRecord(status=outcome, data={"attempt": len(self.sent)}, request=request)
    if not 200 <= outcome < 300:
      error = HTTPStatusError(record)
      record.error = error
      raise error
    return record

  async def close(self) -> None:
    self.closed = True


class RecordingSink:
  """Log sink collecting every entry it receives."""

  def __init__(self):
    self.calls: list[tuple[dict[str, Any], str]] = []

  def __call__(self, entry, direction):
    self.calls.append((snapshot(entry), direction))

  @property
  def entries(self):
    return [entry for entry, _ in self.calls]


@pytest.fixture
def sink():
  return RecordingSink()


@pytest.fixture
def delays():
  return []


@pytest.fixture
def fake_sleep(delays):
  async def _sleep(seconds):
    delays.append(seconds)
  return _sleep


@pytest.fixture
def stub_transport_factory():
  def _factory(outcomes, **kwargs):
    return StubTransport(outcomes, **kwargs)
  return _factory
