"""Retrying HTTP client and its factory."""

from typing import Any, Callable, Dict, Optional, Union

from .exceptions import ConfigurationError
from .http.interceptors import Interceptors
from .http.retry import RetryPolicy, RetryPredicate, default_retry_logic
from .http.tagger import RequestTagger
from .http.transport import Transport
from .logging import ExchangeLogger, LogSink, get_logger, structlog_sink
from .models import (
  DEFAULT_MAX_ATTEMPTS,
  DEFAULT_RETRY_DELAY_MS,
  ClientConfig,
  RequestEnvelope,
  RequestRecord,
  ResponseRecord,
  RetryOptions,
)

logger = get_logger(__name__)


class RetryingClient:
  """HTTP client that logs every attempt and retries retry-worthy responses.
  
  The client exposes the same surface as a plain transport: ``request`` and
  the per-method helpers, plus request and response interceptors.
  """

  def __init__(
    self,
    transport: Transport,
    policy: RetryPolicy,
    tagger: Optional[RequestTagger] = None
  ):
    self.transport = transport
    self.policy = policy
    self.tagger = tagger or RequestTagger()
    self.interceptors = Interceptors()

  @property
  def config(self) -> ClientConfig:
    return self.transport.config

  async def request(
    self,
    method: str,
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    data: Any = None,
    json: Any = None,
    params: Optional[Dict[str, Any]] = None
  ) -> ResponseRecord:
    """Issue one logical call, retrying it according to the policy.
    
    Args:
      method: HTTP method
      url: Absolute url, or a path relative to the configured base address
      headers: Headers merged over the configured defaults
      data: Raw request body
      json: Any JSON-serializable request body; exclusive with ``data``
      params: Query parameters merged over the configured defaults
      
    Returns:
      Settled response record
      
    Raises:
      ValueError: Both ``data`` and ``json`` were given
      TransportError: A failed attempt the predicate declined to retry
      RetryExhaustedError: Every allowed attempt was retry-worthy
    """
    if data is not None and json is not None:
      raise ValueError("data and json parameters can not be used at the same time")
    
    record = RequestRecord(
      method=method,
      url=url,
      headers={**self.config.headers, **(headers or {})},
      data=data if data is not None else json,
      params={**self.config.params, **(params or {})},
      is_json=json is not None,
    )
    envelope = RequestEnvelope(payload=record)
    
    try:
      response = await self.policy.execute(envelope, self._send_attempt)
    except Exception as e:
      return await self.interceptors.response.run_settled(error=e)
    return await self.interceptors.response.run_settled(response)

  async def _send_attempt(self, envelope: RequestEnvelope) -> ResponseRecord:
    payload = self.tagger.tag(envelope)
    payload = await self.interceptors.request.run(payload)
    return await self.transport.send(payload)

  async def get(self, url: str, **kwargs: Any) -> ResponseRecord:
    return await self.request("GET", url, **kwargs)

  async def delete(self, url: str, **kwargs: Any) -> ResponseRecord:
    return await self.request("DELETE", url, **kwargs)

  async def head(self, url: str, **kwargs: Any) -> ResponseRecord:
    return await self.request("HEAD", url, **kwargs)

  async def options(self, url: str, **kwargs: Any) -> ResponseRecord:
    return await self.request("OPTIONS", url, **kwargs)

  async def post(self, url: str, data: Any = None, **kwargs: Any) -> ResponseRecord:
    return await self.request("POST", url, data=data, **kwargs)

  async def put(self, url: str, data: Any = None, **kwargs: Any) -> ResponseRecord:
    return await self.request("PUT", url, data=data, **kwargs)

  async def patch(self, url: str, data: Any = None, **kwargs: Any) -> ResponseRecord:
    return await self.request("PATCH", url, data=data, **kwargs)

  async def close(self) -> None:
    await self.transport.close()

  async def __aenter__(self) -> "RetryingClient":
    return self

  async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
    await self.close()


def create(
  config: Union[ClientConfig, Dict[str, Any], None] = None,
  retry_time: float = DEFAULT_RETRY_DELAY_MS,
  log: LogSink = structlog_sink,
  retry_logic: RetryPredicate = default_retry_logic,
  *,
  max_attempts: int = DEFAULT_MAX_ATTEMPTS,
  transport: Optional[Transport] = None,
  sleep: Optional[Callable] = None
) -> RetryingClient:
  """Create a retrying client.
  
  Args:
    config: Transport configuration, as a ClientConfig or a dictionary
    retry_time: Delay between attempts in milliseconds, 0 to 60000
    log: Sink called as ``log(entry, direction)`` once per attempt
    retry_logic: Predicate returning True for retry-worthy responses
    max_attempts: Total attempts per logical call, the first one included
    transport: Transport to wrap instead of a fresh aiohttp transport
    sleep: Coroutine used to wait between attempts
    
  Returns:
    RetryingClient ready to issue requests
    
  Raises:
    ConfigurationError: If any argument is invalid
  """
  if not callable(log):
    raise ConfigurationError("Logger must be a function", field="log")
  if not callable(retry_logic):
    raise ConfigurationError("Retry logic must be a function", field="retry_logic")
  
  options = RetryOptions(delay_ms=retry_time, max_attempts=max_attempts)
  
  if isinstance(config, dict):
    try:
      config = ClientConfig(**config)
    except TypeError as e:
      raise ConfigurationError(f"Invalid client configuration: {e}", field="config")
  elif config is not None and not isinstance(config, ClientConfig):
    raise ConfigurationError("Client configuration must be a ClientConfig or a dictionary", field="config")
  
  if transport is None:
    transport = Transport(config)
  elif config is not None:
    transport.config = config
  
  policy_kwargs: Dict[str, Any] = {}
  if sleep is not None:
    policy_kwargs["sleep"] = sleep
  policy = RetryPolicy(
    options=options,
    retry_logic=retry_logic,
    exchange_logger=ExchangeLogger(log),
    **policy_kwargs
  )
  
  logger.debug(
    "Created retrying client",
    base_url=transport.config.base_url,
    retry_delay_ms=options.delay_ms,
    max_attempts=options.max_attempts,
  )
  return RetryingClient(transport, policy)
