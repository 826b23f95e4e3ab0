"""Retry policy with a fixed delay between attempts."""

import asyncio
from typing import Any, Awaitable, Callable, Optional

from resilient_http.exceptions import RetryExhaustedError, TransportError
from resilient_http.logging import ExchangeLogger, get_logger
from resilient_http.models import (
  AttemptState,
  RequestEnvelope,
  ResponseRecord,
  RetryOptions,
)

RetryPredicate = Callable[[ResponseRecord], bool]
SendAttempt = Callable[[RequestEnvelope], Awaitable[ResponseRecord]]


def default_retry_logic(response: ResponseRecord) -> bool:
  """Retry every response that is not a plain 200."""
  return response.status != 200


def normalize_error(error: Exception, envelope: RequestEnvelope) -> ResponseRecord:
  """Turn a failed attempt into a response-shaped record.
  
  Status and data come from the server's answer when the error carries one
  and are ``None`` otherwise.
  """
  response = getattr(error, "response", None)
  return ResponseRecord(
    status=getattr(response, "status", None),
    data=getattr(response, "data", None),
    request=getattr(response, "request", None) or envelope.payload,
    headers=getattr(response, "headers", None) or {},
    error=error,
  )


class RetryPolicy:
  """Decides whether an attempt is retried and schedules the resend."""

  def __init__(
    self,
    options: Optional[RetryOptions] = None,
    retry_logic: Optional[RetryPredicate] = None,
    exchange_logger: Optional[ExchangeLogger] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
  ):
    """Initialize retry policy.
    
    Args:
      options: Delay and attempt bound
      retry_logic: Predicate returning True for retry-worthy responses
      exchange_logger: Receives one record per attempt
      sleep: Coroutine used to wait between attempts
    """
    self.options = options or RetryOptions()
    self.retry_logic = retry_logic or default_retry_logic
    self.exchange_logger = exchange_logger or ExchangeLogger()
    self.sleep = sleep
    self._logger = get_logger(__name__)

  @property
  def max_attempts(self) -> int:
    return self.options.max_attempts

  def should_retry(self, response: ResponseRecord) -> bool:
    return bool(self.retry_logic(response))

  async def execute(self, envelope: RequestEnvelope, send: SendAttempt) -> ResponseRecord:
    """Run the attempts of one logical call until it settles.
    
    Args:
      envelope: Envelope of the logical call; its attempt counter is
        advanced by ``send``
      send: Performs one attempt, raising TransportError on failure
      
    Returns:
      The first response the predicate does not consider retry-worthy
      
    Raises:
      TransportError: A failed attempt the predicate declined to retry
      RetryExhaustedError: The last allowed attempt was still retry-worthy
      Exception: Anything other than a TransportError raised by ``send``
        propagates at once, without logging or retrying
    """
    state = AttemptState.SENDING
    attempts = 0
    response: Optional[ResponseRecord] = None
    
    while True:
      if state is AttemptState.SENDING:
        attempts += 1
        try:
          response = await send(envelope)
        except TransportError as e:
          response = normalize_error(e, envelope)
        
        self.exchange_logger.log(response, "response")
        
        if not self.should_retry(response):
          state = AttemptState.REJECTED if response.failed else AttemptState.RESOLVED
        elif attempts >= self.max_attempts:
          self._logger.warning(
            "Retry attempts exhausted",
            url=response.request.url if response.request else None,
            attempts=attempts,
            status_code=response.status,
          )
          raise RetryExhaustedError(
            f"Request failed after {attempts} attempts",
            max_attempts=self.max_attempts,
            response=response,
            last_exception=response.error,
          )
        else:
          state = AttemptState.AWAITING_DELAY
      
      elif state is AttemptState.AWAITING_DELAY:
        self._logger.debug(
          "Scheduling retry",
          attempt=attempts,
          next_attempt=attempts + 1,
          delay_ms=self.options.delay_ms,
          status_code=response.status,
        )
        await self.sleep(self.options.delay_seconds)
        state = AttemptState.SENDING
      
      elif state is AttemptState.REJECTED:
        raise response.error
      
      else:
        return response
