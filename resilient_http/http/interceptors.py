"""Hook points for observing or rewriting requests and settled responses."""

import inspect
from typing import Any, Callable, Dict, Optional


async def _maybe_await(value: Any) -> Any:
  if inspect.isawaitable(value):
    return await value
  return value


class InterceptorManager:
  """Ordered registry of interceptor handler pairs.

  Handlers may be plain functions or coroutine functions. ``use`` returns an
  id that can later be passed to ``eject``.
  """

  def __init__(self):
    self._handlers: Dict[int, tuple[Optional[Callable], Optional[Callable]]] = {}
    self._next_id = 0

  def use(
    self,
    on_fulfilled: Optional[Callable] = None,
    on_rejected: Optional[Callable] = None
  ) -> int:
    handler_id = self._next_id
    self._handlers[handler_id] = (on_fulfilled, on_rejected)
    self._next_id += 1
    return handler_id

  def eject(self, handler_id: int) -> None:
    self._handlers.pop(handler_id, None)

  def clear(self) -> None:
    self._handlers.clear()

  def __len__(self) -> int:
    return len(self._handlers)

  async def run(self, value: Any) -> Any:
    """Pass ``value`` through every fulfilled handler in registration order.
    
    A handler returning ``None`` leaves the value unchanged.
    """
    for on_fulfilled, _ in list(self._handlers.values()):
      if on_fulfilled is None:
        continue
      result = await _maybe_await(on_fulfilled(value))
      if result is not None:
        value = result
    return value

  async def run_settled(self, value: Any = None, error: Optional[Exception] = None) -> Any:
    """Pass a settled outcome through the chain, letting handlers recover errors.
    
    While ``error`` is set, rejected handlers are called with it: returning a
    value recovers the call, raising replaces the error. Once recovered, the
    fulfilled handlers see the value.
    
    Raises:
      Exception: The error that remains after the last handler ran
    """
    for on_fulfilled, on_rejected in list(self._handlers.values()):
      if error is None:
        if on_fulfilled is None:
          continue
        try:
          result = await _maybe_await(on_fulfilled(value))
        except Exception as e:
          error = e
          continue
        if result is not None:
          value = result
      else:
        if on_rejected is None:
          continue
        try:
          value = await _maybe_await(on_rejected(error))
          error = None
        except Exception as e:
          error = e
    
    if error is not None:
      raise error
    return value


class Interceptors:
  """Request and response interceptor registries of one client."""

  def __init__(self):
    self.request = InterceptorManager()
    self.response = InterceptorManager()
