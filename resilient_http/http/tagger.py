"""Stamps retry bookkeeping onto outgoing requests."""

import copy
from typing import Any

from resilient_http.models import RequestEnvelope, RequestRecord


def snapshot(value: Any) -> Any:
  """Copy ``value`` as deeply as it allows.

  Values that cannot be deep copied (generators, open files, multipart
  writers) fall back to a shallow copy, then to the value itself. A body
  kept by reference is replayed as-is, so a consumed stream stays consumed.
  """
  try:
    return copy.deepcopy(value)
  except Exception:
    pass
  try:
    return copy.copy(value)
  except Exception:
    return value


class RequestTagger:
  """Tags each attempt of a logical call before it is transmitted."""

  def tag(self, envelope: RequestEnvelope) -> RequestRecord:
    """Advance the attempt counter and prepare the payload for sending.

    On the first attempt the current headers and body are captured as the
    shadow copy. On every later attempt the shadow copy is written back onto
    the payload, discarding whatever the previous attempt changed. Never
    raises.

    Args:
      envelope: Envelope of the logical call

    Returns:
      The payload to hand to the transport
    """
    envelope.attempt += 1
    payload = envelope.payload

    if envelope.captured:
      payload.headers = snapshot(envelope.original_headers) or {}
      payload.data = snapshot(envelope.original_data)
    else:
      envelope.captured = True
      envelope.original_headers = snapshot(payload.headers)
      envelope.original_data = snapshot(payload.data)

    return payload
