"""aiohttp transport performing single request attempts."""

import asyncio
import json
from typing import Any, Optional

import aiohttp
from aiohttp import ClientTimeout, TCPConnector
from aiohttp.client_exceptions import ClientConnectorError, ClientError
from yarl import URL

from resilient_http.exceptions import HTTPStatusError, NetworkError, TimeoutError
from resilient_http.models import ClientConfig, RequestRecord, ResponseRecord

TEXTUAL_CONTENT_TYPES = {
  "application/xml",
  "application/javascript",
  "application/x-www-form-urlencoded",
}


def build_url(base_url: Optional[str], url: str) -> str:
  """Join a relative url onto the client's base address.
  
  Absolute urls are returned unchanged.
  """
  if not base_url or URL(url).is_absolute():
    return url
  if not url:
    return base_url
  return f"{base_url.rstrip('/')}/{url.lstrip('/')}"


def _is_textual(content_type: str) -> bool:
  return (
    content_type.startswith("text/")
    or content_type in TEXTUAL_CONTENT_TYPES
    or content_type.endswith("+xml")
  )


class Transport:
  """HTTP transport with connection pooling.

  ``send`` performs exactly one attempt; retrying is left to the caller.
  """

  def __init__(self, config: Optional[ClientConfig] = None):
    """Initialize transport.
    
    Args:
      config: Baseline configuration (base address, pool size, timeout)
    """
    self.config = config or ClientConfig()
    self.session: Optional[aiohttp.ClientSession] = None

  async def _get_session(self) -> aiohttp.ClientSession:
    """Get or create aiohttp session with connection pooling."""
    if self.session is None:
      connector = TCPConnector(limit=self.config.max_connections)
      timeout = ClientTimeout(total=self.config.timeout)
      
      self.session = aiohttp.ClientSession(
        connector=connector,
        timeout=timeout
      )
    
    return self.session

  async def send(self, request: RequestRecord) -> ResponseRecord:
    """Send one attempt of ``request``.
    
    Args:
      request: Request to transmit as-is
      
    Returns:
      Response record for a 2xx answer
      
    Raises:
      HTTPStatusError: The server answered outside the 2xx range
      NetworkError: For network-related errors
      TimeoutError: For timeout errors
    """
    session = await self._get_session()
    url = build_url(self.config.base_url, request.url)
    
    kwargs: dict[str, Any] = {
      "headers": request.headers,
      "params": request.params or None,
    }
    if request.is_json or isinstance(request.data, (dict, list)):
      kwargs["json"] = request.data
    elif request.data is not None:
      kwargs["data"] = request.data
    
    try:
      async with session.request(request.method, url, **kwargs) as response:
        body = await self._read_body(response)
        record = ResponseRecord(
          status=response.status,
          data=body,
          request=request,
          headers=dict(response.headers),
        )
    except asyncio.TimeoutError as e:
      raise TimeoutError(
        f"Request timeout: {str(e)}",
        timeout_seconds=self.config.timeout,
        cause=e
      )
    except ClientConnectorError as e:
      raise NetworkError(f"Connection failed: {str(e)}", cause=e)
    except ClientError as e:
      raise NetworkError(f"HTTP request failed: {str(e)}", cause=e)
    
    if not 200 <= record.status < 300:
      error = HTTPStatusError(record)
      record.error = error
      raise error
    
    return record

  @staticmethod
  async def _read_body(response: aiohttp.ClientResponse) -> Any:
    """Decode the body as JSON or text when its content type says so.
    
    Binary payloads, and text that does not decode with the declared
    charset, are returned as bytes.
    """
    raw = await response.read()
    if not raw:
      return None
    
    content_type = response.content_type or ""
    is_json = content_type == "application/json" or content_type.endswith("+json")
    if not (is_json or _is_textual(content_type)):
      return raw
    
    try:
      text = raw.decode(response.charset or "utf-8")
    except (LookupError, UnicodeDecodeError):
      return raw
    
    if is_json:
      try:
        return json.loads(text)
      except ValueError:
        return text
    return text

  async def close(self) -> None:
    """Close the HTTP session and clean up resources."""
    if self.session is not None:
      await self.session.close()
      self.session = None

  async def __aenter__(self) -> "Transport":
    return self

  async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
    await self.close()
