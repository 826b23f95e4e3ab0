"""Transport, interceptors and retry machinery."""

from resilient_http.http.interceptors import InterceptorManager, Interceptors
from resilient_http.http.retry import RetryPolicy, default_retry_logic, normalize_error
from resilient_http.http.tagger import RequestTagger
from resilient_http.http.transport import Transport, build_url

__all__ = [
    "InterceptorManager",
    "Interceptors",
    "RequestTagger",
    "RetryPolicy",
    "Transport",
    "build_url",
    "default_retry_logic",
    "normalize_error",
]
