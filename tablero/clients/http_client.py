"""
clients/http_client.py
----------------------

HTTP client wrapper with connection pooling, timeouts, retries and a
simple circuit breaker for idempotent requests.  One instance is
created per process in the FastAPI lifespan and shared by the store
client.  It uses ``httpx`` under the hood and honours the settings
defined in :mod:`tablero.core.config`.

Retries are applied to GET requests only: on network errors and on the
transient statuses in ``RETRY_STATUS``.  A per-host circuit breaker
short-circuits requests after repeated server failures.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

import httpx

from tablero.core.config import Settings, get_settings
from tablero.logging_config import log_http_request

# HTTP status codes that should trigger a retry
RETRY_STATUS = {429, 502, 503, 504}


class CircuitBreaker:
    """Simple per-host circuit breaker.

    Tracks consecutive failures for each host and trips when the count
    reaches a threshold.  The breaker resets after a cooldown period.
    """

    def __init__(self, failure_threshold: int = 5, reset_timeout: float = 60.0) -> None:
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self._failures: Dict[str, int] = {}
        self._tripped_until: Dict[str, float] = {}

    def record_failure(self, host: str) -> None:
        self._failures[host] = self._failures.get(host, 0) + 1
        if self._failures[host] >= self.failure_threshold:
            self._tripped_until[host] = time.monotonic() + self.reset_timeout

    def record_success(self, host: str) -> None:
        self._failures.pop(host, None)
        self._tripped_until.pop(host, None)

    def can_request(self, host: str) -> bool:
        until = self._tripped_until.get(host)
        if until is None:
            return True
        if time.monotonic() >= until:
            self._tripped_until.pop(host, None)
            self._failures.pop(host, None)
            return True
        return False


class HTTPClient:
    """Shared HTTP client with retry and circuit breaker.

    ``transport`` lets tests plug an ``httpx.MockTransport``.
    """

    def __init__(self, settings: Optional[Settings] = None,
                 transport: Optional[httpx.BaseTransport] = None) -> None:
        settings = settings or get_settings()
        self.timeout = settings.http_timeout
        self._client = httpx.Client(timeout=self.timeout, transport=transport)
        self._breaker = CircuitBreaker()
        self.max_retries = settings.http_max_retries
        self.backoff_factor = settings.http_backoff_factor

    def close(self) -> None:
        """Close the underlying HTTPX client and release resources."""
        self._client.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Perform a single HTTP request without retries.

        Raises ``RuntimeError`` when the breaker for the host is open.
        """
        host = httpx.URL(url).host
        if not self._breaker.can_request(host):
            raise RuntimeError(f"Circuit breaker open for host {host}")
        start_time = time.monotonic()
        log_http_request(method, url, headers=kwargs.get("headers"), params=kwargs.get("params"))
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError:
            self._breaker.record_failure(host)
            raise
        if 500 <= response.status_code < 600:
            self._breaker.record_failure(host)
        else:
            # 4xx is a caller error, not a sign of an unhealthy host
            self._breaker.record_success(host)
        log_http_request(method, url, status=response.status_code,
                         duration_ms=(time.monotonic() - start_time) * 1000)
        return response

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Perform a GET request with retries and exponential backoff."""
        last_exc: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            try:
                response = self._request("GET", url, **kwargs)
            except (httpx.HTTPError, RuntimeError) as exc:
                last_exc = exc
            else:
                if response.status_code not in RETRY_STATUS or attempt >= self.max_retries:
                    return response
            if attempt >= self.max_retries:
                break
            time.sleep(self.backoff_factor * (2 ** attempt))
        if last_exc:
            raise last_exc
        raise RuntimeError("GET request failed but no exception captured")

    def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Public request method; GET requests are retried."""
        method_upper = method.upper()
        if method_upper == "GET":
            return self.get(url, **kwargs)
        return self._request(method_upper, url, **kwargs)
