"""
logging_config.py
------------------

Shared logging configuration for the sucursales reporting service.
Messages go through Python's ``logging`` module and are serialised as
JSON strings so they can be parsed downstream (ELK, Grafana, etc.).

Import ``logger`` and log ``json.dumps({...})`` payloads with an
``event`` key.  The ``log_call`` decorator records entry and exit of
service functions at DEBUG level; ``log_http_request`` records calls to
the hosted store without leaking the API key.
"""

from __future__ import annotations

import inspect
import json
import logging
import sys
from functools import wraps
from typing import Any, Callable, Dict, Optional

# -----------------------------------------------------------------------------
# Configure global logging
# -----------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger("tablero")

# Header or key fragments that must never reach the logs.
_SENSITIVE_KEYS = ("token", "password", "secret", "apikey", "api_key", "authorization")

# Row lists can be large; only a preview is logged.
_MAX_LIST_ITEMS = 20


def _sanitize(obj: Any) -> Any:
    """Recursively sanitise objects for logging.

    Removes dictionary keys that look like credentials, replaces binary
    payloads (signed passes, certificates) by their size and truncates
    long lists of report rows.

    Parameters
    ----------
    obj : Any
        Arbitrary Python object to sanitise.

    Returns
    -------
    Any
        A representation of the input suitable for JSON serialisation.
    """
    if isinstance(obj, (bytes, bytearray)):
        return f"<binary {len(obj)} bytes>"
    if isinstance(obj, dict):
        clean: Dict[str, Any] = {}
        for k, v in obj.items():
            if any(keyword in str(k).lower() for keyword in _SENSITIVE_KEYS):
                continue
            clean[k] = _sanitize(v)
        return clean
    if isinstance(obj, (list, tuple)):
        items = [_sanitize(i) for i in obj[:_MAX_LIST_ITEMS]]
        if len(obj) > _MAX_LIST_ITEMS:
            items.append(f"<{len(obj) - _MAX_LIST_ITEMS} more>")
        return items
    if hasattr(obj, "model_dump"):
        try:
            return _sanitize(obj.model_dump())
        except Exception:
            return str(obj)
    try:
        return json.loads(json.dumps(obj))
    except (TypeError, ValueError):
        return str(obj)


def log_call(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to log entry and exit of functions at DEBUG level.

    Arguments and return values pass through ``_sanitize``.  Failures
    while building the log message never affect the wrapped call.

    Examples
    --------

    >>> @log_call
    ... def add(a, b):
    ...     return a + b
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        if logger.isEnabledFor(logging.DEBUG):
            try:
                logger.debug(json.dumps({
                    "event": "call_start",
                    "function": func.__name__,
                    "args": _sanitize(args),
                    "kwargs": _sanitize(kwargs),
                }))
            except (TypeError, ValueError):
                logger.debug(json.dumps({"event": "call_start", "function": func.__name__}))
        result = func(*args, **kwargs)
        if logger.isEnabledFor(logging.DEBUG):
            try:
                logger.debug(json.dumps({
                    "event": "call_end",
                    "function": func.__name__,
                    "result": _sanitize(result),
                }))
            except (TypeError, ValueError):
                logger.debug(json.dumps({"event": "call_end", "function": func.__name__}))
        return result

    # FastAPI inspects the signature of decorated route handlers.
    wrapper.__signature__ = inspect.signature(func)  # type: ignore[attr-defined]
    return wrapper


def log_http_request(method: str, url: str, *, headers: Optional[Dict[str, Any]] = None,
                     params: Any = None, status: Optional[int] = None,
                     duration_ms: Optional[float] = None) -> None:
    """Log an outbound HTTP request at DEBUG level.

    Parameters
    ----------
    method : str
        The HTTP method (GET, HEAD, ...).
    url : str
        The URL being requested.
    headers : dict, optional
        Request headers.  ``apikey`` and ``Authorization`` are removed.
    params : dict or list, optional
        Query parameters (PostgREST filters).
    status : int, optional
        Response status code (log end only).
    duration_ms : float, optional
        Time taken in milliseconds (log end only).
    """
    data: Dict[str, Any] = {
        "event": "http_request",
        "method": method,
        "url": url,
    }
    if headers is not None:
        data["headers"] = {k: v for k, v in headers.items() if k.lower() not in {"authorization", "apikey"}}
    if params:
        data["params"] = _sanitize(params)
    if status is not None:
        data["status"] = status
    if duration_ms is not None:
        data["duration_ms"] = round(duration_ms, 2)
    logger.debug(json.dumps(data))
