"""
core/auth.py
-------------

Helpers for building authenticated requests to the hosted store.

These functions centralise construction of the REST base URL and the
HTTP headers the store expects, so the API key is assembled in one
place and stripped from logs elsewhere.
"""

from __future__ import annotations

from typing import Dict


def get_rest_url(store_url: str) -> str:
    """Return the REST endpoint root for a store base URL.

    Trailing slashes are removed and ``/rest/v1`` is appended unless the
    URL already points at it.

    :param store_url: project URL (e.g. ``https://xyz.supabase.co``)
    :return: the REST root without trailing slash
    """
    base = store_url.strip().rstrip("/")
    if base.endswith("/rest/v1"):
        return base
    return f"{base}/rest/v1"


def build_store_headers(api_key: str, schema: str = "public") -> Dict[str, str]:
    """Create the headers required for an authenticated store call.

    The key is sent both as ``apikey`` and as a bearer token.  The
    schema is selected with ``Accept-Profile``.

    :param api_key: anon or service key of the project
    :param schema: database schema exposed by the REST API
    :return: a dictionary of headers suitable for use with httpx
    """
    headers = {
        "Accept": "application/json",
        "Accept-Profile": schema,
        "User-Agent": "tablero-sucursales",
    }
    if api_key:
        headers["apikey"] = api_key
        headers["Authorization"] = f"Bearer {api_key}"
    return headers
