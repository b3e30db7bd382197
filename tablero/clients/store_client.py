"""
clients/store_client.py
-----------------------

Client for the hosted relational store (a PostgREST API such as the one
Supabase exposes).  It offers the two capabilities the report layer
consumes:

* ``query_range``: rows of a table whose ``filter_field`` lies in an
  inclusive range, optionally ordered, optionally one page at a time
  with an exact row count.
* ``query_one``: exactly one record of a configuration table.

Any non-2xx answer or transport failure is raised as
:class:`~tablero.exceptions.StoreError`; callers decide whether to
swallow it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx

from tablero.clients.http_client import HTTPClient
from tablero.core.auth import build_store_headers, get_rest_url
from tablero.core.config import Settings, get_settings
from tablero.exceptions import StoreError
from tablero.logging_config import logger
from tablero.schemas.reports import PageRequest, SortSpec
from tablero.utils.pagination import page_offset, paginate


@dataclass
class StoreResult:
    rows: List[Dict[str, Any]] = field(default_factory=list)
    count: Optional[int] = None


def _format_bound(value: datetime) -> str:
    return value.isoformat(sep=" ")


def _order_param(sort: SortSpec) -> str:
    suffix = "desc" if sort.descending else "asc"
    keys = [sort.field] + ([sort.then_by] if sort.then_by else [])
    return ",".join(f"{k}.{suffix}" for k in keys)


def _parse_count(content_range: Optional[str]) -> Optional[int]:
    """Total from a ``Content-Range`` header such as ``0-999/1234``."""
    if not content_range or "/" not in content_range:
        return None
    total = content_range.rsplit("/", 1)[1].strip()
    if total == "*":
        return None
    try:
        return int(total)
    except ValueError:
        return None


class StoreClient:
    """Read-only access to the store's REST API."""

    def __init__(self, http_client: HTTPClient, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self.http_client = http_client
        self.rest_url = get_rest_url(settings.store_url)
        self.headers = build_store_headers(settings.store_key, settings.store_schema)
        self.max_rows = settings.store_max_rows
        self.max_pages = settings.max_pages
        self.max_items = settings.max_items

    def _get(self, table: str, params: List[Tuple[str, Any]],
             extra_headers: Optional[Mapping[str, str]] = None) -> httpx.Response:
        headers = dict(self.headers)
        if extra_headers:
            headers.update(extra_headers)
        url = f"{self.rest_url}/{table}"
        try:
            resp = self.http_client.request("GET", url, headers=headers, params=params)
        except (httpx.HTTPError, RuntimeError) as exc:
            raise StoreError(str(exc), table=table) from exc
        if not (200 <= resp.status_code < 300):
            try:
                detail = resp.json().get("message") or resp.text
            except (ValueError, AttributeError):
                detail = resp.text
            raise StoreError(f"HTTP {resp.status_code}: {detail}", table=table, status_code=resp.status_code)
        return resp

    @staticmethod
    def _rows(resp: httpx.Response, table: str) -> List[Dict[str, Any]]:
        try:
            data = resp.json()
        except json.JSONDecodeError as exc:
            raise StoreError("invalid JSON body", table=table) from exc
        if not isinstance(data, list):
            raise StoreError("expected a list of rows", table=table)
        return data

    def query_range(
        self,
        table: str,
        filter_field: str,
        start: datetime,
        end: datetime,
        *,
        sort: Optional[SortSpec] = None,
        page: Optional[PageRequest] = None,
        columns: str = "*",
        equals: Optional[Mapping[str, Any]] = None,
    ) -> StoreResult:
        """Rows with ``start <= filter_field <= end``.

        With ``page`` one page is returned together with the exact count
        of matching rows.  Without it the whole range is fetched in
        chunks of ``store_max_rows`` and ``count`` is ``None``.
        """
        base: List[Tuple[str, Any]] = [
            ("select", columns),
            (filter_field, f"gte.{_format_bound(start)}"),
            (filter_field, f"lte.{_format_bound(end)}"),
        ]
        for key, value in (equals or {}).items():
            base.append((key, f"eq.{value}"))
        if sort is not None:
            base.append(("order", _order_param(sort)))

        if page is not None:
            params = base + [("offset", page_offset(page.index, page.size)), ("limit", page.size)]
            resp = self._get(table, params, {"Prefer": "count=exact"})
            rows = self._rows(resp, table)
            return StoreResult(rows=rows, count=_parse_count(resp.headers.get("content-range")))

        chunk = self.max_rows

        def fetch_page(token: int) -> Tuple[int, List[Dict[str, Any]]]:
            params = base + [("offset", page_offset(token, chunk)), ("limit", chunk)]
            return token, self._rows(self._get(table, params), table)

        def extract(raw: Tuple[int, List[Dict[str, Any]]]) -> Tuple[List[Dict[str, Any]], Optional[int]]:
            token, rows = raw
            # a short chunk is the last one
            return rows, token + 1 if len(rows) == chunk else None

        rows = paginate(fetch_page, extract, initial_token=1,
                        max_pages=self.max_pages, max_items=self.max_items)
        logger.debug(json.dumps({"event": "store_full_range", "table": table, "rows": len(rows)}))
        return StoreResult(rows=rows, count=None)

    def query_one(self, table: str, columns: str = "*",
                  equals: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Exactly one record of ``table``; anything else is a ``StoreError``."""
        params: List[Tuple[str, Any]] = [("select", columns), ("limit", 2)]
        for key, value in (equals or {}).items():
            params.append((key, f"eq.{value}"))
        rows = self._rows(self._get(table, params), table)
        if len(rows) != 1:
            raise StoreError(f"expected exactly one record, got {len(rows)}", table=table)
        record = rows[0]
        if not isinstance(record, dict):
            raise StoreError("malformed record", table=table)
        return record
