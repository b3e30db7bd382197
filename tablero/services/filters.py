"""
services/filters.py
-------------------

Filters applied over an already-fetched page of rows.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def substring_filter(rows: Sequence[Dict[str, Any]], query: str) -> Sequence[Dict[str, Any]]:
    """Keep rows where any field contains ``query``, ignoring case.

    An empty query returns ``rows`` itself.
    """
    if not query:
        return rows
    needle = query.lower()
    return [
        row for row in rows
        if any(needle in _as_text(value).lower() for value in row.values())
    ]


def equals_filter(rows: Sequence[Dict[str, Any]], field: str, value: str) -> List[Dict[str, Any]]:
    """Case-insensitive equality on one field; empty ``value`` keeps all rows."""
    if not value:
        return list(rows)
    target = value.lower()
    return [row for row in rows if _as_text(row.get(field)).lower() == target]
