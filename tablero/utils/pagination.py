"""
utils/pagination.py
--------------------

Helpers for paginated store access.

``paginate`` drives a page-fetching callback until the store runs out
of rows, enforcing the configured guards so a misbehaving table cannot
loop forever.  It stops when:

* A page returns an empty list of items.
* The next token is missing from the response.
* The next token is identical to the previous token.
* The configured maximum number of pages or items is reached.

``page_offset`` and ``total_pages`` hold the 1-based page arithmetic
shared by the report views.
"""

from __future__ import annotations

import math
from typing import Any, Callable, List, Optional, Tuple

from tablero.core.config import get_settings


def paginate(
    fetch_page: Callable[[Any], Any],
    extract: Callable[[Any], Tuple[List[Any], Optional[Any]]],
    initial_token: Any = 1,
    max_pages: Optional[int] = None,
    max_items: Optional[int] = None,
) -> List[Any]:
    """Iterate through pages until termination criteria are met.

    :param fetch_page: function accepting a page token and returning the raw
        response for that page.
    :param extract: function taking the raw response and returning a tuple of
        (items, next_token).  ``None`` as next token signals the last page.
    :param initial_token: starting token (defaults to page number ``1``)
    :param max_pages: page guard; the configured ``max_pages`` when omitted
    :param max_items: item guard; the configured ``max_items`` when omitted
    :return: a list containing all collected items across pages
    """
    if max_pages is None or max_items is None:
        settings = get_settings()
        max_pages = settings.max_pages if max_pages is None else max_pages
        max_items = settings.max_items if max_items is None else max_items
    items: List[Any] = []
    token = initial_token
    previous_token = None
    page_count = 0

    while True:
        page_count += 1
        if page_count > max_pages:
            break
        raw = fetch_page(token)
        page_items, next_token = extract(raw)
        if not page_items:
            break
        items.extend(page_items)
        if len(items) >= max_items:
            break
        if next_token is None or next_token == previous_token:
            break
        previous_token = token
        token = next_token
    return items


def page_offset(index: int, size: int) -> int:
    """Return the row offset of a 1-based page."""
    if index < 1:
        raise ValueError("page index is 1-based")
    return (index - 1) * size


def total_pages(count: Optional[int], size: int) -> int:
    """Number of pages needed for ``count`` rows; at least one page."""
    if not count:
        return 1
    return max(1, math.ceil(count / size))
