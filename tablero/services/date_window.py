"""
services/date_window.py
-----------------------

Session-wide date window.

The window is read once from a single configuration record
(``date_range`` by default).  When the record is missing, malformed or
the request fails, the failure is logged and the provider stays
pending for the rest of the session: report views keep waiting and no
branch query is issued.  There is no retry.
"""

from __future__ import annotations

import json
import threading
from datetime import date, datetime, time, timezone
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from tablero.clients.store_client import StoreClient
from tablero.core.config import Settings, get_settings
from tablero.exceptions import ConfigUnavailable, StoreError
from tablero.logging_config import logger
from tablero.schemas.reports import DateWindow


def _parse_bound(value: Any, *, end_of_day: bool) -> datetime:
    """Parse a window bound.

    Date-only values cover the whole day: the start bound is midnight and
    the end bound is the last microsecond of that day.  Aware timestamps
    are converted to naive UTC, the way the branch tables store them.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime.combine(value, time.max if end_of_day else time.min)
    elif isinstance(value, str) and value.strip():
        text = value.strip().replace("Z", "+00:00")
        if len(text) == 10:
            try:
                day = date.fromisoformat(text)
            except ValueError as exc:
                raise ConfigUnavailable(f"invalid date {value!r}") from exc
            return datetime.combine(day, time.max if end_of_day else time.min)
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ConfigUnavailable(f"invalid timestamp {value!r}") from exc
    else:
        raise ConfigUnavailable(f"missing bound {value!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_window(record: Mapping[str, Any], start_column: str, end_column: str) -> DateWindow:
    """Build a :class:`DateWindow` from the configuration record."""
    start = _parse_bound(record.get(start_column), end_of_day=False)
    end = _parse_bound(record.get(end_column), end_of_day=True)
    try:
        return DateWindow(start=start, end=end)
    except ValidationError as exc:
        raise ConfigUnavailable(f"start {start} is after end {end}") from exc


class DateWindowProvider:
    """Resolves the date window once per session."""

    def __init__(self, store: StoreClient, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self.store = store
        self.table = settings.date_range_table
        self.start_column = settings.date_range_start_column
        self.end_column = settings.date_range_end_column
        self._window: Optional[DateWindow] = None
        self._attempted = False
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._window is None

    def fetch(self) -> Optional[DateWindow]:
        """Return the window, or ``None`` while it is pending.

        Only the first call touches the store.
        """
        with self._lock:
            if self._attempted:
                return self._window
            self._attempted = True
            try:
                record = self.store.query_one(self.table, columns=f"{self.start_column},{self.end_column}")
                self._window = parse_window(record, self.start_column, self.end_column)
            except (StoreError, ConfigUnavailable) as exc:
                logger.error(json.dumps({
                    "event": "date_window_unavailable",
                    "table": self.table,
                    "detalle": str(exc),
                }))
                return None
            logger.info(json.dumps({
                "event": "date_window_resolved",
                "start": self._window.start.isoformat(),
                "end": self._window.end.isoformat(),
            }))
            return self._window
