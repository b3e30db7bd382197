"""
services/transform.py
---------------------

Normalises raw store rows into display-ready records.

Branch tables keep some timestamps as one ``"YYYY-MM-DD HH:MM:SS"``
string in both the date and the time column; the date column keeps the
date part, the time column the time part.  Money and quantity columns
are rounded to two decimals with ties away from zero.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Mapping

from tablero.services.catalog import ReportType

TWO_PLACES = Decimal("0.01")

_DELIMITER = re.compile(r"[ T]")


def to_decimal(value: Any) -> Decimal:
    """Parse numbers stored as numbers or strings; unparsable values are 0."""
    if value is None or isinstance(value, bool):
        return Decimal(0)
    text = str(value).strip().replace(",", ".")
    if not text:
        return Decimal(0)
    try:
        number = Decimal(text)
    except InvalidOperation:
        return Decimal(0)
    return number if number.is_finite() else Decimal(0)


def round2(value: Any) -> float:
    return float(to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def date_part(value: Any) -> str:
    if value is None:
        return ""
    return _DELIMITER.split(str(value).strip(), maxsplit=1)[0]


def time_part(value: Any) -> str:
    """Time component of a timestamp; ``""`` when there is none."""
    if value is None:
        return ""
    text = str(value).strip()
    parts = _DELIMITER.split(text, maxsplit=1)
    if len(parts) == 2:
        return parts[1]
    # already a bare time
    return text if ":" in text else ""


def transform_row(report: ReportType, raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a new display-ready row; ``raw`` is left untouched."""
    row = dict(raw)
    if report.date_field in row:
        row[report.date_field] = date_part(row[report.date_field])
    if report.time_field in row:
        row[report.time_field] = time_part(row[report.time_field])
    for name in report.rounded_fields:
        if name in row:
            row[name] = round2(row[name])
    return row
