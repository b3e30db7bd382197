"""
services/aggregate.py
---------------------

Derived totals over filtered rows.  Sums accumulate as ``Decimal`` at
full precision and are rounded once, at the end.
"""

from __future__ import annotations

import re
from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from tablero.schemas.reports import AggregateTotals, DailyTotals
from tablero.services.transform import date_part, round2, to_decimal

_DATE_KEY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

UNKNOWN_DATE = "Fecha desconocida"
INVALID_DATE = "Fecha inválida"


def summarize(
    rows: Iterable[Mapping[str, Any]],
    *,
    quantity_field: str = "cantidad",
    cost_field: str = "costo",
    price_field: str = "ppub",
) -> AggregateTotals:
    """Units, cost, list price and margin of kardex-like rows.

    Rows must already be restricted to one transaction type.
    """
    units = Decimal(0)
    cost = Decimal(0)
    price = Decimal(0)
    for row in rows:
        qty = to_decimal(row.get(quantity_field))
        units += qty
        cost += qty * to_decimal(row.get(cost_field))
        price += qty * to_decimal(row.get(price_field))
    return AggregateTotals(
        units_sum=round2(units),
        cost_sum=round2(cost),
        list_price_sum=round2(price),
        margin_sum=round2(price - cost),
    )


def date_key(value: Any) -> str:
    if value is None or value == "":
        return UNKNOWN_DATE
    key = date_part(value)
    return key if _DATE_KEY.match(key) else INVALID_DATE


def _newest_first(keys: Iterable[str]) -> List[str]:
    keys = list(keys)
    dated = sorted((k for k in keys if _DATE_KEY.match(k)), reverse=True)
    return dated + [k for k in (INVALID_DATE, UNKNOWN_DATE) if k in keys]


def daily_totals(
    rows: Iterable[Mapping[str, Any]],
    date_field: str,
    fields: Sequence[str],
) -> List[DailyTotals]:
    """Per-date sums of ``fields`` plus a record count, newest date first."""
    sums: Dict[str, Dict[str, Decimal]] = defaultdict(lambda: {f: Decimal(0) for f in fields})
    counts: Dict[str, int] = defaultdict(int)
    for row in rows:
        key = date_key(row.get(date_field))
        counts[key] += 1
        bucket = sums[key]
        for name in fields:
            bucket[name] += to_decimal(row.get(name))
    return [
        DailyTotals(
            fecha=key,
            registros=counts[key],
            totales={name: round2(total) for name, total in sums[key].items()},
        )
        for key in _newest_first(sums)
    ]
