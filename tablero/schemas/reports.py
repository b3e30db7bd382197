"""
schemas/reports.py
-------------------

Models shared by the report layer: the session date window, sort and
page requests, the page returned by a branch query, the derived sales
totals and the snapshot returned by the report endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DateWindow(BaseModel):
    """Inclusive ``[start, end]`` window shared by every query of a session."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> "DateWindow":
        if self.start > self.end:
            raise ValueError("start must be <= end")
        return self

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class SortSpec(BaseModel):
    field: str
    direction: Literal["asc", "desc"] = "desc"
    # secondary key, same direction (e.g. the time column)
    then_by: Optional[str] = None

    @property
    def descending(self) -> bool:
        return self.direction == "desc"


class PageRequest(BaseModel):
    index: int = Field(1, ge=1)
    size: int = Field(1000, ge=1)


class Page(BaseModel):
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    page_index: int = 1
    page_size: int
    # None when the query mode does not track a server-side count
    total_count: Optional[int] = None


class AggregateTotals(BaseModel):
    units_sum: float = 0.0
    cost_sum: float = 0.0
    list_price_sum: float = 0.0
    margin_sum: float = 0.0


class DailyTotals(BaseModel):
    fecha: str
    registros: int
    totales: Dict[str, float]


class ReportSnapshot(BaseModel):
    """What a report view currently displays."""

    reporte: str
    estado: Literal["uninitialized", "awaiting_window", "loading", "ready"]
    status: Literal["ready", "degraded"] = "ready"
    fallas: List[str] = Field(default_factory=list)
    sucursal: str
    pagina: int = 1
    tamano_pagina: int
    total_registros: Optional[int] = None
    total_paginas: int = 1
    buscar: str = ""
    movimiento: str = ""
    filas: List[Dict[str, Any]] = Field(default_factory=list)
    totales_por_fecha: Optional[List[DailyTotals]] = None


class SalesSummaryResponse(BaseModel):
    status: Literal["ready", "degraded"] = "ready"
    sucursal: str
    movimiento: str
    registros: int
    totales: AggregateTotals
    fallas: List[str] = Field(default_factory=list)
