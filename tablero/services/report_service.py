"""
services/report_service.py
--------------------------

Business logic behind the report endpoints.  Each request builds its
own :class:`ReportView` over the shared date window, executor and
fan-out merger, loads it once and returns its snapshot.  The sales
summary reduces cash-sale kardex rows to derived totals.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from tablero.clients.store_client import StoreClient
from tablero.core.config import Settings, get_settings
from tablero.logging_config import log_call, logger
from tablero.schemas.reports import DateWindow, SalesSummaryResponse
from tablero.services.aggregate import summarize
from tablero.services.branch_query import BranchQueryExecutor, FanoutMerger
from tablero.services.catalog import (
    CASH_SALE_CODE,
    GENERAL,
    KARDEX,
    KARDEX_MOVEMENTS,
    expand_branch,
    get_report,
    list_branches,
    validate_branch,
)
from tablero.services.date_window import DateWindowProvider
from tablero.services.report_view import ReportView, default_sort


@dataclass
class ReportContext:
    """Collaborators shared by every report request of the process."""

    window_provider: DateWindowProvider
    executor: BranchQueryExecutor
    fanout: FanoutMerger
    page_size: int

    @classmethod
    def from_store(cls, store: StoreClient, settings: Optional[Settings] = None) -> "ReportContext":
        settings = settings or get_settings()
        executor = BranchQueryExecutor(store)
        return cls(
            window_provider=DateWindowProvider(store, settings),
            executor=executor,
            fanout=FanoutMerger(executor, max_workers=settings.fanout_max_workers),
            page_size=settings.page_size,
        )

    def new_view(self, tipo: str, sucursal: Optional[str] = None) -> ReportView:
        return ReportView(
            get_report(tipo),
            self.window_provider,
            self.executor,
            self.fanout,
            page_size=self.page_size,
            branch=sucursal,
        )


def obtener_sucursales() -> Dict[str, Any]:
    return {
        "status": "ok",
        "sucursales": list_branches(),
        "movimientos_kardex": list(KARDEX_MOVEMENTS),
    }


def obtener_rango_fechas(ctx: ReportContext) -> Dict[str, Any]:
    window = ctx.window_provider.fetch()
    if window is None:
        return {"estado": "awaiting_window"}
    return {
        "estado": "ready",
        "inicio": window.start.isoformat(sep=" "),
        "fin": window.end.isoformat(sep=" "),
    }


@log_call
def reporte_sucursal(
    ctx: ReportContext,
    tipo: str,
    sucursal: Optional[str] = None,
    pagina: int = 1,
    buscar: str = "",
    movimiento: str = "",
) -> Dict[str, Any]:
    """Load one report page for a branch (or ``General``) and filter it."""
    view = ctx.new_view(tipo, sucursal)
    view.set_page(pagina)
    view.set_query(buscar)
    view.set_movement(movimiento)
    view.load()
    snapshot = view.snapshot()
    logger.info(json.dumps({
        "event": "reporte_sucursal_cargado",
        "reporte": snapshot.reporte,
        "sucursal": snapshot.sucursal,
        "estado": snapshot.estado,
        "status": snapshot.status,
        "filas": len(snapshot.filas),
    }))
    return snapshot.model_dump()


def _cash_sales(ctx: ReportContext, sucursal: str, window: DateWindow, movto: str):
    equals = {"movto": movto}
    sort = default_sort(KARDEX)
    if sucursal == GENERAL:
        merged = ctx.fanout.query_all(KARDEX, expand_branch(GENERAL), window, sort, equals=equals)
        return merged.rows, merged.failures
    outcome = ctx.executor.run(KARDEX, sucursal, window, sort, None, equals)
    return outcome.page.rows, [outcome.failure] if outcome.failure else []


@log_call
def resumen_ventas(ctx: ReportContext, sucursal: str = "Mexico", movto: str = CASH_SALE_CODE) -> Dict[str, Any]:
    """Units, cost, list price and margin of the kardex rows of one movement code."""
    sucursal = validate_branch(sucursal)
    window = ctx.window_provider.fetch()
    if window is None:
        return {"estado": "awaiting_window", "sucursal": sucursal, "movimiento": movto}
    rows, failures = _cash_sales(ctx, sucursal, window, movto)
    causes = [str(f) for f in failures]
    response = SalesSummaryResponse(
        status="degraded" if causes else "ready",
        sucursal=sucursal,
        movimiento=movto,
        registros=len(rows),
        totales=summarize(rows),
        fallas=causes,
    )
    return {"estado": "ready", **response.model_dump()}
