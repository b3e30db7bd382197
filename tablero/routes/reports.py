"""
routes/reports.py
-----------------

API routes for the branch reports (cortes, salidas, kardex), the date
window and the cash sales summary.  The routes only log the request and
delegate to :mod:`tablero.services.report_service`.
"""

from __future__ import annotations

import json
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from tablero.logging_config import logger
from tablero.services.catalog import CASH_SALE_CODE
from tablero.services.report_service import (
    ReportContext,
    obtener_rango_fechas,
    obtener_sucursales,
    reporte_sucursal,
    resumen_ventas,
)

router = APIRouter()


def get_report_context(request: Request) -> ReportContext:
    """Dependency to retrieve the shared report collaborators from the application state."""
    return request.app.state.reports


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/sucursales")
def get_sucursales():
    return obtener_sucursales()


@router.get("/rango-fechas")
def get_rango_fechas(ctx: ReportContext = Depends(get_report_context)):
    return obtener_rango_fechas(ctx)


@router.get("/reportes/ventas/resumen")
def get_resumen_ventas(
    sucursal: str = Query("Mexico"),
    movto: str = Query(CASH_SALE_CODE),
    ctx: ReportContext = Depends(get_report_context),
):
    try:
        logger.info(json.dumps({
            "event": "resumen_ventas_request",
            "sucursal": sucursal,
            "movto": movto,
        }))
    except Exception:
        logger.info(json.dumps({"event": "resumen_ventas_request"}))
    return resumen_ventas(ctx, sucursal, movto)


@router.get("/reportes/{tipo}")
def get_reporte(
    tipo: str,
    sucursal: Optional[str] = Query(None),
    pagina: int = Query(1, ge=1),
    buscar: str = Query(""),
    movimiento: str = Query(""),
    ctx: ReportContext = Depends(get_report_context),
):
    try:
        logger.info(json.dumps({
            "event": "reporte_request",
            "tipo": tipo,
            "sucursal": sucursal,
            "pagina": pagina,
            "buscar": buscar,
            "movimiento": movimiento,
        }))
    except Exception:
        logger.info(json.dumps({"event": "reporte_request"}))
    return reporte_sucursal(ctx, tipo, sucursal, pagina, buscar, movimiento)
