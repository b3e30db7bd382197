"""
services/catalog.py
-------------------

Branches and report types known to the dashboard.

Every report type is stored as one table per branch named
``<prefix><branch>`` (``CortesMexico``, ``SalidasBaja``, ...).  The
``General`` sentinel stands for all branches and is never sent to the
store; :func:`expand_branch` turns it into the concrete list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from fastapi import HTTPException

GENERAL = "General"

# Order matters: it is the fan-out and tie-break order.
BRANCHES: Dict[str, str] = {
    "Econo1": "Econo1",
    "Madero": "Madero",
    "Mexico": "México",
    "Lolita": "Lolita",
    "LopezM": "López Mateos",
    "Baja": "Baja",
    "Econo2": "Econo2",
}


@dataclass(frozen=True)
class ReportType:
    """How one report is laid out in the store."""

    name: str
    table_prefix: str
    date_field: str
    time_field: str
    id_field: str
    rounded_fields: Tuple[str, ...]
    default_branch: str = "Econo1"

    def table_for(self, branch: str) -> str:
        if branch not in BRANCHES:
            raise ValueError(f"{branch!r} is not a concrete branch")
        return f"{self.table_prefix}{branch}"


CORTES = ReportType(
    name="cortes",
    table_prefix="Cortes",
    date_field="fecha",
    time_field="hora",
    id_field="corte",
    rounded_fields=("totentreg", "tottarj", "faltan", "sobran", "gas", "com", "val", "totret"),
)

SALIDAS = ReportType(
    name="salidas",
    table_prefix="Salidas",
    date_field="fec",
    time_field="hor",
    id_field="id",
    rounded_fields=("cant",),
)

KARDEX = ReportType(
    name="kardex",
    table_prefix="Kardex",
    date_field="fecha",
    time_field="hora",
    id_field="id",
    rounded_fields=("cantidad", "costo", "ppub"),
)

REPORTS: Dict[str, ReportType] = {r.name: r for r in (CORTES, SALIDAS, KARDEX)}

# Kardex movement descriptions offered as an equality filter.
KARDEX_MOVEMENTS: Tuple[str, ...] = (
    "VENTA DE CAJA",
    "ENTRADA DE FACTURA",
    "ENTRADA DE TRANSFERENCIA",
    "SALIDA DE TRANSFERENCIA",
    "AJUSTE NEGATIVO",
    "AJUSTE POSITIVO",
    "VENTA CREDITO",
    "SALIDA DE CAJA",
    "ENTRADA DE PRODUCTO INDIVIDUAL",
    "DEVOLUCION CT DE VENTA",
    "DEVOLUCION A PROVEEDOR",
    "CANCELACION DE FACTURA",
)

# Kardex transaction code for cash sales.
CASH_SALE_CODE = "1"


def get_report(name: str) -> ReportType:
    report = REPORTS.get(name.lower().strip())
    if report is None:
        raise HTTPException(status_code=404, detail=f"Reporte '{name}' no existe")
    return report


def validate_branch(branch: str) -> str:
    if branch == GENERAL or branch in BRANCHES:
        return branch
    raise HTTPException(status_code=400, detail=f"Sucursal '{branch}' inválida")


def expand_branch(branch: str) -> List[str]:
    """Concrete branches behind a selection."""
    if branch == GENERAL:
        return list(BRANCHES)
    return [validate_branch(branch)]


def list_branches() -> List[Dict[str, str]]:
    out = [{"value": GENERAL, "label": GENERAL}]
    out.extend({"value": k, "label": v} for k, v in BRANCHES.items())
    return out
