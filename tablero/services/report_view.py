"""
services/report_view.py
-----------------------

One report view: its own selection (branch, page, search text,
movement filter), the page it currently displays and its load state.

States: ``uninitialized -> awaiting_window -> loading -> ready``.  A
load issued while another is in flight supersedes it: every load is
tagged with a generation number and only the latest generation may
write its result.  A response from an older generation is discarded,
so the displayed page always matches the most recently issued request.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from tablero.exceptions import QueryFailed
from tablero.logging_config import logger
from tablero.schemas.reports import DateWindow, PageRequest, ReportSnapshot, SortSpec
from tablero.services.aggregate import daily_totals
from tablero.services.branch_query import BranchQueryExecutor, FanoutMerger
from tablero.services.catalog import CORTES, GENERAL, KARDEX, ReportType, expand_branch, validate_branch
from tablero.services.date_window import DateWindowProvider
from tablero.services.filters import equals_filter, substring_filter
from tablero.services.transform import transform_row
from tablero.utils.pagination import page_offset, total_pages


class ViewState(str, Enum):
    UNINITIALIZED = "uninitialized"
    AWAITING_WINDOW = "awaiting_window"
    LOADING = "loading"
    READY = "ready"


@dataclass
class ViewSelection:
    branch: str
    page_index: int = 1
    query: str = ""
    movement: str = ""


@dataclass(frozen=True)
class LoadRequest:
    generation: int
    selection: ViewSelection
    window: DateWindow


@dataclass
class LoadResult:
    rows: List[Dict[str, Any]] = field(default_factory=list)
    # untransformed store rows, parallel to ``rows``
    raw_rows: List[Dict[str, Any]] = field(default_factory=list)
    total_count: Optional[int] = None
    failures: List[QueryFailed] = field(default_factory=list)


def default_sort(report: ReportType) -> SortSpec:
    return SortSpec(field=report.date_field, direction="desc", then_by=report.time_field)


class ReportView:
    def __init__(
        self,
        report: ReportType,
        window_provider: DateWindowProvider,
        executor: BranchQueryExecutor,
        fanout: FanoutMerger,
        page_size: int = 1000,
        branch: Optional[str] = None,
    ) -> None:
        self.report = report
        self.window_provider = window_provider
        self.executor = executor
        self.fanout = fanout
        self.page_size = page_size
        self.sort = default_sort(report)
        self.selection = ViewSelection(branch=validate_branch(branch or report.default_branch))
        self.state = ViewState.UNINITIALIZED
        self._lock = threading.Lock()
        self._generation = 0
        self._shown: Optional[LoadRequest] = None
        self._result = LoadResult()

    # -- selection -------------------------------------------------------

    def select_branch(self, branch: str) -> None:
        branch = validate_branch(branch)
        with self._lock:
            if branch != self.selection.branch:
                self.selection = replace(self.selection, branch=branch, page_index=1)

    def set_page(self, index: int) -> None:
        if index < 1:
            raise ValueError("page index is 1-based")
        with self._lock:
            self.selection = replace(self.selection, page_index=index)

    def set_query(self, query: str) -> None:
        # applied over the materialised page, no reload
        with self._lock:
            self.selection = replace(self.selection, query=query or "")

    def set_movement(self, movement: str) -> None:
        with self._lock:
            self.selection = replace(self.selection, movement=movement or "")

    # -- loading ---------------------------------------------------------

    def begin_load(self) -> Optional[LoadRequest]:
        """Issue a new load, or return ``None`` while the window is pending."""
        window = self.window_provider.fetch()
        with self._lock:
            if window is None:
                self.state = ViewState.AWAITING_WINDOW
                return None
            self._generation += 1
            self.state = ViewState.LOADING
            return LoadRequest(generation=self._generation, selection=self.selection, window=window)

    def execute(self, request: LoadRequest) -> LoadResult:
        """Run the queries for ``request``; does not touch view state."""
        selection = request.selection
        if selection.branch == GENERAL:
            merged = self.fanout.query_all(self.report, expand_branch(GENERAL), request.window, self.sort)
            rows = merged.rows
            total, failures = None, merged.failures
        else:
            outcome = self.executor.run(
                self.report,
                selection.branch,
                request.window,
                self.sort,
                PageRequest(index=selection.page_index, size=self.page_size),
            )
            rows = outcome.page.rows
            total = outcome.page.total_count
            failures = [outcome.failure] if outcome.failure else []
        return LoadResult(
            rows=[transform_row(self.report, r) for r in rows],
            raw_rows=rows,
            total_count=total,
            failures=failures,
        )

    def complete(self, request: LoadRequest, result: LoadResult) -> bool:
        """Apply ``result`` unless a newer load has been issued since."""
        with self._lock:
            if request.generation != self._generation:
                logger.info(json.dumps({
                    "event": "stale_response_discarded",
                    "reporte": self.report.name,
                    "generation": request.generation,
                    "latest": self._generation,
                }))
                return False
            self._shown = request
            self._result = result
            self.state = ViewState.READY
            return True

    def load(self) -> bool:
        request = self.begin_load()
        if request is None:
            return False
        return self.complete(request, self.execute(request))

    # -- display ---------------------------------------------------------

    def visible_rows(self) -> List[Dict[str, Any]]:
        """Loaded rows that pass the movement and search filters."""
        selection = self.selection
        rows = self._result.rows
        if self.report == KARDEX and selection.movement:
            rows = equals_filter(rows, "desc_movto", selection.movement)
        return list(substring_filter(rows, selection.query))

    def _raw_for(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        # filters return the loaded row objects themselves
        raw_by_id = {id(row): raw for row, raw in zip(self._result.rows, self._result.raw_rows)}
        return [raw_by_id[id(row)] for row in rows]

    def snapshot(self) -> ReportSnapshot:
        with self._lock:
            shown = self._shown.selection if self._shown else self.selection
            rows = self.visible_rows()
            raw = self._raw_for(rows)
            result = self._result
            state = self.state
        total = result.total_count
        page_count = total_pages(total, self.page_size)
        if shown.branch == GENERAL:
            # the merged range is materialised whole and paged here
            page_count = total_pages(len(rows), self.page_size)
            offset = page_offset(shown.page_index, self.page_size)
            rows = rows[offset:offset + self.page_size]
            raw = raw[offset:offset + self.page_size]
        failures = [str(f) for f in result.failures]
        return ReportSnapshot(
            reporte=self.report.name,
            estado=state.value,
            status="degraded" if failures else "ready",
            fallas=failures,
            sucursal=shown.branch,
            pagina=shown.page_index,
            tamano_pagina=self.page_size,
            total_registros=total,
            total_paginas=page_count,
            buscar=self.selection.query,
            movimiento=self.selection.movement,
            filas=rows,
            totales_por_fecha=(
                daily_totals(raw, CORTES.date_field, CORTES.rounded_fields)
                if self.report == CORTES else None
            ),
        )
