"""
services/branch_query.py
------------------------

Range queries against branch tables.

:class:`BranchQueryExecutor` queries one concrete branch.  Store errors
never escape it: they are logged and turned into an empty page whose
``total_count`` is ``None``, with the cause kept on the outcome so the
caller can report a degraded status.

:class:`FanoutMerger` runs the executor for several branches
concurrently, tags every row with its branch, concatenates the results
in branch order and re-sorts the whole set.  It never paginates: the
General view always materialises the full merged range.
"""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from tablero.clients.store_client import StoreClient
from tablero.exceptions import QueryFailed, StoreError
from tablero.logging_config import logger
from tablero.schemas.reports import DateWindow, Page, PageRequest, SortSpec
from tablero.services.catalog import BRANCHES, ReportType

BRANCH_FIELD = "sucursal_nombre"


@dataclass
class QueryOutcome:
    page: Page
    failure: Optional[QueryFailed] = None


@dataclass
class FanoutResult:
    rows: List[Dict[str, Any]] = field(default_factory=list)
    failures: List[QueryFailed] = field(default_factory=list)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def sort_key(sort: SortSpec):
    def key(row: Mapping[str, Any]) -> Tuple[str, str]:
        secondary = _text(row.get(sort.then_by)) if sort.then_by else ""
        return _text(row.get(sort.field)), secondary
    return key


class BranchQueryExecutor:
    def __init__(self, store: StoreClient) -> None:
        self.store = store

    def run(
        self,
        report: ReportType,
        branch: str,
        window: DateWindow,
        sort: SortSpec,
        page: Optional[PageRequest] = None,
        equals: Optional[Mapping[str, Any]] = None,
    ) -> QueryOutcome:
        if branch not in BRANCHES:
            raise ValueError(f"{branch!r} is not a concrete branch")
        table = report.table_for(branch)
        try:
            result = self.store.query_range(
                table,
                report.date_field,
                window.start,
                window.end,
                sort=sort,
                page=page,
                equals=equals,
            )
        except StoreError as exc:
            logger.warning(json.dumps({
                "event": "branch_query_failed",
                "reporte": report.name,
                "sucursal": branch,
                "table": table,
                "status_code": exc.status_code,
                "detalle": str(exc),
            }))
            empty = Page(
                rows=[],
                page_index=page.index if page else 1,
                page_size=page.size if page else 0,
                total_count=None,
            )
            return QueryOutcome(page=empty, failure=QueryFailed(branch, exc))

        if page is None:
            return QueryOutcome(page=Page(rows=result.rows, page_index=1,
                                          page_size=len(result.rows), total_count=None))
        return QueryOutcome(page=Page(
            rows=result.rows[:page.size],
            page_index=page.index,
            page_size=page.size,
            total_count=result.count,
        ))

    def query(
        self,
        report: ReportType,
        branch: str,
        window: DateWindow,
        sort: SortSpec,
        page: Optional[PageRequest] = None,
    ) -> Page:
        return self.run(report, branch, window, sort, page).page


class FanoutMerger:
    def __init__(self, executor: BranchQueryExecutor, max_workers: int = 7) -> None:
        self.executor = executor
        self.max_workers = max_workers

    def query_all(
        self,
        report: ReportType,
        branches: Sequence[str],
        window: DateWindow,
        sort: SortSpec,
        equals: Optional[Mapping[str, Any]] = None,
    ) -> FanoutResult:
        if not branches:
            return FanoutResult()
        workers = min(self.max_workers, len(branches))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(self.executor.run, report, branch, window, sort, None, equals)
                for branch in branches
            ]
            # collected in submission order so ties keep branch order
            outcomes = [f.result() for f in futures]

        merged = FanoutResult()
        for branch, outcome in zip(branches, outcomes):
            if outcome.failure is not None:
                merged.failures.append(outcome.failure)
            merged.rows.extend({**row, BRANCH_FIELD: branch} for row in outcome.page.rows)
        merged.rows.sort(key=sort_key(sort), reverse=sort.descending)
        logger.info(json.dumps({
            "event": "fanout_merged",
            "reporte": report.name,
            "sucursales": len(branches),
            "filas": len(merged.rows),
            "fallas": [f.branch for f in merged.failures],
        }))
        return merged
