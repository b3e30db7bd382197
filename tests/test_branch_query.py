from datetime import datetime, timedelta

import pytest

from tablero.schemas.reports import DateWindow, PageRequest
from tablero.services.branch_query import BRANCH_FIELD, BranchQueryExecutor, FanoutMerger
from tablero.services.catalog import CORTES, KARDEX, SALIDAS, expand_branch
from tablero.services.report_view import default_sort
from tests.fakes import FakeStore

START = datetime(2024, 3, 1)
END = datetime(2024, 3, 31, 23, 59, 59)
WINDOW = DateWindow(start=START, end=END)
ONE_US = timedelta(microseconds=1)


def _fmt(moment):
    return moment.isoformat(sep=" ")


def _executor(rows_by_branch, prefix="Cortes"):
    store = FakeStore()
    store.add_report(prefix, rows_by_branch)
    return store, BranchQueryExecutor(store)


def test_window_bounds_are_inclusive():
    # the store sees the window as gte/lte filters, see
    # test_store_client.test_paged_range_query_sends_filters_and_reads_count
    rows = [
        {"fecha": _fmt(START - ONE_US), "hora": "", "corte": "before"},
        {"fecha": _fmt(START), "hora": "", "corte": "start"},
        {"fecha": _fmt(END), "hora": "", "corte": "end"},
        {"fecha": _fmt(END + ONE_US), "hora": "", "corte": "after"},
    ]
    _, executor = _executor({"Mexico": rows})
    page = executor.query(CORTES, "Mexico", WINDOW, default_sort(CORTES))
    assert sorted(r["corte"] for r in page.rows) == ["end", "start"]


def test_pages_concatenate_to_the_full_ordered_range():
    rows = [{"fecha": f"2024-03-{d:02d} 10:00:00", "hora": "10:00:00", "corte": d} for d in range(1, 26)]
    _, executor = _executor({"Baja": rows})
    sort = default_sort(CORTES)
    full = executor.query(CORTES, "Baja", WINDOW, sort).rows
    pages = [executor.query(CORTES, "Baja", WINDOW, sort, PageRequest(index=i, size=10)) for i in (1, 2, 3)]
    assert [len(p.rows) for p in pages] == [10, 10, 5]
    assert all(p.total_count == 25 for p in pages)
    assert [r["corte"] for p in pages for r in p.rows] == [r["corte"] for r in full]
    assert full[0]["corte"] == 25


def test_store_failure_becomes_an_empty_page():
    store, executor = _executor({})
    store.failing.add("CortesMexico")
    outcome = executor.run(CORTES, "Mexico", WINDOW, default_sort(CORTES), PageRequest(index=2, size=10))
    assert outcome.page.rows == []
    assert outcome.page.total_count is None
    assert outcome.page.page_index == 2
    assert outcome.failure.branch == "Mexico"
    assert "boom" in str(outcome.failure)


def test_general_is_not_a_table():
    _, executor = _executor({})
    with pytest.raises(ValueError):
        executor.run(CORTES, "General", WINDOW, default_sort(CORTES))


def test_equality_filter_is_forwarded():
    rows = [
        {"fecha": "2024-03-02", "hora": "", "movto": "1", "cantidad": 1},
        {"fecha": "2024-03-02", "hora": "", "movto": "7", "cantidad": 9},
    ]
    _, executor = _executor({"Lolita": rows}, prefix="Kardex")
    outcome = executor.run(KARDEX, "Lolita", WINDOW, default_sort(KARDEX), equals={"movto": "1"})
    assert [r["cantidad"] for r in outcome.page.rows] == [1]


def test_fanout_merges_branches_newest_first():
    _, executor = _executor({
        "Econo1": [
            {"fecha": "2024-03-04", "hora": "09:00", "corte": 4},
            {"fecha": "2024-03-01", "hora": "09:00", "corte": 1},
        ],
        "Madero": [{"fecha": "2024-03-03", "hora": "09:00", "corte": 3}],
        "Mexico": [{"fecha": "2024-03-02", "hora": "09:00", "corte": 2}],
    })
    merged = FanoutMerger(executor).query_all(CORTES, expand_branch("General"), WINDOW, default_sort(CORTES))
    assert [r["corte"] for r in merged.rows] == [4, 3, 2, 1]
    assert [r[BRANCH_FIELD] for r in merged.rows] == ["Econo1", "Madero", "Mexico", "Econo1"]
    assert merged.failures == []


def test_fanout_ties_keep_branch_order():
    tie = {"fec": "2024-03-05", "hor": "12:00", "cant": 1}
    _, executor = _executor({"Baja": [dict(tie, id="b")], "Econo1": [dict(tie, id="e")]}, prefix="Salidas")
    merged = FanoutMerger(executor, max_workers=3).query_all(
        SALIDAS, expand_branch("General"), WINDOW, default_sort(SALIDAS))
    assert [r["id"] for r in merged.rows] == ["e", "b"]


def test_fanout_drops_failed_branch_and_reports_it():
    store, executor = _executor({
        "Madero": [{"fecha": "2024-03-03", "hora": "", "corte": 3}],
        "Econo2": [{"fecha": "2024-03-09", "hora": "", "corte": 9}],
    })
    store.failing.add("CortesMadero")
    merged = FanoutMerger(executor).query_all(CORTES, expand_branch("General"), WINDOW, default_sort(CORTES))
    assert [r["corte"] for r in merged.rows] == [9]
    assert [f.branch for f in merged.failures] == ["Madero"]
