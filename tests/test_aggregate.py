from tablero.services.aggregate import INVALID_DATE, UNKNOWN_DATE, daily_totals, summarize


def test_summarize_rounds_once_at_the_end():
    rows = [
        {"cantidad": 3, "costo": 1.005, "ppub": 2},
        {"cantidad": 1, "costo": "1.005", "ppub": "2"},
    ]
    totals = summarize(rows)
    assert totals.units_sum == 4.0
    assert totals.cost_sum == 4.02
    assert totals.list_price_sum == 8.0
    assert totals.margin_sum == 3.98


def test_summarize_empty():
    totals = summarize([])
    assert totals.units_sum == 0
    assert totals.margin_sum == 0


def test_daily_totals_newest_first():
    rows = [
        {"fecha": "2024-03-01", "totentreg": 10.005},
        {"fecha": "2024-03-02", "totentreg": 1},
        {"fecha": "2024-03-01", "totentreg": 0.005},
        {"fecha": None, "totentreg": 3},
        {"fecha": "ayer", "totentreg": 4},
    ]
    days = daily_totals(rows, "fecha", ("totentreg",))
    by_day = {d.fecha: d for d in days}
    assert [d.fecha for d in days][:2] == ["2024-03-02", "2024-03-01"]
    assert by_day["2024-03-01"].registros == 2
    assert by_day["2024-03-01"].totales["totentreg"] == 10.01
    assert by_day[UNKNOWN_DATE].registros == 1
    assert by_day[INVALID_DATE].totales["totentreg"] == 4.0
