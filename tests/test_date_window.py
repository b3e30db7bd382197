from datetime import datetime

from tablero.core.config import Settings
from tablero.services.date_window import DateWindowProvider
from tests.fakes import FakeStore


def _provider(records):
    store = FakeStore({"date_range": records})
    return store, DateWindowProvider(store, Settings())


def test_date_only_bounds_cover_whole_days():
    _, provider = _provider([{"start_date": "2024-03-01", "end_date": "2024-03-31"}])
    window = provider.fetch()
    assert window.start == datetime(2024, 3, 1)
    assert window.end == datetime(2024, 3, 31, 23, 59, 59, 999999)
    assert not provider.pending


def test_aware_timestamps_become_naive_utc():
    _, provider = _provider([{"start_date": "2024-03-01T06:00:00-06:00", "end_date": "2024-03-02T00:00:00Z"}])
    window = provider.fetch()
    assert window.start == datetime(2024, 3, 1, 12, 0)
    assert window.end == datetime(2024, 3, 2, 0, 0)


def test_store_is_queried_once():
    store, provider = _provider([{"start_date": "2024-03-01", "end_date": "2024-03-31"}])
    first = provider.fetch()
    assert provider.fetch() is first
    assert len(store.calls) == 1


def test_missing_record_keeps_window_pending():
    store, provider = _provider([])
    assert provider.fetch() is None
    assert provider.fetch() is None
    assert provider.pending
    assert len(store.calls) == 1


def test_inverted_or_malformed_window_is_unavailable():
    _, provider = _provider([{"start_date": "2024-04-01", "end_date": "2024-03-01"}])
    assert provider.fetch() is None
    _, provider = _provider([{"start_date": "mañana", "end_date": "2024-03-01"}])
    assert provider.fetch() is None
