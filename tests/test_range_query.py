from ping_tracker.query.range_query import (
    filter_in_window,
    list_device_ids,
    query_pings,
)
from ping_tracker.storage.ping_store import InMemoryPingStore, PingStore, StoreUnavailable
from ping_tracker.utils.time_utils import TimeWindow


class _BrokenStore(PingStore):
    def insert(self, device_id, timestamp):
        raise StoreUnavailable("down")

    def all(self):
        raise StoreUnavailable("down")

    def by_id(self, device_id):
        raise StoreUnavailable("down")

    def clear(self):
        raise StoreUnavailable("down")


def _store_with(pings: dict) -> InMemoryPingStore:
    store = InMemoryPingStore()
    for device_id, values in pings.items():
        for ts in values:
            store.insert(device_id, ts)
    return store


def test_filter_is_half_open():
    window = TimeWindow(start=100, end=200)
    assert sorted(filter_in_window([99, 100, 150, 199, 200], window)) == [100, 150, 199]


def test_filter_empty_input():
    assert filter_in_window([], TimeWindow(start=0, end=10)) == []


def test_single_device_query():
    store = _store_with({"a": [100, 200, 300]})
    result = query_pings(store, "a", TimeWindow(start=150, end=300))
    assert not result.bad_request
    assert result.payload() == [200]


def test_single_device_no_match_is_not_an_error():
    store = _store_with({"a": [100]})
    result = query_pings(store, "a", TimeWindow(start=500, end=600))
    assert result.payload() == []
    assert not result.bad_request


def test_unknown_device_flags_bad_request():
    store = _store_with({"a": [100]})
    result = query_pings(store, "ghost", TimeWindow(start=0, end=1000))
    assert result.payload() == []
    assert result.bad_request


def test_all_omits_devices_without_matches():
    store = _store_with({"A": [100, 200], "B": [150]})
    result = query_pings(store, "all", TimeWindow(start=120, end=180))
    assert result.payload() == {"B": [150]}
    assert not result.bad_request


def test_all_with_no_matches_is_empty_mapping():
    store = _store_with({"A": [100]})
    result = query_pings(store, "all", TimeWindow(start=500, end=600))
    assert result.payload() == {}


def test_store_failure_flags_bad_request():
    broken = _BrokenStore()
    assert query_pings(broken, "all", TimeWindow(0, 1)).bad_request
    assert query_pings(broken, "a", TimeWindow(0, 1)).payload() == []
    assert list_device_ids(broken) == ([], True)


def test_list_device_ids_after_clear():
    store = _store_with({"A": [1], "B": [2]})
    ids, bad = list_device_ids(store)
    assert sorted(ids) == ["A", "B"] and not bad
    store.clear()
    assert list_device_ids(store) == ([], False)
    assert query_pings(store, "A", TimeWindow(0, 10)).bad_request
