import pytest

from ping_tracker.utils.time_utils import (
    InvalidTimeToken,
    TimeWindow,
    parse_date,
    parse_epoch,
    resolve_date,
    resolve_window,
)

JUNE_1 = 1622505600  # 2021-06-01T00:00:00Z
JUNE_2 = 1622592000


def test_single_date_covers_whole_day():
    assert resolve_date("2021-06-01") == TimeWindow(start=JUNE_1, end=JUNE_2)


def test_range_of_dates_includes_end_day():
    window = resolve_window("2021-06-01", "2021-06-01")
    assert window == TimeWindow(start=JUNE_1, end=JUNE_2)


def test_range_with_raw_epoch_end_is_not_adjusted():
    window = resolve_window("2021-06-01", "1623200000")
    assert window.start == JUNE_1
    assert window.end == 1623200000


def test_range_with_raw_epoch_start():
    window = resolve_window("100", "2021-06-01")
    assert window == TimeWindow(start=100, end=JUNE_2)


def test_window_is_half_open():
    window = TimeWindow(start=10, end=20)
    assert window.contains(10)
    assert window.contains(19)
    assert not window.contains(20)
    assert not window.contains(9)


@pytest.mark.parametrize("token", ["2021-6-1", "2021-02-30", "20210601", "June 1", "", " 2021-06-01"])
def test_parse_date_is_strict(token):
    assert parse_date(token) is None


def test_parse_epoch_accepts_signs():
    assert parse_epoch("-5") == -5
    assert parse_epoch("+5") == 5


@pytest.mark.parametrize("token", ["1.5", "abc", "1_000", " 12", "9223372036854775808"])
def test_parse_epoch_rejects(token):
    with pytest.raises(InvalidTimeToken):
        parse_epoch(token)


def test_invalid_tokens_raise():
    with pytest.raises(InvalidTimeToken):
        resolve_window("yesterday", "2021-06-01")
    with pytest.raises(InvalidTimeToken):
        resolve_window("2021-06-01", "tomorrow")
    with pytest.raises(InvalidTimeToken):
        resolve_date("1622505600")
