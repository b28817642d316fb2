import datetime as _dt
import re
from dataclasses import dataclass

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
SECONDS_PER_DAY = 86400

_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_EPOCH_RE = re.compile(r"[+-]?[0-9]+")


class InvalidTimeToken(ValueError):
    """Raised when a token is neither a YYYY-MM-DD date nor an integer epoch."""

    def __init__(self, token: str):
        super().__init__(f"Invalid time token: {token!r}")
        self.token = token


@dataclass(frozen=True)
class TimeWindow:
    """Half-open interval [start, end) in unix seconds."""

    start: int
    end: int

    def contains(self, timestamp: int) -> bool:
        return self.start <= timestamp < self.end


def parse_date(token: str) -> _dt.date | None:
    if not _DATE_RE.fullmatch(token):
        return None
    try:
        return _dt.datetime.strptime(token, "%Y-%m-%d").date()
    except ValueError:
        return None


def parse_epoch(token: str) -> int:
    if not _EPOCH_RE.fullmatch(token):
        raise InvalidTimeToken(token)
    value = int(token)
    if value < INT64_MIN or value > INT64_MAX:
        raise InvalidTimeToken(token)
    return value


def midnight_epoch(date: _dt.date) -> int:
    """Return the UTC midnight of `date` as unix seconds."""
    midnight = _dt.datetime(date.year, date.month, date.day, tzinfo=_dt.timezone.utc)
    return int(midnight.timestamp())


def resolve_window(from_token: str, to_token: str) -> TimeWindow:
    """Build a window from two date-or-epoch tokens.

    A date in the `to` position covers that whole day, so the bound becomes the
    following midnight. Raw epochs are used verbatim on either side.
    """

    start_date = parse_date(from_token)
    start = midnight_epoch(start_date) if start_date else parse_epoch(from_token)

    end_date = parse_date(to_token)
    if end_date:
        end = midnight_epoch(end_date) + SECONDS_PER_DAY
    else:
        end = parse_epoch(to_token)
    return TimeWindow(start=start, end=end)


def resolve_date(token: str) -> TimeWindow:
    """Window covering a single UTC calendar day."""
    date = parse_date(token)
    if date is None:
        raise InvalidTimeToken(token)
    start = midnight_epoch(date)
    return TimeWindow(start=start, end=start + SECONDS_PER_DAY)
