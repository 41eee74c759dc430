"""Exchange clock and NYSE trading calendar.

Holiday rules are hardcoded for NYSE; the clock converts provider epoch
timestamps into exchange-local trading dates and minutes of day.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class ExchangeClock:
    """Time-zone policy for turning epoch milliseconds into session positions.

    The host's local time zone is never consulted.
    """

    timezone: str = "America/New_York"

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def localize(self, timestamp_ms: int | float) -> datetime:
        utc = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
        return utc.astimezone(self.tzinfo)

    def position(self, timestamp_ms: int | float) -> tuple[date, int]:
        """Return ``(trading_date, minute_of_day)`` on the exchange clock."""
        local = self.localize(timestamp_ms)
        return local.date(), local.hour * 60 + local.minute

    def to_timestamp_ms(self, d: date, minute_of_day: int) -> int:
        """Inverse of ``position`` for a session minute on a given date."""
        hour, minute = divmod(minute_of_day, 60)
        local = datetime.combine(d, time(hour, minute), tzinfo=self.tzinfo)
        return int(local.timestamp() * 1000)


# ---- Holiday rules ----

def _observed(d: date) -> date:
    """Saturday holidays move to Friday, Sunday holidays to Monday."""
    if d.weekday() == 5:
        return d - timedelta(days=1)
    if d.weekday() == 6:
        return d + timedelta(days=1)
    return d


def _nth_weekday(year: int, month: int, weekday: int, n: int) -> date:
    """nth (1-indexed) occurrence of weekday in month; n=-1 means last."""
    if n < 0:
        nxt = date(year + month // 12, month % 12 + 1, 1)
        last = nxt - timedelta(days=1)
        return last - timedelta(days=(last.weekday() - weekday) % 7)
    first = date(year, month, 1)
    return first + timedelta(days=(weekday - first.weekday()) % 7, weeks=n - 1)


def _easter(year: int) -> date:
    """Gregorian Easter Sunday (anonymous algorithm)."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7  # noqa: E741
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return date(year, month, day + 1)


@lru_cache(maxsize=64)
def _nyse_holidays(year: int) -> frozenset[date]:
    holidays = {
        date(year, 1, 1) if date(year, 1, 1).weekday() != 6 else date(year, 1, 2),
        _nth_weekday(year, 1, 0, 3),          # MLK Day
        _nth_weekday(year, 2, 0, 3),          # Presidents Day
        _easter(year) - timedelta(days=2),    # Good Friday
        _nth_weekday(year, 5, 0, -1),         # Memorial Day
        _observed(date(year, 7, 4)),
        _nth_weekday(year, 9, 0, 1),          # Labor Day
        _nth_weekday(year, 11, 3, 4),         # Thanksgiving
        _observed(date(year, 12, 25)),
    }
    if year >= 2022:
        holidays.add(_observed(date(year, 6, 19)))
    return frozenset(holidays)


@lru_cache(maxsize=64)
def _nyse_half_days(year: int) -> frozenset[date]:
    """NYSE early close days (13:00 ET)."""
    half_days = {_nth_weekday(year, 11, 3, 4) + timedelta(days=1)}
    day_before_july4 = _observed(date(year, 7, 4)) - timedelta(days=1)
    if day_before_july4.weekday() < 5:
        half_days.add(day_before_july4)
    dec24 = date(year, 12, 24)
    if dec24.weekday() < 5 and dec24 not in _nyse_holidays(year):
        half_days.add(dec24)
    return frozenset(half_days)


# ---- Public API ----

def is_holiday(d: date) -> bool:
    return d in _nyse_holidays(d.year)


def is_half_day(d: date) -> bool:
    return d in _nyse_half_days(d.year)


def is_trading_day(d: date) -> bool:
    """Weekday that is not an NYSE holiday."""
    return d.weekday() < 5 and not is_holiday(d)


def get_trading_dates(start: date, end: date) -> list[date]:
    """All trading dates in the range [start, end]."""
    dates: list[date] = []
    current = start
    while current <= end:
        if is_trading_day(current):
            dates.append(current)
        current += timedelta(days=1)
    return dates


def market_close_time(d: date) -> time:
    """13:00 on half days, 16:00 otherwise."""
    if is_half_day(d):
        return time(13, 0)
    return time(16, 0)
