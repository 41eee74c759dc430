"""Tests for the volume aggregator (bucketing, normalization, averages)."""

import random
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from volumeseasonality.aggregator import (
    average_row,
    bucket_volumes,
    build_volume_table,
    normalize_days,
)
from volumeseasonality.calendar import ExchangeClock
from volumeseasonality.config import SessionConfig
from volumeseasonality.models.bar import Bar
from volumeseasonality.models.table import AverageRow, DayDistribution

CLOCK = ExchangeClock()
DAY_A = date(2024, 1, 16)
DAY_B = date(2024, 1, 17)


def _bar(d: date, hhmm: str, volume=1000.0) -> Bar:
    hour, minute = (int(p) for p in hhmm.split(":"))
    return Bar(timestamp=CLOCK.to_timestamp_ms(d, hour * 60 + minute), volume=volume)


def _populated(row) -> list[Decimal]:
    return [v for v in row.percentages.values() if v is not None]


class TestEmptyInput:
    def test_no_day_rows(self):
        table = build_volume_table([])
        assert table.day_rows == []

    def test_average_rows_all_no_data(self):
        table = build_volume_table([])
        assert len(table.rows) == 6  # 5 rolling + overall
        for row in table.rows:
            assert isinstance(row, AverageRow)
            assert set(row.percentages) == set(table.intervals)
            assert all(v is None for v in row.percentages.values())

    def test_overall_row_last(self):
        table = build_volume_table([])
        assert table.rows[-1].label == "AVERAGE"
        assert table.overall.label == "AVERAGE"


class TestSingleDay:
    def test_all_volume_in_open(self):
        table = build_volume_table([_bar(DAY_A, "09:30", 1000)])
        (day,) = table.day_rows
        assert day.date == DAY_A
        assert day.label == "2024-01-16"
        assert day.percentages["09:30"] == Decimal("100.0")
        assert str(day.percentages["09:30"]) == "100.0"
        for label in table.intervals[1:]:
            assert day.percentages[label] is None

    def test_average_rows_match_single_day(self):
        table = build_volume_table([_bar(DAY_A, "09:30", 1000)])
        for row in table.rolling_rows + [table.overall]:
            assert str(row.percentages["09:30"]) == "100.00"
            assert row.percentages["10:00"] is None

    def test_one_decimal_precision(self):
        bars = [_bar(DAY_A, "09:30", 1), _bar(DAY_A, "10:00", 2)]
        day = build_volume_table(bars).day_rows[0]
        assert day.percentages["09:30"] == Decimal("33.3")
        assert day.percentages["10:00"] == Decimal("66.7")

    def test_rounds_half_up(self):
        bars = [_bar(DAY_A, "09:30", 1), _bar(DAY_A, "10:00", 15)]
        day = build_volume_table(bars).day_rows[0]
        assert str(day.percentages["09:30"]) == "6.3"   # 6.25
        assert str(day.percentages["10:00"]) == "93.8"  # 93.75

    def test_bars_in_same_interval_accumulate(self):
        bars = [
            _bar(DAY_A, "09:30", 100),
            _bar(DAY_A, "09:45", 100),
            _bar(DAY_A, "10:00", 200),
        ]
        day = build_volume_table(bars).day_rows[0]
        assert day.percentages["09:30"] == Decimal("50.0")
        assert day.percentages["10:00"] == Decimal("50.0")


class TestSumsToHundred:
    def test_equal_thirds(self):
        bars = [_bar(DAY_A, t, 1) for t in ("09:30", "12:00", "15:30")]
        day = build_volume_table(bars).day_rows[0]
        assert abs(sum(_populated(day)) - 100) <= Decimal("0.1")

    def test_full_session(self, sample_bars):
        day = build_volume_table(sample_bars).day_rows[0]
        values = _populated(day)
        assert len(values) == 13
        assert abs(sum(values) - 100) <= Decimal("0.05") * len(values)

    def test_equal_thirteen(self, session):
        bars = [_bar(DAY_A, label, 500) for label in session.interval_labels]
        day = build_volume_table(bars).day_rows[0]
        assert all(v == Decimal("7.7") for v in day.percentages.values())
        assert abs(sum(_populated(day)) - 100) <= Decimal("0.1")


class TestSessionWindow:
    def test_bars_outside_session_ignored(self):
        bars = [
            _bar(DAY_A, "09:29", 5000),
            _bar(DAY_A, "16:00", 5000),
            _bar(DAY_A, "18:30", 5000),
            _bar(DAY_A, "10:00", 1000),
        ]
        day = build_volume_table(bars).day_rows[0]
        assert day.percentages["10:00"] == Decimal("100.0")
        assert day.percentages["09:30"] is None
        assert day.percentages["15:30"] is None

    def test_last_minute_in_last_bucket(self):
        day = build_volume_table([_bar(DAY_A, "15:59", 10)]).day_rows[0]
        assert day.percentages["15:30"] == Decimal("100.0")

    def test_day_with_only_outside_bars_has_no_row(self):
        bars = [_bar(DAY_A, "08:00"), _bar(DAY_A, "17:00")]
        assert build_volume_table(bars).day_rows == []

    def test_trading_date_from_exchange_clock(self):
        # 2024-01-17 03:00 UTC is 22:00 on 2024-01-16 in New York
        session = SessionConfig(session_start=0, session_end=24 * 60, interval_minutes=60)
        ts = int(datetime(2024, 1, 17, 3, 0, tzinfo=timezone.utc).timestamp() * 1000)
        day = build_volume_table([Bar(ts, 10)], session).day_rows[0]
        assert day.date == date(2024, 1, 16)
        assert day.percentages["22:00"] == Decimal("100.0")

    def test_injected_clock(self):
        session = SessionConfig(session_start=0, session_end=24 * 60, interval_minutes=60)
        ts = int(datetime(2024, 1, 17, 3, 0, tzinfo=timezone.utc).timestamp() * 1000)
        day = build_volume_table([Bar(ts, 10)], session, ExchangeClock("UTC")).day_rows[0]
        assert day.date == date(2024, 1, 17)
        assert day.percentages["03:00"] == Decimal("100.0")

    def test_summer_time(self):
        # 13:30 UTC is the 09:30 open while daylight saving is in effect
        ts = int(datetime(2024, 7, 1, 13, 30, tzinfo=timezone.utc).timestamp() * 1000)
        day = build_volume_table([Bar(ts, 10)]).day_rows[0]
        assert day.percentages["09:30"] == Decimal("100.0")


class TestMalformedBars:
    def test_missing_and_non_numeric_volume_count_as_zero(self):
        bars = [
            _bar(DAY_A, "09:30", None),
            _bar(DAY_A, "09:30", "lots"),
            _bar(DAY_A, "09:30", float("nan")),
            _bar(DAY_A, "09:30", -50),
            _bar(DAY_A, "10:00", 1000),
        ]
        day = build_volume_table(bars).day_rows[0]
        assert day.percentages["09:30"] is None
        assert day.percentages["10:00"] == Decimal("100.0")

    def test_bad_timestamps_skipped(self):
        bars = [
            Bar(timestamp=None, volume=500),
            Bar(timestamp="soon", volume=500),  # type: ignore[arg-type]
            Bar(timestamp=10**20, volume=500),
            _bar(DAY_A, "11:00", 100),
        ]
        table = build_volume_table(bars)
        assert len(table.day_rows) == 1
        assert table.day_rows[0].percentages["11:00"] == Decimal("100.0")

    def test_zero_total_day_is_all_no_data(self):
        table = build_volume_table([_bar(DAY_A, "09:30", 0), _bar(DAY_A, "12:00", 0)])
        (day,) = table.day_rows
        assert all(v is None for v in day.percentages.values())
        assert all(v is None for v in table.overall.percentages.values())

    def test_zero_volume_interval_is_no_data(self):
        day = build_volume_table([_bar(DAY_A, "09:30", 0), _bar(DAY_A, "10:00", 10)]).day_rows[0]
        assert day.percentages["09:30"] is None
        assert day.percentages["10:00"] == Decimal("100.0")


class TestAverages:
    def _two_days(self):
        return [
            _bar(DAY_A, "09:30", 60), _bar(DAY_A, "10:00", 40),
            _bar(DAY_B, "09:30", 40), _bar(DAY_B, "10:00", 60),
        ]

    def test_two_day_average(self):
        session = SessionConfig(rolling_windows=(2, 5))
        table = build_volume_table(self._two_days(), session)
        assert str(table.row("2 Day Avg").percentages["10:00"]) == "50.00"
        assert str(table.row("5 Day Avg").percentages["10:00"]) == "50.00"
        assert str(table.overall.percentages["10:00"]) == "50.00"

    def test_window_uses_most_recent_days(self):
        session = SessionConfig(rolling_windows=(1,))
        table = build_volume_table(self._two_days(), session)
        # DAY_B is newest: 10:00 = 60%
        assert table.row("1 Day Avg").percentages["10:00"] == Decimal("60.00")
        assert table.row("1 Day Avg").days == 1
        assert table.overall.days == 2

    def test_no_data_cells_excluded_from_mean(self):
        bars = [
            _bar(DAY_A, "09:30", 50), _bar(DAY_A, "10:00", 50),
            _bar(DAY_B, "09:30", 100),
        ]
        table = build_volume_table(bars)
        assert table.overall.percentages["10:00"] == Decimal("50.00")
        assert table.overall.percentages["09:30"] == Decimal("75.00")

    def test_two_decimal_mean(self):
        days = [
            DayDistribution(date(2024, 1, 16 + i), {"09:30": Decimal(v)})
            for i, v in enumerate(["10.0", "10.1", "10.1"])
        ]
        row = average_row("X", days, ["09:30"])
        assert str(row.percentages["09:30"]) == "10.07"

    def test_mean_ties_round_half_up(self):
        # 4.1 / 4 = 1.025 exactly
        days = [
            DayDistribution(date(2024, 1, 16 + i), {"09:30": Decimal(v)})
            for i, v in enumerate(["1.0", "1.0", "1.0", "1.1"])
        ]
        row = average_row("X", days, ["09:30"])
        assert str(row.percentages["09:30"]) == "1.03"


class TestTableAssembly:
    def test_row_order(self):
        bars = [_bar(DAY_A, "09:30"), _bar(DAY_B, "09:30")]
        table = build_volume_table(bars)
        assert [r.label for r in table.rows] == [
            "40 Day Avg", "30 Day Avg", "20 Day Avg", "10 Day Avg", "5 Day Avg",
            "2024-01-17", "2024-01-16",
            "AVERAGE",
        ]

    def test_flags(self):
        table = build_volume_table([_bar(DAY_A, "09:30")])
        assert [r.is_average for r in table.rows] == [True] * 5 + [False, True]

    def test_every_row_has_every_interval(self, session):
        table = build_volume_table([_bar(DAY_A, "12:00")])
        assert table.intervals == session.interval_labels
        for row in table.rows:
            assert tuple(row.percentages) == session.interval_labels

    def test_to_records(self):
        table = build_volume_table([_bar(DAY_A, "09:30")])
        record = table.to_records()[5]
        assert record["label"] == "2024-01-16"
        assert record["is_average"] is False
        assert record["percentages"]["09:30"] == "100.0"
        assert record["percentages"]["10:00"] is None


class TestRetention:
    def _history(self):
        start = date(2024, 1, 1)
        bars = []
        for i in range(100):
            d = start + timedelta(days=i)
            if i < 10:
                bars.append(_bar(d, "09:30", 1000))
            else:
                bars.append(_bar(d, "09:30", 500))
                bars.append(_bar(d, "10:00", 500))
        return start, bars

    def test_keeps_most_recent_90(self):
        start, bars = self._history()
        days = build_volume_table(bars).day_rows
        assert len(days) == 90
        assert days[0].date == start + timedelta(days=99)
        assert days[-1].date == start + timedelta(days=10)
        assert [d.date for d in days] == sorted((d.date for d in days), reverse=True)

    def test_averages_only_over_retained(self):
        _, bars = self._history()
        table = build_volume_table(bars)
        assert table.overall.percentages["09:30"] == Decimal("50.00")
        assert table.overall.days == 90

    def test_custom_retention(self):
        _, bars = self._history()
        table = build_volume_table(bars, SessionConfig(retention_days=3))
        assert len(table.day_rows) == 3
        assert table.row("40 Day Avg").days == 3


class TestDeterminism:
    def test_input_order_irrelevant(self):
        bars = []
        for i in range(30):
            d = date(2024, 2, 1) + timedelta(days=i)
            for j, t in enumerate(("09:30", "09:45", "11:00", "13:30", "15:45")):
                bars.append(_bar(d, t, 1000.5 + i * 37.25 + j * 11.1))
        expected = build_volume_table(bars)
        shuffled = list(bars)
        random.Random(7).shuffle(shuffled)
        assert build_volume_table(shuffled) == expected
        assert build_volume_table(bars) == expected

    def test_accepts_generator(self):
        table = build_volume_table(_bar(DAY_A, t) for t in ("09:30", "10:00"))
        assert table.day_rows[0].percentages["09:30"] == Decimal("50.0")


class TestBuildingBlocks:
    def test_bucket_keys_absent_for_empty_intervals(self, session):
        buckets = bucket_volumes([_bar(DAY_A, "09:30", 5), _bar(DAY_A, "09:40", 7)], session, CLOCK)
        assert buckets == {DAY_A: {0: 12.0}}

    def test_normalize_sorted_descending(self, session):
        buckets = {DAY_A: {0: 1.0}, DAY_B: {1: 1.0}}
        days = normalize_days(buckets, session)
        assert [d.date for d in days] == [DAY_B, DAY_A]
