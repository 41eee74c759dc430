"""Intraday volume aggregation into percent-of-day distributions.

Pure functions: bars in, ``VolumeTable`` out. Nothing here fetches, caches
or renders, and no state survives a call.

Pipeline::

    bucket_volumes  -> {date: {interval_index: volume}}
    normalize_days  -> [DayDistribution] newest first, retention applied
    average_row     -> AverageRow over a slice of day rows
    build_volume_table -> rolling rows + day rows + overall row
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Context, Decimal
from numbers import Real
from typing import Any, Iterable, Optional, Sequence

from volumeseasonality.calendar import ExchangeClock
from volumeseasonality.config import SessionConfig
from volumeseasonality.models.bar import Bar
from volumeseasonality.models.table import (
    OVERALL_LABEL,
    AverageRow,
    DayDistribution,
    VolumeTable,
    window_label,
)

logger = logging.getLogger(__name__)

# Private context so results never depend on the caller's decimal settings.
_CONTEXT = Context(prec=28, rounding=ROUND_HALF_UP)
_ONE_PLACE = Decimal("0.1")
_TWO_PLACES = Decimal("0.01")
_HUNDRED = Decimal(100)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    value = float(value)
    if not math.isfinite(value):
        return None
    return value


def _bar_volume(bar: Bar) -> float:
    """Usable volume of a bar; missing, non-numeric or negative counts as 0."""
    volume = _as_number(getattr(bar, "volume", None))
    if volume is None or volume < 0:
        return 0.0
    return volume


def bucket_volumes(
    bars: Iterable[Bar],
    session: SessionConfig,
    clock: ExchangeClock,
) -> dict[date, dict[int, float]]:
    """Sum bar volume per (trading date, interval index).

    An interval with no in-session bar on a date has no key at all. A date
    appears as soon as one in-session bar lands on it, even when all of its
    volume is zero.
    """
    collected: dict[date, dict[int, list[float]]] = defaultdict(lambda: defaultdict(list))
    skipped = 0
    for bar in bars:
        ts = _as_number(getattr(bar, "timestamp", None))
        if ts is None:
            skipped += 1
            continue
        try:
            day, minute = clock.position(ts)
        except (OverflowError, OSError, ValueError):
            skipped += 1
            continue
        index = session.interval_index(minute)
        if index is None:
            continue
        collected[day][index].append(_bar_volume(bar))

    if skipped:
        logger.debug("Skipped %d bars with unusable timestamps", skipped)

    # fsum is exactly rounded, so the totals do not depend on input order
    return {
        day: {index: math.fsum(volumes) for index, volumes in intervals.items()}
        for day, intervals in collected.items()
    }


def _percent(part: float, total: float) -> Decimal:
    scaled = _CONTEXT.multiply(Decimal(part), _HUNDRED)
    return _CONTEXT.divide(scaled, Decimal(total)).quantize(_ONE_PLACE, context=_CONTEXT)


def normalize_days(
    buckets: dict[date, dict[int, float]],
    session: SessionConfig,
) -> list[DayDistribution]:
    """Convert interval volumes to percent of day, newest date first.

    Only the most recent ``session.retention_days`` dates are kept.
    """
    labels = session.interval_labels
    days: list[DayDistribution] = []
    for day in sorted(buckets, reverse=True)[: session.retention_days]:
        volumes = buckets[day]
        total = math.fsum(volumes.values())
        percentages: dict[str, Optional[Decimal]] = {}
        for index, label in enumerate(labels):
            volume = volumes.get(index, 0.0)
            if total > 0 and volume > 0:
                percentages[label] = _percent(volume, total)
            else:
                percentages[label] = None
        days.append(DayDistribution(date=day, percentages=percentages))
    return days


def _mean(values: list[Decimal]) -> Decimal:
    # Exact mean, then half-up. Float averaging can round ties down instead.
    total = Decimal(0)
    for value in values:
        total = _CONTEXT.add(total, value)
    return _CONTEXT.divide(total, Decimal(len(values))).quantize(_TWO_PLACES, context=_CONTEXT)


def average_row(
    label: str,
    days: Sequence[DayDistribution],
    intervals: Sequence[str],
) -> AverageRow:
    """Per-interval mean over ``days``, ignoring "no data" cells."""
    percentages: dict[str, Optional[Decimal]] = {}
    for interval in intervals:
        values = [d.percentages[interval] for d in days if d.percentages[interval] is not None]
        percentages[interval] = _mean(values) if values else None  # type: ignore[arg-type]
    return AverageRow(label=label, percentages=percentages, days=len(days))


def rolling_averages(
    days: Sequence[DayDistribution],
    session: SessionConfig,
) -> list[AverageRow]:
    """One row per rolling window, smallest window first.

    ``days`` must be newest first; each window averages its leading slice.
    """
    labels = session.interval_labels
    return [
        average_row(window_label(window), days[:window], labels)
        for window in session.rolling_windows
    ]


def build_volume_table(
    bars: Iterable[Bar],
    session: SessionConfig | None = None,
    clock: ExchangeClock | None = None,
) -> VolumeTable:
    """Aggregate raw bars into the full volume distribution table.

    Args:
        bars: Bars in any order. Malformed bars are skipped or count as
            zero volume; nothing raises for bad input.
        session: Session layout and windows. Defaults to the U.S.
            equities regular session.
        clock: Time-zone policy. Defaults to ``session.timezone``.

    Returns:
        VolumeTable with rolling rows (largest window first), day rows
        (newest first) and the overall average row last.
    """
    session = session or SessionConfig()
    clock = clock or ExchangeClock(session.timezone)

    buckets = bucket_volumes(bars, session, clock)
    days = normalize_days(buckets, session)
    rolling = rolling_averages(days, session)
    overall = average_row(OVERALL_LABEL, days, session.interval_labels)

    logger.debug(
        "Aggregated %d trading days (%d retained) into %d intervals",
        len(buckets), len(days), session.interval_count,
    )
    return VolumeTable(
        intervals=session.interval_labels,
        rows=(*reversed(rolling), *days, overall),
    )
