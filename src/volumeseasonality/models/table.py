"""Volume distribution table models.

A cell value is a ``Decimal`` percentage or ``None`` for "no data". An
observed zero never becomes ``Decimal(0)``; it stays ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional, Union

Percentages = Mapping[str, Optional[Decimal]]

OVERALL_LABEL = "AVERAGE"


def window_label(days: int) -> str:
    return f"{days} Day Avg"


@dataclass(frozen=True)
class DayDistribution:
    """Percent of one trading day's volume traded in each interval.

    Attributes:
        date: Trading date on the exchange clock.
        percentages: Interval label -> one-decimal percentage or None.
    """

    date: date
    percentages: Percentages

    is_average = False

    @property
    def label(self) -> str:
        return self.date.isoformat()


@dataclass(frozen=True)
class AverageRow:
    """Rolling-window or overall average of day distributions.

    Attributes:
        label: Row label, e.g. ``"5 Day Avg"`` or ``"AVERAGE"``.
        percentages: Interval label -> two-decimal average or None.
        days: Number of day rows the average was taken over.
    """

    label: str
    percentages: Percentages
    days: int = 0

    is_average = True


Row = Union[AverageRow, DayDistribution]


@dataclass(frozen=True)
class VolumeTable:
    """Assembled table: rolling averages, day rows, overall average.

    Attributes:
        intervals: Column labels in session order.
        rows: Rolling rows (largest window first), day rows (newest
            first), then the overall average row.
    """

    intervals: tuple[str, ...]
    rows: tuple[Row, ...]

    @property
    def day_rows(self) -> list[DayDistribution]:
        return [r for r in self.rows if isinstance(r, DayDistribution)]

    @property
    def rolling_rows(self) -> list[AverageRow]:
        return [r for r in self.rows[:-1] if isinstance(r, AverageRow)]

    @property
    def overall(self) -> AverageRow:
        return self.rows[-1]  # type: ignore[return-value]

    def row(self, label: str) -> Row:
        """Look up a row by its label."""
        for r in self.rows:
            if r.label == label:
                return r
        raise KeyError(label)

    def to_records(self) -> list[dict[str, Any]]:
        """JSON-friendly rows; values are strings like ``"12.3"`` or None."""
        records = []
        for r in self.rows:
            records.append({
                "label": r.label,
                "is_average": r.is_average,
                "percentages": {
                    k: None if r.percentages[k] is None else str(r.percentages[k])
                    for k in self.intervals
                },
            })
        return records
