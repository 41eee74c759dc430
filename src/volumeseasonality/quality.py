"""Data quality checks for fetched volume bars.

Only ``error`` checks fail the gate; ``warning`` checks are reported so the
caller can log them. The aggregator copes with every warning condition.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from numbers import Real

from volumeseasonality.calendar import ExchangeClock, is_trading_day
from volumeseasonality.config import SessionConfig
from volumeseasonality.models.bar import Bar

ERROR = "error"
WARNING = "warning"


@dataclass
class ValidationCheck:
    """Single validation check result."""

    name: str
    passed: bool
    message: str = ""
    severity: str = WARNING


@dataclass
class ValidationResult:
    """Aggregate validation result."""

    checks: list[ValidationCheck] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(c.passed for c in self.checks if c.severity == ERROR)

    @property
    def failed_checks(self) -> list[ValidationCheck]:
        return [c for c in self.checks if not c.passed]

    @property
    def warnings(self) -> list[ValidationCheck]:
        return [c for c in self.checks if not c.passed and c.severity == WARNING]


def _is_usable(value: object) -> bool:
    return (
        isinstance(value, Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value >= 0
    )


def validate_bars(
    bars: list[Bar],
    session: SessionConfig | None = None,
    clock: ExchangeClock | None = None,
) -> ValidationResult:
    """Run all quality checks on a list of bars.

    Checks:
        1. Not empty (error)
        2. Volume sanity: numeric, finite, non-negative
        3. Timestamp ordering: strictly ascending, numeric
        4. Session coverage: at least one bar inside the session window
        5. Trading days: no bars dated on weekends or NYSE holidays
    """
    session = session or SessionConfig()
    clock = clock or ExchangeClock(session.timezone)
    result = ValidationResult()

    # 1. Not empty
    if not bars:
        result.checks.append(ValidationCheck("not_empty", False, "No bars provided", ERROR))
        return result
    result.checks.append(ValidationCheck("not_empty", True, f"{len(bars)} bars", ERROR))

    # 2. Volume sanity
    bad_volume = sum(1 for b in bars if not _is_usable(b.volume))
    if bad_volume:
        result.checks.append(
            ValidationCheck("volume_sanity", False, f"{bad_volume} bars with unusable volume")
        )
    else:
        result.checks.append(ValidationCheck("volume_sanity", True))

    # 3. Timestamp ordering
    stamps = [b.timestamp for b in bars if _is_usable(b.timestamp)]
    unusable = len(bars) - len(stamps)
    out_of_order = sum(1 for i in range(1, len(stamps)) if stamps[i] <= stamps[i - 1])
    if unusable or out_of_order:
        result.checks.append(ValidationCheck(
            "timestamp_order", False,
            f"{out_of_order} out of order, {unusable} unusable timestamps",
        ))
    else:
        result.checks.append(ValidationCheck("timestamp_order", True))

    # 4 + 5. Position on the exchange clock
    in_session = 0
    off_days: set = set()
    for ts in stamps:
        try:
            day, minute = clock.position(ts)
        except (OverflowError, OSError, ValueError):
            continue
        if session.interval_index(minute) is not None:
            in_session += 1
        if not is_trading_day(day):
            off_days.add(day)

    if in_session:
        result.checks.append(
            ValidationCheck("session_coverage", True, f"{in_session}/{len(bars)} bars in session")
        )
    else:
        result.checks.append(ValidationCheck("session_coverage", False, "No bars inside the session"))

    if off_days:
        first = min(off_days).isoformat()
        result.checks.append(ValidationCheck(
            "trading_days", False, f"Bars on {len(off_days)} non-trading days (first {first})",
        ))
    else:
        result.checks.append(ValidationCheck("trading_days", True))

    return result
