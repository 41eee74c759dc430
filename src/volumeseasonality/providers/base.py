"""Abstract base class for volume bar providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from volumeseasonality.models.bar import Bar

# Bar sizes a provider may be asked for, as (multiplier, timespan).
TIMEFRAMES: dict[str, tuple[int, str]] = {
    "1min": (1, "minute"),
    "5min": (5, "minute"),
    "15min": (15, "minute"),
    "30min": (30, "minute"),
    "1hour": (1, "hour"),
    "1day": (1, "day"),
}


class BaseVolumeProvider(ABC):
    """Abstract base for market-data sources that supply volume bars.

    Implementations raise ``VolumeDataError`` for every fetch failure and
    mark it ``retryable`` when another provider might still succeed.
    """

    @abstractmethod
    def get_bars(
        self,
        symbol: str,
        start: date,
        end: date,
        timeframe: str = "30min",
    ) -> list[Bar]:
        """Fetch historical bars.

        Args:
            symbol: Ticker symbol.
            start: Start date (inclusive).
            end: End date (inclusive).
            timeframe: Bar size, a key of ``TIMEFRAMES``.

        Returns:
            List of Bar objects ordered by timestamp ascending. May be empty.
        """
        ...

    def capabilities(self) -> set[str]:
        """Supported features: ``bars`` and optionally ``access_check``."""
        return {"bars"}
