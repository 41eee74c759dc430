"""Volume seasonality configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum

DEFAULT_ROLLING_WINDOWS: tuple[int, ...] = (5, 10, 20, 30, 40)


class ProviderType(Enum):
    """Supported bar provider backends."""

    POLYGON = "polygon"
    MOCK = "mock"


@dataclass(frozen=True)
class SessionConfig:
    """Trading-session layout and aggregation windows.

    Times are minutes after midnight on the exchange clock.

    Attributes:
        session_start: First minute of the session (inclusive), 09:30 = 570.
        session_end: Session close (exclusive), 16:00 = 960.
        interval_minutes: Width of each interval bucket.
        retention_days: Most recent trading days kept in the table.
        rolling_windows: Rolling-average window sizes in trading days.
        timezone: IANA zone used to derive trading dates and minutes.
    """

    session_start: int = 9 * 60 + 30
    session_end: int = 16 * 60
    interval_minutes: int = 30
    retention_days: int = 90
    rolling_windows: tuple[int, ...] = DEFAULT_ROLLING_WINDOWS
    timezone: str = "America/New_York"

    def __post_init__(self) -> None:
        if self.interval_minutes <= 0:
            raise ValueError(f"interval_minutes must be positive, got {self.interval_minutes}")
        if not 0 <= self.session_start < self.session_end <= 24 * 60:
            raise ValueError(
                f"Invalid session bounds: start={self.session_start}, end={self.session_end}"
            )
        if self.retention_days <= 0:
            raise ValueError(f"retention_days must be positive, got {self.retention_days}")
        windows = tuple(sorted(set(self.rolling_windows)))
        if any(w <= 0 for w in windows):
            raise ValueError(f"rolling_windows must be positive, got {self.rolling_windows}")
        # frozen: bypass __setattr__ to store the normalized tuple
        object.__setattr__(self, "rolling_windows", windows)

    @property
    def interval_count(self) -> int:
        span = self.session_end - self.session_start
        return -(-span // self.interval_minutes)

    @property
    def interval_labels(self) -> tuple[str, ...]:
        """Ordered ``HH:MM`` labels, one per interval bucket."""
        labels = []
        for i in range(self.interval_count):
            minute = self.session_start + i * self.interval_minutes
            labels.append(f"{minute // 60:02d}:{minute % 60:02d}")
        return tuple(labels)

    def interval_index(self, minute_of_day: int) -> int | None:
        """Bucket index for a minute of day, or None outside the session."""
        if not self.session_start <= minute_of_day < self.session_end:
            return None
        return (minute_of_day - self.session_start) // self.interval_minutes


@dataclass
class VolumeSeasonalityConfig:
    """Configuration for VolumeSeasonalityService.

    Attributes:
        symbol: Default ticker symbol.
        providers: Provider backends ordered by priority.
        timeframe: Bar size requested from providers.
        lookback_days: Calendar days of history requested.
        provider_delay_days: Days trimmed from the end of the request
            window for delayed data plans.
        cache_backend: Cache type, "memory", "parquet" or "none".
        cache_dir: Directory for parquet cache files.
        cache_ttl_seconds: TTL for in-memory cache entries.
        validate: Whether to run quality checks on fetched bars.
        polygon_api_key: Polygon.io API key.
        session: Session layout handed to the aggregator.
    """

    symbol: str = "SPY"
    providers: list[ProviderType] = field(
        default_factory=lambda: [ProviderType.POLYGON]
    )
    timeframe: str = "30min"
    lookback_days: int = 130
    provider_delay_days: int = 15
    cache_backend: str = "memory"
    cache_dir: str = "data/cache"
    cache_ttl_seconds: int = 300
    validate: bool = True

    polygon_api_key: str | None = None

    session: SessionConfig = field(default_factory=SessionConfig)

    @classmethod
    def from_env(cls) -> VolumeSeasonalityConfig:
        """Build from ``VOLUME_*`` and ``POLYGON_API_KEY`` environment variables."""
        provider_str = os.getenv("VOLUME_PROVIDERS", "polygon")
        return cls(
            symbol=os.getenv("VOLUME_SYMBOL", "SPY"),
            providers=[
                ProviderType(name.strip().lower())
                for name in provider_str.split(",")
                if name.strip()
            ],
            cache_backend=os.getenv("VOLUME_CACHE", "memory"),
            cache_dir=os.getenv("VOLUME_CACHE_DIR", "data/cache"),
            lookback_days=int(os.getenv("VOLUME_LOOKBACK_DAYS", "130")),
            provider_delay_days=int(os.getenv("VOLUME_DELAY_DAYS", "15")),
            polygon_api_key=os.getenv("POLYGON_API_KEY"),
        )
