"""Fetched-window cache: bars remembered per (symbol, timeframe, window).

The service asks for one window per symbol per day, so entries are keyed by
that exact window rather than by individual dates.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from pathlib import Path

import pandas as pd

from volumeseasonality.models.bar import Bar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowKey:
    """Identity of one provider request."""

    symbol: str
    timeframe: str
    start: date
    end: date

    @classmethod
    def of(cls, symbol: str, timeframe: str, start: date, end: date) -> WindowKey:
        return cls(symbol.upper(), timeframe, start, end)

    @property
    def filename(self) -> str:
        return f"{self.symbol}__{self.timeframe}__{self.start:%Y%m%d}-{self.end:%Y%m%d}.parquet"


class BarCache(ABC):
    """Remembers the bars returned for a fetch window."""

    @abstractmethod
    def lookup(self, key: WindowKey) -> list[Bar] | None:
        """Bars for ``key``, or None when not remembered."""

    @abstractmethod
    def remember(self, key: WindowKey, bars: list[Bar]) -> None:
        ...

    @abstractmethod
    def forget(self, symbol: str | None = None) -> None:
        """Drop windows for ``symbol``, or every window when omitted."""


class NoCache(BarCache):
    def lookup(self, key: WindowKey) -> list[Bar] | None:
        return None

    def remember(self, key: WindowKey, bars: list[Bar]) -> None:
        pass

    def forget(self, symbol: str | None = None) -> None:
        pass


class MemoryCache(BarCache):
    """Process-local cache; entries expire ``ttl_seconds`` after being stored.

    When more than ``max_entries`` windows are held, the one closest to
    expiry is dropped.
    """

    def __init__(self, ttl_seconds: int = 300, max_entries: int = 64) -> None:
        self.ttl = ttl_seconds
        self.max_entries = max_entries
        self._entries: dict[WindowKey, tuple[float, tuple[Bar, ...]]] = {}

    def lookup(self, key: WindowKey) -> list[Bar] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, bars = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return list(bars)

    def remember(self, key: WindowKey, bars: list[Bar]) -> None:
        now = time.monotonic()
        self._entries = {k: v for k, v in self._entries.items() if v[0] > now}
        self._entries[key] = (now + self.ttl, tuple(bars))
        if len(self._entries) > self.max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k][0])
            del self._entries[oldest]

    def forget(self, symbol: str | None = None) -> None:
        if symbol is None:
            self._entries.clear()
            return
        symbol = symbol.upper()
        self._entries = {k: v for k, v in self._entries.items() if k.symbol != symbol}


class ParquetCache(BarCache):
    """On-disk cache, one Parquet file per window in a flat directory."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def path_for(self, key: WindowKey) -> Path:
        return self.directory / key.filename

    def lookup(self, key: WindowKey) -> list[Bar] | None:
        path = self.path_for(key)
        if not path.is_file():
            return None
        try:
            frame = pd.read_parquet(path, columns=["timestamp", "volume"])
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable cache file %s: %s", path, exc)
            return None
        return [
            Bar(
                timestamp=int(ts) if pd.notna(ts) else None,
                volume=float(vol) if pd.notna(vol) else None,
            )
            for ts, vol in zip(frame["timestamp"], frame["volume"])
        ]

    def remember(self, key: WindowKey, bars: list[Bar]) -> None:
        if not bars:
            return
        self.directory.mkdir(parents=True, exist_ok=True)
        frame = pd.DataFrame({
            "timestamp": _as_float([b.timestamp for b in bars]),
            "volume": _as_float([b.volume for b in bars]),
        })
        frame.to_parquet(self.path_for(key), index=False)
        logger.debug("Cached %d bars at %s", len(bars), self.path_for(key))

    def forget(self, symbol: str | None = None) -> None:
        if not self.directory.is_dir():
            return
        pattern = f"{symbol.upper()}__*.parquet" if symbol else "*.parquet"
        for path in self.directory.glob(pattern):
            path.unlink()


def _as_float(values: list) -> pd.Series:
    # non-numeric values become NaN and read back as None
    return pd.to_numeric(pd.Series(values, dtype=object), errors="coerce").astype("float64")
