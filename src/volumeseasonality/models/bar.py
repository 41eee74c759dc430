"""Volume bar data model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Bar:
    """Single time/volume observation as supplied by a provider.

    Fields are kept as delivered; the aggregator decides how to treat a
    missing or malformed value.

    Attributes:
        timestamp: Bar start in epoch milliseconds (UTC instant).
        volume: Shares traded during the bar. ``None`` when the provider
            omitted it.
    """

    timestamp: int | float | None
    volume: float | None = None

    @classmethod
    def from_polygon(cls, record: dict[str, Any]) -> Bar:
        """Build from a Polygon aggregates result (``t`` and ``v`` keys)."""
        return cls(timestamp=record.get("t"), volume=record.get("v"))
