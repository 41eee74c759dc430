"""volumeseasonality: intraday volume distribution for U.S. equities.

Buckets intraday bars into fixed session intervals, converts each trading
day to percent-of-day volume and adds rolling and overall averages.

Quick start::

    from volumeseasonality import build_volume_table, create_service_from_env
    svc = create_service_from_env()
    table = svc.build_table("SPY")
"""

from __future__ import annotations

from volumeseasonality.aggregator import build_volume_table
from volumeseasonality.calendar import ExchangeClock
from volumeseasonality.config import ProviderType, SessionConfig, VolumeSeasonalityConfig
from volumeseasonality.errors import VolumeDataError, VolumeDataErrorCode
from volumeseasonality.models.bar import Bar
from volumeseasonality.models.table import AverageRow, DayDistribution, VolumeTable
from volumeseasonality.service import VolumeSeasonalityService

__version__ = "0.1.0"

__all__ = [
    # Core
    "build_volume_table",
    "ExchangeClock",
    # Service
    "VolumeSeasonalityService",
    "create_service_from_env",
    # Config
    "SessionConfig",
    "VolumeSeasonalityConfig",
    "ProviderType",
    # Errors
    "VolumeDataError",
    "VolumeDataErrorCode",
    # Models
    "Bar",
    "DayDistribution",
    "AverageRow",
    "VolumeTable",
]


def create_service_from_env() -> VolumeSeasonalityService:
    """Zero-config factory, reads provider list and API key from env vars.

    Environment variables:
        VOLUME_SYMBOL: Default ticker (default: "SPY").
        VOLUME_PROVIDERS: Comma-separated provider list (default: "polygon").
        VOLUME_CACHE: Cache backend, "parquet", "memory" or "none" (default: "memory").
        VOLUME_CACHE_DIR: Cache directory (default: "data/cache").
        VOLUME_LOOKBACK_DAYS: Calendar days of history (default: 130).
        VOLUME_DELAY_DAYS: Days trimmed off the end for delayed plans (default: 15).
        POLYGON_API_KEY: Polygon.io API key.
    """
    return VolumeSeasonalityService(VolumeSeasonalityConfig.from_env())
