"""VolumeSeasonalityService: fetch bars with fallback, then aggregate."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

from volumeseasonality.aggregator import build_volume_table
from volumeseasonality.cache import BarCache, MemoryCache, NoCache, ParquetCache, WindowKey
from volumeseasonality.calendar import ExchangeClock
from volumeseasonality.config import ProviderType, VolumeSeasonalityConfig
from volumeseasonality.errors import VolumeDataError, VolumeDataErrorCode
from volumeseasonality.models.bar import Bar
from volumeseasonality.models.table import VolumeTable
from volumeseasonality.providers import create_provider
from volumeseasonality.providers.base import BaseVolumeProvider
from volumeseasonality.quality import validate_bars

logger = logging.getLogger(__name__)


class VolumeSeasonalityService:
    """Central orchestrator: cache -> provider -> validate -> aggregate.

    Usage::

        from volumeseasonality import create_service_from_env
        svc = create_service_from_env()
        table = svc.build_table("SPY")
    """

    def __init__(
        self,
        config: VolumeSeasonalityConfig,
        providers: list[BaseVolumeProvider] | None = None,
    ) -> None:
        self.config = config
        self.clock = ExchangeClock(config.session.timezone)

        if providers is None:
            providers = []
            for pt in config.providers:
                kwargs: dict[str, Any] = {}
                if pt is ProviderType.POLYGON and config.polygon_api_key:
                    kwargs["api_key"] = config.polygon_api_key
                elif pt is ProviderType.MOCK:
                    kwargs["clock"] = self.clock
                providers.append(create_provider(pt, **kwargs))
        self.providers = providers

        self.cache: BarCache
        if config.cache_backend == "parquet":
            self.cache = ParquetCache(config.cache_dir)
        elif config.cache_backend == "memory":
            self.cache = MemoryCache(ttl_seconds=config.cache_ttl_seconds)
        else:
            self.cache = NoCache()

    # --------------------------------------------------------------- window

    def fetch_window(self, today: date | None = None) -> tuple[date, date]:
        """Request range ending ``provider_delay_days`` before today."""
        today = today or date.today()
        start = today - timedelta(days=self.config.lookback_days)
        end = today - timedelta(days=self.config.provider_delay_days)
        if end < start:
            end = start
        return start, end

    # ----------------------------------------------------------------- bars

    def get_bars(self, symbol: str, start: date, end: date) -> list[Bar]:
        """Get bars: cache -> provider chain -> validate -> store.

        Retryable errors fall through to the next provider; non-retryable
        errors are raised immediately.

        Raises:
            VolumeDataError: Input unavailable from every provider.
        """
        timeframe = self.config.timeframe
        key = WindowKey.of(symbol, timeframe, start, end)
        cached = self.cache.lookup(key)
        if cached is not None:
            logger.debug("Cache hit for %s %s..%s", symbol, start, end)
            return cached

        last_error: VolumeDataError | None = None
        for provider in self.providers:
            if "bars" not in provider.capabilities():
                continue
            name = type(provider).__name__
            try:
                bars = provider.get_bars(symbol, start, end, timeframe)

                if self.config.validate:
                    self._quality_gate(bars)

                self.cache.remember(key, bars)
                return bars

            except VolumeDataError as e:
                if not e.retryable:
                    raise
                logger.warning("%s failed for %s, trying next provider: %s", name, symbol, e)
                last_error = e
                continue

        raise last_error or VolumeDataError(
            "All providers failed",
            code=VolumeDataErrorCode.NO_DATA,
        )

    def _quality_gate(self, bars: list[Bar]) -> None:
        result = validate_bars(bars, self.config.session, self.clock)
        for check in result.warnings:
            logger.warning("Quality check %s: %s", check.name, check.message)
        if not result.passed:
            msgs = "; ".join(c.message for c in result.failed_checks)
            raise VolumeDataError(
                f"Validation failed: {msgs}",
                code=VolumeDataErrorCode.VALIDATION_FAILED,
                retryable=True,
            )

    # ---------------------------------------------------------------- table

    def build_table(self, symbol: str | None = None, today: date | None = None) -> VolumeTable:
        """Fetch the lookback window for ``symbol`` and aggregate it."""
        symbol = (symbol or self.config.symbol).upper()
        start, end = self.fetch_window(today)
        bars = self.get_bars(symbol, start, end)
        logger.info("Processing %d bars for %s", len(bars), symbol)
        return build_volume_table(bars, self.config.session, self.clock)

    # ---------------------------------------------------------------- cache

    def clear_cache(self, symbol: str) -> None:
        self.cache.forget(symbol)

    def clear_all_cache(self) -> None:
        self.cache.forget()
