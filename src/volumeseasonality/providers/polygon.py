"""Polygon.io aggregates provider.

Talks to the REST aggregates endpoint directly with ``requests``.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

import certifi
import requests

from volumeseasonality.errors import VolumeDataError, VolumeDataErrorCode
from volumeseasonality.models.bar import Bar
from volumeseasonality.providers.base import TIMEFRAMES, BaseVolumeProvider

logger = logging.getLogger(__name__)

BASE_URL = "https://api.polygon.io"

# Body statuses that carry usable results.
_OK_STATUSES = frozenset({"OK", "DELAYED"})


@dataclass(frozen=True)
class AccessCheck:
    """Outcome of one endpoint check from ``check_access``."""

    test: str
    status: str | None = None
    results_count: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.status in _OK_STATUSES


class PolygonProvider(BaseVolumeProvider):
    """Fetch intraday aggregates from Polygon.io.

    Capabilities: bars, access_check.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = BASE_URL,
        timeout: float = 30.0,
        page_delay: float = 0.25,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key or os.getenv("POLYGON_API_KEY")
        if not self.api_key:
            raise VolumeDataError(
                "Polygon API key required. Set POLYGON_API_KEY env var or pass api_key.",
                code=VolumeDataErrorCode.AUTH_FAILED,
            )
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.page_delay = page_delay
        if session is None:
            session = requests.Session()
            session.verify = certifi.where()
        self.session = session

    def capabilities(self) -> set[str]:
        return {"bars", "access_check"}

    # ------------------------------------------------------------------ bars

    def get_bars(
        self,
        symbol: str,
        start: date,
        end: date,
        timeframe: str = "30min",
    ) -> list[Bar]:
        if timeframe not in TIMEFRAMES:
            raise VolumeDataError(
                f"Invalid timeframe: {timeframe}. Valid: {list(TIMEFRAMES)}",
                code=VolumeDataErrorCode.PROVIDER_ERROR,
            )
        mult, span = TIMEFRAMES[timeframe]

        try:
            return self._fetch_aggs(symbol, start, end, mult, span)
        except VolumeDataError:
            raise
        except requests.Timeout as exc:
            raise VolumeDataError(
                f"Polygon request timed out: {exc}",
                code=VolumeDataErrorCode.TIMEOUT,
                retryable=True,
            ) from exc
        except (requests.RequestException, ValueError) as exc:
            raise VolumeDataError(
                f"Polygon get_bars failed: {exc}",
                code=VolumeDataErrorCode.PROVIDER_ERROR,
                retryable=True,
            ) from exc

    def _aggs_url(self, symbol: str, start: date, end: date, mult: int, span: str) -> str:
        return (
            f"{self.base_url}/v2/aggs/ticker/{symbol.upper()}"
            f"/range/{mult}/{span}/{start.isoformat()}/{end.isoformat()}"
        )

    def _fetch_aggs(
        self, symbol: str, start: date, end: date, mult: int, span: str,
    ) -> list[Bar]:
        bars: list[Bar] = []
        url: str | None = self._aggs_url(symbol, start, end, mult, span)
        params: dict[str, Any] = {
            "apiKey": self.api_key,
            "adjusted": "true",
            "sort": "asc",
            "limit": 50000,
        }
        logger.info("Fetching %s %d/%s bars %s..%s", symbol.upper(), mult, span, start, end)

        while url:
            data = self._get_json(url, params)
            results = data.get("results") or []
            bars.extend(Bar.from_polygon(r) for r in results)
            logger.debug(
                "Polygon page: status=%s results=%d", data.get("status"), len(results),
            )

            url = data.get("next_url")
            if url:
                params = {"apiKey": self.api_key}
                time.sleep(self.page_delay)

        logger.info("Received %d bars for %s", len(bars), symbol.upper())
        return bars

    def _get_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        resp = self.session.get(url, params=params, timeout=self.timeout)
        self._check_response(resp)
        data = resp.json()
        if not isinstance(data, dict):
            raise VolumeDataError(
                f"Unexpected response body: {type(data).__name__}",
                code=VolumeDataErrorCode.BAD_STATUS,
            )
        status = data.get("status")
        if status not in _OK_STATUSES:
            message = data.get("message") or data.get("error") or "Unknown error"
            raise VolumeDataError(
                f"No data received from API: {status or 'Unknown error'} ({message})",
                code=VolumeDataErrorCode.BAD_STATUS,
            )
        return data

    # --------------------------------------------------------- access check

    def check_access(self, symbol: str = "SPY", on: date | None = None) -> list[AccessCheck]:
        """Probe which aggregate endpoints the API key can reach.

        ``on`` defaults to five days ago to avoid landing on today's
        unfinished session.
        """
        on = on or date.today() - timedelta(days=5)
        checks_to_run = [
            ("30-minute bars", on, on, 30, "minute"),
            ("Hourly bars", on, on, 1, "hour"),
            ("Daily bars", date(on.year, 1, 1), date(on.year, 12, 31), 1, "day"),
        ]
        checks: list[AccessCheck] = []
        for name, start, end, mult, span in checks_to_run:
            try:
                resp = self.session.get(
                    self._aggs_url(symbol, start, end, mult, span),
                    params={"apiKey": self.api_key, "adjusted": "true", "sort": "asc"},
                    timeout=self.timeout,
                )
                self._check_response(resp)
                data = resp.json()
            except (VolumeDataError, requests.RequestException, ValueError) as exc:
                logger.warning("Access check %r failed: %s", name, exc)
                checks.append(AccessCheck(test=name, error=str(exc)))
                continue
            checks.append(AccessCheck(
                test=name,
                status=data.get("status"),
                results_count=len(data.get("results") or []),
            ))
        return checks

    # ------------------------------------------------------------- helpers

    def _check_response(self, resp: Any) -> None:
        if resp.status_code == 429:
            raise VolumeDataError(
                "Polygon rate limited",
                code=VolumeDataErrorCode.RATE_LIMITED,
                retryable=True,
            )
        if resp.status_code in (401, 403):
            raise VolumeDataError(
                "Polygon authentication failed",
                code=VolumeDataErrorCode.AUTH_FAILED,
            )
        if resp.status_code == 404:
            raise VolumeDataError(
                "Symbol not found on Polygon",
                code=VolumeDataErrorCode.NOT_FOUND,
            )
        resp.raise_for_status()
