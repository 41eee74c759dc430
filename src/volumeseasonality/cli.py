"""Command line entry point: fetch bars and print the volume table."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys

from dotenv import load_dotenv

from volumeseasonality.config import ProviderType, VolumeSeasonalityConfig
from volumeseasonality.errors import VolumeDataError
from volumeseasonality.render import format_table
from volumeseasonality.service import VolumeSeasonalityService

logger = logging.getLogger(__name__)


def _windows(value: str) -> tuple[int, ...]:
    try:
        return tuple(int(v) for v in value.split(",") if v.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected comma-separated integers, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="volume-seasonality",
        description="Intraday volume distribution (% of day per 30-minute interval)",
    )
    parser.add_argument("symbol", nargs="?", help="Ticker symbol (default: $VOLUME_SYMBOL or SPY)")
    parser.add_argument("--lookback-days", type=int, help="Calendar days of history to request")
    parser.add_argument("--delay-days", type=int, help="Days trimmed off the end of the request")
    parser.add_argument("--retention", type=int, help="Trading days kept in the table")
    parser.add_argument("--windows", type=_windows, help="Rolling windows, e.g. 5,10,20")
    parser.add_argument(
        "--providers", help="Comma-separated providers (polygon, mock)",
    )
    parser.add_argument("--cache", choices=["memory", "parquet", "none"], help="Cache backend")
    parser.add_argument("--json", action="store_true", help="Output rows as JSON")
    parser.add_argument(
        "--check-access", action="store_true",
        help="Probe which Polygon endpoints the API key can reach and exit",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def build_config(args: argparse.Namespace) -> VolumeSeasonalityConfig:
    """Environment defaults overridden by command line flags."""
    config = VolumeSeasonalityConfig.from_env()
    overrides = {}
    if args.symbol:
        overrides["symbol"] = args.symbol
    if args.lookback_days is not None:
        overrides["lookback_days"] = args.lookback_days
    if args.delay_days is not None:
        overrides["provider_delay_days"] = args.delay_days
    if args.providers:
        overrides["providers"] = [ProviderType(p.strip().lower()) for p in args.providers.split(",")]
    if args.cache:
        overrides["cache_backend"] = args.cache

    session_overrides = {}
    if args.retention is not None:
        session_overrides["retention_days"] = args.retention
    if args.windows is not None:
        session_overrides["rolling_windows"] = args.windows
    if session_overrides:
        overrides["session"] = dataclasses.replace(config.session, **session_overrides)

    return dataclasses.replace(config, **overrides)


def _check_access(service: VolumeSeasonalityService, symbol: str) -> int:
    providers = [p for p in service.providers if "access_check" in p.capabilities()]
    if not providers:
        print("No configured provider supports access checks", file=sys.stderr)
        return 1
    report = [
        {
            "provider": type(p).__name__,
            "tests": [dataclasses.asdict(c) for c in p.check_access(symbol)],  # type: ignore[attr-defined]
        }
        for p in providers
    ]
    print(json.dumps(report, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = build_config(args)
        service = VolumeSeasonalityService(config)
        if args.check_access:
            return _check_access(service, config.symbol.upper())
        table = service.build_table(config.symbol)
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    except VolumeDataError as exc:
        logger.debug("Fetch failed", exc_info=True)
        print(f"Error fetching data: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps({"intervals": list(table.intervals), "rows": table.to_records()}, indent=2))
    else:
        print(f"{config.symbol.upper()} Intraday Volume Seasonality - "
              f"Past {len(table.day_rows)} Trading Days")
        print(format_table(table))
    return 0


if __name__ == "__main__":
    sys.exit(main())
