"""Shared fixtures for volumeseasonality tests."""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import pytest

# Ensure src/ is on the path for editable-style imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from volumeseasonality.calendar import ExchangeClock
from volumeseasonality.config import SessionConfig
from volumeseasonality.models.bar import Bar
from volumeseasonality.providers.mock import MockProvider

CLOCK = ExchangeClock()


def make_bar(d: date, hhmm: str, volume=1000.0) -> Bar:
    """Bar starting at exchange-local ``hhmm`` on ``d``."""
    hour, minute = (int(p) for p in hhmm.split(":"))
    return Bar(timestamp=CLOCK.to_timestamp_ms(d, hour * 60 + minute), volume=volume)


@pytest.fixture
def clock() -> ExchangeClock:
    return CLOCK


@pytest.fixture
def session() -> SessionConfig:
    return SessionConfig()


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider(clock=CLOCK)


@pytest.fixture
def sample_bars() -> list[Bar]:
    """One full 30-minute session on 2024-01-16, 13 contiguous bars."""
    labels = SessionConfig().interval_labels
    return [make_bar(date(2024, 1, 16), label, 10000.0 + i * 500) for i, label in enumerate(labels)]
