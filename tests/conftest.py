"""
Pytest configuration and shared fixtures for testing
"""

import asyncio
import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from btcpulse.models.candle import Candle
from btcpulse.models.market import DateRange, FxObservation, SpotPrice

BASE_TIME = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
NOW = datetime(2024, 6, 30, 12, 0, 0, tzinfo=timezone.utc)


def make_candles(count: int, step_seconds: int = 3600, start: datetime = BASE_TIME) -> List[Candle]:
    """Oldest-first candles with a simple price pattern."""
    candles = []
    for i in range(count):
        open_price = 100.0 + i
        close = open_price + (1.0 if i % 2 == 0 else -0.5)
        candles.append(
            Candle(
                time=start + timedelta(seconds=step_seconds * i),
                open=open_price,
                high=max(open_price, close) + 1.0,
                low=min(open_price, close) - 1.0,
                close=close,
                volume=10.0 + i,
            )
        )
    return candles


class FakeFxSource:
    """
    In-memory FX source.

    ``rates`` maps currency -> value per pivot unit. ``empty_calls`` maps
    currency -> number of initial calls that return no observations.
    ``errors`` maps currency -> exception raised on every call.
    """

    def __init__(
        self,
        rates: Dict[str, float],
        empty_calls: Optional[Dict[str, int]] = None,
        errors: Optional[Dict[str, Exception]] = None,
        period: date = date(2024, 6, 28),
    ):
        self.rates = rates
        self.empty_calls = dict(empty_calls or {})
        self.errors = errors or {}
        self.period = period
        self.calls: List[tuple] = []

    async def get_observations(self, currency: str, date_range: DateRange) -> List[FxObservation]:
        self.calls.append((currency, date_range))
        if currency in self.errors:
            raise self.errors[currency]
        if self.empty_calls.get(currency, 0) > 0:
            self.empty_calls[currency] -= 1
            return []
        if currency not in self.rates:
            return []
        return [
            FxObservation(currency=currency, period=self.period - timedelta(days=1), value=self.rates[currency] * 0.99, index=0),
            FxObservation(currency=currency, period=self.period, value=self.rates[currency], index=1),
        ]


class FakeCandleSource:
    """
    In-memory candle source returning pre-set blocks in call order.

    ``delays`` optionally holds a sleep per call, to make responses arrive
    out of call order.
    """

    def __init__(self, blocks: List[List[Candle]], delays: Optional[List[float]] = None, error: Optional[Exception] = None):
        self.blocks = list(blocks)
        self.delays = list(delays or [])
        self.error = error
        self.calls: List[tuple] = []

    async def get_candles(self, granularity: int, start: datetime, end: datetime) -> List[Candle]:
        index = len(self.calls)
        self.calls.append((granularity, start, end))
        if self.error is not None:
            raise self.error
        if index < len(self.delays):
            await asyncio.sleep(self.delays[index])
        return self.blocks[index] if index < len(self.blocks) else []


class FakePriceSource:
    def __init__(self, amount: float, currency: str = "USD"):
        self.amount = amount
        self.currency = currency
        self.calls = 0

    async def get_spot_price(self) -> SpotPrice:
        self.calls += 1
        return SpotPrice(amount=self.amount, currency=self.currency)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def hourly_candles() -> List[Candle]:
    """24 raw hourly candles."""
    return make_candles(24, step_seconds=3600)


@pytest.fixture
def daily_candles() -> List[Candle]:
    return make_candles(365, step_seconds=86400)


@pytest.fixture
def fx_source() -> FakeFxSource:
    """Pivot (EUR) rates: 1 EUR = 1.08 USD = 160 JPY = 0.85 GBP."""
    return FakeFxSource({"USD": 1.08, "JPY": 160.0, "GBP": 0.85})
