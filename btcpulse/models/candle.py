"""
Candle data model and display window plans.

A Candle is one OHLCV bucket of the BTC-USD market (or its converted
equivalent). Sequences of candles are always ordered oldest to newest with
strictly increasing bucket start times.
"""

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional, Sequence

from ..utils.exceptions import InvalidWindow, MalformedResponse


def _as_number(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise MalformedResponse(f"{name} must be numeric, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise MalformedResponse(f"{name} must be numeric, got {value!r}") from e
    if not math.isfinite(number):
        raise MalformedResponse(f"{name} must be finite, got {value!r}")
    return number


@dataclass(frozen=True)
class Candle:
    """
    Normalized OHLCV candle.

    Attributes:
        time: Bucket start (timezone-aware, UTC)
        open: Opening price
        high: Highest price during the bucket
        low: Lowest price during the bucket
        close: Closing price
        volume: Traded volume during the bucket
    """

    time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float

    @classmethod
    def from_exchange_row(cls, row: Sequence[Any]) -> "Candle":
        """
        Build a candle from an exchange tuple.

        The exchange publishes ``[epoch_seconds, low, high, open, close, volume]``.

        Raises:
            MalformedResponse: If the row is not a well-formed candle
        """
        if not isinstance(row, (list, tuple)) or len(row) < 6:
            raise MalformedResponse(f"Candle row must have 6 fields, got {row!r}")

        epoch = _as_number(row[0], "time")
        low = _as_number(row[1], "low")
        high = _as_number(row[2], "high")
        open_ = _as_number(row[3], "open")
        close = _as_number(row[4], "close")
        volume = _as_number(row[5], "volume")

        if min(open_, high, low, close) <= 0:
            raise MalformedResponse(f"Candle prices must be positive: {row!r}")
        if volume < 0:
            raise MalformedResponse(f"Candle volume must be non-negative: {row!r}")

        candle = cls(
            time=datetime.fromtimestamp(int(epoch), tz=timezone.utc),
            open=open_,
            high=high,
            low=low,
            close=close,
            volume=volume,
        )
        if not candle.is_consistent():
            raise MalformedResponse(f"Candle violates low <= open/close <= high: {row!r}")
        return candle

    def is_consistent(self) -> bool:
        """True if low/high bound both open and close."""
        return self.low <= min(self.open, self.close) and self.high >= max(self.open, self.close)

    def scaled(self, factor: float) -> "Candle":
        """Return a copy with every price and the volume multiplied by ``factor``."""
        return replace(
            self,
            open=self.open * factor,
            high=self.high * factor,
            low=self.low * factor,
            close=self.close * factor,
            volume=self.volume * factor,
        )

    def to_dict(self) -> dict:
        return {
            "time": self.time.isoformat(),
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


@dataclass(frozen=True)
class WindowPlan:
    """
    How a display window is built from raw exchange candles.

    Attributes:
        granularity: Raw candle width in seconds
        lookback: How far back the window reaches
        aggregation_factor: Raw candles merged into one displayed candle
        split_fetch: Whether the lookback exceeds one request's row limit
    """

    granularity: int
    lookback: timedelta
    aggregation_factor: int
    split_fetch: bool = False


class TimeWindow(str, Enum):
    """Display windows offered to the user."""

    HOUR = "1h"
    DAY = "24h"
    WEEK = "7d"
    MONTH = "30d"
    YEAR = "1y"

    @property
    def plan(self) -> WindowPlan:
        return WINDOW_PLANS[self]

    @classmethod
    def parse(cls, code: Any) -> "TimeWindow":
        """
        Resolve a window code such as ``'24h'``.

        Raises:
            InvalidWindow: If the code is not a known window
        """
        if isinstance(code, cls):
            return code
        try:
            return cls(str(code).strip().lower())
        except ValueError:
            supported = ", ".join(w.value for w in cls)
            raise InvalidWindow(
                f"Unsupported time window: {code!r} (supported: {supported})"
            ) from None


WINDOW_PLANS = {
    TimeWindow.HOUR: WindowPlan(300, timedelta(hours=1), 1),
    TimeWindow.DAY: WindowPlan(3600, timedelta(hours=24), 2),
    TimeWindow.WEEK: WindowPlan(86400, timedelta(days=7), 1),
    TimeWindow.MONTH: WindowPlan(86400, timedelta(days=30), 2),
    TimeWindow.YEAR: WindowPlan(86400, timedelta(days=365), 30, split_fetch=True),
}


def trend_percent(candles: Sequence[Candle]) -> Optional[float]:
    """
    Percent change across a candle series: first open to last close.

    Returns None for an empty series.
    """
    if not candles:
        return None
    first_open = candles[0].open
    return (candles[-1].close - first_open) / first_open * 100
