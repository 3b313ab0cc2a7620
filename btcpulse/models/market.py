"""
Price, FX and market metadata models.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Optional


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar date range, as the FX source understands it."""

    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"DateRange start {self.start} is after end {self.end}")

    @classmethod
    def last(cls, days: int, end: Optional[date] = None) -> "DateRange":
        """The ``days`` days up to and including ``end`` (today in UTC by default)."""
        if end is None:
            end = datetime.now(timezone.utc).date()
        return cls(start=end - timedelta(days=days), end=end)

    @classmethod
    def between(cls, start: datetime, end: datetime) -> "DateRange":
        return cls(start=start.date(), end=end.date())

    def widened(self, days: int) -> "DateRange":
        """A ``days``-long range ending where this one ends."""
        return DateRange.last(days, end=self.end)

    @property
    def start_period(self) -> str:
        return self.start.isoformat()

    @property
    def end_period(self) -> str:
        return self.end.isoformat()

    def __str__(self) -> str:
        return f"{self.start_period}..{self.end_period}"


@dataclass(frozen=True)
class FxObservation:
    """
    One FX observation: units of ``currency`` per one pivot unit on ``period``.

    ``index`` is the position of the observation in the source series; it
    orders observations when the source does not report their dates.
    """

    currency: str
    period: Optional[date]
    value: float
    index: int = 0


@dataclass(frozen=True)
class ExchangeRate:
    """
    Conversion rate from ``base`` to ``target``: 1 base = ``rate`` target.

    ``as_of`` is the date of the oldest observation the rate was derived from.
    """

    base: str
    target: str
    rate: float
    as_of: date

    def convert(self, amount: float) -> float:
        return amount * self.rate


@dataclass(frozen=True)
class SpotPrice:
    """Spot price of one BTC in ``currency``."""

    amount: float
    currency: str
    base: str = "BTC"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "amount": self.amount,
            "currency": self.currency,
            "base": self.base,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class MarketSnapshot:
    """
    Market metadata for BTC.

    Monetary fields are in ``currency``; ``change_*`` fields are percentages and
    do not depend on the currency.
    """

    price: float
    market_cap: float
    volume_24h: float
    change_1h: Optional[float]
    change_24h: Optional[float]
    change_7d: Optional[float]
    currency: str = "USD"

    def converted(self, rate: float, currency: str) -> "MarketSnapshot":
        return MarketSnapshot(
            price=self.price * rate,
            market_cap=self.market_cap * rate,
            volume_24h=self.volume_24h * rate,
            change_1h=self.change_1h,
            change_24h=self.change_24h,
            change_7d=self.change_7d,
            currency=currency,
        )

    def change_for(self, window: str) -> Optional[float]:
        """Percent change for a display window code; None where the ticker has none."""
        return {
            "1h": self.change_1h,
            "24h": self.change_24h,
            "7d": self.change_7d,
        }.get(str(getattr(window, "value", window)))

    def to_dict(self) -> dict:
        return {
            "price": self.price,
            "market_cap": self.market_cap,
            "volume_24h": self.volume_24h,
            "change_1h": self.change_1h,
            "change_24h": self.change_24h,
            "change_7d": self.change_7d,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class CurrencyInfo:
    """A selectable display currency."""

    code: str
    name: str
