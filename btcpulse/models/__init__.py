"""
Data models for candles, prices, FX rates and market metadata.
"""

from .candle import Candle, TimeWindow, WindowPlan, WINDOW_PLANS, trend_percent
from .market import (
    CurrencyInfo,
    DateRange,
    ExchangeRate,
    FxObservation,
    MarketSnapshot,
    SpotPrice,
)

__all__ = [
    "Candle",
    "TimeWindow",
    "WindowPlan",
    "WINDOW_PLANS",
    "trend_percent",
    "CurrencyInfo",
    "DateRange",
    "ExchangeRate",
    "FxObservation",
    "MarketSnapshot",
    "SpotPrice",
]
