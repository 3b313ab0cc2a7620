"""
Price and candle aggregation engine.
"""

from .cache import CacheEntry, MarketDataCache, cache_key
from .candles import CandleWindowBuilder, aggregate_candles, merge_candles
from .cross_rate import CrossRateResolver
from .market import MarketDataResolver
from .spot import SpotPriceResolver

__all__ = [
    "CacheEntry",
    "MarketDataCache",
    "cache_key",
    "CandleWindowBuilder",
    "aggregate_candles",
    "merge_candles",
    "CrossRateResolver",
    "MarketDataResolver",
    "SpotPriceResolver",
]
