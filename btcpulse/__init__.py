"""
btcpulse - Live Bitcoin price and candle windows in any currency.

Resolves the BTC spot price and OHLCV candle windows from USD-only market
data, converting them through EUR-pivoted ECB reference rates.
"""

from btcpulse.api import BtcPulse
from btcpulse.models import Candle, ExchangeRate, MarketSnapshot, SpotPrice, TimeWindow
from btcpulse.utils.exceptions import (
    BtcPulseError,
    ConversionUnavailable,
    InvalidWindow,
    MalformedResponse,
    NoDataError,
    UpstreamUnavailable,
)

__version__ = "0.1.0"
__all__ = [
    "BtcPulse",
    "Candle",
    "ExchangeRate",
    "MarketSnapshot",
    "SpotPrice",
    "TimeWindow",
    "BtcPulseError",
    "ConversionUnavailable",
    "InvalidWindow",
    "MalformedResponse",
    "NoDataError",
    "UpstreamUnavailable",
]
