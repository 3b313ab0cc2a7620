"""
Market metadata (market cap, volume, percent changes) in an arbitrary currency.
"""

import logging

from ..models.market import MarketSnapshot
from ..utils.exceptions import ConversionUnavailable
from ..utils.logger import get_logger, log_event
from .cross_rate import FX_FAILURES, CrossRateResolver


class MarketDataResolver:
    """
    Converts the USD market ticker into the requested currency.

    ``market_source`` is any object with an async ``get_ticker() -> MarketSnapshot``
    method (normally a CoinLoreProvider).
    """

    def __init__(self, market_source, rate_resolver: CrossRateResolver):
        self.market_source = market_source
        self.rate_resolver = rate_resolver
        self.logger = get_logger("engine.market")

    async def get_market_snapshot(self, currency: str = "USD") -> MarketSnapshot:
        """
        Market snapshot with monetary fields in ``currency``.

        Raises:
            UpstreamUnavailable: If the ticker source cannot be reached
            MalformedResponse: If the ticker has an unexpected shape
            ConversionUnavailable: If no FX rate can be found for the currency
        """
        currency = currency.upper()
        snapshot = await self.market_source.get_ticker()
        if currency == snapshot.currency:
            return snapshot

        try:
            rate = await self.rate_resolver.get_rate(snapshot.currency, currency)
        except FX_FAILURES as e:
            log_event(
                self.logger, "conversion.failure", logging.ERROR,
                target=currency, error=e,
            )
            raise ConversionUnavailable(
                f"No {snapshot.currency}->{currency} rate available for market data"
            ) from e

        return snapshot.converted(rate, currency)
