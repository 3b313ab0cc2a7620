"""
Spot price resolution in an arbitrary currency.
"""

import logging

from ..models.market import SpotPrice
from ..utils.exceptions import ConversionUnavailable
from ..utils.logger import get_logger, log_event
from .cross_rate import FX_FAILURES, CrossRateResolver


class SpotPriceResolver:
    """
    Converts the USD spot price into the requested currency.

    ``price_source`` is any object with an async ``get_spot_price() -> SpotPrice``
    method returning the USD price (normally a CoinbaseProvider).
    """

    def __init__(self, price_source, rate_resolver: CrossRateResolver):
        self.price_source = price_source
        self.rate_resolver = rate_resolver
        self.logger = get_logger("engine.spot")

    async def get_spot(self, currency: str = "USD") -> SpotPrice:
        """
        Spot price of one BTC in ``currency``.

        Raises:
            UpstreamUnavailable: If the price source cannot be reached
            MalformedResponse: If the price source answers with an unexpected shape
            ConversionUnavailable: If no FX rate can be found for the currency
        """
        currency = currency.upper()
        usd_price = await self.price_source.get_spot_price()
        if currency == usd_price.currency:
            return usd_price

        try:
            rate = await self.rate_resolver.get_rate(usd_price.currency, currency)
        except FX_FAILURES as e:
            log_event(
                self.logger, "conversion.failure", logging.ERROR,
                target=currency, error=e,
            )
            raise ConversionUnavailable(
                f"No {usd_price.currency}->{currency} rate available for the spot price"
            ) from e

        return SpotPrice(
            amount=usd_price.amount * rate,
            currency=currency,
            base=usd_price.base,
            timestamp=usd_price.timestamp,
        )

    async def get_spot_price(self, currency: str = "USD") -> float:
        """Spot amount of one BTC in ``currency``."""
        spot = await self.get_spot(currency)
        return spot.amount
