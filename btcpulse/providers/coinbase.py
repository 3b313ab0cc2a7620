"""
Coinbase data provider.

Fetches the BTC-USD spot price from the Coinbase public API and raw OHLCV
candles from the Coinbase Exchange API. All values are in USD; conversion
to other currencies is the engine's job.
"""

import math
from datetime import datetime
from typing import List, Optional

import aiohttp

from ..models.candle import Candle
from ..models.market import CurrencyInfo, SpotPrice
from ..providers.base import BaseDataProvider
from ..utils.config import CoinbaseConfig, HttpConfig
from ..utils.exceptions import MalformedResponse

# Granularities (seconds) accepted by the exchange candles endpoint
SUPPORTED_GRANULARITIES = (60, 300, 900, 3600, 21600, 86400)

# The exchange returns at most this many rows per candles request
MAX_CANDLES_PER_REQUEST = 300

# Coinbase lists crypto assets alongside fiat currencies
CRYPTO_CODES = frozenset({
    "BTC", "ETH", "LTC", "BCH", "XRP", "XLM", "ADA", "DOT", "SOL", "USDC", "USDT", "DAI",
})


class CoinbaseProvider(BaseDataProvider):
    """
    Provider for BTC spot prices and exchange candles.

    No API key is required; both endpoints are public.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        coinbase_config: Optional[CoinbaseConfig] = None,
        http_config: Optional[HttpConfig] = None,
    ):
        super().__init__("coinbase", session, http_config)
        self.coinbase_config = coinbase_config or CoinbaseConfig()

    @property
    def quote_currency(self) -> str:
        return self.coinbase_config.product_id.split("-")[-1].upper()

    async def get_spot_price(self) -> SpotPrice:
        """
        Fetch the current spot price in the product's quote currency (USD).

        Raises:
            UpstreamUnavailable: If the request fails
            MalformedResponse: If the response is not ``{"data": {"amount", "currency"}}``
        """
        url = f"{self.coinbase_config.api_url}/prices/{self.coinbase_config.product_id}/spot"
        payload = await self._get_json(url)
        return parse_spot_payload(payload, expected_currency=self.quote_currency)

    async def get_candles(
        self,
        granularity: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Candle]:
        """
        Fetch raw candles for a time range.

        Args:
            granularity: Bucket width in seconds (one of SUPPORTED_GRANULARITIES)
            start: Range start (requires end)
            end: Range end (requires start)

        Returns:
            Candles ordered oldest to newest. Malformed rows are dropped.

        Raises:
            ValueError: For an unsupported granularity
            UpstreamUnavailable: If the request fails
            MalformedResponse: If the response is not a JSON array
        """
        if granularity not in SUPPORTED_GRANULARITIES:
            raise ValueError(
                f"Unsupported granularity {granularity}s "
                f"(supported: {', '.join(str(g) for g in SUPPORTED_GRANULARITIES)})"
            )

        url = f"{self.coinbase_config.exchange_url}/products/{self.coinbase_config.product_id}/candles"
        params = {"granularity": granularity}
        # The exchange expects Unix seconds, not ISO strings
        if start is not None and end is not None:
            params["start"] = int(start.timestamp())
            params["end"] = int(end.timestamp())

        payload = await self._get_json(url, params)
        if not isinstance(payload, list):
            raise MalformedResponse(f"Candles response must be a JSON array, got {type(payload).__name__}")

        candles = self._normalize_rows(payload)
        self.logger.info(
            f"Fetched {len(candles)} candles for {self.coinbase_config.product_id} "
            f"(granularity {granularity}s)"
        )
        return candles

    def _normalize_rows(self, rows: list) -> List[Candle]:
        """Parse newest-first rows into an oldest-first, strictly increasing series."""
        candles: List[Candle] = []
        for row in reversed(rows):
            try:
                candle = Candle.from_exchange_row(row)
            except MalformedResponse as e:
                self.logger.warning(f"Dropping malformed candle: {e}")
                continue
            if candles and candle.time <= candles[-1].time:
                self.logger.warning(f"Dropping out-of-order candle at {candle.time.isoformat()}")
                continue
            candles.append(candle)
        return candles

    async def get_supported_currencies(self) -> List[CurrencyInfo]:
        """
        Fetch the fiat currencies Coinbase knows about, sorted by code.

        Raises:
            UpstreamUnavailable: If the request fails
            MalformedResponse: If the response is not ``{"data": [...]}``
        """
        url = f"{self.coinbase_config.api_url}/currencies"
        payload = await self._get_json(url)
        return parse_currencies_payload(payload)


def parse_spot_payload(payload, expected_currency: str = "USD") -> SpotPrice:
    """Validate a spot price response and build a SpotPrice."""
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict) or "amount" not in data:
        raise MalformedResponse("Spot price response is missing data.amount")

    try:
        amount = float(data["amount"])
    except (TypeError, ValueError) as e:
        raise MalformedResponse(f"Spot price amount is not a decimal: {data['amount']!r}") from e
    if not math.isfinite(amount) or amount <= 0:
        raise MalformedResponse(f"Spot price amount must be a finite positive number: {data['amount']!r}")

    currency = str(data.get("currency") or expected_currency).upper()
    if currency != expected_currency:
        raise MalformedResponse(f"Spot price quoted in {currency}, expected {expected_currency}")

    return SpotPrice(amount=amount, currency=currency, base=str(data.get("base") or "BTC"))


def parse_currencies_payload(payload) -> List[CurrencyInfo]:
    """Validate a currencies response, keeping fiat entries only."""
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise MalformedResponse("Currencies response is missing the data array")

    currencies = []
    for entry in data:
        if not isinstance(entry, dict) or not entry.get("id"):
            continue
        code = str(entry["id"]).upper()
        if code in CRYPTO_CODES:
            continue
        currencies.append(CurrencyInfo(code=code, name=str(entry.get("name") or code)))
    return sorted(currencies, key=lambda c: c.code)
