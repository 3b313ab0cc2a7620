"""
Public API for btcpulse.

BtcPulse composes the providers and engine components for a presentation
layer. It owns one aiohttp session shared by every provider:

    async with BtcPulse() as pulse:
        price = await pulse.get_spot_price("EUR")
        candles = await pulse.get_candles("24h", "EUR")
"""

import logging
from typing import List, Optional, Union

import aiohttp

from .currencies import list_fx_currencies
from .engine.cache import MarketDataCache, cache_key
from .engine.candles import CandleWindowBuilder
from .engine.cross_rate import CrossRateResolver
from .engine.market import MarketDataResolver
from .engine.spot import SpotPriceResolver
from .models.candle import Candle, TimeWindow, trend_percent
from .models.market import CurrencyInfo, MarketSnapshot, SpotPrice
from .providers.coinbase import CoinbaseProvider
from .providers.coinlore import CoinLoreProvider
from .providers.ecb import EcbProvider
from .utils.config import Config
from .utils.exceptions import BtcPulseError, MalformedResponse, UpstreamUnavailable
from .utils.logger import get_logger, log_event


class BtcPulse:
    """
    Facade over spot prices, candle windows and market metadata.

    Use as an async context manager, or pass an existing session and call
    ``close`` yourself (a caller-supplied session is never closed here).
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config or Config.load()
        self.logger = get_logger("api")
        self._session = session
        self._owns_session = session is None
        self.cache = MarketDataCache(default_ttl=self.config.cache.market_ttl)
        self._started = False
        if session is not None:
            self._build(session)

    async def __aenter__(self) -> "BtcPulse":
        if self._session is None or (self._owns_session and self._session.closed):
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.http.timeout),
            )
            self._owns_session = True
            self._build(self._session)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if this facade created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._started = False

    def _require_started(self) -> None:
        if not self._started:
            raise BtcPulseError(
                "BtcPulse has no HTTP session: use it as an async context manager "
                "or pass a session to the constructor"
            )

    def _build(self, session: aiohttp.ClientSession) -> None:
        http = self.config.http
        self.coinbase = CoinbaseProvider(session, self.config.coinbase, http)
        self.ecb = EcbProvider(session, self.config.ecb, http)
        self.coinlore = CoinLoreProvider(session, self.config.coinlore, http)

        self.rates = CrossRateResolver(
            self.ecb,
            pivot=self.config.ecb.pivot,
            default_lookback_days=self.config.ecb.default_lookback_days,
            fallback_lookback_days=self.config.ecb.fallback_lookback_days,
        )
        self.spot = SpotPriceResolver(self.coinbase, self.rates)
        self.candles = CandleWindowBuilder(self.coinbase, self.rates)
        self.market = MarketDataResolver(self.coinlore, self.rates)
        self._started = True

    async def get_spot(self, currency: str = "USD") -> SpotPrice:
        self._require_started()
        return await self.spot.get_spot(currency)

    async def get_spot_price(self, currency: str = "USD") -> float:
        self._require_started()
        return await self.spot.get_spot_price(currency)

    async def get_candles(
        self,
        window: Union[TimeWindow, str] = TimeWindow.DAY,
        currency: str = "USD",
    ) -> List[Candle]:
        self._require_started()
        return await self.candles.get_candles(window, currency)

    async def get_trend(
        self,
        window: Union[TimeWindow, str] = TimeWindow.DAY,
        currency: str = "USD",
    ) -> Optional[float]:
        """Percent change over a window (first open to last close), None without data."""
        candles = await self.get_candles(window, currency)
        return trend_percent(candles)

    async def get_market_snapshot(
        self,
        currency: str = "USD",
        force_refresh: bool = False,
    ) -> MarketSnapshot:
        """
        Market metadata in ``currency``, cached for ``config.cache.market_ttl``.

        A failed refresh serves the previous snapshot when there is one.
        """
        self._require_started()
        currency = currency.upper()

        async def fetch() -> MarketSnapshot:
            return await self.market.get_market_snapshot(currency)

        return await self.cache.get(
            cache_key("coinlore", f"btc-market-{currency.lower()}"),
            fetch,
            ttl=self.config.cache.market_ttl,
            force_refresh=force_refresh,
        )

    async def get_supported_currencies(self, force_refresh: bool = False) -> List[CurrencyInfo]:
        """
        Fiat currencies listed by Coinbase, cached for ``config.cache.currencies_ttl``.

        Falls back to the bundled FX currency list if Coinbase has never answered.
        """
        self._require_started()
        try:
            return await self.cache.get(
                cache_key("coinbase", "currencies"),
                self.coinbase.get_supported_currencies,
                ttl=self.config.cache.currencies_ttl,
                force_refresh=force_refresh,
            )
        except (UpstreamUnavailable, MalformedResponse) as e:
            log_event(self.logger, "currencies.fallback", logging.WARNING, error=e)
            return list_fx_currencies()

    @staticmethod
    def list_fx_currencies() -> List[CurrencyInfo]:
        """Currencies with FX data; no network call."""
        return list_fx_currencies()
