"""
Tests for the BtcPulse facade.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from btcpulse.api import BtcPulse
from btcpulse.currencies import list_fx_currencies
from btcpulse.models.market import CurrencyInfo, MarketSnapshot
from btcpulse.utils.config import Config
from btcpulse.utils.exceptions import BtcPulseError, ConversionUnavailable, UpstreamUnavailable

from conftest import FakeCandleSource, FakeFxSource, FakePriceSource


USD_SNAPSHOT = MarketSnapshot(
    price=65000.0, market_cap=1.28e12, volume_24h=3.1e10,
    change_1h=0.1, change_24h=-1.5, change_7d=3.2,
)


@pytest.fixture
def pulse(fx_source):
    pulse = BtcPulse(Config(), session=MagicMock())
    pulse.rates.fx_source = fx_source
    return pulse


class TestWiring:
    def test_components_share_one_rate_resolver(self, pulse):
        assert pulse.spot.rate_resolver is pulse.rates
        assert pulse.candles.rate_resolver is pulse.rates
        assert pulse.market.rate_resolver is pulse.rates
        assert pulse.candles.candle_source is pulse.coinbase

    @pytest.mark.asyncio
    async def test_caller_session_is_not_closed(self):
        session = MagicMock()
        session.close = AsyncMock()

        async with BtcPulse(Config(), session=session):
            pass

        session.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_owned_session_is_closed(self):
        async with BtcPulse(Config()) as pulse:
            session = pulse._session
            assert not session.closed
        assert session.closed

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "call",
        [
            lambda pulse: pulse.get_spot_price("EUR"),
            lambda pulse: pulse.get_candles("24h"),
            lambda pulse: pulse.get_trend("7d"),
            lambda pulse: pulse.get_market_snapshot("USD"),
            lambda pulse: pulse.get_supported_currencies(),
        ],
    )
    async def test_use_without_session_is_a_clear_error(self, call):
        pulse = BtcPulse(Config())

        with pytest.raises(BtcPulseError, match="async context manager"):
            await call(pulse)

    @pytest.mark.asyncio
    async def test_use_after_exit_is_a_clear_error(self):
        async with BtcPulse(Config()) as pulse:
            pass

        with pytest.raises(BtcPulseError, match="async context manager"):
            await pulse.get_spot_price()


class TestDelegation:
    @pytest.mark.asyncio
    async def test_spot_price(self, pulse):
        pulse.spot.price_source = FakePriceSource(65000.0)

        price = await pulse.get_spot_price("GBP")

        assert price == pytest.approx(65000.0 * 0.85 / 1.08)

    @pytest.mark.asyncio
    async def test_trend(self, pulse, hourly_candles):
        pulse.candles.candle_source = FakeCandleSource([hourly_candles])

        trend = await pulse.get_trend("24h")

        expected = (hourly_candles[-1].close - hourly_candles[0].open) / hourly_candles[0].open * 100
        assert trend == pytest.approx(expected)

    @pytest.mark.asyncio
    async def test_trend_without_data(self, pulse):
        pulse.candles.candle_source = FakeCandleSource([[]])
        assert await pulse.get_trend("7d") is None


class TestMarketSnapshot:
    @pytest.mark.asyncio
    async def test_snapshot_is_cached_per_currency(self, pulse):
        pulse.coinlore.get_ticker = AsyncMock(return_value=USD_SNAPSHOT)

        first = await pulse.get_market_snapshot("eur")
        second = await pulse.get_market_snapshot("EUR")

        assert first == second
        assert first.currency == "EUR"
        assert first.price == pytest.approx(65000.0 / 1.08)
        assert pulse.coinlore.get_ticker.await_count == 1

        await pulse.get_market_snapshot("USD")
        assert pulse.coinlore.get_ticker.await_count == 2

    @pytest.mark.asyncio
    async def test_failed_refresh_serves_previous_snapshot(self, pulse):
        pulse.coinlore.get_ticker = AsyncMock(return_value=USD_SNAPSHOT)
        await pulse.get_market_snapshot("USD")

        pulse.coinlore.get_ticker.side_effect = UpstreamUnavailable("coinlore down")
        snapshot = await pulse.get_market_snapshot("USD", force_refresh=True)

        assert snapshot == USD_SNAPSHOT

    @pytest.mark.asyncio
    async def test_conversion_failure_without_cache_raises(self, pulse):
        pulse.coinlore.get_ticker = AsyncMock(return_value=USD_SNAPSHOT)
        pulse.rates.fx_source = FakeFxSource({"USD": 1.08}, empty_calls={"XXX": 5})

        with pytest.raises(ConversionUnavailable):
            await pulse.get_market_snapshot("XXX")


class TestCurrencies:
    @pytest.mark.asyncio
    async def test_remote_currencies_are_cached(self, pulse):
        remote = [CurrencyInfo("EUR", "Euro"), CurrencyInfo("USD", "US Dollar")]
        pulse.coinbase.get_supported_currencies = AsyncMock(return_value=remote)

        assert await pulse.get_supported_currencies() == remote
        assert await pulse.get_supported_currencies() == remote
        assert pulse.coinbase.get_supported_currencies.await_count == 1

    @pytest.mark.asyncio
    async def test_falls_back_to_bundled_list(self, pulse):
        pulse.coinbase.get_supported_currencies = AsyncMock(side_effect=UpstreamUnavailable("down"))

        currencies = await pulse.get_supported_currencies()

        assert currencies == list_fx_currencies()

    def test_bundled_list_needs_no_session(self):
        codes = [c.code for c in BtcPulse.list_fx_currencies()]
        assert "EUR" in codes
        assert "USD" in codes
        assert codes == sorted(codes)
