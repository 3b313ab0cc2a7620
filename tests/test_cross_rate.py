"""
Tests for pivot-currency cross-rate resolution.
"""

from datetime import date

import pytest

from btcpulse.engine.cross_rate import CrossRateResolver, select_latest
from btcpulse.models.market import DateRange, FxObservation
from btcpulse.utils.exceptions import NoDataError, UpstreamUnavailable

from conftest import FakeFxSource

WEEK = DateRange(start=date(2024, 6, 23), end=date(2024, 6, 30))


@pytest.fixture
def resolver(fx_source):
    return CrossRateResolver(fx_source, pivot="EUR")


class TestSameCurrency:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["USD", "EUR", "JPY", "xyz"])
    async def test_identity_rate_without_network(self, resolver, fx_source, code):
        rate = await resolver.get_rate(code, code, WEEK)

        assert rate == 1.0
        assert fx_source.calls == []

    @pytest.mark.asyncio
    async def test_identity_is_case_insensitive(self, resolver, fx_source):
        assert await resolver.get_rate("usd", "USD") == 1.0
        assert fx_source.calls == []


class TestPivotCases:
    @pytest.mark.asyncio
    async def test_base_is_pivot(self, resolver, fx_source):
        rate = await resolver.get_rate("EUR", "JPY", WEEK)

        assert rate == 160.0
        assert fx_source.calls == [("JPY", WEEK)]

    @pytest.mark.asyncio
    async def test_target_is_pivot(self, resolver):
        rate = await resolver.get_rate("USD", "EUR", WEEK)
        assert rate == pytest.approx(1 / 1.08)

    @pytest.mark.asyncio
    async def test_triangulation(self, resolver, fx_source):
        rate = await resolver.get_rate("USD", "JPY", WEEK)

        assert rate == pytest.approx(148.15, abs=0.01)
        assert sorted(c[0] for c in fx_source.calls) == ["JPY", "USD"]

    @pytest.mark.asyncio
    async def test_triangulation_symmetry(self, resolver):
        forward = await resolver.get_rate("GBP", "JPY", WEEK)
        backward = await resolver.get_rate("JPY", "GBP", WEEK)

        assert forward * backward == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_exchange_rate_is_dated_by_observation(self, resolver):
        exchange_rate = await resolver.get_exchange_rate("USD", "GBP", WEEK)

        assert exchange_rate.base == "USD"
        assert exchange_rate.target == "GBP"
        assert exchange_rate.as_of == date(2024, 6, 28)
        assert exchange_rate.convert(100.0) == pytest.approx(100.0 * 0.85 / 1.08)

    @pytest.mark.asyncio
    async def test_no_range_uses_recent_default(self, fx_source):
        resolver = CrossRateResolver(fx_source, default_lookback_days=7)

        await resolver.get_rate("EUR", "USD")

        _, used_range = fx_source.calls[0]
        assert (used_range.end - used_range.start).days == 7


class TestWidenedFallback:
    @pytest.mark.asyncio
    async def test_empty_range_retries_once_with_wider_lookback(self):
        fx_source = FakeFxSource({"USD": 1.08}, empty_calls={"USD": 1})
        resolver = CrossRateResolver(fx_source, fallback_lookback_days=90)

        rate = await resolver.get_rate("EUR", "USD", WEEK)

        assert rate == 1.08
        assert len(fx_source.calls) == 2
        _, wider = fx_source.calls[1]
        assert wider.end == WEEK.end
        assert (wider.end - wider.start).days == 90

    @pytest.mark.asyncio
    async def test_empty_after_fallback_raises_no_data(self):
        fx_source = FakeFxSource({}, empty_calls={"SEK": 5})
        resolver = CrossRateResolver(fx_source)

        with pytest.raises(NoDataError):
            await resolver.get_rate("EUR", "SEK", WEEK)
        assert len(fx_source.calls) == 2

    @pytest.mark.asyncio
    async def test_transport_failure_is_not_retried(self):
        fx_source = FakeFxSource({}, errors={"USD": UpstreamUnavailable("down")})
        resolver = CrossRateResolver(fx_source)

        with pytest.raises(UpstreamUnavailable):
            await resolver.get_rate("EUR", "USD", WEEK)
        assert len(fx_source.calls) == 1

    @pytest.mark.asyncio
    async def test_both_triangulation_legs_failing_raises_target_error(self):
        target_error = UpstreamUnavailable("jpy down")
        fx_source = FakeFxSource(
            {}, errors={"JPY": target_error, "USD": UpstreamUnavailable("usd down")},
        )
        resolver = CrossRateResolver(fx_source)

        with pytest.raises(UpstreamUnavailable) as exc_info:
            await resolver.get_rate("USD", "JPY", WEEK)

        assert exc_info.value is target_error
        assert sorted(c[0] for c in fx_source.calls) == ["JPY", "USD"]

    @pytest.mark.asyncio
    async def test_one_failing_triangulation_leg_raises(self):
        fx_source = FakeFxSource({"JPY": 160.0}, errors={"USD": UpstreamUnavailable("usd down")})
        resolver = CrossRateResolver(fx_source)

        with pytest.raises(UpstreamUnavailable):
            await resolver.get_rate("USD", "JPY", WEEK)


class TestUnusableRates:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [0.0, -1.0, float("inf"), float("nan")])
    async def test_rejected_before_division(self, value):
        fx_source = FakeFxSource({"USD": value, "JPY": 160.0})
        resolver = CrossRateResolver(fx_source)

        with pytest.raises(NoDataError):
            await resolver.get_rate("USD", "JPY", WEEK)
        with pytest.raises(NoDataError):
            await resolver.get_rate("USD", "EUR", WEEK)


class TestSelectLatest:
    def test_by_date_key_not_position(self):
        observations = [
            FxObservation("USD", date(2024, 6, 28), 1.09, index=0),
            FxObservation("USD", date(2024, 6, 27), 1.07, index=1),
        ]
        assert select_latest(observations).value == 1.09

    def test_by_index_without_dates(self):
        observations = [
            FxObservation("USD", None, 1.07, index=3),
            FxObservation("USD", None, 1.09, index=7),
            FxObservation("USD", None, 1.08, index=5),
        ]
        assert select_latest(observations).value == 1.09
