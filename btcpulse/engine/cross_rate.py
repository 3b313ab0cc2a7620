"""
Cross-rate resolution through a single pivot currency.

The FX source only publishes "currency per 1 pivot unit" series, so any
base -> target rate is derived from at most two pivot-relative lookups:

    base == target   ->  1.0 (no lookup)
    base == pivot    ->  P(target)
    target == pivot  ->  1 / P(base)
    otherwise        ->  P(target) / P(base)
"""

import asyncio
import logging
import math
from datetime import date, datetime, timezone
from typing import List, Optional

from ..models.market import DateRange, ExchangeRate, FxObservation
from ..utils.exceptions import MalformedResponse, NoDataError, UpstreamUnavailable
from ..utils.logger import get_logger, log_event

# Errors that mean "no usable FX rate right now"
FX_FAILURES = (NoDataError, UpstreamUnavailable, MalformedResponse)


def select_latest(observations: List[FxObservation]) -> FxObservation:
    """
    Most recent observation by the series' own date key.

    Falls back to the period index when any observation lacks a date.
    """
    if all(o.period is not None for o in observations):
        return max(observations, key=lambda o: (o.period, o.index))
    return max(observations, key=lambda o: o.index)


class CrossRateResolver:
    """
    Triangulates FX rates through the FX source's pivot currency.

    ``fx_source`` is any object with an async
    ``get_observations(currency, date_range) -> List[FxObservation]`` method
    (normally an EcbProvider).
    """

    def __init__(
        self,
        fx_source,
        pivot: str = "EUR",
        default_lookback_days: int = 7,
        fallback_lookback_days: int = 90,
    ):
        self.fx_source = fx_source
        self.pivot = pivot.upper()
        self.default_lookback_days = default_lookback_days
        self.fallback_lookback_days = fallback_lookback_days
        self.logger = get_logger("engine.cross_rate")

    def default_range(self) -> DateRange:
        """The recent range used when no date constraint is given."""
        return DateRange.last(self.default_lookback_days)

    async def get_rate(
        self,
        base: str,
        target: str,
        date_range: Optional[DateRange] = None,
    ) -> float:
        """
        Rate such that 1 ``base`` = rate ``target``.

        Raises:
            NoDataError: If a required pivot rate is unobtainable
            UpstreamUnavailable: If the FX source cannot be reached
        """
        exchange_rate = await self.get_exchange_rate(base, target, date_range)
        return exchange_rate.rate

    async def get_exchange_rate(
        self,
        base: str,
        target: str,
        date_range: Optional[DateRange] = None,
    ) -> ExchangeRate:
        """
        Resolve a dated ExchangeRate.

        Args:
            base: Currency converted from
            target: Currency converted to
            date_range: Observation window; None means the latest available rate

        Raises:
            NoDataError: If a required pivot rate is unobtainable
            UpstreamUnavailable: If the FX source cannot be reached
        """
        base = base.upper()
        target = target.upper()

        if base == target:
            as_of = date_range.end if date_range else datetime.now(timezone.utc).date()
            return ExchangeRate(base=base, target=target, rate=1.0, as_of=as_of)

        if date_range is None:
            date_range = self.default_range()

        if base == self.pivot:
            observation = await self.query_pivot_to_currency(target, date_range)
            rate = observation.value
            as_of = self._as_of(date_range, observation)
        elif target == self.pivot:
            observation = await self.query_pivot_to_currency(base, date_range)
            rate = 1.0 / observation.value
            as_of = self._as_of(date_range, observation)
        else:
            results = await asyncio.gather(
                self.query_pivot_to_currency(target, date_range),
                self.query_pivot_to_currency(base, date_range),
                return_exceptions=True,
            )
            for result in results:
                if isinstance(result, BaseException):
                    raise result
            target_obs, base_obs = results
            rate = target_obs.value / base_obs.value
            as_of = self._as_of(date_range, target_obs, base_obs)

        log_event(
            self.logger, "fx.rate", logging.DEBUG,
            base=base, target=target, rate=rate, as_of=as_of.isoformat(),
        )
        return ExchangeRate(base=base, target=target, rate=rate, as_of=as_of)

    async def query_pivot_to_currency(self, currency: str, date_range: DateRange) -> FxObservation:
        """
        Latest observation of ``currency`` per one pivot unit.

        An empty range is retried exactly once over the wider fallback
        lookback, since the FX source only publishes on business days.

        Raises:
            NoDataError: If both lookups are empty, or the rate is zero or non-finite
            UpstreamUnavailable: If the FX source cannot be reached (not retried)
        """
        currency = currency.upper()
        observations = await self.fx_source.get_observations(currency, date_range)

        if not observations:
            wider = date_range.widened(self.fallback_lookback_days)
            log_event(
                self.logger, "fx.fallback", logging.WARNING,
                currency=currency, requested=str(date_range), retry=str(wider),
            )
            observations = await self.fx_source.get_observations(currency, wider)
            if not observations:
                raise NoDataError(
                    f"No exchange rate data for {currency} per {self.pivot} "
                    f"(empty even with {self.fallback_lookback_days}-day range)"
                )

        latest = select_latest(observations)
        if not math.isfinite(latest.value) or latest.value <= 0:
            raise NoDataError(
                f"Unusable {currency} per {self.pivot} rate {latest.value!r} on {latest.period}"
            )
        return latest

    @staticmethod
    def _as_of(date_range: DateRange, *observations: FxObservation) -> date:
        periods = [o.period for o in observations if o.period is not None]
        return min(periods) if periods else date_range.end
