"""
Candle window building: fetch, stitch, aggregate and convert.

A display window (1h, 24h, 7d, 30d, 1y) is built from raw USD exchange
candles. Long windows exceed the exchange's per-request row limit and are
fetched as two requests that are stitched back together in call order.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence, Union

from ..models.candle import Candle, TimeWindow, WindowPlan
from ..models.market import DateRange, ExchangeRate
from ..utils.exceptions import ConversionUnavailable
from ..utils.logger import get_logger, log_event
from .cross_rate import FX_FAILURES, CrossRateResolver

# Span of the newest request when a window is split in two; the oldest
# request covers the remainder of the lookback.
SPLIT_RECENT_SPAN = timedelta(days=180)


def merge_candles(group: Sequence[Candle]) -> Candle:
    """Merge consecutive candles into one bucket starting at the first."""
    first = group[0]
    last = group[-1]
    return Candle(
        time=first.time,
        open=first.open,
        high=max(c.high for c in group),
        low=min(c.low for c in group),
        close=last.close,
        volume=sum(c.volume for c in group),
    )


def aggregate_candles(candles: Sequence[Candle], factor: int) -> List[Candle]:
    """
    Merge every ``factor`` consecutive candles into one.

    A trailing partial group still produces a candle.

    Raises:
        ValueError: If factor is less than 1
    """
    if factor < 1:
        raise ValueError(f"Aggregation factor must be >= 1, got {factor}")
    if factor == 1:
        return list(candles)
    return [merge_candles(candles[i:i + factor]) for i in range(0, len(candles), factor)]


def stitch(blocks: Sequence[Sequence[Candle]]) -> List[Candle]:
    """
    Concatenate oldest-first blocks in the given order.

    Candles that do not move time forward (the shared boundary bucket) are
    dropped, keeping the series strictly increasing.
    """
    stitched: List[Candle] = []
    for block in blocks:
        for candle in block:
            if stitched and candle.time <= stitched[-1].time:
                continue
            stitched.append(candle)
    return stitched


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CandleWindowBuilder:
    """
    Builds currency-converted candle series for display windows.

    ``candle_source`` is any object with an async
    ``get_candles(granularity, start, end) -> List[Candle]`` method returning
    oldest-first USD candles (normally a CoinbaseProvider).
    """

    def __init__(
        self,
        candle_source,
        rate_resolver: CrossRateResolver,
        base_currency: str = "USD",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.candle_source = candle_source
        self.rate_resolver = rate_resolver
        self.base_currency = base_currency.upper()
        self._clock = clock or _utcnow
        self.logger = get_logger("engine.candles")

    async def get_candles(
        self,
        window: Union[TimeWindow, str],
        target_currency: str = "USD",
    ) -> List[Candle]:
        """
        Candles for a display window, oldest to newest.

        Args:
            window: TimeWindow or its code ('1h', '24h', '7d', '30d', '1y')
            target_currency: Currency to express prices and volume in

        Returns:
            Aggregated candles; empty when the exchange has no data

        Raises:
            InvalidWindow: For an unknown window code
            UpstreamUnavailable: If the candle source cannot be reached
            ConversionUnavailable: If no FX rate can be found for the currency
        """
        window = TimeWindow.parse(window)
        plan = window.plan
        target_currency = target_currency.upper()

        end = self._clock()
        start = end - plan.lookback

        raw = await self._fetch_raw(plan, start, end)
        candles = aggregate_candles(raw, plan.aggregation_factor)
        log_event(
            self.logger, "candles.built", logging.DEBUG,
            window=window.value, raw=len(raw), aggregated=len(candles),
        )

        if target_currency == self.base_currency or not candles:
            return candles

        exchange_rate = await self._conversion_rate(target_currency, DateRange.between(start, end))
        # One rate for the whole window, not one per bucket
        return [candle.scaled(exchange_rate.rate) for candle in candles]

    async def _fetch_raw(self, plan: WindowPlan, start: datetime, end: datetime) -> List[Candle]:
        if not plan.split_fetch:
            return list(await self.candle_source.get_candles(plan.granularity, start, end))

        split = end - SPLIT_RECENT_SPAN
        # gather() returns results in call order regardless of completion order
        oldest, newest = await asyncio.gather(
            self.candle_source.get_candles(plan.granularity, start, split),
            self.candle_source.get_candles(plan.granularity, split, end),
        )
        return stitch([oldest, newest])

    async def _conversion_rate(self, target_currency: str, date_range: DateRange) -> ExchangeRate:
        try:
            return await self.rate_resolver.get_exchange_rate(
                self.base_currency, target_currency, date_range
            )
        except FX_FAILURES as e:
            log_event(
                self.logger, "conversion.fallback", logging.WARNING,
                target=target_currency, range=str(date_range), error=e,
            )

        try:
            return await self.rate_resolver.get_exchange_rate(self.base_currency, target_currency)
        except FX_FAILURES as e:
            log_event(
                self.logger, "conversion.failure", logging.ERROR,
                target=target_currency, error=e,
            )
            raise ConversionUnavailable(
                f"No {self.base_currency}->{target_currency} rate available for candle conversion"
            ) from e
