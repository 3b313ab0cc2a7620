"""
FX data provider using the European Central Bank data API.

The ECB publishes daily reference rates against EUR only. A series such as
``D.USD.EUR.SP00.A`` holds "USD per 1 EUR" observations, one per business
day. Weekends and holidays have no observation, so a short date range can
legitimately come back empty; that is reported as an empty list, not as an
error.
"""

from datetime import date
from typing import Any, Dict, List, Optional

import aiohttp

from ..models.market import DateRange, FxObservation
from ..providers.base import BaseDataProvider
from ..utils.config import EcbConfig, HttpConfig
from ..utils.exceptions import MalformedResponse

# Series key parts: daily frequency, spot rate, average of observations
FREQUENCY = "D"
EXR_TYPE = "SP00"
EXR_SUFFIX = "A"


class EcbProvider(BaseDataProvider):
    """Provider for pivot-relative FX observations."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        ecb_config: Optional[EcbConfig] = None,
        http_config: Optional[HttpConfig] = None,
    ):
        super().__init__("ecb", session, http_config)
        self.ecb_config = ecb_config or EcbConfig()

    @property
    def pivot(self) -> str:
        return self.ecb_config.pivot

    def series_key(self, currency: str) -> str:
        """Series identifier for ``currency`` per one pivot unit."""
        return f"{FREQUENCY}.{currency.upper()}.{self.pivot}.{EXR_TYPE}.{EXR_SUFFIX}"

    async def get_observations(self, currency: str, date_range: DateRange) -> List[FxObservation]:
        """
        Fetch all observations of ``currency`` per pivot unit within a date range.

        Args:
            currency: ISO currency code
            date_range: Inclusive range of observation dates

        Returns:
            Observations ordered by period (empty when the range has no data)

        Raises:
            UpstreamUnavailable: If the request fails
            MalformedResponse: If the body is not valid SDMX JSON
        """
        url = f"{self.ecb_config.base_url}/{self.series_key(currency)}"
        params = {
            "startPeriod": date_range.start_period,
            "endPeriod": date_range.end_period,
            "detail": "dataonly",
            "format": "jsondata",
        }
        # The ECB answers 404 "No results found" for ranges without data
        body = await self._request_text(url, params, not_found_is_empty=True)
        if not body.strip():
            return []

        payload = self._decode_json(body, url)
        observations = parse_observations(payload, currency.upper())
        self.logger.debug(
            f"ECB returned {len(observations)} observations for {currency.upper()} over {date_range}"
        )
        return observations


def _time_periods(payload: Dict[str, Any]) -> List[Optional[date]]:
    """Dates for each observation index, from the response structure."""
    try:
        dimensions = payload["structure"]["dimensions"]["observation"]
    except (KeyError, TypeError):
        return []
    if not isinstance(dimensions, list):
        return []

    for dimension in dimensions:
        if not isinstance(dimension, dict) or dimension.get("id") != "TIME_PERIOD":
            continue
        periods: List[Optional[date]] = []
        for value in dimension.get("values") or []:
            try:
                periods.append(date.fromisoformat(str(value.get("id"))[:10]))
            except (AttributeError, ValueError):
                periods.append(None)
        return periods
    return []


def parse_observations(payload: Any, currency: str) -> List[FxObservation]:
    """
    Extract observations from an SDMX-JSON payload.

    Missing ``dataSets`` or an empty ``series`` map means "no data for the
    range" and yields an empty list. Observations are keyed by numeric-string
    period index; the matching date comes from the ``TIME_PERIOD`` dimension.
    """
    if not isinstance(payload, dict):
        raise MalformedResponse(f"ECB response must be a JSON object, got {type(payload).__name__}")

    data_sets = payload.get("dataSets")
    if not isinstance(data_sets, list) or not data_sets:
        return []
    data_set = data_sets[0]
    if not isinstance(data_set, dict):
        raise MalformedResponse("ECB dataSets[0] must be an object")

    series_map = data_set.get("series")
    if not isinstance(series_map, dict) or not series_map:
        return []

    series = next(iter(series_map.values()))
    raw_observations = series.get("observations") if isinstance(series, dict) else None
    if not isinstance(raw_observations, dict):
        return []

    periods = _time_periods(payload)
    observations = []
    for key, raw in raw_observations.items():
        try:
            index = int(key)
        except ValueError as e:
            raise MalformedResponse(f"ECB observation key is not an index: {key!r}") from e
        if not isinstance(raw, list) or not raw or raw[0] is None:
            continue
        try:
            value = float(raw[0])
        except (TypeError, ValueError) as e:
            raise MalformedResponse(f"ECB observation value is not numeric: {raw[0]!r}") from e
        period = periods[index] if 0 <= index < len(periods) else None
        observations.append(FxObservation(currency=currency, period=period, value=value, index=index))

    return sorted(observations, key=lambda o: o.index)
