"""
Market metadata provider using the CoinLore ticker API.

CoinLore reports price, market cap, 24h volume and 1h/24h/7d percent changes,
all in USD. It has no historical endpoint, so 30d/1y changes are unavailable.
"""

import math
from typing import Any, Optional

import aiohttp

from ..models.market import MarketSnapshot
from ..providers.base import BaseDataProvider
from ..utils.config import CoinLoreConfig, HttpConfig
from ..utils.exceptions import MalformedResponse


class CoinLoreProvider(BaseDataProvider):
    """Provider for slow-changing BTC market metadata."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        coinlore_config: Optional[CoinLoreConfig] = None,
        http_config: Optional[HttpConfig] = None,
    ):
        super().__init__("coinlore", session, http_config)
        self.coinlore_config = coinlore_config or CoinLoreConfig()

    async def get_ticker(self) -> MarketSnapshot:
        """
        Fetch the ticker for the configured coin, in USD.

        Raises:
            UpstreamUnavailable: If the request fails
            MalformedResponse: If the response is not a non-empty ticker array
        """
        url = f"{self.coinlore_config.base_url}/ticker/"
        payload = await self._get_json(url, {"id": self.coinlore_config.coin_id})
        return parse_ticker_payload(payload)


def _required(ticker: dict, key: str) -> float:
    value = _optional(ticker, key)
    if value is None:
        raise MalformedResponse(f"CoinLore ticker is missing {key}")
    return value


def _optional(ticker: dict, key: str) -> Optional[float]:
    raw: Any = ticker.get(key)
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise MalformedResponse(f"CoinLore field {key} is not numeric: {raw!r}") from e
    if not math.isfinite(value):
        raise MalformedResponse(f"CoinLore field {key} is not finite: {raw!r}")
    return value


def parse_ticker_payload(payload: Any) -> MarketSnapshot:
    """Validate a ticker response and build a USD MarketSnapshot."""
    if not isinstance(payload, list) or not payload or not isinstance(payload[0], dict):
        raise MalformedResponse("CoinLore ticker response must be a non-empty array of objects")

    ticker = payload[0]
    return MarketSnapshot(
        price=_required(ticker, "price_usd"),
        market_cap=_required(ticker, "market_cap_usd"),
        volume_24h=_required(ticker, "volume24"),
        change_1h=_optional(ticker, "percent_change_1h"),
        change_24h=_optional(ticker, "percent_change_24h"),
        change_7d=_optional(ticker, "percent_change_7d"),
        currency="USD",
    )
