"""
Base HTTP data provider.

Every upstream source (Coinbase, ECB, CoinLore) inherits from this class. It
owns the translation of transport problems into the package's error taxonomy:
timeouts, connection errors and non-2xx statuses become UpstreamUnavailable,
unparseable bodies become MalformedResponse. Subclasses only validate shapes.
"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, Optional

import aiohttp

from ..utils.config import HttpConfig
from ..utils.exceptions import MalformedResponse, UpstreamUnavailable
from ..utils.logger import get_logger, log_event


class BaseDataProvider:
    """
    Base class for all HTTP data providers.

    The aiohttp session is created and owned by the caller (normally the
    BtcPulse facade) and passed in, so several providers share one
    connection pool and nothing here holds global state.
    """

    def __init__(
        self,
        source_name: str,
        session: aiohttp.ClientSession,
        http_config: Optional[HttpConfig] = None,
    ):
        """
        Initialize the provider.

        Args:
            source_name: Name of the data source (e.g., 'coinbase', 'ecb', 'coinlore')
            session: Shared aiohttp session
            http_config: Timeout and header settings
        """
        self.source_name = source_name
        self.session = session
        self.http_config = http_config or HttpConfig()
        self.logger = get_logger(f"provider.{source_name}")
        self.request_count = 0

    async def _request_text(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        not_found_is_empty: bool = False,
    ) -> str:
        """
        Perform a GET request and return the raw body.

        Args:
            url: Absolute URL
            params: Query parameters
            not_found_is_empty: Treat HTTP 404 as an empty body instead of an error

        Returns:
            Response body (possibly empty)

        Raises:
            UpstreamUnavailable: On timeout, connection failure or HTTP error status
            MalformedResponse: If the body cannot be decoded as text
        """
        self.request_count += 1
        log_event(self.logger, "fetch.start", logging.DEBUG, source=self.source_name, url=url)
        timeout = aiohttp.ClientTimeout(total=self.http_config.timeout)
        started = time.monotonic()

        try:
            async with self.session.get(
                url,
                params=params,
                timeout=timeout,
                headers={"User-Agent": self.http_config.user_agent, "Accept": "application/json"},
            ) as response:
                status = response.status
                try:
                    body = await response.text()
                except UnicodeDecodeError as e:
                    # Error statuses are reported by status below, whatever their body
                    if not 200 <= status < 300:
                        body = ""
                    else:
                        log_event(
                            self.logger, "fetch.failure", logging.WARNING,
                            source=self.source_name, url=url, status=status, reason="undecodable body",
                        )
                        raise MalformedResponse(
                            f"{self.source_name} response body is not valid text: {url}"
                        ) from e
        except asyncio.TimeoutError as e:
            log_event(
                self.logger, "fetch.failure", logging.WARNING,
                source=self.source_name, url=url, reason="timeout",
            )
            raise UpstreamUnavailable(
                f"{self.source_name} request timed out after {self.http_config.timeout}s: {url}"
            ) from e
        except aiohttp.ClientError as e:
            log_event(
                self.logger, "fetch.failure", logging.WARNING,
                source=self.source_name, url=url, reason=type(e).__name__,
            )
            raise UpstreamUnavailable(f"{self.source_name} request failed: {e}") from e

        elapsed_ms = (time.monotonic() - started) * 1000

        if status == 404 and not_found_is_empty:
            log_event(
                self.logger, "fetch.success", logging.DEBUG,
                source=self.source_name, url=url, status=status, empty=True, ms=round(elapsed_ms, 1),
            )
            return ""

        if not 200 <= status < 300:
            log_event(
                self.logger, "fetch.failure", logging.WARNING,
                source=self.source_name, url=url, status=status, body=body[:200],
            )
            raise UpstreamUnavailable(f"{self.source_name} API request failed: HTTP {status} ({url})")

        log_event(
            self.logger, "fetch.success", logging.DEBUG,
            source=self.source_name, url=url, status=status, ms=round(elapsed_ms, 1),
        )
        return body

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Perform a GET request and decode a JSON body.

        Raises:
            UpstreamUnavailable: On transport failure
            MalformedResponse: If the body is empty or not valid JSON
        """
        body = await self._request_text(url, params)
        return self._decode_json(body, url)

    def _decode_json(self, body: str, url: str) -> Any:
        if not body or not body.strip():
            raise MalformedResponse(f"Empty response from {self.source_name}: {url}")
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            self.logger.error(f"Invalid JSON from {self.source_name} ({url}): {body[:200]!r}")
            raise MalformedResponse(f"Invalid JSON response from {self.source_name}: {e}") from e
