"""
Configuration management module.

Handles loading configuration from environment variables (and a local .env
file via python-dotenv). Each upstream source gets its own dataclass.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

load_dotenv()  # Load environment variables from .env file

DEFAULT_USER_AGENT = "btcpulse/0.1.0"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass
class HttpConfig:
    """Shared HTTP client settings."""

    timeout: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls) -> "HttpConfig":
        return cls(
            timeout=_env_float("BTCPULSE_HTTP_TIMEOUT", 10.0),
            user_agent=os.getenv("BTCPULSE_USER_AGENT", DEFAULT_USER_AGENT),
        )


@dataclass
class CoinbaseConfig:
    """Coinbase public API configuration (spot prices and exchange candles)."""

    api_url: str = "https://api.coinbase.com/v2"
    exchange_url: str = "https://api.exchange.coinbase.com"
    product_id: str = "BTC-USD"

    @classmethod
    def from_env(cls) -> "CoinbaseConfig":
        return cls(
            api_url=os.getenv("COINBASE_API_URL", cls.api_url),
            exchange_url=os.getenv("COINBASE_EXCHANGE_URL", cls.exchange_url),
            product_id=os.getenv("COINBASE_PRODUCT_ID", cls.product_id),
        )


@dataclass
class EcbConfig:
    """
    European Central Bank FX configuration.

    The ECB publishes every rate against EUR, which makes EUR the pivot
    currency for all cross rates.
    """

    base_url: str = "https://data-api.ecb.europa.eu/service/data/EXR"
    pivot: str = "EUR"
    default_lookback_days: int = 7
    fallback_lookback_days: int = 90

    @classmethod
    def from_env(cls) -> "EcbConfig":
        return cls(
            base_url=os.getenv("ECB_API_URL", cls.base_url),
            default_lookback_days=_env_int("ECB_DEFAULT_LOOKBACK_DAYS", 7),
            fallback_lookback_days=_env_int("ECB_FALLBACK_LOOKBACK_DAYS", 90),
        )


@dataclass
class CoinLoreConfig:
    """CoinLore ticker configuration (market cap, volume, percent changes)."""

    base_url: str = "https://api.coinlore.net/api"
    coin_id: int = 90  # Bitcoin

    @classmethod
    def from_env(cls) -> "CoinLoreConfig":
        return cls(
            base_url=os.getenv("COINLORE_API_URL", cls.base_url),
            coin_id=_env_int("COINLORE_COIN_ID", 90),
        )


@dataclass
class CacheConfig:
    """TTLs (seconds) for slow-changing market metadata."""

    market_ttl: float = 30 * 60
    currencies_ttl: float = 24 * 60 * 60

    @classmethod
    def from_env(cls) -> "CacheConfig":
        return cls(
            market_ttl=_env_float("BTCPULSE_MARKET_TTL", 30 * 60),
            currencies_ttl=_env_float("BTCPULSE_CURRENCIES_TTL", 24 * 60 * 60),
        )


@dataclass
class Config:
    """
    Main configuration class.

    Loads all configuration from environment variables with sensible defaults.
    """

    http: HttpConfig = field(default_factory=HttpConfig.from_env)
    coinbase: CoinbaseConfig = field(default_factory=CoinbaseConfig.from_env)
    ecb: EcbConfig = field(default_factory=EcbConfig.from_env)
    coinlore: CoinLoreConfig = field(default_factory=CoinLoreConfig.from_env)
    cache: CacheConfig = field(default_factory=CacheConfig.from_env)

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()
