"""
Live Data Configuration

Centralized configuration. All environment variables MUST be read here;
no os.getenv() calls elsewhere. Every value is a startup-time constant.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from live_data.news.synthesizer import TEMPLATES


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""
    pass


DEFAULT_COIN_IDS: tuple[str, ...] = (
    "bitcoin",
    "ethereum",
    "binancecoin",
    "ripple",
    "cardano",
    "solana",
    "polkadot",
    "dogecoin",
    "avalanche-2",
    "chainlink",
    "uniswap",
    "matic-network",
)


def _optional_env(name: str, default: str = "") -> str:
    """Get an optional environment variable with a default."""
    return os.environ.get(name, default)


def _optional_env_int(
    name: str,
    default: int,
    minimum: int = 0,
    maximum: Optional[int] = None,
) -> int:
    """Get an optional integer environment variable with a default."""
    value = os.environ.get(name)
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise ConfigurationError(f"Invalid integer value for {name}: {value}")
    if parsed < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {parsed}")
    if maximum is not None and parsed > maximum:
        raise ConfigurationError(f"{name} must be <= {maximum}, got {parsed}")
    return parsed


def _optional_env_float(name: str, default: float) -> float:
    """Get an optional positive float environment variable with a default."""
    value = os.environ.get(name)
    if not value:
        return default
    try:
        parsed = float(value)
    except ValueError:
        raise ConfigurationError(f"Invalid number for {name}: {value}")
    if parsed <= 0:
        raise ConfigurationError(f"{name} must be positive, got {parsed}")
    return parsed


def _optional_env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """Get an optional comma-separated list environment variable."""
    value = os.environ.get(name)
    if not value:
        return default
    items = tuple(part.strip() for part in value.split(",") if part.strip())
    if not items:
        raise ConfigurationError(f"{name} must list at least one entry")
    return items


@dataclass(frozen=True)
class CoinGeckoConfig:
    """Upstream price source configuration."""
    coin_ids: tuple[str, ...] = DEFAULT_COIN_IDS
    base_url: str = "https://api.coingecko.com/api/v3"
    vs_currency: str = "usd"
    timeout_seconds: float = 10.0
    api_key: str = ""

    @property
    def price_url(self) -> str:
        """Full URL of the simple/price endpoint."""
        return f"{self.base_url.rstrip('/')}/simple/price"


@dataclass(frozen=True)
class ScheduleConfig:
    """Tick cadences and news cache sizing."""
    market_interval_seconds: float = 30.0
    news_interval_seconds: float = 60.0
    news_batch_size: int = 3
    news_capacity: int = 20


@dataclass(frozen=True)
class WebSocketServerConfig:
    """WebSocket server configuration for client connections."""
    host: str = "0.0.0.0"
    port: int = 8765


@dataclass(frozen=True)
class RedisConfig:
    """Redis relay configuration. An empty url disables the relay."""
    url: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.url)


@dataclass(frozen=True)
class Settings:
    """Root configuration container."""
    coingecko: CoinGeckoConfig
    schedule: ScheduleConfig
    websocket_server: WebSocketServerConfig
    redis: RedisConfig
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Load all settings from environment variables."""
    coingecko = CoinGeckoConfig(
        coin_ids=_optional_env_list("COINGECKO_IDS", DEFAULT_COIN_IDS),
        base_url=_optional_env("COINGECKO_BASE_URL", "https://api.coingecko.com/api/v3"),
        vs_currency=_optional_env("COINGECKO_VS_CURRENCY", "usd").lower(),
        timeout_seconds=_optional_env_float("COINGECKO_TIMEOUT_SECONDS", 10.0),
        api_key=_optional_env("COINGECKO_API_KEY", ""),
    )

    schedule = ScheduleConfig(
        market_interval_seconds=_optional_env_float("MARKET_INTERVAL_SECONDS", 30.0),
        news_interval_seconds=_optional_env_float("NEWS_INTERVAL_SECONDS", 60.0),
        news_batch_size=_optional_env_int(
            "NEWS_BATCH_SIZE", 3, minimum=1, maximum=len(TEMPLATES)
        ),
        news_capacity=_optional_env_int("NEWS_CAPACITY", 20, minimum=1),
    )

    websocket_server = WebSocketServerConfig(
        host=_optional_env("WS_HOST", "0.0.0.0"),
        port=_optional_env_int("WS_PORT", 8765),
    )

    return Settings(
        coingecko=coingecko,
        schedule=schedule,
        websocket_server=websocket_server,
        redis=RedisConfig(url=_optional_env("REDIS_URL", "")),
        log_level=_optional_env("LOG_LEVEL", "INFO").upper(),
    )
