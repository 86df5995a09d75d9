"""CoinSight — application configuration.

Loads .env variables into a typed config object.
Every variable is optional; malformed numeric values fail on startup.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    coingecko_base_url: str
    coingecko_api_key: Optional[str]
    vs_currency: str
    candle_cache_ttl_seconds: float
    request_timeout_seconds: float
    log_level: str
    api_port: int

    @property
    def request_headers(self) -> dict[str, str]:
        """Headers sent with every CoinGecko request."""
        headers = {"Accept": "application/json"}
        if self.coingecko_api_key:
            headers["x-cg-demo-api-key"] = self.coingecko_api_key
        return headers


def _parse(name: str, default: str, cast):
    raw = os.environ.get(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(
            f"Invalid value for environment variable {name}: {raw!r}"
        ) from None


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` naming the variable when a numeric value cannot
    be parsed.
    """
    load_dotenv(dotenv_path=env_path)

    return Config(
        coingecko_base_url=os.environ.get(
            "COINGECKO_BASE_URL", "https://api.coingecko.com/api/v3"
        ).rstrip("/"),
        coingecko_api_key=os.environ.get("COINGECKO_API_KEY") or None,
        vs_currency=os.environ.get("VS_CURRENCY", "usd"),
        candle_cache_ttl_seconds=_parse("CANDLE_CACHE_TTL_SECONDS", "60", float),
        request_timeout_seconds=_parse("REQUEST_TIMEOUT_SECONDS", "30", float),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        api_port=_parse("API_PORT", "8080", int),
    )
