"""Market data models — typed representations of CoinGecko API objects."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Candle:
    """A single OHLCV bar.

    ``time`` is milliseconds since the Unix epoch.  ``volume`` is 0.0 when
    the feed does not report it (the CoinGecko OHLC endpoint never does).
    """

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True)
class CoinSummary:
    """One row of the ``/coins/markets`` listing."""

    coin_id: str
    symbol: str
    name: str
    current_price: float
    market_cap: float
    market_cap_rank: Optional[int]
    total_volume: float
    price_change_percentage_24h: Optional[float] = None


class MarketDataError(Exception):
    """Raised when the market data feed returns a payload we cannot parse."""


# ── Timeframe metadata ───────────────────────────────────────────────────

TIMEFRAME_DAYS: dict[str, int] = {
    "1D": 1,
    "1W": 7,
    "1M": 30,
    "3M": 90,
}

DEFAULT_TIMEFRAME_DAYS = 30
