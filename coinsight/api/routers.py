"""Internal API routers — /indicators and /coins endpoints.

No analytics here.  Delegates to the aggregator, the market client and the
candle cache, which are injected with ``configure_routers``.
"""

import logging

import httpx
from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from coinsight.analysis.aggregator import compute_indicators
from coinsight.market.models import Candle, MarketDataError

logger = logging.getLogger("coinsight")
router = APIRouter()

# ── Shared state (set during app startup) ────────────────────────────────

_market_client = None  # Set via configure_routers()
_candle_cache = None   # Set via configure_routers()


def configure_routers(market_client=None, candle_cache=None) -> None:
    """Inject dependencies from the application startup.

    Args:
        market_client: A ``CoinGeckoClient`` instance (or duck-type for tests).
        candle_cache: A ``CandleCache`` instance; ``None`` disables caching.
    """
    global _market_client, _candle_cache  # noqa: PLW0603
    _market_client = market_client
    _candle_cache = candle_cache


# ── Request bodies ───────────────────────────────────────────────────────


class CandleIn(BaseModel):
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = Field(default=0.0, ge=0)


class CandleBatch(BaseModel):
    candles: list[CandleIn]


def _to_candles(batch: CandleBatch) -> list[Candle]:
    candles = [Candle(**c.model_dump()) for c in batch.candles]
    for prev, cur in zip(candles, candles[1:]):
        if cur.time <= prev.time:
            raise HTTPException(
                status_code=422,
                detail=f"Candles must be strictly ascending by time (at {cur.time})",
            )
    return candles


async def _load_candles(coin_id: str, timeframe: str) -> list[Candle]:
    if _candle_cache is not None:
        cached = _candle_cache.get(coin_id, timeframe)
        if cached is not None:
            return cached

    try:
        candles = await _market_client.fetch_candles_with_volume(coin_id, timeframe)
    except (httpx.HTTPError, MarketDataError) as exc:
        logger.error("Candle fetch failed for %s/%s: %s", coin_id, timeframe, exc)
        raise HTTPException(
            status_code=502, detail=f"Market data unavailable for {coin_id}"
        ) from exc

    if _candle_cache is not None:
        _candle_cache.put(coin_id, timeframe, candles)
    return candles


# ── Endpoints ────────────────────────────────────────────────────────────


@router.post("/indicators")
async def post_indicators(batch: CandleBatch):
    """Compute an indicator snapshot for a caller-supplied candle batch."""
    snapshot = compute_indicators(_to_candles(batch))
    return snapshot.to_dict()


@router.get("/indicators/{coin_id}")
async def get_indicators(
    coin_id: str,
    timeframe: str = Query(default="1M"),
):
    """Fetch candles for *coin_id* and return its indicator snapshot."""
    if _market_client is None:
        raise HTTPException(status_code=503, detail="Market data client not configured")

    candles = await _load_candles(coin_id, timeframe)
    snapshot = compute_indicators(candles)
    return {
        "coin_id": coin_id,
        "timeframe": timeframe,
        "candles": len(candles),
        "snapshot": snapshot.to_dict(),
        "not_available": snapshot.missing(),
    }


@router.get("/coins/top")
async def get_top_coins(limit: int = Query(default=20, ge=1, le=250)):
    """Return the top coins by market cap."""
    if _market_client is None:
        raise HTTPException(status_code=503, detail="Market data client not configured")
    try:
        coins = await _market_client.get_top_coins(limit=limit)
    except (httpx.HTTPError, MarketDataError) as exc:
        logger.error("Top coins fetch failed: %s", exc)
        raise HTTPException(status_code=502, detail="Market data unavailable") from exc
    return {
        "coins": [
            {
                "id": c.coin_id,
                "symbol": c.symbol,
                "name": c.name,
                "current_price": c.current_price,
                "market_cap": c.market_cap,
                "market_cap_rank": c.market_cap_rank,
                "total_volume": c.total_volume,
                "price_change_percentage_24h": c.price_change_percentage_24h,
            }
            for c in coins
        ]
    }

