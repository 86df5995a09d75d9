"""CoinGecko REST API async client.

Fetches OHLC candles, volume history and market listings.  Read-only:
there is no exchange connectivity here.
"""

import asyncio
import bisect
import logging
from typing import Optional

import httpx

from coinsight.config import Config
from coinsight.market.models import (
    DEFAULT_TIMEFRAME_DAYS,
    TIMEFRAME_DAYS,
    Candle,
    CoinSummary,
    MarketDataError,
)

logger = logging.getLogger("coinsight")

# Retry settings
_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 2.0  # seconds; doubles each attempt
_RETRYABLE_STATUS_CODES = {502, 503, 504, 429}


def timeframe_to_days(timeframe: str) -> int:
    """Map a chart timeframe (``"1D"``, ``"1W"``, ``"1M"``, ``"3M"``) to days."""
    return TIMEFRAME_DAYS.get(timeframe.upper(), DEFAULT_TIMEFRAME_DAYS)


def parse_ohlc_rows(rows: list) -> list[Candle]:
    """Convert ``[time, open, high, low, close]`` rows into candles.

    Rows are returned oldest-first with duplicate timestamps dropped (the
    last row for a timestamp wins).
    """
    by_time: dict[int, Candle] = {}
    for row in rows:
        try:
            time, open_, high, low, close = row[:5]
            candle = Candle(
                time=int(time),
                open=float(open_),
                high=float(high),
                low=float(low),
                close=float(close),
            )
        except (TypeError, ValueError) as exc:
            raise MarketDataError(f"Malformed OHLC row: {row!r}") from exc
        by_time[candle.time] = candle
    return [by_time[t] for t in sorted(by_time)]


def attach_volumes(
    candles: list[Candle], volumes: list[tuple[int, float]]
) -> list[Candle]:
    """Give each candle the latest volume sample at or before its time.

    Candles older than the first sample keep their volume.
    """
    if not volumes:
        return list(candles)

    samples = sorted(volumes)
    times = [t for t, _ in samples]
    result: list[Candle] = []
    for candle in candles:
        idx = bisect.bisect_right(times, candle.time) - 1
        if idx < 0:
            result.append(candle)
            continue
        result.append(
            Candle(
                time=candle.time,
                open=candle.open,
                high=candle.high,
                low=candle.low,
                close=candle.close,
                volume=samples[idx][1],
            )
        )
    return result


class CoinGeckoClient:
    """Async client wrapping the CoinGecko v3 public REST API."""

    def __init__(self, config: Config) -> None:
        self._config = config
        self._base_url = config.coingecko_base_url
        self._headers = config.request_headers
        self._timeout = config.request_timeout_seconds

    # ── Retry helper ─────────────────────────────────────────────────────

    async def _get_with_retry(self, url: str, params: dict) -> httpx.Response:
        """GET with exponential-backoff retry.

        Retries on transient server errors (502, 503, 504) and rate-limits
        (429).  Non-retryable errors are raised immediately.  The last failed
        attempt raises without a further backoff sleep.
        """
        last_exc: Optional[Exception] = None

        for attempt in range(_MAX_RETRIES):
            try:
                async with httpx.AsyncClient() as client:
                    resp = await client.get(
                        url,
                        headers=self._headers,
                        params=params,
                        timeout=self._timeout,
                    )

                if resp.status_code in _RETRYABLE_STATUS_CODES:
                    delay = _RETRY_BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        "CoinGecko GET %s returned %d, retry %d/%d in %.1fs",
                        url, resp.status_code, attempt + 1, _MAX_RETRIES, delay,
                    )
                    last_exc = httpx.HTTPStatusError(
                        f"Server error '{resp.status_code}'",
                        request=resp.request,
                        response=resp,
                    )
                    if attempt < _MAX_RETRIES - 1:
                        await asyncio.sleep(delay)
                    continue

                resp.raise_for_status()
                return resp

            except httpx.TransportError as exc:
                delay = _RETRY_BASE_DELAY * (2 ** attempt)
                logger.warning(
                    "CoinGecko GET %s transport error (%s), retry %d/%d in %.1fs",
                    url, exc, attempt + 1, _MAX_RETRIES, delay,
                )
                last_exc = exc
                if attempt < _MAX_RETRIES - 1:
                    await asyncio.sleep(delay)

        raise last_exc  # type: ignore[misc]

    # ── Candles ──────────────────────────────────────────────────────────

    async def fetch_ohlc(self, coin_id: str, timeframe: str = "1M") -> list[Candle]:
        """Fetch OHLC candles for *coin_id*.

        Args:
            coin_id: CoinGecko coin id, e.g. ``"bitcoin"``.
            timeframe: ``"1D"``, ``"1W"``, ``"1M"`` or ``"3M"``; anything
                else falls back to 30 days.

        Returns:
            Candles ordered oldest-first.  Volume is 0.0; use
            ``fetch_candles_with_volume`` when VWAP matters.
        """
        url = f"{self._base_url}/coins/{coin_id}/ohlc"
        params = {
            "vs_currency": self._config.vs_currency,
            "days": timeframe_to_days(timeframe),
        }
        resp = await self._get_with_retry(url, params)
        data = resp.json()
        if not isinstance(data, list):
            raise MarketDataError(f"Unexpected OHLC payload for {coin_id}: {data!r}")
        return parse_ohlc_rows(data)

    async def fetch_market_chart(self, coin_id: str, days: int) -> list[tuple[int, float]]:
        """Fetch ``(time_ms, volume)`` samples from ``/market_chart``."""
        url = f"{self._base_url}/coins/{coin_id}/market_chart"
        params = {"vs_currency": self._config.vs_currency, "days": days}
        resp = await self._get_with_retry(url, params)
        try:
            return [
                (int(t), float(v)) for t, v in resp.json()["total_volumes"]
            ]
        except (KeyError, TypeError, ValueError) as exc:
            raise MarketDataError(
                f"Unexpected market_chart payload for {coin_id}"
            ) from exc

    async def fetch_candles_with_volume(
        self, coin_id: str, timeframe: str = "1M"
    ) -> list[Candle]:
        """OHLC candles with volume attached from the market chart."""
        candles = await self.fetch_ohlc(coin_id, timeframe)
        volumes = await self.fetch_market_chart(coin_id, timeframe_to_days(timeframe))
        return attach_volumes(candles, volumes)

    # ── Listings ─────────────────────────────────────────────────────────

    async def get_top_coins(self, limit: int = 100) -> list[CoinSummary]:
        """Top coins by market cap (max 250 per page)."""
        url = f"{self._base_url}/coins/markets"
        params = {
            "vs_currency": self._config.vs_currency,
            "order": "market_cap_desc",
            "per_page": limit,
            "page": 1,
            "sparkline": "false",
        }
        resp = await self._get_with_retry(url, params)

        coins: list[CoinSummary] = []
        for c in resp.json():
            try:
                coins.append(
                    CoinSummary(
                        coin_id=c["id"],
                        symbol=c["symbol"],
                        name=c["name"],
                        current_price=float(c["current_price"] or 0.0),
                        market_cap=float(c["market_cap"] or 0.0),
                        market_cap_rank=c.get("market_cap_rank"),
                        total_volume=float(c["total_volume"] or 0.0),
                        price_change_percentage_24h=c.get("price_change_percentage_24h"),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise MarketDataError(f"Malformed market row: {c!r}") from exc
        return coins
