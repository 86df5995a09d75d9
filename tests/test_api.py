"""Tests for the HTTP surface — /health, /indicators, /coins endpoints."""

from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from coinsight.api.routers import configure_routers
from coinsight.main import app
from coinsight.market.cache import CandleCache
from coinsight.market.models import Candle, CoinSummary, MarketDataError

client = TestClient(app)


# ── Helpers ──────────────────────────────────────────────────────────────


def _candle_dicts(closes: list[float]) -> list[dict]:
    return [
        {
            "time": 1_700_000_000_000 + i * 3_600_000,
            "open": c,
            "high": c + 1.0,
            "low": c - 1.0,
            "close": c,
            "volume": 10.0,
        }
        for i, c in enumerate(closes)
    ]


def _make_market_client(candles=None, coins=None):
    """Return a mock market client with canned responses."""
    market = AsyncMock()
    market.fetch_candles_with_volume.return_value = candles or []
    market.get_top_coins.return_value = coins or []
    return market


@pytest.fixture(autouse=True)
def _reset_routers():
    configure_routers(market_client=None, candle_cache=None)
    yield
    configure_routers(market_client=None, candle_cache=None)


# ── Tests ────────────────────────────────────────────────────────────────


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


class TestPostIndicators:
    def test_returns_snapshot(self):
        resp = client.post("/indicators", json={"candles": _candle_dicts([100.0] * 30)})
        assert resp.status_code == 200
        data = resp.json()
        assert data["price"] == 100.0
        assert data["rsi"] == 50.0
        assert data["moving_averages"]["sma20"] == 100.0
        assert data["moving_averages"]["sma200"] is None
        assert data["signals"] == []

    def test_short_batch_is_not_an_error(self):
        resp = client.post("/indicators", json={"candles": _candle_dicts([1.0, 2.0])})
        assert resp.status_code == 200
        assert resp.json()["rsi"] is None

    def test_unordered_candles_rejected(self):
        candles = _candle_dicts([1.0, 2.0, 3.0])
        candles[1], candles[2] = candles[2], candles[1]
        resp = client.post("/indicators", json={"candles": candles})
        assert resp.status_code == 422

    def test_duplicate_timestamps_rejected(self):
        candles = _candle_dicts([1.0, 2.0])
        candles[1]["time"] = candles[0]["time"]
        resp = client.post("/indicators", json={"candles": candles})
        assert resp.status_code == 422

    def test_invalid_payload(self):
        candles = _candle_dicts([1.0])
        del candles[0]["close"]
        resp = client.post("/indicators", json={"candles": candles})
        assert resp.status_code == 422


class TestGetIndicators:
    def test_not_configured(self):
        resp = client.get("/indicators/bitcoin")
        assert resp.status_code == 503

    def test_fetches_and_computes(self):
        candles = [Candle(**c) for c in _candle_dicts([float(v) for v in range(1, 61)])]
        market = _make_market_client(candles=candles)
        configure_routers(market_client=market)

        resp = client.get("/indicators/bitcoin", params={"timeframe": "3M"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["coin_id"] == "bitcoin"
        assert data["timeframe"] == "3M"
        assert data["candles"] == 60
        assert "golden cross — bullish" in data["snapshot"]["signals"]
        assert "moving_averages.sma200" in data["not_available"]
        market.fetch_candles_with_volume.assert_awaited_once_with("bitcoin", "3M")

    def test_vwap_uses_fetched_volume(self):
        rows = _candle_dicts([100.0] * 29 + [200.0])
        for row in rows:
            row["volume"] = 1_000.0
        rows[-1]["volume"] = 1.0
        market = _make_market_client(candles=[Candle(**c) for c in rows])
        configure_routers(market_client=market)

        resp = client.get("/indicators/bitcoin")

        assert resp.status_code == 200
        vwap = resp.json()["snapshot"]["vwap"]
        assert vwap == pytest.approx((100.0 * 29_000.0 + 200.0) / 29_001.0)
        assert vwap != pytest.approx(200.0)
        market.fetch_ohlc.assert_not_awaited()

    def test_uses_cache(self):
        candles = [Candle(**c) for c in _candle_dicts([100.0] * 30)]
        market = _make_market_client(candles=candles)
        configure_routers(market_client=market, candle_cache=CandleCache(ttl_seconds=300))

        assert client.get("/indicators/bitcoin").status_code == 200
        assert client.get("/indicators/bitcoin").status_code == 200

        assert market.fetch_candles_with_volume.await_count == 1

    def test_upstream_failure_is_502(self):
        market = _make_market_client()
        market.fetch_candles_with_volume.side_effect = httpx.ConnectError("boom")
        configure_routers(market_client=market)

        resp = client.get("/indicators/bitcoin")
        assert resp.status_code == 502

    def test_malformed_upstream_is_502(self):
        market = _make_market_client()
        market.fetch_candles_with_volume.side_effect = MarketDataError("bad row")
        configure_routers(market_client=market)

        assert client.get("/indicators/bitcoin").status_code == 502


class TestTopCoins:
    def test_not_configured(self):
        resp = client.get("/coins/top")
        assert resp.status_code == 503

    def test_lists_coins(self):
        coins = [
            CoinSummary(
                coin_id="bitcoin",
                symbol="btc",
                name="Bitcoin",
                current_price=42_650.25,
                market_cap=835e9,
                market_cap_rank=1,
                total_volume=21e9,
                price_change_percentage_24h=1.25,
            )
        ]
        market = _make_market_client(coins=coins)
        configure_routers(market_client=market)

        resp = client.get("/coins/top", params={"limit": 5})

        assert resp.status_code == 200
        row = resp.json()["coins"][0]
        assert row["id"] == "bitcoin"
        assert row["market_cap_rank"] == 1
        market.get_top_coins.assert_awaited_once_with(limit=5)

    def test_limit_validated(self):
        assert client.get("/coins/top", params={"limit": 0}).status_code == 422
