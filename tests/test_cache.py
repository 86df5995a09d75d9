"""Tests for coinsight.market.cache — TTL candle cache."""

import pytest

from coinsight.market.cache import CandleCache
from coinsight.market.models import Candle


class _FakeClock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now


def _candles(n: int = 3) -> list[Candle]:
    return [Candle(time=i, open=1, high=2, low=0.5, close=1.5) for i in range(n)]


class TestCandleCache:
    def test_hit_before_expiry(self):
        clock = _FakeClock()
        cache = CandleCache(ttl_seconds=60, clock=clock)
        cache.put("bitcoin", "1M", _candles())
        clock.now += 59
        assert cache.get("bitcoin", "1M") == _candles()

    def test_miss_after_expiry(self):
        clock = _FakeClock()
        cache = CandleCache(ttl_seconds=60, clock=clock)
        cache.put("bitcoin", "1M", _candles())
        clock.now += 60
        assert cache.get("bitcoin", "1M") is None
        assert len(cache) == 0

    def test_keys_are_normalised(self):
        cache = CandleCache(ttl_seconds=60, clock=_FakeClock())
        cache.put("Bitcoin", "1m", _candles())
        assert cache.get("bitcoin", "1M") is not None

    def test_keyed_by_timeframe(self):
        cache = CandleCache(ttl_seconds=60, clock=_FakeClock())
        cache.put("bitcoin", "1M", _candles())
        assert cache.get("bitcoin", "1W") is None

    def test_returned_batch_is_a_copy(self):
        cache = CandleCache(ttl_seconds=60, clock=_FakeClock())
        cache.put("bitcoin", "1M", _candles())
        cache.get("bitcoin", "1M").clear()
        assert len(cache.get("bitcoin", "1M")) == 3

    def test_invalidate_and_clear(self):
        cache = CandleCache(ttl_seconds=60, clock=_FakeClock())
        cache.put("bitcoin", "1M", _candles())
        cache.put("ethereum", "1M", _candles())
        assert cache.invalidate("bitcoin", "1M") is True
        assert cache.invalidate("bitcoin", "1M") is False
        cache.clear()
        assert len(cache) == 0

    def test_zero_ttl_disables_caching(self):
        cache = CandleCache(ttl_seconds=0, clock=_FakeClock())
        cache.put("bitcoin", "1M", _candles())
        assert cache.get("bitcoin", "1M") is None

    def test_negative_ttl_rejected(self):
        with pytest.raises(ValueError):
            CandleCache(ttl_seconds=-1)
