"""Candle batch cache with a time-to-live.

An explicit object handed to whoever needs it; there is no module-level
instance.
"""

import time
from typing import Callable, Optional

from coinsight.market.models import Candle


class CandleCache:
    """Caches candle batches keyed by ``(coin_id, timeframe)``.

    Args:
        ttl_seconds: Lifetime of an entry.  ``0`` disables caching.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {ttl_seconds}")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[str, str], tuple[float, list[Candle]]] = {}

    @staticmethod
    def _key(coin_id: str, timeframe: str) -> tuple[str, str]:
        return coin_id.lower(), timeframe.upper()

    def get(self, coin_id: str, timeframe: str) -> Optional[list[Candle]]:
        """Return the cached batch, or ``None`` if absent or expired."""
        key = self._key(coin_id, timeframe)
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, candles = entry
        if self._clock() - stored_at >= self._ttl:
            del self._entries[key]
            return None
        return list(candles)

    def put(self, coin_id: str, timeframe: str, candles: list[Candle]) -> None:
        self._entries[self._key(coin_id, timeframe)] = (self._clock(), list(candles))

    def invalidate(self, coin_id: str, timeframe: str) -> bool:
        """Drop one entry.  Returns ``True`` if it existed."""
        return self._entries.pop(self._key(coin_id, timeframe), None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
