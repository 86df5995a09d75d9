"""Series transform primitives — SMA, EMA, population standard deviation.

Every windowed transform returns a compact series: for an input of length
``N`` and a window of ``w`` values the output has ``N - w + 1`` entries and
index 0 lines up with source index ``w - 1``.  Inputs shorter than the
window produce an empty list rather than an error.
"""

import math
from collections.abc import Sequence


def check_period(period: int) -> None:
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")


def sma(values: Sequence[float], period: int) -> list[float]:
    """Simple Moving Average over trailing *period* values.

    Returns an empty list when ``len(values) < period``.
    """
    check_period(period)
    if len(values) < period:
        return []

    return [
        sum(values[i - period + 1 : i + 1]) / period
        for i in range(period - 1, len(values))
    ]


def ema(values: Sequence[float], period: int) -> list[float]:
    """Exponential Moving Average.

    Seeded with the SMA of the first *period* values, placed at source
    index 0.  The recurrence then runs from source index 1 with
    ``k = 2 / (period + 1)``:

        ``ema[i] = value[i] × k + ema[i-1] × (1 - k)``

    The warm-up entries before source index ``period - 1`` are dropped, so
    the returned series shares SMA's alignment.

    Returns an empty list when ``len(values) < period``.
    """
    check_period(period)
    if len(values) < period:
        return []

    k = 2.0 / (period + 1)
    prev = sum(values[:period]) / period
    result: list[float] = [prev] if period == 1 else []
    for i in range(1, len(values)):
        prev = values[i] * k + prev * (1 - k)
        if i >= period - 1:
            result.append(prev)
    return result


def stddev(values: Sequence[float]) -> float:
    """Population standard deviation (divides by N, not N-1)."""
    if not values:
        raise ValueError("stddev of an empty sequence is undefined")
    mean = sum(values) / len(values)
    variance = sum((x - mean) ** 2 for x in values) / len(values)
    return math.sqrt(variance)


def last(values: Sequence[float]):
    """Return the final element of *values*, or ``None`` when empty."""
    return values[-1] if values else None
