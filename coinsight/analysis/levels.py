"""Price levels — support/resistance clustering and Fibonacci levels. Pure functions."""

from collections.abc import Sequence

from coinsight.analysis.models import FibonacciLevels, SupportResistance
from coinsight.market.models import Candle

RETRACEMENT_RATIOS: tuple[float, ...] = (0.0, 0.236, 0.382, 0.5, 0.618, 0.786, 1.0)
EXTENSION_RATIOS: tuple[float, ...] = (0.0, 1.272, 1.618, 2.0, 2.618, 3.618)

DEFAULT_SENSITIVITY = 0.02


# ── Support / Resistance ─────────────────────────────────────────────────


def _find_local_highs(candles: Sequence[Candle]) -> list[float]:
    """Highs of candles whose high is strictly above both neighbours' highs."""
    return [
        candles[i].high
        for i in range(1, len(candles) - 1)
        if candles[i].high > candles[i - 1].high and candles[i].high > candles[i + 1].high
    ]


def _find_local_lows(candles: Sequence[Candle]) -> list[float]:
    """Lows of candles whose low is strictly below both neighbours' lows."""
    return [
        candles[i].low
        for i in range(1, len(candles) - 1)
        if candles[i].low < candles[i - 1].low and candles[i].low < candles[i + 1].low
    ]


def cluster_levels(
    levels: Sequence[float], sensitivity: float = DEFAULT_SENSITIVITY
) -> list[tuple[float, int]]:
    """Cluster nearby price levels.

    Levels are sorted ascending; a level joins the current cluster when its
    distance to the cluster's last member, relative to that member, is at
    most *sensitivity* (0.02 = 2 %).  Returns ``(average_price,
    touch_count)`` tuples sorted by price.
    """
    if not levels:
        return []

    sorted_levels = sorted(levels)
    clusters: list[list[float]] = []
    current_cluster: list[float] = [sorted_levels[0]]

    for level in sorted_levels[1:]:
        anchor = current_cluster[-1]
        if anchor != 0 and abs(level - anchor) / abs(anchor) <= sensitivity:
            current_cluster.append(level)
        elif anchor == 0 and level == 0:
            current_cluster.append(level)
        else:
            clusters.append(current_cluster)
            current_cluster = [level]
    clusters.append(current_cluster)

    return [(sum(c) / len(c), len(c)) for c in clusters]


def find_support_resistance(
    candles: Sequence[Candle],
    sensitivity: float = DEFAULT_SENSITIVITY,
) -> SupportResistance:
    """Detect clustered support and resistance levels from local extrema.

    Args:
        candles: Candle history, oldest-first.
        sensitivity: Relative clustering threshold (default 2 %).

    Returns:
        ``SupportResistance`` with both level lists ascending.  Fewer than
        three candles give empty lists.
    """
    resistance = [price for price, _ in cluster_levels(_find_local_highs(candles), sensitivity)]
    support = [price for price, _ in cluster_levels(_find_local_lows(candles), sensitivity)]
    return SupportResistance(support=support, resistance=resistance)


# ── Fibonacci ────────────────────────────────────────────────────────────


def fibonacci_retracements(high: float, low: float) -> list[float]:
    """Retracement levels ``high - (high - low) × ratio``, from high down to low."""
    diff = high - low
    return [high - diff * ratio for ratio in RETRACEMENT_RATIOS]


def fibonacci_extensions(high: float, low: float, anchor: float) -> list[float]:
    """Extension levels ``anchor + (high - low) × ratio``."""
    diff = high - low
    return [anchor + diff * ratio for ratio in EXTENSION_RATIOS]


def fibonacci_levels(candles: Sequence[Candle], lookback: int = 20) -> FibonacciLevels:
    """Fibonacci levels from the range of the last *lookback* candles.

    Extensions are anchored at the latest close.  An empty batch gives
    empty level lists.
    """
    if not candles:
        return FibonacciLevels()

    recent = candles[-lookback:]
    high = max(c.high for c in recent)
    low = min(c.low for c in recent)
    return FibonacciLevels(
        retracements=fibonacci_retracements(high, low),
        extensions=fibonacci_extensions(high, low, candles[-1].close),
    )
