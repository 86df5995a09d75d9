"""Technical indicators — RSI, MACD, Bollinger, Stochastic, Williams %R, ATR, VWAP.

Pure functions, no I/O.  Windowed indicators return compact series aligned
to the last candle of each window (see ``coinsight.analysis.series``).
Too little history yields an empty series, never an exception.
"""

from collections.abc import Sequence

from coinsight.analysis.models import BollingerSeries, MACDSeries, StochasticSeries
from coinsight.analysis.series import check_period, ema, sma, stddev
from coinsight.market.models import Candle


# ── RSI ──────────────────────────────────────────────────────────────────


def _rsi_from_avgs(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        # No losses: pure uptrend reads 100, a flat market reads neutral.
        return 100.0 if avg_gain > 0 else 50.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi(closes: Sequence[float], period: int = 14) -> list[float]:
    """Calculate Wilder's Relative Strength Index.

    Algorithm (Wilder-smoothed):
        1. delta = close[i] - close[i-1]
        2. Separate gains (positive) and losses (|negative|).
        3. Seed average gain/loss = SMA of first *period* deltas.
        4. Subsequent: avg = (prev_avg × (period-1) + current) / period
        5. RSI = 100 - 100 / (1 + avg_gain / avg_loss)

    Each value needs ``period + 1`` closes, so the result has
    ``len(closes) - period`` entries; index 0 lines up with source index
    *period*.  When the average loss is zero the RSI is 100, or 50 if the
    average gain is zero as well.
    """
    check_period(period)
    if len(closes) < period + 1:
        return []

    deltas = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    gains = [max(d, 0.0) for d in deltas]
    losses = [abs(min(d, 0.0)) for d in deltas]

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    result = [_rsi_from_avgs(avg_gain, avg_loss)]

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        result.append(_rsi_from_avgs(avg_gain, avg_loss))

    return result


# ── MACD ─────────────────────────────────────────────────────────────────


def macd(
    closes: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MACDSeries:
    """Moving Average Convergence Divergence.

    MACD line = EMA(fast) - EMA(slow), defined from source index
    ``max(fast, slow) - 1``.  The signal line is EMA(*signal_period*) of the
    MACD line and ``histogram[i] = macd[i + signal_period - 1] - signal[i]``.
    """
    fast = ema(closes, fast_period)
    slow = ema(closes, slow_period)
    if not fast or not slow:
        return MACDSeries(macd=[], signal=[], histogram=[])

    # Both EMAs end on the last close; trim the longer one from the front.
    length = min(len(fast), len(slow))
    fast = fast[len(fast) - length :]
    slow = slow[len(slow) - length :]
    macd_line = [f - s for f, s in zip(fast, slow)]

    signal_line = ema(macd_line, signal_period)
    offset = signal_period - 1
    histogram = [macd_line[i + offset] - sig for i, sig in enumerate(signal_line)]

    return MACDSeries(macd=macd_line, signal=signal_line, histogram=histogram)


# ── Bollinger Bands ──────────────────────────────────────────────────────


def bollinger_bands(
    closes: Sequence[float],
    period: int = 20,
    multiplier: float = 2.0,
) -> BollingerSeries:
    """Calculate Bollinger Bands.

    Middle = SMA(close, *period*)
    Upper  = middle + *multiplier* × σ
    Lower  = middle − *multiplier* × σ

    σ is the population standard deviation of the same trailing window.
    """
    middle = sma(closes, period)
    upper: list[float] = []
    lower: list[float] = []

    for j, mean in enumerate(middle):
        window = closes[j : j + period]
        sigma = stddev(window)
        upper.append(mean + multiplier * sigma)
        lower.append(mean - multiplier * sigma)

    return BollingerSeries(upper=upper, middle=middle, lower=lower)


# ── Range oscillators ────────────────────────────────────────────────────


def _window_extremes(candles: Sequence[Candle], end: int, period: int) -> tuple[float, float]:
    window = candles[end - period + 1 : end + 1]
    return max(c.high for c in window), min(c.low for c in window)


def stochastic(
    candles: Sequence[Candle],
    k_period: int = 14,
    d_period: int = 3,
) -> StochasticSeries:
    """Stochastic Oscillator.

    %K = (close - lowest low) / (highest high - lowest low) × 100 over the
    trailing *k_period* candles; %D = SMA(*d_period*) of %K.  A window with
    zero range reads 50.
    """
    check_period(k_period)
    k_values: list[float] = []

    for i in range(k_period - 1, len(candles)):
        highest_high, lowest_low = _window_extremes(candles, i, k_period)
        if highest_high == lowest_low:
            k_values.append(50.0)
        else:
            k_values.append(
                (candles[i].close - lowest_low) / (highest_high - lowest_low) * 100
            )

    return StochasticSeries(k=k_values, d=sma(k_values, d_period))


def williams_r(candles: Sequence[Candle], period: int = 14) -> list[float]:
    """Williams %R in [-100, 0].  A window with zero range reads -50."""
    check_period(period)
    result: list[float] = []

    for i in range(period - 1, len(candles)):
        highest_high, lowest_low = _window_extremes(candles, i, period)
        if highest_high == lowest_low:
            result.append(-50.0)
        else:
            result.append(
                (highest_high - candles[i].close) / (highest_high - lowest_low) * -100
            )

    return result


# ── Volatility / volume ──────────────────────────────────────────────────


def true_ranges(candles: Sequence[Candle]) -> list[float]:
    """True range of every candle after the first.

        TR = max(high - low, |high - prev_close|, |low - prev_close|)
    """
    result: list[float] = []
    for i in range(1, len(candles)):
        high = candles[i].high
        low = candles[i].low
        prev_close = candles[i - 1].close
        result.append(max(high - low, abs(high - prev_close), abs(low - prev_close)))
    return result


def atr(candles: Sequence[Candle], period: int = 14) -> list[float]:
    """Average True Range: SMA(*period*) of the true-range series.

    Needs ``period + 1`` candles; index 0 lines up with source index
    *period*.
    """
    return sma(true_ranges(candles), period)


def vwap(candles: Sequence[Candle]) -> list[float]:
    """Running Volume Weighted Average Price, one value per candle.

    Typical price = (high + low + close) / 3.  Until any volume has been
    seen the value falls back to the candle's typical price.
    """
    result: list[float] = []
    cumulative_tpv = 0.0
    cumulative_volume = 0.0

    for candle in candles:
        typical = (candle.high + candle.low + candle.close) / 3
        cumulative_tpv += typical * candle.volume
        cumulative_volume += candle.volume
        if cumulative_volume == 0:
            result.append(typical)
        else:
            result.append(cumulative_tpv / cumulative_volume)

    return result
