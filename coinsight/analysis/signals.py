"""Trading signal synthesis — threshold rules over an indicator snapshot.

Each rule pair appends at most one signal.  Rules whose inputs are not yet
available are skipped.  No state is carried between calls.
"""

from typing import Optional

from coinsight.analysis.models import IndicatorSnapshot

RSI_OVERBOUGHT = 70.0
RSI_OVERSOLD = 30.0

# Histogram magnitudes below this are treated as zero (float round-off).
HISTOGRAM_TOLERANCE = 1e-9

OVERBOUGHT = "overbought — consider selling"
OVERSOLD = "oversold — consider buying"
BULLISH_CROSSOVER = "bullish crossover"
BEARISH_CROSSOVER = "bearish crossover"
ABOVE_UPPER_BAND = "price above upper band — potential reversal"
BELOW_LOWER_BAND = "price below lower band — potential bounce"
GOLDEN_CROSS = "golden cross — bullish"
DEATH_CROSS = "death cross — bearish"


def _rsi_signal(snapshot: IndicatorSnapshot) -> Optional[str]:
    if snapshot.rsi is None:
        return None
    if snapshot.rsi > RSI_OVERBOUGHT:
        return OVERBOUGHT
    if snapshot.rsi < RSI_OVERSOLD:
        return OVERSOLD
    return None


def _macd_signal(snapshot: IndicatorSnapshot) -> Optional[str]:
    m = snapshot.macd
    if m.macd is None or m.signal is None or m.histogram is None:
        return None
    histogram = 0.0 if abs(m.histogram) < HISTOGRAM_TOLERANCE else m.histogram
    if m.macd > m.signal and histogram > 0:
        return BULLISH_CROSSOVER
    if m.macd < m.signal and histogram < 0:
        return BEARISH_CROSSOVER
    return None


def _bollinger_signal(snapshot: IndicatorSnapshot) -> Optional[str]:
    bands = snapshot.bollinger_bands
    price = snapshot.price
    if price is None or bands.upper is None or bands.lower is None:
        return None
    if price > bands.upper:
        return ABOVE_UPPER_BAND
    if price < bands.lower:
        return BELOW_LOWER_BAND
    return None


def _moving_average_signal(snapshot: IndicatorSnapshot) -> Optional[str]:
    ma = snapshot.moving_averages
    if ma.sma20 is None or ma.sma50 is None:
        return None
    if ma.sma20 > ma.sma50:
        return GOLDEN_CROSS
    if ma.sma20 < ma.sma50:
        return DEATH_CROSS
    return None


_RULES = (_rsi_signal, _macd_signal, _bollinger_signal, _moving_average_signal)


def generate_signals(snapshot: IndicatorSnapshot) -> list[str]:
    """Evaluate every rule against *snapshot* in fixed order.

    Returns:
        Signal strings in rule order (RSI, MACD, Bollinger, moving averages).
    """
    signals: list[str] = []
    for rule in _RULES:
        signal = rule(snapshot)
        if signal is not None:
            signals.append(signal)
    return signals
