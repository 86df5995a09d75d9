"""Indicator aggregation — one snapshot per candle batch.

Runs every calculator over the batch, keeps the latest value of each
derived series and attaches the synthesized signals.  Batches that are too
short for a given lookback leave that field as ``None``; nothing here
raises for short history.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace

from coinsight.analysis import indicators
from coinsight.analysis.levels import fibonacci_levels, find_support_resistance
from coinsight.analysis.models import (
    BollingerValues,
    IndicatorSnapshot,
    MACDValues,
    MovingAverages,
    StochasticValues,
)
from coinsight.analysis.series import ema, last, sma
from coinsight.analysis.signals import generate_signals
from coinsight.market.models import Candle

logger = logging.getLogger("coinsight")

FIBONACCI_LOOKBACK = 20


def compute_indicators(candles: Sequence[Candle]) -> IndicatorSnapshot:
    """Compute a fresh ``IndicatorSnapshot`` for *candles* (oldest-first)."""
    closes = [c.close for c in candles]

    macd = indicators.macd(closes)
    bands = indicators.bollinger_bands(closes)
    stoch = indicators.stochastic(candles)

    snapshot = IndicatorSnapshot(
        price=last(closes),
        rsi=last(indicators.rsi(closes)),
        macd=MACDValues(
            macd=last(macd.macd),
            signal=last(macd.signal),
            histogram=last(macd.histogram),
        ),
        bollinger_bands=BollingerValues(
            upper=last(bands.upper),
            middle=last(bands.middle),
            lower=last(bands.lower),
        ),
        moving_averages=MovingAverages(
            sma20=last(sma(closes, 20)),
            sma50=last(sma(closes, 50)),
            sma200=last(sma(closes, 200)),
            ema12=last(ema(closes, 12)),
            ema26=last(ema(closes, 26)),
        ),
        stochastic=StochasticValues(k=last(stoch.k), d=last(stoch.d)),
        williams_r=last(indicators.williams_r(candles)),
        atr=last(indicators.atr(candles)),
        vwap=last(indicators.vwap(candles)),
        support_resistance=find_support_resistance(candles),
        fibonacci=fibonacci_levels(candles, lookback=FIBONACCI_LOOKBACK),
    )

    missing = snapshot.missing()
    if missing:
        logger.debug(
            "Insufficient history (%d candles) for: %s",
            len(candles), ", ".join(missing),
        )

    return replace(snapshot, signals=generate_signals(snapshot))
