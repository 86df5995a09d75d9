"""Analytics data models — derived series bundles and the indicator snapshot."""

from dataclasses import asdict, dataclass, field
from typing import Optional


@dataclass(frozen=True)
class MACDSeries:
    """MACD line, signal line and histogram.

    ``macd`` starts at source index ``slow - 1``.  ``signal`` and
    ``histogram`` share an alignment that starts ``signal_period - 1``
    entries later.
    """

    macd: list[float]
    signal: list[float]
    histogram: list[float]


@dataclass(frozen=True)
class BollingerSeries:
    """Upper, middle and lower Bollinger bands (same alignment)."""

    upper: list[float]
    middle: list[float]
    lower: list[float]


@dataclass(frozen=True)
class StochasticSeries:
    """Stochastic %K and its %D smoothing."""

    k: list[float]
    d: list[float]


@dataclass(frozen=True)
class SupportResistance:
    """Clustered support and resistance levels, each ascending."""

    support: list[float] = field(default_factory=list)
    resistance: list[float] = field(default_factory=list)


@dataclass(frozen=True)
class FibonacciLevels:
    """Fibonacci retracement and extension price levels."""

    retracements: list[float] = field(default_factory=list)
    extensions: list[float] = field(default_factory=list)


# ── Snapshot ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class MACDValues:
    macd: Optional[float] = None
    signal: Optional[float] = None
    histogram: Optional[float] = None


@dataclass(frozen=True)
class BollingerValues:
    upper: Optional[float] = None
    middle: Optional[float] = None
    lower: Optional[float] = None


@dataclass(frozen=True)
class MovingAverages:
    sma20: Optional[float] = None
    sma50: Optional[float] = None
    sma200: Optional[float] = None
    ema12: Optional[float] = None
    ema26: Optional[float] = None


@dataclass(frozen=True)
class StochasticValues:
    k: Optional[float] = None
    d: Optional[float] = None


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Latest value of every indicator for one candle batch.

    A scalar that cannot be computed because the batch is shorter than its
    lookback window is ``None`` and should be presented as "not yet
    available".  Snapshots are rebuilt wholesale for each batch.
    """

    price: Optional[float] = None
    rsi: Optional[float] = None
    macd: MACDValues = field(default_factory=MACDValues)
    bollinger_bands: BollingerValues = field(default_factory=BollingerValues)
    moving_averages: MovingAverages = field(default_factory=MovingAverages)
    stochastic: StochasticValues = field(default_factory=StochasticValues)
    williams_r: Optional[float] = None
    atr: Optional[float] = None
    vwap: Optional[float] = None
    support_resistance: SupportResistance = field(default_factory=SupportResistance)
    fibonacci: FibonacciLevels = field(default_factory=FibonacciLevels)
    signals: list[str] = field(default_factory=list)

    @property
    def support_levels(self) -> list[float]:
        return self.support_resistance.support

    @property
    def resistance_levels(self) -> list[float]:
        return self.support_resistance.resistance

    def missing(self) -> list[str]:
        """Return dotted names of scalar fields that are not yet available."""
        names: list[str] = []
        for key, value in asdict(self).items():
            if isinstance(value, dict):
                names.extend(
                    f"{key}.{sub}"
                    for sub, sub_value in value.items()
                    if sub_value is None
                )
            elif value is None:
                names.append(key)
        return names

    def to_dict(self) -> dict:
        """JSON-ready representation."""
        return asdict(self)
