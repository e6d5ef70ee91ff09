from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Protocol, Optional, List, Mapping, Tuple

from core.errors import ConfigurationError


class CandleSupplier(Protocol):
    def get_candles(self) -> List["Candle"]:
        ...


class MarketGate(Protocol):
    def is_open(self, now_utc: datetime) -> "GateStatus":
        ...


class Regime(str, Enum):
    RANGE = "RANGE"
    COMPRESSION = "COMPRESSION"
    VOLATILE = "VOLATILE"


class Signal(str, Enum):
    CALL = "CALL"
    PUT = "PUT"
    WAIT = "WAIT"


class Confirmation(str, Enum):
    STRONG = "STRONGLY CONFIRMED – MULTI FACTOR ALIGNMENT"
    NORMAL = "NORMAL SETUP"
    LOW_EDGE = "LOW EDGE – NO TRADE"


# Factor names accepted in ScoringConfig.weights
FACTORS = ("trend", "zscore", "vwap", "rsi", "prior_close", "momentum")


@dataclass(slots=True, frozen=True)
class Candle:
    high: float
    low: float
    close: float
    volume: float = 1.0
    open: Optional[float] = None
    timestamp: Optional[int] = None  # Open time (ms), ordering is implicit

    @property
    def typical_price(self) -> float:
        return (self.high + self.low + self.close) / 3.0


@dataclass(frozen=True)
class IndicatorSet:
    price: float
    prev_close: float
    atr: float
    avg_range: float
    volatility_ratio: float
    ema_fast: float
    ema_slow: float
    slope: float
    z_score: float
    vwap: float
    vwap_deviation: float  # in ATR units
    rsi: float
    trend_slope: float


@dataclass
class ScoreState:
    bull_score: float = 0.0
    bear_score: float = 0.0
    reasons: List[str] = field(default_factory=list)

    def add_bull(self, weight: float, reason: str):
        if weight:
            self.bull_score += weight
            self.reasons.append(reason)

    def add_bear(self, weight: float, reason: str):
        if weight:
            self.bear_score += weight
            self.reasons.append(reason)

    def scale(self, multiplier: float):
        self.bull_score *= multiplier
        self.bear_score *= multiplier


@dataclass(frozen=True)
class TradeLevels:
    entry: float
    stop_loss: float
    target: float


@dataclass(frozen=True)
class Decision:
    signal: Signal
    confidence: float
    regime: Regime
    price: float
    confirmation: Confirmation
    bull_score: float = 0.0
    bear_score: float = 0.0
    reasons: Tuple[str, ...] = ()
    levels: Optional[TradeLevels] = None

    @property
    def is_trade(self) -> bool:
        return self.signal != Signal.WAIT

    def __str__(self):
        return f"{self.signal.value} | {self.regime.value} | Conf: {self.confidence:.1f} | {self.confirmation.value}"


@dataclass(frozen=True)
class GateStatus:
    open: bool
    reason: str


@dataclass(frozen=True)
class TradeLogRecord:
    timestamp: str
    signal: str
    confidence: float
    regime: str
    entry_price: float
    outcome: str = "PENDING"

    def to_row(self) -> str:
        return f"{self.timestamp},{self.signal},{self.confidence:.2f},{self.regime},{self.entry_price},{self.outcome}"


@dataclass(frozen=True)
class ScoringConfig:
    """
    Every weight, period and threshold the scoring engine uses.
    Variant behaviours are presets of this value (see config.settings.SCORING_PRESETS).
    """
    weights: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({
        "trend": 25.0,
        "zscore": 20.0,
        "vwap": 15.0,
        "rsi": 20.0,
        "prior_close": 20.0,
        "momentum": 0.0,
    }))

    # Lookbacks
    window: int = 20
    ema_fast: int = 5
    ema_slow: int = 15
    atr_period: int = 14
    rsi_period: int = 14
    trend_lookback: int = 5
    level_lookback: int = 3

    # Factor thresholds
    zscore_threshold: float = 0.8
    vwap_atr_threshold: float = 0.5
    rsi_bull: float = 55.0
    rsi_bear: float = 45.0

    # Regime
    volatile_ratio: float = 1.2
    compression_ratio: float = 0.8
    volatile_multiplier: float = 1.1

    # Decision edges
    signal_edge: float = 55.0
    min_edge: float = 50.0
    strong_confirmation: float = 75.0

    # Levels
    risk_reward: float = 1.5
    include_levels: bool = True

    def __post_init__(self):
        # Freeze a caller-supplied dict so the config stays immutable
        if not isinstance(self.weights, MappingProxyType):
            object.__setattr__(self, "weights", MappingProxyType(dict(self.weights)))

    @property
    def min_lookback(self) -> int:
        return self.window

    def weight(self, factor: str) -> float:
        return float(self.weights.get(factor, 0.0))

    def validate(self) -> "ScoringConfig":
        unknown = set(self.weights) - set(FACTORS)
        if unknown:
            raise ConfigurationError(f"Unknown scoring factors: {sorted(unknown)}")
        for name, w in self.weights.items():
            if w < 0:
                raise ConfigurationError(f"Weight for '{name}' must be non-negative, got {w}")

        for name in ("ema_fast", "ema_slow", "atr_period", "rsi_period", "trend_lookback", "level_lookback"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be >= 1, got {getattr(self, name)}")
        if self.window < 2:
            raise ConfigurationError(f"window must be >= 2, got {self.window}")
        if self.trend_lookback >= self.window:
            raise ConfigurationError("trend_lookback must be shorter than window")
        if self.level_lookback > self.window:
            raise ConfigurationError("level_lookback cannot exceed window")

        if self.zscore_threshold < 0 or self.vwap_atr_threshold < 0:
            raise ConfigurationError("Factor thresholds must be non-negative")
        if not 0 <= self.rsi_bear <= self.rsi_bull <= 100:
            raise ConfigurationError("RSI thresholds must satisfy 0 <= rsi_bear <= rsi_bull <= 100")
        if not 0 < self.compression_ratio <= self.volatile_ratio:
            raise ConfigurationError("Regime thresholds must satisfy 0 < compression_ratio <= volatile_ratio")
        if self.volatile_multiplier <= 0:
            raise ConfigurationError("volatile_multiplier must be positive")
        for name in ("signal_edge", "min_edge", "strong_confirmation"):
            if not 0 <= getattr(self, name) <= 100:
                raise ConfigurationError(f"{name} must lie within [0, 100]")
        if self.risk_reward <= 0:
            raise ConfigurationError(f"risk_reward must be positive, got {self.risk_reward}")
        return self
