from models.types import Regime, ScoringConfig
from core.errors import InsufficientData


def volatility_ratio(atr_value: float, avg_range: float) -> float:
    """ATR relative to the plain average bar range of the same window."""
    if avg_range <= 0:
        raise InsufficientData("Average range is zero; volatility ratio undefined")
    return atr_value / avg_range


def classify_regime(ratio: float, config: ScoringConfig) -> Regime:
    """
    > volatile_ratio    -> VOLATILE (gaps between bars inflate ATR over the bar range)
    < compression_ratio -> COMPRESSION
    otherwise           -> RANGE
    """
    if ratio > config.volatile_ratio:
        return Regime.VOLATILE
    if ratio < config.compression_ratio:
        return Regime.COMPRESSION
    return Regime.RANGE
