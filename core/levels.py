from typing import Optional, Sequence, Tuple
from models.types import Candle, Signal, TradeLevels
from core.errors import ConfigurationError, InsufficientData


def recent_structure(candles: Sequence[Candle], lookback: int = 3) -> Tuple[float, float]:
    """(highest high, lowest low) of the last `lookback` candles."""
    if lookback < 1:
        raise ConfigurationError(f"lookback must be >= 1, got {lookback}")
    if not candles:
        raise InsufficientData("No candles to derive recent structure from")
    tail = candles[-lookback:]
    return max(c.high for c in tail), min(c.low for c in tail)


def calculate_levels(
    signal: Signal,
    recent_high: float,
    recent_low: float,
    risk_reward: float = 1.5,
) -> Optional[TradeLevels]:
    """
    CALL: breakout above the recent high, stop under the recent low.
    PUT:  breakdown below the recent low, stop over the recent high.
    WAIT: no levels.
    """
    if risk_reward <= 0:
        raise ConfigurationError(f"risk_reward must be positive, got {risk_reward}")
    if recent_high < recent_low:
        raise InsufficientData(f"recent_high {recent_high} is below recent_low {recent_low}")

    if signal == Signal.CALL:
        entry, stop = recent_high, recent_low
        return TradeLevels(entry=entry, stop_loss=stop, target=entry + (entry - stop) * risk_reward)
    if signal == Signal.PUT:
        entry, stop = recent_low, recent_high
        return TradeLevels(entry=entry, stop_loss=stop, target=entry - (stop - entry) * risk_reward)
    return None
