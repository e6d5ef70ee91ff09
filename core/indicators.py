import pandas as pd
import numpy as np
from typing import List, Sequence
from models.types import Candle, IndicatorSet, ScoringConfig
from core.errors import InsufficientData, ConfigurationError
from core.regime import volatility_ratio

# --- Core Math Helpers ---

def _as_array(xs: Sequence[float], name: str = "sequence") -> np.ndarray:
    arr = np.asarray(list(xs), dtype=float)
    if arr.size == 0:
        raise InsufficientData(f"{name} is empty")
    return arr

def _check_period(period: int, name: str = "period"):
    if period < 1:
        raise ConfigurationError(f"{name} must be >= 1, got {period}")

def mean(xs: Sequence[float]) -> float:
    return float(np.mean(_as_array(xs)))

def std_dev(xs: Sequence[float]) -> float:
    """Population standard deviation (ddof=0)."""
    return float(np.std(_as_array(xs)))

def z_score(value: float, xs: Sequence[float]) -> float:
    """Z-Score of value against the distribution of xs."""
    arr = _as_array(xs)
    std = float(np.std(arr))
    if std == 0:
        raise InsufficientData("Zero variance in closes; z-score undefined")
    return float((value - np.mean(arr)) / std)

def ema(xs: Sequence[float], period: int) -> float:
    """
    Exponential moving average seeded with the first value, k = 2 / (period + 1).
    Sequences shorter than `period` are accepted; the seed simply carries more weight.
    """
    _check_period(period)
    arr = _as_array(xs)
    k = 2.0 / (period + 1)
    value = arr[0]
    for x in arr[1:]:
        # Same as x*k + value*(1-k); keeps constant input exact
        value = value + k * (x - value)
    return float(value)

def trend_slope(xs: Sequence[float], lookback: int) -> float:
    """Latest value minus the value `lookback` steps earlier."""
    _check_period(lookback, "lookback")
    arr = _as_array(xs)
    if arr.size <= lookback:
        raise InsufficientData(f"trend_slope needs more than {lookback} values, got {arr.size}")
    return float(arr[-1] - arr[-1 - lookback])

def rsi(xs: Sequence[float], period: int = 14) -> float:
    """Average-gain / average-loss oscillator over the last `period` deltas."""
    _check_period(period)
    arr = _as_array(xs)
    if arr.size < 2:
        raise InsufficientData("RSI needs at least 2 values")

    deltas = np.diff(arr)[-period:]
    avg_gain = float(np.clip(deltas, 0, None).mean())
    avg_loss = float(-np.clip(deltas, None, 0).mean())

    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return float(100.0 - 100.0 / (1.0 + rs))

# --- Candle Indicators ---

def _frame(candles: Sequence[Candle]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            'high': [c.high for c in candles],
            'low': [c.low for c in candles],
            'close': [c.close for c in candles],
            'volume': [c.volume if c.volume is not None else 1.0 for c in candles],
        }
    )

def true_ranges(candles: Sequence[Candle]) -> pd.Series:
    """True range per consecutive pair; the first candle has no previous close and is dropped."""
    if len(candles) < 2:
        raise InsufficientData(f"True range needs at least 2 candles, got {len(candles)}")

    df = _frame(candles)
    df['prev_close'] = df['close'].shift(1)
    df['tr1'] = df['high'] - df['low']
    df['tr2'] = (df['high'] - df['prev_close']).abs()
    df['tr3'] = (df['low'] - df['prev_close']).abs()
    df['tr'] = df[['tr1', 'tr2', 'tr3']].max(axis=1)
    return df['tr'].iloc[1:].reset_index(drop=True)

def atr(candles: Sequence[Candle], period: int = 14) -> float:
    """Mean of the last `period` true ranges (or all available if fewer)."""
    _check_period(period)
    return float(true_ranges(candles).tail(period).mean())

def vwap(candles: Sequence[Candle]) -> float:
    if not candles:
        raise InsufficientData("VWAP needs at least 1 candle")

    df = _frame(candles)
    df['typical_price'] = (df['high'] + df['low'] + df['close']) / 3.0
    cum_vol = float(df['volume'].sum())
    if cum_vol <= 0:
        raise InsufficientData("Total volume is zero; VWAP undefined")
    return float((df['typical_price'] * df['volume']).sum() / cum_vol)

def average_range(candles: Sequence[Candle]) -> float:
    if not candles:
        raise InsufficientData("Average range needs at least 1 candle")
    return mean([c.high - c.low for c in candles])

# --- Full Calculation ---

def compute_indicators(window: List[Candle], config: ScoringConfig) -> IndicatorSet:
    """
    Compute the whole IndicatorSet for one candle window.
    The window is only read; nothing is cached between calls.
    """
    if len(window) < 2:
        raise InsufficientData(f"Indicator window needs at least 2 candles, got {len(window)}")

    closes = [c.close for c in window]
    price = closes[-1]

    atr_value = atr(window, config.atr_period)
    if atr_value == 0:
        raise InsufficientData("ATR is zero; window has no price movement")
    avg_rng = average_range(window)

    ema_fast = ema(closes, config.ema_fast)
    ema_slow = ema(closes, config.ema_slow)
    vwap_value = vwap(window)

    return IndicatorSet(
        price=price,
        prev_close=closes[-2],
        atr=atr_value,
        avg_range=avg_rng,
        volatility_ratio=volatility_ratio(atr_value, avg_rng),
        ema_fast=ema_fast,
        ema_slow=ema_slow,
        slope=ema_fast - ema_slow,
        z_score=z_score(price, closes),
        vwap=vwap_value,
        vwap_deviation=(price - vwap_value) / atr_value,
        rsi=rsi(closes, config.rsi_period),
        trend_slope=trend_slope(closes, config.trend_lookback),
    )
