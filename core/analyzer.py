from typing import List, Optional, Sequence
from models.types import (
    Candle,
    Confirmation,
    Decision,
    IndicatorSet,
    Regime,
    ScoreState,
    ScoringConfig,
    Signal,
)
from config.settings import CANONICAL_CONFIG
from core.errors import InsufficientData
from core.indicators import compute_indicators
from core.levels import calculate_levels, recent_structure
from core.regime import classify_regime
from utils.logger import setup_logger

logger = setup_logger("Analyzer")


class Analyzer:
    """
    Regime-aware weighted-vote engine:
    - Independent factor checks push fixed weights into bull / bear accumulators
    - VOLATILE regime amplifies both accumulators
    - Confidence is the clamped gap between them; low edge always means WAIT

    Holds no state besides its config.
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = (config or CANONICAL_CONFIG).validate()

    # ------------------------------------------------------------------
    # Public entry
    # ------------------------------------------------------------------
    def analyze(self, candles: Sequence[Candle]) -> Decision:
        cfg = self.config
        if len(candles) < cfg.min_lookback:
            raise InsufficientData(
                f"Need at least {cfg.min_lookback} candles, got {len(candles)}"
            )

        window: List[Candle] = list(candles[-cfg.window:])
        indicators = compute_indicators(window, cfg)
        regime = classify_regime(indicators.volatility_ratio, cfg)

        scores = self.score(indicators, regime)
        decision = self.decide(scores, regime, indicators.price, window)

        logger.debug(
            f"atr={indicators.atr:.4f} ratio={indicators.volatility_ratio:.3f} slope={indicators.slope:.4f} "
            f"z={indicators.z_score:.3f} vwapDev={indicators.vwap_deviation:.3f} rsi={indicators.rsi:.1f} "
            f"bull={scores.bull_score:.2f} bear={scores.bear_score:.2f}"
        )
        logger.info(f"Decision: {decision}")
        return decision

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------
    def score(self, ind: IndicatorSet, regime: Regime) -> ScoreState:
        cfg = self.config
        state = ScoreState()

        # Trend: EMA spread
        w = cfg.weight("trend")
        if ind.slope > 0:
            state.add_bull(w, "EMA fast above slow")
        elif ind.slope < 0:
            state.add_bear(w, "EMA fast below slow")

        # Dispersion
        w = cfg.weight("zscore")
        if ind.z_score > cfg.zscore_threshold:
            state.add_bull(w, f"Z-score {ind.z_score:.2f} stretched up")
        elif ind.z_score < -cfg.zscore_threshold:
            state.add_bear(w, f"Z-score {ind.z_score:.2f} stretched down")

        # Distance from VWAP in ATR units
        w = cfg.weight("vwap")
        if ind.vwap_deviation > cfg.vwap_atr_threshold:
            state.add_bull(w, "Price above VWAP")
        elif ind.vwap_deviation < -cfg.vwap_atr_threshold:
            state.add_bear(w, "Price below VWAP")

        w = cfg.weight("rsi")
        if ind.rsi > cfg.rsi_bull:
            state.add_bull(w, f"RSI {ind.rsi:.1f} bullish")
        elif ind.rsi < cfg.rsi_bear:
            state.add_bear(w, f"RSI {ind.rsi:.1f} bearish")

        w = cfg.weight("prior_close")
        if ind.price > ind.prev_close:
            state.add_bull(w, "Close above prior close")
        elif ind.price < ind.prev_close:
            state.add_bear(w, "Close below prior close")

        w = cfg.weight("momentum")
        if ind.trend_slope > 0:
            state.add_bull(w, f"{cfg.trend_lookback}-bar momentum up")
        elif ind.trend_slope < 0:
            state.add_bear(w, f"{cfg.trend_lookback}-bar momentum down")

        if regime == Regime.VOLATILE:
            state.scale(cfg.volatile_multiplier)

        return state

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------
    def decide(
        self,
        scores: ScoreState,
        regime: Regime,
        price: float,
        window: Optional[Sequence[Candle]] = None,
    ) -> Decision:
        cfg = self.config
        bull, bear = scores.bull_score, scores.bear_score
        confidence = min(abs(bull - bear), 100.0)

        signal = Signal.WAIT
        if bull > bear and confidence > cfg.signal_edge:
            signal = Signal.CALL
        elif bear > bull and confidence > cfg.signal_edge:
            signal = Signal.PUT

        confirmation = Confirmation.NORMAL
        if confidence >= cfg.strong_confirmation:
            confirmation = Confirmation.STRONG
        if confidence < cfg.min_edge:
            signal = Signal.WAIT
            confirmation = Confirmation.LOW_EDGE

        levels = None
        if cfg.include_levels and signal != Signal.WAIT and window:
            recent_high, recent_low = recent_structure(window, cfg.level_lookback)
            levels = calculate_levels(signal, recent_high, recent_low, cfg.risk_reward)

        return Decision(
            signal=signal,
            confidence=confidence,
            regime=regime,
            price=price,
            confirmation=confirmation,
            bull_score=bull,
            bear_score=bear,
            reasons=tuple(scores.reasons),
            levels=levels,
        )


def evaluate(candles: Sequence[Candle], config: Optional[ScoringConfig] = None) -> Decision:
    """Single pure call: candle window in, Decision out."""
    return Analyzer(config).analyze(candles)
