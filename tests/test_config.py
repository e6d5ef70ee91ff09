import dataclasses
import pytest
from config.settings import (
    CANONICAL_CONFIG,
    SCORING_PRESETS,
    SCORING_WEIGHTS,
    get_scoring_config,
)
from core.errors import ConfigurationError
from models.types import FACTORS, ScoringConfig


def test_canonical_defaults():
    cfg = CANONICAL_CONFIG
    assert dict(cfg.weights) == SCORING_WEIGHTS
    assert cfg.min_lookback == 20
    assert (cfg.signal_edge, cfg.min_edge, cfg.strong_confirmation) == (55.0, 50.0, 75.0)
    assert (cfg.volatile_ratio, cfg.compression_ratio, cfg.volatile_multiplier) == (1.2, 0.8, 1.1)
    assert (cfg.zscore_threshold, cfg.vwap_atr_threshold) == (0.8, 0.5)
    assert cfg.risk_reward == 1.5


@pytest.mark.parametrize("name", list(SCORING_PRESETS))
def test_presets_are_valid(name):
    cfg = get_scoring_config(name)
    assert set(cfg.weights) <= set(FACTORS)


def test_unknown_preset():
    with pytest.raises(ConfigurationError):
        get_scoring_config("aggressive")


def test_weights_are_read_only():
    cfg = ScoringConfig(weights={"trend": 30})
    with pytest.raises(TypeError):
        cfg.weights["trend"] = 99
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.window = 30


@pytest.mark.parametrize(
    "overrides",
    [
        dict(weights={"trend": -5}),
        dict(weights={"macd": 10}),
        dict(ema_fast=0),
        dict(atr_period=-1),
        dict(rsi_period=0),
        dict(window=1),
        dict(trend_lookback=20),
        dict(level_lookback=25),
        dict(rsi_bull=40, rsi_bear=60),
        dict(compression_ratio=1.5, volatile_ratio=1.2),
        dict(volatile_multiplier=0),
        dict(min_edge=120),
        dict(risk_reward=0),
        dict(zscore_threshold=-0.1),
    ],
)
def test_invalid_configs(overrides):
    with pytest.raises(ConfigurationError):
        ScoringConfig(**overrides).validate()


def test_replace_keeps_weights():
    cfg = dataclasses.replace(CANONICAL_CONFIG, window=30)
    assert cfg.window == 30
    assert dict(cfg.weights) == dict(CANONICAL_CONFIG.weights)
    assert cfg.validate() is cfg
