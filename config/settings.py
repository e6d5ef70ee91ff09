import os
from types import MappingProxyType

from core.errors import ConfigurationError
from models.types import ScoringConfig


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Server
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))

# Candle source (None -> fetch fails with DataUnavailable unless mock fallback is on)
DATA_URL = os.environ.get("DATA_URL") or None
REQUEST_TIMEOUT_S = 10
REQUEST_MAX_RETRIES = 3
REQUEST_BACKOFF_FACTOR = 0.5

# Collaborator fallback policy: serve synthetic candles when the fetch fails.
# Never applied inside the engine.
MOCK_DATA_FALLBACK = _env_flag("MOCK_DATA_FALLBACK", False)
MOCK_CANDLE_COUNT = 30
MOCK_BASE_PRICE = 22000.0

# Market hours (NSE cash session)
ENFORCE_MARKET_HOURS = _env_flag("ENFORCE_MARKET_HOURS", True)
MARKET_TIMEZONE = "Asia/Kolkata"
MARKET_OPEN_HHMM = "09:15"
MARKET_CLOSE_HHMM = "15:30"
# Fixed-date exchange holidays as (month, day); movable ones come from MARKET_HOLIDAYS
FIXED_MARKET_HOLIDAYS = (
    (1, 26),   # Republic Day
    (8, 15),   # Independence Day
    (10, 2),   # Gandhi Jayanti
    (12, 25),  # Christmas
)
MARKET_HOLIDAYS = tuple(
    d.strip() for d in os.environ.get("MARKET_HOLIDAYS", "").split(",") if d.strip()
)

# Trade log
TRADE_LOG_FILE = os.environ.get("TRADE_LOG_FILE", "trade_log.csv")
TRADE_LOG_HEADER = "timestamp,signal,confidence,regime,entryPrice,outcome"
PENDING_OUTCOME = "PENDING"

# Scoring presets
SCORING_WEIGHTS = {
    "trend": 25,
    "zscore": 20,
    "vwap": 15,
    "rsi": 20,
    "prior_close": 20,
    "momentum": 0,
}

CANONICAL_CONFIG = ScoringConfig(weights=SCORING_WEIGHTS)

# Slope / z-score / VWAP only
CLASSIC_CONFIG = ScoringConfig(
    weights={"trend": 25, "zscore": 20, "vwap": 15, "rsi": 0, "prior_close": 0, "momentum": 0},
)

# Reduced bias variant: shorter window, momentum instead of EMA spread
BIAS_CONFIG = ScoringConfig(
    weights={"trend": 0, "zscore": 0, "vwap": 0, "rsi": 20, "prior_close": 20, "momentum": 30},
    window=15,
    ema_slow=10,
    rsi_period=10,
)

SCORING_PRESETS = MappingProxyType({
    "canonical": CANONICAL_CONFIG,
    "classic": CLASSIC_CONFIG,
    "bias": BIAS_CONFIG,
})

SCORING_PRESET = os.environ.get("SCORING_PRESET", "canonical")


def get_scoring_config(name: str | None = None) -> ScoringConfig:
    """Resolve a preset by name (defaults to SCORING_PRESET) and validate it."""
    name = (name or SCORING_PRESET).lower()
    if name not in SCORING_PRESETS:
        raise ConfigurationError(f"Unknown scoring preset '{name}'. Available: {', '.join(SCORING_PRESETS)}")
    return SCORING_PRESETS[name].validate()

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FILE = os.environ.get("LOG_FILE", "logs/signal_engine.log")
LOG_TO_CONSOLE = _env_flag("LOG_TO_CONSOLE", True)
