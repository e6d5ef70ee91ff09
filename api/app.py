"""FastAPI application exposing the signal engine."""
from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
from typing import Union

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.responses import PlainTextResponse

from config.settings import ENFORCE_MARKET_HOURS, TRADE_LOG_FILE, get_scoring_config
from core.analyzer import evaluate
from core.errors import ConfigurationError, DataUnavailable, InsufficientData
from data.candle_client import CandleClient
from data.market_hours import MarketHoursGate
from models.types import CandleSupplier, MarketGate, ScoringConfig
from utils.logger import setup_logger
from utils.trade_logger import TradeLogger, read_performance

from api.schemas import AnalysisResponse, MarketClosedResponse, PerformanceResponse

log = setup_logger("api")
app = FastAPI(
    title="Quant Engine",
    description="Regime-aware CALL/PUT/WAIT signal engine over index candles.",
    version="1.0.0",
)


# --- Collaborators (overridable through app.dependency_overrides) ---

@lru_cache(maxsize=1)
def get_candle_supplier() -> CandleSupplier:
    return CandleClient()


@lru_cache(maxsize=1)
def get_market_gate() -> MarketGate:
    return MarketHoursGate()


@lru_cache(maxsize=1)
def get_trade_logger() -> TradeLogger:
    return TradeLogger(TRADE_LOG_FILE)


def get_config() -> ScoringConfig:
    return get_scoring_config()


def get_enforce_market_hours() -> bool:
    return ENFORCE_MARKET_HOURS


def get_now() -> datetime:
    return datetime.now(timezone.utc)


# --- Routes ---

@app.get("/", response_class=PlainTextResponse, tags=["Health"])
async def health() -> str:
    return "Quant Engine Running Successfully"


@app.get(
    "/analysis",
    response_model=Union[AnalysisResponse, MarketClosedResponse],
    tags=["Signals"],
)
def read_analysis(
    supplier: CandleSupplier = Depends(get_candle_supplier),
    gate: MarketGate = Depends(get_market_gate),
    trade_logger: TradeLogger = Depends(get_trade_logger),
    config: ScoringConfig = Depends(get_config),
    enforce_hours: bool = Depends(get_enforce_market_hours),
    now: datetime = Depends(get_now),
) -> Union[AnalysisResponse, MarketClosedResponse]:
    log.info("Handling incoming request for /analysis endpoint")

    if enforce_hours:
        gate_status = gate.is_open(now)
        if not gate_status.open:
            log.info(f"Gate closed: {gate_status.reason}")
            return MarketClosedResponse(reason=gate_status.reason)

    try:
        candles = supplier.get_candles()
        decision = evaluate(candles, config)
    except DataUnavailable as e:
        log.error(f"Candle data unavailable: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except InsufficientData as e:
        log.warning(f"Insufficient data: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except ConfigurationError as e:
        log.error(f"Configuration error: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except Exception:
        log.exception("Analysis failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Analysis failed")

    if decision.is_trade:
        trade_logger.log_decision(decision, timestamp=now)

    return AnalysisResponse.from_decision(decision)


@app.get("/performance", response_model=PerformanceResponse, tags=["Signals"])
def read_performance_summary(
    trade_logger: TradeLogger = Depends(get_trade_logger),
) -> PerformanceResponse:
    log.info("Handling incoming request for /performance endpoint")
    return PerformanceResponse(**read_performance(str(trade_logger.path)))
