"""Response models for the public API."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.types import Decision


class AnalysisResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    signal: str
    confidence: float = Field(..., ge=0, le=100)
    regime: str
    price: float
    confirmation: str
    entry: Optional[float] = None
    stop_loss: Optional[float] = Field(None, alias="stopLoss")
    target: Optional[float] = None
    reasons: List[str] = Field(default_factory=list)

    @classmethod
    def from_decision(cls, decision: Decision) -> "AnalysisResponse":
        levels = decision.levels
        return cls(
            signal=decision.signal.value,
            confidence=decision.confidence,
            regime=decision.regime.value,
            price=decision.price,
            confirmation=decision.confirmation.value,
            entry=levels.entry if levels else None,
            stop_loss=levels.stop_loss if levels else None,
            target=levels.target if levels else None,
            reasons=list(decision.reasons),
        )


class MarketClosedResponse(BaseModel):
    status: str = "MARKET_CLOSED"
    reason: str


class PerformanceResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_trades: int = Field(..., alias="totalTrades")
