import threading
import pandas as pd
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from config.settings import TRADE_LOG_FILE, TRADE_LOG_HEADER, PENDING_OUTCOME
from models.types import Decision, TradeLogRecord
from utils.logger import setup_logger

logger = setup_logger("TradeLogger")


def _iso_utc(ts: Optional[datetime] = None) -> str:
    ts = ts or datetime.now(timezone.utc)
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class TradeLogger:
    """
    Append-only CSV of emitted signals. Outcome is written as a placeholder and
    resolved by processes outside this service.
    """

    def __init__(self, path: str = TRADE_LOG_FILE):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._ensure_header()

    def _ensure_header(self):
        if self.path.exists() and self.path.stat().st_size > 0:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            f.write(TRADE_LOG_HEADER + "\n")
        logger.info(f"Created trade log at {self.path}")

    def append(
        self,
        timestamp: datetime,
        signal: str,
        confidence: float,
        regime: str,
        price: float,
        outcome: str = PENDING_OUTCOME,
    ) -> TradeLogRecord:
        record = TradeLogRecord(
            timestamp=_iso_utc(timestamp),
            signal=str(signal),
            confidence=float(confidence),
            regime=str(regime),
            entry_price=float(price),
            outcome=outcome,
        )
        with self._lock:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(record.to_row() + "\n")
        return record

    def log_decision(self, decision: Decision, timestamp: Optional[datetime] = None) -> Optional[TradeLogRecord]:
        """Append a row for tradeable decisions only; WAIT is never logged."""
        if not decision.is_trade:
            return None
        return self.append(
            timestamp or datetime.now(timezone.utc),
            decision.signal.value,
            decision.confidence,
            decision.regime.value,
            decision.price,
        )


def read_performance(path: str = TRADE_LOG_FILE) -> dict:
    """Aggregate read-back: number of CALL / PUT rows in the trade log."""
    log_path = Path(path)
    if not log_path.exists():
        return {"totalTrades": 0}

    try:
        df = pd.read_csv(log_path, dtype={"signal": str})
    except pd.errors.EmptyDataError:
        return {"totalTrades": 0}
    if df.empty:
        return {"totalTrades": 0}
    total = int(df["signal"].isin(["CALL", "PUT"]).sum())
    return {"totalTrades": total}
