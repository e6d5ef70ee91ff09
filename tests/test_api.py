from datetime import datetime, timezone
import pytest
from fastapi.testclient import TestClient

from api.app import (
    app,
    get_candle_supplier,
    get_config,
    get_enforce_market_hours,
    get_market_gate,
    get_now,
    get_trade_logger,
)
from config.settings import CANONICAL_CONFIG
from core.errors import DataUnavailable
from models.types import GateStatus, ScoringConfig
from utils.trade_logger import TradeLogger
from tests.sim_market import rising_candles

NOW = datetime(2026, 10, 19, 4, 30, tzinfo=timezone.utc)


class StubSupplier:
    def __init__(self, candles=None, error=None):
        self.candles = candles
        self.error = error

    def get_candles(self):
        if self.error:
            raise self.error
        return self.candles


class StubGate:
    def __init__(self, open_: bool = True, reason: str = "Market open"):
        self.status = GateStatus(open_, reason)

    def is_open(self, now_utc):
        return self.status


@pytest.fixture
def trade_logger(tmp_path):
    return TradeLogger(str(tmp_path / "trade_log.csv"))


@pytest.fixture
def client(trade_logger):
    app.dependency_overrides[get_candle_supplier] = lambda: StubSupplier(rising_candles(20))
    app.dependency_overrides[get_market_gate] = lambda: StubGate()
    app.dependency_overrides[get_trade_logger] = lambda: trade_logger
    app.dependency_overrides[get_config] = lambda: CANONICAL_CONFIG
    app.dependency_overrides[get_enforce_market_hours] = lambda: True
    app.dependency_overrides[get_now] = lambda: NOW
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.text == "Quant Engine Running Successfully"


def test_analysis_call(client, trade_logger):
    resp = client.get("/analysis")
    assert resp.status_code == 200
    body = resp.json()
    assert body["signal"] == "CALL"
    assert body["confidence"] == 100.0
    assert body["regime"] == "VOLATILE"
    assert body["price"] == 119.0
    assert body["confirmation"] == "STRONGLY CONFIRMED – MULTI FACTOR ALIGNMENT"
    assert body["entry"] == 119.5
    assert body["stopLoss"] == 116.5
    assert body["target"] == pytest.approx(124.0)

    rows = trade_logger.path.read_text(encoding="utf-8").splitlines()
    assert rows[-1] == "2026-10-19T04:30:00.000Z,CALL,100.00,VOLATILE,119.0,PENDING"


def test_analysis_wait_not_logged(client, trade_logger):
    # A lone 10-point factor can never clear the edge
    app.dependency_overrides[get_config] = lambda: ScoringConfig(weights={"trend": 10})

    resp = client.get("/analysis")
    assert resp.status_code == 200
    body = resp.json()
    assert body["signal"] == "WAIT"
    assert body["confirmation"] == "LOW EDGE – NO TRADE"
    assert body["stopLoss"] is None
    assert len(trade_logger.path.read_text(encoding="utf-8").splitlines()) == 1


def test_market_closed(client, trade_logger):
    app.dependency_overrides[get_market_gate] = lambda: StubGate(False, "Market closed – weekend")
    resp = client.get("/analysis")
    assert resp.status_code == 200
    assert resp.json() == {"status": "MARKET_CLOSED", "reason": "Market closed – weekend"}


def test_market_hours_not_enforced(client):
    app.dependency_overrides[get_market_gate] = lambda: StubGate(False, "closed")
    app.dependency_overrides[get_enforce_market_hours] = lambda: False
    assert client.get("/analysis").json()["signal"] == "CALL"


def test_data_unavailable(client):
    app.dependency_overrides[get_candle_supplier] = lambda: StubSupplier(error=DataUnavailable("No DATA_URL set"))
    resp = client.get("/analysis")
    assert resp.status_code == 503
    assert resp.json()["detail"] == "No DATA_URL set"


def test_insufficient_data(client):
    app.dependency_overrides[get_candle_supplier] = lambda: StubSupplier(rising_candles(5))
    assert client.get("/analysis").status_code == 422


def test_unexpected_failure(client):
    app.dependency_overrides[get_candle_supplier] = lambda: StubSupplier(error=RuntimeError("boom"))
    resp = client.get("/analysis")
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Analysis failed"}


def test_performance(client, trade_logger):
    assert client.get("/performance").json() == {"totalTrades": 0}
    client.get("/analysis")
    client.get("/analysis")
    assert client.get("/performance").json() == {"totalTrades": 2}
