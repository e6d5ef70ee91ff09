import numpy as np
import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from typing import Any, List, Optional
from config.settings import (
    DATA_URL,
    REQUEST_TIMEOUT_S,
    REQUEST_MAX_RETRIES,
    REQUEST_BACKOFF_FACTOR,
    MOCK_DATA_FALLBACK,
    MOCK_CANDLE_COUNT,
    MOCK_BASE_PRICE,
)
from core.errors import DataUnavailable
from models.types import Candle
from utils.logger import setup_logger

logger = setup_logger("CandleClient")


def _parse_timestamp(value: Any) -> Optional[int]:
    """Epoch milliseconds from an integer or an ISO-8601 string. Unreadable values become None."""
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring unreadable candle timestamp {value!r}")
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return ts.value // 10**6


def parse_candle(raw: Any) -> Candle:
    """Build a Candle from one JSON object. Volume defaults to 1 when absent."""
    try:
        volume = raw.get("volume")
        return Candle(
            high=float(raw["high"]),
            low=float(raw["low"]),
            close=float(raw["close"]),
            volume=float(volume) if volume is not None else 1.0,
            open=float(raw["open"]) if raw.get("open") is not None else None,
            timestamp=_parse_timestamp(raw.get("timestamp")),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise DataUnavailable(f"Malformed candle payload: {raw!r}") from e


def parse_candles(payload: Any) -> List[Candle]:
    """Accepts either a bare list of candle objects or {"candles": [...]}."""
    if isinstance(payload, dict):
        payload = payload.get("candles")
    if not isinstance(payload, list):
        raise DataUnavailable("Candle payload is not a list")
    return [parse_candle(item) for item in payload]


def generate_mock_candles(count: int = MOCK_CANDLE_COUNT, base_price: float = MOCK_BASE_PRICE, seed: Optional[int] = None) -> List[Candle]:
    """Synthetic candles in a 100-point band around base_price. Fallback policy only."""
    rng = np.random.default_rng(seed)
    candles = []
    for _ in range(count):
        high = base_price + rng.uniform(0, 50)
        low = base_price - 50 + rng.uniform(0, 50)
        close = base_price - 25 + rng.uniform(0, 50)
        candles.append(
            Candle(
                high=max(high, low, close),
                low=min(high, low, close),
                close=close,
                volume=1000 + rng.uniform(0, 500),
            )
        )
    return candles


class CandleClient:
    """
    Candle supplier backed by a JSON HTTP endpoint.
    Retries transient 5xx responses at the session level; the engine never retries.
    """

    def __init__(
        self,
        url: Optional[str] = DATA_URL,
        timeout: float = REQUEST_TIMEOUT_S,
        mock_fallback: bool = MOCK_DATA_FALLBACK,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.mock_fallback = mock_fallback

        if session is None:
            session = requests.Session()
            retries = Retry(
                total=REQUEST_MAX_RETRIES,
                backoff_factor=REQUEST_BACKOFF_FACTOR,
                status_forcelist=[500, 502, 503, 504],
            )
            adapter = HTTPAdapter(max_retries=retries)
            session.mount('https://', adapter)
            session.mount('http://', adapter)
        self.session = session

    def fetch_candles(self) -> List[Candle]:
        """Fetch from the configured URL. Raises DataUnavailable on any failure."""
        if not self.url:
            raise DataUnavailable("No DATA_URL set")

        try:
            resp = self.session.get(self.url, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            raise DataUnavailable(f"Candle fetch failed: {e}") from e
        except ValueError as e:
            raise DataUnavailable("Candle endpoint returned invalid JSON") from e

        candles = parse_candles(data)
        logger.info(f"Fetched {len(candles)} candles from {self.url}")
        return candles

    def get_candles(self) -> List[Candle]:
        try:
            return self.fetch_candles()
        except DataUnavailable as e:
            if not self.mock_fallback:
                logger.error(f"Candle supplier unavailable: {e}")
                raise
            logger.warning(f"Using mock data mode ({e})")
            return generate_mock_candles()
