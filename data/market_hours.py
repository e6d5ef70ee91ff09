from datetime import date, datetime, time, timezone
from typing import Iterable, Tuple
from zoneinfo import ZoneInfo
from config.settings import (
    MARKET_TIMEZONE,
    MARKET_OPEN_HHMM,
    MARKET_CLOSE_HHMM,
    FIXED_MARKET_HOLIDAYS,
    MARKET_HOLIDAYS,
)
from core.errors import ConfigurationError
from models.types import GateStatus


def _parse_hhmm(value: str) -> time:
    try:
        hh, mm = value.split(":")
        return time(int(hh), int(mm))
    except ValueError as e:
        raise ConfigurationError(f"Invalid HH:MM value '{value}'") from e


def _parse_dates(values: Iterable[str]) -> frozenset:
    try:
        return frozenset(date.fromisoformat(v) for v in values)
    except ValueError as e:
        raise ConfigurationError(f"Invalid holiday date in {list(values)}") from e


class MarketHoursGate:
    """
    Exchange session gate. The caller passes the current UTC time so checks are
    deterministic; nothing here reads the wall clock.
    """

    def __init__(
        self,
        tz: str = MARKET_TIMEZONE,
        open_hhmm: str = MARKET_OPEN_HHMM,
        close_hhmm: str = MARKET_CLOSE_HHMM,
        fixed_holidays: Iterable[Tuple[int, int]] = FIXED_MARKET_HOLIDAYS,
        holidays: Iterable[str] = MARKET_HOLIDAYS,
    ):
        self.tz = ZoneInfo(tz)
        self.open_time = _parse_hhmm(open_hhmm)
        self.close_time = _parse_hhmm(close_hhmm)
        if self.open_time >= self.close_time:
            raise ConfigurationError("Market open must be before market close")
        self.fixed_holidays = frozenset(tuple(md) for md in fixed_holidays)
        self.holidays = _parse_dates(list(holidays))

    def is_holiday(self, day: date) -> bool:
        return day in self.holidays or (day.month, day.day) in self.fixed_holidays

    def is_open(self, now_utc: datetime) -> GateStatus:
        if now_utc.tzinfo is None:
            now_utc = now_utc.replace(tzinfo=timezone.utc)
        local = now_utc.astimezone(self.tz)
        open_str = self.open_time.strftime("%H:%M")
        close_str = self.close_time.strftime("%H:%M")

        if local.weekday() >= 5:
            return GateStatus(False, "Market closed – weekend")
        if self.is_holiday(local.date()):
            return GateStatus(False, f"Market closed – exchange holiday ({local.date().isoformat()})")
        if local.time() < self.open_time:
            return GateStatus(False, f"Market closed – opens at {open_str} {local.tzname()}")
        if local.time() >= self.close_time:
            return GateStatus(False, f"Market closed – session ended at {close_str} {local.tzname()}")
        return GateStatus(True, "Market open")
