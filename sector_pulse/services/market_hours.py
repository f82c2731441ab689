from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

CST = ZoneInfo("Asia/Shanghai")

# hour * 100 + minute, inclusive on both ends
MORNING_SESSION = (925, 1131)
AFTERNOON_SESSION = (1300, 1505)

TRADING_INTERVAL_SEC = 30
IDLE_INTERVAL_SEC = 300


def exchange_now() -> datetime:
    return datetime.now(CST)


def to_exchange_time(current: datetime) -> datetime:
    if current.tzinfo is None:
        return current.replace(tzinfo=CST)
    return current.astimezone(CST)


def is_trading(now: datetime | None = None) -> bool:
    """Return whether the A-share session is live in Asia/Shanghai time."""
    local = to_exchange_time(now or exchange_now())
    hm = local.hour * 100 + local.minute
    return any(start <= hm <= end for start, end in (MORNING_SESSION, AFTERNOON_SESSION))


def next_interval_sec(
    trading: bool,
    trading_interval: int = TRADING_INTERVAL_SEC,
    idle_interval: int = IDLE_INTERVAL_SEC,
) -> int:
    return trading_interval if trading else idle_interval
