from pydantic import BaseModel

from sector_pulse.schemas.history import HistorySnapshot
from sector_pulse.schemas.quote import Quote
from sector_pulse.schemas.sector import SectorSnapshot


class RefreshState(BaseModel):
    phase: str = "IDLE"
    trading: bool = False
    countdown: int = 0
    interval_sec: int = 0
    last_update: str | None = None
    auto_refresh: bool = True
    in_flight: bool = False
    cycles: int = 0


class AutoRefreshRequest(BaseModel):
    enabled: bool


class DashboardSnapshot(BaseModel):
    state: RefreshState
    quotes: list[Quote]
    sectors: list[SectorSnapshot]
    history: list[HistorySnapshot]
