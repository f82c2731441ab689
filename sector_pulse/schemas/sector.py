from pydantic import BaseModel


class LeaderEntry(BaseModel):
    name: str
    value: float


class Leaders(BaseModel):
    gainer: LeaderEntry
    volume: LeaderEntry
    funds: LeaderEntry


class SectorSnapshot(BaseModel):
    code: str
    name: str
    change_pct: float
    leaders: Leaders | None = None
