from pydantic import BaseModel


class Quote(BaseModel):
    code: str = ""
    name: str
    price: float = 0.0
    change_pct: float = 0.0
    turnover: float = 0.0
    volume_ratio: float = 0.0
    speed: float = 0.0
    net_inflow: float = 0.0
