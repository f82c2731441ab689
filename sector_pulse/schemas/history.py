from pydantic import BaseModel, ConfigDict


class HistorySnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    time: str
    data: dict[str, float]
