import os
from functools import lru_cache

from pydantic import BaseModel, Field

_PREFIX = "SECTOR_PULSE_"


class Settings(BaseModel):
    FEED_BASE_URL: str = "https://push2.eastmoney.com"
    INSTRUMENT_FILTER: str = "b:MK0354"
    INSTRUMENT_LIMIT: int = Field(default=8, ge=1)
    SECTOR_FILTER: str = "m:90 t:2"
    SECTOR_LIMIT: int = Field(default=3, ge=1)
    MEMBER_LIMIT: int = Field(default=20, ge=1)
    TRADING_INTERVAL_SEC: int = Field(default=30, ge=1)
    IDLE_INTERVAL_SEC: int = Field(default=300, ge=1)
    HISTORY_CAPACITY: int = Field(default=12, ge=1)
    AUTO_REFRESH: bool = True
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-3-flash-preview"

    @classmethod
    def from_env(cls) -> "Settings":
        raw: dict[str, str] = {}
        for name in cls.model_fields:
            if name.startswith("GEMINI_"):
                value = os.getenv(name)
            else:
                value = os.getenv(f"{_PREFIX}{name}")
            if value is not None and value.strip():
                raw[name] = value.strip()
        return cls.model_validate(raw)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
