from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from sector_pulse.api.routes import router
from sector_pulse.config.settings import Settings, get_settings
from sector_pulse.integrations.eastmoney_rest import EastMoneyRestClient
from sector_pulse.integrations.gemini_rest import GeminiRestClient
from sector_pulse.services.commentary import CommentaryService
from sector_pulse.services.refresh_scheduler import RefreshScheduler


def build_scheduler(settings: Settings) -> RefreshScheduler:
    return RefreshScheduler(
        market_client=EastMoneyRestClient(base_url=settings.FEED_BASE_URL),
        instrument_filter=settings.INSTRUMENT_FILTER,
        instrument_limit=settings.INSTRUMENT_LIMIT,
        sector_filter=settings.SECTOR_FILTER,
        sector_limit=settings.SECTOR_LIMIT,
        member_limit=settings.MEMBER_LIMIT,
        trading_interval_sec=settings.TRADING_INTERVAL_SEC,
        idle_interval_sec=settings.IDLE_INTERVAL_SEC,
        history_capacity=settings.HISTORY_CAPACITY,
        auto_refresh=settings.AUTO_REFRESH,
    )


def build_commentary_service(settings: Settings) -> CommentaryService:
    return CommentaryService(
        generator=GeminiRestClient(api_key=settings.GEMINI_API_KEY, model=settings.GEMINI_MODEL),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = app.state.refresh_scheduler
    scheduler.start()
    try:
        yield
    finally:
        scheduler.stop()


app = FastAPI(title="Sector Pulse", version="0.1.0", lifespan=lifespan)
app.include_router(router, prefix="/v1")

app.state.refresh_scheduler = build_scheduler(get_settings())
app.state.commentary_service = build_commentary_service(get_settings())
