from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from packvault.api import game_router, health_router, telegram_router
from packvault.api.game import game_error_handler
from packvault.config import settings
from packvault.db.database import async_session_factory, init_db
from packvault.jobs.passive_income import IncomeScheduler
from packvault.models.errors import GameError
from packvault.services.notifier import drain as drain_notifications


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()

    scheduler: IncomeScheduler | None = None
    if settings.enable_scheduler:
        scheduler = IncomeScheduler(async_session_factory, settings.income_interval_minutes)
        scheduler.start()
    app.state.income_scheduler = scheduler

    yield

    if scheduler is not None:
        scheduler.stop()
    await drain_notifications()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("packvault"),
    lifespan=lifespan,
)

app.include_router(game_router)
app.include_router(health_router)
app.include_router(telegram_router)

app.add_exception_handler(GameError, game_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
