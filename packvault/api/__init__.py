from packvault.api.game import router as game_router
from packvault.api.health import router as health_router
from packvault.api.telegram import router as telegram_router

__all__ = [
    "game_router",
    "health_router",
    "telegram_router",
]
