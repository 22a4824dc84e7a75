from packvault.models.db import NEVER, Base, CardDB, InventoryDB, TradeDB, UserDB
from packvault.models.errors import (
    AlreadyResolved,
    CooldownActive,
    ErrorKind,
    GameError,
    InsufficientFunds,
    InventoryNotFound,
    NotFound,
    NotOwner,
    NotTarget,
    Unauthorized,
    ValidationError,
)
from packvault.models.rarity import DEFAULT_POLICY, RarityPolicy, RarityTier
from packvault.models.trade import TradeStatus

__all__ = [
    "AlreadyResolved",
    "Base",
    "CardDB",
    "CooldownActive",
    "DEFAULT_POLICY",
    "ErrorKind",
    "GameError",
    "InsufficientFunds",
    "InventoryDB",
    "InventoryNotFound",
    "NEVER",
    "NotFound",
    "NotOwner",
    "NotTarget",
    "RarityPolicy",
    "RarityTier",
    "TradeDB",
    "TradeStatus",
    "Unauthorized",
    "UserDB",
    "ValidationError",
]
