"""
Game error taxonomy.

Every business-rule failure is a GameError subclass carrying a kind,
a short user-facing message and the HTTP status used by the game API.
The webhook shows `message` to the user as-is.
"""

import math
from enum import Enum


class ErrorKind(str, Enum):
    """Classification of game failures."""

    COOLDOWN_ACTIVE = "cooldown_active"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    NOT_OWNER = "not_owner"
    INVENTORY_NOT_FOUND = "inventory_not_found"
    NOT_FOUND = "not_found"
    NOT_TARGET = "not_target"
    ALREADY_RESOLVED = "already_resolved"
    UNAUTHORIZED = "unauthorized"
    VALIDATION_ERROR = "validation_error"


class GameError(Exception):
    """Base class for known, explainable game failures."""

    kind: ErrorKind = ErrorKind.VALIDATION_ERROR
    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class CooldownActive(GameError):
    kind = ErrorKind.COOLDOWN_ACTIVE
    status_code = 429

    def __init__(self, remaining_seconds: float):
        self.remaining_minutes = max(1, math.ceil(remaining_seconds / 60))
        super().__init__(f"Free pack available in ~{self.remaining_minutes} min.")


class InsufficientFunds(GameError):
    kind = ErrorKind.INSUFFICIENT_FUNDS
    status_code = 402

    def __init__(self, price: int, balance: int | None = None):
        self.price = price
        self.balance = balance
        super().__init__("Not enough coins")


class NotOwner(GameError):
    kind = ErrorKind.NOT_OWNER
    status_code = 403

    def __init__(self, inventory_id: int, message: str = "You are not the owner of this card"):
        self.inventory_id = inventory_id
        super().__init__(message)


class InventoryNotFound(GameError):
    kind = ErrorKind.INVENTORY_NOT_FOUND
    status_code = 404

    def __init__(self, inventory_id: int):
        self.inventory_id = inventory_id
        super().__init__(f"Card inv#{inventory_id} not found")


class NotFound(GameError):
    """Trade does not exist."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, trade_id: int):
        self.trade_id = trade_id
        super().__init__("Trade not found")


class NotTarget(GameError):
    kind = ErrorKind.NOT_TARGET
    status_code = 403

    def __init__(self, trade_id: int):
        self.trade_id = trade_id
        super().__init__("You cannot resolve this trade")


class AlreadyResolved(GameError):
    kind = ErrorKind.ALREADY_RESOLVED
    status_code = 409

    def __init__(self, trade_id: int | None, status: str):
        self.trade_id = trade_id
        self.status = status
        super().__init__(f"Trade already {status}")


class Unauthorized(GameError):
    kind = ErrorKind.UNAUTHORIZED
    status_code = 403

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class ValidationError(GameError):
    kind = ErrorKind.VALIDATION_ERROR
    status_code = 400
