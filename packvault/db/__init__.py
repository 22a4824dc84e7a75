from packvault.db.database import get_session, init_db, transaction
from packvault.db.operations import (
    add_inventory,
    create_card,
    create_trade,
    credit_user_coins,
    ensure_user,
    get_inventory_entry,
    get_trade,
    get_user,
    income_totals,
    list_cards,
    list_inventory,
    list_pending_trades,
    resolve_trade,
    transfer_inventory,
    try_debit,
    try_start_cooldown,
)

__all__ = [
    "add_inventory",
    "create_card",
    "create_trade",
    "credit_user_coins",
    "ensure_user",
    "get_inventory_entry",
    "get_session",
    "get_trade",
    "get_user",
    "income_totals",
    "init_db",
    "list_cards",
    "list_inventory",
    "list_pending_trades",
    "resolve_trade",
    "transaction",
    "transfer_inventory",
    "try_debit",
    "try_start_cooldown",
]
