"""
PackVault services.

Game economy: pack draws, the coin ledger, passive income and trades.
"""

from packvault.services.admin import add_card_from_text, browse_catalog, is_admin, require_admin
from packvault.services.income import IncomeReport, run_income_tick
from packvault.services.inventory import describe_entry, view_inventory
from packvault.services.ledger import (
    DEFAULT_BUNDLES,
    AccountSummary,
    PackResult,
    ShopBundle,
    buy_bundle,
    claim_free_pack,
    get_account,
    get_bundle,
    purchase_pack,
)
from packvault.services.notifier import (
    Notifier,
    NullNotifier,
    TelegramNotifier,
    default_notifier,
    dispatch,
)
from packvault.services.pack_engine import PulledCard, generate_card_name, open_pack
from packvault.services.trades import (
    accept_trade,
    incoming_trades,
    propose_trade,
    reject_trade,
)

__all__ = [
    "AccountSummary",
    "DEFAULT_BUNDLES",
    "IncomeReport",
    "Notifier",
    "NullNotifier",
    "PackResult",
    "PulledCard",
    "ShopBundle",
    "TelegramNotifier",
    "accept_trade",
    "add_card_from_text",
    "browse_catalog",
    "buy_bundle",
    "claim_free_pack",
    "default_notifier",
    "describe_entry",
    "dispatch",
    "generate_card_name",
    "get_account",
    "get_bundle",
    "incoming_trades",
    "is_admin",
    "open_pack",
    "propose_trade",
    "purchase_pack",
    "reject_trade",
    "require_admin",
    "run_income_tick",
    "view_inventory",
]
