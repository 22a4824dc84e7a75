"""
Chat command dispatch.

Maps Telegram updates (commands, button presses, free text, captioned
photos) onto game operations and builds the reply. Every game error
becomes a short reply; database errors become a generic one.
"""

import logging
from collections.abc import Awaitable, Collection

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from packvault.models.errors import GameError, ValidationError
from packvault.models.telegram import BotReply, CallbackQuery, TelegramMessage, Update
from packvault.parsers.commands import (
    CARD_USAGE,
    TRADE_USAGE,
    is_card_definition,
    is_trade_proposal,
    parse_callback,
    parse_id,
    parse_trade_proposal,
)
from packvault.services.admin import add_card_from_text, browse_catalog, require_admin
from packvault.services.inventory import describe_entry, view_inventory
from packvault.services.ledger import (
    DEFAULT_BUNDLES,
    PackResult,
    buy_bundle,
    claim_free_pack,
    get_account,
)
from packvault.services.notifier import ButtonRows, Notifier, inline_keyboard
from packvault.services.trades import (
    accept_trade,
    incoming_trades,
    propose_trade,
    reject_trade,
    trade_buttons,
)

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Something went wrong, please try again later"

MAIN_MENU: ButtonRows = [
    [("🎁 Open free pack", "free_pack")],
    [("📦 Shop", "shop")],
    [("🎒 Inventory", "inv")],
    [("🔁 Trades", "trades")],
]

ADMIN_MENU: ButtonRows = [
    [("Add card", "admin_add_card")],
    [("List cards", "admin_list_cards")],
]


def _reply(chat_id: int, text: str, buttons: ButtonRows | None = None) -> BotReply:
    return BotReply(
        chat_id=chat_id,
        text=text,
        reply_markup=inline_keyboard(buttons) if buttons else None,
    )


def _pack_text(title: str, result: PackResult) -> str:
    return "\n".join([title, *(c.describe() for c in result.cards)])


class ChatHandler:
    """Handles one update against one database session."""

    def __init__(
        self,
        session: AsyncSession,
        notifier: Notifier | None = None,
        admin_ids: Collection[int] | None = None,
    ):
        self.session = session
        self.notifier = notifier
        self.admin_ids = admin_ids

    async def handle(self, update: Update) -> BotReply | None:
        if update.callback_query is not None:
            query = update.callback_query
            chat_id = query.message.chat.id if query.message else query.from_user.id
            return await self._guarded(chat_id, self._on_callback(query, chat_id))

        message = update.message
        if message is None or message.from_user is None:
            return None
        return await self._guarded(
            message.chat.id, self._on_message(message, message.from_user.id)
        )

    async def _guarded(
        self, chat_id: int, action: Awaitable[BotReply | None]
    ) -> BotReply | None:
        try:
            return await action
        except GameError as e:
            return _reply(chat_id, e.message)
        except SQLAlchemyError:
            logger.exception("Database error while handling update for chat %d", chat_id)
            return _reply(chat_id, GENERIC_FAILURE)

    # --- Messages ---

    async def _on_message(self, message: TelegramMessage, user_id: int) -> BotReply | None:
        chat_id = message.chat.id
        text = (message.text or "").strip()

        photo = message.largest_photo
        if photo is not None:
            caption = (message.caption or "").strip()
            if not is_card_definition(caption):
                return None
            card = await add_card_from_text(
                self.session, user_id, caption, photo.file_id, admin_ids=self.admin_ids
            )
            return _reply(chat_id, f"Card added, id: {card.id}")

        if text.startswith("/start"):
            account = await get_account(self.session, user_id)
            return _reply(
                chat_id,
                "Welcome! Open packs, collect cards and trade with other players.\n"
                f"Balance: {account.coins} coins",
                MAIN_MENU,
            )

        if text.startswith("/admin"):
            require_admin(user_id, self.admin_ids)
            return _reply(chat_id, "Admin panel", ADMIN_MENU)

        if is_trade_proposal(text):
            proposal = parse_trade_proposal(text)
            trade = await propose_trade(
                self.session,
                user_id,
                proposal.inventory_id,
                proposal.recipient_id,
                notifier=self.notifier,
            )
            return _reply(
                chat_id,
                f"Trade offer sent to {proposal.recipient_id}. Trade id: {trade.id}",
            )

        if is_card_definition(text):
            card = await add_card_from_text(self.session, user_id, text, admin_ids=self.admin_ids)
            return _reply(chat_id, f"Card added, id: {card.id}")

        return _reply(chat_id, "Use /start to open the menu")

    # --- Button presses ---

    async def _on_callback(self, query: CallbackQuery, chat_id: int) -> BotReply | None:
        user_id = query.from_user.id
        action, payload = parse_callback(query.data or "")

        if action == "free_pack":
            result = await claim_free_pack(self.session, user_id)
            return _reply(chat_id, _pack_text("You opened a pack!", result))

        if action == "shop":
            buttons = [
                [(f"Pack x{b.count} - {b.price} coins", f"buy:{b.key}")] for b in DEFAULT_BUNDLES
            ]
            return _reply(chat_id, "Shop:", buttons)

        if action == "buy":
            if payload is None:
                raise ValidationError("Missing pack")
            result = await buy_bundle(self.session, user_id, payload)
            return _reply(chat_id, _pack_text("You bought a pack:", result))

        if action == "inv":
            entries = await view_inventory(self.session, user_id)
            if not entries:
                return _reply(chat_id, "Your inventory is empty")
            lines = ["Your cards:", *(describe_entry(e) for e in entries)]
            return _reply(chat_id, "\n".join(lines), [[("Offer a trade", "trade_start")]])

        if action == "trades":
            trades = await incoming_trades(self.session, user_id)
            if not trades:
                return _reply(chat_id, "No pending trade offers")
            lines = ["Pending offers:"]
            buttons: ButtonRows = []
            for trade in trades:
                lines.append(
                    f"#{trade.id} from {trade.from_user}: inv#{trade.offered_inventory_id}"
                )
                buttons.extend(trade_buttons(trade.id))
            return _reply(chat_id, "\n".join(lines), buttons)

        if action == "trade_start":
            return _reply(chat_id, f"Send the card you want to offer. {TRADE_USAGE}")

        if action == "trade_accept":
            trade = await accept_trade(
                self.session, parse_id(payload), user_id, notifier=self.notifier
            )
            return _reply(chat_id, f"Trade #{trade.id} accepted, the card is yours")

        if action == "trade_reject":
            trade = await reject_trade(
                self.session, parse_id(payload), user_id, notifier=self.notifier
            )
            return _reply(chat_id, f"Trade #{trade.id} rejected")

        if action == "admin_add_card":
            require_admin(user_id, self.admin_ids)
            return _reply(chat_id, f"Send a photo with a caption, or plain text. {CARD_USAGE}")

        if action == "admin_list_cards":
            cards = await browse_catalog(self.session, user_id, admin_ids=self.admin_ids)
            if not cards:
                return _reply(chat_id, "No cards in the catalog")
            lines = [f"#{c.id} - {c.name} ({c.rarity}, {c.coins_per_hour}/h)" for c in cards]
            return _reply(chat_id, "\n".join(lines))

        raise ValidationError("Unknown action")
