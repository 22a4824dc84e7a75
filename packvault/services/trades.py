"""
Trade engine.

A trade offers one inventory copy from the proposer to the target.
Only the target may resolve it, and only once: pending -> accepted
moves the copy, pending -> rejected leaves it where it is.

Notifications go out after commit and never affect the outcome.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from packvault.db.database import transaction
from packvault.db.operations import (
    create_trade,
    ensure_user,
    get_inventory_entry,
    get_trade,
    list_pending_trades,
    resolve_trade,
    transfer_inventory,
)
from packvault.models.db import TradeDB
from packvault.models.errors import (
    AlreadyResolved,
    InventoryNotFound,
    NotFound,
    NotOwner,
    NotTarget,
    ValidationError,
)
from packvault.models.trade import TradeStatus
from packvault.services.notifier import Notifier, dispatch

logger = logging.getLogger(__name__)


def trade_buttons(trade_id: int) -> list[list[tuple[str, str]]]:
    return [[("Accept", f"trade_accept:{trade_id}"), ("Reject", f"trade_reject:{trade_id}")]]


async def propose_trade(
    session: AsyncSession,
    from_user: int,
    inventory_id: int,
    to_user: int,
    *,
    notifier: Notifier | None = None,
) -> TradeDB:
    """
    Offer one owned copy to another player.

    Raises:
        InventoryNotFound: No such inventory entry.
        NotOwner: The entry belongs to someone else.
        ValidationError: Offering a card to yourself.
    """
    if from_user == to_user:
        raise ValidationError("You cannot trade with yourself")

    async with transaction(session):
        await ensure_user(session, from_user)

        entry = await get_inventory_entry(session, inventory_id)
        if entry is None:
            raise InventoryNotFound(inventory_id)
        if entry.user_id != from_user:
            raise NotOwner(inventory_id)
        card_name = entry.card.name

        await ensure_user(session, to_user)
        trade = await create_trade(session, from_user, to_user, inventory_id)

    logger.info("Trade %d created: %d -> %d (inv#%d)", trade.id, from_user, to_user, inventory_id)
    dispatch(
        notifier,
        to_user,
        f"You received a trade offer from {from_user}: {card_name} (inv#{inventory_id}). "
        f"Trade id: {trade.id}",
        trade_buttons(trade.id),
    )
    return trade


async def _load_for_resolution(
    session: AsyncSession, trade_id: int, acting_user: int, target: TradeStatus
) -> TradeDB:
    trade = await get_trade(session, trade_id, for_update=True)
    if trade is None:
        raise NotFound(trade_id)
    if trade.to_user != acting_user:
        raise NotTarget(trade_id)
    trade.trade_status.transition(target, trade_id)
    return trade


async def _mark(session: AsyncSession, trade_id: int, target: TradeStatus, now: datetime) -> None:
    if not await resolve_trade(session, trade_id, target, now):
        # Lost a race with another resolution of the same trade
        current = await get_trade(session, trade_id)
        raise AlreadyResolved(trade_id, current.status if current else "resolved")


async def accept_trade(
    session: AsyncSession,
    trade_id: int,
    acting_user: int,
    *,
    notifier: Notifier | None = None,
    now: datetime | None = None,
) -> TradeDB:
    """
    Accept a pending trade, moving the offered copy to the target.

    Raises:
        NotFound: No such trade.
        NotTarget: Acting user is not the trade's target.
        AlreadyResolved: Trade already accepted or rejected.
        NotOwner: The proposer no longer owns the offered copy.
    """
    now = now or datetime.now(UTC)

    async with transaction(session):
        await ensure_user(session, acting_user)
        trade = await _load_for_resolution(session, trade_id, acting_user, TradeStatus.ACCEPTED)

        await _mark(session, trade_id, TradeStatus.ACCEPTED, now)
        moved = await transfer_inventory(
            session, trade.offered_inventory_id, trade.from_user, trade.to_user
        )
        if not moved:
            raise NotOwner(
                trade.offered_inventory_id,
                "The offered card no longer belongs to the sender",
            )

        trade = await get_trade(session, trade_id)
        if trade is None:
            raise NotFound(trade_id)

    logger.info("Trade %d accepted by %d", trade_id, acting_user)
    dispatch(notifier, trade.from_user, f"Your trade #{trade_id} was accepted")
    return trade


async def reject_trade(
    session: AsyncSession,
    trade_id: int,
    acting_user: int,
    *,
    notifier: Notifier | None = None,
    now: datetime | None = None,
) -> TradeDB:
    """Reject a pending trade. Ownership is unchanged."""
    now = now or datetime.now(UTC)

    async with transaction(session):
        await ensure_user(session, acting_user)
        await _load_for_resolution(session, trade_id, acting_user, TradeStatus.REJECTED)
        await _mark(session, trade_id, TradeStatus.REJECTED, now)

        trade = await get_trade(session, trade_id)
        if trade is None:
            raise NotFound(trade_id)

    logger.info("Trade %d rejected by %d", trade_id, acting_user)
    dispatch(notifier, trade.from_user, f"Your trade #{trade_id} was rejected")
    return trade


async def incoming_trades(session: AsyncSession, user_id: int) -> list[TradeDB]:
    """Pending trades waiting for this user's answer."""
    async with transaction(session):
        await ensure_user(session, user_id)
        return await list_pending_trades(session, user_id)
