"""
Database CRUD operations.

Provides async functions for the card catalog, user accounts,
inventory copies and trade requests. Functions flush but never commit;
callers own the transaction.

Balance, cooldown and trade-status changes are single conditional
UPDATE statements so that check-and-set happens inside the database.

Supported backends are PostgreSQL (asyncpg) and SQLite (aiosqlite).
`ensure_user` relies on their INSERT ... ON CONFLICT DO NOTHING and
raises NotImplementedError on any other dialect.
"""

from datetime import datetime, timedelta

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from packvault.models.db import CardDB, InventoryDB, TradeDB, UserDB
from packvault.models.trade import TradeStatus

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

# --- User Operations ---


async def ensure_user(session: AsyncSession, user_id: int) -> None:
    """
    Create the account if it does not exist yet.

    Atomic insert-if-absent; an existing row is never touched.
    """
    dialect = session.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)
    if insert is None:
        msg = f"ensure_user does not support dialect '{dialect}'"
        raise NotImplementedError(msg)

    stmt = insert(UserDB).values(tg_id=user_id).on_conflict_do_nothing(
        index_elements=[UserDB.tg_id]
    )
    await session.execute(stmt)


async def get_user(session: AsyncSession, user_id: int) -> UserDB | None:
    """Get an account by id, always reading the current row."""
    return await session.get(UserDB, user_id, populate_existing=True)


async def try_start_cooldown(
    session: AsyncSession, user_id: int, now: datetime, cooldown: timedelta
) -> bool:
    """
    Stamp `last_pack = now` if the cooldown has elapsed.

    Returns False (and changes nothing) while the cooldown is active.
    """
    result = await session.execute(
        update(UserDB)
        .where(UserDB.tg_id == user_id, UserDB.last_pack <= now - cooldown)
        .values(last_pack=now)
        .execution_options(synchronize_session=False)
    )
    # rowcount is available on UPDATE results; type stubs incomplete for async
    return int(result.rowcount) == 1  # type: ignore[attr-defined]


async def try_debit(session: AsyncSession, user_id: int, amount: int) -> bool:
    """
    Subtract `amount` coins if the balance covers it.

    Returns False (and changes nothing) when funds are insufficient.
    """
    result = await session.execute(
        update(UserDB)
        .where(UserDB.tg_id == user_id, UserDB.coins >= amount)
        .values(coins=UserDB.coins - amount)
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount) == 1  # type: ignore[attr-defined]


async def credit_user_coins(session: AsyncSession, user_id: int, amount: int) -> None:
    """Add `amount` coins to a balance."""
    await session.execute(
        update(UserDB)
        .where(UserDB.tg_id == user_id)
        .values(coins=UserDB.coins + amount)
        .execution_options(synchronize_session=False)
    )


async def income_totals(session: AsyncSession) -> list[tuple[int, int]]:
    """
    Sum hourly income of every owned copy, per owner.

    Owners whose total is zero are left out.
    """
    income = func.sum(CardDB.coins_per_hour)
    result = await session.execute(
        select(InventoryDB.user_id, income)
        .join(CardDB, CardDB.id == InventoryDB.card_id)
        .group_by(InventoryDB.user_id)
        .having(income > 0)
        .order_by(InventoryDB.user_id)
    )
    return [(int(user_id), int(total)) for user_id, total in result.all()]


# --- Catalog Operations ---


async def list_cards(
    session: AsyncSession, rarity: str | None = None, limit: int | None = None
) -> list[CardDB]:
    """List catalog cards, newest first, optionally filtered by rarity."""
    stmt = select(CardDB).order_by(CardDB.id.desc())
    if rarity is not None:
        stmt = stmt.where(CardDB.rarity == rarity)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_card(
    session: AsyncSession,
    name: str,
    rarity: str,
    coins_per_hour: int,
    image_file_id: str | None = None,
) -> CardDB:
    """Add a card to the catalog. The id is assigned on return."""
    card = CardDB(
        name=name,
        rarity=rarity,
        coins_per_hour=coins_per_hour,
        image_file_id=image_file_id,
    )
    session.add(card)
    await session.flush()
    return card


# --- Inventory Operations ---


async def add_inventory(session: AsyncSession, user_id: int, card_id: int) -> InventoryDB:
    """Record a new owned copy of a card."""
    entry = InventoryDB(user_id=user_id, card_id=card_id)
    session.add(entry)
    await session.flush()
    return entry


async def get_inventory_entry(session: AsyncSession, inventory_id: int) -> InventoryDB | None:
    """Get one owned copy (with its card), or None."""
    result = await session.execute(
        select(InventoryDB)
        .where(InventoryDB.id == inventory_id)
        .options(joinedload(InventoryDB.card))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_inventory(session: AsyncSession, user_id: int) -> list[InventoryDB]:
    """All copies owned by a user (with their cards), newest first."""
    result = await session.execute(
        select(InventoryDB)
        .where(InventoryDB.user_id == user_id)
        .options(joinedload(InventoryDB.card))
        .order_by(InventoryDB.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def transfer_inventory(
    session: AsyncSession, inventory_id: int, from_user: int, to_user: int
) -> bool:
    """
    Move a copy from one owner to another.

    Only succeeds if `from_user` still owns it at the time of the update.
    """
    result = await session.execute(
        update(InventoryDB)
        .where(InventoryDB.id == inventory_id, InventoryDB.user_id == from_user)
        .values(user_id=to_user)
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount) == 1  # type: ignore[attr-defined]


# --- Trade Operations ---


async def create_trade(
    session: AsyncSession, from_user: int, to_user: int, offered_inventory_id: int
) -> TradeDB:
    """Insert a pending trade request."""
    trade = TradeDB(
        from_user=from_user,
        to_user=to_user,
        offered_inventory_id=offered_inventory_id,
        status=TradeStatus.PENDING.value,
    )
    session.add(trade)
    await session.flush()
    return trade


async def get_trade(
    session: AsyncSession, trade_id: int, for_update: bool = False
) -> TradeDB | None:
    """Get a trade by id. `for_update` locks the row until the transaction ends."""
    return await session.get(
        TradeDB, trade_id, with_for_update=for_update, populate_existing=True
    )


async def resolve_trade(
    session: AsyncSession, trade_id: int, status: TradeStatus, now: datetime
) -> bool:
    """
    Move a pending trade to a terminal status.

    Returns False if the trade was no longer pending.
    """
    result = await session.execute(
        update(TradeDB)
        .where(TradeDB.id == trade_id, TradeDB.status == TradeStatus.PENDING.value)
        .values(status=status.value, resolved_at=now)
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount) == 1  # type: ignore[attr-defined]


async def list_pending_trades(session: AsyncSession, user_id: int) -> list[TradeDB]:
    """Pending trades addressed to a user, oldest first."""
    result = await session.execute(
        select(TradeDB)
        .where(TradeDB.to_user == user_id, TradeDB.status == TradeStatus.PENDING.value)
        .order_by(TradeDB.id)
    )
    return list(result.scalars().all())
