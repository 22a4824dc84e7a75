"""
Account ledger: free packs on a cooldown and coin-priced shop packs.

Both paths run the pack draw inside the same transaction as the
cooldown stamp or the debit, so a failed draw undoes them.
"""

import logging
import math
import random
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from packvault.config import settings
from packvault.db.database import transaction
from packvault.db.operations import ensure_user, get_user, try_debit, try_start_cooldown
from packvault.models.errors import CooldownActive, InsufficientFunds, ValidationError
from packvault.models.rarity import DEFAULT_POLICY, RarityPolicy
from packvault.services.pack_engine import PulledCard, open_pack

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ShopBundle:
    """A purchasable pack size and its price in coins."""

    count: int
    price: int

    @property
    def key(self) -> str:
        return f"x{self.count}"


DEFAULT_BUNDLES: tuple[ShopBundle, ...] = (
    ShopBundle(count=2, price=20),
    ShopBundle(count=3, price=25),
    ShopBundle(count=10, price=60),
)


@dataclass
class PackResult:
    """Outcome of a successful free claim or purchase."""

    user_id: int
    cards: list[PulledCard] = field(default_factory=list)
    price: int = 0


@dataclass(frozen=True, slots=True)
class AccountSummary:
    user_id: int
    coins: int
    last_pack: datetime
    free_pack_in_minutes: int


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; they are stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def default_cooldown() -> timedelta:
    return timedelta(minutes=settings.cooldown_minutes)


def remaining_cooldown(last_pack: datetime, now: datetime, cooldown: timedelta) -> timedelta:
    """Time left before the next free pack (zero or negative when ready)."""
    return cooldown - (now - as_utc(last_pack))


async def claim_free_pack(
    session: AsyncSession,
    user_id: int,
    now: datetime | None = None,
    *,
    cooldown: timedelta | None = None,
    pack_size: int | None = None,
    policy: RarityPolicy = DEFAULT_POLICY,
    rng: random.Random | None = None,
) -> PackResult:
    """
    Open the free pack if the user's cooldown has elapsed.

    Raises:
        CooldownActive: With the remaining wait rounded up to minutes.
    """
    now = now or datetime.now(UTC)
    cooldown = cooldown if cooldown is not None else default_cooldown()
    pack_size = pack_size if pack_size is not None else settings.free_pack_size

    async with transaction(session):
        await ensure_user(session, user_id)

        if not await try_start_cooldown(session, user_id, now, cooldown):
            user = await get_user(session, user_id)
            if user is None:
                msg = f"Account {user_id} missing after ensure_user"
                raise RuntimeError(msg)
            left = remaining_cooldown(user.last_pack, now, cooldown)
            raise CooldownActive(left.total_seconds())

        cards = await open_pack(session, user_id, pack_size, policy=policy, rng=rng)

    logger.info("User %d claimed a free pack", user_id)
    return PackResult(user_id=user_id, cards=cards)


async def purchase_pack(
    session: AsyncSession,
    user_id: int,
    count: int,
    price: int,
    *,
    policy: RarityPolicy = DEFAULT_POLICY,
    rng: random.Random | None = None,
) -> PackResult:
    """
    Debit `price` coins and open a pack of `count` cards.

    Raises:
        InsufficientFunds: Balance below price; nothing is changed.
        ValidationError: Non-positive count or negative price.
    """
    if count < 1:
        raise ValidationError("A pack must contain at least one card")
    if price < 0:
        raise ValidationError("Price cannot be negative")

    async with transaction(session):
        await ensure_user(session, user_id)

        if not await try_debit(session, user_id, price):
            user = await get_user(session, user_id)
            raise InsufficientFunds(price, user.coins if user else 0)

        cards = await open_pack(session, user_id, count, policy=policy, rng=rng)

    logger.info("User %d bought a pack of %d for %d coins", user_id, count, price)
    return PackResult(user_id=user_id, cards=cards, price=price)


def get_bundle(key: str, bundles: tuple[ShopBundle, ...] = DEFAULT_BUNDLES) -> ShopBundle:
    """Find a shop bundle by key ("x2", "x10", ...) or by bare count."""
    wanted = key.strip().lower()
    if not wanted.startswith("x"):
        wanted = f"x{wanted}"
    for bundle in bundles:
        if bundle.key == wanted:
            return bundle
    raise ValidationError(f"Unknown pack '{key}'")


async def buy_bundle(
    session: AsyncSession,
    user_id: int,
    bundle_key: str,
    *,
    bundles: tuple[ShopBundle, ...] = DEFAULT_BUNDLES,
    policy: RarityPolicy = DEFAULT_POLICY,
    rng: random.Random | None = None,
) -> PackResult:
    """Buy one of the shop's fixed bundles."""
    bundle = get_bundle(bundle_key, bundles)
    return await purchase_pack(
        session, user_id, bundle.count, bundle.price, policy=policy, rng=rng
    )


async def get_account(
    session: AsyncSession,
    user_id: int,
    now: datetime | None = None,
    *,
    cooldown: timedelta | None = None,
) -> AccountSummary:
    """Balance and free-pack readiness, creating the account on first sight."""
    now = now or datetime.now(UTC)
    cooldown = cooldown if cooldown is not None else default_cooldown()

    async with transaction(session):
        await ensure_user(session, user_id)
        user = await get_user(session, user_id)

    if user is None:
        msg = f"Account {user_id} missing after ensure_user"
        raise RuntimeError(msg)

    left = remaining_cooldown(user.last_pack, now, cooldown).total_seconds()
    minutes = 0 if left <= 0 else math.ceil(left / 60)
    return AccountSummary(
        user_id=user.tg_id,
        coins=user.coins,
        last_pack=as_utc(user.last_pack),
        free_pack_in_minutes=minutes,
    )
