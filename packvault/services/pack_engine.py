"""
Pack generation.

Draws card copies for a user: a weighted rarity roll, then a uniform pick
from the catalog cards of that rarity. When the rarity has no cards yet
the pick falls back to the whole catalog, and an empty catalog is
bootstrapped with a freshly generated card.
"""

import logging
import random
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from packvault.db.operations import add_inventory, create_card, list_cards
from packvault.models.db import CardDB
from packvault.models.errors import ValidationError
from packvault.models.rarity import DEFAULT_POLICY, RarityPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PulledCard:
    """One copy drawn from a pack."""

    inventory_id: int
    card_id: int
    name: str
    rarity: str
    coins_per_hour: int
    image_file_id: str | None = None

    def describe(self) -> str:
        return f"inv#{self.inventory_id} - {self.name} ({self.rarity})"


def generate_card_name(rng: random.Random | None = None) -> str:
    """Placeholder name for a bootstrapped catalog card."""
    rng = rng or random
    return f"Card {rng.randint(1000, 9999)}"


async def open_pack(
    session: AsyncSession,
    user_id: int,
    count: int,
    *,
    policy: RarityPolicy = DEFAULT_POLICY,
    rng: random.Random | None = None,
) -> list[PulledCard]:
    """
    Draw `count` copies into a user's inventory.

    Only flushes: run it inside the caller's transaction so that a
    failure part-way leaves no partial pack behind.
    """
    if count < 1:
        raise ValidationError("A pack must contain at least one card")

    rng = rng or random.Random()
    catalog = await list_cards(session)

    pulled: list[PulledCard] = []
    for _ in range(count):
        tier = policy.choose(rng)

        if catalog:
            bucket = [c for c in catalog if c.rarity == tier.name] or catalog
            card = rng.choice(bucket)
        else:
            card = await create_card(
                session,
                name=generate_card_name(rng),
                rarity=tier.name,
                coins_per_hour=tier.coins_per_hour,
            )
            catalog.append(card)
            logger.info("Bootstrapped catalog card %d (%s)", card.id, card.rarity)

        entry = await add_inventory(session, user_id, card.id)
        pulled.append(_to_pulled(entry.id, card))

    logger.info("User %d opened a pack of %d", user_id, count)
    return pulled


def _to_pulled(inventory_id: int, card: CardDB) -> PulledCard:
    return PulledCard(
        inventory_id=inventory_id,
        card_id=card.id,
        name=card.name,
        rarity=card.rarity,
        coins_per_hour=card.coins_per_hour,
        image_file_id=card.image_file_id,
    )
