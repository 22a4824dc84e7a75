"""
Catalog administration.

Only ids listed in ADMIN_IDS may add cards or browse the catalog.
"""

import logging
from collections.abc import Collection

from sqlalchemy.ext.asyncio import AsyncSession

from packvault.config import settings
from packvault.db.database import transaction
from packvault.db.operations import create_card, list_cards
from packvault.models.db import CardDB
from packvault.models.errors import Unauthorized
from packvault.models.rarity import DEFAULT_POLICY, RarityPolicy
from packvault.parsers.commands import parse_card_definition

logger = logging.getLogger(__name__)

CATALOG_PAGE_SIZE = 50


def is_admin(user_id: int, admin_ids: Collection[int] | None = None) -> bool:
    ids = settings.admin_id_set if admin_ids is None else admin_ids
    return user_id in ids


def require_admin(user_id: int, admin_ids: Collection[int] | None = None) -> None:
    if not is_admin(user_id, admin_ids):
        raise Unauthorized()


async def add_card_from_text(
    session: AsyncSession,
    user_id: int,
    text: str,
    image_file_id: str | None = None,
    *,
    admin_ids: Collection[int] | None = None,
    policy: RarityPolicy = DEFAULT_POLICY,
) -> CardDB:
    """
    Add a catalog card from "Name | rarity | coins_per_hour".

    Raises:
        Unauthorized: Caller is not an administrator.
        ValidationError: Malformed definition.
    """
    require_admin(user_id, admin_ids)
    definition = parse_card_definition(text, policy)

    async with transaction(session):
        card = await create_card(
            session,
            name=definition.name,
            rarity=definition.rarity,
            coins_per_hour=definition.coins_per_hour,
            image_file_id=image_file_id,
        )

    logger.info("Admin %d added card %d (%s, %s)", user_id, card.id, card.name, card.rarity)
    return card


async def browse_catalog(
    session: AsyncSession,
    user_id: int,
    *,
    admin_ids: Collection[int] | None = None,
    limit: int = CATALOG_PAGE_SIZE,
) -> list[CardDB]:
    """Newest catalog cards, for administrators."""
    require_admin(user_id, admin_ids)
    return await list_cards(session, limit=limit)
