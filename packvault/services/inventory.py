from sqlalchemy.ext.asyncio import AsyncSession

from packvault.db.database import transaction
from packvault.db.operations import ensure_user, list_inventory
from packvault.models.db import InventoryDB


async def view_inventory(session: AsyncSession, user_id: int) -> list[InventoryDB]:
    """A player's owned copies with their catalog cards, newest first."""
    async with transaction(session):
        await ensure_user(session, user_id)
        return await list_inventory(session, user_id)


def describe_entry(entry: InventoryDB) -> str:
    return f"inv#{entry.id} - {entry.card.name} ({entry.card.rarity})"
