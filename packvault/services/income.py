"""
Passive income.

Each tick credits every player with the summed hourly income of the
cards they own. Players with no income get no write. Each credit runs in
its own short transaction so one failing player does not block the rest.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from packvault.db.database import transaction
from packvault.db.operations import credit_user_coins, income_totals

logger = logging.getLogger(__name__)


@dataclass
class IncomeReport:
    """What a single income tick did."""

    credited: dict[int, int] = field(default_factory=dict)
    failed: list[int] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.credited.values())


async def run_income_tick(session_factory: async_sessionmaker[AsyncSession]) -> IncomeReport:
    """
    Credit one hour of passive income to every earning player.

    Missed ticks are not replayed.
    """
    report = IncomeReport()

    async with session_factory() as session:
        totals = await income_totals(session)

    for user_id, amount in totals:
        try:
            async with session_factory() as session, transaction(session):
                await credit_user_coins(session, user_id, amount)
        except SQLAlchemyError as e:
            logger.error("Failed to credit %d coins to user %d: %s", amount, user_id, e)
            report.failed.append(user_id)
            continue
        report.credited[user_id] = amount

    logger.info(
        "Passive income distributed: %d coins to %d users (%d failed)",
        report.total,
        len(report.credited),
        len(report.failed),
    )
    return report
