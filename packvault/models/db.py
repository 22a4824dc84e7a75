"""
SQLAlchemy ORM models for persistent storage.

Four tables: the card catalog, user accounts, owned card copies
(inventory) and trade requests. Deleting a user or a card cascades
to dependent rows at the database level.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from packvault.models.trade import TradeStatus

# "Never opened a pack" - eligible for a free pack immediately
NEVER = datetime(1970, 1, 1, tzinfo=UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CardDB(Base):
    """
    A card definition in the catalog.

    Cards are templates; an owned copy is an InventoryDB row.
    """

    __tablename__ = "cards"
    __table_args__ = (CheckConstraint("coins_per_hour >= 0", name="ck_cards_income"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text)
    rarity: Mapped[str] = mapped_column(String(32), index=True)
    image_file_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    coins_per_hour: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<CardDB(id={self.id}, name={self.name}, rarity={self.rarity})>"


class UserDB(Base):
    """A player account keyed by the transport's numeric user id."""

    __tablename__ = "users"

    tg_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    coins: Mapped[int] = mapped_column(BigInteger, default=0)
    last_pack: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=NEVER)

    inventory: Mapped[list["InventoryDB"]] = relationship(
        back_populates="owner", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<UserDB(tg_id={self.tg_id}, coins={self.coins})>"


class InventoryDB(Base):
    """One owned copy of a catalog card."""

    __tablename__ = "inventory"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.tg_id", ondelete="CASCADE"), index=True
    )
    card_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cards.id", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    owner: Mapped["UserDB"] = relationship(back_populates="inventory")
    card: Mapped["CardDB"] = relationship()

    def __repr__(self) -> str:
        return f"<InventoryDB(id={self.id}, user={self.user_id}, card={self.card_id})>"


class TradeDB(Base):
    """
    A one-way trade request: the proposer offers one inventory copy to
    the target, who accepts or rejects it.
    """

    __tablename__ = "trades"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    from_user: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.tg_id", ondelete="CASCADE"), index=True
    )
    to_user: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.tg_id", ondelete="CASCADE"), index=True
    )
    offered_inventory_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("inventory.id", ondelete="CASCADE")
    )
    status: Mapped[str] = mapped_column(String(16), default=TradeStatus.PENDING.value, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def trade_status(self) -> TradeStatus:
        return TradeStatus(self.status)

    def __repr__(self) -> str:
        return f"<TradeDB(id={self.id}, {self.from_user}->{self.to_user}, status={self.status})>"
