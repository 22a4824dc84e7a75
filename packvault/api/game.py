"""
Game API endpoints.

JSON access to accounts, packs, inventory and trades. Game errors are
turned into `GameErrorResponse` bodies by `game_error_handler`.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from packvault.db.database import get_session
from packvault.models.db import InventoryDB, TradeDB
from packvault.models.errors import CooldownActive, ErrorKind, GameError
from packvault.services.inventory import view_inventory
from packvault.services.ledger import (
    DEFAULT_BUNDLES,
    PackResult,
    buy_bundle,
    claim_free_pack,
    get_account,
)
from packvault.services.notifier import Notifier, default_notifier
from packvault.services.trades import (
    accept_trade,
    incoming_trades,
    propose_trade,
    reject_trade,
)

router = APIRouter(tags=["game"])


class GameErrorResponse(BaseModel):
    """Body returned for any game rule failure."""

    kind: ErrorKind
    message: str
    retry_after_minutes: int | None = None


class AccountResponse(BaseModel):
    user_id: int
    coins: int
    last_pack: datetime
    free_pack_in_minutes: int = Field(
        ...,
        description="Minutes until the free pack is available (0 = ready)",
    )


class CardResponse(BaseModel):
    inventory_id: int
    card_id: int
    name: str
    rarity: str
    coins_per_hour: int
    image_file_id: str | None = None


class PackResponse(BaseModel):
    user_id: int
    price: int = 0
    cards: list[CardResponse] = Field(default_factory=list)


class InventoryResponse(BaseModel):
    user_id: int
    cards: list[CardResponse] = Field(default_factory=list)
    count: int = 0
    income_per_hour: int = 0


class BundleResponse(BaseModel):
    key: str
    count: int
    price: int


class TradeCreateRequest(BaseModel):
    from_user: int
    inventory_id: int
    to_user: int


class TradeActionRequest(BaseModel):
    user_id: int = Field(..., description="Player resolving the trade (must be its target)")


class TradeResponse(BaseModel):
    id: int
    from_user: int
    to_user: int
    offered_inventory_id: int
    status: str


class TradeListResponse(BaseModel):
    user_id: int
    trades: list[TradeResponse]
    count: int


async def game_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Translate a GameError into a short JSON explanation."""
    if not isinstance(exc, GameError):
        raise exc
    body = GameErrorResponse(
        kind=exc.kind,
        message=exc.message,
        retry_after_minutes=exc.remaining_minutes if isinstance(exc, CooldownActive) else None,
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


def _pack_response(result: PackResult) -> PackResponse:
    return PackResponse(
        user_id=result.user_id,
        price=result.price,
        cards=[
            CardResponse(
                inventory_id=c.inventory_id,
                card_id=c.card_id,
                name=c.name,
                rarity=c.rarity,
                coins_per_hour=c.coins_per_hour,
                image_file_id=c.image_file_id,
            )
            for c in result.cards
        ],
    )


def _card_response(entry: InventoryDB) -> CardResponse:
    return CardResponse(
        inventory_id=entry.id,
        card_id=entry.card.id,
        name=entry.card.name,
        rarity=entry.card.rarity,
        coins_per_hour=entry.card.coins_per_hour,
        image_file_id=entry.card.image_file_id,
    )


def _trade_response(trade: TradeDB) -> TradeResponse:
    return TradeResponse(
        id=trade.id,
        from_user=trade.from_user,
        to_user=trade.to_user,
        offered_inventory_id=trade.offered_inventory_id,
        status=trade.status,
    )


@router.get("/shop", response_model=list[BundleResponse])
async def list_bundles() -> list[BundleResponse]:
    """Packs for sale."""
    return [BundleResponse(key=b.key, count=b.count, price=b.price) for b in DEFAULT_BUNDLES]


@router.get("/users/{user_id}", response_model=AccountResponse)
async def get_user_account(
    user_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> AccountResponse:
    """Balance and free pack readiness. Creates the account on first use."""
    account = await get_account(session, user_id)
    return AccountResponse(
        user_id=account.user_id,
        coins=account.coins,
        last_pack=account.last_pack,
        free_pack_in_minutes=account.free_pack_in_minutes,
    )


@router.post("/users/{user_id}/packs/free", response_model=PackResponse)
async def open_free_pack(
    user_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PackResponse:
    """
    Open the free pack.

    Returns 429 with `retry_after_minutes` while the cooldown is running.
    """
    result = await claim_free_pack(session, user_id)
    return _pack_response(result)


@router.post("/users/{user_id}/packs/buy/{bundle}", response_model=PackResponse)
async def buy_pack(
    user_id: int,
    bundle: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PackResponse:
    """
    Buy a shop bundle (x2, x3, x10).

    Returns 402 when the balance is too low.
    """
    result = await buy_bundle(session, user_id, bundle)
    return _pack_response(result)


@router.get("/users/{user_id}/inventory", response_model=InventoryResponse)
async def get_inventory(
    user_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> InventoryResponse:
    """All owned copies, newest first."""
    entries = await view_inventory(session, user_id)
    cards = [_card_response(e) for e in entries]
    return InventoryResponse(
        user_id=user_id,
        cards=cards,
        count=len(cards),
        income_per_hour=sum(c.coins_per_hour for c in cards),
    )


@router.get("/users/{user_id}/trades", response_model=TradeListResponse)
async def get_incoming_trades(
    user_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TradeListResponse:
    """Pending trades waiting for this user."""
    trades = await incoming_trades(session, user_id)
    return TradeListResponse(
        user_id=user_id,
        trades=[_trade_response(t) for t in trades],
        count=len(trades),
    )


@router.post("/trades", response_model=TradeResponse, status_code=status.HTTP_201_CREATED)
async def create_trade(
    request: TradeCreateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    notifier: Annotated[Notifier, Depends(default_notifier)],
) -> TradeResponse:
    """Offer an owned copy to another player."""
    trade = await propose_trade(
        session, request.from_user, request.inventory_id, request.to_user, notifier=notifier
    )
    return _trade_response(trade)


@router.post("/trades/{trade_id}/accept", response_model=TradeResponse)
async def accept(
    trade_id: int,
    request: TradeActionRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    notifier: Annotated[Notifier, Depends(default_notifier)],
) -> TradeResponse:
    """Accept a pending trade as its target."""
    trade = await accept_trade(session, trade_id, request.user_id, notifier=notifier)
    return _trade_response(trade)


@router.post("/trades/{trade_id}/reject", response_model=TradeResponse)
async def reject(
    trade_id: int,
    request: TradeActionRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    notifier: Annotated[Notifier, Depends(default_notifier)],
) -> TradeResponse:
    """Reject a pending trade as its target."""
    trade = await reject_trade(session, trade_id, request.user_id, notifier=notifier)
    return _trade_response(trade)
