"""
Telegram webhook.

Receives Bot API updates and answers in the response body with a
sendMessage call, so replies need no extra request. Messages to other
players (trade notifications) go through the notifier.
"""

import hmac
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from packvault.config import settings
from packvault.db.database import get_session
from packvault.models.telegram import Update
from packvault.services.chat_commands import ChatHandler
from packvault.services.notifier import Notifier, default_notifier

router = APIRouter(prefix="/telegram", tags=["telegram"])


@router.post("/webhook")
async def webhook(
    update: Update,
    session: Annotated[AsyncSession, Depends(get_session)],
    notifier: Annotated[Notifier, Depends(default_notifier)],
    secret_token: Annotated[str | None, Header(alias="X-Telegram-Bot-Api-Secret-Token")] = None,
) -> dict[str, Any]:
    """
    Handle one update.

    Returns the reply as a Bot API method call, or an empty object when
    there is nothing to say.
    """
    if settings.webhook_secret and not hmac.compare_digest(
        (secret_token or "").encode(), settings.webhook_secret.encode()
    ):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid secret token")

    reply = await ChatHandler(session, notifier).handle(update)
    if reply is None:
        return {}
    return reply.model_dump(exclude_none=True)
