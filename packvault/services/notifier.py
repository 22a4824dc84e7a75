"""
Outbound messages to players.

Notifications are fire-and-forget: `dispatch()` schedules delivery as a
background task and returns immediately. Delivery errors are logged and
never reach the operation that triggered them.
"""

import asyncio
import logging
from typing import Any, Protocol

import httpx

from packvault.config import settings

logger = logging.getLogger(__name__)

# (button text, callback data)
Button = tuple[str, str]
ButtonRows = list[list[Button]]

_background_tasks: set[asyncio.Task[None]] = set()


def inline_keyboard(rows: ButtonRows) -> dict[str, Any]:
    """Bot API `reply_markup` for rows of callback buttons."""
    return {
        "inline_keyboard": [
            [{"text": text, "callback_data": data} for text, data in row] for row in rows
        ]
    }


class Notifier(Protocol):
    async def send(self, chat_id: int, text: str, buttons: ButtonRows | None = None) -> None: ...


class NullNotifier:
    """Drops messages. Used when no bot token is configured."""

    async def send(self, chat_id: int, text: str, buttons: ButtonRows | None = None) -> None:
        logger.debug("Notification to %d dropped (no transport): %s", chat_id, text)


class TelegramNotifier:
    """Sends messages through the Telegram Bot API."""

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.telegram.org",
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self._url = f"{api_url.rstrip('/')}/bot{token}/sendMessage"
        self._client = client
        self._timeout = timeout

    async def send(self, chat_id: int, text: str, buttons: ButtonRows | None = None) -> None:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if buttons:
            payload["reply_markup"] = inline_keyboard(buttons)

        if self._client is not None:
            response = await self._client.post(self._url, json=payload)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._url, json=payload)
        response.raise_for_status()


def default_notifier() -> Notifier:
    """Telegram notifier when a token is configured, else a null one."""
    if settings.bot_token:
        return TelegramNotifier(settings.bot_token, settings.telegram_api_url)
    return NullNotifier()


async def _deliver(
    notifier: Notifier, chat_id: int, text: str, buttons: ButtonRows | None
) -> None:
    try:
        await notifier.send(chat_id, text, buttons)
    except Exception as e:
        logger.warning("Failed to notify %d: %s", chat_id, e)


def dispatch(
    notifier: Notifier | None,
    chat_id: int,
    text: str,
    buttons: ButtonRows | None = None,
) -> asyncio.Task[None] | None:
    """Schedule a best-effort notification. Requires a running event loop."""
    if notifier is None:
        return None

    task = asyncio.create_task(_deliver(notifier, chat_id, text, buttons))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


async def drain() -> None:
    """Wait for notifications still in flight (shutdown and tests)."""
    if _background_tasks:
        await asyncio.gather(*list(_background_tasks), return_exceptions=True)
