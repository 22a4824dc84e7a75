"""Tests for outbound player notifications."""

import json

import httpx
import pytest
import respx

from packvault.config import settings
from packvault.services.notifier import (
    NullNotifier,
    TelegramNotifier,
    default_notifier,
    dispatch,
    drain,
    inline_keyboard,
)

SEND_URL = "https://api.telegram.org/botTEST:TOKEN/sendMessage"


class TestInlineKeyboard:
    def test_builds_callback_buttons(self) -> None:
        markup = inline_keyboard([[("Accept", "trade_accept:1"), ("Reject", "trade_reject:1")]])

        assert markup == {
            "inline_keyboard": [
                [
                    {"text": "Accept", "callback_data": "trade_accept:1"},
                    {"text": "Reject", "callback_data": "trade_reject:1"},
                ]
            ]
        }


class TestTelegramNotifier:
    """Tests for the Bot API transport (mocked HTTP)."""

    @respx.mock
    async def test_posts_send_message(self) -> None:
        route = respx.post(SEND_URL).mock(return_value=httpx.Response(200, json={"ok": True}))

        await TelegramNotifier("TEST:TOKEN").send(42, "hello")

        assert route.called
        assert json.loads(route.calls.last.request.content) == {"chat_id": 42, "text": "hello"}

    @respx.mock
    async def test_includes_buttons(self) -> None:
        route = respx.post(SEND_URL).mock(return_value=httpx.Response(200, json={"ok": True}))

        await TelegramNotifier("TEST:TOKEN").send(42, "offer", [[("Accept", "trade_accept:3")]])

        body = json.loads(route.calls.last.request.content)
        assert body["reply_markup"] == inline_keyboard([[("Accept", "trade_accept:3")]])

    @respx.mock
    async def test_uses_shared_client(self) -> None:
        route = respx.post("http://bot.local/botT/sendMessage").mock(
            return_value=httpx.Response(200, json={"ok": True})
        )

        async with httpx.AsyncClient() as client:
            await TelegramNotifier("T", "http://bot.local/", client=client).send(1, "hi")

        assert route.call_count == 1

    @respx.mock
    async def test_http_error_raises(self) -> None:
        respx.post(SEND_URL).mock(return_value=httpx.Response(403, json={"ok": False}))

        with pytest.raises(httpx.HTTPStatusError):
            await TelegramNotifier("TEST:TOKEN").send(42, "hello")


class TestDispatch:
    async def test_no_notifier_is_noop(self) -> None:
        assert dispatch(None, 1, "hi") is None

    async def test_delivers_in_background(self, notifier) -> None:
        task = dispatch(notifier, 5, "hi", [[("Ok", "inv")]])
        await drain()

        assert task is not None
        assert task.done()
        assert notifier.sent == [(5, "hi", [[("Ok", "inv")]])]

    async def test_delivery_errors_are_swallowed(self, notifier) -> None:
        notifier.fail = True

        task = dispatch(notifier, 5, "hi")
        await drain()

        assert task is not None
        assert task.exception() is None

    @respx.mock
    async def test_transport_failure_is_swallowed(self) -> None:
        respx.post(SEND_URL).mock(side_effect=httpx.ConnectError("unreachable"))

        task = dispatch(TelegramNotifier("TEST:TOKEN"), 5, "hi")
        await drain()

        assert task is not None
        assert task.exception() is None


class TestDefaultNotifier:
    def test_null_without_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "bot_token", "")

        assert isinstance(default_notifier(), NullNotifier)

    def test_telegram_with_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "bot_token", "TEST:TOKEN")

        assert isinstance(default_notifier(), TelegramNotifier)

    async def test_null_notifier_accepts_messages(self) -> None:
        await NullNotifier().send(1, "dropped")
