"""Tests for the Telegram webhook and chat command handling."""

import hmac
from typing import Any
from unittest.mock import patch

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from packvault.config import settings
from packvault.models.telegram import Update
from packvault.services.chat_commands import GENERIC_FAILURE, MAIN_MENU, ChatHandler
from packvault.services.notifier import drain, inline_keyboard

ADMIN = 100


def _message(user_id: int, text: str | None = None, **extra: Any) -> dict[str, Any]:
    return {
        "update_id": 1,
        "message": {
            "message_id": 1,
            "from": {"id": user_id, "username": f"user{user_id}"},
            "chat": {"id": user_id},
            "text": text,
            **extra,
        },
    }


def _callback(user_id: int, data: str) -> dict[str, Any]:
    return {
        "update_id": 2,
        "callback_query": {
            "id": "cb",
            "from": {"id": user_id},
            "message": {"message_id": 5, "chat": {"id": user_id}},
            "data": data,
        },
    }


async def _send(client: AsyncClient, update: dict[str, Any]) -> dict[str, Any]:
    response = await client.post("/telegram/webhook", json=update)
    assert response.status_code == 200
    body: dict[str, Any] = response.json()
    return body


@pytest.fixture
def admins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "admin_ids", str(ADMIN))


@pytest.fixture
def no_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "webhook_secret", "")


@pytest.mark.usefixtures("no_secret")
class TestMessages:
    async def test_start_shows_menu(self, client: AsyncClient) -> None:
        reply = await _send(client, _message(7, "/start"))

        assert reply["method"] == "sendMessage"
        assert reply["chat_id"] == 7
        assert "Balance: 0 coins" in reply["text"]
        assert reply["reply_markup"] == inline_keyboard(MAIN_MENU)

    async def test_unknown_text_points_to_start(self, client: AsyncClient) -> None:
        reply = await _send(client, _message(7, "hello"))

        assert reply["text"] == "Use /start to open the menu"
        assert "reply_markup" not in reply

    async def test_update_without_message(self, client: AsyncClient) -> None:
        assert await _send(client, {"update_id": 3}) == {}

    async def test_malformed_trade_shows_usage(self, client: AsyncClient) -> None:
        reply = await _send(client, _message(7, "inv#12"))

        assert reply["text"].startswith("Format: inv#<id>")


@pytest.mark.usefixtures("no_secret")
class TestPackCallbacks:
    async def test_free_pack_then_cooldown(self, client: AsyncClient) -> None:
        first = await _send(client, _callback(7, "free_pack"))
        second = await _send(client, _callback(7, "free_pack"))

        lines = first["text"].split("\n")
        assert lines[0] == "You opened a pack!"
        assert len(lines) == 6
        assert all(line.startswith("inv#") for line in lines[1:])
        assert second["text"] == "Free pack available in ~30 min."

    async def test_shop_lists_bundles(self, client: AsyncClient) -> None:
        reply = await _send(client, _callback(7, "shop"))

        rows = reply["reply_markup"]["inline_keyboard"]
        assert [row[0]["callback_data"] for row in rows] == ["buy:x2", "buy:x3", "buy:x10"]

    async def test_buy_without_coins(self, client: AsyncClient) -> None:
        reply = await _send(client, _callback(7, "buy:x2"))

        assert reply["text"] == "Not enough coins"

    async def test_buy_with_coins(self, client: AsyncClient, fund) -> None:
        await fund(7, 20)

        reply = await _send(client, _callback(7, "buy:x2"))

        assert reply["text"].startswith("You bought a pack:")
        assert len(reply["text"].split("\n")) == 3

    async def test_inventory(self, client: AsyncClient) -> None:
        empty = await _send(client, _callback(7, "inv"))
        await _send(client, _callback(7, "free_pack"))
        full = await _send(client, _callback(7, "inv"))

        assert empty["text"] == "Your inventory is empty"
        assert full["text"].startswith("Your cards:")
        assert len(full["text"].split("\n")) == 6
        assert full["reply_markup"]["inline_keyboard"][0][0]["callback_data"] == "trade_start"

    async def test_unknown_action(self, client: AsyncClient) -> None:
        reply = await _send(client, _callback(7, "dance"))

        assert reply["text"] == "Unknown action"


@pytest.mark.usefixtures("no_secret")
class TestTradeFlow:
    async def _first_inventory_id(self, client: AsyncClient, user_id: int) -> int:
        await _send(client, _callback(user_id, "free_pack"))
        inventory = (await client.get(f"/users/{user_id}/inventory")).json()
        return int(inventory["cards"][0]["inventory_id"])

    async def test_offer_and_accept(self, client: AsyncClient, notifier) -> None:
        inv = await self._first_inventory_id(client, 1)

        offer = await _send(client, _message(1, f"inv#{inv} 2"))
        assert offer["text"] == "Trade offer sent to 2. Trade id: 1"

        listing = await _send(client, _callback(2, "trades"))
        assert listing["text"] == f"Pending offers:\n#1 from 1: inv#{inv}"
        assert listing["reply_markup"]["inline_keyboard"][0][0]["callback_data"] == (
            "trade_accept:1"
        )

        accepted = await _send(client, _callback(2, "trade_accept:1"))
        assert accepted["text"] == "Trade #1 accepted, the card is yours"

        again = await _send(client, _callback(2, "trade_accept:1"))
        assert again["text"] == "Trade already accepted"

        await drain()
        assert notifier.sent[0][0] == 2
        assert notifier.sent[0][2] == [
            [("Accept", "trade_accept:1"), ("Reject", "trade_reject:1")]
        ]
        assert notifier.sent[1] == (1, "Your trade #1 was accepted", None)

    async def test_reject(self, client: AsyncClient) -> None:
        inv = await self._first_inventory_id(client, 1)
        await _send(client, _message(1, f"inv#{inv} to 2"))

        reply = await _send(client, _callback(2, "trade_reject:1"))

        assert reply["text"] == "Trade #1 rejected"

    async def test_offer_foreign_card(self, client: AsyncClient) -> None:
        inv = await self._first_inventory_id(client, 1)

        reply = await _send(client, _message(3, f"inv#{inv} 2"))

        assert reply["text"] == "You are not the owner of this card"

    async def test_only_target_can_accept(self, client: AsyncClient) -> None:
        inv = await self._first_inventory_id(client, 1)
        await _send(client, _message(1, f"inv#{inv} 2"))

        reply = await _send(client, _callback(3, "trade_accept:1"))

        assert reply["text"] == "You cannot resolve this trade"

    async def test_no_pending_trades(self, client: AsyncClient) -> None:
        reply = await _send(client, _callback(2, "trades"))

        assert reply["text"] == "No pending trade offers"

    async def test_bad_trade_id(self, client: AsyncClient) -> None:
        reply = await _send(client, _callback(2, "trade_accept:abc"))

        assert reply["text"] == "Invalid id 'abc'"


@pytest.mark.usefixtures("no_secret", "admins")
class TestAdmin:
    async def test_admin_menu(self, client: AsyncClient) -> None:
        reply = await _send(client, _message(ADMIN, "/admin"))

        assert reply["text"] == "Admin panel"

    async def test_non_admin_denied(self, client: AsyncClient) -> None:
        assert (await _send(client, _message(7, "/admin")))["text"] == "Access denied"
        assert (await _send(client, _callback(7, "admin_list_cards")))["text"] == "Access denied"
        assert (await _send(client, _message(7, "Imp | rare | 3")))["text"] == "Access denied"

    async def test_add_card_from_text(self, client: AsyncClient) -> None:
        reply = await _send(client, _message(ADMIN, "Flame Dragon | epic | 8"))
        listing = await _send(client, _callback(ADMIN, "admin_list_cards"))

        assert reply["text"] == "Card added, id: 1"
        assert listing["text"] == "#1 - Flame Dragon (epic, 8/h)"

    async def test_add_card_from_photo(self, client: AsyncClient) -> None:
        photo = [
            {"file_id": "small", "width": 90, "height": 90},
            {"file_id": "large", "width": 800, "height": 800},
        ]

        reply = await _send(
            client, _message(ADMIN, caption="Imp | legendary | 20", photo=photo)
        )
        pack = (await client.post("/users/7/packs/free")).json()

        assert reply["text"] == "Card added, id: 1"
        assert {c["image_file_id"] for c in pack["cards"]} == {"large"}

    async def test_photo_without_definition_ignored(self, client: AsyncClient) -> None:
        update = _message(ADMIN, caption="look at this", photo=[{"file_id": "x"}])

        assert await _send(client, update) == {}

    async def test_bad_definition(self, client: AsyncClient) -> None:
        reply = await _send(client, _message(ADMIN, "Imp | mythic | 3"))

        assert reply["text"].startswith("Unknown rarity 'mythic'")

    async def test_empty_catalog(self, client: AsyncClient) -> None:
        reply = await _send(client, _callback(ADMIN, "admin_list_cards"))

        assert reply["text"] == "No cards in the catalog"


class TestWebhookSecret:
    async def test_wrong_secret_rejected(
        self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings, "webhook_secret", "s3cret")

        response = await client.post(
            "/telegram/webhook",
            json=_message(7, "/start"),
            headers={"X-Telegram-Bot-Api-Secret-Token": "nope"},
        )

        assert response.status_code == 403

    async def test_matching_secret_accepted(
        self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings, "webhook_secret", "s3cret")

        response = await client.post(
            "/telegram/webhook",
            json=_message(7, "/start"),
            headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret"},
        )

        assert response.status_code == 200

    async def test_missing_secret_rejected(
        self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings, "webhook_secret", "s3cret")

        response = await client.post("/telegram/webhook", json=_message(7, "/start"))

        assert response.status_code == 403

    async def test_secret_compared_in_constant_time(
        self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings, "webhook_secret", "s3cret")

        with patch(
            "packvault.api.telegram.hmac.compare_digest", wraps=hmac.compare_digest
        ) as compare:
            response = await client.post(
                "/telegram/webhook",
                json=_message(7, "/start"),
                headers={"X-Telegram-Bot-Api-Secret-Token": "s3cre"},
            )

        assert response.status_code == 403
        compare.assert_called_once_with(b"s3cre", b"s3cret")


class TestChatHandler:
    async def test_database_error_gives_generic_reply(self, session: AsyncSession) -> None:
        update = Update.model_validate(_message(7, "/start"))

        with patch(
            "packvault.services.chat_commands.get_account",
            side_effect=SQLAlchemyError("connection lost"),
        ):
            reply = await ChatHandler(session).handle(update)

        assert reply is not None
        assert reply.text == GENERIC_FAILURE

    async def test_explicit_admin_ids(self, session: AsyncSession) -> None:
        update = Update.model_validate(_message(55, "/admin"))

        reply = await ChatHandler(session, admin_ids={55}).handle(update)

        assert reply is not None
        assert reply.text == "Admin panel"
