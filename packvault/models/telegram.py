"""
Subset of the Telegram Bot API types the webhook reads and writes.

Unknown fields are ignored, so new Bot API versions do not break parsing.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TelegramUser(BaseModel):
    id: int
    username: str | None = None


class TelegramChat(BaseModel):
    id: int


class PhotoSize(BaseModel):
    file_id: str
    width: int = 0
    height: int = 0


class TelegramMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id: int
    from_user: TelegramUser | None = Field(default=None, alias="from")
    chat: TelegramChat
    text: str | None = None
    caption: str | None = None
    photo: list[PhotoSize] | None = None

    @property
    def largest_photo(self) -> PhotoSize | None:
        # Telegram lists sizes smallest first
        return self.photo[-1] if self.photo else None


class CallbackQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    from_user: TelegramUser = Field(alias="from")
    message: TelegramMessage | None = None
    data: str | None = None


class Update(BaseModel):
    update_id: int
    message: TelegramMessage | None = None
    callback_query: CallbackQuery | None = None


class BotReply(BaseModel):
    """A sendMessage call returned in the webhook response body."""

    method: str = "sendMessage"
    chat_id: int
    text: str
    reply_markup: dict[str, Any] | None = None
