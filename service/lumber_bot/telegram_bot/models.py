"""
Telegram update models.

Only the fields the bot reads are modelled; everything else in the
payload is ignored.
"""

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from lumber_bot.errors import DecodeError


class TelegramChat(BaseModel):
    id: int


class TelegramMessage(BaseModel):
    message_id: int
    chat: TelegramChat
    text: Optional[str] = None


class TelegramUpdate(BaseModel):
    update_id: int
    message: Optional[TelegramMessage] = None


@dataclass(frozen=True)
class InboundEvent:
    """One incoming update, reduced to what the dispatcher needs."""

    event_id: int
    chat_id: int
    reply_target_id: int
    text: str

    @classmethod
    def from_update(cls, update: TelegramUpdate) -> "InboundEvent":
        message = update.message
        if message is None:
            # Non-message updates still move the cursor forward
            return cls(event_id=update.update_id, chat_id=0, reply_target_id=0, text="")
        return cls(
            event_id=update.update_id,
            chat_id=message.chat.id,
            reply_target_id=message.message_id,
            text=message.text or "",
        )

    @classmethod
    def from_dict(cls, data: Any) -> "InboundEvent":
        """
        Decode a raw update (webhook body or getUpdates item).

        Raises:
            DecodeError: not a valid Telegram update
        """
        try:
            update = TelegramUpdate.model_validate(data)
        except ValidationError as e:
            raise DecodeError(f"Invalid update: {e.error_count()} validation error(s)") from e
        return cls.from_update(update)
