"""Inbound chat events, validated at the webhook boundary.

Telegram updates are loosely shaped dictionaries. Only two variants matter to
the ledger: a text message and an inline-button callback. Everything else is
ignored by returning ``None`` from :func:`parse_update`.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

PRIVATE_CHAT = "private"


class ChatRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    type: str = PRIVATE_CHAT


class UserRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    first_name: str = ""

    @property
    def display_name(self) -> str:
        return self.first_name or str(self.id)


class ReplyRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: Optional[str] = None


class MessageEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["message"] = "message"
    text: str
    chat: ChatRef
    from_user: UserRef = Field(alias="from")
    reply_to_message: Optional[ReplyRef] = None

    @property
    def is_private(self) -> bool:
        return self.chat.type == PRIVATE_CHAT

    @property
    def reply_text(self) -> Optional[str]:
        if self.reply_to_message is None:
            return None
        return self.reply_to_message.text or None


class CallbackEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["callback"] = "callback"
    id: Optional[str] = None
    data: str
    chat_id: int
    from_user: UserRef = Field(alias="from")

    def split(self) -> tuple[str, str]:
        """Return ``(tag, payload)`` for data shaped like ``category_Groceries``."""
        tag, _, payload = self.data.partition("_")
        return tag, payload


InboundEvent = Annotated[Union[MessageEvent, CallbackEvent], Field(discriminator="kind")]
_event_adapter: TypeAdapter[MessageEvent | CallbackEvent] = TypeAdapter(InboundEvent)


def _candidate(payload: dict[str, Any]) -> Optional[dict[str, Any]]:
    message = payload.get("message")
    if isinstance(message, dict) and isinstance(message.get("text"), str):
        return {"kind": "message", **message}

    query = payload.get("callback_query")
    if isinstance(query, dict):
        query_message = query.get("message")
        chat = query_message.get("chat") if isinstance(query_message, dict) else None
        return {
            "kind": "callback",
            "id": query.get("id"),
            "data": query.get("data"),
            "chat_id": chat.get("id") if isinstance(chat, dict) else None,
            "from": query.get("from"),
        }
    return None


def parse_update(payload: Any) -> MessageEvent | CallbackEvent | None:
    """Turn a raw Telegram update into an event, or ``None`` when it is not one we handle."""
    if not isinstance(payload, dict):
        return None
    candidate = _candidate(payload)
    if candidate is None:
        return None
    try:
        return _event_adapter.validate_python(candidate)
    except ValidationError as exc:
        logger.debug("Ignoring malformed update %s: %s", payload.get("update_id"), exc)
        return None
