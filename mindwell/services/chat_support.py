"""
MindWell - Chat Support Relay
Forwards user messages to the hosted support chatbot and keeps the
conversation transcript.

Wire format: POST {message, role: "user", conversation_id} -> {response}.
One attempt per message, bounded by a fixed timeout. Any failure turns
into a fixed apology so the transcript always gets a bot turn.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from pydantic import BaseModel

from mindwell.core.config import Settings, get_settings
from mindwell.core.errors import InputValidationError
from mindwell.core.utc import utc_now_iso
from mindwell.services.kv_store import KeyValueStore, get_kv_store

logger = logging.getLogger(__name__)

CHAT_MESSAGES_KEY = "@chat_messages"
FALLBACK_REPLY = (
    "I'm sorry, I'm having trouble connecting right now. "
    "Please try again in a moment."
)


class ChatMessage(BaseModel):
    id: str
    text: str
    sender: str  # "user" or "bot"
    timestamp: str


@dataclass
class ChatExchange:
    """Result of one send: both transcript entries and whether we fell back."""
    user_message: ChatMessage
    bot_message: ChatMessage
    fallback: bool


class ChatSupportService:
    """Relay to the remote chat endpoint with a persisted transcript."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        storage: Optional[KeyValueStore] = None,
    ):
        settings = settings or get_settings()
        self.url = settings.chat_support_url
        self.conversation_id = settings.chat_conversation_id
        self.timeout = settings.chat_timeout_seconds
        self.storage = storage or get_kv_store()
        self._counter = 0

    @property
    def is_available(self) -> bool:
        return bool(self.url)

    async def history(self) -> list[ChatMessage]:
        try:
            items = await self.storage.get_json(CHAT_MESSAGES_KEY, default=[])
            return [ChatMessage.model_validate(item) for item in items]
        except Exception as e:
            logger.error("Failed to load chat messages: %s", e)
            return []

    async def clear(self) -> None:
        await self.storage.delete(CHAT_MESSAGES_KEY)

    async def send(self, text: str) -> ChatExchange:
        text = (text or "").strip()
        if not text:
            raise InputValidationError("Please type a message.", title="Empty Message")

        user_message = self._message(text, "user")
        fallback = False
        try:
            reply = await asyncio.wait_for(self._post(text), timeout=self.timeout)
        except (
            httpx.HTTPError,
            httpx.InvalidURL,
            asyncio.TimeoutError,
            ValueError,
            KeyError,
            TypeError,
        ) as e:
            logger.warning("Chat support request failed: %s", e)
            reply = FALLBACK_REPLY
            fallback = True

        bot_message = self._message(reply, "bot")
        await self._append(user_message, bot_message)
        return ChatExchange(user_message=user_message, bot_message=bot_message, fallback=fallback)

    async def _post(self, text: str) -> str:
        if not self.url:
            raise ValueError("CHAT_SUPPORT_URL is not configured")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                self.url,
                json={
                    "message": text,
                    "role": "user",
                    "conversation_id": self.conversation_id,
                },
            )
            response.raise_for_status()
            data = response.json()

        if not isinstance(data, dict):
            raise ValueError(f"Chat endpoint returned {type(data).__name__}, expected an object")
        reply = data["response"]
        if not isinstance(reply, str) or not reply.strip():
            raise ValueError("Chat endpoint returned an empty response")
        return reply

    def _message(self, text: str, sender: str) -> ChatMessage:
        self._counter += 1
        return ChatMessage(
            id=f"{utc_now_iso()}-{self._counter}",
            text=text,
            sender=sender,
            timestamp=utc_now_iso(),
        )

    async def _append(self, *messages: ChatMessage) -> None:
        transcript = await self.history()
        transcript.extend(messages)
        try:
            await self.storage.set_json(
                CHAT_MESSAGES_KEY, [m.model_dump() for m in transcript]
            )
        except Exception as e:
            logger.error("Failed to save chat messages: %s", e)


# Singleton instance
_chat_service: Optional[ChatSupportService] = None


def get_chat_support() -> ChatSupportService:
    """Get or create the chat support service."""
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatSupportService()
    return _chat_service
