"""
MindWell - Guided Meditation
Personalised meditation scripts from the language model and a history of
completed sessions.
"""

import logging
import re
from typing import Optional

from pydantic import BaseModel

from mindwell.core.errors import InputValidationError
from mindwell.core.utc import utc_now_iso
from mindwell.services.kv_store import KeyValueStore, get_kv_store
from mindwell.services.llm_client import (
    ChatCompletionClient,
    CompletionError,
    get_completion_client,
)

logger = logging.getLogger(__name__)

MEDITATION_HISTORY_KEY = "@meditation_history"

EMPTY_SCRIPT_MESSAGE = "Could not generate script. Try again."
ERROR_SCRIPT_MESSAGE = "Error generating meditation script."

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


class MeditationScript(BaseModel):
    prompt: str
    script: str
    steps: list[str]
    generated: bool  # False when a fixed message replaced the script


class MeditationSession(BaseModel):
    date: str
    script: str
    user_prompt: str


def split_steps(script: str) -> list[str]:
    """
    Break a script into steps for guided playback: paragraphs first, and
    a single-paragraph script into sentences.
    """
    paragraphs = [p.strip() for p in re.split(r"\n\s*\n", script) if p.strip()]
    if len(paragraphs) > 1:
        return paragraphs
    return [s.strip() for s in _SENTENCE_END.split(script.strip()) if s.strip()]


class MeditationService:

    def __init__(
        self,
        storage: Optional[KeyValueStore] = None,
        client: Optional[ChatCompletionClient] = None,
    ):
        self.storage = storage or get_kv_store()
        self.client = client or get_completion_client()

    async def generate_script(self, prompt: str) -> MeditationScript:
        prompt = (prompt or "").strip()
        if not prompt:
            raise InputValidationError(
                "Please enter your mood or focus for the session.",
                title="Missing Focus",
            )

        generated = True
        try:
            script = (
                await self.client.complete(
                    f"Generate a personalized meditation script for: {prompt}"
                )
            ).strip()
            if not script:
                script = EMPTY_SCRIPT_MESSAGE
                generated = False
        except CompletionError as e:
            logger.warning("Meditation script generation failed: %s", e)
            script = ERROR_SCRIPT_MESSAGE
            generated = False

        return MeditationScript(
            prompt=prompt,
            script=script,
            steps=split_steps(script) if generated else [],
            generated=generated,
        )

    async def complete_session(self, prompt: str, script: str) -> MeditationSession:
        """Record a finished session at the front of the history."""
        session = MeditationSession(date=utc_now_iso(), script=script, user_prompt=prompt)
        sessions = await self.sessions()
        updated = [session, *sessions]
        await self.storage.set_json(MEDITATION_HISTORY_KEY, [s.model_dump() for s in updated])
        return session

    async def sessions(self) -> list[MeditationSession]:
        items = await self.storage.get_json(MEDITATION_HISTORY_KEY, default=[])
        return [MeditationSession.model_validate(item) for item in items]


# Singleton instance
_meditation_service: Optional[MeditationService] = None


def get_meditation_service() -> MeditationService:
    """Get or create the meditation service."""
    global _meditation_service
    if _meditation_service is None:
        _meditation_service = MeditationService()
    return _meditation_service
