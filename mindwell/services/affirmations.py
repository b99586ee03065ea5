"""
Daily Affirmations
==================

Affirmation library (defaults + custom + AI generated), favourites,
reminders and the daily practice streak.

Streak rule, evaluated once per UTC day:
- already practised today       -> unchanged
- never practised               -> 1
- last practised yesterday      -> streak + 1
- any older day                 -> reset to 1

Adding or generating an affirmation counts as practice.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from pydantic import BaseModel, Field

from mindwell.core.errors import GenerationError, InputValidationError, NotFoundError
from mindwell.core.utc import EpochMillisIds, utc_today
from mindwell.services.kv_store import KeyValueStore, get_kv_store
from mindwell.services.llm_client import (
    ChatCompletionClient,
    CompletionError,
    get_completion_client,
)

logger = logging.getLogger(__name__)

AFFIRMATIONS_KEY = "@affirmations"
REMINDERS_KEY = "@affirmation_reminders"
STREAK_KEY = "@affirmation_streak"
LAST_PRACTICED_KEY = "@affirmation_last_practiced"

CATEGORIES = ("confidence", "calm", "gratitude", "custom", "ai")
STREAK_REWARD_EVERY = 10


class Affirmation(BaseModel):
    id: int
    text: str
    category: str = "custom"
    is_favorite: bool = False
    is_custom: bool = False
    is_ai: bool = False


class Reminder(BaseModel):
    id: int
    time: str
    days: list[str] = Field(default_factory=lambda: ["Every day"])
    active: bool = True


class StreakState(BaseModel):
    streak: int = 0
    last_practiced: Optional[date] = None
    practiced_today: bool = False
    days_until_reward: int = STREAK_REWARD_EVERY


DEFAULT_AFFIRMATIONS = [
    Affirmation(id=1, text="I am resilient and can handle life's challenges with strength.", category="confidence", is_favorite=True),
    Affirmation(id=2, text="I breathe in calmness and breathe out tension. I am at peace.", category="calm"),
    Affirmation(id=3, text="I am grateful for the love and support in my life.", category="gratitude", is_favorite=True),
    Affirmation(id=4, text="My thoughts and feelings are valid. I honor my experience.", category="confidence"),
    Affirmation(id=5, text="I choose to focus on what I can control and let go of what I cannot.", category="calm"),
]

DEFAULT_REMINDERS = [
    Reminder(id=1, time="8:00 AM", days=["Mon", "Wed", "Fri"], active=True),
    Reminder(id=2, time="9:30 PM", days=["Every day"], active=True),
]


def advance_streak(streak: int, last_practiced: Optional[date], today: date) -> int:
    """Apply the daily streak rule and return the new streak."""
    if last_practiced == today:
        return streak
    if last_practiced is None:
        return 1
    if today - last_practiced == timedelta(days=1):
        return streak + 1
    return 1


def days_until_reward(streak: int) -> int:
    return STREAK_REWARD_EVERY - (streak % STREAK_REWARD_EVERY)


class AffirmationService:
    """Affirmations, reminders and streak, persisted in the key-value store."""

    def __init__(
        self,
        storage: Optional[KeyValueStore] = None,
        client: Optional[ChatCompletionClient] = None,
    ):
        self.storage = storage or get_kv_store()
        self.client = client or get_completion_client()
        self.ids = EpochMillisIds()

    # -------------------------------------------------------------------------
    # Affirmations
    # -------------------------------------------------------------------------

    async def list_affirmations(self, category: str = "all") -> list[Affirmation]:
        affirmations = await self._load_affirmations()
        if category == "all":
            return affirmations
        if category == "custom":
            return [a for a in affirmations if a.is_custom]
        if category == "ai":
            return [a for a in affirmations if a.is_custom and a.is_ai]
        return [a for a in affirmations if a.category == category]

    async def create(self, text: str, category: str = "custom") -> Affirmation:
        text = (text or "").strip()
        if not text:
            raise InputValidationError("Please enter an affirmation.", title="Empty Affirmation")
        affirmation = Affirmation(
            id=self.ids.next_id(),
            text=text,
            category=category,
            is_custom=True,
        )
        await self._prepend(affirmation)
        await self.practice()
        return affirmation

    async def update(
        self,
        affirmation_id: int,
        text: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Affirmation:
        affirmations = await self._load_affirmations()
        target = self._find(affirmations, affirmation_id)
        if text is not None:
            if not text.strip():
                raise InputValidationError("Please enter an affirmation.", title="Empty Affirmation")
            target.text = text.strip()
        if category is not None:
            target.category = category
        await self._save_affirmations(affirmations)
        return target

    async def delete(self, affirmation_id: int) -> None:
        affirmations = await self._load_affirmations()
        self._find(affirmations, affirmation_id)
        await self._save_affirmations([a for a in affirmations if a.id != affirmation_id])

    async def toggle_favorite(self, affirmation_id: int) -> Affirmation:
        affirmations = await self._load_affirmations()
        target = self._find(affirmations, affirmation_id)
        target.is_favorite = not target.is_favorite
        await self._save_affirmations(affirmations)
        return target

    async def generate(self, prompt: str = "") -> Affirmation:
        """Ask the language model for a new affirmation."""
        prompt = (prompt or "").strip()
        request = (
            f"Generate a daily affirmation for: {prompt}"
            if prompt
            else "Generate a daily affirmation."
        )
        try:
            text = (await self.client.complete(request)).strip()
        except CompletionError as e:
            logger.warning("Affirmation generation failed: %s", e)
            raise GenerationError("Could not generate affirmation.") from e
        if not text:
            raise GenerationError("Could not generate affirmation.")

        affirmation = Affirmation(
            id=self.ids.next_id(),
            text=text,
            category="ai",
            is_custom=True,
            is_ai=True,
        )
        await self._prepend(affirmation)
        await self.practice()
        logger.info("Added AI affirmation %s", affirmation.id)
        return affirmation

    # -------------------------------------------------------------------------
    # Streak
    # -------------------------------------------------------------------------

    async def streak(self) -> StreakState:
        streak, last = await self._load_streak()
        return self._streak_state(streak, last)

    async def practice(self, today: Optional[date] = None) -> StreakState:
        today = today or utc_today()
        streak, last = await self._load_streak()
        new_streak = advance_streak(streak, last, today)
        if last != today:
            await self.storage.set(STREAK_KEY, str(new_streak))
            await self.storage.set(LAST_PRACTICED_KEY, today.isoformat())
        return self._streak_state(new_streak, today, today)

    # -------------------------------------------------------------------------
    # Reminders
    # -------------------------------------------------------------------------

    async def list_reminders(self) -> list[Reminder]:
        items = await self.storage.get_json(REMINDERS_KEY)
        if items is None:
            return [r.model_copy() for r in DEFAULT_REMINDERS]
        return [Reminder.model_validate(item) for item in items]

    async def create_reminder(self, time: str, days: list[str], active: bool = True) -> Reminder:
        if not (time or "").strip():
            raise InputValidationError("Please enter a reminder time.", title="Invalid Reminder")
        reminder = Reminder(id=self.ids.next_id(), time=time.strip(), days=days or ["Every day"], active=active)
        reminders = await self.list_reminders()
        await self._save_reminders([reminder, *reminders])
        return reminder

    async def update_reminder(
        self,
        reminder_id: int,
        time: Optional[str] = None,
        days: Optional[list[str]] = None,
        active: Optional[bool] = None,
    ) -> Reminder:
        reminders = await self.list_reminders()
        target = next((r for r in reminders if r.id == reminder_id), None)
        if target is None:
            raise NotFoundError("Reminder not found.")
        if time is not None:
            if not time.strip():
                raise InputValidationError("Please enter a reminder time.", title="Invalid Reminder")
            target.time = time.strip()
        if days is not None:
            target.days = days
        if active is not None:
            target.active = active
        await self._save_reminders(reminders)
        return target

    async def delete_reminder(self, reminder_id: int) -> None:
        reminders = await self.list_reminders()
        if not any(r.id == reminder_id for r in reminders):
            raise NotFoundError("Reminder not found.")
        await self._save_reminders([r for r in reminders if r.id != reminder_id])

    # -------------------------------------------------------------------------
    # Storage helpers
    # -------------------------------------------------------------------------

    async def _load_affirmations(self) -> list[Affirmation]:
        items = await self.storage.get_json(AFFIRMATIONS_KEY)
        if items is None:
            return [a.model_copy() for a in DEFAULT_AFFIRMATIONS]
        return [Affirmation.model_validate(item) for item in items]

    async def _save_affirmations(self, affirmations: list[Affirmation]) -> None:
        await self.storage.set_json(AFFIRMATIONS_KEY, [a.model_dump() for a in affirmations])

    async def _prepend(self, affirmation: Affirmation) -> None:
        affirmations = await self._load_affirmations()
        await self._save_affirmations([affirmation, *affirmations])

    async def _save_reminders(self, reminders: list[Reminder]) -> None:
        await self.storage.set_json(REMINDERS_KEY, [r.model_dump() for r in reminders])

    async def _load_streak(self) -> tuple[int, Optional[date]]:
        raw_streak = await self.storage.get(STREAK_KEY)
        raw_last = await self.storage.get(LAST_PRACTICED_KEY)
        streak = int(raw_streak) if raw_streak else 0
        last = date.fromisoformat(raw_last) if raw_last else None
        return streak, last

    @staticmethod
    def _streak_state(streak: int, last: Optional[date], today: Optional[date] = None) -> StreakState:
        today = today or utc_today()
        return StreakState(
            streak=streak,
            last_practiced=last,
            practiced_today=last == today,
            days_until_reward=days_until_reward(streak),
        )

    @staticmethod
    def _find(affirmations: list[Affirmation], affirmation_id: int) -> Affirmation:
        for affirmation in affirmations:
            if affirmation.id == affirmation_id:
                return affirmation
        raise NotFoundError("Affirmation not found.")


# Singleton instance
_affirmation_service: Optional[AffirmationService] = None


def get_affirmation_service() -> AffirmationService:
    """Get or create the affirmation service."""
    global _affirmation_service
    if _affirmation_service is None:
        _affirmation_service = AffirmationService()
    return _affirmation_service
