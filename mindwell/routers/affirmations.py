"""
Daily Affirmations Router
=========================
Affirmation library, favourites, AI generation, reminders and streak.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from mindwell.services.affirmations import (
    Affirmation,
    AffirmationService,
    Reminder,
    StreakState,
    get_affirmation_service,
)


router = APIRouter(prefix="/api/affirmations", tags=["Affirmations"])


# =============================================================================
# Schemas
# =============================================================================

class AffirmationCreate(BaseModel):
    text: str = ""
    category: str = "custom"


class AffirmationUpdate(BaseModel):
    text: Optional[str] = None
    category: Optional[str] = None


class GenerateRequest(BaseModel):
    prompt: str = Field("", description="Optional theme, e.g. 'exam stress'")


class ReminderCreate(BaseModel):
    time: str = ""
    days: list[str] = Field(default_factory=lambda: ["Every day"])
    active: bool = True


class ReminderUpdate(BaseModel):
    time: Optional[str] = None
    days: Optional[list[str]] = None
    active: Optional[bool] = None


# =============================================================================
# Streak and reminders (declared before /{affirmation_id})
# =============================================================================

@router.get("/streak", response_model=StreakState)
async def get_streak(service: AffirmationService = Depends(get_affirmation_service)):
    return await service.streak()


@router.post("/practice", response_model=StreakState)
async def record_practice(service: AffirmationService = Depends(get_affirmation_service)):
    """Count today as practised and advance the streak."""
    return await service.practice()


@router.post("/generate", response_model=Affirmation, status_code=status.HTTP_201_CREATED)
async def generate_affirmation(
    body: GenerateRequest,
    service: AffirmationService = Depends(get_affirmation_service),
):
    return await service.generate(body.prompt)


@router.get("/reminders", response_model=list[Reminder])
async def list_reminders(service: AffirmationService = Depends(get_affirmation_service)):
    return await service.list_reminders()


@router.post("/reminders", response_model=Reminder, status_code=status.HTTP_201_CREATED)
async def create_reminder(
    body: ReminderCreate,
    service: AffirmationService = Depends(get_affirmation_service),
):
    return await service.create_reminder(body.time, body.days, body.active)


@router.put("/reminders/{reminder_id}", response_model=Reminder)
async def update_reminder(
    reminder_id: int,
    body: ReminderUpdate,
    service: AffirmationService = Depends(get_affirmation_service),
):
    return await service.update_reminder(reminder_id, body.time, body.days, body.active)


@router.delete("/reminders/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reminder(
    reminder_id: int,
    service: AffirmationService = Depends(get_affirmation_service),
):
    await service.delete_reminder(reminder_id)


# =============================================================================
# Affirmations
# =============================================================================

@router.get("/", response_model=list[Affirmation])
async def list_affirmations(
    category: str = Query("all", description="all, confidence, calm, gratitude, custom or ai"),
    service: AffirmationService = Depends(get_affirmation_service),
):
    return await service.list_affirmations(category)


@router.post("/", response_model=Affirmation, status_code=status.HTTP_201_CREATED)
async def create_affirmation(
    body: AffirmationCreate,
    service: AffirmationService = Depends(get_affirmation_service),
):
    return await service.create(body.text, body.category)


@router.put("/{affirmation_id}", response_model=Affirmation)
async def update_affirmation(
    affirmation_id: int,
    body: AffirmationUpdate,
    service: AffirmationService = Depends(get_affirmation_service),
):
    return await service.update(affirmation_id, body.text, body.category)


@router.delete("/{affirmation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_affirmation(
    affirmation_id: int,
    service: AffirmationService = Depends(get_affirmation_service),
):
    await service.delete(affirmation_id)


@router.post("/{affirmation_id}/favorite", response_model=Affirmation)
async def toggle_favorite(
    affirmation_id: int,
    service: AffirmationService = Depends(get_affirmation_service),
):
    return await service.toggle_favorite(affirmation_id)
