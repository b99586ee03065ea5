"""
Guided Meditation Router
Generate a personalised script and record completed sessions.
"""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from mindwell.services.meditation import (
    MeditationScript,
    MeditationService,
    MeditationSession,
    get_meditation_service,
)


router = APIRouter(prefix="/api/meditation", tags=["Meditation"])


class ScriptRequest(BaseModel):
    prompt: str = ""


class SessionCreate(BaseModel):
    prompt: str
    script: str


@router.post("/script", response_model=MeditationScript)
async def generate_script(
    body: ScriptRequest,
    service: MeditationService = Depends(get_meditation_service),
):
    return await service.generate_script(body.prompt)


@router.get("/sessions", response_model=list[MeditationSession])
async def list_sessions(service: MeditationService = Depends(get_meditation_service)):
    return await service.sessions()


@router.post("/sessions", response_model=MeditationSession, status_code=status.HTTP_201_CREATED)
async def complete_session(
    body: SessionCreate,
    service: MeditationService = Depends(get_meditation_service),
):
    return await service.complete_session(body.prompt, body.script)
