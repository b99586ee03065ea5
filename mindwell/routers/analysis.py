"""
Emotion Analysis Router
=======================
Run text, facial and voice analyses and browse each modality's history.

Sessions are identified by the X-Session-Id header; a session owns one
analysis slot per modality.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel, Field

from mindwell.core.errors import NotFoundError
from mindwell.models.analysis import AnalysisResult, AnalysisState, Modality
from mindwell.services.analysis_pipeline import AnalysisPipeline, get_analysis_pipeline
from mindwell.services.history_store import get_history_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/analysis", tags=["Emotion Analysis"])


# =============================================================================
# Schemas
# =============================================================================

class TextAnalysisRequest(BaseModel):
    text: str = Field("", description="Free text describing how you feel")
    context: Optional[str] = Field(None, description="Optional situational context")


class FacialAnalysisRequest(BaseModel):
    image: str = Field("", description="Base64 image or data URL")
    context: Optional[str] = None


class VoiceAnalysisRequest(BaseModel):
    audio: str = Field("", description="Base64 audio or data URL")
    duration_seconds: Optional[float] = Field(None, ge=0)
    context: Optional[str] = None


class SlotStateResponse(BaseModel):
    session_id: str
    modality: Modality
    state: AnalysisState


def session_id_header(
    x_session_id: Optional[str] = Header(None, alias="X-Session-Id"),
) -> str:
    return x_session_id or "anonymous"


# =============================================================================
# Analyses
# =============================================================================

@router.post("/text", response_model=AnalysisResult)
async def analyze_text(
    body: TextAnalysisRequest,
    session_id: str = Depends(session_id_header),
    pipeline: AnalysisPipeline = Depends(get_analysis_pipeline),
):
    """Classify free text and derive wellbeing metrics and insights."""
    return await pipeline.analyze_text(session_id, body.text, body.context)


@router.post("/facial", response_model=AnalysisResult)
async def analyze_facial(
    body: FacialAnalysisRequest,
    session_id: str = Depends(session_id_header),
    pipeline: AnalysisPipeline = Depends(get_analysis_pipeline),
):
    """Classify a face photo."""
    return await pipeline.analyze_facial(session_id, body.image, body.context)


@router.post("/voice", response_model=AnalysisResult)
async def analyze_voice(
    body: VoiceAnalysisRequest,
    session_id: str = Depends(session_id_header),
    pipeline: AnalysisPipeline = Depends(get_analysis_pipeline),
):
    """Classify a voice recording and add the voice profile."""
    return await pipeline.analyze_voice(
        session_id, body.audio, body.duration_seconds, body.context
    )


# =============================================================================
# Slot state
# =============================================================================

@router.get("/{modality}/state", response_model=SlotStateResponse)
async def get_state(
    modality: Modality,
    session_id: str = Depends(session_id_header),
    pipeline: AnalysisPipeline = Depends(get_analysis_pipeline),
):
    return SlotStateResponse(
        session_id=session_id,
        modality=modality,
        state=pipeline.slots.state(session_id, modality),
    )


@router.post("/{modality}/capture", response_model=SlotStateResponse)
async def start_capture(
    modality: Modality,
    session_id: str = Depends(session_id_header),
    pipeline: AnalysisPipeline = Depends(get_analysis_pipeline),
):
    """Mark the slot as capturing (camera open, recording started)."""
    state = pipeline.slots.mark_capturing(session_id, modality)
    return SlotStateResponse(session_id=session_id, modality=modality, state=state)


# =============================================================================
# History
# =============================================================================

@router.get("/{modality}/history", response_model=list[AnalysisResult])
async def get_history(modality: Modality):
    """Most recent analyses for a modality, newest first."""
    store = get_history_store(modality)
    await store.ensure_loaded()
    return store.entries


@router.get("/{modality}/history/{entry_id}", response_model=AnalysisResult)
async def get_history_entry(modality: Modality, entry_id: int):
    store = get_history_store(modality)
    await store.ensure_loaded()
    entry = store.select(entry_id)
    if entry is None:
        raise NotFoundError("That analysis is no longer in your history.")
    return entry
