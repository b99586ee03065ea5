"""
Analysis Data Models
====================

Pydantic models shared by the analysis services, the history store and
the API. Stored history entries are these models dumped to JSON.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Modality(str, Enum):
    """Input channel an analysis was run on. Each has its own history."""
    FACIAL = "facial"
    TEXT = "text"
    VOICE = "voice"


class AnalysisState(str, Enum):
    """Per-session lifecycle of one analysis slot."""
    IDLE = "idle"
    CAPTURING = "capturing"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    FAILED = "failed"


class EmotionLabel(BaseModel):
    """One scored emotion. `score` is an integer percentage."""
    name: str
    score: int = Field(..., ge=0, le=100)
    color: str = "#6B7280"


class WellbeingMetrics(BaseModel):
    stress_level: int = Field(..., ge=0, le=100)
    mental_health_score: int = Field(..., ge=0, le=100)


class Insights(BaseModel):
    """Output of the insight generator."""
    insights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    emergency_contact: Optional[str] = None
    source: str = "fallback"  # "ai" or "fallback"


class VoiceMetrics(BaseModel):
    pitch: str
    pace: str
    volume: str
    clarity: str


class AnalysisResult(BaseModel):
    """
    A finished analysis, as displayed and as kept in history.

    `emotions` is sorted by score descending; the first entry is the
    primary emotion and its score is the reported confidence.
    """
    id: int
    timestamp: str
    modality: Modality
    primary_emotion: str
    confidence: int
    emotions: list[EmotionLabel]
    stress_level: int
    mental_health_score: int
    insights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    emergency_contact: Optional[str] = None
    context: Optional[str] = None

    # Text analysis
    text: Optional[str] = None
    word_count: Optional[int] = None

    # Voice analysis
    duration_seconds: Optional[float] = None
    voice_metrics: Optional[VoiceMetrics] = None
    voice_insights: list[str] = Field(default_factory=list)
