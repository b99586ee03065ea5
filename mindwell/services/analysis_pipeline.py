"""
Analysis Pipeline
=================

Runs one analysis end to end:

    validate input -> classify -> wellbeing metrics -> insights
        -> AnalysisResult -> prepend to the modality's history

Each (session, modality) pair owns a single analysis slot with an explicit
state: idle -> capturing -> analyzing -> complete | failed. A second
request while the slot is analyzing is rejected instead of queued.

Failure policy:
- invalid input: rejected before the slot changes state
- classification failure: slot -> failed, nothing is stored
- insight failure: absorbed by the template fallback
- history write failure: logged by the store, result still returned
"""

import base64
import binascii
import logging
from collections import OrderedDict
from typing import Optional

from mindwell.core.config import get_settings
from mindwell.core.errors import AnalysisInProgress, InputValidationError, MindWellError
from mindwell.core.utc import EpochMillisIds, utc_now_iso
from mindwell.models.analysis import AnalysisResult, AnalysisState, Modality
from mindwell.services.emotion_classifier import EmotionClassifier, get_emotion_classifier
from mindwell.services.emotion_taxonomy import get_taxonomy
from mindwell.services.history_store import get_history_store
from mindwell.services.insight_generator import InsightGenerator, get_insight_generator
from mindwell.services.voice_profile import calculate_voice_metrics, generate_voice_insights
from mindwell.services.wellbeing_metrics import calculate_wellbeing_metrics

logger = logging.getLogger(__name__)


# =============================================================================
# Session slots
# =============================================================================

class AnalysisSlots:
    """
    State of each (session, modality) analysis slot.

    Session ids come from the client, so at most `max_slots` slots are
    tracked. Past that the least recently touched slots that are not
    analyzing are forgotten and read as idle again.
    """

    def __init__(self, max_slots: int = 1000):
        self.max_slots = max_slots
        self._states: OrderedDict[tuple[str, Modality], AnalysisState] = OrderedDict()

    def __len__(self) -> int:
        return len(self._states)

    def state(self, session_id: str, modality: Modality) -> AnalysisState:
        return self._states.get((session_id, Modality(modality)), AnalysisState.IDLE)

    def mark_capturing(self, session_id: str, modality: Modality) -> AnalysisState:
        self._ensure_not_analyzing(session_id, modality)
        return self._set(session_id, modality, AnalysisState.CAPTURING)

    def begin(self, session_id: str, modality: Modality) -> None:
        self._ensure_not_analyzing(session_id, modality)
        self._set(session_id, modality, AnalysisState.ANALYZING)

    def finish(self, session_id: str, modality: Modality, succeeded: bool) -> None:
        self._set(
            session_id,
            modality,
            AnalysisState.COMPLETE if succeeded else AnalysisState.FAILED,
        )

    def reset(self) -> None:
        self._states.clear()

    def _ensure_not_analyzing(self, session_id: str, modality: Modality) -> None:
        if self.state(session_id, modality) == AnalysisState.ANALYZING:
            raise AnalysisInProgress()

    def _set(self, session_id: str, modality: Modality, state: AnalysisState) -> AnalysisState:
        key = (session_id, Modality(modality))
        self._states[key] = state
        self._states.move_to_end(key)
        if len(self._states) > self.max_slots:
            self._evict(keep=key)
        logger.debug("Slot %s/%s -> %s", session_id, Modality(modality).value, state.value)
        return state

    def _evict(self, keep: tuple[str, Modality]) -> None:
        # Analyzing slots stay; they are bounded by in-flight requests
        excess = len(self._states) - self.max_slots
        stale = [
            key for key, state in self._states.items()
            if state != AnalysisState.ANALYZING and key != keep
        ][:excess]
        for key in stale:
            del self._states[key]
        logger.debug("Evicted %d stale analysis slots", len(stale))


# =============================================================================
# Input helpers
# =============================================================================

def strip_data_url_prefix(b64: str) -> str:
    if b64.startswith("data:"):
        parts = b64.split(",", 1)
        return parts[1] if len(parts) == 2 else b64
    return b64


def decode_media(b64: Optional[str], title: str, message: str) -> bytes:
    """Decode a base64 (or data URL) payload, rejecting empty input."""
    if not b64 or not b64.strip():
        raise InputValidationError(message, title=title)
    try:
        raw = base64.b64decode(strip_data_url_prefix(b64.strip()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InputValidationError("The uploaded file could not be read.", title=title) from e
    if not raw:
        raise InputValidationError(message, title=title)
    return raw


def count_words(text: str) -> int:
    return len(text.split())


# =============================================================================
# Pipeline
# =============================================================================

class AnalysisPipeline:
    """Orchestrates classification, metrics, insights and history."""

    def __init__(
        self,
        classifier: Optional[EmotionClassifier] = None,
        insight_generator: Optional[InsightGenerator] = None,
        min_text_words: Optional[int] = None,
    ):
        self.classifier = classifier or get_emotion_classifier()
        self.insight_generator = insight_generator or get_insight_generator()
        self.min_text_words = (
            min_text_words if min_text_words is not None else get_settings().min_text_words
        )
        self.slots = AnalysisSlots(max_slots=get_settings().max_tracked_slots)
        self.ids = EpochMillisIds()

    async def analyze_text(
        self,
        session_id: str,
        text: str,
        context: Optional[str] = None,
    ) -> AnalysisResult:
        if not text or not text.strip():
            raise InputValidationError("Please enter some text to analyze.", title="No Text")
        word_count = count_words(text)
        if word_count < self.min_text_words:
            raise InputValidationError(
                f"Please enter at least {self.min_text_words} words for better analysis.",
                title="Text Too Short",
            )
        return await self._run(
            session_id,
            Modality.TEXT,
            text,
            context,
            extras={"text": text, "word_count": word_count},
        )

    async def analyze_facial(
        self,
        session_id: str,
        image_b64: str,
        context: Optional[str] = None,
    ) -> AnalysisResult:
        image = decode_media(image_b64, "No Image", "Please select an image first.")
        return await self._run(session_id, Modality.FACIAL, image, context)

    async def analyze_voice(
        self,
        session_id: str,
        audio_b64: str,
        duration_seconds: Optional[float] = None,
        context: Optional[str] = None,
    ) -> AnalysisResult:
        audio = decode_media(audio_b64, "No Recording", "Please record your voice first.")
        return await self._run(
            session_id,
            Modality.VOICE,
            audio,
            context,
            extras={"duration_seconds": duration_seconds},
        )

    async def _run(
        self,
        session_id: str,
        modality: Modality,
        payload,
        context: Optional[str],
        extras: Optional[dict] = None,
    ) -> AnalysisResult:
        self.slots.begin(session_id, modality)
        try:
            result = await self._analyze(modality, payload, context, extras or {})
        except Exception as e:
            if not isinstance(e, MindWellError):
                logger.exception("Unexpected %s analysis error", modality.value)
            self.slots.finish(session_id, modality, succeeded=False)
            raise

        self.slots.finish(session_id, modality, succeeded=True)
        await get_history_store(modality).append(result)
        return result

    async def _analyze(
        self,
        modality: Modality,
        payload,
        context: Optional[str],
        extras: dict,
    ) -> AnalysisResult:
        classified = await self.classifier.classify(modality, payload)
        emotions = classified.emotions

        metrics = calculate_wellbeing_metrics(emotions, get_taxonomy(modality))

        insights = await self.insight_generator.generate(
            modality=modality,
            primary_emotion=classified.primary_emotion,
            confidence=classified.confidence,
            emotions=emotions,
            context=context,
            text=extras.get("text"),
        )

        if modality == Modality.VOICE:
            voice_metrics = calculate_voice_metrics(emotions)
            extras = {
                **extras,
                "voice_metrics": voice_metrics,
                "voice_insights": generate_voice_insights(emotions, voice_metrics),
            }

        result = AnalysisResult(
            id=self.ids.next_id(),
            timestamp=utc_now_iso(),
            modality=modality,
            primary_emotion=classified.primary_emotion,
            confidence=classified.confidence,
            emotions=emotions,
            stress_level=metrics.stress_level,
            mental_health_score=metrics.mental_health_score,
            insights=insights.insights,
            recommendations=insights.recommendations,
            emergency_contact=insights.emergency_contact,
            context=context or None,
            **extras,
        )
        logger.info(
            "%s analysis %s: %s (%d%%), stress=%d, mental_health=%d, insights=%s",
            modality.value,
            result.id,
            result.primary_emotion,
            result.confidence,
            result.stress_level,
            result.mental_health_score,
            insights.source,
        )
        return result


# Singleton instance
_pipeline: Optional[AnalysisPipeline] = None


def get_analysis_pipeline() -> AnalysisPipeline:
    """Get or create the analysis pipeline."""
    global _pipeline
    if _pipeline is None:
        _pipeline = AnalysisPipeline()
    return _pipeline


def reset_analysis_pipeline() -> None:
    global _pipeline
    _pipeline = None
