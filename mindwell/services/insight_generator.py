"""
MindWell - Insight Generator
Natural-language insights and recommendations for an analysis.

Two tiers:
1. Ask the chat-completion model for a JSON object and pull it out of the
   free-text reply (first "{" through last "}").
2. If that fails in any way, build three insights and three
   recommendations from fixed templates.

Only the model can set `emergency_contact`. The template path never does.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from mindwell.models.analysis import EmotionLabel, Insights, Modality
from mindwell.services.emotion_taxonomy import get_taxonomy
from mindwell.services.llm_client import (
    ChatCompletionClient,
    CompletionError,
    get_completion_client,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Fallback templates
# =============================================================================

@dataclass(frozen=True)
class FallbackTemplate:
    """Offline wording for one modality."""
    state_line: str          # formatted with {tone}
    positive_tone: str
    negative_tone: str
    positive_recommendations: tuple[str, str, str]
    negative_recommendations: tuple[str, str, str]


NEGATIVE_RECOMMENDATIONS = (
    "Practice mindfulness techniques",
    "Consider talking to someone you trust",
    "Engage in self-care activities",
)

FALLBACK_TEMPLATES: dict[Modality, FallbackTemplate] = {
    Modality.TEXT: FallbackTemplate(
        state_line="Your text reflects a {tone} emotional state",
        positive_tone="positive",
        negative_tone="challenging",
        positive_recommendations=(
            "Maintain your positive outlook",
            "Share your good feelings with others",
            "Continue your wellness routine",
        ),
        negative_recommendations=NEGATIVE_RECOMMENDATIONS,
    ),
    Modality.FACIAL: FallbackTemplate(
        state_line="Your facial expression shows {tone} emotions",
        positive_tone="positive",
        negative_tone="mixed",
        positive_recommendations=(
            "Maintain your positive outlook",
            "Share your good mood with others",
            "Continue your wellness routine",
        ),
        negative_recommendations=NEGATIVE_RECOMMENDATIONS,
    ),
    Modality.VOICE: FallbackTemplate(
        state_line="Your voice reflects a {tone} emotional state",
        positive_tone="positive",
        negative_tone="challenging",
        positive_recommendations=(
            "Maintain your positive outlook",
            "Share your good feelings with others",
            "Continue your wellness routine",
        ),
        negative_recommendations=NEGATIVE_RECOMMENDATIONS,
    ),
}

PROMPT_SUBJECTS = {
    Modality.TEXT: "this text",
    Modality.FACIAL: "this facial expression analysis",
    Modality.VOICE: "this voice emotion analysis",
}


def extract_json_object(response_text: Optional[str]) -> Optional[dict]:
    """
    Parse the substring from the first "{" to the last "}" as JSON.

    Returns None when there is no such substring, it does not parse, or it
    parses to something other than an object.
    """
    if not response_text:
        return None
    start = response_text.find("{")
    end = response_text.rfind("}")
    if start == -1 or end < start:
        return None
    try:
        parsed = json.loads(response_text[start:end + 1])
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _as_string_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(item) for item in value if item]
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []


class InsightGenerator:
    """Generate insights for an analysis, never failing."""

    def __init__(self, client: Optional[ChatCompletionClient] = None):
        self.client = client or get_completion_client()

    async def generate(
        self,
        modality: Modality,
        primary_emotion: str,
        confidence: int,
        emotions: Sequence[EmotionLabel],
        context: Optional[str] = None,
        text: Optional[str] = None,
    ) -> Insights:
        if not self.client.is_available:
            return self.fallback(modality, primary_emotion)

        prompt = self._build_prompt(modality, primary_emotion, confidence, emotions, context, text)
        try:
            response_text = await self.client.complete(prompt)
        except CompletionError as e:
            logger.warning("Insight generation failed, using fallback: %s", e)
            return self.fallback(modality, primary_emotion)

        parsed = extract_json_object(response_text)
        if parsed is None:
            logger.info("No JSON object in model reply, using fallback")
            return self.fallback(modality, primary_emotion)

        emergency_contact = parsed.get("emergency_contact")
        return Insights(
            insights=_as_string_list(parsed.get("insights")),
            recommendations=_as_string_list(parsed.get("recommendations")),
            emergency_contact=str(emergency_contact) if emergency_contact else None,
            source="ai",
        )

    def _build_prompt(
        self,
        modality: Modality,
        primary_emotion: str,
        confidence: int,
        emotions: Sequence[EmotionLabel],
        context: Optional[str],
        text: Optional[str],
    ) -> str:
        breakdown = ", ".join(f"{e.name} ({e.score}%)" for e in emotions)
        text_line = f'Text: "{text}"\n' if text else ""

        return f"""As a mental health AI assistant, analyze {PROMPT_SUBJECTS[modality]} and provide helpful insights and recommendations:

{text_line}Context: {context or 'No specific context provided'}

Emotion Analysis:
Primary Emotion: {primary_emotion}
Confidence: {confidence}%
Top Emotions: {breakdown}

Please provide:
1. 3-4 specific insights about the emotional state and mental health
2. 3-4 personalized recommendations for mental wellness
3. Stress management techniques if negative emotions are high
4. Emergency contact suggestion if concerning mental health patterns are detected

Format as JSON with keys: insights, recommendations, emergency_contact"""

    @staticmethod
    def fallback(modality: Modality, primary_emotion: str) -> Insights:
        """Deterministic templated insights. Never sets emergency_contact."""
        modality = Modality(modality)
        template = FALLBACK_TEMPLATES[modality]
        is_positive = get_taxonomy(modality).is_fallback_positive(primary_emotion)

        tone = template.positive_tone if is_positive else template.negative_tone
        insights = [
            template.state_line.format(tone=tone),
            f"Primary emotion detected: {primary_emotion}",
            "Consider sharing this positive energy" if is_positive else "Consider seeking support",
        ]
        recommendations = list(
            template.positive_recommendations if is_positive else template.negative_recommendations
        )
        return Insights(
            insights=insights,
            recommendations=recommendations,
            emergency_contact=None,
            source="fallback",
        )


# Singleton instance
_insight_generator: Optional[InsightGenerator] = None


def get_insight_generator() -> InsightGenerator:
    """Get or create the insight generator."""
    global _insight_generator
    if _insight_generator is None:
        _insight_generator = InsightGenerator()
    return _insight_generator
