"""
MindWell - Emotion Classifier
Scored emotion labels for text, images and audio via the Hugging Face
Inference API.

The provider is an opaque oracle returning `[{label, score}]` with scores in
[0, 1]. This module turns that into sorted integer-percentage
EmotionLabels. A failed classification is fatal for the analysis: callers
get ClassificationError and no metrics are computed.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx

from mindwell.core.config import Settings, get_settings
from mindwell.core.errors import ClassificationError
from mindwell.models.analysis import EmotionLabel, Modality
from mindwell.services.emotion_taxonomy import emotion_color, map_voice_label
from mindwell.services.wellbeing_metrics import clamp, round_half_up

logger = logging.getLogger(__name__)

TOP_EMOTIONS = 6

FAILURE_MESSAGES = {
    Modality.TEXT: "Unable to analyze the text. Please try again.",
    Modality.FACIAL: "Unable to analyze the image. Please try again.",
    Modality.VOICE: "Unable to analyze the recording. Please try again.",
}


@dataclass
class ClassifiedEmotions:
    """Sorted labels plus the derived primary emotion and confidence."""
    emotions: list[EmotionLabel]

    @property
    def primary_emotion(self) -> str:
        return self.emotions[0].name

    @property
    def confidence(self) -> int:
        return self.emotions[0].score


def _flatten(output: Any) -> list[dict]:
    """Accept both `[{...}]` and `[[{...}]]` response shapes."""
    if isinstance(output, list) and output and isinstance(output[0], list):
        output = output[0]
    if not isinstance(output, list):
        raise ValueError(f"expected a list of labels, got {type(output).__name__}")
    return output


def build_emotion_labels(
    raw_labels: list[dict],
    modality: Modality,
    limit: int = TOP_EMOTIONS,
) -> list[EmotionLabel]:
    """
    Convert provider output into EmotionLabels.

    - score: round(score * 100), half up, clamped to [0, 100]
    - voice: raw labels mapped to display names
    - facial: duplicate names merged, keeping the higher score
    - sorted by score descending and cut to `limit`
    """
    modality = Modality(modality)
    merged: dict[str, EmotionLabel] = {}

    for item in raw_labels:
        label = str(item["label"])
        score = clamp(round_half_up(float(item["score"]) * 100))
        name = map_voice_label(label) if modality == Modality.VOICE else label

        existing = merged.get(name)
        if existing is not None and modality == Modality.FACIAL:
            if score > existing.score:
                merged[name] = EmotionLabel(name=name, score=score, color=emotion_color(name))
            continue
        if existing is not None:
            # Non-facial vocabularies do not repeat; keep the first occurrence
            continue
        merged[name] = EmotionLabel(name=name, score=score, color=emotion_color(name))

    ordered = sorted(merged.values(), key=lambda e: e.score, reverse=True)
    return ordered[:limit]


class EmotionClassifier:
    """Hugging Face Inference client for the three emotion models."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.api_token = settings.hf_api_token
        self.base_url = settings.hf_inference_url.rstrip("/")
        self.timeout = settings.inference_timeout
        self.top_k = settings.text_classification_top_k
        self.models = {
            Modality.TEXT: settings.text_emotion_model,
            Modality.FACIAL: settings.facial_emotion_model,
            Modality.VOICE: settings.voice_emotion_model,
        }

    @property
    def is_available(self) -> bool:
        """Check if an inference token is configured."""
        return bool(self.api_token)

    async def classify(
        self,
        modality: Modality,
        payload: Union[str, bytes],
    ) -> ClassifiedEmotions:
        """
        Classify `payload` (text for TEXT, raw bytes for FACIAL/VOICE).

        Raises:
            ClassificationError: provider unavailable, request failed or
                the response held no usable labels.
        """
        modality = Modality(modality)
        failure = FAILURE_MESSAGES[modality]

        if not self.is_available:
            logger.error("Emotion classification requested but HF_API_TOKEN is not set")
            raise ClassificationError(failure)

        try:
            raw = await self._request(modality, payload)
            emotions = build_emotion_labels(_flatten(raw), modality)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.error("Error analyzing %s emotions: %s", modality.value, e)
            raise ClassificationError(failure) from e

        if not emotions:
            logger.error("Classifier returned no %s emotions", modality.value)
            raise ClassificationError(failure)

        logger.info(
            "%s emotions: %s",
            modality.value,
            ", ".join(f"{e.name}={e.score}" for e in emotions),
        )
        return ClassifiedEmotions(emotions=emotions)

    async def _request(self, modality: Modality, payload: Union[str, bytes]) -> Any:
        url = f"{self.base_url}/{self.models[modality]}"
        headers = {"Authorization": f"Bearer {self.api_token}"}

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            if modality == Modality.TEXT:
                response = await client.post(
                    url,
                    headers=headers,
                    json={"inputs": payload, "parameters": {"top_k": self.top_k}},
                )
            else:
                headers["Content-Type"] = "application/octet-stream"
                response = await client.post(url, headers=headers, content=payload)

        response.raise_for_status()
        return response.json()


# Singleton instance
_classifier: Optional[EmotionClassifier] = None


def get_emotion_classifier() -> EmotionClassifier:
    """Get or create the emotion classifier."""
    global _classifier
    if _classifier is None:
        _classifier = EmotionClassifier()
    return _classifier
