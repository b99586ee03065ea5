"""
Emotion Taxonomy
================

One canonical lookup for everything the analysis flows need to know about
an emotion name:

- display colour (shared by all modalities)
- valence used by the wellbeing metrics (per modality)
- the "positive" allow-list used by the offline insight templates (per modality)

The three classifiers speak different vocabularies (go-emotions for text,
a facial expression set for images, a speech emotion set for audio) and the
valence sets differ between them. For example "surprised" counts as negative
for facial stress but as positive for the facial fallback insights. Those
differences are kept as-is. All lookups are case-insensitive exact matches.
"""

from dataclasses import dataclass
from enum import Enum

from mindwell.models.analysis import Modality


NEUTRAL_COLOR = "#6B7280"

EMOTION_COLORS: dict[str, str] = {
    # go-emotions (text)
    "joy": "#10B981",
    "love": "#EC4899",
    "optimism": "#3B82F6",
    "relief": "#8B5CF6",
    "surprise": "#F59E0B",
    "neutral": "#6B7280",
    "confusion": "#F97316",
    "disappointment": "#EF4444",
    "nervousness": "#7C3AED",
    "disgust": "#059669",
    "embarrassment": "#DC2626",
    "sadness": "#1E40AF",
    "fear": "#7C2D12",
    "anger": "#DC2626",
    "grief": "#1F2937",
    "pride": "#F59E0B",
    "excitement": "#6366F1",
    "admiration": "#3B82F6",
    "amusement": "#7C3AED",
    "approval": "#059669",
    "caring": "#EC4899",
    "curiosity": "#F59E0B",
    "desire": "#DC2626",
    "disapproval": "#EF4444",
    "realization": "#6B7280",
    "remorse": "#1E40AF",
    "annoyance": "#F97316",
    "gratitude": "#10B981",
    # facial expressions
    "happy": "#10B981",
    "optimistic": "#10B981",
    "relieved": "#10B981",
    "proud": "#10B981",
    "excited": "#F59E0B",
    "admiring": "#10B981",
    "amused": "#10B981",
    "approving": "#10B981",
    "grateful": "#10B981",
    "realizing": "#6B7280",
    "curious": "#6B7280",
    "surprised": "#F59E0B",
    "sad": "#EF4444",
    "disappointed": "#EF4444",
    "grieving": "#EF4444",
    "remorseful": "#EF4444",
    "angry": "#DC2626",
    "annoyed": "#DC2626",
    "fearful": "#7C2D12",
    "disgusted": "#059669",
    "nervous": "#7C3AED",
    "confused": "#7C3AED",
    "embarrassed": "#EC4899",
    "disapproving": "#F97316",
    "desiring": "#DC2626",
    # speech
    "joyful": "#10B981",
    "confident": "#3B82F6",
    "calm": "#6B7280",
    "relaxed": "#6B7280",
    "peaceful": "#6B7280",
    "energetic": "#F59E0B",
    "anxious": "#7C3AED",
    "stressed": "#DC2626",
    "frustrated": "#F97316",
    "tired": "#6B7280",
    "melancholy": "#EF4444",
}

# Raw speech-model labels -> display names. Unknown labels pass through.
VOICE_LABELS: dict[str, str] = {
    "angry": "Angry",
    "disgust": "Disgusted",
    "fear": "Fearful",
    "happy": "Happy",
    "neutral": "Neutral",
    "sad": "Sad",
    "surprise": "Surprised",
    "excited": "Excited",
    "calm": "Calm",
    "anxious": "Anxious",
    "confident": "Confident",
    "tired": "Tired",
    "stressed": "Stressed",
    "relaxed": "Relaxed",
    "energetic": "Energetic",
    "frustrated": "Frustrated",
    "joyful": "Joyful",
    "melancholy": "Melancholy",
    "nervous": "Nervous",
    "peaceful": "Peaceful",
}


def emotion_color(name: str) -> str:
    """Display colour for an emotion name, neutral grey when unknown."""
    return EMOTION_COLORS.get(name.lower(), NEUTRAL_COLOR)


def map_voice_label(label: str) -> str:
    return VOICE_LABELS.get(label.lower(), label)


class Valence(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


def _names(*names: str) -> frozenset[str]:
    return frozenset(n.lower() for n in names)


@dataclass(frozen=True)
class EmotionTaxonomy:
    """Valence membership for one modality's vocabulary."""
    modality: Modality
    negative: frozenset[str]
    positive: frozenset[str]
    fallback_positive: frozenset[str]

    def valence(self, name: str) -> Valence:
        key = name.lower()
        if key in self.negative:
            return Valence.NEGATIVE
        if key in self.positive:
            return Valence.POSITIVE
        return Valence.NEUTRAL

    def is_fallback_positive(self, name: str) -> bool:
        """Whether the offline insight templates treat `name` as positive."""
        return name.lower() in self.fallback_positive


TEXT_TAXONOMY = EmotionTaxonomy(
    modality=Modality.TEXT,
    negative=_names(
        "sadness", "fear", "anger", "disgust", "grief", "remorse",
        "annoyance", "disappointment", "nervousness", "embarrassment",
    ),
    positive=_names(
        "joy", "love", "optimism", "relief", "excitement", "gratitude",
        "pride", "admiration", "amusement", "approval", "caring",
    ),
    fallback_positive=_names(
        "joy", "love", "optimism", "relief", "excitement", "gratitude", "pride",
    ),
)

FACIAL_TAXONOMY = EmotionTaxonomy(
    modality=Modality.FACIAL,
    negative=_names("Sad", "Angry", "Fear", "Disgust", "Surprised"),
    positive=_names("Happy", "Optimistic", "Excited", "Neutral"),
    fallback_positive=_names("Happy", "Optimistic", "Excited", "Surprised"),
)

VOICE_TAXONOMY = EmotionTaxonomy(
    modality=Modality.VOICE,
    negative=_names(
        "Sad", "Angry", "Fearful", "Anxious", "Nervous", "Stressed", "Frustrated",
    ),
    positive=_names(
        "Happy", "Excited", "Joyful", "Confident", "Calm", "Relaxed", "Peaceful",
    ),
    fallback_positive=_names(
        "Happy", "Excited", "Joyful", "Confident", "Calm", "Relaxed", "Peaceful",
    ),
)

TAXONOMIES: dict[Modality, EmotionTaxonomy] = {
    Modality.TEXT: TEXT_TAXONOMY,
    Modality.FACIAL: FACIAL_TAXONOMY,
    Modality.VOICE: VOICE_TAXONOMY,
}


def get_taxonomy(modality: Modality) -> EmotionTaxonomy:
    return TAXONOMIES[Modality(modality)]
