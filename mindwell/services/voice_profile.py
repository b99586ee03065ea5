"""
Voice Profile
Descriptive voice characteristics and voice-specific insights derived from
the speech emotion breakdown. Rule based; no audio features are measured.
"""

from typing import Sequence

from mindwell.models.analysis import EmotionLabel, VoiceMetrics
from mindwell.services.emotion_taxonomy import VOICE_TAXONOMY, Valence

ANGER_FAMILY = {"Angry", "Stressed", "Frustrated"}
JOY_FAMILY = {"Happy", "Excited", "Joyful"}
SADNESS_FAMILY = {"Sad", "Melancholy"}

UNDERTONE_THRESHOLD = 20


def calculate_voice_metrics(emotions: Sequence[EmotionLabel]) -> VoiceMetrics:
    """Pitch, pace, volume and clarity labels for the primary emotion."""
    primary = emotions[0].name if emotions else "Neutral"
    valence = VOICE_TAXONOMY.valence(primary)

    if valence is Valence.POSITIVE:
        return VoiceMetrics(pitch="Medium-High", pace="Steady", volume="Clear", clarity="Good")

    if valence is Valence.NEGATIVE:
        return VoiceMetrics(
            pitch="High" if primary == "Angry" else "Low",
            pace="Fast" if primary == "Anxious" else "Slow",
            volume="Loud" if primary == "Angry" else "Soft",
            clarity="Unclear" if primary == "Stressed" else "Moderate",
        )

    return VoiceMetrics(pitch="Medium", pace="Normal", volume="Moderate", clarity="Clear")


def generate_voice_insights(
    emotions: Sequence[EmotionLabel],
    metrics: VoiceMetrics,
) -> list[str]:
    if not emotions:
        return []

    primary = emotions[0]
    insights = [
        f"Your voice primarily expresses {primary.name.lower()} emotions "
        f"with {primary.score}% confidence."
    ]

    if metrics.pitch == "High" and metrics.volume == "Loud":
        insights.append("Your elevated pitch and volume suggest heightened emotional intensity.")
    elif metrics.pitch == "Low" and metrics.volume == "Soft":
        insights.append("Your lower pitch and softer volume indicate a more subdued emotional state.")

    if len(emotions) > 1 and emotions[1].score > UNDERTONE_THRESHOLD:
        second = emotions[1]
        insights.append(
            f"There's also a {second.name.lower()} undertone ({second.score}%) in your voice."
        )

    if primary.name in ANGER_FAMILY:
        insights.append("Consider taking deep breaths to help regulate your emotional state.")
    elif primary.name in JOY_FAMILY:
        insights.append("Your positive energy is well-expressed through your voice tone.")
    elif primary.name in SADNESS_FAMILY:
        insights.append("Your voice suggests you might benefit from emotional support or self-care.")

    return insights
