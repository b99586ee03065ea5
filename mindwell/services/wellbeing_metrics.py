"""
Wellbeing Metrics Calculator
============================

Derives two percentages from a list of scored emotions:

    stress_level        = clamp(round(negative * 1.5), 0, 100)
    mental_health_score = clamp(round(positive - negative + 50), 0, 100)

where `negative` / `positive` are the summed scores of the emotions the
modality's taxonomy classifies that way. This is a fixed heuristic and the
constants, clamp bounds and half-up rounding must not change: stored
histories and the mobile client both depend on the exact numbers.
"""

import math
from typing import Iterable

from mindwell.models.analysis import EmotionLabel, WellbeingMetrics
from mindwell.services.emotion_taxonomy import EmotionTaxonomy, TEXT_TAXONOMY, Valence


STRESS_MULTIPLIER = 1.5
MENTAL_HEALTH_BASELINE = 50
SCORE_MIN = 0
SCORE_MAX = 100


def round_half_up(value: float) -> int:
    """Round .5 towards positive infinity (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def clamp(value: int, low: int = SCORE_MIN, high: int = SCORE_MAX) -> int:
    return max(low, min(high, value))


def calculate_wellbeing_metrics(
    emotions: Iterable[EmotionLabel],
    taxonomy: EmotionTaxonomy = TEXT_TAXONOMY,
) -> WellbeingMetrics:
    """
    Compute stress level and mental health score.

    Total over all inputs: an empty list, or one with only unrecognised
    names, yields stress 0 and mental health 50.
    """
    negative_score = 0
    positive_score = 0
    for emotion in emotions:
        valence = taxonomy.valence(emotion.name)
        if valence is Valence.NEGATIVE:
            negative_score += emotion.score
        elif valence is Valence.POSITIVE:
            positive_score += emotion.score

    stress_level = clamp(round_half_up(negative_score * STRESS_MULTIPLIER))
    mental_health_score = clamp(
        round_half_up(positive_score - negative_score + MENTAL_HEALTH_BASELINE)
    )
    return WellbeingMetrics(
        stress_level=stress_level,
        mental_health_score=mental_health_score,
    )
