"""
MindWell - Insight Generator Tests
Tests for AI insights, JSON extraction and the offline fallback.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from mindwell.models.analysis import EmotionLabel, Modality
from mindwell.services.insight_generator import InsightGenerator, extract_json_object
from mindwell.services.llm_client import CompletionError


EMOTIONS = [EmotionLabel(name="sadness", score=70), EmotionLabel(name="fear", score=20)]


def generator_with(reply=None, error=None, available=True) -> InsightGenerator:
    client = MagicMock()
    client.is_available = available
    client.complete = AsyncMock(return_value=reply, side_effect=error)
    return InsightGenerator(client=client)


# =============================================================================
# JSON extraction
# =============================================================================

class TestExtractJson:

    def test_object_inside_chatter(self):
        reply = 'Sure! Here you go:\n{"insights": ["a"], "recommendations": []}\nTake care.'
        assert extract_json_object(reply) == {"insights": ["a"], "recommendations": []}

    def test_no_braces(self):
        assert extract_json_object("I cannot help with that.") is None

    def test_invalid_json(self):
        assert extract_json_object("{insights: nope}") is None

    def test_empty(self):
        assert extract_json_object("") is None
        assert extract_json_object(None) is None

    def test_spans_first_to_last_brace(self):
        reply = 'x {"a": {"b": 1}} y'
        assert extract_json_object(reply) == {"a": {"b": 1}}


# =============================================================================
# AI path
# =============================================================================

class TestAIInsights:

    @pytest.mark.anyio
    async def test_parses_model_reply(self):
        reply = (
            'Here is my analysis: {"insights": ["You sound low"], '
            '"recommendations": ["Take a walk", "Call a friend"], '
            '"emergency_contact": "988 Suicide & Crisis Lifeline"}'
        )
        insights = await generator_with(reply).generate(
            Modality.TEXT, "sadness", 70, EMOTIONS, text="I feel really down today"
        )
        assert insights.source == "ai"
        assert insights.insights == ["You sound low"]
        assert insights.recommendations == ["Take a walk", "Call a friend"]
        assert insights.emergency_contact == "988 Suicide & Crisis Lifeline"

    @pytest.mark.anyio
    async def test_null_emergency_contact(self):
        reply = '{"insights": [], "recommendations": [], "emergency_contact": null}'
        insights = await generator_with(reply).generate(Modality.FACIAL, "Happy", 90, EMOTIONS)
        assert insights.emergency_contact is None

    @pytest.mark.anyio
    async def test_prompt_includes_breakdown_and_text(self):
        generator = generator_with('{"insights": [], "recommendations": []}')
        await generator.generate(
            Modality.TEXT, "sadness", 70, EMOTIONS, context="after work", text="long day"
        )
        prompt = generator.client.complete.await_args.args[0]
        assert "sadness (70%)" in prompt
        assert 'Text: "long day"' in prompt
        assert "Context: after work" in prompt
        assert "insights, recommendations, emergency_contact" in prompt


# =============================================================================
# Fallback path
# =============================================================================

class TestFallback:

    @pytest.mark.anyio
    async def test_completion_error_falls_back(self):
        insights = await generator_with(error=CompletionError("boom")).generate(
            Modality.TEXT, "sadness", 70, EMOTIONS
        )
        assert insights.source == "fallback"
        assert insights.emergency_contact is None
        assert insights.insights[0] == "Your text reflects a challenging emotional state"

    @pytest.mark.anyio
    async def test_non_json_reply_falls_back(self):
        insights = await generator_with("Stay positive!").generate(
            Modality.TEXT, "joy", 80, EMOTIONS
        )
        assert insights.source == "fallback"
        assert insights.emergency_contact is None

    @pytest.mark.anyio
    async def test_unavailable_client_skips_request(self):
        generator = generator_with(available=False)
        insights = await generator.generate(Modality.VOICE, "Calm", 60, EMOTIONS)
        generator.client.complete.assert_not_awaited()
        assert insights.source == "fallback"

    def test_text_positive_template(self):
        insights = InsightGenerator.fallback(Modality.TEXT, "joy")
        assert insights.insights == [
            "Your text reflects a positive emotional state",
            "Primary emotion detected: joy",
            "Consider sharing this positive energy",
        ]
        assert insights.recommendations == [
            "Maintain your positive outlook",
            "Share your good feelings with others",
            "Continue your wellness routine",
        ]

    def test_text_negative_template(self):
        insights = InsightGenerator.fallback(Modality.TEXT, "grief")
        assert insights.insights[2] == "Consider seeking support"
        assert insights.recommendations == [
            "Practice mindfulness techniques",
            "Consider talking to someone you trust",
            "Engage in self-care activities",
        ]

    def test_facial_surprised_uses_positive_template(self):
        insights = InsightGenerator.fallback(Modality.FACIAL, "Surprised")
        assert insights.insights[0] == "Your facial expression shows positive emotions"
        assert "Share your good mood with others" in insights.recommendations

    def test_facial_negative_template(self):
        insights = InsightGenerator.fallback(Modality.FACIAL, "Sad")
        assert insights.insights[0] == "Your facial expression shows mixed emotions"

    def test_voice_template(self):
        insights = InsightGenerator.fallback(Modality.VOICE, "Stressed")
        assert insights.insights[0] == "Your voice reflects a challenging emotional state"
        assert insights.emergency_contact is None
