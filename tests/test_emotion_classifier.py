"""
MindWell - Emotion Classifier Tests
Tests for label normalisation and the Hugging Face request handling.
"""

import pytest
import httpx
from unittest.mock import AsyncMock, patch

from mindwell.core.config import Settings
from mindwell.core.errors import ClassificationError
from mindwell.models.analysis import Modality
from mindwell.services.emotion_classifier import (
    EmotionClassifier,
    _flatten,
    build_emotion_labels,
)


# =============================================================================
# Label normalisation
# =============================================================================

class TestBuildEmotionLabels:

    def test_sorted_descending_and_limited(self):
        raw = [{"label": f"e{i}", "score": i / 10} for i in range(1, 9)]
        emotions = build_emotion_labels(raw, Modality.TEXT)
        assert len(emotions) == 6
        scores = [e.score for e in emotions]
        assert scores == sorted(scores, reverse=True)
        assert emotions[0].name == "e8"

    def test_scores_are_half_up_percentages(self):
        emotions = build_emotion_labels(
            [{"label": "joy", "score": 0.125}, {"label": "fear", "score": 0.004}],
            Modality.TEXT,
        )
        assert [e.score for e in emotions] == [13, 0]

    def test_known_colour_and_neutral_default(self):
        emotions = build_emotion_labels(
            [{"label": "joy", "score": 0.9}, {"label": "mystery", "score": 0.1}],
            Modality.TEXT,
        )
        assert emotions[0].color == "#10B981"
        assert emotions[1].color == "#6B7280"

    def test_facial_duplicates_keep_highest(self):
        emotions = build_emotion_labels(
            [
                {"label": "Happy", "score": 0.3},
                {"label": "Sad", "score": 0.2},
                {"label": "Happy", "score": 0.6},
            ],
            Modality.FACIAL,
        )
        assert [(e.name, e.score) for e in emotions] == [("Happy", 60), ("Sad", 20)]

    def test_voice_labels_are_mapped(self):
        emotions = build_emotion_labels(
            [{"label": "ang", "score": 0.1}, {"label": "angry", "score": 0.7}, {"label": "fear", "score": 0.2}],
            Modality.VOICE,
        )
        assert [e.name for e in emotions] == ["Angry", "Fearful", "ang"]

    def test_flatten_nested_shape(self):
        nested = [[{"label": "joy", "score": 0.5}]]
        assert _flatten(nested) == [{"label": "joy", "score": 0.5}]

    def test_flatten_rejects_non_list(self):
        with pytest.raises(ValueError):
            _flatten({"error": "Model is loading"})


# =============================================================================
# Classifier
# =============================================================================

def make_classifier(token: str = "hf_test") -> EmotionClassifier:
    return EmotionClassifier(settings=Settings(hf_api_token=token))


class TestClassify:

    @pytest.mark.anyio
    async def test_unavailable_without_token(self):
        classifier = make_classifier(token="")
        assert not classifier.is_available
        with pytest.raises(ClassificationError) as exc_info:
            await classifier.classify(Modality.TEXT, "some text")
        assert exc_info.value.message == "Unable to analyze the text. Please try again."

    @pytest.mark.anyio
    async def test_successful_text_classification(self):
        classifier = make_classifier()
        raw = [[{"label": "sadness", "score": 0.7}, {"label": "joy", "score": 0.2}]]
        with patch.object(classifier, "_request", AsyncMock(return_value=raw)):
            classified = await classifier.classify(Modality.TEXT, "I feel low")
        assert classified.primary_emotion == "sadness"
        assert classified.confidence == 70

    @pytest.mark.anyio
    async def test_http_error_becomes_classification_error(self):
        classifier = make_classifier()
        failing = AsyncMock(side_effect=httpx.ConnectError("offline"))
        with patch.object(classifier, "_request", failing):
            with pytest.raises(ClassificationError) as exc_info:
                await classifier.classify(Modality.FACIAL, b"\x89PNG")
        assert exc_info.value.status_code == 502

    @pytest.mark.anyio
    async def test_empty_result_is_an_error(self):
        classifier = make_classifier()
        with patch.object(classifier, "_request", AsyncMock(return_value=[])):
            with pytest.raises(ClassificationError):
                await classifier.classify(Modality.VOICE, b"RIFF")

    @pytest.mark.anyio
    async def test_malformed_item_is_an_error(self):
        classifier = make_classifier()
        with patch.object(classifier, "_request", AsyncMock(return_value=[{"name": "joy"}])):
            with pytest.raises(ClassificationError):
                await classifier.classify(Modality.TEXT, "text")

    @pytest.mark.anyio
    async def test_text_request_shape(self):
        classifier = make_classifier()
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = request.content
            return httpx.Response(200, json=[[{"label": "joy", "score": 0.9}]])

        transport = httpx.MockTransport(handler)
        real_client = httpx.AsyncClient

        def client_factory(*args, **kwargs):
            return real_client(transport=transport, **kwargs)

        with patch("mindwell.services.emotion_classifier.httpx.AsyncClient", side_effect=client_factory):
            classified = await classifier.classify(Modality.TEXT, "hello there")

        assert classified.primary_emotion == "joy"
        assert captured["url"].endswith("/SamLowe/roberta-base-go_emotions")
        assert captured["auth"] == "Bearer hf_test"
        assert b'"top_k": 28' in captured["body"] or b'"top_k":28' in captured["body"]
