"""
MindWell - Meditation Tests
"""

import pytest
from httpx import AsyncClient
from unittest.mock import AsyncMock, MagicMock

from mindwell.core.errors import InputValidationError
from mindwell.services.kv_store import KeyValueStore
from mindwell.services.llm_client import CompletionError
from mindwell.services.meditation import (
    EMPTY_SCRIPT_MESSAGE,
    ERROR_SCRIPT_MESSAGE,
    MeditationService,
    split_steps,
)


def make_service(reply: str = "", error: Exception | None = None) -> MeditationService:
    client = MagicMock()
    client.is_available = True
    client.complete = AsyncMock(return_value=reply, side_effect=error)
    return MeditationService(storage=KeyValueStore(), client=client)


class TestSplitSteps:

    def test_paragraphs(self):
        script = "Sit comfortably.\n\nClose your eyes.\n\n  Breathe in slowly.  "
        assert split_steps(script) == ["Sit comfortably.", "Close your eyes.", "Breathe in slowly."]

    def test_single_paragraph_splits_sentences(self):
        assert split_steps("Relax. Breathe in! Are you calm? Good") == [
            "Relax.", "Breathe in!", "Are you calm?", "Good",
        ]

    def test_empty(self):
        assert split_steps("   ") == []


class TestGenerateScript:

    @pytest.mark.anyio
    async def test_generates_script(self):
        service = make_service(reply="Find a quiet place.\n\nNotice your breath.")
        result = await service.generate_script("  anxious before exams ")

        assert result.generated is True
        assert result.prompt == "anxious before exams"
        assert result.steps == ["Find a quiet place.", "Notice your breath."]
        service.client.complete.assert_awaited_once_with(
            "Generate a personalized meditation script for: anxious before exams"
        )

    @pytest.mark.anyio
    async def test_blank_prompt_rejected(self):
        service = make_service()
        with pytest.raises(InputValidationError):
            await service.generate_script("   ")
        service.client.complete.assert_not_awaited()

    @pytest.mark.anyio
    async def test_empty_reply(self):
        result = await make_service(reply="  ").generate_script("sleep")
        assert result.script == EMPTY_SCRIPT_MESSAGE
        assert result.generated is False
        assert result.steps == []

    @pytest.mark.anyio
    async def test_provider_failure(self):
        result = await make_service(error=CompletionError("down")).generate_script("sleep")
        assert result.script == ERROR_SCRIPT_MESSAGE
        assert result.generated is False


class TestSessions:

    @pytest.mark.anyio
    async def test_complete_session_prepends(self):
        service = make_service()
        await service.complete_session("focus", "script one")
        second = await service.complete_session("sleep", "script two")

        sessions = await service.sessions()
        assert [s.user_prompt for s in sessions] == ["sleep", "focus"]
        assert sessions[0].date == second.date
        assert sessions[0].date.endswith("Z")

    @pytest.mark.anyio
    async def test_sessions_api(self, client: AsyncClient):
        assert (await client.get("/api/meditation/sessions")).json() == []

        created = await client.post(
            "/api/meditation/sessions", json={"prompt": "calm", "script": "Breathe."}
        )
        assert created.status_code == 201

        sessions = (await client.get("/api/meditation/sessions")).json()
        assert sessions[0]["script"] == "Breathe."
        assert sessions[0]["user_prompt"] == "calm"

    @pytest.mark.anyio
    async def test_script_api_without_provider(self, client: AsyncClient):
        response = await client.post("/api/meditation/script", json={"prompt": "stress"})
        assert response.status_code == 200
        assert response.json()["script"] == ERROR_SCRIPT_MESSAGE

    @pytest.mark.anyio
    async def test_script_api_blank_prompt(self, client: AsyncClient):
        response = await client.post("/api/meditation/script", json={"prompt": ""})
        assert response.status_code == 400
