"""
MindWell - Core Tests
Configuration, database sessions, ids and error rendering.
"""

import json
import logging

import pytest
from sqlalchemy.pool import NullPool

from mindwell.core import database
from mindwell.core.config import Settings
from mindwell.core.errors import AnalysisInProgress, InputValidationError, NotFoundError
from mindwell.core.logging_config import JSONFormatter
from mindwell.core.utc import EpochMillisIds, utc_now_iso
from mindwell.services.llm_client import ChatCompletionClient


# =============================================================================
# Settings
# =============================================================================

class TestSettings:

    def test_database_url_uses_async_driver(self):
        assert Settings(database_url="postgres://u:p@h/db").database_url == "postgresql+asyncpg://u:p@h/db"
        assert Settings(database_url="sqlite:///./x.db").database_url == "sqlite+aiosqlite:///./x.db"

    def test_completion_key_falls_back_to_hf_token(self):
        settings = Settings(ai_provider="huggingface", hf_api_token="hf_abc", completion_api_key="")
        assert settings.completion_key == "hf_abc"
        assert Settings(ai_provider="groq", hf_api_token="hf_abc").completion_key == ""

    def test_cors_origins(self):
        assert Settings(cors_origins="https://a.app, https://b.app").cors_origins_list == [
            "https://a.app",
            "https://b.app",
        ]
        assert "http://localhost:8081" in Settings(cors_origins="").cors_origins_list

    def test_completion_client_provider_defaults(self):
        client = ChatCompletionClient(Settings(ai_provider="groq", completion_api_key="gsk"))
        assert client.is_available
        assert client.model == "llama-3.3-70b-versatile"
        assert not ChatCompletionClient(Settings(ai_provider="none", completion_api_key="x")).is_available


# =============================================================================
# Ids and timestamps
# =============================================================================

def test_epoch_millis_ids_strictly_increase():
    ids = EpochMillisIds()
    generated = [ids.next_id() for _ in range(50)]
    assert all(b > a for a, b in zip(generated, generated[1:]))


def test_utc_now_iso_format():
    stamp = utc_now_iso()
    assert stamp.endswith("Z")
    assert len(stamp) == len("2025-12-08T03:00:00.123Z")


# =============================================================================
# Errors and logging
# =============================================================================

def test_error_payload():
    error = InputValidationError("Please enter some text to analyze.", title="No Text")
    assert error.status_code == 400
    assert error.to_dict() == {
        "error": {"title": "No Text", "message": "Please enter some text to analyze."}
    }


def test_error_defaults():
    assert AnalysisInProgress().status_code == 409
    assert NotFoundError().message == "The requested item does not exist."


def test_json_formatter_includes_extras():
    record = logging.makeLogRecord({
        "name": "mindwell.requests",
        "levelname": "INFO",
        "levelno": logging.INFO,
        "msg": "%s %s",
        "args": ("GET", "/health"),
        "session_id": "abc",
    })
    payload = json.loads(JSONFormatter().format(record))
    assert payload["message"] == "GET /health"
    assert payload["session_id"] == "abc"
    assert payload["level"] == "INFO"


# =============================================================================
# Database
# =============================================================================

class TestDatabase:

    def test_sqlite_engine_is_unpooled_and_cached(self):
        engine = database.get_engine()
        assert isinstance(engine.pool, NullPool)
        assert database.get_engine() is engine

    @pytest.mark.anyio
    async def test_session_commits_on_exit(self):
        from mindwell.models.models import KeyValueEntry

        async with database.get_db_session() as db:
            db.add(KeyValueEntry(key="greeting", value="hello"))

        async with database.get_db_session() as db:
            entry = await db.get(KeyValueEntry, "greeting")
            assert entry is not None and entry.value == "hello"

    @pytest.mark.anyio
    async def test_session_rolls_back_on_error(self):
        from mindwell.models.models import KeyValueEntry

        with pytest.raises(RuntimeError):
            async with database.get_db_session() as db:
                db.add(KeyValueEntry(key="draft", value="unsaved"))
                await db.flush()
                raise RuntimeError("abort")

        async with database.get_db_session() as db:
            assert await db.get(KeyValueEntry, "draft") is None

    @pytest.mark.anyio
    async def test_close_db_resets_engine(self):
        engine = database.get_engine()
        await database.close_db()
        assert database.get_engine() is not engine
