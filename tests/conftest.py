"""
MindWell - Shared Test Fixtures
Provides reusable fixtures for the database, service singletons and mocking.
"""

import os
import pytest
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock
from httpx import AsyncClient, ASGITransport

# Configure test environment BEFORE importing app
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_mindwell.db"
os.environ["TESTING"] = "true"
os.environ["HF_API_TOKEN"] = ""
os.environ["AI_PROVIDER"] = "none"
os.environ["COMPLETION_API_KEY"] = ""
os.environ["CHAT_SUPPORT_URL"] = ""

from mindwell.main import app
from mindwell.core.config import get_settings
from mindwell.models.analysis import EmotionLabel
from mindwell.services import affirmations, chat_support, meditation
from mindwell.services.analysis_pipeline import reset_analysis_pipeline
from mindwell.services.emotion_classifier import ClassifiedEmotions
from mindwell.services.history_store import reset_history_stores


# =============================================================================
# Core Fixtures
# =============================================================================

@pytest.fixture
def anyio_backend():
    """Use asyncio for async tests."""
    return "asyncio"


@pytest.fixture(scope="function", autouse=True)
async def setup_test_database(anyio_backend):
    """Create database tables before each test and clean up after."""
    from mindwell.core.database import Base, close_db, get_engine
    from mindwell.models import models  # noqa: F401  registers tables

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await close_db()


@pytest.fixture(autouse=True)
def reset_singletons():
    """Fresh service instances per test so no state leaks between tests."""
    reset_history_stores()
    reset_analysis_pipeline()
    chat_support._chat_service = None
    affirmations._affirmation_service = None
    meditation._meditation_service = None
    app.dependency_overrides.clear()
    yield
    app.dependency_overrides.clear()
    reset_history_stores()
    reset_analysis_pipeline()


@pytest.fixture(autouse=True)
def cleanup_test_db():
    """Remove the SQLite file after each test."""
    yield
    for db_file in ["test_mindwell.db", "test_mindwell.db-shm", "test_mindwell.db-wal"]:
        if os.path.exists(db_file):
            try:
                os.remove(db_file)
            except PermissionError:
                pass


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def settings():
    """Get test settings."""
    return get_settings()


# =============================================================================
# Mock Fixtures
# =============================================================================

def make_emotions(*pairs: tuple[str, int]) -> list[EmotionLabel]:
    """EmotionLabels from (name, score) pairs, in the given order."""
    return [EmotionLabel(name=name, score=score) for name, score in pairs]


@pytest.fixture
def mock_classifier():
    """Classifier that returns a fixed, already sorted breakdown."""
    mock = MagicMock()
    mock.is_available = True
    mock.classify = AsyncMock(return_value=ClassifiedEmotions(
        emotions=make_emotions(("joy", 80), ("neutral", 10), ("sadness", 10)),
    ))
    return mock


@pytest.fixture
def mock_completion_client():
    """Configured chat-completion client with a scripted reply."""
    mock = MagicMock()
    mock.is_available = True
    mock.complete = AsyncMock(return_value="")
    return mock
