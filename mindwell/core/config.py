"""
MindWell Configuration
Pydantic Settings for environment-based configuration.
Single source of truth for all service settings.

Provider credentials are read from the server environment only. They are
never returned to clients.
"""

from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Use .env file for local development, env vars for production.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # App Identity
    # ==========================================================================
    app_name: str = "MindWell"
    app_version: str = "1.0.0"
    app_description: str = """
## MindWell - Wellbeing Analysis Service

Backend for the MindWell mobile app.

### Features
- **Emotion analysis** - text, facial and voice emotion detection
- **Wellbeing metrics** - stress level and mental health score
- **Insights** - AI insights with an offline fallback
- **History** - the last 10 analyses per modality
- **Chat support**, **daily affirmations** and **guided meditation**
"""
    debug: bool = False
    enable_docs: bool = True
    testing: bool = False

    # ==========================================================================
    # Server
    # ==========================================================================
    host: str = "0.0.0.0"
    port: int = 8000

    # ==========================================================================
    # Database (key-value persistence)
    # ==========================================================================
    database_url: str = "sqlite+aiosqlite:///./mindwell.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_to_async_driver(cls, v: str) -> str:
        """
        Automatically convert database URLs to use async drivers.
        Hosting providers hand out postgresql:// but we need postgresql+asyncpg://
        """
        if v and isinstance(v, str):
            if v.startswith("postgres://"):
                v = v.replace("postgres://", "postgresql+asyncpg://", 1)
            elif v.startswith("postgresql://"):
                v = v.replace("postgresql://", "postgresql+asyncpg://", 1)
            elif v.startswith("sqlite://") and "+aiosqlite" not in v:
                v = v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    # ==========================================================================
    # Emotion Classification (Hugging Face Inference)
    # ==========================================================================
    hf_api_token: str = ""
    hf_inference_url: str = "https://router.huggingface.co/hf-inference/models"
    text_emotion_model: str = "SamLowe/roberta-base-go_emotions"
    facial_emotion_model: str = "dima806/facial_emotions_image_detection"
    voice_emotion_model: str = "harshit345/xlsr-wav2vec-speech-emotion-recognition"
    text_classification_top_k: int = 28
    inference_timeout: float = 30.0
    min_text_words: int = 10
    max_tracked_slots: int = 1000  # Per-process (session, modality) slot states kept

    # ==========================================================================
    # Chat Completion (insights, affirmations, meditation scripts)
    # ==========================================================================
    ai_provider: Literal["huggingface", "openai", "groq", "none"] = "huggingface"
    completion_api_key: str = ""  # Falls back to hf_api_token for huggingface
    completion_url: str = ""      # Empty = provider default
    completion_model: str = ""    # Empty = provider default
    completion_timeout: float = 30.0
    completion_max_tokens: int = 800

    # ==========================================================================
    # Chat Support Relay
    # ==========================================================================
    chat_support_url: str = ""
    chat_conversation_id: str = "mindwell-support"
    chat_timeout_seconds: float = 30.0

    # ==========================================================================
    # History
    # ==========================================================================
    history_limit: int = 10

    # ==========================================================================
    # Observability
    # ==========================================================================
    log_level: str = "INFO"
    log_json_format: bool = False
    log_file: str = ""

    # ==========================================================================
    # Deployment
    # ==========================================================================
    cors_origins: str = ""  # Comma-separated list of allowed origins.

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS origins into a list with secure defaults.
        - If explicit origins set: use those
        - If empty: restrict to localhost only
        """
        if self.cors_origins:
            if self.cors_origins == "*":
                return ["*"]
            return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

        return [
            "http://localhost:8000",
            "http://127.0.0.1:8000",
            "http://localhost:8081",  # Expo dev server
            "http://127.0.0.1:8081",
        ]

    @property
    def completion_key(self) -> str:
        """API key for the configured chat-completion provider."""
        if self.completion_api_key:
            return self.completion_api_key
        if self.ai_provider == "huggingface":
            return self.hf_api_token
        return ""


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Use dependency injection: Depends(get_settings)
    """
    return Settings()
