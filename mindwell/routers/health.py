"""
Health Router
Liveness check plus which upstream providers are configured.
"""

from fastapi import APIRouter, Depends

from mindwell.core.config import Settings, get_settings
from mindwell.services.chat_support import get_chat_support
from mindwell.services.emotion_classifier import get_emotion_classifier
from mindwell.services.llm_client import get_completion_client


router = APIRouter(tags=["Health"])


@router.get("/health")
async def health(settings: Settings = Depends(get_settings)) -> dict:
    """Never reports credentials, only whether each provider is usable."""
    return {
        "status": "ok",
        "app": settings.app_name,
        "version": settings.app_version,
        "providers": {
            "emotion_classifier": get_emotion_classifier().is_available,
            "completion": get_completion_client().is_available,
            "completion_provider": settings.ai_provider,
            "chat_support": get_chat_support().is_available,
        },
    }
