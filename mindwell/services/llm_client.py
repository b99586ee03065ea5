"""
MindWell - Chat Completion Client
OpenAI-compatible chat completions used for insights, affirmations and
meditation scripts. Defaults to Mistral 7B Instruct via the Hugging Face
router; OpenAI and Groq work with the same payload.
"""

import logging
from typing import Optional

import httpx

from mindwell.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class CompletionError(Exception):
    """The provider could not produce a completion."""
    pass


class ChatCompletionClient:
    """
    Thin async client for `/chat/completions`.
    One request per call, no retries.
    """

    PROVIDERS = {
        "huggingface": {
            "url": "https://router.huggingface.co/v1/chat/completions",
            "model": "mistralai/Mistral-7B-Instruct-v0.3:novita",
        },
        "openai": {
            "url": "https://api.openai.com/v1/chat/completions",
            "model": "gpt-4o-mini",
        },
        "groq": {
            "url": "https://api.groq.com/openai/v1/chat/completions",
            "model": "llama-3.3-70b-versatile",
        },
    }

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.provider = settings.ai_provider
        defaults = self.PROVIDERS.get(self.provider, {})
        self.api_key = settings.completion_key
        self.url = settings.completion_url or defaults.get("url", "")
        self.model = settings.completion_model or defaults.get("model", "")
        self.timeout = settings.completion_timeout
        self.max_tokens = settings.completion_max_tokens

    @property
    def is_available(self) -> bool:
        """Check if a provider is configured."""
        return self.provider != "none" and bool(self.api_key) and bool(self.url)

    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Send one user prompt and return the assistant's text.

        Raises:
            CompletionError: provider not configured, transport failure,
                non-200 status, or a response without message content.
        """
        if not self.is_available:
            raise CompletionError("No chat-completion provider configured")

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            raise CompletionError(f"{self.provider} request failed: {e}") from e

        if response.status_code != 200:
            raise CompletionError(
                f"{self.provider} API error: {response.status_code} - {response.text[:200]}"
            )

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise CompletionError(f"Unexpected {self.provider} response shape: {e}") from e

        if not isinstance(content, str):
            raise CompletionError(f"{self.provider} returned no text content")

        logger.debug("Completion from %s (%d chars)", self.model, len(content))
        return content


# Singleton instance
_completion_client: Optional[ChatCompletionClient] = None


def get_completion_client() -> ChatCompletionClient:
    """Get or create the chat-completion client."""
    global _completion_client
    if _completion_client is None:
        _completion_client = ChatCompletionClient()
    return _completion_client
