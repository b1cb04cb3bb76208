"""
AI service package for allergen and nutrition extraction.

This package provides modular AI functionality split into:
- prompts: Versioned instruction templates
- extraction: Text and vision extraction calls with quota fallback
- validation: Output parsing and vocabulary normalization

The AIService class binds these functions to a configured OpenAI client.
"""

import logging
from typing import Any

# Handle both package imports and standalone imports
try:
    from ...models import AllergenNutritionResult
except ImportError:
    from models import AllergenNutritionResult

from .exceptions import AIServiceError, ProviderError, ProviderQuotaError
from .extraction import (
    extract_from_images as _extract_from_images,
    extract_from_text as _extract_from_text,
    is_quota_error,
)
from .prompts import PROMPT_VERSION
from .validation import normalize_result, parse_model_output

logger = logging.getLogger(__name__)

__all__ = [
    "AIService",
    "AIServiceError",
    "get_ai_service",
    "PROMPT_VERSION",
    "ProviderError",
    "ProviderQuotaError",
    "is_quota_error",
    "normalize_result",
    "parse_model_output",
]


class AIService:
    """
    Service for AI-powered label extraction.

    Uses an OpenAI GPT-4o class model for both plain-text and vision
    extraction. The client is created lazily so the application can start
    without credentials; requests then fail with AIServiceError.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o",
        timeout: float = 60.0,
        temperature: float = 0.1,
        vision_max_tokens: int = 1500,
        client: Any = None,
    ):
        """
        Initialize the AI service.

        Args:
            api_key: OpenAI API key.
            model: OpenAI model to use (must support vision).
            timeout: Per-request timeout in seconds.
            temperature: Sampling temperature for both extraction paths.
            vision_max_tokens: Upper bound on generated tokens for vision requests.
            client: Pre-built async client (used by tests).
        """
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.vision_max_tokens = vision_max_tokens
        self._client = client

        if not self.api_key and client is None:
            logger.warning(
                "OPENAI_API_KEY is not set. Extraction requests will fail until it is configured."
            )

    @property
    def client(self):
        """Lazy-load the async OpenAI client."""
        if self._client is None:
            if not self.api_key:
                raise AIServiceError(
                    "OpenAI API key not provided. Set OPENAI_API_KEY environment variable."
                )
            from openai import AsyncOpenAI

            # No automatic retries: a transient failure fails the request
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def extract_from_text(self, text: str) -> AllergenNutritionResult:
        """
        Extract allergen and nutrition data from plain label text.

        Delegates to the extraction module.
        """
        return await _extract_from_text(
            text,
            client=self.client,
            model=self.model,
            temperature=self.temperature,
        )

    async def extract_from_images(self, images: list[str]) -> AllergenNutritionResult:
        """
        Extract allergen and nutrition data from Base64 page images.

        Delegates to the extraction module.
        """
        return await _extract_from_images(
            images,
            client=self.client,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.vision_max_tokens,
        )


# =============================================================================
# Singleton Factory
# =============================================================================

_ai_service: AIService | None = None


def get_ai_service() -> AIService:
    """Get or create the AI service singleton."""
    global _ai_service
    if _ai_service is None:
        try:
            from ...config import get_settings
        except ImportError:
            from config import get_settings

        settings = get_settings()
        _ai_service = AIService(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            timeout=settings.openai_timeout,
            temperature=settings.openai_temperature,
            vision_max_tokens=settings.vision_max_tokens,
        )
    return _ai_service
