"""
Allergen and nutrition extraction with OpenAI chat completions.

Two entry points share one request/response policy:
- extract_from_text: label text extracted from a digital PDF
- extract_from_images: rendered pages of a scanned PDF, sent in a single
  request so tables spanning several pages can be read together

Quota and rate-limit errors degrade to a fallback result instead of
failing the request. Everything else propagates as ProviderError.
"""

import logging
from typing import Any

import openai

# Handle both package imports and standalone imports
try:
    from ...models import AllergenNutritionResult
except ImportError:
    from models import AllergenNutritionResult

from .exceptions import ProviderError, ProviderQuotaError
from .prompts import (
    TEXT_SYSTEM_PROMPT,
    VISION_SYSTEM_PROMPT,
    build_text_prompt,
    build_vision_prompt,
)
from .validation import normalize_result, parse_model_output

logger = logging.getLogger(__name__)


def is_quota_error(error: Exception) -> bool:
    """Return True if a provider error signals quota exhaustion or rate limiting."""
    if isinstance(error, openai.RateLimitError):
        return True
    if getattr(error, "code", None) == "insufficient_quota":
        return True
    return getattr(error, "status_code", None) == 429


async def _complete(
    client: Any,  # AsyncOpenAI client
    messages: list[dict[str, Any]],
    model: str,
    temperature: float,
    max_tokens: int | None = None,
) -> dict[str, Any]:
    """Issue one JSON-mode completion and return the parsed object."""
    request: dict[str, Any] = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
        "response_format": {"type": "json_object"},
    }
    if max_tokens is not None:
        request["max_tokens"] = max_tokens

    try:
        response = await client.chat.completions.create(**request)
    except openai.APIError as e:
        if is_quota_error(e):
            raise ProviderQuotaError(str(e)) from e
        logger.error("OpenAI request failed: %s", e)
        raise ProviderError(f"OpenAI request failed: {e}") from e

    if not response.choices:
        raise ProviderError("Empty response from OpenAI")
    return parse_model_output(response.choices[0].message.content)


async def extract_from_text(
    text: str,
    client: Any,  # AsyncOpenAI client
    model: str = "gpt-4o",
    temperature: float = 0.1,
) -> AllergenNutritionResult:
    """
    Extract allergen and nutrition data from label text.

    The full text is sent in one request; no chunking is performed.

    Args:
        text: Plain text extracted from the PDF.
        client: AsyncOpenAI client instance.
        model: Model name to use.
        temperature: Sampling temperature.

    Returns:
        Normalized AllergenNutritionResult, or the quota fallback result.

    Raises:
        ProviderError: On any non-quota provider failure or malformed JSON.
    """
    logger.info("Extracting label data from %d characters of text", len(text))
    messages = [
        {"role": "system", "content": TEXT_SYSTEM_PROMPT},
        {"role": "user", "content": build_text_prompt(text)},
    ]
    try:
        payload = await _complete(client, messages, model, temperature)
    except ProviderQuotaError as e:
        logger.warning("OpenAI quota exceeded. Returning fallback response: %s", e)
        return AllergenNutritionResult.quota_fallback()

    return normalize_result(payload)


async def extract_from_images(
    images: list[str],
    client: Any,  # AsyncOpenAI client
    model: str = "gpt-4o",
    temperature: float = 0.1,
    max_tokens: int = 1500,
) -> AllergenNutritionResult:
    """
    Extract allergen and nutrition data from rendered label pages.

    All pages go into a single request, in page order, each marked for
    high-detail analysis.

    Args:
        images: Base64-encoded PNG pages in page order.
        client: AsyncOpenAI client instance.
        model: Vision-capable model name.
        temperature: Sampling temperature.
        max_tokens: Upper bound on generated tokens.

    Returns:
        Normalized AllergenNutritionResult, or the quota fallback result.

    Raises:
        ProviderError: On any non-quota provider failure or malformed JSON.
    """
    if not images:
        raise ProviderError("No page images to analyze")

    logger.info("Processing %d page(s) with vision model %s", len(images), model)

    content: list[dict[str, Any]] = [
        {"type": "text", "text": build_vision_prompt()},
    ]
    for index, base64_img in enumerate(images, start=1):
        content.append({
            "type": "image_url",
            "image_url": {
                "url": f"data:image/png;base64,{base64_img}",
                "detail": "high",
            },
        })
        logger.debug("Added page %d to API request", index)

    messages = [
        {"role": "system", "content": VISION_SYSTEM_PROMPT},
        {"role": "user", "content": content},
    ]
    try:
        payload = await _complete(client, messages, model, temperature, max_tokens)
    except ProviderQuotaError as e:
        logger.warning("OpenAI quota exceeded. Returning fallback response: %s", e)
        return AllergenNutritionResult.quota_fallback()

    logger.info("Vision extraction complete")
    return normalize_result(payload)

