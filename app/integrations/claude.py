# app/integrations/claude.py

"""
Claude vision integration for signature comparison.

Sends the captured signature and the reference signature to Claude and
reads back a similarity score with a short analysis.
"""

import json
import logging
import re
from typing import Optional
from anthropic import (
    AsyncAnthropic,
    APIConnectionError,
    APIStatusError,
    InternalServerError,
    RateLimitError,
)
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.config import get_settings
from app.core.exceptions import (
    SignatureResponseParseError,
    SignatureServiceUnavailable,
)

settings = get_settings()
logger = logging.getLogger(__name__)

_client: Optional[AsyncAnthropic] = None

SYSTEM_PROMPT = """You are an expert signature validation system. Compare the two signatures provided and determine their similarity.

Return your response as a JSON object with this structure:
{
  "match": boolean,
  "similarityScore": 0.0-1.0,
  "confidence": 0.0-1.0,
  "analysis": "Detailed comparison explanation",
  "differences": ["list of differences"],
  "similarities": ["list of similarities"],
  "recommendation": "accept|review|reject"
}"""

JSON_FENCE_PATTERN = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?```")
JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

# Transient failures worth another attempt
RETRYABLE_ERRORS = (RateLimitError, APIConnectionError, InternalServerError)


def is_configured() -> bool:
    return bool(settings.anthropic_api_key)


def get_client() -> AsyncAnthropic:
    """Create the client on first use so a missing key only disables comparison."""
    global _client
    if _client is None:
        _client = AsyncAnthropic(api_key=settings.anthropic_api_key)
    return _client


async def compare_signatures(
    signature_image: tuple[str, str],
    reference_image: tuple[str, str],
    strict_mode: bool = False,
) -> dict:
    """
    Compare a captured signature against a reference signature.

    Both images are (media_type, base64_data) tuples.

    Returns:
        {
            "similarity_score": 0.0-1.0,
            "analysis": str,
            "recommendation": "accept" | "review" | "reject" | None,
        }

    Raises:
        SignatureServiceUnavailable: service error after retries
        SignatureResponseParseError: reply had no usable score
    """
    criteria = "Use strict validation criteria." if strict_mode else "Use moderate validation criteria."
    prompt = (
        "Compare these two signatures. The first image is the signature to validate, "
        "the second is the reference signature. Analyze stroke patterns, overall shape, "
        f"character formation, and writing style. {criteria}"
    )

    content = [
        {"type": "text", "text": prompt},
        _image_block(signature_image),
        _image_block(reference_image),
    ]

    try:
        text = await _request_comparison(content)
    except RETRYABLE_ERRORS as e:
        raise SignatureServiceUnavailable(f"Signature service unavailable: {e}") from e
    except APIStatusError as e:
        raise SignatureServiceUnavailable(f"Signature service error ({e.status_code}): {e}") from e

    return parse_comparison(text)


@retry(
    wait=wait_exponential(multiplier=1, min=1, max=10),
    stop=stop_after_attempt(settings.signature_auth_max_attempts),
    retry=retry_if_exception_type(RETRYABLE_ERRORS),
    reraise=True,
)
async def _request_comparison(content: list[dict]) -> str:
    """Single Messages API call, retried on transient errors."""
    response = await get_client().messages.create(
        model=settings.signature_model,
        max_tokens=settings.signature_auth_max_tokens,
        temperature=0.1,
        system=SYSTEM_PROMPT,
        messages=[{"role": "user", "content": content}],
    )
    return "".join(
        block.text for block in response.content if getattr(block, "type", None) == "text"
    )


def parse_comparison(text: str) -> dict:
    """Extract the JSON verdict from a model reply, tolerating markdown fences."""
    payload = _parse_json_reply(text)

    raw_score = payload.get("similarityScore", payload.get("similarity_score"))
    try:
        score = float(raw_score)
    except (TypeError, ValueError):
        raise SignatureResponseParseError(f"No numeric similarity score in reply: {raw_score!r}")

    # Some replies use a 0-100 scale
    if 1.0 < score <= 100.0:
        score = score / 100.0
    if not 0.0 <= score <= 1.0:
        raise SignatureResponseParseError(f"Similarity score out of range: {score}")

    recommendation = payload.get("recommendation")

    return {
        "similarity_score": score,
        "analysis": str(payload.get("analysis") or ""),
        "recommendation": str(recommendation) if recommendation else None,
    }


def _parse_json_reply(text: str) -> dict:
    text = (text or "").strip()

    fenced = JSON_FENCE_PATTERN.search(text)
    if fenced:
        text = fenced.group(1).strip()

    obj = JSON_OBJECT_PATTERN.search(text)
    if not obj:
        logger.warning(f"No JSON found in signature reply: {text[:200]}")
        raise SignatureResponseParseError("No JSON found in response")

    try:
        payload = json.loads(obj.group(0))
    except json.JSONDecodeError as e:
        raise SignatureResponseParseError(f"Invalid JSON in response: {e}") from e

    if not isinstance(payload, dict):
        raise SignatureResponseParseError("Response JSON is not an object")

    return payload


def _image_block(image: tuple[str, str]) -> dict:
    media_type, data = image
    return {
        "type": "image",
        "source": {"type": "base64", "media_type": media_type, "data": data},
    }
