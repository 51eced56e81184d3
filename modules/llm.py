"""
Hosted model client - Gemini ``generateContent`` over REST (no SDK).

Every flow that needs the model goes through ``generate_structured``:
the prompt is sent with a JSON response MIME type, the reply is pulled out
of any markdown fences and validated against a pydantic model. Any failure
surfaces as ``ModelError``; callers do not fall back to a local answer.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from modules.errors import ModelError

logger = logging.getLogger(__name__)

GEMINI_GENERATE_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
DEFAULT_MODEL = "gemini-2.5-flash"

# Delays between attempts after a 429; the last entry is never slept on.
RETRY_DELAYS = (5, 15, 30)

M = TypeVar("M", bound=BaseModel)


def _gemini_api_key() -> str | None:
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")


def _gemini_model() -> str:
    return os.getenv("GEMINI_MODEL") or DEFAULT_MODEL


async def gemini_generate(
    prompt: str,
    *,
    max_tokens: int = 2048,
    temperature: float = 0.2,
    json_output: bool = False,
) -> str:
    """Send *prompt* to Gemini and return the text of the first candidate.

    Retries on HTTP 429 using ``RETRY_DELAYS``.

    Raises:
        ModelError: no API key, request failure, or an empty reply.
    """
    api_key = _gemini_api_key()
    if not api_key:
        raise ModelError("GEMINI_API_KEY is not set")

    generation_config: dict[str, Any] = {
        "temperature": temperature,
        "maxOutputTokens": max_tokens,
    }
    if json_output:
        generation_config["responseMimeType"] = "application/json"
    body = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": generation_config,
    }
    url = GEMINI_GENERATE_URL.format(model=_gemini_model())

    async with httpx.AsyncClient(timeout=120) as client:
        for attempt, delay in enumerate(RETRY_DELAYS):
            try:
                resp = await client.post(url, params={"key": api_key}, json=body)
                resp.raise_for_status()
                data = resp.json()
            except httpx.HTTPStatusError as exc:
                if exc.response.status_code == 429 and attempt < len(RETRY_DELAYS) - 1:
                    logger.warning("Gemini 429 - retrying in %ds (attempt %d)", delay, attempt + 1)
                    await asyncio.sleep(delay)
                    continue
                logger.error("Gemini generation failed: %s", exc)
                raise ModelError(f"model request failed with HTTP {exc.response.status_code}") from exc
            except (httpx.HTTPError, ValueError) as exc:
                logger.error("Gemini generation failed: %s", exc)
                raise ModelError(f"model request failed: {exc}") from exc

            try:
                return data["candidates"][0]["content"]["parts"][0]["text"]
            except (KeyError, IndexError, TypeError) as exc:
                reason = data.get("promptFeedback", {}).get("blockReason") if isinstance(data, dict) else None
                raise ModelError(f"model returned no text (block reason: {reason})") from exc

    raise ModelError("model request failed after retries")


def extract_json(raw: str) -> Any:
    """Parse JSON from a model reply, tolerating ```json fences."""
    text = (raw or "").strip()
    if "```" in text:
        text = re.sub(r"^.*?```(?:json)?\s*", "", text, flags=re.DOTALL)
        text = re.sub(r"\s*```.*$", "", text, flags=re.DOTALL).strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("JSON parse failed on %d chars of model output", len(text))
        raise ModelError(f"model output is not valid JSON: {exc.msg}") from exc


async def generate_structured(prompt: str, schema: type[M], *, max_tokens: int = 2048) -> M:
    """Generate a reply to *prompt* and validate it as *schema*."""
    raw = await gemini_generate(prompt, max_tokens=max_tokens, json_output=True)
    data = extract_json(raw)
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        logger.warning("Model output did not match %s: %s", schema.__name__, exc)
        raise ModelError(f"model output does not match {schema.__name__}: {exc.error_count()} error(s)") from exc
