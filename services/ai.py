"""
services.ai

AI helpers for the note editor: auto-tagging and summarising a note.

Both calls are coroutines and never raise to the caller. Any failure (network,
HTTP status, unparsable model output) is logged and reported as an empty
result, which the editor treats the same as "nothing to apply".
"""

from __future__ import annotations

import json
import logging
import re
from typing import List, Optional

import httpx

logger = logging.getLogger("notention.ai")

DEFAULT_TIMEOUT_SECONDS = 30.0

AUTO_TAG_SYSTEM = (
    "You are an expert in semantic tagging. Given the content of a note, suggest "
    "relevant tags (e.g., #Topic, @Person). Return tags as a JSON array of strings."
)
SUMMARY_SYSTEM = (
    "You are an expert in summarizing text. Provide a concise summary of the following note."
)

_TAG_ARRAY = re.compile(r"\[.*\]", re.DOTALL)


def parse_tag_list(raw: str) -> List[str]:
    """Extract a JSON array of strings from model output; anything else yields []."""
    if not raw:
        return []
    match = _TAG_ARRAY.search(raw)
    if not match:
        return []
    try:
        parsed = json.loads(match.group(0))
    except ValueError:
        return []
    if not isinstance(parsed, list):
        return []
    return [t.strip() for t in parsed if isinstance(t, str) and t.strip()]


class NullAIService:
    """Used when AI is not configured. Always returns empty results."""

    async def auto_tag(self, plain_text: str) -> List[str]:
        return []

    async def summarize(self, rich_content: str) -> str:
        return ""


class OllamaAIService(NullAIService):
    """Talks to an Ollama server through its /api/generate endpoint."""

    def __init__(
        self,
        endpoint: str,
        model: str = "llama3",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._transport = transport

    async def _generate(self, system: str, prompt: str) -> str:
        payload = {"model": self.model, "system": system, "prompt": prompt, "stream": False}
        try:
            async with httpx.AsyncClient(
                base_url=self.endpoint, timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post("/api/generate", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException:
            logger.warning("Ollama request timed out after %ss", self.timeout)
            return ""
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Ollama request failed: %s", e)
            return ""
        text = data.get("response", "") if isinstance(data, dict) else ""
        return text.strip() if isinstance(text, str) else ""

    async def auto_tag(self, plain_text: str) -> List[str]:
        if not plain_text or not plain_text.strip():
            return []
        raw = await self._generate(AUTO_TAG_SYSTEM, f"Note Content:\n{plain_text}\n\nSuggest tags:")
        tags = parse_tag_list(raw)
        logger.debug("Auto-tag returned %d tag(s)", len(tags))
        return tags

    async def summarize(self, rich_content: str) -> str:
        if not rich_content or not rich_content.strip():
            return ""
        return await self._generate(SUMMARY_SYSTEM, f"Note Content:\n{rich_content}\n\nSummary:")


def ai_service_for(preferences, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> NullAIService:
    """Pick the AI backend for the given Preferences (None -> disabled)."""
    endpoint = getattr(preferences, "ollama_api_endpoint", "") or ""
    if not endpoint.strip():
        return NullAIService()
    model = getattr(preferences, "ollama_chat_model", "") or "llama3"
    return OllamaAIService(endpoint.strip(), model=model, timeout=timeout)
