"""OpenAI-compatible chat completion service used for verdicts and summaries."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from openai import AsyncOpenAI

from app.config import CompletionSettings

logger = logging.getLogger(__name__)


class CompletionService(Protocol):
    """Anything that turns one chat completion request into one response."""

    async def complete(self, request: Dict[str, Any]) -> Any:
        ...


class OpenAICompletionService:
    """Sends chat completion requests to an OpenAI-compatible endpoint."""

    def __init__(self, settings: CompletionSettings, client: Optional[AsyncOpenAI] = None) -> None:
        self.settings = settings
        # the SDK retries on its own unless told otherwise
        self.client = client or AsyncOpenAI(
            base_url=settings.base_url,
            api_key=settings.api_key,
            max_retries=0,
        )

    async def complete(self, request: Dict[str, Any]) -> Any:
        logger.debug("chat completion request", extra={"model": request.get("model")})
        return await self.client.chat.completions.create(**request)


def extract_text(response: Any) -> str:
    """Best-effort extraction of the assistant text from a chat completion."""

    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return (getattr(message, "content", None) or "").strip()
