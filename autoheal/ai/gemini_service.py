"""
Google Gemini provider (generateContent REST API)
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..exceptions import AIServiceError
from .base import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE, HTTPAIService

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiService(HTTPAIService):

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash-exp",
        timeout_ms: int = 30000,
        max_retries: int = 3,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(model, timeout_ms, max_retries, transport)
        self.api_key = api_key
        self.base_url = (base_url or GEMINI_BASE_URL).rstrip("/")

    @property
    def provider_name(self) -> str:
        return "Google Gemini"

    async def _complete(self, prompt: str, image_base64: Optional[str] = None) -> Tuple[str, int]:
        parts: List[Dict[str, Any]] = [{"text": prompt}]
        if image_base64:
            parts.append({"inline_data": {"mime_type": "image/png", "data": image_base64}})

        data = await self._post(
            f"{self.base_url}/models/{self.model}:generateContent",
            {
                "contents": [{"parts": parts}],
                "generationConfig": {
                    "temperature": DEFAULT_TEMPERATURE,
                    "maxOutputTokens": DEFAULT_MAX_TOKENS,
                },
            },
            params={"key": self.api_key},
        )

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise AIServiceError(self.provider_name, f"Unexpected response shape: {e}") from e

        tokens = (data.get("usageMetadata") or {}).get("totalTokenCount", 0)
        return text, int(tokens or 0)
