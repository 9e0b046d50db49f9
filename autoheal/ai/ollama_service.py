"""
Local provider: Ollama /api/generate

Ollama usually reports prompt_eval_count and eval_count. When it does
not, tokens are estimated from word counts.
"""

import logging
import os
from typing import Any, Dict, Optional, Tuple

import httpx

from .base import HTTPAIService

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_URL = "http://localhost:11434"


class OllamaService(HTTPAIService):

    def __init__(
        self,
        model: str = "llama3.2:3b",
        base_url: Optional[str] = None,
        timeout_ms: int = 30000,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(model, timeout_ms, max_retries, transport)
        self.base_url = (base_url or os.getenv("OLLAMA_URL", DEFAULT_OLLAMA_URL)).rstrip("/")

    @property
    def provider_name(self) -> str:
        return "Ollama"

    async def _complete(self, prompt: str, image_base64: Optional[str] = None) -> Tuple[str, int]:
        request_body: Dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
        }
        if image_base64:
            request_body["images"] = [image_base64]

        data = await self._post(f"{self.base_url}/api/generate", request_body)
        content = data.get("response", "")

        if "prompt_eval_count" in data or "eval_count" in data:
            tokens = int(data.get("prompt_eval_count", 0)) + int(data.get("eval_count", 0))
        else:
            # Estimate
            tokens = len(prompt.split()) + len(content.split())
        return content, tokens
