"""
OpenAI-compatible chat completion providers

OpenAI, DeepSeek, Grok (x.ai) and Groq all speak the same
/chat/completions dialect and differ only in base URL.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..exceptions import AIServiceError
from ..models import AIProvider
from .base import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE, HTTPAIService

logger = logging.getLogger(__name__)

BASE_URLS: Dict[AIProvider, str] = {
    AIProvider.OPENAI: "https://api.openai.com/v1",
    AIProvider.DEEPSEEK: "https://api.deepseek.com/v1",
    AIProvider.GROK: "https://api.x.ai/v1",
    AIProvider.GROQ: "https://api.groq.com/openai/v1",
}

PROVIDER_NAMES: Dict[AIProvider, str] = {
    AIProvider.OPENAI: "OpenAI",
    AIProvider.DEEPSEEK: "DeepSeek",
    AIProvider.GROK: "Grok",
    AIProvider.GROQ: "Groq",
}


class OpenAICompatibleService(HTTPAIService):

    def __init__(
        self,
        provider: AIProvider,
        api_key: str,
        model: str,
        timeout_ms: int = 30000,
        max_retries: int = 3,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if provider not in BASE_URLS:
            raise ValueError(f"{provider.value} is not an OpenAI-compatible provider")
        super().__init__(model, timeout_ms, max_retries, transport)
        self.provider = provider
        self.api_key = api_key
        self.base_url = (base_url or BASE_URLS[provider]).rstrip("/")

    @property
    def provider_name(self) -> str:
        return PROVIDER_NAMES[self.provider]

    async def _complete(self, prompt: str, image_base64: Optional[str] = None) -> Tuple[str, int]:
        content: Any = prompt
        if image_base64:
            content = [
                {"type": "text", "text": prompt},
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:image/png;base64,{image_base64}"},
                },
            ]
        messages: List[Dict[str, Any]] = [{"role": "user", "content": content}]

        data = await self._post(
            f"{self.base_url}/chat/completions",
            {
                "model": self.model,
                "messages": messages,
                "temperature": DEFAULT_TEMPERATURE,
                "max_tokens": DEFAULT_MAX_TOKENS,
            },
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )

        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise AIServiceError(self.provider_name, f"Unexpected response shape: {e}") from e

        tokens = (data.get("usage") or {}).get("total_tokens", 0)
        return text or "", int(tokens or 0)
