"""
Anthropic provider (official SDK)

Retries and timeouts are delegated to the SDK client.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import anthropic
import httpx

from ..exceptions import AIServiceError
from .base import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE, PromptedAIService

logger = logging.getLogger(__name__)


class AnthropicService(PromptedAIService):

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-sonnet-20241022",
        timeout_ms: int = 30000,
        max_retries: int = 3,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(model, timeout_ms, max_retries)
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_ms / 1000,
            max_retries=max_retries,
            http_client=http_client,
        )

    @property
    def provider_name(self) -> str:
        return "Anthropic"

    async def _complete(self, prompt: str, image_base64: Optional[str] = None) -> Tuple[str, int]:
        content: List[Dict[str, Any]] = []
        if image_base64:
            content.append({
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": "image/png",
                    "data": image_base64,
                },
            })
        content.append({"type": "text", "text": prompt})

        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=DEFAULT_MAX_TOKENS,
                temperature=DEFAULT_TEMPERATURE,
                messages=[{"role": "user", "content": content}],
            )
        except anthropic.APIError as e:
            raise AIServiceError(self.provider_name, f"API call failed: {e}") from e

        text = "".join(block.text for block in message.content if block.type == "text")
        tokens = message.usage.input_tokens + message.usage.output_tokens
        return text, tokens
