"""
AI providers
"""

from ..config import API_KEY_ENV_VARS, AIConfig
from ..core.ai_service import AIService
from ..exceptions import ConfigurationError
from ..models import AIProvider
from .anthropic_service import AnthropicService
from .base import HTTPAIService, PromptedAIService, parse_ai_response
from .gemini_service import GeminiService
from .ollama_service import OllamaService
from .openai_service import OpenAICompatibleService


def create_ai_service(config: AIConfig) -> AIService:
    """Build the provider named by `config.provider`"""
    provider = config.provider
    model = config.resolved_model()

    if provider == AIProvider.LOCAL:
        return OllamaService(
            model=model,
            base_url=config.base_url,
            timeout_ms=config.timeout_ms,
            max_retries=config.max_retries,
        )

    api_key = config.resolved_api_key()
    if not api_key:
        raise ConfigurationError(
            f"No API key for {provider.value}: pass api_key or set {API_KEY_ENV_VARS[provider]}"
        )

    if provider == AIProvider.ANTHROPIC:
        return AnthropicService(
            api_key=api_key,
            model=model,
            timeout_ms=config.timeout_ms,
            max_retries=config.max_retries,
            base_url=config.base_url,
        )
    if provider == AIProvider.GOOGLE_GEMINI:
        return GeminiService(
            api_key=api_key,
            model=model,
            timeout_ms=config.timeout_ms,
            max_retries=config.max_retries,
            base_url=config.base_url,
        )
    return OpenAICompatibleService(
        provider,
        api_key=api_key,
        model=model,
        timeout_ms=config.timeout_ms,
        max_retries=config.max_retries,
        base_url=config.base_url,
    )


__all__ = [
    "AIService",
    "AnthropicService",
    "GeminiService",
    "HTTPAIService",
    "OllamaService",
    "OpenAICompatibleService",
    "PromptedAIService",
    "create_ai_service",
    "parse_ai_response",
]
