"""
AutoHeal Configuration

Configuration is resolved once, when a locator is built:

    defaults < environment (.env honoured) < .autohealrc.json / autoheal.config.json < overrides

Execution strategies:

- SMART_SEQUENTIAL (default): DOM analysis first, visual analysis when the
  DOM selector does not resolve.
- SEQUENTIAL: legacy name for SMART_SEQUENTIAL.
- VISUAL_FIRST: visual analysis first, DOM analysis when the visual
  selector does not resolve.
- DOM_ONLY: a single DOM analysis, no fallback.
- PARALLEL: runs visual analysis only. Strategies are never run
  concurrently.
"""

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigurationError
from .models import AIProvider

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = (".autohealrc.json", "autoheal.config.json")


class ExecutionStrategy(str, Enum):
    DOM_ONLY = "DOM_ONLY"
    SMART_SEQUENTIAL = "SMART_SEQUENTIAL"
    PARALLEL = "PARALLEL"
    VISUAL_FIRST = "VISUAL_FIRST"
    SEQUENTIAL = "SEQUENTIAL"


class CacheType(str, Enum):
    MEMORY = "MEMORY"
    PERSISTENT_FILE = "PERSISTENT_FILE"


# Provider aliases accepted by with_ai_provider() and AUTOHEAL_AI_PROVIDER
PROVIDER_ALIASES: Dict[str, AIProvider] = {
    "gemini": AIProvider.GOOGLE_GEMINI,
    "google": AIProvider.GOOGLE_GEMINI,
    "google-gemini": AIProvider.GOOGLE_GEMINI,
    "google_gemini": AIProvider.GOOGLE_GEMINI,
    "openai": AIProvider.OPENAI,
    "anthropic": AIProvider.ANTHROPIC,
    "claude": AIProvider.ANTHROPIC,
    "deepseek": AIProvider.DEEPSEEK,
    "grok": AIProvider.GROK,
    "groq": AIProvider.GROQ,
    "local": AIProvider.LOCAL,
    "ollama": AIProvider.LOCAL,
}

DEFAULT_MODELS: Dict[AIProvider, str] = {
    AIProvider.GOOGLE_GEMINI: "gemini-2.0-flash-exp",
    AIProvider.OPENAI: "gpt-4o",
    AIProvider.ANTHROPIC: "claude-3-5-sonnet-20241022",
    AIProvider.DEEPSEEK: "deepseek-chat",
    AIProvider.GROK: "grok-beta",
    AIProvider.GROQ: "llama-3.3-70b-versatile",
    AIProvider.LOCAL: "llama3.2:3b",
}

API_KEY_ENV_VARS: Dict[AIProvider, str] = {
    AIProvider.GOOGLE_GEMINI: "GEMINI_API_KEY",
    AIProvider.OPENAI: "OPENAI_API_KEY",
    AIProvider.ANTHROPIC: "ANTHROPIC_API_KEY",
    AIProvider.DEEPSEEK: "DEEPSEEK_API_KEY",
    AIProvider.GROK: "GROK_API_KEY",
    AIProvider.GROQ: "GROQ_API_KEY",
}


def resolve_provider(name: Any) -> AIProvider:
    """Map a provider name or alias (case-insensitive) to an AIProvider"""
    if isinstance(name, AIProvider):
        return name
    key = str(name).strip().lower()
    if key in PROVIDER_ALIASES:
        return PROVIDER_ALIASES[key]
    try:
        return AIProvider(str(name).strip().upper())
    except ValueError:
        supported = ", ".join(sorted(set(PROVIDER_ALIASES)))
        raise ConfigurationError(f"Unknown AI provider: {name}. Supported: {supported}")


class AIConfig(BaseModel):
    provider: AIProvider = AIProvider.GOOGLE_GEMINI
    api_key: Optional[str] = None
    model: Optional[str] = None
    timeout_ms: int = 30000
    max_retries: int = 3
    visual_analysis_enabled: bool = True
    base_url: Optional[str] = None

    def resolved_model(self) -> str:
        return self.model or DEFAULT_MODELS[self.provider]

    def resolved_api_key(self) -> Optional[str]:
        """Explicit key, else the provider's environment variable"""
        if self.api_key:
            return self.api_key
        env_var = API_KEY_ENV_VARS.get(self.provider)
        return os.getenv(env_var) if env_var else None


class CacheConfig(BaseModel):
    type: CacheType = CacheType.PERSISTENT_FILE
    max_size: int = 10000
    expire_after_write_ms: int = 24 * 60 * 60 * 1000
    cache_directory: str = "./autoheal-cache"


class PerformanceConfig(BaseModel):
    execution_strategy: ExecutionStrategy = ExecutionStrategy.SMART_SEQUENTIAL
    element_timeout_ms: int = 30000


class ReportingConfig(BaseModel):
    enabled: bool = True
    console_logging: bool = True


class AutoHealConfiguration(BaseModel):
    ai: AIConfig = Field(default_factory=AIConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in ("false", "0", "no", "off")


def load_from_environment() -> Dict[str, Any]:
    """Read AUTOHEAL_* variables into a partial configuration dict"""
    config: Dict[str, Any] = {}

    if os.getenv("AUTOHEAL_AI_PROVIDER"):
        config["ai"] = {
            "provider": resolve_provider(os.environ["AUTOHEAL_AI_PROVIDER"]),
            "model": os.getenv("AUTOHEAL_AI_MODEL"),
            "timeout_ms": os.getenv("AUTOHEAL_AI_TIMEOUT", "30000"),
            "max_retries": os.getenv("AUTOHEAL_AI_MAX_RETRIES", "3"),
            "visual_analysis_enabled": _env_flag("AUTOHEAL_AI_VISUAL_ENABLED", True),
        }

    if os.getenv("AUTOHEAL_CACHE_TYPE"):
        config["cache"] = {
            "type": os.environ["AUTOHEAL_CACHE_TYPE"].strip().upper(),
            "max_size": os.getenv("AUTOHEAL_CACHE_MAX_SIZE", "10000"),
            "expire_after_write_ms": os.getenv("AUTOHEAL_CACHE_EXPIRE_AFTER_WRITE", "86400000"),
            "cache_directory": os.getenv("AUTOHEAL_CACHE_DIRECTORY"),
        }

    if os.getenv("AUTOHEAL_EXECUTION_STRATEGY"):
        config["performance"] = {
            "execution_strategy": os.environ["AUTOHEAL_EXECUTION_STRATEGY"].strip().upper(),
            "element_timeout_ms": os.getenv("AUTOHEAL_ELEMENT_TIMEOUT", "30000"),
        }

    if os.getenv("AUTOHEAL_REPORTING_ENABLED") is not None:
        config["reporting"] = {
            "enabled": _env_flag("AUTOHEAL_REPORTING_ENABLED", True),
            "console_logging": _env_flag("AUTOHEAL_REPORTING_CONSOLE", True),
        }

    return _drop_none(config)


def load_from_config_file(directory: Optional[Path] = None) -> Dict[str, Any]:
    """First readable config file in `directory` (default: working directory)"""
    directory = directory or Path.cwd()
    for name in CONFIG_FILE_NAMES:
        config_path = directory / name
        if not config_path.exists():
            continue
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"[CONFIG] Failed to load config from {config_path}: {e}")
            continue
        if isinstance(data, dict):
            return data
        logger.warning(f"[CONFIG] Ignoring {config_path}: top level must be a JSON object")
    return {}


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = {}
    for key, value in data.items():
        if isinstance(value, dict):
            cleaned[key] = _drop_none(value)
        elif value is not None:
            cleaned[key] = value
    return cleaned


def deep_merge(*layers: Dict[str, Any]) -> Dict[str, Any]:
    """Merge dicts left to right; nested dicts merge, everything else is replaced"""
    merged: Dict[str, Any] = {}
    for layer in layers:
        for key, value in (layer or {}).items():
            if isinstance(value, dict):
                merged[key] = deep_merge(merged.get(key) if isinstance(merged.get(key), dict) else {}, value)
            elif value is not None:
                merged[key] = value
    return merged


def load_configuration(
    overrides: Optional[Dict[str, Any]] = None,
    config_dir: Optional[Path] = None
) -> AutoHealConfiguration:
    """Resolve the full configuration"""
    load_dotenv()

    merged = deep_merge(
        AutoHealConfiguration().model_dump(),
        load_from_environment(),
        load_from_config_file(config_dir),
        overrides or {},
    )

    ai_section = merged.get("ai", {})
    if "provider" in ai_section:
        ai_section["provider"] = resolve_provider(ai_section["provider"])

    try:
        return AutoHealConfiguration.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid AutoHeal configuration: {e}") from e
