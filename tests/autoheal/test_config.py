"""
Unit tests for configuration loading.

Tests defaults, environment variables, config files and override
precedence.
"""

import json

import pytest

from autoheal.config import (
    AIConfig,
    AutoHealConfiguration,
    CacheType,
    ExecutionStrategy,
    deep_merge,
    load_configuration,
    load_from_config_file,
    resolve_provider,
)
from autoheal.exceptions import ConfigurationError
from autoheal.models import AIProvider


class TestDefaults:
    """Test default values."""

    def test_defaults(self, clean_env, tmp_path):
        """Test the configuration with nothing set."""
        config = load_configuration(config_dir=tmp_path)

        assert config.ai.provider == AIProvider.GOOGLE_GEMINI
        assert config.ai.timeout_ms == 30000
        assert config.ai.max_retries == 3
        assert config.ai.visual_analysis_enabled is True
        assert config.cache.type == CacheType.PERSISTENT_FILE
        assert config.cache.max_size == 10000
        assert config.cache.expire_after_write_ms == 86_400_000
        assert config.performance.execution_strategy == ExecutionStrategy.SMART_SEQUENTIAL
        assert config.reporting.enabled is True

    def test_default_instances_are_independent(self):
        """Test that nested sections are not shared between instances."""
        first = AutoHealConfiguration()
        second = AutoHealConfiguration()

        first.ai.model = "changed"

        assert second.ai.model is None


class TestResolveProvider:
    """Test provider alias resolution."""

    @pytest.mark.parametrize("name,expected", [
        ("gemini", AIProvider.GOOGLE_GEMINI),
        ("Google", AIProvider.GOOGLE_GEMINI),
        ("claude", AIProvider.ANTHROPIC),
        ("OLLAMA", AIProvider.LOCAL),
        ("DEEPSEEK", AIProvider.DEEPSEEK),
        (AIProvider.GROQ, AIProvider.GROQ),
    ])
    def test_aliases(self, name, expected):
        """Test known names and aliases."""
        assert resolve_provider(name) == expected

    def test_unknown(self):
        """Test that an unknown provider raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Unknown AI provider"):
            resolve_provider("skynet")


class TestEnvironment:
    """Test AUTOHEAL_* variables."""

    def test_ai_section(self, clean_env, tmp_path):
        """Test provider, model and numeric settings from the environment."""
        clean_env.setenv("AUTOHEAL_AI_PROVIDER", "openai")
        clean_env.setenv("AUTOHEAL_AI_MODEL", "gpt-4o-mini")
        clean_env.setenv("AUTOHEAL_AI_TIMEOUT", "5000")
        clean_env.setenv("AUTOHEAL_AI_VISUAL_ENABLED", "false")

        config = load_configuration(config_dir=tmp_path)

        assert config.ai.provider == AIProvider.OPENAI
        assert config.ai.model == "gpt-4o-mini"
        assert config.ai.timeout_ms == 5000
        assert config.ai.visual_analysis_enabled is False

    def test_cache_and_strategy(self, clean_env, tmp_path):
        """Test cache and performance sections from the environment."""
        clean_env.setenv("AUTOHEAL_CACHE_TYPE", "memory")
        clean_env.setenv("AUTOHEAL_CACHE_MAX_SIZE", "50")
        clean_env.setenv("AUTOHEAL_EXECUTION_STRATEGY", "dom_only")

        config = load_configuration(config_dir=tmp_path)

        assert config.cache.type == CacheType.MEMORY
        assert config.cache.max_size == 50
        assert config.cache.cache_directory == "./autoheal-cache"
        assert config.performance.execution_strategy == ExecutionStrategy.DOM_ONLY

    def test_reporting_disabled(self, clean_env, tmp_path):
        """Test AUTOHEAL_REPORTING_ENABLED=false."""
        clean_env.setenv("AUTOHEAL_REPORTING_ENABLED", "false")

        assert load_configuration(config_dir=tmp_path).reporting.enabled is False

    def test_invalid_value(self, clean_env, tmp_path):
        """Test that an unparseable number raises ConfigurationError."""
        clean_env.setenv("AUTOHEAL_AI_PROVIDER", "gemini")
        clean_env.setenv("AUTOHEAL_AI_TIMEOUT", "soon")

        with pytest.raises(ConfigurationError):
            load_configuration(config_dir=tmp_path)

    def test_unknown_strategy(self, clean_env, tmp_path):
        """Test that an unknown execution strategy raises ConfigurationError."""
        clean_env.setenv("AUTOHEAL_EXECUTION_STRATEGY", "RANDOM")

        with pytest.raises(ConfigurationError):
            load_configuration(config_dir=tmp_path)


class TestConfigFile:
    """Test JSON config files."""

    def test_autohealrc(self, clean_env, tmp_path):
        """Test that .autohealrc.json is applied."""
        (tmp_path / ".autohealrc.json").write_text(json.dumps({
            "ai": {"provider": "anthropic"},
            "performance": {"execution_strategy": "VISUAL_FIRST"},
        }), encoding="utf-8")

        config = load_configuration(config_dir=tmp_path)

        assert config.ai.provider == AIProvider.ANTHROPIC
        assert config.performance.execution_strategy == ExecutionStrategy.VISUAL_FIRST
        assert config.ai.timeout_ms == 30000

    def test_first_file_wins(self, tmp_path):
        """Test that .autohealrc.json takes priority over autoheal.config.json."""
        (tmp_path / ".autohealrc.json").write_text('{"cache": {"max_size": 1}}', encoding="utf-8")
        (tmp_path / "autoheal.config.json").write_text('{"cache": {"max_size": 2}}', encoding="utf-8")

        assert load_from_config_file(tmp_path) == {"cache": {"max_size": 1}}

    def test_unreadable_file_skipped(self, tmp_path):
        """Test that a broken file falls through to the next one."""
        (tmp_path / ".autohealrc.json").write_text("{broken", encoding="utf-8")
        (tmp_path / "autoheal.config.json").write_text('{"cache": {"max_size": 2}}', encoding="utf-8")

        assert load_from_config_file(tmp_path) == {"cache": {"max_size": 2}}

    def test_no_file(self, tmp_path):
        """Test an empty directory."""
        assert load_from_config_file(tmp_path) == {}

    def test_file_beats_environment(self, clean_env, tmp_path):
        """Test that the config file overrides environment variables."""
        clean_env.setenv("AUTOHEAL_CACHE_TYPE", "MEMORY")
        (tmp_path / "autoheal.config.json").write_text(
            '{"cache": {"type": "PERSISTENT_FILE"}}', encoding="utf-8"
        )

        assert load_configuration(config_dir=tmp_path).cache.type == CacheType.PERSISTENT_FILE


class TestOverrides:
    """Test programmatic overrides."""

    def test_overrides_win(self, clean_env, tmp_path):
        """Test that overrides beat both the file and the environment."""
        clean_env.setenv("AUTOHEAL_AI_PROVIDER", "openai")
        (tmp_path / ".autohealrc.json").write_text('{"ai": {"provider": "grok"}}', encoding="utf-8")

        config = load_configuration({"ai": {"provider": "groq", "api_key": "k"}}, config_dir=tmp_path)

        assert config.ai.provider == AIProvider.GROQ
        assert config.ai.api_key == "k"

    def test_none_override_ignored(self, clean_env, tmp_path):
        """Test that None values do not clear lower layers."""
        config = load_configuration({"ai": {"model": None}, "cache": {"max_size": 5}}, config_dir=tmp_path)

        assert config.ai.model is None
        assert config.cache.max_size == 5


class TestAIConfig:
    """Test AIConfig helpers."""

    def test_resolved_model(self):
        """Test explicit and default models."""
        assert AIConfig(provider=AIProvider.OPENAI).resolved_model() == "gpt-4o"
        assert AIConfig(provider=AIProvider.OPENAI, model="o1").resolved_model() == "o1"

    def test_resolved_api_key(self, clean_env):
        """Test explicit key first, then the provider variable."""
        clean_env.setenv("ANTHROPIC_API_KEY", "from-env")

        assert AIConfig(provider=AIProvider.ANTHROPIC).resolved_api_key() == "from-env"
        assert AIConfig(provider=AIProvider.ANTHROPIC, api_key="explicit").resolved_api_key() == "explicit"
        assert AIConfig(provider=AIProvider.LOCAL).resolved_api_key() is None


class TestDeepMerge:
    """Test deep_merge."""

    def test_nested(self):
        """Test nested dicts merge and scalars replace."""
        merged = deep_merge({"a": {"x": 1, "y": 2}, "b": 1}, {"a": {"y": 3}, "b": 2})

        assert merged == {"a": {"x": 1, "y": 3}, "b": 2}

    def test_inputs_untouched(self):
        """Test that the input layers are not mutated."""
        base = {"a": {"x": 1}}

        deep_merge(base, {"a": {"x": 2}})

        assert base == {"a": {"x": 1}}
