"""
Pytest configuration and shared fixtures for AutoHeal tests.
"""

import pytest
from typing import Any, Dict, List
from unittest.mock import Mock, AsyncMock, MagicMock

from autoheal.config import AIConfig, AutoHealConfiguration, ExecutionStrategy, PerformanceConfig
from autoheal.cache import MemoryCache
from autoheal.core.adapter import WebAutomationAdapter
from autoheal.core.ai_service import AIService
from autoheal.core.locator import AutoHealLocator
from autoheal.models import AIAnalysisResult, AutomationFramework, ElementContext
from autoheal.reporting import AutoHealReporter


SAMPLE_HTML = """
<html><body>
  <form id="login">
    <input id="user-name" name="user-name" type="text" placeholder="Username">
    <input id="password" name="password" type="password" placeholder="Password">
    <input id="login-button" type="submit" value="Login">
  </form>
</body></html>
"""


# ==================== Mock Page Fixture ====================

@pytest.fixture
def mock_page():
    """Create a mock Playwright page object."""
    page = AsyncMock()

    page.url = "https://www.saucedemo.com/"
    page.content = AsyncMock(return_value=SAMPLE_HTML)
    page.screenshot = AsyncMock(return_value=b"fake_screenshot_data")

    mock_locator = AsyncMock()
    mock_locator.count = AsyncMock(return_value=1)
    mock_locator.nth = Mock(side_effect=lambda i: f"nth-{i}")
    mock_locator.evaluate = AsyncMock(return_value={})
    mock_locator.bounding_box = AsyncMock(return_value=None)

    page.locator = Mock(return_value=mock_locator)
    page.get_by_text = Mock(return_value=mock_locator)
    page.get_by_label = Mock(return_value=mock_locator)
    page.get_by_placeholder = Mock(return_value=mock_locator)
    page.get_by_alt_text = Mock(return_value=mock_locator)
    page.get_by_title = Mock(return_value=mock_locator)
    page.get_by_role = Mock(return_value=mock_locator)
    page.get_by_test_id = Mock(return_value=mock_locator)

    return page


# ==================== Adapter / AI Fixtures ====================

@pytest.fixture
def page_elements() -> Dict[str, List[Any]]:
    """Selector -> matching elements on the fake page. Tests mutate it."""
    return {}


@pytest.fixture
def mock_adapter(page_elements):
    """Create a mock automation adapter backed by `page_elements`."""
    adapter = MagicMock(spec=WebAutomationAdapter)
    adapter.framework = AutomationFramework.PLAYWRIGHT

    adapter.find_elements = AsyncMock(
        side_effect=lambda selector: list(page_elements.get(selector, []))
    )
    adapter.get_page_source = AsyncMock(return_value=SAMPLE_HTML)
    adapter.take_screenshot = AsyncMock(return_value=b"fake_screenshot_data")
    adapter.get_current_url = AsyncMock(return_value="https://www.saucedemo.com/")
    adapter.get_element_context = AsyncMock(return_value=ElementContext(tag_name="input", id="user-name"))
    adapter.describe_element = AsyncMock(return_value='<input id="user-name">')

    return adapter


@pytest.fixture
def mock_ai_service():
    """Create a mock AI service recommending #user-name from both analyses."""
    ai = MagicMock(spec=AIService)
    ai.provider_name = "Mock AI"

    ai.analyze_dom = AsyncMock(return_value=AIAnalysisResult(
        selector="#user-name",
        confidence=0.95,
        reasoning="Found input with stable id='user-name' attribute",
        tokens_used=150,
    ))
    ai.analyze_visual = AsyncMock(return_value=AIAnalysisResult(
        selector="#user-name",
        confidence=0.85,
        reasoning="Text input at the top of the login form",
        tokens_used=400,
    ))
    ai.select_best_matching_element = AsyncMock(
        side_effect=lambda elements, description: elements[0]
    )

    return ai


@pytest.fixture
def recorder():
    """Create a mock usage recorder."""
    return Mock()


@pytest.fixture
def make_locator(mock_adapter, mock_ai_service, recorder):
    """Factory for an AutoHealLocator wired to the mock adapter and AI service."""

    def _make(
        strategy: ExecutionStrategy = ExecutionStrategy.SMART_SEQUENTIAL,
        cache=None,
        visual_enabled: bool = True,
        reporter=None,
    ) -> AutoHealLocator:
        configuration = AutoHealConfiguration(
            ai=AIConfig(visual_analysis_enabled=visual_enabled),
            performance=PerformanceConfig(execution_strategy=strategy),
        )
        return AutoHealLocator(
            adapter=mock_adapter,
            ai_service=mock_ai_service,
            cache=cache if cache is not None else MemoryCache(),
            reporter=reporter or recorder,
            configuration=configuration,
        )

    return _make


@pytest.fixture
def reporter():
    """Create a real in-memory reporter."""
    return AutoHealReporter()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove AutoHeal and provider variables from the environment."""
    for name in (
        "AUTOHEAL_AI_PROVIDER", "AUTOHEAL_AI_MODEL", "AUTOHEAL_AI_TIMEOUT",
        "AUTOHEAL_AI_MAX_RETRIES", "AUTOHEAL_AI_VISUAL_ENABLED", "AUTOHEAL_CACHE_TYPE",
        "AUTOHEAL_CACHE_MAX_SIZE", "AUTOHEAL_CACHE_EXPIRE_AFTER_WRITE",
        "AUTOHEAL_CACHE_DIRECTORY", "AUTOHEAL_EXECUTION_STRATEGY", "AUTOHEAL_ELEMENT_TIMEOUT",
        "AUTOHEAL_REPORTING_ENABLED", "AUTOHEAL_REPORTING_CONSOLE",
        "GEMINI_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY", "DEEPSEEK_API_KEY",
        "GROK_API_KEY", "GROQ_API_KEY", "OLLAMA_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
