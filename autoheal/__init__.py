"""
AutoHeal Locator
================

Self-healing element location for Playwright and Selenium tests.

A selector that stops matching is recovered from a trust-scored cache
of previously healed selectors, or else by asking an AI provider to
analyze the page DOM or a screenshot.
"""

__version__ = "1.0.0"

from .config import (
    AIConfig,
    AutoHealConfiguration,
    CacheConfig,
    CacheType,
    ExecutionStrategy,
    PerformanceConfig,
    ReportingConfig,
    load_configuration,
)
from .exceptions import (
    AdapterError,
    AIServiceError,
    AutoHealError,
    ConfigurationError,
    ElementNotFoundError,
)
from .models import (
    AIAnalysisResult,
    AIProvider,
    AutomationFramework,
    CachedSelector,
    CacheMetrics,
    ElementContext,
    LocatorOptions,
    LocatorRequest,
    LocatorResult,
    LocatorStrategy,
    Position,
)
from .cache import FileCache, MemoryCache, SelectorCache, create_cache
from .core.adapter import WebAutomationAdapter
from .core.ai_service import AIService
from .core.selector_format import normalize_selector, to_engine_format, to_native_format
from .core.locator import AutoHealLocator, AutoHealLocatorBuilder
from .ai import create_ai_service
from .adapters import PlaywrightAdapter
from .reporting import AutoHealReporter, SelectorReport, UsageRecorder

__all__ = [
    "__version__",
    # Orchestrator
    "AutoHealLocator",
    "AutoHealLocatorBuilder",
    # Configuration
    "AIConfig",
    "AutoHealConfiguration",
    "CacheConfig",
    "CacheType",
    "ExecutionStrategy",
    "PerformanceConfig",
    "ReportingConfig",
    "load_configuration",
    # Errors
    "AdapterError",
    "AIServiceError",
    "AutoHealError",
    "ConfigurationError",
    "ElementNotFoundError",
    # Models
    "AIAnalysisResult",
    "AIProvider",
    "AutomationFramework",
    "CachedSelector",
    "CacheMetrics",
    "ElementContext",
    "LocatorOptions",
    "LocatorRequest",
    "LocatorResult",
    "LocatorStrategy",
    "Position",
    # Capabilities
    "AIService",
    "WebAutomationAdapter",
    "PlaywrightAdapter",
    "create_ai_service",
    # Cache
    "FileCache",
    "MemoryCache",
    "SelectorCache",
    "create_cache",
    # Selector format
    "normalize_selector",
    "to_engine_format",
    "to_native_format",
    # Reporting
    "AutoHealReporter",
    "SelectorReport",
    "UsageRecorder",
]
