"""
AutoHeal Locator
================

Finds elements for browser tests and heals selectors that stopped working.

Every resolution walks the same pipeline, stopping at the first stage
that produces a match:

1. ORIGINAL_SELECTOR - the selector as given
2. CACHED - a previously healed selector, reused while its success
   rate stays above the trust threshold
3. DOM_ANALYSIS / VISUAL_ANALYSIS - AI healing under the configured
   execution strategy

Each call emits exactly one usage event: after success, or just before
the failure is raised. AI service errors are never retried here.

Usage:
    locator = (
        AutoHealLocator.builder()
        .with_playwright_page(page)
        .with_ai_provider("gemini")
        .build()
    )
    button = await locator.find_element("#submit", "Login submit button")
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..ai import create_ai_service
from ..cache import SelectorCache, create_cache
from ..config import AutoHealConfiguration, ExecutionStrategy, deep_merge, load_configuration, resolve_provider
from ..exceptions import AIServiceError, ConfigurationError, ElementNotFoundError
from ..models import CacheMetrics, CachedSelector, LocatorOptions, LocatorRequest, LocatorResult, LocatorStrategy
from ..reporting import AutoHealReporter, UsageRecorder
from .adapter import WebAutomationAdapter
from .ai_service import AIService
from .healing_strategy import AIHealer
from .selector_format import normalize_selector, to_native_format

logger = logging.getLogger(__name__)


@dataclass
class _Progress:
    """How far a resolution got, for the failure event"""
    strategy: LocatorStrategy = LocatorStrategy.ORIGINAL_SELECTOR
    actual_selector: str = ""
    tokens_used: int = 0


class AutoHealLocator:
    """Healing orchestrator. Build one per page/driver with `builder()`."""

    def __init__(
        self,
        adapter: WebAutomationAdapter,
        ai_service: AIService,
        cache: SelectorCache,
        reporter: Optional[UsageRecorder] = None,
        configuration: Optional[AutoHealConfiguration] = None
    ):
        self.adapter = adapter
        self.ai_service = ai_service
        self.cache = cache
        self.configuration = configuration or AutoHealConfiguration()
        self._reporter = reporter if reporter is not None else AutoHealReporter()

        self.default_options = LocatorOptions(
            timeout_ms=self.configuration.performance.element_timeout_ms
        )
        self._healer = AIHealer(
            adapter,
            ai_service,
            strategy=self.configuration.performance.execution_strategy,
            visual_enabled=self.configuration.ai.visual_analysis_enabled,
        )

        logger.info(
            f"[AUTOHEAL] Locator ready: framework={adapter.framework.value}, "
            f"ai={ai_service.provider_name}, strategy={self._healer.strategy.value}"
        )

    @staticmethod
    def builder() -> "AutoHealLocatorBuilder":
        return AutoHealLocatorBuilder()

    @property
    def reporter(self) -> UsageRecorder:
        return self._reporter

    # ==================== Public API ====================

    async def find_element(
        self,
        selector_or_locator: Any,
        description: str,
        options: Optional[LocatorOptions] = None
    ) -> Any:
        """
        Resolve a selector string, native accessor expression or Playwright
        Locator to a single element handle.

        Raises ElementNotFoundError when even AI healing finds nothing.
        """
        result = await self.locate(self._request(selector_or_locator, description, options))
        return result.element

    async def find_elements(
        self,
        selector_or_locator: Any,
        description: str,
        options: Optional[LocatorOptions] = None
    ) -> List[Any]:
        """Resolve once, then return every match of the working selector"""
        result = await self.locate(self._request(selector_or_locator, description, options))
        elements = await self.adapter.find_elements(result.actual_selector)
        return elements or [result.element]

    async def locate(self, request: LocatorRequest) -> LocatorResult:
        """Run the healing pipeline for one request"""
        start = time.perf_counter()
        progress = _Progress(actual_selector=request.selector)

        try:
            result = await self._resolve(request, start, progress)
        except Exception as e:
            reasoning = (
                "Could not find element even after AI healing"
                if isinstance(e, ElementNotFoundError)
                else f"Error during healing: {e}"
            )
            self._reporter.record_selector_usage(
                to_native_format(request.selector),
                request.description,
                progress.strategy,
                self._elapsed_ms(start),
                False,
                to_native_format(progress.actual_selector) if progress.actual_selector else "",
                "",
                reasoning,
                progress.tokens_used,
            )
            raise

        element_details = await self.adapter.describe_element(result.element)
        self._reporter.record_selector_usage(
            to_native_format(request.selector),
            request.description,
            result.strategy,
            result.execution_time_ms,
            True,
            to_native_format(result.actual_selector),
            element_details,
            result.reasoning,
            result.tokens_used,
        )
        return result

    def clear_cache(self):
        self.cache.clear_all()
        logger.info("[AUTOHEAL] Selector cache cleared")

    def get_cache_metrics(self) -> CacheMetrics:
        return self.cache.get_metrics()

    def shutdown(self):
        """Evict expired cache entries and log the usage summary"""
        evicted = self.cache.evict_expired()
        logger.info(f"[AUTOHEAL] Shutting down, {evicted} expired cache entries evicted")
        if isinstance(self._reporter, AutoHealReporter):
            self._reporter.print_summary()

    # ==================== Pipeline ====================

    async def _resolve(self, request: LocatorRequest, start: float, progress: _Progress) -> LocatorResult:
        selector = request.selector
        description = request.description
        caching = request.options.enable_caching
        key = request.cache_key

        # Stage 1: original selector
        elements = await self.adapter.find_elements(selector)
        if elements:
            element = await self._disambiguate(elements, description)
            if caching:
                self._cache_success(key, selector)
            return LocatorResult(
                element=element,
                actual_selector=selector,
                strategy=LocatorStrategy.ORIGINAL_SELECTOR,
                execution_time_ms=self._elapsed_ms(start),
                reasoning="Original selector worked",
            )
        logger.debug(f"[AUTOHEAL] Original selector matched nothing: {selector}")

        # Stage 2: cache
        if caching:
            cached = self.cache.get(key)
            if cached is not None and cached.is_trusted:
                progress.strategy = LocatorStrategy.CACHED
                progress.actual_selector = cached.selector
                elements = await self.adapter.find_elements(cached.selector)
                if elements:
                    element = await self._disambiguate(elements, description)
                    self.cache.update_success(key, True)
                    logger.info(f"[AUTOHEAL] Cache hit: {selector} -> {cached.selector}")
                    return LocatorResult(
                        element=element,
                        actual_selector=cached.selector,
                        strategy=LocatorStrategy.CACHED,
                        execution_time_ms=self._elapsed_ms(start),
                        from_cache=True,
                        confidence=cached.current_success_rate,
                        reasoning="Retrieved from cache",
                    )
                self.cache.update_success(key, False)
                logger.info(f"[AUTOHEAL] Cached selector is stale: {cached.selector}")
            elif cached is not None:
                logger.debug(
                    f"[AUTOHEAL] Cached selector not trusted "
                    f"(success rate {cached.current_success_rate:.2f}): {cached.selector}"
                )

        # Stage 3: AI healing
        progress.strategy = self._healer.primary_strategy
        progress.actual_selector = ""
        logger.info(f"[AUTOHEAL] Performing AI healing for: {description}")
        attempt = await self._healer.heal(selector, description)
        progress.strategy = attempt.strategy
        progress.actual_selector = attempt.selector
        progress.tokens_used = attempt.tokens_used

        elements = await self.adapter.find_elements(attempt.selector)
        if not elements:
            logger.warning(f"[AUTOHEAL] Healed selector matched nothing: {attempt.selector}")
            raise ElementNotFoundError(description, selector)

        element = await self._disambiguate(elements, description)
        if caching:
            self._cache_success(key, attempt.selector)
        logger.info(f"[AUTOHEAL] AI healing successful: {selector} -> {attempt.selector}")
        return LocatorResult(
            element=element,
            actual_selector=attempt.selector,
            strategy=attempt.strategy,
            execution_time_ms=self._elapsed_ms(start),
            confidence=attempt.confidence,
            reasoning=attempt.reasoning,
            tokens_used=attempt.tokens_used,
        )

    async def _disambiguate(self, elements: List[Any], description: str) -> Any:
        if len(elements) == 1:
            return elements[0]

        logger.warning(f"[AUTOHEAL] {len(elements)} elements match, asking AI to pick: {description}")
        chosen = await self.ai_service.select_best_matching_element(elements, description)
        if chosen not in elements:
            raise AIServiceError(
                self.ai_service.provider_name,
                "Disambiguation returned an element outside the candidate set"
            )
        return chosen

    def _cache_success(self, key: str, selector: str):
        self.cache.put(key, CachedSelector(selector))

    def _request(
        self,
        selector_or_locator: Any,
        description: str,
        options: Optional[LocatorOptions]
    ) -> LocatorRequest:
        return LocatorRequest(
            selector=normalize_selector(selector_or_locator),
            description=description,
            options=options or self.default_options,
        )

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.perf_counter() - start) * 1000)


class AutoHealLocatorBuilder:
    """
    Assembles an AutoHealLocator.

    An adapter is required. Anything not supplied explicitly comes from the
    resolved configuration (environment, config file, builder overrides).
    """

    def __init__(self):
        self._adapter: Optional[WebAutomationAdapter] = None
        self._ai_service: Optional[AIService] = None
        self._cache: Optional[SelectorCache] = None
        self._reporter: Optional[UsageRecorder] = None
        self._configuration: Optional[AutoHealConfiguration] = None
        self._overrides: Dict[str, Any] = {}

    def with_playwright_page(self, page: Any) -> "AutoHealLocatorBuilder":
        from ..adapters.playwright_adapter import PlaywrightAdapter
        self._adapter = PlaywrightAdapter(page)
        return self

    def with_selenium_driver(self, driver: Any) -> "AutoHealLocatorBuilder":
        from ..adapters.selenium_adapter import SeleniumAdapter
        self._adapter = SeleniumAdapter(driver)
        return self

    def with_adapter(self, adapter: WebAutomationAdapter) -> "AutoHealLocatorBuilder":
        self._adapter = adapter
        return self

    def with_ai_service(self, ai_service: AIService) -> "AutoHealLocatorBuilder":
        self._ai_service = ai_service
        return self

    def with_cache(self, cache: SelectorCache) -> "AutoHealLocatorBuilder":
        self._cache = cache
        return self

    def with_reporter(self, reporter: UsageRecorder) -> "AutoHealLocatorBuilder":
        self._reporter = reporter
        return self

    def with_ai_provider(
        self,
        name: Any,
        api_key: Optional[str] = None,
        model: Optional[str] = None
    ) -> "AutoHealLocatorBuilder":
        ai = self._overrides.setdefault("ai", {})
        ai["provider"] = resolve_provider(name)
        if api_key is not None:
            ai["api_key"] = api_key
        if model is not None:
            ai["model"] = model
        return self

    def with_strategy(self, strategy: Any) -> "AutoHealLocatorBuilder":
        try:
            strategy = ExecutionStrategy(str(getattr(strategy, "value", strategy)).upper())
        except ValueError:
            raise ConfigurationError(f"Unknown execution strategy: {strategy}")
        self._overrides.setdefault("performance", {})["execution_strategy"] = strategy
        return self

    def with_configuration(self, configuration: AutoHealConfiguration) -> "AutoHealLocatorBuilder":
        self._configuration = configuration
        return self

    def _resolve_configuration(self) -> AutoHealConfiguration:
        if self._configuration is None:
            return load_configuration(self._overrides)
        if not self._overrides:
            return self._configuration
        merged = deep_merge(self._configuration.model_dump(), self._overrides)
        try:
            return AutoHealConfiguration.model_validate(merged)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid AutoHeal configuration: {e}") from e

    def build(self) -> AutoHealLocator:
        if self._adapter is None:
            raise ConfigurationError(
                "An automation adapter is required: use with_playwright_page(), "
                "with_selenium_driver() or with_adapter()"
            )

        configuration = self._resolve_configuration()
        ai_service = self._ai_service if self._ai_service is not None else create_ai_service(configuration.ai)
        cache = self._cache if self._cache is not None else create_cache(configuration.cache)
        reporter = self._reporter
        if reporter is None:
            reporter = AutoHealReporter(
                enabled=configuration.reporting.enabled,
                console_logging=configuration.reporting.console_logging,
            )

        return AutoHealLocator(
            adapter=self._adapter,
            ai_service=ai_service,
            cache=cache,
            reporter=reporter,
            configuration=configuration,
        )
