"""
Healing Strategy
================

Runs the AI side of a resolution according to the configured
ExecutionStrategy:

- DOM_ONLY: one DOM analysis, returned as-is
- SMART_SEQUENTIAL / SEQUENTIAL: DOM analysis, then visual analysis when
  the DOM selector matches nothing
- VISUAL_FIRST: visual analysis, then DOM analysis when the visual
  selector matches nothing
- PARALLEL: visual analysis only

The fallback only triggers when the first selector does not resolve. An
AIServiceError from any sub-attempt propagates and ends the strategy.
Whether the final selector resolves is checked by the caller.
"""

import logging
from dataclasses import dataclass

from ..config import ExecutionStrategy
from ..models import AIAnalysisResult, LocatorStrategy
from .adapter import WebAutomationAdapter
from .ai_service import AIService

logger = logging.getLogger(__name__)


@dataclass
class HealingAttempt:
    """Selector produced by the AI stage and what it cost"""
    selector: str
    strategy: LocatorStrategy
    tokens_used: int = 0
    confidence: float = 0.8
    reasoning: str = "AI-generated selector"


class AIHealer:
    """Executes one execution strategy against an adapter and AI service"""

    def __init__(
        self,
        adapter: WebAutomationAdapter,
        ai_service: AIService,
        strategy: ExecutionStrategy = ExecutionStrategy.SMART_SEQUENTIAL,
        visual_enabled: bool = True
    ):
        self.adapter = adapter
        self.ai_service = ai_service
        self.strategy = strategy
        self.visual_enabled = visual_enabled

    @property
    def primary_strategy(self) -> LocatorStrategy:
        """Sub-strategy tried first"""
        if self.visual_enabled and self.strategy in (
            ExecutionStrategy.VISUAL_FIRST, ExecutionStrategy.PARALLEL
        ):
            return LocatorStrategy.VISUAL_ANALYSIS
        return LocatorStrategy.DOM_ANALYSIS

    async def heal(self, original_selector: str, description: str) -> HealingAttempt:
        """Obtain a candidate selector for `description`"""
        if not self.visual_enabled or self.strategy == ExecutionStrategy.DOM_ONLY:
            return await self._dom_attempt(original_selector, description)

        if self.strategy == ExecutionStrategy.PARALLEL:
            return await self._visual_attempt(original_selector, description)

        if self.strategy == ExecutionStrategy.VISUAL_FIRST:
            first = await self._visual_attempt(original_selector, description)
            if await self._resolves(first.selector):
                logger.info(f"[VISUAL-AI] Found element with visual analysis: {first.selector}")
                return first
            logger.info("[DOM-AI] Visual selector matched nothing, falling back to DOM analysis")
            fallback = await self._dom_attempt(original_selector, description)
        else:
            first = await self._dom_attempt(original_selector, description)
            if await self._resolves(first.selector):
                logger.info(f"[DOM-AI] Found element with DOM analysis: {first.selector}")
                return first
            logger.info("[VISUAL-AI] DOM selector matched nothing, falling back to visual analysis")
            fallback = await self._visual_attempt(original_selector, description)

        fallback.tokens_used += first.tokens_used
        return fallback

    async def _dom_attempt(self, original_selector: str, description: str) -> HealingAttempt:
        html = await self.adapter.get_page_source()
        result = await self.ai_service.analyze_dom(
            html, description, original_selector, self.adapter.framework
        )
        logger.debug(f"[DOM-AI] Recommended {result.selector!r} ({result.tokens_used} tokens)")
        return self._attempt(result, original_selector, LocatorStrategy.DOM_ANALYSIS)

    async def _visual_attempt(self, original_selector: str, description: str) -> HealingAttempt:
        screenshot = await self.adapter.take_screenshot()
        result = await self.ai_service.analyze_visual(screenshot, description)
        logger.debug(f"[VISUAL-AI] Recommended {result.selector!r} ({result.tokens_used} tokens)")
        return self._attempt(result, original_selector, LocatorStrategy.VISUAL_ANALYSIS)

    async def _resolves(self, selector: str) -> bool:
        elements = await self.adapter.find_elements(selector)
        return len(elements) > 0

    @staticmethod
    def _attempt(
        result: AIAnalysisResult,
        original_selector: str,
        strategy: LocatorStrategy
    ) -> HealingAttempt:
        # No recommendation: retry the original selector so the caller fails cleanly
        return HealingAttempt(
            selector=result.selector or original_selector,
            strategy=strategy,
            tokens_used=result.tokens_used or 0,
            confidence=result.confidence,
            reasoning=result.reasoning,
        )
