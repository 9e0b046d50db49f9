"""
AutoHeal Reporter

Collects one SelectorReport per resolution and summarizes them. Each
event is also logged as a single line, e.g.

    [SUCCESS] [DOM-AI] [812ms] [1534 tokens] #username-field -> #user-name
       [HEALED] Found input with stable id='user-name' attribute
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from ..models import LocatorStrategy

logger = logging.getLogger(__name__)

STRATEGY_SHORT_NAMES = {
    LocatorStrategy.ORIGINAL_SELECTOR: "ORIGINAL",
    LocatorStrategy.CACHED: "CACHE",
    LocatorStrategy.DOM_ANALYSIS: "DOM-AI",
    LocatorStrategy.VISUAL_ANALYSIS: "VISUAL-AI",
}

_AI_STRATEGIES = (LocatorStrategy.DOM_ANALYSIS, LocatorStrategy.VISUAL_ANALYSIS)


class UsageRecorder(ABC):
    """Receives one event per top-level resolution"""

    @abstractmethod
    def record_selector_usage(
        self,
        original_selector: str,
        description: str,
        strategy: LocatorStrategy,
        execution_time_ms: int,
        success: bool,
        actual_selector: str,
        element_details: str,
        reasoning: str,
        tokens_used: int = 0
    ):
        ...


@dataclass
class SelectorReport:
    """A single recorded resolution"""
    original_selector: str
    description: str
    strategy: LocatorStrategy
    execution_time_ms: int
    success: bool
    actual_selector: str
    element_details: str
    reasoning: str
    tokens_used: int = 0
    timestamp: datetime = field(default_factory=datetime.now)


class AutoHealReporter(UsageRecorder):
    """In-memory usage recorder with statistics and a console summary"""

    def __init__(self, enabled: bool = True, console_logging: bool = True):
        self.enabled = enabled
        self.console_logging = console_logging
        self._reports: List[SelectorReport] = []
        self._lock = threading.Lock()

    @property
    def reports(self) -> List[SelectorReport]:
        with self._lock:
            return list(self._reports)

    def record_selector_usage(
        self,
        original_selector: str,
        description: str,
        strategy: LocatorStrategy,
        execution_time_ms: int,
        success: bool,
        actual_selector: str,
        element_details: str,
        reasoning: str,
        tokens_used: int = 0
    ):
        if not self.enabled:
            return

        report = SelectorReport(
            original_selector=original_selector,
            description=description,
            strategy=strategy,
            execution_time_ms=execution_time_ms,
            success=success,
            actual_selector=actual_selector,
            element_details=element_details,
            reasoning=reasoning,
            tokens_used=tokens_used,
        )
        with self._lock:
            self._reports.append(report)

        if self.console_logging:
            self._log_report(report)

    def _log_report(self, report: SelectorReport):
        status = "SUCCESS" if report.success else "FAILED"
        strategy = STRATEGY_SHORT_NAMES.get(report.strategy, "UNKNOWN")
        tokens = ""
        if report.tokens_used > 0 and report.strategy in _AI_STRATEGIES:
            tokens = f" [{report.tokens_used} tokens]"
        target = report.actual_selector if report.success else "FAILED"

        line = f"[{status}] [{strategy}] [{report.execution_time_ms}ms]{tokens} {report.original_selector} -> {target}"
        if report.success:
            logger.info(line)
        else:
            logger.warning(line)

        if report.success and report.original_selector != report.actual_selector:
            logger.info(f"   [HEALED] {report.reasoning}")

    def get_statistics(self) -> Dict[str, Any]:
        """Aggregate counts and token usage over every recorded event"""
        reports = self.reports

        def count(strategy: LocatorStrategy) -> int:
            return sum(1 for r in reports if r.strategy == strategy)

        def tokens(strategy: LocatorStrategy) -> int:
            return sum(r.tokens_used for r in reports if r.strategy == strategy)

        successful = sum(1 for r in reports if r.success)
        return {
            "total": len(reports),
            "successful": successful,
            "failed": len(reports) - successful,
            "original": count(LocatorStrategy.ORIGINAL_SELECTOR),
            "cached": count(LocatorStrategy.CACHED),
            "dom_healed": count(LocatorStrategy.DOM_ANALYSIS),
            "visual_healed": count(LocatorStrategy.VISUAL_ANALYSIS),
            "total_tokens": sum(r.tokens_used for r in reports),
            "dom_tokens": tokens(LocatorStrategy.DOM_ANALYSIS),
            "visual_tokens": tokens(LocatorStrategy.VISUAL_ANALYSIS),
        }

    def print_summary(self):
        stats = self.get_statistics()

        logger.info("=" * 60)
        logger.info("AUTOHEAL TEST SUMMARY")
        logger.info("=" * 60)
        logger.info(
            f"Total: {stats['total']} | Success: {stats['successful']} | Failed: {stats['failed']}"
        )
        logger.info(
            f"Original: {stats['original']} | DOM Healed: {stats['dom_healed']} | "
            f"Visual: {stats['visual_healed']} | Cached: {stats['cached']}"
        )
        if stats["total_tokens"] > 0:
            logger.info(
                f"Token Usage - Total: {stats['total_tokens']} | "
                f"DOM: {stats['dom_tokens']} | Visual: {stats['visual_tokens']}"
            )
        logger.info("=" * 60)

    def clear(self):
        with self._lock:
            self._reports.clear()
