"""
AutoHeal Models
===============

Data model shared by the healing pipeline:

- LocatorRequest / LocatorOptions - what the caller asks for
- LocatorResult - what a single resolution produced
- CachedSelector - trust-scored cache entry for a healed selector
- AIAnalysisResult - what an AI provider recommends
- ElementContext - what an adapter can tell about an element
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# Cached selectors at or below this success rate are re-healed instead of reused
TRUST_THRESHOLD = 0.7


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds"""
    return int(time.time() * 1000)


class LocatorStrategy(str, Enum):
    """Stage of the pipeline that produced the working selector"""
    ORIGINAL_SELECTOR = "ORIGINAL_SELECTOR"
    CACHED = "CACHED"
    DOM_ANALYSIS = "DOM_ANALYSIS"
    VISUAL_ANALYSIS = "VISUAL_ANALYSIS"


class AutomationFramework(str, Enum):
    """Browser automation framework behind an adapter"""
    PLAYWRIGHT = "PLAYWRIGHT"
    SELENIUM = "SELENIUM"


class AIProvider(str, Enum):
    """Supported AI providers"""
    GOOGLE_GEMINI = "GOOGLE_GEMINI"
    OPENAI = "OPENAI"
    ANTHROPIC = "ANTHROPIC"
    DEEPSEEK = "DEEPSEEK"
    GROK = "GROK"
    GROQ = "GROQ"
    LOCAL = "LOCAL"


@dataclass(frozen=True)
class LocatorOptions:
    """
    Per-request options.

    Only `enable_caching` changes how a request is resolved. `timeout_ms`,
    `retry_attempts` and `strict_mode` are carried for API parity with the
    Playwright locator options and are not read by the pipeline; AI retries
    come from `AIConfig.max_retries`.
    """
    enable_caching: bool = True
    timeout_ms: int = 30000
    retry_attempts: int = 3
    strict_mode: bool = True


@dataclass(frozen=True)
class LocatorRequest:
    """
    A single resolution request.

    `selector` is already in normalized selector-engine syntax; the
    description is both part of the cache key and the AI's search target.
    """
    selector: str
    description: str
    options: LocatorOptions = field(default_factory=LocatorOptions)

    @property
    def cache_key(self) -> str:
        return build_cache_key(self.selector, self.description)


def build_cache_key(selector: str, description: str) -> str:
    """Cache identity: the selector text paired with its semantic intent"""
    return f"{selector}|{description}"


@dataclass
class LocatorResult:
    """Outcome of a successful resolution. Never persisted."""
    element: Any
    actual_selector: str
    strategy: LocatorStrategy
    execution_time_ms: int
    from_cache: bool = False
    confidence: float = 1.0
    reasoning: str = ""
    tokens_used: int = 0


@dataclass
class CachedSelector:
    """
    A healed selector with rolling success statistics.

    A fresh entry has no observations and reports a success rate of 1.0,
    so it is trusted on first reuse.
    """
    selector: str
    timestamp: int = field(default_factory=now_ms)  # epoch ms, creation time
    success_count: int = 0
    failure_count: int = 0

    @property
    def current_success_rate(self) -> float:
        total = self.success_count + self.failure_count
        if total == 0:
            return 1.0
        return self.success_count / total

    @property
    def is_trusted(self) -> bool:
        return self.current_success_rate > TRUST_THRESHOLD

    def update_success(self, success: bool):
        """Record one more observation of this selector"""
        if success:
            self.success_count += 1
        else:
            self.failure_count += 1

    def is_expired(self, ttl_ms: int, now: Optional[int] = None) -> bool:
        if now is None:
            now = now_ms()
        return now - self.timestamp > ttl_ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selector": self.selector,
            "timestamp": self.timestamp,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CachedSelector":
        # camelCase keys are accepted for cache files written by other AutoHeal ports
        return cls(
            selector=data["selector"],
            timestamp=int(data.get("timestamp", now_ms())),
            success_count=int(data.get("success_count", data.get("successCount", 0))),
            failure_count=int(data.get("failure_count", data.get("failureCount", 0))),
        )


@dataclass
class CacheMetrics:
    """Lifetime counters of a cache store"""
    hit_count: int = 0
    miss_count: int = 0
    hit_rate: float = 0.0
    total_entries: int = 0
    eviction_count: int = 0


@dataclass
class AIAnalysisResult:
    """Selector recommendation returned by an AI provider"""
    selector: Optional[str]
    confidence: float = 0.8
    reasoning: str = "AI-generated selector"
    alternatives: List[str] = field(default_factory=list)
    tokens_used: int = 0


@dataclass
class Position:
    """Bounding box of an element, in CSS pixels"""
    x: int
    y: int
    width: int
    height: int


@dataclass
class ElementContext:
    """What an adapter can tell about a located element"""
    tag_name: str
    id: Optional[str] = None
    class_name: Optional[str] = None
    text: Optional[str] = None
    position: Optional[Position] = None
    parent_container: Optional[str] = None
    sibling_elements: List[str] = field(default_factory=list)  # up to 5 tag names
    attributes: Dict[str, str] = field(default_factory=dict)
    text_content: Optional[str] = None
    page_url: Optional[str] = None

    def describe(self) -> str:
        """Short tag-like description, e.g. <input id="user-name" type="text">"""
        desc = f"<{self.tag_name}"
        if self.id:
            desc += f' id="{self.id}"'
        for attr in ("name", "type"):
            value = self.attributes.get(attr)
            if value:
                desc += f' {attr}="{value}"'
        if self.class_name:
            classes = self.class_name.split()
            shown = " ".join(classes[:2])
            if len(classes) > 2:
                shown += "..."
            desc += f' class="{shown}"'
        return desc + ">"
