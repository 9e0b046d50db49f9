"""
AI Service

Capability interface for the AI backends that heal broken selectors.
Implementations fail loudly: a transport or parse failure raises
AIServiceError instead of returning an empty recommendation.
"""

from abc import ABC, abstractmethod
from typing import Any, Sequence

from ..models import AIAnalysisResult, AutomationFramework


class AIService(ABC):
    """Selector recommendations from an AI provider"""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        ...

    @abstractmethod
    async def analyze_dom(
        self,
        html: str,
        description: str,
        original_selector: str,
        framework: AutomationFramework = AutomationFramework.SELENIUM
    ) -> AIAnalysisResult:
        """Recommend a selector for `description` from the page HTML"""

    @abstractmethod
    async def analyze_visual(self, screenshot: bytes, description: str) -> AIAnalysisResult:
        """Recommend a selector for `description` from a PNG screenshot"""

    @abstractmethod
    async def select_best_matching_element(self, elements: Sequence[Any], description: str) -> Any:
        """Pick exactly one element of `elements` for `description`"""
