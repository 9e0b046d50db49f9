"""
Web Automation Adapter

Capability interface the healing pipeline uses to talk to a browser
automation framework. Element handles are opaque: the pipeline only
passes them back into adapter or AI service calls.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List

from ..models import AutomationFramework, ElementContext

logger = logging.getLogger(__name__)


class WebAutomationAdapter(ABC):
    """Framework-neutral access to the page under test"""

    @property
    @abstractmethod
    def framework(self) -> AutomationFramework:
        ...

    @abstractmethod
    async def find_elements(self, selector: str) -> List[Any]:
        """
        All elements matching `selector`.

        Never raises: search failures are logged and reported as no match.
        """

    @abstractmethod
    async def get_page_source(self) -> str:
        ...

    @abstractmethod
    async def take_screenshot(self) -> bytes:
        """PNG bytes of the current viewport"""

    @abstractmethod
    async def get_current_url(self) -> str:
        ...

    @abstractmethod
    async def get_element_context(self, element: Any) -> ElementContext:
        """Raises AdapterError when the element cannot be inspected"""

    async def describe_element(self, element: Any) -> str:
        """Short display string for usage reports"""
        try:
            context = await self.get_element_context(element)
        except Exception as e:
            logger.debug(f"[ADAPTER] Could not describe element: {e}")
            return "Element"
        return context.describe()
