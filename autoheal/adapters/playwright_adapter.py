"""
Playwright Adapter

Wraps a Playwright async `Page`. Element handles are Locators: the
locator itself when the selector is unique, `nth(i)` per match otherwise.

Selector-engine strings go straight to `page.locator()`, except
placeholder/label/alt/title which Playwright only exposes as get_by_*
accessors.
"""

import logging
import re
from typing import Any, List

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

from ..core.adapter import WebAutomationAdapter
from ..exceptions import AdapterError
from ..models import AutomationFramework, ElementContext, Position

logger = logging.getLogger(__name__)

_ACCESSOR_SELECTOR = re.compile(r'^(placeholder|label|alt|title)="(.*)"$')

_ACCESSORS = {
    "placeholder": "get_by_placeholder",
    "label": "get_by_label",
    "alt": "get_by_alt_text",
    "title": "get_by_title",
}

CONTEXT_ATTRIBUTES = ("id", "class", "name", "type", "value", "href", "src", "data-testid")

_CONTEXT_SCRIPT = """
(el, attrs) => {
    const parent = el.parentElement;
    let parentDesc = 'unknown';
    if (parent) {
        const pid = parent.id ? '#' + parent.id : '';
        const pclass = (typeof parent.className === 'string' && parent.className.trim())
            ? '.' + parent.className.trim().split(/\\s+/)[0] : '';
        parentDesc = parent.tagName.toLowerCase() + pid + pclass;
    }
    const siblings = parent
        ? Array.from(parent.children).slice(0, 5).map(s => s.tagName.toLowerCase())
        : [];
    const attributes = {};
    for (const name of attrs) {
        const value = el.getAttribute(name);
        if (value) attributes[name] = value;
    }
    return {
        tagName: el.tagName.toLowerCase(),
        id: el.id || null,
        className: el.getAttribute('class'),
        text: el.textContent,
        parent: parentDesc,
        siblings: siblings,
        attributes: attributes,
    };
}
"""


class PlaywrightAdapter(WebAutomationAdapter):

    def __init__(self, page: Page):
        self.page = page

    @property
    def framework(self) -> AutomationFramework:
        return AutomationFramework.PLAYWRIGHT

    def _locator(self, selector: str) -> Locator:
        match = _ACCESSOR_SELECTOR.match(selector)
        if match:
            accessor = getattr(self.page, _ACCESSORS[match.group(1)])
            return accessor(match.group(2))
        return self.page.locator(selector)

    async def find_elements(self, selector: str) -> List[Any]:
        try:
            locator = self._locator(selector)
            count = await locator.count()
        except Exception as e:
            logger.debug(f"[PLAYWRIGHT] Selector search failed for {selector}: {e}")
            return []

        if count == 0:
            return []
        if count == 1:
            return [locator]
        return [locator.nth(i) for i in range(count)]

    async def get_page_source(self) -> str:
        return await self.page.content()

    async def take_screenshot(self) -> bytes:
        return await self.page.screenshot(full_page=False)

    async def get_current_url(self) -> str:
        return self.page.url

    async def get_element_context(self, element: Locator) -> ElementContext:
        try:
            info = await element.evaluate(_CONTEXT_SCRIPT, list(CONTEXT_ATTRIBUTES))
            box = await element.bounding_box()
        except PlaywrightError as e:
            raise AdapterError(f"Failed to extract element context: {e}") from e

        position = None
        if box:
            position = Position(
                x=round(box["x"]),
                y=round(box["y"]),
                width=round(box["width"]),
                height=round(box["height"]),
            )

        text = info.get("text") or None
        return ElementContext(
            tag_name=info["tagName"],
            id=info.get("id") or None,
            class_name=info.get("className") or None,
            text=text,
            position=position,
            parent_container=info.get("parent"),
            sibling_elements=list(info.get("siblings") or []),
            attributes=dict(info.get("attributes") or {}),
            text_content=text,
            page_url=await self.get_current_url(),
        )
