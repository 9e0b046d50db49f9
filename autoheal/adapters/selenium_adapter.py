"""
Selenium Adapter

Wraps a Selenium WebDriver. WebDriver calls block, so every call is
pushed to a worker thread with asyncio.to_thread.

The `By` strategy is detected from the selector text:

    //div, (//a)[2], xpath=...      -> XPATH
    #id, .class, a[href], ul > li   -> CSS_SELECTOR
    username                        -> ID
    data-testid=x, placeholder="x",
    alt="x", title="x"              -> CSS attribute selector
    text=Welcome                    -> XPATH text match
"""

import asyncio
import base64
import logging
import re
from typing import Any, List, Tuple

from selenium.common.exceptions import WebDriverException
from selenium.webdriver.common.by import By

from ..core.adapter import WebAutomationAdapter
from ..exceptions import AdapterError
from ..models import AutomationFramework, ElementContext, Position

logger = logging.getLogger(__name__)

CONTEXT_ATTRIBUTES = ("id", "class", "name", "type", "value", "href", "src", "data-testid")

_ATTRIBUTE_SELECTOR = re.compile(r'^(placeholder|alt|title)="(.*)"$')
_BARE_TOKEN = re.compile(r"^[^\s.\[\]#>+~:=()/]+$")

_PARENT_SCRIPT = """
const parent = arguments[0].parentElement;
if (!parent) return 'unknown';
const pid = parent.id ? '#' + parent.id : '';
const pclass = (typeof parent.className === 'string' && parent.className.trim())
    ? '.' + parent.className.trim().split(/\\s+/)[0] : '';
return parent.tagName.toLowerCase() + pid + pclass;
"""

_SIBLINGS_SCRIPT = """
const parent = arguments[0].parentElement;
return parent
    ? Array.from(parent.children).slice(0, 5).map(s => s.tagName.toLowerCase())
    : [];
"""


def _css_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _xpath_string(value: str) -> str:
    if '"' not in value:
        return f'"{value}"'
    if "'" not in value:
        return f"'{value}'"
    parts = value.split('"')
    return "concat(" + ", '\"', ".join(f'"{p}"' for p in parts) + ")"


def detect_by(selector: str) -> Tuple[str, str]:
    """(By strategy, value) for a selector-engine string"""
    if selector.startswith("xpath="):
        return By.XPATH, selector[len("xpath="):]
    if selector.startswith("css="):
        return By.CSS_SELECTOR, selector[len("css="):]
    if selector.startswith("/") or selector.startswith("("):
        return By.XPATH, selector

    if selector.startswith("data-testid="):
        return By.CSS_SELECTOR, f"[data-testid={_css_string(selector[len('data-testid='):])}]"
    match = _ATTRIBUTE_SELECTOR.match(selector)
    if match:
        return By.CSS_SELECTOR, f"[{match.group(1)}={_css_string(match.group(2))}]"
    if selector.startswith("text="):
        text = selector[len("text="):]
        return By.XPATH, f"//*[normalize-space(text())={_xpath_string(text)}]"

    if _BARE_TOKEN.match(selector):
        return By.ID, selector
    return By.CSS_SELECTOR, selector


class SeleniumAdapter(WebAutomationAdapter):

    def __init__(self, driver: Any):
        self.driver = driver

    @property
    def framework(self) -> AutomationFramework:
        return AutomationFramework.SELENIUM

    async def find_elements(self, selector: str) -> List[Any]:
        try:
            by, value = detect_by(selector)
            return list(await asyncio.to_thread(self.driver.find_elements, by, value))
        except Exception as e:
            logger.debug(f"[SELENIUM] Selector search failed for {selector}: {e}")
            return []

    async def get_page_source(self) -> str:
        return await asyncio.to_thread(lambda: self.driver.page_source)

    async def take_screenshot(self) -> bytes:
        encoded = await asyncio.to_thread(self.driver.get_screenshot_as_base64)
        return base64.b64decode(encoded)

    async def get_current_url(self) -> str:
        return await asyncio.to_thread(lambda: self.driver.current_url)

    def _read_context(self, element: Any) -> ElementContext:
        attributes = {}
        for name in CONTEXT_ATTRIBUTES:
            value = element.get_attribute(name)
            if value:
                attributes[name] = value

        rect = element.rect
        text = element.text or None
        return ElementContext(
            tag_name=element.tag_name.lower(),
            id=attributes.get("id"),
            class_name=attributes.get("class"),
            text=text,
            position=Position(
                x=round(rect["x"]),
                y=round(rect["y"]),
                width=round(rect["width"]),
                height=round(rect["height"]),
            ),
            parent_container=self.driver.execute_script(_PARENT_SCRIPT, element),
            sibling_elements=list(self.driver.execute_script(_SIBLINGS_SCRIPT, element) or []),
            attributes=attributes,
            text_content=text,
            page_url=self.driver.current_url,
        )

    async def get_element_context(self, element: Any) -> ElementContext:
        try:
            return await asyncio.to_thread(self._read_context, element)
        except WebDriverException as e:
            raise AdapterError(f"Failed to extract element context: {e}") from e
