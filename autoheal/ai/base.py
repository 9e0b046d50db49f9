"""
AI provider plumbing
====================

Shared by every provider:

- DOM and visual prompts (framework-specific for DOM analysis)
- parsing of the JSON recommendation, tolerant of Markdown code fences
- an httpx transport that retries rate limits and server errors with
  exponential backoff (1s, 2s, 4s, ...) and raises AIServiceError for
  anything else that is not a 200

Retries live here only. The healing pipeline never retries AI calls.
"""

import asyncio
import base64
import json
import logging
from abc import abstractmethod
from typing import Any, Dict, Optional, Sequence, Tuple

import httpx

from ..core.ai_service import AIService
from ..exceptions import AIServiceError
from ..models import AIAnalysisResult, AutomationFramework

logger = logging.getLogger(__name__)

MAX_HTML_CHARS = 15000
DEFAULT_TEMPERATURE = 0.1
DEFAULT_MAX_TOKENS = 1024


def truncate_html(html: str) -> str:
    if len(html) > MAX_HTML_CHARS:
        return html[:MAX_HTML_CHARS] + "..."
    return html


def build_dom_prompt(
    html: str,
    description: str,
    original_selector: str,
    framework: AutomationFramework
) -> str:
    """Prompt asking for a selector for `description` in the page HTML"""
    html = truncate_html(html)

    if framework == AutomationFramework.PLAYWRIGHT:
        return f"""You are an expert in Playwright test automation. Analyze this HTML and find the simplest, most robust selector for the element described below.

RULES:
1. Respond with ONLY a JSON object.
2. Return Playwright selector engine syntax that works with page.locator().
3. For inputs and buttons, check stable attributes first: #id, input[type='password'], [name='username'].
4. Otherwise prefer, in order: data-testid=value, role=button[name="Submit"], placeholder="Enter text", text=Exact Text, then CSS.
5. The selector must match exactly ONE element in the HTML.
6. Avoid generated ids, long class chains, nth-child and deep paths.

Element to find: {description}
Original selector that failed: {original_selector}

HTML:
{html}

Required JSON response format:
{{
  "selector": "#username",
  "confidence": 0.95,
  "reasoning": "Found input with stable id='username' attribute",
  "alternatives": ["input[name='username']", "data-testid=username"]
}}

Respond with ONLY valid JSON:"""

    return f"""You are an expert in Selenium WebDriver test automation. Analyze this HTML and find the best CSS selector or XPath for the element described below.

RULES:
1. Respond with ONLY a JSON object.
2. Prefer CSS selectors over XPath.
3. Use stable attributes: id, data-testid, data-test, name.
4. Avoid class names, nth-child and long paths.
5. The selector must be unique and specific.

Element to find: {description}
Original selector that failed: {original_selector}

HTML:
{html}

Required JSON response format:
{{
  "selector": "#submit-btn",
  "confidence": 0.95,
  "reasoning": "Found stable ID attribute",
  "alternatives": ["[data-testid='submit']", "button[type='submit']"]
}}

Respond with ONLY valid JSON:"""


def build_visual_prompt(description: str) -> str:
    """Prompt asking for a selector inferred from a screenshot"""
    return f"""You are an expert in web UI automation. Analyze this screenshot and find the element described below.

RULES:
1. Respond with ONLY a JSON object.
2. Use the element's position, appearance and surrounding context.
3. Provide a CSS selector or XPath that locates it.

Element to find: {description}

Required JSON response format:
{{
  "selector": "#element-selector",
  "confidence": 0.85,
  "reasoning": "Blue button with white text at the top right of the form",
  "alternatives": ["[data-testid='element']", ".btn-primary"]
}}

Respond with ONLY valid JSON:"""


def parse_ai_response(provider: str, text: str, tokens_used: int = 0) -> AIAnalysisResult:
    """Parse the JSON recommendation out of a model reply"""
    cleaned = text.strip()
    if "```json" in cleaned:
        cleaned = cleaned.split("```json", 1)[1].split("```", 1)[0].strip()
    elif "```" in cleaned:
        cleaned = cleaned.split("```", 1)[1].split("```", 1)[0].strip()

    try:
        data = json.loads(cleaned)
    except ValueError as e:
        logger.error(f"[AI] Unparseable response from {provider}: {text[:200]}")
        raise AIServiceError(provider, f"Failed to parse AI response: {e}") from e

    if not isinstance(data, dict):
        raise AIServiceError(provider, f"Expected a JSON object, got {type(data).__name__}")

    try:
        confidence = float(data.get("confidence") or 0.8)
    except (TypeError, ValueError) as e:
        raise AIServiceError(provider, f"Invalid confidence value: {data.get('confidence')!r}") from e

    alternatives = data.get("alternatives") or []
    return AIAnalysisResult(
        selector=data.get("selector") or None,
        confidence=confidence,
        reasoning=data.get("reasoning") or "AI-generated selector",
        alternatives=[str(a) for a in alternatives] if isinstance(alternatives, list) else [],
        tokens_used=tokens_used,
    )


class PromptedAIService(AIService):
    """
    AIService built on a single text-completion call.

    Subclasses implement `_complete`, returning the reply text and the
    tokens it cost.
    """

    def __init__(self, model: str, timeout_ms: int = 30000, max_retries: int = 3):
        self.model = model
        self.timeout_ms = timeout_ms
        self.max_retries = max_retries

    @abstractmethod
    async def _complete(self, prompt: str, image_base64: Optional[str] = None) -> Tuple[str, int]:
        ...

    async def analyze_dom(
        self,
        html: str,
        description: str,
        original_selector: str,
        framework: AutomationFramework = AutomationFramework.SELENIUM
    ) -> AIAnalysisResult:
        prompt = build_dom_prompt(html, description, original_selector, framework)
        text, tokens = await self._complete(prompt)
        return parse_ai_response(self.provider_name, text, tokens)

    async def analyze_visual(self, screenshot: bytes, description: str) -> AIAnalysisResult:
        image = base64.b64encode(screenshot).decode("ascii")
        text, tokens = await self._complete(build_visual_prompt(description), image)
        return parse_ai_response(self.provider_name, text, tokens)

    async def select_best_matching_element(self, elements: Sequence[Any], description: str) -> Any:
        if not elements:
            raise AIServiceError(self.provider_name, "No candidate elements to choose from")
        if len(elements) > 1:
            logger.warning(
                f"[AI] {len(elements)} elements match '{description}', returning the first"
            )
        return elements[0]


class HTTPAIService(PromptedAIService):
    """Provider reached with plain JSON-over-HTTP calls"""

    # Seconds before the first retry; doubles on every further attempt
    backoff_base = 1.0

    def __init__(
        self,
        model: str,
        timeout_ms: int = 30000,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(model, timeout_ms, max_retries)
        self._transport = transport

    @staticmethod
    def _retryable(status_code: int) -> bool:
        return status_code == 429 or status_code >= 500

    async def _post(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout_ms / 1000, transport=self._transport) as client:
            attempt = 0
            while True:
                try:
                    response = await client.post(url, json=payload, headers=headers, params=params)
                except httpx.HTTPError as e:
                    raise AIServiceError(self.provider_name, f"Request failed: {e}") from e

                if response.status_code == 200:
                    break

                if self._retryable(response.status_code) and attempt < self.max_retries:
                    delay = self.backoff_base * (2 ** attempt)
                    attempt += 1
                    logger.warning(
                        f"[AI-HTTP] {self.provider_name} returned {response.status_code}, "
                        f"retrying in {delay:.0f}s (attempt {attempt}/{self.max_retries})"
                    )
                    await asyncio.sleep(delay)
                    continue

                raise AIServiceError(
                    self.provider_name,
                    f"API error {response.status_code}: {response.text[:500]}"
                )

        try:
            return response.json()
        except ValueError as e:
            raise AIServiceError(self.provider_name, f"Invalid JSON body: {e}") from e
