"""
Selector Format Translator

Maps between native Playwright accessor expressions and the normalized
selector-engine strings used for cache keys and AI prompts:

    get_by_test_id('login')                  <-> data-testid=login
    get_by_role('button', name='Submit')     <-> role=button[name="Submit"]
    get_by_role('button')                    <-> role=button
    get_by_text('Welcome')                   <-> text=Welcome
    get_by_placeholder('Enter name')         <-> placeholder="Enter name"
    get_by_label('Username')                 <-> label="Username"
    get_by_alt_text('Logo')                  <-> alt="Logo"
    get_by_title('Tooltip')                  <-> title="Tooltip"
    locator('#login-button')                  -> #login-button

The JavaScript spelling (getByRole('button', { name: 'Submit' })) and a
leading `page.` receiver are accepted as well. The grammar is closed: any
expression outside it is assumed to be CSS/XPath and passes through
unchanged.

Options other than `name` (exact=True, filter chains) are dropped on the
way to engine format, wherever `name` sits among them. A role whose name
is a regex or computed value has no engine equivalent and passes through
unchanged.

The reverse direction always emits the canonical spelling: Python
accessors, single quotes (double when the value holds an apostrophe), no
receiver. The round trip is therefore exact only for canonical
expressions carrying nothing beyond a plain name; the JavaScript
spelling, double-quoted literals and a `page.` receiver normalize to the
canonical form.
"""

import ast
import json
import re
from typing import Any, Callable, List, Optional, Tuple

from playwright.async_api import Locator as AsyncLocator
from playwright.sync_api import Locator as SyncLocator

_RECEIVER = r"^\s*(?:page\.)?"
_TAIL = r"\s*\)\s*$"
_OPTIONS_TAIL = r"\s*(?:,.*)?\)\s*$"


def _literal(name: str) -> str:
    """Regex for a single- or double-quoted string literal captured as `name`"""
    return rf"""(?P<{name}_q>['"])(?P<{name}>.*?)(?P={name}_q)"""


def _accessor(names: str, tail: str = _OPTIONS_TAIL) -> "re.Pattern[str]":
    return re.compile(_RECEIVER + rf"(?:{names})\(\s*" + _literal("value") + tail)


_ROLE_WITH_OPTIONS = re.compile(
    _RECEIVER
    + r"(?:get_by_role|getByRole)\(\s*"
    + _literal("role")
    + r"\s*,(?P<options>.*)\)\s*$"
)

# `name` may appear anywhere among the options, in either spelling
_NAME_OPTION = re.compile(r"(?<![\w$])name\s*[:=]\s*")
_NAME_LITERAL = re.compile(r"(?<![\w$])name\s*[:=]\s*" + _literal("name"))


def _role_selector(match: "re.Match[str]") -> str:
    options = match.group("options")
    name = _NAME_LITERAL.search(options)
    if name:
        return f'role={match.group("role")}[name="{name.group("name")}"]'
    if _NAME_OPTION.search(options):
        # Regex or computed name: no engine equivalent, keep the expression
        return match.string
    return f"role={match.group('role')}"


# (pattern, builder) pairs, tried in order
_NATIVE_TO_ENGINE: List[Tuple["re.Pattern[str]", Callable[["re.Match[str]"], str]]] = [
    (_accessor(r"locator", tail=_TAIL), lambda m: m.group("value")),
    (_accessor(r"get_by_test_id|getByTestId", tail=_TAIL),
     lambda m: f"data-testid={m.group('value')}"),
    (_ROLE_WITH_OPTIONS, _role_selector),
    (_accessor(r"get_by_role|getByRole"), lambda m: f"role={m.group('value')}"),
    (_accessor(r"get_by_text|getByText"), lambda m: f"text={m.group('value')}"),
    (_accessor(r"get_by_placeholder|getByPlaceholder"),
     lambda m: f'placeholder="{m.group("value")}"'),
    (_accessor(r"get_by_label|getByLabel"), lambda m: f'label="{m.group("value")}"'),
    (_accessor(r"get_by_alt_text|getByAltText"), lambda m: f'alt="{m.group("value")}"'),
    (_accessor(r"get_by_title|getByTitle"), lambda m: f'title="{m.group("value")}"'),
]


def _quote(value: str) -> str:
    if "'" in value and '"' not in value:
        return f'"{value}"'
    return f"'{value}'"


_ENGINE_TO_NATIVE: List[Tuple["re.Pattern[str]", Callable[["re.Match[str]"], str]]] = [
    (re.compile(r"^data-testid=(.+)$"), lambda m: f"get_by_test_id({_quote(m.group(1))})"),
    (re.compile(r'^role=([^\[]+)\[name="(.+)"\]$'),
     lambda m: f"get_by_role({_quote(m.group(1))}, name={_quote(m.group(2))})"),
    (re.compile(r"^role=(.+)$"), lambda m: f"get_by_role({_quote(m.group(1))})"),
    (re.compile(r"^text=(.+)$"), lambda m: f"get_by_text({_quote(m.group(1))})"),
    (re.compile(r'^placeholder="(.+)"$'), lambda m: f"get_by_placeholder({_quote(m.group(1))})"),
    (re.compile(r'^label="(.+)"$'), lambda m: f"get_by_label({_quote(m.group(1))})"),
    (re.compile(r'^alt="(.+)"$'), lambda m: f"get_by_alt_text({_quote(m.group(1))})"),
    (re.compile(r'^title="(.+)"$'), lambda m: f"get_by_title({_quote(m.group(1))})"),
]

_NATIVE_MARKERS = ("get_by_", "getBy", "locator(")
_RAW_SELECTOR_PREFIXES = ("#", ".", "/", "(", "xpath=", "css=")


def to_engine_format(expression: str) -> str:
    """
    Convert a native accessor expression to selector-engine format.

    Unrecognized expressions are returned unchanged.
    """
    for pattern, build in _NATIVE_TO_ENGINE:
        match = pattern.match(expression)
        if match:
            return build(match)
    return expression


def to_native_format(selector: str) -> str:
    """
    Convert a selector-engine string back to a Python accessor expression.

    Display only: reports and logs. Native expressions and bare CSS/XPath
    are returned unchanged.

    Output is always the canonical Python spelling, so only canonical
    input survives to_native_format(to_engine_format(x)) unchanged.
    """
    if any(marker in selector for marker in _NATIVE_MARKERS):
        return selector
    if selector.startswith(_RAW_SELECTOR_PREFIXES):
        return selector

    for pattern, build in _ENGINE_TO_NATIVE:
        match = pattern.match(selector)
        if match:
            return build(match)
    return selector


# ==================== Playwright Locator objects ====================

# Playwright serializes strings inside internal selectors as JSON literals,
# followed by a match flag: i (case-insensitive) or s (case-sensitive)
_JSON_STR = r'"(?P<{name}>(?:[^"\\]|\\.)*)"[is]?'

_INTERNAL_TESTID = re.compile(
    r"^internal:testid=\[(?P<attr>[\w-]+)=" + _JSON_STR.format(name="value") + r"\]$"
)
_INTERNAL_ROLE = re.compile(
    r"^internal:role=(?P<role>[\w-]+)(?:\[name=" + _JSON_STR.format(name="name") + r"\])?"
)
_INTERNAL_TEXT = re.compile(r"^internal:text=" + _JSON_STR.format(name="value") + r"$")
_INTERNAL_LABEL = re.compile(r"^internal:label=" + _JSON_STR.format(name="value") + r"$")
_INTERNAL_ATTR = re.compile(
    r"^internal:attr=\[(?P<attr>placeholder|alt|title)=" + _JSON_STR.format(name="value") + r"\]$"
)

_LOCATOR_REPR = re.compile(r"""selector=('(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")>\s*$""")


def _unescape(value: str) -> str:
    return json.loads(f'"{value}"')


def from_playwright_selector(selector: str) -> str:
    """
    Convert Playwright's internal selector text (as carried by a Locator)
    into selector-engine format.

    Match-case flags are dropped. Chained selectors and anything not
    listed below are returned unchanged.
    """
    if ">>" in selector:
        return selector

    match = _INTERNAL_TESTID.match(selector)
    if match:
        value = _unescape(match.group("value"))
        if match.group("attr") == "data-testid":
            return f"data-testid={value}"
        return f'[{match.group("attr")}="{value}"]'

    match = _INTERNAL_ROLE.match(selector)
    if match:
        if match.group("name") is not None:
            return f'role={match.group("role")}[name="{_unescape(match.group("name"))}"]'
        return f"role={match.group('role')}"

    match = _INTERNAL_TEXT.match(selector)
    if match:
        return f"text={_unescape(match.group('value'))}"

    match = _INTERNAL_LABEL.match(selector)
    if match:
        return f'label="{_unescape(match.group("value"))}"'

    match = _INTERNAL_ATTR.match(selector)
    if match:
        return f'{match.group("attr")}="{_unescape(match.group("value"))}"'

    return selector


def selector_from_locator(locator: Any) -> str:
    """Read the selector text out of a Playwright Locator"""
    match = _LOCATOR_REPR.search(repr(locator))
    if match:
        return ast.literal_eval(match.group(1))
    # repr format changed; fall back to the attribute the repr is built from
    impl = getattr(locator, "_impl_obj", locator)
    selector: Optional[str] = getattr(impl, "_selector", None)
    if not isinstance(selector, str):
        raise TypeError(f"Cannot extract a selector from {locator!r}")
    return selector


def normalize_selector(selector_or_locator: Any) -> str:
    """
    Normalize caller input (selector string, native accessor expression or
    Playwright Locator) to selector-engine format.
    """
    if isinstance(selector_or_locator, str):
        return to_engine_format(selector_or_locator)
    if isinstance(selector_or_locator, (AsyncLocator, SyncLocator)):
        return from_playwright_selector(selector_from_locator(selector_or_locator))
    raise TypeError(
        f"Expected a selector string or Playwright Locator, got {type(selector_or_locator).__name__}"
    )
