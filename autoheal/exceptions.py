"""
AutoHeal Exceptions

Error taxonomy for the healing pipeline. Adapter search failures never
show up here: adapters swallow them and report zero matches.
"""

from typing import Optional


class AutoHealError(Exception):
    """Base class for every error raised by autoheal"""


class ElementNotFoundError(AutoHealError):
    """No working selector was found, even after AI healing"""

    def __init__(self, description: str, selector: Optional[str] = None):
        self.description = description
        self.selector = selector
        super().__init__(f"Could not find element even after AI healing: {description}")


class AIServiceError(AutoHealError):
    """An AI provider call failed (transport, HTTP status or unparseable response)"""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"[{provider}] {message}")


class ConfigurationError(AutoHealError):
    """Invalid or incomplete configuration"""


class AdapterError(AutoHealError):
    """The automation adapter could not inspect an element"""
