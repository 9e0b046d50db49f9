"""
Browser automation adapters

The Selenium adapter needs the `selenium` extra and is imported from
its module: `from autoheal.adapters.selenium_adapter import SeleniumAdapter`.
"""

from .playwright_adapter import PlaywrightAdapter

__all__ = ["PlaywrightAdapter"]
