"""
Usage reporting
"""

from .reporter import AutoHealReporter, SelectorReport, UsageRecorder

__all__ = ["AutoHealReporter", "SelectorReport", "UsageRecorder"]
