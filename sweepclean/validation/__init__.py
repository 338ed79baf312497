"""Validation module - Live URL reachability checks."""

from .url_checker import (
    HttpUrlChecker,
    LiveCheckReport,
    LiveUrlValidator,
    ReachabilityResult,
    UrlChecker,
)

__all__ = ["HttpUrlChecker", "LiveUrlValidator", "LiveCheckReport", "ReachabilityResult", "UrlChecker"]
