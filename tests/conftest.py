"""Pytest configuration and fixtures."""

import os
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment
os.environ["APP_ENV"] = "development"
os.environ["TIMEZONE"] = "America/Los_Angeles"

from sweepclean.cleaning.pipeline import Row  # noqa: E402
from sweepclean.validation.url_checker import ReachabilityResult  # noqa: E402


class FakeUrlChecker:
    """URL checker answering from a fixed status table."""

    def __init__(self, statuses=None, default_status=200):
        self.statuses = statuses or {}
        self.default_status = default_status
        self.calls = []

    def _result(self, url):
        status = self.statuses.get(url, self.default_status)
        if isinstance(status, Exception):
            raise status
        if status is None:
            return ReachabilityResult(reachable=False, error="ConnectError")
        return ReachabilityResult(reachable=200 <= status <= 399, status_code=status)

    def check(self, url, timeout_ms):
        self.calls.append(url)
        return self._result(url)

    async def acheck(self, url, timeout_ms):
        self.calls.append(url)
        return self._result(url)


@pytest.fixture
def fake_checker():
    """URL checker that reports every URL as reachable unless told otherwise."""
    return FakeUrlChecker()


@pytest.fixture
def sample_rows():
    """Six listings: rows 2/5 share a URL, rows 1/4 share a title signature."""
    return [
        Row(title="Win a Trip to Hawaii", url="https://example.com/hawaii", end_date=46015, row_index=0),
        Row(title="The Ultimate Kitchen Makeover Giveaway", url="https://kitchen.example.com/a", end_date="12/31/2025", row_index=1),
        Row(title="Free Coffee for a Year", url="http://www.Coffee.com/win/", end_date="20251231", row_index=2),
        Row(title="Gaming Laptop Sweepstakes", url="https://games.example.com/laptop", end_date=1767225600, row_index=3),
        Row(title="Ultimate Kitchen Makeover Giveaway!!", url="https://kitchen.example.org/b", end_date="", row_index=4),
        Row(title="Coffee Lovers Sweepstakes", url="https://coffee.com/win?utm_source=newsletter", end_date=None, row_index=5),
    ]


@pytest.fixture
def sample_records():
    """CSV-style records using the default column names."""
    return [
        {"Scrub_Title": "Win a Trip to Hawaii", "Entry_Link": "https://example.com/hawaii", "End_Date": "46015"},
        {"Scrub_Title": "Win a Trip to Hawaii!", "Entry_Link": "https://www.example.com/hawaii/", "End_Date": "12/23/2025"},
        {"Scrub_Title": "", "Entry_Link": "", "End_Date": "soon"},
    ]
