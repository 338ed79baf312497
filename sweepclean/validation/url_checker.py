"""Live reachability checks for entry links."""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Iterable, Protocol

import httpx

from sweepclean.monitoring.logger import get_logger, log_url_check

logger = get_logger(__name__)

DEFAULT_HEADERS = {"User-Agent": "Mozilla/5.0 (compatible; SweepClean/1.0)"}


@dataclass(frozen=True)
class ReachabilityResult:
    """Outcome of one URL check."""

    reachable: bool
    status_code: int | None = None
    error: str | None = None


def is_reachable_status(status_code: int) -> bool:
    """Check if an HTTP status counts as reachable (2xx or 3xx)."""
    return 200 <= status_code <= 399


def failed_check(url: str, error: str) -> ReachabilityResult:
    """Record a check that got no HTTP status as unreachable."""
    logger.debug(f"URL check failed: {url} | {error}")
    log_url_check(url, False, error=error)
    return ReachabilityResult(reachable=False, error=error)


class UrlChecker(Protocol):
    """Anything that can tell whether a URL answers."""

    def check(self, url: str, timeout_ms: int) -> ReachabilityResult: ...

    async def acheck(self, url: str, timeout_ms: int) -> ReachabilityResult: ...


class HttpUrlChecker:
    """URL checker issuing a single GET request per URL.

    Redirects are not followed since a 3xx already counts as reachable.
    Timeouts and transport errors are reported as unreachable, never raised.
    """

    def __init__(
        self,
        transport: httpx.BaseTransport | httpx.AsyncBaseTransport | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize URL checker.

        Args:
            transport: Custom httpx transport (e.g. httpx.MockTransport in tests)
            headers: Request headers
        """
        self.transport = transport
        self.headers = headers or DEFAULT_HEADERS

    def check(self, url: str, timeout_ms: int) -> ReachabilityResult:
        """Check URL synchronously.

        Args:
            url: URL to check
            timeout_ms: Request timeout in milliseconds

        Returns:
            ReachabilityResult
        """
        start_time = time.time()

        try:
            with httpx.Client(
                transport=self.transport,
                timeout=timeout_ms / 1000,
                headers=self.headers,
                follow_redirects=False,
            ) as client:
                response = client.get(url)
        except httpx.TimeoutException:
            return failed_check(url, "timeout")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return failed_check(url, f"{type(e).__name__}: {e}")

        return self._completed(url, response.status_code, time.time() - start_time)

    async def acheck(self, url: str, timeout_ms: int) -> ReachabilityResult:
        """Check URL asynchronously.

        Args:
            url: URL to check
            timeout_ms: Request timeout in milliseconds

        Returns:
            ReachabilityResult
        """
        start_time = time.time()

        try:
            async with httpx.AsyncClient(
                transport=self.transport,
                timeout=timeout_ms / 1000,
                headers=self.headers,
                follow_redirects=False,
            ) as client:
                response = await client.get(url)
        except httpx.TimeoutException:
            return failed_check(url, "timeout")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return failed_check(url, f"{type(e).__name__}: {e}")

        return self._completed(url, response.status_code, time.time() - start_time)

    @staticmethod
    def _completed(url: str, status_code: int, response_time: float) -> ReachabilityResult:
        reachable = is_reachable_status(status_code)
        log_url_check(url, reachable, status_code=status_code, response_time=response_time)
        return ReachabilityResult(reachable=reachable, status_code=status_code)


@dataclass
class LiveCheckReport:
    """Results of one validation batch."""

    results: dict[str, ReachabilityResult] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)

    @property
    def unreachable(self) -> dict[str, int | None]:
        """Map unreachable URLs to their status code (None on transport failure)."""
        return {url: r.status_code for url, r in self.results.items() if not r.reachable}


class LiveUrlValidator:
    """Checks a bounded number of distinct URLs, each at most once.

    One validator covers one pipeline run; its cache and budget do not carry
    over between runs.
    """

    def __init__(
        self,
        checker: UrlChecker,
        max_checks: int = 50,
        timeout_ms: int = 10000,
        concurrency: int = 10,
    ) -> None:
        """Initialize validator.

        Args:
            checker: URL checker doing the actual requests
            max_checks: Maximum distinct URLs checked
            timeout_ms: Per-URL timeout in milliseconds
            concurrency: Maximum concurrent checks for avalidate()
        """
        self.checker = checker
        self.max_checks = max_checks
        self.timeout_ms = timeout_ms
        self.concurrency = concurrency
        self._cache: dict[str, ReachabilityResult] = {}

    @property
    def checks_used(self) -> int:
        return len(self._cache)

    def plan(self, urls: Iterable[str]) -> tuple[list[str], list[str]]:
        """Split URLs into those to check now and those over budget.

        Args:
            urls: Candidate URLs in priority order (duplicates allowed)

        Returns:
            Tuple of (to_check, skipped), both distinct and in first-seen order
        """
        to_check: list[str] = []
        skipped: list[str] = []
        seen: set[str] = set()
        budget = self.max_checks - self.checks_used

        for url in urls:
            if not url or url in seen or url in self._cache:
                continue
            seen.add(url)
            if len(to_check) < budget:
                to_check.append(url)
            else:
                skipped.append(url)

        return to_check, skipped

    def validate(self, urls: Iterable[str]) -> LiveCheckReport:
        """Check URLs sequentially.

        Args:
            urls: Candidate URLs in priority order

        Returns:
            LiveCheckReport for the URLs within budget
        """
        urls = list(urls)
        to_check, skipped = self.plan(urls)

        for url in to_check:
            try:
                self._cache[url] = self.checker.check(url, self.timeout_ms)
            except Exception as e:
                self._cache[url] = failed_check(url, f"{type(e).__name__}: {e}")

        return self._report(urls, skipped)

    async def avalidate(self, urls: Iterable[str]) -> LiveCheckReport:
        """Check URLs concurrently.

        Args:
            urls: Candidate URLs in priority order

        Returns:
            LiveCheckReport for the URLs within budget
        """
        urls = list(urls)
        to_check, skipped = self.plan(urls)

        semaphore = asyncio.Semaphore(self.concurrency)

        async def check_with_semaphore(url: str) -> ReachabilityResult:
            async with semaphore:
                try:
                    return await self.checker.acheck(url, self.timeout_ms)
                except Exception as e:
                    return failed_check(url, f"{type(e).__name__}: {e}")

        results = await asyncio.gather(*[check_with_semaphore(url) for url in to_check])
        self._cache.update(zip(to_check, results))

        return self._report(urls, skipped)

    def _report(self, urls: list[str], skipped: list[str]) -> LiveCheckReport:
        results = {url: self._cache[url] for url in urls if url in self._cache}
        unreachable = sum(1 for r in results.values() if not r.reachable)
        logger.info(
            f"Live URL validation | checked={len(results)} | unreachable={unreachable} | "
            f"skipped={len(skipped)} | budget={self.max_checks}"
        )
        return LiveCheckReport(results=results, skipped=skipped)
