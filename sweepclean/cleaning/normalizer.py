"""Data normalizers for listing fields: titles, end dates and entry URLs."""

import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Iterable
from urllib.parse import unquote_plus, urlsplit, urlunsplit
from zoneinfo import ZoneInfo

from dateutil import parser as dtparser

from sweepclean.core.config import DEFAULT_TIMEZONE
from sweepclean.monitoring.logger import get_logger

from .values import Absent, NativeDate, Number, Text, classify

logger = get_logger(__name__)


class BaseNormalizer(ABC):
    """Base class for normalizers."""

    @abstractmethod
    def normalize(self, value: Any) -> Any:
        """Normalize value.

        Args:
            value: Value to normalize

        Returns:
            Normalized value
        """
        pass

    def __call__(self, value: Any) -> Any:
        """Allow normalizer to be called directly.

        Args:
            value: Value to normalize

        Returns:
            Normalized value
        """
        return self.normalize(value)


class TextNormalizer(BaseNormalizer):
    """Normalizer for free text such as listing titles."""

    def __init__(
        self,
        strip: bool = True,
        remove_extra_whitespace: bool = True,
    ) -> None:
        """Initialize text normalizer.

        Args:
            strip: Strip leading/trailing whitespace
            remove_extra_whitespace: Replace whitespace runs with a single space
        """
        self.strip = strip
        self.remove_extra_whitespace = remove_extra_whitespace

    def normalize(self, value: Any) -> str:
        """Normalize text value.

        Args:
            value: Value to normalize

        Returns:
            Normalized text string, empty for absent cells
        """
        raw = classify(value)
        if isinstance(raw, Absent):
            return ""
        if isinstance(raw, Text):
            text = raw.value
        else:
            text = str(raw.value)

        if self.strip:
            text = text.strip()

        if self.remove_extra_whitespace:
            text = re.sub(r"\s+", " ", text)

        return text


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
SPREADSHEET_EPOCH = datetime(1899, 12, 30, tzinfo=timezone.utc)

EPOCH_MILLIS_THRESHOLD = 1_000_000_000_000
EPOCH_SECONDS_THRESHOLD = 1_000_000_000
# Any 19xx or 20xx YYYYMMDD; an impossible calendar date is unresolved, not epoch millis
PACKED_DATE_MIN = 19000000
PACKED_DATE_MAX = 20999999
SPREADSHEET_SERIAL_MIN = 20000
SPREADSHEET_SERIAL_MAX = 80000

NUMERIC_TEXT = re.compile(r"^\d+(\.\d+)?$")
MONTH_DAY_YEAR = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

# Anchor for components missing from free-form text ("March 3" -> 2000-03-03)
PARSE_DEFAULT = datetime(2000, 1, 1)


@dataclass(frozen=True)
class ResolvedDate:
    """Outcome of resolving a raw date cell.

    ``epoch_millis`` is None exactly when the value could not be resolved, in
    which case both text forms are empty.
    """

    epoch_millis: int | None = None
    display_date: str = ""
    iso_key: str = ""

    @property
    def is_resolved(self) -> bool:
        """Check whether a date was found."""
        return self.epoch_millis is not None


UNRESOLVED = ResolvedDate()


class DateResolver(BaseNormalizer):
    """Resolve spreadsheet-ish date cells into a calendar date.

    Numbers are classified by magnitude, in order: epoch milliseconds, epoch
    seconds, packed ``YYYYMMDD``, spreadsheet serial days, and finally a
    permissive epoch-milliseconds reading. Text is tried as ``M/D/YYYY``, then
    against ``input_formats``, then with dateutil. All output is rendered in
    ``tz`` regardless of the host's local timezone.
    """

    FORMATS = [
        "%Y-%m-%d",
        "%m-%d-%Y",
        "%d-%m-%Y",
        "%Y/%m/%d",
        "%Y.%m.%d",
        "%d.%m.%Y",
        "%B %d, %Y",
        "%b %d, %Y",
        "%d %B %Y",
        "%d %b %Y",
        "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%d %H:%M:%S",
    ]

    def __init__(
        self,
        tz: str | tzinfo = DEFAULT_TIMEZONE,
        input_formats: list[str] | None = None,
    ) -> None:
        """Initialize date resolver.

        Args:
            tz: Reference timezone (IANA name or tzinfo) used for all output
            input_formats: strptime formats tried before the generic parser
        """
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz
        self.input_formats = input_formats if input_formats is not None else self.FORMATS

    def normalize(self, value: Any) -> ResolvedDate:
        return self.resolve(value)

    def resolve(self, value: Any) -> ResolvedDate:
        """Resolve a raw cell into a date.

        Args:
            value: Raw cell value (plain Python value or RawValue)

        Returns:
            ResolvedDate, UNRESOLVED when nothing matched
        """
        raw = classify(value)

        instant: datetime | None = None
        if isinstance(raw, Absent):
            return UNRESOLVED
        elif isinstance(raw, NativeDate):
            instant = self._from_native(raw.value)
        elif isinstance(raw, Number):
            instant = self._from_number(raw.value)
        elif isinstance(raw, Text):
            text = raw.value.strip()
            if not text:
                return UNRESOLVED
            if NUMERIC_TEXT.match(text):
                number = self._parse_number(text)
                instant = self._from_number(number) if number is not None else None
            else:
                instant = self._from_text(text)

        if instant is None:
            logger.debug(f"Could not resolve date: {value!r}")
            return UNRESOLVED
        return self._format(instant)

    def to_key(self, value: Any) -> str:
        """Get the ISO ``YYYY-MM-DD`` key for a raw value, empty if unresolved."""
        return self.resolve(value).iso_key

    @staticmethod
    def _parse_number(text: str) -> int | float | None:
        try:
            return float(text) if "." in text else int(text)
        except ValueError:
            # Digit strings beyond the int conversion limit
            return None

    def _from_native(self, value: date | datetime) -> datetime:
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=self.tz)
            return value
        return self._from_calendar(value.year, value.month, value.day)

    def _from_number(self, number: int | float) -> datetime | None:
        if isinstance(number, float) and not math.isfinite(number):
            return None

        if number > EPOCH_MILLIS_THRESHOLD:
            return self._from_epoch_millis(number)
        if number > EPOCH_SECONDS_THRESHOLD:
            return self._from_epoch_millis(number * 1000)
        if PACKED_DATE_MIN <= number <= PACKED_DATE_MAX:
            digits = str(int(number))
            return self._from_calendar(int(digits[:4]), int(digits[4:6]), int(digits[6:8]))
        if SPREADSHEET_SERIAL_MIN < number < SPREADSHEET_SERIAL_MAX:
            # Whole days only; the time-of-day fraction is dropped
            return SPREADSHEET_EPOCH + timedelta(days=int(number))
        return self._from_epoch_millis(number)

    @staticmethod
    def _from_epoch_millis(millis: int | float) -> datetime | None:
        try:
            return UNIX_EPOCH + timedelta(milliseconds=millis)
        except (OverflowError, ValueError):
            return None

    def _from_calendar(self, year: int, month: int, day: int) -> datetime | None:
        try:
            return datetime(year, month, day, tzinfo=self.tz)
        except ValueError:
            return None

    def _from_text(self, text: str) -> datetime | None:
        match = MONTH_DAY_YEAR.match(text)
        if match:
            month, day, year = (int(g) for g in match.groups())
            return self._from_calendar(year, month, day)

        for fmt in self.input_formats:
            try:
                parsed = datetime.strptime(text, fmt)
            except ValueError:
                continue
            return self._from_native(parsed)

        try:
            parsed = dtparser.parse(text, default=PARSE_DEFAULT)
        except (ValueError, OverflowError):
            return None
        return self._from_native(parsed)

    def _format(self, instant: datetime) -> ResolvedDate:
        try:
            local = instant.astimezone(self.tz)
            millis = (instant - UNIX_EPOCH) // timedelta(milliseconds=1)
        except (OverflowError, ValueError):
            return UNRESOLVED

        return ResolvedDate(
            epoch_millis=millis,
            display_date=f"{local.month:02d}/{local.day:02d}/{local.year:04d}",
            iso_key=f"{local.year:04d}-{local.month:02d}-{local.day:02d}",
        )


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------

TRACKING_PARAMS = frozenset({"utm_source", "utm_medium", "utm_campaign", "fbclid", "gclid"})


class URLCanonicalizer(BaseNormalizer):
    """Rewrite entry links into a canonical identity form.

    Canonical links use https, a lowercase host without ``www.``, no fragment,
    no tracking parameters and no trailing slash outside the root path.
    Anything that is not an http(s) link is returned trimmed but otherwise
    untouched. Canonicalizing twice gives the same result as once.
    """

    def __init__(self, tracking_params: Iterable[str] = TRACKING_PARAMS) -> None:
        """Initialize URL canonicalizer.

        Args:
            tracking_params: Query parameter names removed from links
        """
        self.tracking_params = frozenset(tracking_params)

    def normalize(self, value: Any) -> str:
        return self.canonicalize(value)

    @staticmethod
    def is_http_like(value: Any) -> bool:
        """Check if value looks like an http(s) link.

        Args:
            value: Raw cell value

        Returns:
            True for http:// or https:// prefixes, any case
        """
        raw = classify(value)
        if not isinstance(raw, Text):
            return False
        return raw.value.strip().lower().startswith(("http://", "https://"))

    def canonicalize(self, value: Any) -> str:
        """Canonicalize a raw link.

        Args:
            value: Raw cell value

        Returns:
            Canonical URL, empty string for absent/blank cells
        """
        raw = classify(value)
        if not isinstance(raw, Text):
            return ""

        text = raw.value.strip()
        if not text:
            return ""

        # Whitespace before a dropped slash, query or fragment can end up last
        canonical = self._rebuild(text)
        while canonical != canonical.rstrip():
            canonical = self._rebuild(canonical.rstrip())
        return canonical

    def _rebuild(self, text: str) -> str:
        url = text
        if url.startswith("//"):
            url = "https:" + url
        if url.lower().startswith("http://"):
            url = "https://" + url[len("http://"):]
        if not url.lower().startswith("https://"):
            return text

        try:
            parts = urlsplit(url)
            if not parts.hostname:
                return text
        except ValueError:
            logger.debug(f"Could not parse URL: {text}")
            return text

        path = parts.path
        while len(path) > 1 and path.endswith("/"):
            path = path[:-1]

        return urlunsplit(
            ("https", self._normalize_netloc(parts.netloc), path, self._strip_tracking(parts.query), "")
        )

    def identity_key(self, value: Any) -> str:
        """Get the case-insensitive key used for exact URL deduplication."""
        return self.canonicalize(value).lower()

    def domain(self, value: Any) -> str:
        """Get the host of the canonical link, empty for non-http values."""
        canonical = self.canonicalize(value)
        if not canonical.startswith("https://"):
            return ""
        try:
            return urlsplit(canonical).hostname or ""
        except ValueError:
            return ""

    @staticmethod
    def _normalize_netloc(netloc: str) -> str:
        userinfo, at, hostport = netloc.rpartition("@")
        hostport = hostport.lower()
        while hostport.startswith("www.") and len(hostport) > len("www."):
            hostport = hostport[len("www."):]
        return f"{userinfo}{at}{hostport}"

    def _strip_tracking(self, query: str) -> str:
        if not query:
            return ""
        # Filter raw segments so the surviving ones keep their exact encoding
        kept = [
            segment
            for segment in query.split("&")
            if unquote_plus(segment.split("=", 1)[0]) not in self.tracking_params
        ]
        return "&".join(kept)


# ---------------------------------------------------------------------------
# Titles
# ---------------------------------------------------------------------------

STOP_WORDS = frozenset(
    {"the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"}
)


class FuzzySignatureGenerator(BaseNormalizer):
    """Reduce a title to its first few significant words.

    Two titles share a signature when they open with the same significant
    words, ignoring case, punctuation, stop words and trailing copy.
    """

    def __init__(
        self,
        stop_words: Iterable[str] = STOP_WORDS,
        max_tokens: int = 5,
        min_token_length: int = 3,
    ) -> None:
        """Initialize signature generator.

        Args:
            stop_words: Words ignored when building signatures
            max_tokens: Number of leading significant words kept
            min_token_length: Shorter words are ignored
        """
        self.stop_words = frozenset(stop_words)
        self.max_tokens = max_tokens
        self.min_token_length = min_token_length

    def normalize(self, value: Any) -> str:
        return self.signature(value)

    def signature(self, value: Any) -> str:
        """Compute fuzzy signature for a title.

        Args:
            value: Raw title cell

        Returns:
            Space-joined significant words, empty when there are none
        """
        raw = classify(value)
        if not isinstance(raw, Text):
            return ""

        normalized = re.sub(r"[^a-z0-9\s]", " ", raw.value.lower())
        normalized = re.sub(r"\s+", " ", normalized).strip()

        tokens = [
            token
            for token in normalized.split(" ")
            if len(token) >= self.min_token_length and token not in self.stop_words
        ]
        return " ".join(tokens[: self.max_tokens])
