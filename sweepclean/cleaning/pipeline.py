"""Listing validation pipeline: normalize, deduplicate and live-check rows."""

import time
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sweepclean.core.config import DEFAULT_TIMEZONE, Settings, check_timezone, settings
from sweepclean.monitoring.logger import get_logger, log_pipeline_event
from sweepclean.validation.url_checker import HttpUrlChecker, LiveUrlValidator, UrlChecker

from .deduplicator import DeduplicationGrouper, DuplicateGroup, DuplicateKind, dropped_indices
from .normalizer import (
    DateResolver,
    FuzzySignatureGenerator,
    ResolvedDate,
    TextNormalizer,
    URLCanonicalizer,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class Row:
    """One source listing, as supplied by the caller."""

    title: Any
    url: Any
    end_date: Any
    row_index: int

    @classmethod
    def from_mapping(
        cls,
        record: Mapping[str, Any],
        row_index: int,
        title_column: str | None = None,
        url_column: str | None = None,
        end_date_column: str | None = None,
    ) -> "Row":
        """Build a row from a record dictionary (e.g. a csv.DictReader row).

        Args:
            record: Source record
            row_index: Position of the record in its source
            title_column: Title column, defaults to settings.title_column
            url_column: URL column, defaults to settings.url_column
            end_date_column: End date column, defaults to settings.end_date_column

        Returns:
            Row
        """
        return cls(
            title=record.get(title_column or settings.title_column),
            url=record.get(url_column or settings.url_column),
            end_date=record.get(end_date_column or settings.end_date_column),
            row_index=row_index,
        )


@dataclass(frozen=True)
class CleanedRow:
    """Source row plus its normalized fields."""

    row: Row
    title: str
    canonical_url: str
    fuzzy_signature: str
    end_date: ResolvedDate

    @property
    def row_index(self) -> int:
        return self.row.row_index

    @property
    def url_key(self) -> str:
        """Exact-match dedup key (canonical URL, case-folded)."""
        return self.canonical_url.lower()


class PipelineConfig(BaseModel):
    """Per-run pipeline toggles."""

    model_config = ConfigDict(frozen=True)

    enable_fuzzy_duplicate_detection: bool = False
    enable_exact_url_duplicate_detection: bool = True
    enable_live_url_validation: bool = False
    max_live_checks: int = Field(default=50, ge=0)
    url_check_timeout_ms: int = Field(default=10000, ge=1)
    url_check_concurrency: int = Field(default=10, ge=1)
    timezone: str = DEFAULT_TIMEZONE
    short_title_length: int = Field(default=10, ge=0)
    long_title_length: int = Field(default=100, ge=0)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Ensure timezone is a known IANA identifier."""
        return check_timezone(v)

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "PipelineConfig":
        """Build config from application settings.

        Args:
            source: Settings instance, defaults to the global settings

        Returns:
            PipelineConfig
        """
        source = source or settings
        return cls(
            enable_fuzzy_duplicate_detection=source.enable_fuzzy_duplicate_detection,
            enable_exact_url_duplicate_detection=source.enable_exact_url_duplicate_detection,
            enable_live_url_validation=source.enable_live_url_validation,
            max_live_checks=source.max_live_checks,
            url_check_timeout_ms=source.url_check_timeout_ms,
            url_check_concurrency=source.url_check_concurrency,
            timezone=source.timezone,
        )


@dataclass
class Diagnostics:
    """Counters describing one pipeline run.

    Only duplicate groups and unreachable URLs affect which rows are kept;
    the remaining counters are informational.
    """

    total_rows: int = 0
    kept_rows: int = 0
    removed_rows: int = 0

    groups: list[DuplicateGroup] = field(default_factory=list)
    exact_url_groups: int = 0
    exact_url_dropped: int = 0
    fuzzy_title_groups: int = 0
    fuzzy_title_dropped: int = 0
    duplicate_rows_removed: int = 0

    live_checked: int = 0
    live_unreachable: int = 0
    live_skipped: int = 0
    live_rows_removed: int = 0
    unreachable_urls: dict[str, int | None] = field(default_factory=dict)

    empty_titles: int = 0
    short_titles: int = 0
    long_titles: int = 0
    empty_urls: int = 0
    unresolved_dates: int = 0

    https_urls: int = 0
    http_urls: int = 0
    other_urls: int = 0
    unique_domains: int = 0

    def groups_of(self, kind: DuplicateKind) -> list[DuplicateGroup]:
        """Get duplicate groups of one kind, in first-seen order."""
        return [g for g in self.groups if g.kind == kind]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary."""
        return asdict(self)


@dataclass
class PipelineResult:
    """Kept rows, in input order, and run diagnostics."""

    cleaned_rows: list[CleanedRow]
    diagnostics: Diagnostics


@dataclass
class _Scan:
    derived: list[CleanedRow]
    groups: list[DuplicateGroup]
    duplicates: set[int]


class RowValidationPipeline:
    """Pipeline for cleaning and deduplicating sweepstakes listings.

    Per-row transforms (date, URL, title signature) are independent of each
    other; grouping then folds the rows in input order so that the earliest
    row of every duplicate group is the one kept.
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        date_resolver: DateResolver | None = None,
        canonicalizer: URLCanonicalizer | None = None,
        signature_generator: FuzzySignatureGenerator | None = None,
        url_checker: UrlChecker | None = None,
        name: str = "sweeps",
    ) -> None:
        """Initialize pipeline.

        Args:
            config: Default config for runs that do not pass one
            date_resolver: Date resolver, built from config.timezone when omitted
            canonicalizer: URL canonicalizer
            signature_generator: Fuzzy title signature generator
            url_checker: Live URL checker, HttpUrlChecker when omitted
            name: Pipeline name for logging
        """
        self.config = config or PipelineConfig()
        self.date_resolver = date_resolver
        self.canonicalizer = canonicalizer or URLCanonicalizer()
        self.signature_generator = signature_generator or FuzzySignatureGenerator()
        self.url_checker = url_checker
        self.name = name
        self._text = TextNormalizer(strip=True, remove_extra_whitespace=True)

    def process(
        self,
        rows: Iterable[Row | Mapping[str, Any]],
        config: PipelineConfig | None = None,
    ) -> PipelineResult:
        """Run the pipeline, checking live URLs one at a time.

        Args:
            rows: Rows (or record mappings) in input order
            config: Run config, defaults to the pipeline's config

        Returns:
            PipelineResult
        """
        start_time = time.time()
        config = config or self.config
        scan = self._scan(rows, config)

        unreachable: dict[str, int | None] = {}
        validator = None
        if config.enable_live_url_validation:
            validator = self._validator(config)
            report = validator.validate(self._live_candidates(scan))
            unreachable = report.unreachable
            skipped = len(report.skipped)
        else:
            skipped = 0

        return self._finish(scan, config, validator, unreachable, skipped, start_time)

    async def aprocess(
        self,
        rows: Iterable[Row | Mapping[str, Any]],
        config: PipelineConfig | None = None,
    ) -> PipelineResult:
        """Run the pipeline, checking live URLs concurrently.

        Args:
            rows: Rows (or record mappings) in input order
            config: Run config, defaults to the pipeline's config

        Returns:
            PipelineResult
        """
        start_time = time.time()
        config = config or self.config
        scan = self._scan(rows, config)

        unreachable: dict[str, int | None] = {}
        validator = None
        if config.enable_live_url_validation:
            validator = self._validator(config)
            report = await validator.avalidate(self._live_candidates(scan))
            unreachable = report.unreachable
            skipped = len(report.skipped)
        else:
            skipped = 0

        return self._finish(scan, config, validator, unreachable, skipped, start_time)

    def derive(self, row: Row, date_resolver: DateResolver | None = None) -> CleanedRow:
        """Compute normalized fields for a single row.

        Args:
            row: Source row
            date_resolver: Resolver to use, defaults to one for the pipeline's config

        Returns:
            CleanedRow
        """
        resolver = date_resolver or self._date_resolver(self.config)
        return CleanedRow(
            row=row,
            title=self._text(row.title),
            canonical_url=self.canonicalizer.canonicalize(row.url),
            fuzzy_signature=self.signature_generator.signature(row.title),
            end_date=resolver.resolve(row.end_date),
        )

    def _scan(self, rows: Iterable[Row | Mapping[str, Any]], config: PipelineConfig) -> _Scan:
        resolver = self._date_resolver(config)
        derived = [self.derive(row, resolver) for row in self._coerce_rows(rows)]
        logger.debug(f"Derived fields for {len(derived)} rows | timezone={config.timezone}")

        groups: list[DuplicateGroup] = []
        if config.enable_exact_url_duplicate_detection:
            grouper = DeduplicationGrouper(DuplicateKind.EXACT_URL, lambda d: d.url_key)
            groups.extend(grouper.group(derived))
        if config.enable_fuzzy_duplicate_detection:
            grouper = DeduplicationGrouper(DuplicateKind.FUZZY_TITLE, lambda d: d.fuzzy_signature)
            groups.extend(grouper.group(derived))

        return _Scan(derived=derived, groups=groups, duplicates=dropped_indices(groups))

    @staticmethod
    def _coerce_rows(rows: Iterable[Row | Mapping[str, Any]]) -> list[Row]:
        coerced = []
        for i, row in enumerate(rows):
            if isinstance(row, Row):
                coerced.append(row)
            else:
                coerced.append(Row.from_mapping(row, row_index=i))
        return coerced

    def _date_resolver(self, config: PipelineConfig) -> DateResolver:
        return self.date_resolver or DateResolver(tz=config.timezone)

    def _validator(self, config: PipelineConfig) -> LiveUrlValidator:
        return LiveUrlValidator(
            checker=self.url_checker or HttpUrlChecker(),
            max_checks=config.max_live_checks,
            timeout_ms=config.url_check_timeout_ms,
            concurrency=config.url_check_concurrency,
        )

    def _live_candidates(self, scan: _Scan) -> list[str]:
        # Rows already dropped as duplicates do not spend the check budget
        return [
            d.canonical_url
            for d in scan.derived
            if d.row_index not in scan.duplicates
            and self.canonicalizer.is_http_like(d.canonical_url)
        ]

    def _finish(
        self,
        scan: _Scan,
        config: PipelineConfig,
        validator: LiveUrlValidator | None,
        unreachable: dict[str, int | None],
        skipped: int,
        start_time: float,
    ) -> PipelineResult:
        dead = {
            d.row_index
            for d in scan.derived
            if d.row_index not in scan.duplicates and d.canonical_url in unreachable
        }
        removed = scan.duplicates | dead
        cleaned = [d for d in scan.derived if d.row_index not in removed]

        diagnostics = self._diagnose(scan, config)
        diagnostics.kept_rows = len(cleaned)
        diagnostics.removed_rows = len(scan.derived) - len(cleaned)
        diagnostics.live_checked = validator.checks_used if validator else 0
        diagnostics.live_unreachable = len(unreachable)
        diagnostics.live_skipped = skipped
        diagnostics.live_rows_removed = len(dead)
        diagnostics.unreachable_urls = dict(unreachable)

        log_pipeline_event(
            self.name,
            len(scan.derived),
            len(cleaned),
            time.time() - start_time,
            duplicates=len(scan.duplicates),
            unreachable=len(dead),
        )
        return PipelineResult(cleaned_rows=cleaned, diagnostics=diagnostics)

    def _diagnose(self, scan: _Scan, config: PipelineConfig) -> Diagnostics:
        diagnostics = Diagnostics(total_rows=len(scan.derived), groups=list(scan.groups))

        exact = diagnostics.groups_of(DuplicateKind.EXACT_URL)
        fuzzy = diagnostics.groups_of(DuplicateKind.FUZZY_TITLE)
        diagnostics.exact_url_groups = len(exact)
        diagnostics.exact_url_dropped = sum(len(g.dropped) for g in exact)
        diagnostics.fuzzy_title_groups = len(fuzzy)
        diagnostics.fuzzy_title_dropped = sum(len(g.dropped) for g in fuzzy)
        diagnostics.duplicate_rows_removed = len(scan.duplicates)

        domains: set[str] = set()
        for d in scan.derived:
            if not d.title:
                diagnostics.empty_titles += 1
            elif len(d.title) < config.short_title_length:
                diagnostics.short_titles += 1
            elif len(d.title) > config.long_title_length:
                diagnostics.long_titles += 1

            raw_url = self._text(d.row.url).lower()
            if not d.canonical_url:
                diagnostics.empty_urls += 1
            elif raw_url.startswith("https://"):
                diagnostics.https_urls += 1
            elif raw_url.startswith("http://"):
                diagnostics.http_urls += 1
            else:
                diagnostics.other_urls += 1

            domain = self.canonicalizer.domain(d.canonical_url)
            if domain:
                domains.add(domain)

            if not d.end_date.is_resolved and self._text(d.row.end_date):
                diagnostics.unresolved_dates += 1

        diagnostics.unique_domains = len(domains)
        return diagnostics
