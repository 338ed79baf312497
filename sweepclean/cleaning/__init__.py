"""Cleaning module - Date, URL and title normalization, deduplication, pipeline."""

from .deduplicator import DeduplicationGrouper, DuplicateGroup, DuplicateKind, dropped_indices
from .normalizer import (
    UNRESOLVED,
    DateResolver,
    FuzzySignatureGenerator,
    ResolvedDate,
    TextNormalizer,
    URLCanonicalizer,
)
from .pipeline import (
    CleanedRow,
    Diagnostics,
    PipelineConfig,
    PipelineResult,
    Row,
    RowValidationPipeline,
)
from .values import Absent, NativeDate, Number, RawValue, Text, classify

__all__ = [
    "RowValidationPipeline",
    "PipelineConfig",
    "PipelineResult",
    "Diagnostics",
    "Row",
    "CleanedRow",
    "DateResolver",
    "ResolvedDate",
    "UNRESOLVED",
    "URLCanonicalizer",
    "FuzzySignatureGenerator",
    "TextNormalizer",
    "DeduplicationGrouper",
    "DuplicateGroup",
    "DuplicateKind",
    "dropped_indices",
    "RawValue",
    "Absent",
    "Text",
    "Number",
    "NativeDate",
    "classify",
]
