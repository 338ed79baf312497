"""SweepClean - normalization and fuzzy deduplication of sweepstakes listings."""

__version__ = "1.0.0"
