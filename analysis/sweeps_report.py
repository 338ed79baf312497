"""Sweeps Report - Runs the validation pipeline over a listings CSV.

Shows what the pipeline would keep and drop for an exported sweeps sheet:
duplicate groups, URL protocol mix, top domains and title/URL edge cases.

Usage:
    python -m analysis.sweeps_report "Master_Sweeps_Doc.csv" --fuzzy
    python -m analysis.sweeps_report listings.csv --live --max-live-checks 20
"""

import argparse
import csv
import sys
from collections import Counter
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from tabulate import tabulate
from sweepclean.cleaning.deduplicator import DuplicateKind
from sweepclean.cleaning.normalizer import URLCanonicalizer
from sweepclean.cleaning.pipeline import PipelineConfig, PipelineResult, Row, RowValidationPipeline
from sweepclean.core.config import settings
from sweepclean.monitoring.logger import setup_logging

# Spreadsheet row numbers: header is row 1, first record row 2
SHEET_ROW_OFFSET = 2


def print_separator(title=""):
    """Print a visual separator."""
    if title:
        print(f"\n{'='*70}")
        print(f"  {title}")
        print(f"{'='*70}")
    else:
        print("-" * 70)


def load_rows(path, title_column=None, url_column=None, end_date_column=None):
    """Load listing rows from a CSV file.

    Args:
        path: CSV file path
        title_column: Title column name
        url_column: Entry link column name
        end_date_column: End date column name

    Returns:
        List of Row in file order
    """
    with open(path, newline="", encoding="utf-8-sig") as f:
        return [
            Row.from_mapping(
                record,
                row_index=i,
                title_column=title_column,
                url_column=url_column,
                end_date_column=end_date_column,
            )
            for i, record in enumerate(csv.DictReader(f))
        ]


def show_summary(result: PipelineResult):
    """Show row counts before and after cleaning."""
    print_separator("SUMMARY")
    d = result.diagnostics
    data = [
        ["Input rows", d.total_rows],
        ["Exact URL duplicate groups", d.exact_url_groups],
        ["Rows dropped as exact URL duplicates", d.exact_url_dropped],
        ["Fuzzy title duplicate groups", d.fuzzy_title_groups],
        ["Rows dropped as fuzzy title duplicates", d.fuzzy_title_dropped],
        ["Rows dropped as duplicates (union)", d.duplicate_rows_removed],
        ["URLs checked live", d.live_checked],
        ["URLs unreachable", d.live_unreachable],
        ["URLs over live-check budget", d.live_skipped],
        ["Rows dropped as unreachable", d.live_rows_removed],
        ["Kept rows", d.kept_rows],
    ]
    print(tabulate(data, headers=["Metric", "Count"], tablefmt="grid"))

    if d.total_rows:
        print(f"\n  Retained {d.kept_rows / d.total_rows * 100:.1f}% of input rows")


def show_url_profile(rows, result: PipelineResult, top=10):
    """Show protocol distribution and the most common domains."""
    print_separator("URL PROFILE")
    d = result.diagnostics
    total = d.total_rows or 1
    data = [
        ["HTTPS", d.https_urls, f"{d.https_urls / total * 100:.1f}%"],
        ["HTTP", d.http_urls, f"{d.http_urls / total * 100:.1f}%"],
        ["Other", d.other_urls, f"{d.other_urls / total * 100:.1f}%"],
        ["Empty", d.empty_urls, f"{d.empty_urls / total * 100:.1f}%"],
    ]
    print(tabulate(data, headers=["Protocol", "Rows", "Share"], tablefmt="grid"))

    canonicalizer = URLCanonicalizer()
    domains = Counter(canonicalizer.domain(row.url) for row in rows)
    domains.pop("", None)
    print(f"\n  {d.unique_domains} unique domains")
    if domains:
        print(tabulate(domains.most_common(top), headers=["Domain", "Rows"], tablefmt="grid"))

    if d.unreachable_urls:
        data = [[url[:60], code if code is not None else "error"] for url, code in d.unreachable_urls.items()]
        print(tabulate(data, headers=["Unreachable URL", "Status"], tablefmt="grid"))


def show_duplicate_groups(rows, result: PipelineResult, limit=5):
    """Show a sample of duplicate groups of each kind."""
    by_index = {row.row_index: row for row in rows}

    for kind, label in (
        (DuplicateKind.EXACT_URL, "EXACT URL DUPLICATES"),
        (DuplicateKind.FUZZY_TITLE, "FUZZY TITLE DUPLICATES"),
    ):
        groups = result.diagnostics.groups_of(kind)
        print_separator(f"{label} ({len(groups)} groups)")
        if not groups:
            print("  (none)")
            continue

        for group in groups[:limit]:
            print(f"\n  Key: \"{group.key[:60]}\"")
            data = []
            for i in group.members:
                row = by_index[i]
                data.append([
                    i + SHEET_ROW_OFFSET,
                    "keep" if i == group.kept else "drop",
                    str(row.title or "")[:50],
                    str(row.url or "")[:50],
                ])
            print(tabulate(data, headers=["Row", "Action", "Title", "URL"], tablefmt="grid"))


def show_edge_cases(result: PipelineResult):
    """Show title, URL and date edge case counts."""
    print_separator("EDGE CASES")
    d = result.diagnostics
    data = [
        ["Empty titles", d.empty_titles],
        ["Short titles (<10 chars)", d.short_titles],
        ["Long titles (>100 chars)", d.long_titles],
        ["Empty URLs", d.empty_urls],
        ["Unresolved end dates", d.unresolved_dates],
    ]
    print(tabulate(data, headers=["Case", "Rows"], tablefmt="grid"))


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Run the sweeps validation pipeline over a CSV export")
    parser.add_argument("csv_path", type=Path, help="Listings CSV file")
    parser.add_argument("--fuzzy", action="store_true", default=settings.enable_fuzzy_duplicate_detection,
                        help="Enable fuzzy title duplicate detection")
    parser.add_argument("--no-exact", dest="exact", action="store_false",
                        default=settings.enable_exact_url_duplicate_detection,
                        help="Disable exact URL duplicate detection")
    parser.add_argument("--live", action="store_true", default=settings.enable_live_url_validation,
                        help="Check URL reachability over HTTP")
    parser.add_argument("--max-live-checks", type=int, default=settings.max_live_checks,
                        help="Maximum distinct URLs checked live")
    parser.add_argument("--title-column", default=settings.title_column)
    parser.add_argument("--url-column", default=settings.url_column)
    parser.add_argument("--end-date-column", default=settings.end_date_column)
    return parser.parse_args(argv)


def main(argv=None):
    """Load the CSV, run the pipeline and print the report."""
    args = parse_args(argv)
    setup_logging()

    print("\n" + "=" * 70)
    print("       SWEEPS VALIDATION REPORT")
    print(f"       {args.csv_path}")
    print("=" * 70)

    rows = load_rows(args.csv_path, args.title_column, args.url_column, args.end_date_column)
    print(f"\nLoaded {len(rows)} rows")

    config = PipelineConfig(**{
        **PipelineConfig.from_settings().model_dump(),
        "enable_fuzzy_duplicate_detection": args.fuzzy,
        "enable_exact_url_duplicate_detection": args.exact,
        "enable_live_url_validation": args.live,
        "max_live_checks": args.max_live_checks,
    })
    result = RowValidationPipeline(config=config).process(rows)

    show_summary(result)
    show_url_profile(rows, result)
    show_duplicate_groups(rows, result)
    show_edge_cases(result)

    print_separator("DONE")
    return 0


if __name__ == "__main__":
    sys.exit(main())
