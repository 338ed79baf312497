"""Tests for data normalizers."""

import pytest
from datetime import date, datetime, timezone

from sweepclean.cleaning.normalizer import (
    UNRESOLVED,
    DateResolver,
    FuzzySignatureGenerator,
    TextNormalizer,
    URLCanonicalizer,
)
from sweepclean.cleaning.values import ABSENT, NativeDate, Number, Text, classify


class TestClassify:
    """Tests for raw value classification."""

    def test_none_is_absent(self):
        """Test None maps to Absent."""
        assert classify(None) is ABSENT

    def test_strings_are_text(self):
        """Test strings, including empty ones, map to Text."""
        assert classify("") == Text("")
        assert classify(" 46015 ") == Text(" 46015 ")

    def test_numbers(self):
        """Test int and float map to Number."""
        assert classify(46015) == Number(46015)
        assert classify(1.5) == Number(1.5)

    def test_bool_is_absent(self):
        """Test booleans are not treated as numbers."""
        assert classify(True) is ABSENT

    def test_dates(self):
        """Test date and datetime map to NativeDate."""
        assert classify(date(2025, 1, 1)) == NativeDate(date(2025, 1, 1))
        assert isinstance(classify(datetime(2025, 1, 1)), NativeDate)

    def test_variant_passthrough(self):
        """Test already classified values are returned unchanged."""
        value = Number(5)
        assert classify(value) is value


class TestTextNormalizer:
    """Tests for TextNormalizer."""

    def test_basic_strip(self):
        """Test basic stripping."""
        normalizer = TextNormalizer()
        assert normalizer.normalize("  hello  ") == "hello"

    def test_remove_extra_whitespace(self):
        """Test removing extra whitespace."""
        normalizer = TextNormalizer(remove_extra_whitespace=True)
        assert normalizer.normalize("hello  \n  world") == "hello world"

    def test_keeps_case(self):
        """Test case is preserved for display."""
        assert TextNormalizer().normalize("HELLO World") == "HELLO World"

    def test_none_value(self):
        """Test None value handling."""
        normalizer = TextNormalizer()
        assert normalizer.normalize(None) == ""

    def test_number_value(self):
        """Test numbers are rendered as text."""
        assert TextNormalizer()(42) == "42"


class TestDateResolver:
    """Tests for DateResolver."""

    @pytest.fixture
    def resolver(self):
        return DateResolver(tz="America/Los_Angeles")

    def test_spreadsheet_serial(self, resolver):
        """Test spreadsheet serial day counts."""
        result = resolver.resolve(46015)
        assert result.display_date == "12/23/2025"
        assert result.iso_key == "2025-12-23"
        assert result.epoch_millis == 1766534400000
        assert resolver.resolve(46010).display_date == "12/18/2025"

    def test_spreadsheet_serial_string(self, resolver):
        """Test numeric strings resolve like numbers."""
        assert resolver.resolve("46015") == resolver.resolve(46015)
        assert resolver.resolve(" 46015 ") == resolver.resolve(46015)

    def test_spreadsheet_serial_ignores_fraction(self, resolver):
        """Test the time-of-day fraction of a serial is dropped."""
        assert resolver.resolve(46015.75) == resolver.resolve(46015)
        assert resolver.resolve("46015.75") == resolver.resolve(46015)

    def test_reference_timezone_drives_display(self):
        """Test output depends on the configured timezone, not the host."""
        assert DateResolver(tz="UTC").resolve(46015).display_date == "12/24/2025"
        assert DateResolver(tz="America/Los_Angeles").resolve(45658).display_date == "12/31/2024"

    def test_epoch_milliseconds(self, resolver):
        """Test values above 1e12 are epoch milliseconds."""
        result = resolver.resolve(1_000_000_000_001)
        assert result.epoch_millis == 1_000_000_000_001
        assert result.display_date == "09/08/2001"

    def test_millisecond_boundary_is_not_milliseconds(self, resolver):
        """Test exactly 1e12 falls to the seconds rule, which overflows."""
        assert resolver.resolve(1_000_000_000_000) == UNRESOLVED
        assert resolver.resolve("1000000000000") == UNRESOLVED

    def test_seconds_boundary_is_not_seconds(self, resolver):
        """Test exactly 1e9 falls through to the millisecond fallback."""
        result = resolver.resolve(1_000_000_000)
        assert result.epoch_millis == 1_000_000_000
        assert result.display_date == "01/12/1970"

    def test_epoch_seconds(self, resolver):
        """Test values above 1e9 are epoch seconds."""
        result = resolver.resolve(1_000_000_001)
        assert result.epoch_millis == 1_000_000_001_000
        assert result.display_date == "09/08/2001"

    def test_epoch_seconds_string(self, resolver):
        """Test epoch seconds given as text."""
        result = resolver.resolve("1767225600")
        assert result.epoch_millis == 1_767_225_600_000
        assert result.display_date == "12/31/2025"

    def test_packed_date(self, resolver):
        """Test YYYYMMDD integers."""
        assert resolver.resolve(20991231).display_date == "12/31/2099"
        assert resolver.resolve("20251231").display_date == "12/31/2025"
        assert resolver.resolve(19000101).display_date == "01/01/1900"

    def test_packed_date_is_local_midnight(self, resolver):
        """Test packed dates are midnight in the reference timezone."""
        result = resolver.resolve(20251231)
        expected = datetime(2025, 12, 31, 8, 0, tzinfo=timezone.utc)
        assert result.epoch_millis == int(expected.timestamp() * 1000)

    def test_invalid_packed_date(self, resolver):
        """Test impossible calendar dates are unresolved."""
        assert resolver.resolve(20991232) == UNRESOLVED
        assert resolver.resolve(20250230) == UNRESOLVED
        assert resolver.resolve("20991232") == UNRESOLVED

    def test_bad_packed_date_never_falls_back(self, resolver):
        """Test 19xx/20xx eight-digit values are never read as epoch millis."""
        assert resolver.resolve(19000000) == UNRESOLVED
        assert resolver.resolve(20991300) == UNRESOLVED
        assert resolver.resolve(20999999) == UNRESOLVED
        assert resolver.resolve(21000101).display_date == "12/31/1969"

    def test_serial_range_is_exclusive(self, resolver):
        """Test 20000 and 80000 are not spreadsheet serials."""
        assert resolver.resolve(20000).display_date == "12/31/1969"
        assert resolver.resolve(80000).display_date == "12/31/1969"

    def test_small_number_fallback(self, resolver):
        """Test small numbers fall back to epoch milliseconds."""
        result = resolver.resolve(5)
        assert result.epoch_millis == 5
        assert result.display_date == "12/31/1969"

    def test_month_day_year(self, resolver):
        """Test M/D/YYYY text."""
        assert resolver.resolve("3/7/2024").display_date == "03/07/2024"
        assert resolver.resolve("12/23/2025").iso_key == "2025-12-23"

    def test_invalid_month_day_year(self, resolver):
        """Test M/D/YYYY with impossible values is unresolved."""
        assert resolver.resolve("13/45/2024") == UNRESOLVED

    def test_text_formats(self, resolver):
        """Test other textual formats."""
        assert resolver.resolve("2024-01-15").display_date == "01/15/2024"
        assert resolver.resolve("January 15, 2024").display_date == "01/15/2024"
        assert resolver.resolve("15 Jan 2024").display_date == "01/15/2024"

    def test_iso_with_timezone(self, resolver):
        """Test ISO timestamps with an offset are converted to the reference zone."""
        assert resolver.resolve("2025-12-23T10:00:00Z").display_date == "12/23/2025"
        assert resolver.resolve("2025-12-24T03:00:00+00:00").display_date == "12/23/2025"

    def test_native_dates(self, resolver):
        """Test date and datetime values."""
        assert resolver.resolve(date(2025, 12, 23)).display_date == "12/23/2025"
        assert resolver.resolve(datetime(2025, 12, 23, 10, 0)).display_date == "12/23/2025"
        aware = datetime(2025, 12, 24, 3, 0, tzinfo=timezone.utc)
        assert resolver.resolve(aware).display_date == "12/23/2025"

    @pytest.mark.parametrize(
        "value",
        [None, "", "   ", "coming soon", True, float("nan"), float("inf"), "9" * 30],
    )
    def test_unresolved(self, resolver, value):
        """Test unparseable values resolve to the sentinel without raising."""
        result = resolver.resolve(value)
        assert result == UNRESOLVED
        assert result.epoch_millis is None
        assert result.display_date == ""
        assert not result.is_resolved

    def test_to_key(self, resolver):
        """Test ISO key helper."""
        assert resolver.to_key("3/7/2024") == "2024-03-07"
        assert resolver.to_key(None) == ""

    def test_callable_interface(self, resolver):
        """Test resolver as callable."""
        assert resolver(46015) == resolver.resolve(46015)


class TestURLCanonicalizer:
    """Tests for URLCanonicalizer."""

    @pytest.fixture
    def canonicalizer(self):
        return URLCanonicalizer()

    def test_www_case_and_trailing_slash(self, canonicalizer):
        """Test host normalization and trailing slash removal."""
        expected = "https://example.com/test"
        assert canonicalizer.canonicalize("https://www.Example.com/test/") == expected
        assert canonicalizer.canonicalize("http://example.com/test") == expected

    def test_whitespace_left_by_dropped_parts(self, canonicalizer):
        """Test whitespace exposed by slash, query or fragment removal is trimmed."""
        assert canonicalizer.canonicalize("https://ex.com/a /") == "https://ex.com/a"
        assert canonicalizer.canonicalize("https://ex.com/ /") == "https://ex.com/"
        assert canonicalizer.canonicalize("https://ex.com/a/ #frag") == "https://ex.com/a"
        assert canonicalizer.canonicalize("https://ex.com/a ?utm_source=x") == "https://ex.com/a"

    def test_http_upgrade(self, canonicalizer):
        """Test http is upgraded to https."""
        assert canonicalizer.canonicalize("http://example.com") == "https://example.com"
        assert canonicalizer.canonicalize("HTTP://EXAMPLE.COM/Page") == "https://example.com/Page"

    def test_protocol_relative(self, canonicalizer):
        """Test protocol-relative links get https."""
        assert canonicalizer.canonicalize("//cdn.example.com/a/") == "https://cdn.example.com/a"

    def test_tracking_params_removed_in_order(self, canonicalizer):
        """Test tracking parameters are dropped and others keep their order."""
        assert (
            canonicalizer.canonicalize("https://example.com/?utm_source=x&id=5")
            == "https://example.com/?id=5"
        )
        assert (
            canonicalizer.canonicalize("https://example.com/p?b=2&utm_medium=x&a=1&gclid=z")
            == "https://example.com/p?b=2&a=1"
        )

    def test_only_tracking_params(self, canonicalizer):
        """Test query disappears when only tracking parameters were present."""
        assert canonicalizer.canonicalize("https://example.com/p?fbclid=1") == "https://example.com/p"

    def test_custom_tracking_params(self):
        """Test an injected denylist replaces the default one."""
        canonicalizer = URLCanonicalizer(tracking_params={"ref"})
        assert (
            canonicalizer.canonicalize("https://example.com/p?ref=x&utm_source=y")
            == "https://example.com/p?utm_source=y"
        )

    def test_root_path_kept(self, canonicalizer):
        """Test the root path is never stripped."""
        assert canonicalizer.canonicalize("https://example.com/") == "https://example.com/"

    def test_fragment_removed(self, canonicalizer):
        """Test fragments are dropped."""
        assert canonicalizer.canonicalize("https://example.com/page#section") == "https://example.com/page"

    def test_path_case_preserved(self, canonicalizer):
        """Test only the host is lowercased."""
        assert canonicalizer.canonicalize("https://Example.com/Path/Page") == "https://example.com/Path/Page"

    def test_userinfo_and_port(self, canonicalizer):
        """Test userinfo and port survive host normalization."""
        assert (
            canonicalizer.canonicalize("https://User@WWW.Example.com:8080/x/")
            == "https://User@example.com:8080/x"
        )

    def test_non_http_passthrough(self, canonicalizer):
        """Test non-http values are only trimmed."""
        assert canonicalizer.canonicalize("  mailto:Someone@Example.com ") == "mailto:Someone@Example.com"
        assert canonicalizer.canonicalize("ftp://Example.com/") == "ftp://Example.com/"
        assert canonicalizer.canonicalize("example.com/page/") == "example.com/page/"

    def test_malformed_passthrough(self, canonicalizer):
        """Test unparseable links are returned verbatim."""
        assert canonicalizer.canonicalize("https://[invalid") == "https://[invalid"
        assert canonicalizer.canonicalize(" https:// ") == "https://"

    def test_empty_values(self, canonicalizer):
        """Test absent and blank values."""
        assert canonicalizer.canonicalize(None) == ""
        assert canonicalizer.canonicalize("   ") == ""
        assert canonicalizer.canonicalize(42) == ""

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.Example.com/test/",
            "http://example.com/?a=1&&b=2#x",
            "https://www.www.example.com//a//",
            "HTTP://EXAMPLE.COM",
            "//x.com/",
            "javascript:void(0)",
            "https://[invalid",
            "https://example.com/?utm_source=a&utm_source=b",
            "https://ex.com/a /",
            "https://ex.com/ /",
            "https://ex.com/a/ #frag",
            "https://ex.com/a ?utm_source=x",
            "",
        ],
    )
    def test_idempotent(self, canonicalizer, url):
        """Test canonicalizing twice equals canonicalizing once."""
        once = canonicalizer.canonicalize(url)
        assert canonicalizer.canonicalize(once) == once

    def test_is_http_like(self, canonicalizer):
        """Test http-like detection."""
        assert canonicalizer.is_http_like(" HTTPS://example.com")
        assert canonicalizer.is_http_like("http://example.com")
        assert not canonicalizer.is_http_like("ftp://example.com")
        assert not canonicalizer.is_http_like("//example.com")
        assert not canonicalizer.is_http_like(None)

    def test_identity_key(self, canonicalizer):
        """Test exact-match key is case-insensitive."""
        assert canonicalizer.identity_key("https://Example.com/Win") == canonicalizer.identity_key(
            "http://www.example.com/win/"
        )

    def test_domain(self, canonicalizer):
        """Test domain extraction."""
        assert canonicalizer.domain("http://www.Coffee.com/win") == "coffee.com"
        assert canonicalizer.domain("not a url") == ""


class TestFuzzySignatureGenerator:
    """Tests for FuzzySignatureGenerator."""

    @pytest.fixture
    def generator(self):
        return FuzzySignatureGenerator()

    def test_empty(self, generator):
        """Test empty and non-text titles."""
        assert generator.signature("") == ""
        assert generator.signature(None) == ""
        assert generator.signature(123) == ""

    def test_stop_words_and_punctuation(self, generator):
        """Test stop words, short words and punctuation are dropped."""
        assert generator.signature("The Big Giveaway of the Year!!") == "big giveaway year"

    def test_punctuation_splits_words(self, generator):
        """Test punctuation becomes a separator instead of merging words."""
        assert generator.signature("rock-and-roll tickets") == "rock roll tickets"

    def test_short_tokens_dropped(self, generator):
        """Test tokens of two characters or fewer are dropped."""
        assert generator.signature("Win $1,000 Cash - Daily Entry (US only)") == "win 000 cash daily entry"

    def test_truncated_to_five_tokens(self, generator):
        """Test only the first five significant words are kept."""
        assert (
            generator.signature("alpha beta gamma delta epsilon zeta eta")
            == "alpha beta gamma delta epsilon"
        )

    def test_only_stop_words(self, generator):
        """Test a title without significant words has no signature."""
        assert generator.signature("The and of to") == ""

    def test_cosmetic_variants_collide(self, generator):
        """Test cosmetic differences do not change the signature."""
        assert generator.signature("Win a Trip to Hawaii!") == generator.signature("win trip, HAWAII")

    def test_custom_stop_words(self):
        """Test an injected stop word list."""
        generator = FuzzySignatureGenerator(stop_words={"win"})
        assert generator.signature("Win a Trip") == "trip"

    def test_custom_token_limit(self):
        """Test a different signature length."""
        generator = FuzzySignatureGenerator(max_tokens=2)
        assert generator.signature("alpha beta gamma") == "alpha beta"
