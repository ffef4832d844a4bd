"""
Tests for dig extraction, visitor fingerprints, route classification
and time buckets.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from tracker_app.models.events import RouteRecord
from tracker_app.services.buckets import bucket_for
from tracker_app.services.fingerprint import fingerprint
from tracker_app.services.parser import extract_query, parse_line
from tracker_app.services.route_classifier import classify, extract_route

from helpers import dig_line

SAMPLE_LINE = (
    "xxx dig?url=http%3A%2F%2Fsite.com%2Fhome%2Fpage&time=2024-01-01T00%3A00%3A00"
    "&refer=http%3A%2F%2Fref.com&ua=UA1 HTTP/1.1"
)


class TestParseLine:
    """Test dig request extraction"""

    def test_sample_line(self):
        """Test the documented sample line decodes into all four fields"""
        event = parse_line(SAMPLE_LINE)

        assert event.url == "http://site.com/home/page"
        assert event.timestamp == "2024-01-01T00:00:00"
        assert event.referrer == "http://ref.com"
        assert event.user_agent == "UA1"
        assert not event.is_empty

    def test_full_access_log_line(self):
        """Test a realistic nginx line with surrounding fields"""
        event = parse_line(dig_line(ua="Mozilla/5.0 (X11; Linux x86_64)"))

        assert event.url == "http://site.com/home/page"
        assert event.user_agent == "Mozilla/5.0 (X11; Linux x86_64)"

    def test_missing_prefix(self):
        """Test lines without the dig marker produce an empty event"""
        event = parse_line('127.0.0.1 - - "GET /index.html HTTP/1.1" 200 512')
        assert event.is_empty

    def test_missing_terminator(self):
        """Test a dig request without HTTP after it produces an empty event"""
        event = parse_line("xxx dig?url=http%3A%2F%2Fsite.com%2Fhome&ua=UA1")
        assert event.is_empty

    def test_terminator_before_prefix_is_ignored(self):
        """Test only a terminator after the prefix counts"""
        assert extract_query("HTTP dig?ua=UA1") is None
        assert extract_query("HTTP dig?ua=UA1 HTTP/1.0") == "ua=UA1"

    def test_malformed_escape(self):
        """Test an invalid percent escape makes the whole event empty"""
        assert parse_line("dig?url=%zzbad&ua=UA1 HTTP/1.1").is_empty

    def test_non_utf8_escape(self):
        """Test escapes that are not valid UTF-8 make the event empty"""
        assert parse_line("dig?url=%ff%fe&ua=UA1 HTTP/1.1").is_empty

    def test_missing_keys_are_empty_strings(self):
        """Test absent keys decode to empty strings"""
        event = parse_line("dig?ua=UA1 HTTP/1.1")

        assert event.user_agent == "UA1"
        assert event.url == ""
        assert event.referrer == ""

    def test_first_value_wins(self):
        """Test repeated keys keep the first value"""
        event = parse_line("dig?ua=first&ua=second HTTP/1.1")
        assert event.user_agent == "first"

    def test_plus_decodes_to_space(self):
        """Test form-encoded spaces are decoded"""
        event = parse_line("dig?ua=Mozilla/5.0+(Windows) HTTP/1.1")
        assert event.user_agent == "Mozilla/5.0 (Windows)"


class TestFingerprint:
    """Test visitor identity derivation"""

    def test_deterministic(self):
        """Test the same pair always gives the same identity"""
        first = fingerprint("http://ref.com", "UA1")
        second = fingerprint("http://ref.com", "UA1")

        assert first == second
        assert len(first) == 32
        int(first, 16)  # hex digest

    def test_known_digest(self):
        """Test the digest is MD5 so identities survive restarts and upgrades"""
        assert fingerprint("", "") == "d41d8cd98f00b204e9800998ecf8427e"

    def test_different_user_agent_changes_identity(self):
        """Test visitors with different user agents differ"""
        assert fingerprint("http://ref.com", "UA1") != fingerprint("http://ref.com", "UA2")

    def test_concatenation(self):
        """Test the identity is computed over referrer followed by user agent"""
        assert fingerprint("ab", "c") == fingerprint("a", "bc")


class TestRouteClassifier:
    """Test route extraction from page URLs"""

    def test_first_path_segment(self):
        """Test the route is the first path segment"""
        assert extract_route("http://site.com/home/page") == "home"

    def test_https(self):
        """Test https is a recognized scheme by default"""
        assert extract_route("https://site.com/news") == "news"

    def test_query_and_fragment_are_cut(self):
        """Test the route stops at a query string or fragment"""
        assert extract_route("http://site.com/home?x=1") == "home"
        assert extract_route("http://site.com/home#top") == "home"

    def test_missing_scheme(self):
        """Test URLs without a recognized scheme have no route"""
        assert extract_route("site.com/home") is None
        assert extract_route("ftp://site.com/home") is None

    def test_missing_path(self):
        """Test URLs without a path separator or segment have no route"""
        assert extract_route("http://site.com") is None
        assert extract_route("http://site.com/") is None

    def test_custom_schemes(self):
        """Test the recognized schemes are configurable"""
        assert extract_route("https://site.com/home", schemes=["http://"]) is None

    def test_classify_populates_record(self):
        """Test a routable URL yields a fully populated record"""
        record = classify("http://site.com/home/page", "2024-01-01T00:00:00", "abc")

        assert record == RouteRecord(
            route="home",
            visitor_id="abc",
            url="http://site.com/home/page",
            timestamp="2024-01-01T00:00:00",
        )

    def test_classify_empty_record(self):
        """Test an unroutable URL yields a fully empty record"""
        record = classify("site.com/home", "2024-01-01T00:00:00", "abc")

        assert record.is_empty
        assert record == RouteRecord.empty()
        assert record.visitor_id == ""
        assert record.timestamp == ""


class TestBuckets:
    """Test time bucket computation"""

    def test_day_bucket(self):
        assert bucket_for("2024-01-01T00:00:00", "day") == "1704067200"

    def test_hour_and_minute_buckets(self):
        assert bucket_for("2024-01-01T05:30:10", "hour") == "1704085200"
        assert bucket_for("2024-01-01T05:30:10", "minute") == "1704087000"
        assert bucket_for("2024-01-01 05:30:10", "second") == "1704087010"

    def test_offsets_are_normalized_to_utc(self):
        assert bucket_for("2024-01-01T02:00:00+02:00", "hour") == "1704067200"
        assert bucket_for("2024-01-01T00:00:00Z", "day") == "1704067200"

    def test_epoch_timestamps(self):
        assert bucket_for("1704087010", "hour") == "1704085200"
        assert bucket_for("1704087010123", "hour") == "1704085200"

    def test_unparseable_falls_back_to_arrival_time(self):
        now = datetime(2024, 3, 1, 12, 45, tzinfo=timezone.utc)
        assert bucket_for("yesterday", "hour", now=now) == str(int(
            datetime(2024, 3, 1, 12, tzinfo=timezone.utc).timestamp()
        ))
        assert bucket_for("", "day", now=now) == str(int(
            datetime(2024, 3, 1, tzinfo=timezone.utc).timestamp()
        ))

    def test_unknown_granularity(self):
        with pytest.raises(ValueError):
            bucket_for("2024-01-01T00:00:00", "week")

    def test_out_of_range_values_fall_back_to_arrival_time(self):
        """Test epochs and dates outside datetime's range never raise"""
        now = datetime(2024, 3, 1, 12, 45, tzinfo=timezone.utc)
        expected = str(int(datetime(2024, 3, 1, tzinfo=timezone.utc).timestamp()))

        assert bucket_for("99999999999999999999", "day", now=now) == expected
        assert bucket_for("9999-12-31T23:59:59-01:00", "day", now=now) == expected

    def test_non_ascii_digits_fall_back_to_arrival_time(self):
        """Test characters that are digits but not decimals are treated as unparseable"""
        now = datetime(2024, 3, 1, 12, 45, tzinfo=timezone.utc)
        expected = str(int(datetime(2024, 3, 1, tzinfo=timezone.utc).timestamp()))

        assert bucket_for("²", "day", now=now) == expected


class TestRouteRecord:
    """Test the all-or-nothing route record invariant"""

    def test_rejects_identity_without_route(self):
        with pytest.raises(ValidationError):
            RouteRecord(route="", visitor_id="x")

    def test_rejects_route_without_url(self):
        with pytest.raises(ValidationError):
            RouteRecord(route="home", visitor_id="x")

    def test_blank_timestamp_is_allowed_on_routed_record(self):
        record = RouteRecord(route="home", visitor_id="x", url="http://site.com/home")
        assert not record.is_empty
