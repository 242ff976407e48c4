"""Tests for ISO-8601 helpers."""

import pytest
from datetime import datetime, timedelta, timezone

from ospry.errors import MalformedInput
from ospry.timestamps import parse_iso8601, to_iso8601


class TestToIso8601:
    """Tests for timestamp formatting."""

    def test_millisecond_form(self):
        value = datetime(2024, 1, 1, 0, 0, 30, tzinfo=timezone.utc)
        assert to_iso8601(value) == '2024-01-01T00:00:30.000Z'

    def test_truncates_microseconds(self):
        value = datetime(2024, 1, 1, 0, 0, 30, 999999, tzinfo=timezone.utc)
        assert to_iso8601(value) == '2024-01-01T00:00:30.999Z'

    def test_converts_to_utc(self):
        value = datetime(2024, 1, 1, 1, 0, 0, tzinfo=timezone(timedelta(hours=1)))
        assert to_iso8601(value) == '2024-01-01T00:00:00.000Z'

    def test_naive_is_utc(self):
        assert to_iso8601(datetime(2024, 6, 1, 12, 0)) == '2024-06-01T12:00:00.000Z'


class TestParseIso8601:
    """Tests for timestamp parsing."""

    def test_zulu(self):
        parsed = parse_iso8601('2024-01-01T00:00:30.000Z')
        assert parsed == datetime(2024, 1, 1, 0, 0, 30, tzinfo=timezone.utc)

    def test_offset(self):
        parsed = parse_iso8601('2024-01-01T02:00:00+02:00')
        assert parsed == datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)

    def test_nanoseconds(self):
        parsed = parse_iso8601('2024-01-01T00:00:00.123456789Z')
        assert parsed.microsecond == 123456

    def test_no_timezone_is_utc(self):
        parsed = parse_iso8601('2024-01-01T00:00:00')
        assert parsed.tzinfo == timezone.utc

    def test_round_trip(self):
        text = '2031-12-31T23:59:59.250Z'
        assert to_iso8601(parse_iso8601(text)) == text

    @pytest.mark.parametrize('text', ['', 'tomorrow', '2024-13-01T00:00:00Z', '2024-01-01T25:00:00Z', '2024-01-01T00:00:00.Z', None])
    def test_invalid(self, text):
        with pytest.raises(MalformedInput):
            parse_iso8601(text)

    def test_lowercase_zulu(self):
        parsed = parse_iso8601('2024-01-01T00:00:30.5z')
        assert parsed == datetime(2024, 1, 1, 0, 0, 30, 500000, tzinfo=timezone.utc)

    def test_date_only_is_midnight(self):
        assert parse_iso8601('2024-01-01') == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_out_of_range_after_offset(self):
        """Test a timestamp that falls before year 1 in UTC."""
        with pytest.raises(MalformedInput):
            parse_iso8601('0001-01-01T00:00:00+01:00')
