"""Tests for the destination resolver."""

from datetime import datetime, timedelta, timezone

import pytest

from bulk_log_sink.destination import parse_timestamp, resolve_destination


class TestResolveDestination:
    def test_daily_index_with_prefix(self):
        assert (
            resolve_destination("2024-03-07T00:00:00Z", "[idx-]YYYY[-]MM[-]DD")
            == "idx-2024-03-07"
        )

    def test_default_logstash_pattern(self):
        assert (
            resolve_destination("2023-12-31T23:59:59.999Z", "[logstash-]YYYY[-]MM[-]DD")
            == "logstash-2023-12-31"
        )

    def test_offset_is_converted_to_utc(self):
        """01:30 at +02:00 is still the previous day in UTC."""
        assert (
            resolve_destination("2024-03-07T01:30:00+02:00", "YYYY.MM.DD")
            == "2024.03.06"
        )

    def test_unpadded_and_time_tokens(self):
        ts = datetime(2024, 3, 7, 5, 4, 9, tzinfo=timezone.utc)
        assert resolve_destination(ts, "YY/M/D H:m:s") == "24/3/7 5:4:9"
        assert resolve_destination(ts, "HH[h]mm[m]ss") == "05h04m09"

    def test_literal_brackets_protect_token_letters(self):
        ts = datetime(2024, 3, 7, tzinfo=timezone.utc)
        assert resolve_destination(ts, "[MY-DD]-YYYY") == "MY-DD-2024"

    def test_same_timestamp_resolves_identically(self):
        pattern = "[app-]YYYY[-]MM"
        first = resolve_destination("2024-06-01T10:00:00Z", pattern)
        second = resolve_destination("2024-06-01T10:00:00Z", pattern)
        assert first == second == "app-2024-06"


class TestParseTimestamp:
    def test_iso_string_with_z(self):
        dt = parse_timestamp("2024-03-07T00:00:00.000Z")
        assert dt == datetime(2024, 3, 7, tzinfo=timezone.utc)

    def test_naive_string_is_utc(self):
        dt = parse_timestamp("2024-03-07T08:00:00")
        assert dt.tzinfo is not None
        assert dt.utcoffset() == timedelta(0)
        assert dt.hour == 8

    def test_epoch_milliseconds(self):
        dt = parse_timestamp(1709769600000)
        assert dt == datetime(2024, 3, 7, tzinfo=timezone.utc)

    def test_aware_datetime_normalized(self):
        eastern = timezone(timedelta(hours=-5))
        dt = parse_timestamp(datetime(2024, 3, 6, 22, 0, tzinfo=eastern))
        assert dt == datetime(2024, 3, 7, 3, 0, tzinfo=timezone.utc)
        assert dt.tzinfo == timezone.utc

    def test_garbage_string_raises(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")

    @pytest.mark.parametrize("value", [None, True, [2024], {"t": 1}])
    def test_unsupported_type_raises(self, value):
        with pytest.raises(TypeError):
            parse_timestamp(value)
