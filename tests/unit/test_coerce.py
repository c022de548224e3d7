"""Test field-level repairs: hostname extraction and timestamp conversion."""

from datetime import datetime, timedelta, timezone

import pytest

from gateway_events.core.coerce import extract_hostname, parse_iso8601, posix_to_utc


class TestExtractHostname:
    @pytest.mark.parametrize(
        "url, expected",
        [
            ("wss://gateway-us-east1-b.discord.gg", "gateway-us-east1-b.discord.gg"),
            ("wss://gateway.discord.gg/", "gateway.discord.gg"),
            ("gateway.discord.gg", "gateway.discord.gg"),
            ("gateway.discord.gg/", "gateway.discord.gg"),
            ("", ""),
            ("wss://", ""),
        ],
    )
    def test_strips_prefix_and_slash(self, url, expected):
        assert extract_hostname(url) == expected

    def test_only_one_trailing_slash_removed(self):
        assert extract_hostname("wss://host//") == "host/"

    def test_other_schemes_untouched(self):
        assert extract_hostname("https://host/") == "https://host"

    def test_prefix_match_is_case_sensitive(self):
        assert extract_hostname("WSS://host") == "WSS://host"

    def test_path_is_kept(self):
        assert extract_hostname("wss://host/?v=10") == "host/?v=10"


class TestPosixToUtc:
    def test_integral_seconds(self):
        assert posix_to_utc(1_700_000_000) == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_epoch(self):
        assert posix_to_utc(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_fractional_seconds(self):
        result = posix_to_utc(1.5)
        assert result == datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=1.5)

    @pytest.mark.parametrize("value", ["1700000000", None, True, [1]])
    def test_non_numbers_rejected(self, value):
        with pytest.raises(ValueError, match="POSIX seconds"):
            posix_to_utc(value)

    def test_out_of_range_rejected(self):
        with pytest.raises(ValueError, match="out of range"):
            posix_to_utc(10**20)


class TestParseIso8601:
    def test_offset_timestamp(self):
        parsed = parse_iso8601("2021-04-12T23:40:39.855793+00:00")
        assert parsed == datetime(2021, 4, 12, 23, 40, 39, 855793, tzinfo=timezone.utc)

    def test_zulu_suffix(self):
        assert parse_iso8601("2021-04-12T23:40:39Z") == datetime(
            2021, 4, 12, 23, 40, 39, tzinfo=timezone.utc
        )

    def test_naive_taken_as_utc(self):
        parsed = parse_iso8601("2021-04-12T23:40:39")
        assert parsed is not None
        assert parsed.tzinfo == timezone.utc

    def test_non_utc_offset_kept(self):
        parsed = parse_iso8601("2021-04-12T23:40:39+02:00")
        assert parsed is not None
        assert parsed.utcoffset() == timedelta(hours=2)

    @pytest.mark.parametrize("text", ["", "yesterday", "2021-13-45T00:00:00"])
    def test_unparsable_is_none(self, text):
        assert parse_iso8601(text) is None

    @pytest.mark.parametrize(
        "text", ["2021-04-12", "2021-04-12 23:40:39", "2021-04-12T23", "20210412T234039Z"]
    )
    def test_partial_or_loose_forms_are_none(self, text):
        assert parse_iso8601(text) is None
