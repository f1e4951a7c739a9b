"""Tests for display name and timestamp helpers."""

import pytest

from slack_paste_md.utils import (
    clean_display_name,
    clean_timestamp,
    format_timestamp,
)


class TestDisplayName:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Alex MittellAlex Mittell", "Alex Mittell"),
            ("  Bob  ", "Bob"),
            ("", "Unknown user"),
            (None, "Unknown user"),
        ],
    )
    def test_clean_display_name(self, name, expected):
        assert clean_display_name(name) == expected


class TestTimestamps:
    def test_linked_timestamp_unwrapped(self):
        assert clean_timestamp("[10:42 AM](https://team.slack.com/p1)") == "10:42 AM"

    def test_time_only(self):
        assert format_timestamp("10:30 AM") == "10:30 AM"

    def test_relative_to_date(self):
        assert format_timestamp("14:05", date="2024-03-01") == "2:05 PM"

    def test_unparseable_returned_as_text(self):
        assert format_timestamp("xyzzy") == "xyzzy"

    def test_empty(self):
        assert format_timestamp(None) == ""

    def test_zoned_time_converted(self):
        assert (
            format_timestamp("2024-07-01 18:00 UTC", time_zone="Europe/Paris")
            == "8:00 PM"
        )

    def test_naive_time_kept_in_any_zone(self):
        assert format_timestamp("14:05", time_zone="Asia/Tokyo") == "2:05 PM"
