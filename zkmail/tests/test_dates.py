import pytest

from zkmail.header.dates import parse_email_timestamp_to_unix_ms


def test_reference_timestamp():
    assert parse_email_timestamp_to_unix_ms("Mon, 01 Jan 2024 00:00:00 +0000") == 1704067200000


def test_zone_offset_is_applied():
    utc = parse_email_timestamp_to_unix_ms("Tue, 9 Dec 2025 17:13:23 +0000")
    jst = parse_email_timestamp_to_unix_ms("Tue, 9 Dec 2025 17:13:23 +0900")
    assert utc - jst == 9 * 3600 * 1000


def test_day_name_optional_and_whitespace_tolerated():
    assert parse_email_timestamp_to_unix_ms("  01 Jan 2024 00:00:00 +0000 ") == 1704067200000


@pytest.mark.parametrize(
    "value",
    ["", "   ", "yesterday", "Mon, 01 Foo 2024 00:00:00 +0000", "Mon, 01 Jan 1969 00:00:00 +0000"],
)
def test_invalid_values(value):
    assert parse_email_timestamp_to_unix_ms(value) is None
