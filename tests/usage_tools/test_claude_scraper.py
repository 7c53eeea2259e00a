from datetime import datetime, timezone

import pytest

from plan_usage.errors import UsageScrapeError
from usage_tools.claude_scraper import has_percentage, parse_number, parse_reset, parse_usage_text

FETCHED_AT = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)

USAGE_PAGE = """
Plan usage limits
Current session
Resets in 2 hr 40 min
37% used
Weekly limits
All models
Resets Thu 9:00 AM
12% used
"""


def test_labelled_meters_and_reset():
    snapshot = parse_usage_text(USAGE_PAGE, fetched_at=FETCHED_AT)

    assert snapshot.source == "browser"
    assert snapshot.fetched_at == FETCHED_AT
    assert snapshot.five_hour_percent == 37.0
    assert snapshot.weekly_percent == 12.0
    assert snapshot.resets_in == "2h 40m"
    assert snapshot.resets_in_minutes == 160
    assert snapshot.raw.five_hour.startswith("Current session")
    assert snapshot.raw.five_hour.endswith("37%")
    assert snapshot.raw.weekly.startswith("Weekly")


def test_raw_snippet_is_truncated_to_100_chars():
    text = "Current session " + ("x" * 200) + " 55%"

    snapshot = parse_usage_text(text)

    assert snapshot.five_hour_percent == 55.0
    assert len(snapshot.raw.five_hour) <= 100


def test_fallback_to_page_order_percentages():
    snapshot = parse_usage_text("Usage 64% and also 8.5% remaining")

    assert snapshot.five_hour_percent == 64.0
    assert snapshot.raw.five_hour == "64%"
    assert snapshot.weekly_percent == 8.5
    assert snapshot.raw.weekly == "8.5%"
    assert snapshot.resets_in is None
    assert snapshot.resets_in_minutes is None


def test_single_percentage_leaves_weekly_null():
    snapshot = parse_usage_text("5-hour limit: 90% used")

    assert snapshot.five_hour_percent == 90.0
    assert snapshot.weekly_percent is None


def test_no_percentages_raises():
    with pytest.raises(UsageScrapeError, match="Could not find any usage percentages"):
        parse_usage_text("Settings Profile Billing")


def test_empty_text_raises():
    with pytest.raises(UsageScrapeError, match="no text content"):
        parse_usage_text("")


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Resets in 2 hr 40 min", ("2h 40m", 160)),
        ("resets in 45 min", ("45m", 45)),
        ("Reset in 3h", ("3h", 180)),
        ("Resets in 1 hr", ("1h", 60)),
        ("Resets in soon", ("0m", 0)),
    ],
)
def test_parse_reset(text, expected):
    assert parse_reset(text) == expected


def test_parse_reset_absent():
    assert parse_reset("Resets Thu 9:00 AM") is None


@pytest.mark.parametrize(
    "raw,expected",
    [("42", 42.0), ("12.5", 12.5), ("1.2.3", 1.2), (".5", 0.5), (".", None), ("", None)],
)
def test_parse_number(raw, expected):
    assert parse_number(raw) == expected


def test_has_percentage():
    assert has_percentage("37% used")
    assert not has_percentage("loading...")
    assert not has_percentage(None)
