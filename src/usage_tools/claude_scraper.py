"""Pull usage percentages and the reset time out of the usage page text."""

from __future__ import annotations

import re
from datetime import datetime

from loguru import logger

from plan_usage.errors import UsageScrapeError
from plan_usage.reset_time import format_duration
from plan_usage.state import RawUsage, UsageSnapshot, utc_now

# The page labels the 5-hour meter "Current session".
SESSION_RE = re.compile(r"(?:current\s+session|5.?hour)[\s\S]*?([\d.]+)%", re.IGNORECASE)
WEEKLY_RE = re.compile(r"(?:daily|weekly)[\s\S]*?([\d.]+)%", re.IGNORECASE)
ANY_PERCENT_RE = re.compile(r"\d+(?:\.\d+)?%")
# "Resets in 2 hr 40 min", "Resets in 45 min", "Resets in 3h"
RESET_RE = re.compile(r"resets?\s+in\s+((\d+)\s*hr?)?\s*((\d+)\s*min)?", re.IGNORECASE)
PERCENT_PRESENT_RE = re.compile(r"\d+%")

LEADING_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?|\.\d+")
RAW_SNIPPET_LEN = 100


def parse_number(raw: str) -> float | None:
    """Leading decimal of raw ("12.5%" -> 12.5), or None if there is none."""
    m = LEADING_NUMBER_RE.match(raw.strip())
    if not m:
        return None
    return float(m.group(0))


def has_percentage(text: str | None) -> bool:
    return bool(text and PERCENT_PRESENT_RE.search(text))


def parse_reset(text: str) -> tuple[str, int] | None:
    m = RESET_RE.search(text)
    if not m:
        return None
    hours = int(m.group(2)) if m.group(2) else 0
    minutes = int(m.group(4)) if m.group(4) else 0
    return format_duration(hours, minutes), hours * 60 + minutes


def parse_usage_text(text: str, fetched_at: datetime | None = None) -> UsageSnapshot:
    """Build a snapshot from the rendered page text.

    Labelled matches win; otherwise the first and second percentages on the
    page stand in for the 5-hour and weekly meters.
    """
    if not text:
        raise UsageScrapeError("Page has no text content")

    snapshot = UsageSnapshot(source="browser", fetched_at=fetched_at or utc_now(), raw=RawUsage())

    session = SESSION_RE.search(text)
    if session:
        snapshot.five_hour_percent = parse_number(session.group(1))
        snapshot.raw.five_hour = session.group(0)[:RAW_SNIPPET_LEN].strip()
        logger.info("[CLAUDE] Found session usage: {}%", snapshot.five_hour_percent)

    weekly = WEEKLY_RE.search(text)
    if weekly:
        snapshot.weekly_percent = parse_number(weekly.group(1))
        snapshot.raw.weekly = weekly.group(0)[:RAW_SNIPPET_LEN].strip()
        logger.info("[CLAUDE] Found daily/weekly usage: {}%", snapshot.weekly_percent)

    all_percentages = ANY_PERCENT_RE.findall(text)
    if snapshot.five_hour_percent is None and len(all_percentages) > 0:
        snapshot.five_hour_percent = parse_number(all_percentages[0])
        snapshot.raw.five_hour = all_percentages[0]
        logger.info("[CLAUDE] Fallback 5-hour: {}%", snapshot.five_hour_percent)
    if snapshot.weekly_percent is None and len(all_percentages) > 1:
        snapshot.weekly_percent = parse_number(all_percentages[1])
        snapshot.raw.weekly = all_percentages[1]
        logger.info("[CLAUDE] Fallback weekly: {}%", snapshot.weekly_percent)

    reset = parse_reset(text)
    if reset:
        snapshot.resets_in, snapshot.resets_in_minutes = reset
        logger.info("[CLAUDE] Found reset time: {} ({} minutes)", snapshot.resets_in, snapshot.resets_in_minutes)

    if not snapshot.has_any_percent:
        raise UsageScrapeError("Could not find any usage percentages on the page")

    return snapshot
