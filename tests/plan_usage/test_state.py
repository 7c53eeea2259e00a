import json
from datetime import datetime, timezone

from plan_usage.state import RawUsage, SnapshotWriter, UsageSnapshot, format_timestamp

FETCHED_AT = datetime(2026, 10, 18, 12, 30, 5, 123000, tzinfo=timezone.utc)


def test_format_timestamp_uses_z_suffix_and_millis():
    assert format_timestamp(FETCHED_AT) == "2026-10-18T12:30:05.123Z"


def test_to_dict_always_has_every_key():
    snapshot = UsageSnapshot(source="browser", fetched_at=FETCHED_AT)

    data = snapshot.to_dict()

    assert list(data) == [
        "five_hour_percent",
        "weekly_percent",
        "resets_in",
        "resets_in_minutes",
        "raw",
        "fetched_at",
        "source",
    ]
    assert data["five_hour_percent"] is None
    assert data["raw"] == {"five_hour": None, "weekly": None}


def test_write_creates_parent_dirs_and_trailing_newline(tmp_path):
    path = tmp_path / "nested" / "dir" / "plan-usage.json"
    snapshot = UsageSnapshot(
        source="oauth",
        fetched_at=FETCHED_AT,
        five_hour_percent=58.0,
        weekly_percent=81.5,
        resets_in="2h 40m",
        resets_in_minutes=160,
        raw=RawUsage(five_hour="42.0% used", weekly="18.5% used"),
    )

    SnapshotWriter(path).write(snapshot)

    text = path.read_text()
    assert text.endswith("}\n")
    data = json.loads(text)
    assert data["five_hour_percent"] == 58.0
    assert data["resets_in"] == "2h 40m"
    assert data["fetched_at"] == "2026-10-18T12:30:05.123Z"
    assert data["source"] == "oauth"
    # No temp files left behind
    assert [p.name for p in path.parent.iterdir()] == ["plan-usage.json"]


def test_write_replaces_previous_snapshot(tmp_path):
    writer = SnapshotWriter(tmp_path / "plan-usage.json")
    writer.write(UsageSnapshot(source="browser", fetched_at=FETCHED_AT, five_hour_percent=10.0))
    writer.write(UsageSnapshot(source="browser", fetched_at=FETCHED_AT, five_hour_percent=20.0))

    loaded = writer.read()

    assert loaded is not None
    assert loaded.five_hour_percent == 20.0
    assert loaded.fetched_at == FETCHED_AT


def test_read_missing_or_corrupt_returns_none(tmp_path):
    path = tmp_path / "plan-usage.json"
    writer = SnapshotWriter(path)
    assert writer.read() is None

    path.write_text("{not json")
    assert writer.read() is None
