"""Usage snapshot record and the JSON file it is written to."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from loguru import logger


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """ISO-8601 UTC with milliseconds and a trailing Z."""
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class RawUsage:
    """The text each percentage was read from."""

    five_hour: Optional[str] = None
    weekly: Optional[str] = None

    def to_dict(self) -> dict:
        return {"five_hour": self.five_hour, "weekly": self.weekly}


@dataclass
class UsageSnapshot:
    """One reading of the plan usage meters."""

    source: str  # "browser" | "oauth"
    fetched_at: datetime = field(default_factory=utc_now)
    five_hour_percent: Optional[float] = None
    weekly_percent: Optional[float] = None
    resets_in: Optional[str] = None
    resets_in_minutes: Optional[int] = None
    raw: RawUsage = field(default_factory=RawUsage)

    @property
    def has_any_percent(self) -> bool:
        return self.five_hour_percent is not None or self.weekly_percent is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "five_hour_percent": self.five_hour_percent,
            "weekly_percent": self.weekly_percent,
            "resets_in": self.resets_in,
            "resets_in_minutes": self.resets_in_minutes,
            "raw": self.raw.to_dict(),
            "fetched_at": format_timestamp(self.fetched_at),
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict) -> UsageSnapshot:
        """Create from dictionary."""
        raw = data.get("raw") or {}
        return cls(
            source=data.get("source", "browser"),
            fetched_at=datetime.fromisoformat(data["fetched_at"].replace("Z", "+00:00")),
            five_hour_percent=data.get("five_hour_percent"),
            weekly_percent=data.get("weekly_percent"),
            resets_in=data.get("resets_in"),
            resets_in_minutes=data.get("resets_in_minutes"),
            raw=RawUsage(five_hour=raw.get("five_hour"), weekly=raw.get("weekly")),
        )


class SnapshotWriter:
    """Writes the latest snapshot to a single JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _ensure_dir(self) -> None:
        directory = self.path.parent
        if not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)
            logger.info("Created directory: {}", directory)

    def write(self, snapshot: UsageSnapshot) -> Path:
        """Replace the output file with the given snapshot."""
        self._ensure_dir()
        payload = json.dumps(snapshot.to_dict(), indent=2) + "\n"

        fd, tmp_name = tempfile.mkstemp(prefix=".plan-usage-", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info("Wrote usage data to {}", self.path)
        return self.path

    def read(self) -> UsageSnapshot | None:
        """Load the last snapshot, or None when there is none."""
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return UsageSnapshot.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Ignoring unreadable snapshot {}: {}", self.path, exc)
            return None
