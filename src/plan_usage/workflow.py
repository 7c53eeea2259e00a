"""Run a usage fetch once, or forever on a fixed interval."""

from __future__ import annotations

import time
from typing import Callable, Optional

from loguru import logger

from plan_usage.errors import FatalUsageError
from plan_usage.state import SnapshotWriter, UsageSnapshot

FetchFn = Callable[[], UsageSnapshot]


def _fmt(value: object, suffix: str = "") -> str:
    if value is None:
        return "N/A"
    return f"{value}{suffix}"


def log_summary(snapshot: UsageSnapshot) -> None:
    logger.info("Successfully fetched usage data ({}):", snapshot.source)
    logger.info("  5-hour window: {}", _fmt(snapshot.five_hour_percent, "%"))
    logger.info("  Weekly: {}", _fmt(snapshot.weekly_percent, "%"))
    logger.info("  Resets in: {}", _fmt(snapshot.resets_in))


def run_once(fetch: FetchFn, writer: SnapshotWriter) -> UsageSnapshot:
    """Fetch one snapshot, log it and write it out."""
    snapshot = fetch()
    log_summary(snapshot)
    writer.write(snapshot)
    return snapshot


def run_loop(
    fetch: FetchFn,
    writer: SnapshotWriter,
    interval_secs: int,
    *,
    sleep: Callable[[float], None] = time.sleep,
    max_cycles: Optional[int] = None,
) -> int:
    """
    Poll until interrupted.

    A failed cycle is logged and the loop carries on. FatalUsageError
    (not logged in, bad credentials) propagates because no later cycle
    can succeed, and so does KeyboardInterrupt. Returns the number of
    cycles that wrote a snapshot when max_cycles is reached.
    """
    logger.info("Daemon mode: polling every {}s", interval_secs)
    cycles = 0
    successes = 0
    try:
        while max_cycles is None or cycles < max_cycles:
            cycles += 1
            try:
                run_once(fetch, writer)
                successes += 1
            except FatalUsageError:
                raise
            except Exception as exc:  # noqa: BLE001
                logger.error("Cycle {} failed: {}", cycles, exc)

            if max_cycles is not None and cycles >= max_cycles:
                break
            logger.debug("Sleeping {}s until next poll", interval_secs)
            sleep(interval_secs)
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping daemon after {} cycle(s)", cycles)
        raise
    return successes
