"""Sleep interval merger: collapse overlapping sleep sessions.

Sleep sources frequently report the same night more than once (a watch and
a phone app, or one session split in two).  Sessions that overlap or touch
are folded into one, giving the minimal disjoint cover of the input.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from healthsync.health.base import SleepInterval

logger = logging.getLogger("healthsync.health.interval_merger")


def _intervals_connect(current: SleepInterval, nxt: SleepInterval) -> bool:
    """Return True if ``nxt`` overlaps or touches ``current``.

    ``nxt`` must not start before ``current``.
    """
    return nxt.start <= current.end


def _union(a: SleepInterval, b: SleepInterval) -> SleepInterval:
    start: datetime = min(a.start, b.start)
    end: datetime = max(a.end, b.end)
    return SleepInterval(start=start, end=end)


def merge_intervals(intervals: Iterable[SleepInterval]) -> list[SleepInterval]:
    """Merge overlapping or touching sleep intervals.

    Algorithm:
        1. Sort intervals by start time.
        2. Keep a running interval seeded with the first one.
        3. Fold each following interval into it while it starts at or before
           the running end; otherwise emit the running interval and restart.

    The result is sorted by start, and no two output intervals overlap or
    touch.  Merging is idempotent.

    Args:
        intervals: Sleep intervals in any order.

    Returns:
        Disjoint intervals covering exactly the union of the input.
    """
    ordered = sorted(intervals, key=lambda i: i.start)
    if not ordered:
        return []

    merged: list[SleepInterval] = []
    current = ordered[0]

    for interval in ordered[1:]:
        if _intervals_connect(current, interval):
            current = _union(current, interval)
        else:
            merged.append(current)
            current = interval
    merged.append(current)

    logger.debug("merge_intervals: %d sessions → %d", len(ordered), len(merged))
    return merged
