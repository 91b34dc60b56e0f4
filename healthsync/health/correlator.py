"""Stream correlator: join independently sampled streams on a time grid.

Two devices (or two sensors on one device) rarely stamp related readings
with identical instants: a scale may write weight at 08:00:15 and body fat
at 08:00:45.  Timestamps are floored to a shared bucket (one minute by
default) and the bucket acts as the join key.  The bucket is only a key;
output rows keep whatever timestamp their caller chooses to publish.

Within a bucket the most recent sample wins.  Inputs are stably sorted by
timestamp before indexing, so the result does not depend on the order the
store happened to return records in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Generic, Iterable, Protocol, TypeVar

logger = logging.getLogger("healthsync.health.correlator")

#: Default correlation grid.
MINUTE = timedelta(minutes=1)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Timestamped(Protocol):
    @property
    def timestamp(self) -> datetime: ...


L = TypeVar("L", bound=Timestamped)
R = TypeVar("R", bound=Timestamped)


@dataclass(frozen=True)
class CorrelatedRow(Generic[L, R]):
    """One row of an outer join: either side may be None, never both."""

    bucket: datetime
    left: L | None = None
    right: R | None = None


def truncate_to_bucket(ts: datetime, resolution: timedelta = MINUTE) -> datetime:
    """Floor ``ts`` onto the epoch-aligned grid of ``resolution``.

    Naive datetimes are treated as UTC.  The result is UTC.

    Args:
        ts:         Instant to floor.
        resolution: Grid spacing (must be positive).

    Returns:
        The start of the bucket containing ``ts``.
    """
    if resolution <= timedelta(0):
        raise ValueError(f"Bucket resolution must be positive, got {resolution}")
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    offset = (ts - _EPOCH) % resolution
    return (ts - offset).astimezone(timezone.utc)


def index_by_bucket(
    samples: Iterable[L], resolution: timedelta = MINUTE
) -> dict[datetime, L]:
    """Map each bucket to its most recent sample.

    Samples sharing a bucket overwrite each other in timestamp order, so the
    latest one in the bucket survives.  Equal timestamps keep input order
    (last one in the input wins).
    """
    index: dict[datetime, L] = {}
    for sample in sorted(samples, key=lambda s: s.timestamp):
        index[truncate_to_bucket(sample.timestamp, resolution)] = sample
    return index


def correlate_outer(
    left: Iterable[L],
    right: Iterable[R],
    resolution: timedelta = MINUTE,
) -> list[CorrelatedRow[L, R]]:
    """Full outer join of two streams on their buckets.

    Produces one row per distinct bucket present in either stream, sorted
    ascending by bucket.  The side without a sample in a bucket is None.

    Args:
        left:       First stream (e.g. weight samples).
        right:      Second stream (e.g. body-fat samples).
        resolution: Correlation grid.

    Returns:
        Correlated rows, oldest bucket first.
    """
    left_index = index_by_bucket(left, resolution)
    right_index = index_by_bucket(right, resolution)

    buckets = sorted(left_index.keys() | right_index.keys())
    rows = [
        CorrelatedRow(
            bucket=bucket,
            left=left_index.get(bucket),
            right=right_index.get(bucket),
        )
        for bucket in buckets
    ]
    logger.debug(
        "correlate_outer: %d + %d buckets → %d rows",
        len(left_index), len(right_index), len(rows),
    )
    return rows


def correlate_enrich(
    primary: Iterable[L],
    enrichment: Iterable[R],
    resolution: timedelta = MINUTE,
) -> list[tuple[L, R | None]]:
    """Left join: attach an enrichment sample to each primary sample.

    Every primary sample yields exactly one row, in chronological order,
    even when two primaries share a bucket.  Enrichment samples whose bucket
    holds no primary sample are dropped.

    Args:
        primary:    The series that defines the output rows.
        enrichment: The series looked up by bucket.
        resolution: Correlation grid.

    Returns:
        ``(primary_sample, enrichment_sample_or_None)`` pairs.
    """
    enrichment_index = index_by_bucket(enrichment, resolution)
    return [
        (sample, enrichment_index.get(truncate_to_bucket(sample.timestamp, resolution)))
        for sample in sorted(primary, key=lambda s: s.timestamp)
    ]
