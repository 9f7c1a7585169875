"""Recency buckets for the capability timeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Mapping, Sequence

from capview.graph.ingest import EPOCH
from capview.graph.nodes import Capability

TODAY = "today"
THIS_WEEK = "this_week"
THIS_MONTH = "this_month"
OLDER = "older"

# (key, exclusive upper bound on age); None is unbounded
BUCKET_THRESHOLDS: tuple[tuple[str, timedelta | None], ...] = (
    (TODAY, timedelta(days=1)),
    (THIS_WEEK, timedelta(days=7)),
    (THIS_MONTH, timedelta(days=30)),
    (OLDER, None),
)

DEFAULT_LABELS: dict[str, str] = {
    TODAY: "Today",
    THIS_WEEK: "This week",
    THIS_MONTH: "This month",
    OLDER: "Older",
}


@dataclass
class TimeBucket:
    """A labelled group of capabilities last used within an age range."""

    key: str
    label: str
    capabilities: list[Capability] = field(default_factory=list)


def capability_age(cap: Capability, now: datetime) -> timedelta:
    """Age since last use; never-used capabilities are as old as the epoch."""
    return now - (cap.last_used_at or EPOCH)


def bucket_key(age: timedelta) -> str:
    """Key of the first bucket whose threshold ``age`` is under."""
    for key, threshold in BUCKET_THRESHOLDS:
        if threshold is None or age < threshold:
            return key
    return OLDER


def bucket_by_recency(
    capabilities: Sequence[Capability],
    now: datetime | None = None,
    labels: Mapping[str, str] | None = None,
) -> list[TimeBucket]:
    """Partition capabilities into ordered recency buckets.

    Args:
        capabilities: Capabilities to group, order kept within a bucket.
        now: Reference time (aware); defaults to the current UTC time.
        labels: Optional display labels keyed by bucket key.

    Returns:
        Non-empty buckets in order today, this week, this month, older.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    names = {**DEFAULT_LABELS, **(labels or {})}

    buckets = {key: TimeBucket(key=key, label=names[key]) for key, _ in BUCKET_THRESHOLDS}
    for cap in capabilities:
        buckets[bucket_key(capability_age(cap, now))].capabilities.append(cap)

    return [buckets[key] for key, _ in BUCKET_THRESHOLDS if buckets[key].capabilities]
