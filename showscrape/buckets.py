"""Group pending events by how many days remain until they start."""

from datetime import datetime, timezone
from typing import Iterable, Optional

from showscrape.models import Event

BUCKETS = ("DAY_OF", "LT_1W", "LT_2W", "LT_1M", "LT_2M", "GTE_2M")

_SECONDS_PER_DAY = 86_400


def bucket_for(days_until: int) -> str:
    if days_until <= 0:
        return "DAY_OF"
    if days_until < 7:
        return "LT_1W"
    if days_until < 14:
        return "LT_2W"
    if days_until < 30:
        return "LT_1M"
    if days_until < 60:
        return "LT_2M"
    return "GTE_2M"


def days_until(event: Event, now: datetime) -> int:
    """Whole days from ``now`` to the event's start, rounded down."""
    return int((event.start_utc - now).total_seconds() // _SECONDS_PER_DAY)


def bucket_events(events: Iterable[Event], now: Optional[datetime] = None) -> dict[str, list[Event]]:
    """
    Bucket events by days until start.

    Every bucket name is present in the result. Events that have already
    started are left out. Each bucket is sorted by start time.
    """
    now = now or datetime.now(timezone.utc)
    buckets: dict[str, list[Event]] = {name: [] for name in BUCKETS}
    for event in events:
        if event.start_utc < now:
            continue
        buckets[bucket_for(days_until(event, now))].append(event)
    for bucketed in buckets.values():
        bucketed.sort(key=lambda e: e.start_utc)
    return buckets
