"""
Attach MusicBrainz genres to events, keyed by headliner.

Lookups go memory -> SQLite -> MusicBrainz, first hit wins. Every result,
including "no match", is written to both cache tiers so an artist is only
ever fetched once. Remote calls pass through a single RateLimiter; cache
hits never touch it. A lookup queued behind the limiter checks memory again
when its turn comes, so concurrent requests for one artist fetch it once.

The memory tier is an LRU of ``memory_size`` entries; anything evicted is
still in SQLite.
"""

import asyncio
import dataclasses
import logging
import threading
import time
from collections import OrderedDict
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

import showscrape.db as db_module
from showscrape.models import ArtistProfile, CacheEntry, Event

logger = logging.getLogger(__name__)

NAMESPACE = "musicbrainz"

ArtistLookup = Callable[[str], Optional[ArtistProfile]]


def artist_key(name: str) -> str:
    return name.strip().lower()


class RateLimiter:
    """
    Serializes calls and spaces their start times at least ``min_interval`` apart.

    The wait, the timestamp update and the call itself all happen under one
    lock, so concurrent callers queue in arrival order.
    """

    def __init__(self, min_interval: float = 1.1, clock: Callable[[], float] = time.monotonic):
        self.min_interval = min_interval
        self._clock = clock
        self._lock = asyncio.Lock()
        self._last_start: Optional[float] = None

    async def call(
        self,
        fn: Callable[..., Any],
        *args: Any,
        cached: Optional[Callable[[], Any]] = None,
    ) -> Any:
        """
        Run blocking ``fn(*args)`` in a worker thread once the spacing allows.

        ``cached`` is checked once the lock is held; a non-None result is
        returned straight away without waiting or counting as a call.
        """
        async with self._lock:
            if cached is not None:
                hit = cached()
                if hit is not None:
                    return hit
            if self._last_start is not None:
                wait = self.min_interval - (self._clock() - self._last_start)
                if wait > 0:
                    await asyncio.sleep(wait)
            self._last_start = self._clock()
            return await asyncio.to_thread(fn, *args)


def apply_profile(event: Event, profile: ArtistProfile) -> Event:
    """Copy of ``event`` with the profile's genres merged into its tags."""
    tags = list(event.tags)
    known = {tag.lower() for tag in tags}
    for genre in profile.genres:
        if genre.lower() not in known:
            known.add(genre.lower())
            tags.append(genre)
    extra = dict(event.extra)
    extra[NAMESPACE] = profile.to_dict()
    return dataclasses.replace(event, tags=tags, extra=extra)


class ArtistEnricher:
    def __init__(
        self,
        db_path: Path,
        lookup: ArtistLookup,
        rate_limiter: Optional[RateLimiter] = None,
        memory_size: int = 4096,
    ):
        """
        Args:
            db_path:      SQLite file holding the musicbrainz_cache table.
            lookup:       Blocking remote search, e.g. MusicBrainzClient.search_artist.
            rate_limiter: Gate for remote calls; share one per process.
            memory_size:  Most artists kept in memory at once.
        """
        self.db_path = db_path
        self._lookup = lookup
        self.rate_limiter = rate_limiter or RateLimiter()
        self.memory_size = memory_size
        self._memory: OrderedDict[str, CacheEntry] = OrderedDict()
        self._memory_lock = threading.Lock()

    def _remembered(self, key: str) -> Optional[CacheEntry]:
        with self._memory_lock:
            entry = self._memory.get(key)
            if entry is not None:
                self._memory.move_to_end(key)
            return entry

    def _remember(self, key: str, entry: CacheEntry) -> None:
        with self._memory_lock:
            self._memory[key] = entry
            self._memory.move_to_end(key)
            while len(self._memory) > self.memory_size:
                self._memory.popitem(last=False)

    def _read_durable(self, key: str) -> Optional[CacheEntry]:
        with closing(db_module.connect(self.db_path)) as conn:
            return db_module.get_cached_profile(conn, key)

    def _write_durable(self, key: str, entry: CacheEntry) -> None:
        with closing(db_module.connect(self.db_path)) as conn:
            db_module.put_cached_profile(conn, key, entry.profile, now=entry.fetched_at_utc)

    async def lookup(self, name: str) -> Optional[ArtistProfile]:
        """
        Resolve an artist to a profile, or None for no match.

        Raises whatever the remote lookup or the SQLite cache raises.
        """
        key = artist_key(name)
        if not key:
            return None

        entry = self._remembered(key)
        if entry is not None:
            logger.debug("memory cache hit for %r", key)
            return entry.profile

        entry = await asyncio.to_thread(self._read_durable, key)
        if entry is not None:
            logger.debug("sqlite cache hit for %r", key)
            self._remember(key, entry)
            return entry.profile

        entry = await self.rate_limiter.call(
            self._fetch, key, name.strip(),
            cached=lambda: self._remembered(key),
        )
        return entry.profile

    def _fetch(self, key: str, name: str) -> CacheEntry:
        # Runs in the limiter's worker thread with its lock held; both tiers
        # are written before the next queued lookup gets to check memory.
        logger.debug("looking up %r on MusicBrainz", key)
        entry = CacheEntry(profile=self._lookup(name), fetched_at_utc=datetime.now(timezone.utc))
        self._write_durable(key, entry)
        self._remember(key, entry)
        return entry

    async def enrich(self, event: Event) -> Event:
        """Event with headliner genres attached; the input unchanged if anything goes wrong."""
        if not event.artists or not event.artists[0].strip():
            return event
        headliner = event.artists[0]
        try:
            profile = await self.lookup(headliner)
        except Exception as exc:
            logger.warning("enrichment failed for %s (%s): %s", event.id, headliner, exc)
            return event
        if profile is None:
            return event
        return apply_profile(event, profile)

    async def enrich_many(self, events: list[Event]) -> list[Event]:
        return list(await asyncio.gather(*(self.enrich(event) for event in events)))
