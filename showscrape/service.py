"""
Async entry point for applications built on showscrape.

ShowService ties the scrapers, the SQLite store and the enricher together.
Anything blocking (scraping, SQLite) runs in a worker thread, and every
store operation opens its own connection, so one service can be shared
by concurrent tasks.
"""

import asyncio
import logging
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional

import showscrape.config as cfg_module
import showscrape.db as db_module
from showscrape import ingest
from showscrape.buckets import bucket_events
from showscrape.enrichment import ArtistEnricher, RateLimiter
from showscrape.models import AdapterInfo, Event
from showscrape.musicbrainz import DEFAULT_USER_AGENT, MusicBrainzClient
from showscrape.scrapers.base import BaseScraper

logger = logging.getLogger(__name__)


class ShowService:
    def __init__(
        self,
        db_path: Path,
        scrapers: Optional[Mapping[str, BaseScraper]] = None,
        enricher: Optional[ArtistEnricher] = None,
    ):
        self.db_path = db_path
        self.scrapers = scrapers if scrapers is not None else ingest.build_scrapers()
        self.enricher = enricher

    @classmethod
    def from_config(cls, cfg: dict) -> "ShowService":
        db_path = cfg_module.get_database_path(cfg)
        mb_cfg = cfg_module.get_musicbrainz(cfg)
        client = MusicBrainzClient(
            user_agent=mb_cfg.get("user_agent", DEFAULT_USER_AGENT),
            timeout=mb_cfg.get("timeout", 10),
        )
        enricher = ArtistEnricher(
            db_path,
            client.search_artist,
            RateLimiter(mb_cfg.get("min_interval", 1.1)),
        )
        scrapers = ingest.build_scrapers(cfg_module.get_venues(cfg), cfg_module.get_http(cfg))
        return cls(db_path, scrapers, enricher)

    def _in_db(self, fn, *args, **kwargs):
        with closing(db_module.connect(self.db_path)) as conn:
            return fn(conn, *args, **kwargs)

    async def _db(self, fn, *args, **kwargs):
        return await asyncio.to_thread(self._in_db, fn, *args, **kwargs)

    # --- Scraping ---

    def list_adapters(self) -> list[AdapterInfo]:
        return ingest.list_adapters(self.scrapers)

    async def run_all(self) -> list[Event]:
        return await ingest.run_all(self.scrapers)

    async def run_one(self, venue_id: str) -> list[Event]:
        return await ingest.run_one(venue_id, self.scrapers)

    async def scrape(self, venue_id: Optional[str] = None) -> int:
        """Scrape one venue (or all) and persist the result. Returns the number of events saved."""
        events = await (self.run_one(venue_id) if venue_id else self.run_all())
        # Nothing touches the store until every fetch has finished.
        saved = await self.upsert_many(events)
        logger.info("saved %d events", saved)
        return saved

    # --- Store ---

    async def upsert_many(self, events: list[Event], now: Optional[datetime] = None) -> int:
        if not events:
            return 0
        return await self._db(db_module.upsert_events, events, now)

    async def list_pending_bucketed(
        self,
        now: Optional[datetime] = None,
        enrich: bool = False,
    ) -> dict[str, list[Event]]:
        now = now or datetime.now(timezone.utc)
        pending = await self._db(db_module.list_pending_events)
        buckets = await asyncio.to_thread(bucket_events, pending, now)
        if enrich and self.enricher is not None:
            names = list(buckets)
            enriched = await asyncio.gather(*(self.enricher.enrich_many(buckets[name]) for name in names))
            buckets = dict(zip(names, enriched))
        return buckets

    async def get(self, event_id: str) -> Event:
        return await self._db(db_module.get_event, event_id)

    async def mark_posted(
        self,
        event_id: str,
        external_ref: Optional[str],
        response: Optional[dict[str, Any]] = None,
    ) -> None:
        await self._db(db_module.mark_posted, event_id, external_ref, response=response)

    # --- Enrichment ---

    async def enrich(self, event: Event) -> Event:
        if self.enricher is None:
            return event
        return await self.enricher.enrich(event)
