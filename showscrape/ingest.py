"""
Run venue scrapers and gather what they return.

Scrapers are blocking (requests + BeautifulSoup), so each one runs in a
worker thread via asyncio.to_thread. They run concurrently and independently:
one scraper raising never affects the others' results.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional

from showscrape.errors import AllScrapersFailed, ScrapeError, UnknownVenueError
from showscrape.models import AdapterInfo, Event
from showscrape.scrapers import SCRAPERS
from showscrape.scrapers.base import BaseScraper

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    events: list[Event] = field(default_factory=list)
    succeeded: list[str] = field(default_factory=list)
    failures: list[tuple[str, Exception]] = field(default_factory=list)


def build_scrapers(
    venues_cfg: Optional[Mapping[str, dict]] = None,
    http_cfg: Optional[dict] = None,
) -> dict[str, BaseScraper]:
    """
    Instantiate every registered scraper that isn't disabled in config.

    Venues missing from config are enabled with default settings. Each
    scraper gets the [http] settings overlaid by its own [venues.<key>] section.
    """
    venues_cfg = venues_cfg or {}
    http_cfg = http_cfg or {}
    scrapers = {}
    for key, scraper_cls in SCRAPERS.items():
        section = venues_cfg.get(key, {})
        if not section.get("enabled", True):
            continue
        scrapers[key] = scraper_cls({**http_cfg, **section})
    return scrapers


def list_adapters(scrapers: Mapping[str, BaseScraper]) -> list[AdapterInfo]:
    return [scraper.info() for scraper in scrapers.values()]


async def run_one(venue_id: str, scrapers: Mapping[str, BaseScraper]) -> list[Event]:
    scraper = scrapers.get(venue_id)
    if scraper is None:
        raise UnknownVenueError(venue_id)
    return await asyncio.to_thread(scraper.fetch_events)


async def _run_isolated(venue_id: str, scraper: BaseScraper) -> tuple[str, list[Event], Optional[Exception]]:
    try:
        events = await asyncio.to_thread(scraper.fetch_events)
    except ScrapeError as exc:
        logger.warning("scraper %s failed: %s", venue_id, exc)
        return venue_id, [], exc
    except Exception as exc:
        logger.warning("scraper %s crashed: %s", venue_id, exc, exc_info=True)
        return venue_id, [], exc
    logger.info("scraper %s returned %d events", venue_id, len(events))
    return venue_id, events, None


async def collect(scrapers: Mapping[str, BaseScraper]) -> RunResult:
    """Run every scraper concurrently, keeping successes and failures apart."""
    outcomes = await asyncio.gather(
        *(_run_isolated(venue_id, scraper) for venue_id, scraper in scrapers.items())
    )
    result = RunResult()
    for venue_id, events, error in outcomes:
        if error is None:
            result.succeeded.append(venue_id)
            result.events.extend(events)
        else:
            result.failures.append((venue_id, error))
    return result


async def run_all(scrapers: Mapping[str, BaseScraper]) -> list[Event]:
    """
    Union of every scraper's events.

    Succeeds when at least one scraper succeeded, even with zero events.
    Raises AllScrapersFailed, naming each venue's error, only when every
    scraper failed.
    """
    result = await collect(scrapers)
    if result.failures and not result.succeeded:
        raise AllScrapersFailed(result.failures)
    return result.events
