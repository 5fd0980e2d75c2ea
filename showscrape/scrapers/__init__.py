"""
Scraper registry.

To add a new venue scraper:
1. Create <venue_key>.py with a BaseScraper subclass setting venue_key,
   venue_name and venue_url
2. Build events with showscrape.normalize.build_event
3. Import and register it in the SCRAPERS dict below
"""

from showscrape.scrapers.base import BaseScraper
from showscrape.scrapers.ticketweb import KnittingFactoryScraper, RevolutionScraper
from showscrape.scrapers.treefort import TreefortScraper

SCRAPERS: dict[str, type[BaseScraper]] = {
    "treefort": TreefortScraper,
    "revolution": RevolutionScraper,
    "knitboise": KnittingFactoryScraper,
}
