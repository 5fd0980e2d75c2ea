"""
Treefort Music Hall scraper.

Listing page: https://treefortmusichall.com/shows/
  - Show cards:  div.mh-show-wrapper
  - Date:        .mh-show-date #dat   (format "10/8/2025")
  - Doors:       .mh-show-date #doo   ("DOORS: 7pm"), used as the start time
  - Age:         .mh-show-date #age   ("All Ages", "18+", "21+")
  - Headliner:   .mh-show-artist .mh-h1
  - Openers:     .mh-show-artist .mh-s1, one per line (<br> separated)
  - Links:       .mh-show-artist a (info), .mh-sp-tickets a, .mh-sp-rsvp a

The page lists only this venue, so no venue-name filtering is needed.
"""

import logging
from datetime import date
from typing import Optional
from zoneinfo import ZoneInfo

from bs4 import BeautifulSoup

from showscrape import normalize
from showscrape.models import Event
from showscrape.scrapers.base import BaseScraper

logger = logging.getLogger(__name__)

_TZ = ZoneInfo("America/Boise")
_DEFAULT_START = "7:00 PM"


def _text(card, selector: str) -> Optional[str]:
    el = card.select_one(selector)
    if el is None:
        return None
    return normalize.clean_text(el.get_text(" ")) or None


def _href(card, selector: str) -> Optional[str]:
    el = card.select_one(selector)
    return el.get("href") if el else None


class TreefortScraper(BaseScraper):
    venue_key = "treefort"
    venue_name = "Treefort Music Hall"
    venue_url = "https://treefortmusichall.com/shows/"

    def fetch_events(self) -> list[Event]:
        return self.parse_document(self.fetch_html())

    def parse_document(self, html: str, today: Optional[date] = None) -> list[Event]:
        soup = BeautifulSoup(html, "lxml")
        cards = soup.select("div.mh-show-wrapper")
        if not cards:
            return []

        events: list[Event] = []
        in_dst_gap = 0
        for card in cards:
            date_text = _text(card, ".mh-show-date #dat")
            if not date_text:
                continue
            day = normalize.parse_naive_date(date_text, today)
            if day is None:
                continue

            doors_raw = _text(card, ".mh-show-date #doo")
            door_time = None
            if doors_raw:
                door_time = normalize.find_first_time(doors_raw) or normalize.parse_named_time(doors_raw, "doors")
            at = normalize.parse_naive_time(door_time or _DEFAULT_START)

            start_local = normalize.localize(day, at, _TZ)
            if start_local is None:
                # The wall time doesn't exist (spring-forward), not a markup problem
                logger.debug("skipping treefort card at nonexistent local time %s %s", day, at)
                in_dst_gap += 1
                continue

            primary = _text(card, ".mh-show-artist .mh-h1") or ""
            artists = normalize.split_artists(primary)
            if not artists and primary:
                artists = [primary]
            openers_el = card.select_one(".mh-show-artist .mh-s1")
            if openers_el is not None:
                artists.extend(normalize.split_artists(",".join(openers_el.stripped_strings)))
            if not artists:
                continue

            base = self.url
            ticket_url = normalize.absolute_url(base, _href(card, ".mh-sp-tickets a"))
            rsvp_url = normalize.absolute_url(base, _href(card, ".mh-sp-rsvp a"))
            event_url = normalize.absolute_url(base, _href(card, ".mh-show-artist a"))
            age_text = _text(card, ".mh-show-date #age")

            extra = {"raw_date": date_text}
            if door_time:
                extra["doors_text"] = door_time
            if age_text:
                extra["age_raw"] = age_text
            if rsvp_url:
                extra["rsvp_url"] = rsvp_url

            events.append(normalize.build_event(
                self.venue_key,
                self.venue_name,
                self.url,
                start_local,
                artists,
                ticket_url=ticket_url,
                event_url=event_url,
                is_all_ages=normalize.parse_age_flag(age_text) if age_text else None,
                doors_local=normalize.combine_with_date(start_local, door_time, _TZ) if door_time else None,
                extra=extra,
            ))

        if in_dst_gap == len(cards):
            return events
        # Cards present but nothing usable: the markup has changed under us.
        return normalize.fail_if_empty(self.venue_key, events)
