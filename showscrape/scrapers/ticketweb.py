"""
Revolution Concert House & Knitting Factory Boise scrapers.

Both listings are rendered by the TicketWeb WordPress plugin, so they share
one parser. The Revolution page is a promoter page covering several venues;
the Knitting Factory page also lists shows it promotes elsewhere in town.
Cards whose venue label doesn't name the venue are skipped.

Listing markup:
  - Cards:       div.tw-section
  - Artists:     .tw-name a          ("Nile, Cryptopsy")
  - Venue label: .tw-venue-name
  - Date:        .tw-event-date      ("Tue Oct 7, 2025" or "October 5")
  - Times:       .tw-event-time / .tw-event-door-time ("Doors: 7:00 pm", "Show: 8:00 pm")
  - Price:       .tw-price           (not always present)
  - Tickets:     a.tw-buy-tix-btn    Ticketmaster URLs often embed MM-DD-YYYY,
                                     which gives us the year for year-less dates.
"""

import logging
import re
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
_DATE_IN_URL_RE = re.compile(r"(\d{2})-(\d{2})-(\d{4})")


def _text(card, selector: str) -> Optional[str]:
    el = card.select_one(selector)
    if el is None:
        return None
    return normalize.clean_text(el.get_text(" ")) or None


def _href(card, selector: str) -> Optional[str]:
    el = card.select_one(selector)
    return el.get("href") if el else None


def _strip_weekday(date_text: str) -> str:
    """Drop a leading weekday: "Tue Oct 7, 2025" -> "Oct 7, 2025"."""
    parts = date_text.split()
    if len(parts) >= 3 and len(parts[0]) == 3:
        return " ".join(parts[1:])
    return date_text


def _date_from_url(url: Optional[str]) -> Optional[date]:
    if not url:
        return None
    match = _DATE_IN_URL_RE.search(url)
    if not match:
        return None
    month, day, year = (int(g) for g in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _determine_date(date_text: str, ticket_url: Optional[str], today: Optional[date]) -> Optional[date]:
    url_date = _date_from_url(ticket_url)
    if url_date is not None:
        return normalize.parse_naive_date(f"{date_text}, {url_date.year}", today) or url_date
    return normalize.parse_naive_date(date_text, today)


class TicketwebScraper(BaseScraper):
    # Lower-case fragment the card's venue label must contain
    venue_label: str = ""
    show_selector: str = ".tw-event-time"
    # When None, doors are read from the show-time block
    doors_selector: Optional[str] = None
    info_selector: str = ".tw-name a"

    def fetch_events(self) -> list[Event]:
        return self.parse_document(self.fetch_html())

    def parse_document(self, html: str, today: Optional[date] = None) -> list[Event]:
        soup = BeautifulSoup(html, "lxml")
        events: list[Event] = []
        matched = 0
        in_dst_gap = 0

        for card in soup.select("div.tw-section"):
            label = _text(card, ".tw-venue-name")
            if not label or self.venue_label not in label.lower():
                continue
            matched += 1

            artists_text = _text(card, ".tw-name a")
            artists = normalize.split_artists(artists_text or "")
            if not artists:
                continue

            date_text = _text(card, ".tw-event-date")
            if not date_text:
                continue
            date_text = _strip_weekday(date_text)

            show_block = _text(card, self.show_selector)
            show_time = None
            if show_block:
                show_time = normalize.parse_named_time(show_block, "show") or normalize.find_first_time(show_block)

            ticket_url = normalize.absolute_url(self.url, _href(card, "a.tw-buy-tix-btn"))
            event_url = normalize.absolute_url(self.url, _href(card, self.info_selector))

            day = _determine_date(date_text, ticket_url, today)
            at = normalize.parse_naive_time(show_time or _DEFAULT_START)
            if day is None or at is None:
                continue
            start_local = normalize.localize(day, at, _TZ)
            if start_local is None:
                # The wall time doesn't exist (spring-forward), not a markup problem
                logger.debug("skipping %s card at nonexistent local time %s %s", self.venue_key, day, at)
                in_dst_gap += 1
                continue

            if self.doors_selector:
                doors_block = _text(card, self.doors_selector)
                door_time = None
                if doors_block:
                    door_time = normalize.find_first_time(doors_block) or normalize.parse_named_time(doors_block, "door")
            else:
                doors_block = None
                door_time = normalize.parse_named_time(show_block, "door") if show_block else None
            doors_local = normalize.combine_with_date(start_local, door_time, _TZ) if door_time else None

            extra = {"date_text": date_text}
            if show_block:
                extra["show_block"] = show_block
            if doors_block:
                extra["doors_text"] = doors_block

            events.append(normalize.build_event(
                self.venue_key,
                self.venue_name,
                self.url,
                start_local,
                artists,
                ticket_url=ticket_url,
                event_url=event_url,
                doors_local=doors_local,
                price_text=_text(card, ".tw-price"),
                extra=extra,
            ))

        if matched > in_dst_gap:
            return normalize.fail_if_empty(self.venue_key, events)
        return events


class RevolutionScraper(TicketwebScraper):
    venue_key = "revolution"
    venue_name = "Revolution Concert House"
    venue_url = "https://cttouringid.com/tm-venue/revolution-concert-house-and-event-center/"
    venue_label = "revolution concert house"
    show_selector = "span.tw-event-time"
    doors_selector = "span.tw-event-door-time"


class KnittingFactoryScraper(TicketwebScraper):
    venue_key = "knitboise"
    venue_name = "Knitting Factory Boise"
    venue_url = "https://bo.knittingfactory.com/"
    venue_label = "knitting factory"
    info_selector = "a.tw-more-info-btn"
