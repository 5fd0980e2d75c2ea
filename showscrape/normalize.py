"""
Shared parsing helpers used by every venue scraper.

Everything here is pure: text in, values out. Scrapers hand raw strings
pulled from the page to these functions and get back cleaned text, artist
lists, timezone-aware datetimes and finally a canonical Event.
"""

import hashlib
import re
from datetime import date, datetime, time, timezone, tzinfo
from decimal import Decimal
from typing import Any, Optional, TypeVar
from urllib.parse import urljoin

from dateutil import tz as dateutil_tz

from showscrape.errors import EmptyScrapeError
from showscrape.models import Event

T = TypeVar("T")

_TIME_RE = re.compile(r"(?<!\d)(\d{1,2})(?::(\d{2}))?\s*(am|pm)", re.IGNORECASE)

# Word separators need whitespace around them so names like "With Confidence"
# keep their leading word.
_ARTIST_SEPARATORS = re.compile(
    r"\s+(?:with|featuring|feat\.|ft\.)\s+|\s*\bw/\s*|[,/&+]",
    re.IGNORECASE,
)

_PRICE_RE = re.compile(r"\$\s*(\d+(?:\.\d{1,2})?)")

# (strptime format, has_year) tried in order
_DATE_FORMATS = [
    ("%m/%d/%Y", True),
    ("%m/%d/%y", True),
    ("%A %m/%d/%Y", True),
    ("%B %d, %Y", True),
    ("%b %d, %Y", True),
    ("%B %d", False),
    ("%b %d", False),
]


def clean_text(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim the ends."""
    return " ".join(text.split())


def split_artists(text: str) -> list[str]:
    """
    Split a lineup string into performer names, headliner first.

    "PUP w/ Chase Petra & Friends" -> ["PUP", "Chase Petra", "Friends"]
    """
    if not text or not text.strip():
        return []
    parts = (clean_text(part) for part in _ARTIST_SEPARATORS.split(text))
    return [part for part in parts if part]


def find_first_time(text: str) -> Optional[str]:
    """Return the first "7pm" / "7:30 PM" style time as "07:30 PM"."""
    match = _TIME_RE.search(clean_text(text))
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    return f"{hour:02d}:{minute:02d} {match.group(3).upper()}"


def parse_named_time(text: str, keyword: str) -> Optional[str]:
    """
    Find the time in the segment mentioning ``keyword``.

    "Doors: 7pm | Show: 8pm" with keyword "show" -> "08:00 PM"
    """
    keyword = keyword.lower()
    for segment in re.split(r"[|/;]", text):
        segment = clean_text(segment)
        if segment and keyword in segment.lower():
            found = find_first_time(segment)
            if found:
                return found
    return None


def parse_naive_time(text: str) -> Optional[time]:
    normalized = find_first_time(text)
    if normalized is None:
        return None
    try:
        return datetime.strptime(normalized, "%I:%M %p").time()
    except ValueError:
        return None


def parse_naive_date(text: str, today: Optional[date] = None) -> Optional[date]:
    """
    Parse a listing date in one of the known formats.

    Dates without a year are placed in the current year, or the next one if
    that would put them before today (a January show listed in December).
    """
    text = clean_text(text)
    if not text:
        return None
    today = today or date.today()

    for fmt, has_year in _DATE_FORMATS:
        if has_year:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        try:
            parsed = datetime.strptime(f"{text} {today.year}", f"{fmt} %Y").date()
        except ValueError:
            continue
        if parsed < today:
            try:
                parsed = parsed.replace(year=today.year + 1)
            except ValueError:
                return None
        return parsed
    return None


def localize(day: date, at: time, tz: tzinfo) -> Optional[datetime]:
    """
    Attach ``tz`` to a wall-clock date and time.

    On a DST fall-back the earlier of the two instants wins. Wall times that
    fall in a spring-forward gap do not exist and give None.
    """
    candidate = datetime.combine(day, at).replace(tzinfo=tz)
    if not dateutil_tz.datetime_exists(candidate):
        return None
    if dateutil_tz.datetime_ambiguous(candidate):
        later = candidate.replace(fold=1)
        return min(candidate, later, key=lambda dt: dt.astimezone(timezone.utc))
    return candidate


def parse_datetime(
    date_text: str,
    time_text: Optional[str],
    tz: tzinfo,
    today: Optional[date] = None,
) -> Optional[datetime]:
    """
    Combine a listing date and time into an aware datetime in ``tz``.

    Without a usable ``time_text`` the time is read from ``date_text`` itself,
    e.g. "10/8/2025 8pm" or "Oct 8, 2025 @ 8:00 PM".
    """
    cleaned = clean_text(date_text)
    at = parse_naive_time(time_text) if time_text else None

    day = parse_naive_date(cleaned, today)
    if day is None:
        match = _TIME_RE.search(cleaned)
        if match is None:
            return None
        day = parse_naive_date(cleaned[:match.start()].rstrip(" ,@-"), today)
        if day is None:
            return None
    if at is None:
        at = parse_naive_time(cleaned)
    if at is None:
        return None
    return localize(day, at, tz)


def combine_with_date(reference: datetime, time_text: str, tz: tzinfo) -> Optional[datetime]:
    """Same calendar day as ``reference``, different time (doors vs. show)."""
    at = parse_naive_time(time_text)
    if at is None:
        return None
    return localize(reference.astimezone(tz).date(), at, tz)


def absolute_url(base: str, href: Optional[str]) -> Optional[str]:
    if not href:
        return None
    if href.startswith(("http://", "https://")):
        return href
    return urljoin(base, href)


def parse_age_flag(text: str) -> Optional[bool]:
    """True for all-ages, False for 18+/21+ shows, None when the text doesn't say."""
    lower = text.lower()
    if "all ages" in lower or "all-ages" in lower:
        return True
    if any(marker in lower for marker in ("21+", "18+", "21 and over", "21 & over")):
        return False
    return None


def parse_price_range(text: str) -> tuple[Optional[int], Optional[int]]:
    """Dollar amounts as a (min, max) pair in cents: "$15 ADV / $20 DOS" -> (1500, 2000)."""
    amounts = [int(Decimal(raw) * 100) for raw in _PRICE_RE.findall(text)]
    if amounts:
        return min(amounts), max(amounts)
    if "free" in text.lower():
        return 0, 0
    return None, None


def event_identity(venue_id: str, start_utc: datetime, headliner: str) -> str:
    digest = hashlib.sha256()
    digest.update(venue_id.encode())
    digest.update(b"|")
    digest.update(start_utc.astimezone(timezone.utc).isoformat().encode())
    digest.update(b"|")
    digest.update(headliner.encode())
    return digest.hexdigest()


def build_event(
    venue_id: str,
    venue_name: str,
    venue_url: str,
    start_local: datetime,
    artists: list[str],
    *,
    ticket_url: Optional[str] = None,
    event_url: Optional[str] = None,
    is_all_ages: Optional[bool] = None,
    doors_local: Optional[datetime] = None,
    price_text: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
    scraped_at: Optional[datetime] = None,
) -> Event:
    start_utc = start_local.astimezone(timezone.utc)
    headliner = artists[0] if artists else "unknown"

    price_min = price_max = None
    if price_text:
        price_min, price_max = parse_price_range(price_text)

    return Event(
        id=event_identity(venue_id, start_utc, headliner),
        source=venue_id,
        venue_id=venue_id,
        venue_name=venue_name,
        venue_url=venue_url,
        start_local=start_local,
        start_utc=start_utc,
        doors_local=doors_local,
        artists=list(artists),
        is_all_ages=is_all_ages,
        ticket_url=ticket_url,
        event_url=event_url or ticket_url,
        price_min_cents=price_min,
        price_max_cents=price_max,
        currency="USD" if price_min is not None else None,
        scraped_at_utc=scraped_at or datetime.now(timezone.utc),
        extra=dict(extra or {}),
    )


def fail_if_empty(venue_id: str, events: list[T]) -> list[T]:
    if not events:
        raise EmptyScrapeError(venue_id, f"no events scraped for {venue_id}")
    return events
