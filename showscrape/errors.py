class ShowScrapeError(Exception):
    """Base class for every error raised by showscrape."""


class ScrapeError(ShowScrapeError):
    """A venue scraper could not produce its listing."""

    def __init__(self, venue_id: str, message: str):
        super().__init__(message)
        self.venue_id = venue_id


class FetchError(ScrapeError):
    """Network failure or non-success HTTP status while fetching a page."""


class EmptyScrapeError(ScrapeError):
    """
    The scraper found its listing markup but extracted no usable events.

    Almost always means the site's HTML changed. Distinct from a scraper
    returning an empty list, which means the venue has nothing scheduled.
    """


class AllScrapersFailed(ScrapeError):
    def __init__(self, failures: list[tuple[str, Exception]]):
        joined = "; ".join(f"{venue_id}: {exc}" for venue_id, exc in failures)
        super().__init__("*", f"scrapers failed: {joined}")
        self.failures = failures


class UnknownVenueError(ShowScrapeError):
    def __init__(self, venue_id: str):
        super().__init__(f"unknown venue id: {venue_id}")
        self.venue_id = venue_id


class EventNotFound(ShowScrapeError):
    def __init__(self, event_id: str):
        super().__init__(f"no event with id {event_id}")
        self.event_id = event_id


class CorruptPayload(ShowScrapeError):
    """A stored payload failed to deserialize (data corruption or schema drift)."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"stored payload for {key} is unreadable: {reason}")
        self.key = key


class EnrichmentError(ShowScrapeError):
    """The remote artist lookup failed."""
