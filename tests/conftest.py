from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

import showscrape.db as db_module
from showscrape.normalize import build_event
from showscrape.scrapers.base import BaseScraper

BOISE = ZoneInfo("America/Boise")
FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "show-scrape.sqlite"


@pytest.fixture
def conn(db_path):
    conn = db_module.connect(db_path)
    yield conn
    conn.close()


@pytest.fixture
def make_event():
    def _make(
        venue_id="treefort",
        start=datetime(2025, 10, 8, 19, 0, tzinfo=BOISE),
        artists=("PUP", "Chase Petra"),
        **kwargs,
    ):
        return build_event(
            venue_id,
            "Treefort Music Hall",
            "https://treefortmusichall.com/shows/",
            start,
            list(artists),
            **kwargs,
        )
    return _make


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text()


class FakeScraper(BaseScraper):
    """Scraper double that returns canned events or raises a canned error."""

    venue_name = "Fake Venue"
    venue_url = "https://fake.example/"

    def __init__(self, venue_key, events=(), error=None):
        super().__init__({})
        self.venue_key = venue_key
        self._events = list(events)
        self._error = error
        self.calls = 0

    def fetch_events(self):
        self.calls += 1
        if self._error is not None:
            raise self._error
        return list(self._events)
