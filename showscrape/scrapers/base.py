from abc import ABC, abstractmethod
from typing import Optional

import requests

from showscrape import __version__
from showscrape.errors import FetchError
from showscrape.models import AdapterInfo, Event

DEFAULT_TIMEOUT = 20
DEFAULT_USER_AGENT = f"showscrape/{__version__}"


def fetch_html(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
    venue_id: str = "",
) -> str:
    """GET ``url`` and return the body, raising FetchError on network or HTTP errors."""
    try:
        response = requests.get(url, timeout=timeout, headers={"User-Agent": user_agent})
    except requests.RequestException as exc:
        raise FetchError(venue_id, f"request failed for {url}: {exc}") from exc
    try:
        response.raise_for_status()
    except requests.HTTPError as exc:
        raise FetchError(venue_id, f"non-success status for {url}: {response.status_code}") from exc
    return response.text


class BaseScraper(ABC):
    # Subclasses must set these class attributes
    venue_key: str = ""
    venue_name: str = ""
    venue_url: str = ""

    def __init__(self, venue_cfg: Optional[dict] = None):
        """
        Args:
            venue_cfg: The [venues.<key>] section from config.toml as a dict,
                       merged with the [http] defaults. May override 'url',
                       'timeout' and 'user_agent'.
        """
        self.venue_cfg = venue_cfg or {}
        self.url = self.venue_cfg.get("url", self.venue_url)
        self.timeout = self.venue_cfg.get("timeout", DEFAULT_TIMEOUT)
        self.user_agent = self.venue_cfg.get("user_agent", DEFAULT_USER_AGENT)

    def info(self) -> AdapterInfo:
        return AdapterInfo(id=self.venue_key, display_name=self.venue_name, url=self.url)

    def fetch_html(self) -> str:
        return fetch_html(self.url, self.timeout, self.user_agent, venue_id=self.venue_key)

    @abstractmethod
    def fetch_events(self) -> list[Event]:
        """
        Fetch and return upcoming Event objects for this venue.

        Must be safe to call repeatedly and must not touch shared state.
        Raises ScrapeError (or a subclass) when the listing can't be read.
        """
        ...
