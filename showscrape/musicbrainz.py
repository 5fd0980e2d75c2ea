"""
MusicBrainz artist search.

API: https://musicbrainz.org/ws/2/artist/?query=artist:"<name>"&fmt=json&limit=1&inc=tags+genres
  - No authentication, but a descriptive User-Agent is required and
    clients are expected to stay under one request per second. Throttling
    is the caller's job (see showscrape.enrichment.RateLimiter).
  - Each artist doc carries "genres" and "tags" lists of {"name": ...}.

An artist with no genres or tags is reported as no match: there is nothing
useful to attach to an event.
"""

import logging
from typing import Any, Optional

import requests

from showscrape import __version__
from showscrape.errors import EnrichmentError
from showscrape.models import ArtistProfile

logger = logging.getLogger(__name__)

API_URL = "https://musicbrainz.org/ws/2/artist/"
DEFAULT_USER_AGENT = f"showscrape/{__version__} ( https://github.com/showscrape/showscrape )"


def extract_genres(doc: dict[str, Any]) -> list[str]:
    """Genres then tags, deduplicated case-insensitively, first spelling kept."""
    out: list[str] = []
    seen: set[str] = set()
    for tag in (doc.get("genres") or []) + (doc.get("tags") or []):
        name = (tag.get("name") or "").strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        out.append(name)
    return out


class MusicBrainzClient:
    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent, "Accept": "application/json"})

    def search_artist(self, name: str) -> Optional[ArtistProfile]:
        """Best match for ``name``, or None when there is none (or it has no genres)."""
        query = 'artist:"{}"'.format(name.replace('"', " "))
        try:
            resp = self.session.get(
                API_URL,
                params={"query": query, "fmt": "json", "limit": 1, "inc": "tags+genres"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as exc:
            raise EnrichmentError(f"musicbrainz lookup failed for {name!r}: {exc}") from exc
        except ValueError as exc:
            raise EnrichmentError(f"musicbrainz returned invalid JSON for {name!r}: {exc}") from exc

        docs = data.get("artists") or []
        if not docs:
            logger.debug("no MusicBrainz match for %r", name)
            return None

        doc = docs[0]
        genres = extract_genres(doc)
        if not genres:
            logger.debug("MusicBrainz match for %r has no genres, treating as no match", name)
            return None

        return ArtistProfile(
            id=doc["id"],
            name=doc.get("name", name),
            disambiguation=doc.get("disambiguation") or None,
            genres=genres,
        )
