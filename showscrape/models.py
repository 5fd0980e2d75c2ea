from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class AdapterInfo:
    id: str            # Matches Scraper.venue_key and the [venues.<key>] config section
    display_name: str
    url: str


@dataclass
class Event:
    id: str            # sha256(venue_id|start_utc|headliner), hex
    source: str
    venue_id: str
    start_utc: datetime
    artists: list[str]
    scraped_at_utc: datetime
    venue_name: Optional[str] = None
    venue_url: Optional[str] = None
    start_local: Optional[datetime] = None
    doors_local: Optional[datetime] = None
    is_all_ages: Optional[bool] = None    # None = unknown
    ticket_url: Optional[str] = None
    event_url: Optional[str] = None
    price_min_cents: Optional[int] = None
    price_max_cents: Optional[int] = None
    currency: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return self.artists[0] if self.artists else "Untitled Event"

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key in _DATETIME_FIELDS:
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Event":
        """
        Rebuild an Event from its to_dict() form.

        Raises KeyError, TypeError or ValueError when the payload is missing
        required fields or holds unparseable timestamps.
        """
        values = dict(data)
        for key in _DATETIME_FIELDS:
            if values.get(key) is not None:
                values[key] = datetime.fromisoformat(values[key])
        return cls(**values)


_DATETIME_FIELDS = ("start_utc", "scraped_at_utc", "start_local", "doors_local")


@dataclass
class StoredEvent:
    event: Event
    first_seen_utc: datetime
    last_seen_utc: datetime
    posted_at_utc: Optional[datetime] = None


@dataclass
class ArtistProfile:
    id: str
    name: str
    disambiguation: Optional[str] = None
    genres: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ArtistProfile":
        return cls(
            id=data["id"],
            name=data["name"],
            disambiguation=data.get("disambiguation"),
            genres=list(data.get("genres", [])),
        )


@dataclass
class CacheEntry:
    profile: Optional[ArtistProfile]    # None is a cached "no match"
    fetched_at_utc: datetime


@dataclass
class PostRecord:
    post_id: str
    event_id: str
    external_ref: Optional[str]
    created_at_utc: datetime
    status: str
