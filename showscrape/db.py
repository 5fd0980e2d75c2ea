import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from showscrape.errors import CorruptPayload, EventNotFound
from showscrape.models import ArtistProfile, CacheEntry, Event, PostRecord, StoredEvent


def connect(db_path: Path) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    _create_schema(conn)
    return conn


def _create_schema(conn: sqlite3.Connection) -> None:
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS events (
            id              TEXT PRIMARY KEY,
            payload         TEXT NOT NULL,
            first_seen_utc  TEXT NOT NULL,
            last_seen_utc   TEXT NOT NULL,
            posted_at_utc   TEXT
        );

        CREATE TABLE IF NOT EXISTS posts (
            post_id         TEXT PRIMARY KEY,
            event_id        TEXT NOT NULL,
            external_ref    TEXT,
            created_at_utc  TEXT NOT NULL,
            status          TEXT NOT NULL,
            response_json   TEXT
        );

        CREATE TABLE IF NOT EXISTS musicbrainz_cache (
            artist_key      TEXT PRIMARY KEY,
            profile_json    TEXT NOT NULL,
            fetched_at_utc  TEXT NOT NULL
        );
    """)
    conn.commit()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _decode_event(event_id: str, payload: str) -> Event:
    try:
        return Event.from_dict(json.loads(payload))
    except (ValueError, KeyError, TypeError) as exc:
        raise CorruptPayload(event_id, str(exc)) from exc


# --- Events ---

def _upsert(conn: sqlite3.Connection, event: Event, seen_at: str) -> None:
    # first_seen_utc is only written by the INSERT branch, so re-scrapes keep it.
    conn.execute(
        """
        INSERT INTO events (id, payload, first_seen_utc, last_seen_utc, posted_at_utc)
        VALUES (:id, :payload, :seen_at, :seen_at, NULL)
        ON CONFLICT(id) DO UPDATE SET
            payload       = excluded.payload,
            last_seen_utc = excluded.last_seen_utc
        """,
        {"id": event.id, "payload": json.dumps(event.to_dict()), "seen_at": seen_at},
    )


def upsert_event(conn: sqlite3.Connection, event: Event, now: Optional[datetime] = None) -> None:
    _upsert(conn, event, (now or _utcnow()).isoformat())
    conn.commit()


def upsert_events(conn: sqlite3.Connection, events: Iterable[Event], now: Optional[datetime] = None) -> int:
    seen_at = (now or _utcnow()).isoformat()
    count = 0
    for event in events:
        _upsert(conn, event, seen_at)
        count += 1
    conn.commit()
    return count


def list_pending_events(conn: sqlite3.Connection) -> list[Event]:
    rows = conn.execute("SELECT id, payload FROM events WHERE posted_at_utc IS NULL").fetchall()
    return [_decode_event(r["id"], r["payload"]) for r in rows]


def get_stored_event(conn: sqlite3.Connection, event_id: str) -> StoredEvent:
    row = conn.execute(
        """
        SELECT id, payload, first_seen_utc, last_seen_utc, posted_at_utc
        FROM events
        WHERE id = ?
        """,
        (event_id,),
    ).fetchone()
    if row is None:
        raise EventNotFound(event_id)
    return StoredEvent(
        event=_decode_event(event_id, row["payload"]),
        first_seen_utc=datetime.fromisoformat(row["first_seen_utc"]),
        last_seen_utc=datetime.fromisoformat(row["last_seen_utc"]),
        posted_at_utc=datetime.fromisoformat(row["posted_at_utc"]) if row["posted_at_utc"] else None,
    )


def get_event(conn: sqlite3.Connection, event_id: str) -> Event:
    return get_stored_event(conn, event_id).event


# --- Posts ---

def mark_posted(
    conn: sqlite3.Connection,
    event_id: str,
    external_ref: Optional[str],
    now: Optional[datetime] = None,
    response: Optional[dict[str, Any]] = None,
) -> None:
    """
    Flag an event as posted and append a row to the post log.

    Only the first call sets posted_at_utc; every call adds a log row.
    """
    now_iso = (now or _utcnow()).isoformat()
    cursor = conn.execute(
        "UPDATE events SET posted_at_utc = COALESCE(posted_at_utc, :now) WHERE id = :id",
        {"id": event_id, "now": now_iso},
    )
    if cursor.rowcount == 0:
        conn.rollback()
        raise EventNotFound(event_id)
    conn.execute(
        """
        INSERT INTO posts (post_id, event_id, external_ref, created_at_utc, status, response_json)
        VALUES (:post_id, :event_id, :external_ref, :created_at, 'posted', :response_json)
        """,
        {
            "post_id":       uuid.uuid4().hex,
            "event_id":      event_id,
            "external_ref":  external_ref,
            "created_at":    now_iso,
            "response_json": json.dumps(response) if response is not None else None,
        },
    )
    conn.commit()


def list_posts(conn: sqlite3.Connection, event_id: str) -> list[PostRecord]:
    rows = conn.execute(
        """
        SELECT post_id, event_id, external_ref, created_at_utc, status
        FROM posts
        WHERE event_id = ?
        ORDER BY created_at_utc, rowid
        """,
        (event_id,),
    ).fetchall()
    return [
        PostRecord(
            post_id=r["post_id"],
            event_id=r["event_id"],
            external_ref=r["external_ref"],
            created_at_utc=datetime.fromisoformat(r["created_at_utc"]),
            status=r["status"],
        )
        for r in rows
    ]


# --- MusicBrainz cache ---

def get_cached_profile(conn: sqlite3.Connection, artist_key: str) -> Optional[CacheEntry]:
    """None when the artist was never looked up; a CacheEntry (maybe with no profile) otherwise."""
    row = conn.execute(
        "SELECT profile_json, fetched_at_utc FROM musicbrainz_cache WHERE artist_key = ?",
        (artist_key,),
    ).fetchone()
    if row is None:
        return None
    try:
        data = json.loads(row["profile_json"])
        profile = ArtistProfile.from_dict(data) if data is not None else None
        fetched_at = datetime.fromisoformat(row["fetched_at_utc"])
    except (ValueError, KeyError, TypeError) as exc:
        raise CorruptPayload(artist_key, str(exc)) from exc
    return CacheEntry(profile=profile, fetched_at_utc=fetched_at)


def put_cached_profile(
    conn: sqlite3.Connection,
    artist_key: str,
    profile: Optional[ArtistProfile],
    now: Optional[datetime] = None,
) -> None:
    conn.execute(
        """
        INSERT INTO musicbrainz_cache (artist_key, profile_json, fetched_at_utc)
        VALUES (:artist_key, :profile_json, :fetched_at)
        ON CONFLICT(artist_key) DO UPDATE SET
            profile_json   = excluded.profile_json,
            fetched_at_utc = excluded.fetched_at_utc
        """,
        {
            "artist_key":   artist_key,
            "profile_json": json.dumps(profile.to_dict() if profile else None),
            "fetched_at":   (now or _utcnow()).isoformat(),
        },
    )
    conn.commit()
