import hashlib
from datetime import date, datetime, time, timedelta, timezone

import pytest

from conftest import BOISE
from showscrape import normalize
from showscrape.errors import EmptyScrapeError


def test_clean_text_collapses_whitespace_and_is_idempotent():
    cleaned = normalize.clean_text("  Desert \n\t Dwellers  ")
    assert cleaned == "Desert Dwellers"
    assert normalize.clean_text(cleaned) == cleaned


@pytest.mark.parametrize("text, expected", [
    ("PUP w/ Chase Petra & Friends", ["PUP", "Chase Petra", "Friends"]),
    ("Nile, Cryptopsy", ["Nile", "Cryptopsy"]),
    ("Headliner With Opener + Local Band", ["Headliner", "Opener", "Local Band"]),
    ("Main Act feat. Guest / Other ft. Third", ["Main Act", "Guest", "Other", "Third"]),
    ("Big Name featuring Small Name", ["Big Name", "Small Name"]),
    ("With Confidence", ["With Confidence"]),
    (" , ,  ", []),
    ("", []),
])
def test_split_artists(text, expected):
    assert normalize.split_artists(text) == expected


@pytest.mark.parametrize("text, expected", [
    ("DOORS: 7pm", "07:00 PM"),
    ("Show at 8:30 PM sharp", "08:30 PM"),
    ("doors 11:15am", "11:15 AM"),
    ("no time here", None),
])
def test_find_first_time(text, expected):
    assert normalize.find_first_time(text) == expected


def test_parse_named_time_picks_matching_segment():
    text = "Doors: 7pm | Show: 8:30pm"
    assert normalize.parse_named_time(text, "show") == "08:30 PM"
    assert normalize.parse_named_time(text, "Door") == "07:00 PM"
    assert normalize.parse_named_time(text, "curfew") is None


def test_parse_naive_time():
    assert normalize.parse_naive_time("Show: 6:30 pm") == time(18, 30)
    assert normalize.parse_naive_time("TBA") is None


@pytest.mark.parametrize("text, expected", [
    ("10/8/2025", date(2025, 10, 8)),
    ("10/8/25", date(2025, 10, 8)),
    ("Wednesday 10/8/2025", date(2025, 10, 8)),
    ("October 5, 2025", date(2025, 10, 5)),
    ("Oct 7, 2025", date(2025, 10, 7)),
    ("Someday soon", None),
])
def test_parse_naive_date_with_year(text, expected):
    assert normalize.parse_naive_date(text, today=date(2025, 6, 1)) == expected


def test_parse_naive_date_without_year_uses_current_year():
    assert normalize.parse_naive_date("December 25", today=date(2025, 12, 20)) == date(2025, 12, 25)
    assert normalize.parse_naive_date("Dec 20", today=date(2025, 12, 20)) == date(2025, 12, 20)


def test_parse_naive_date_without_year_rolls_past_dates_forward():
    assert normalize.parse_naive_date("January 5", today=date(2025, 12, 20)) == date(2026, 1, 5)
    assert normalize.parse_naive_date("Jan 5", today=date(2025, 12, 20)) == date(2026, 1, 5)


def test_parse_datetime_composes_date_and_time():
    assert normalize.parse_datetime("10/8/2025", None, BOISE) is None
    dt = normalize.parse_datetime("10/8/2025", "8pm", BOISE)
    assert dt == datetime(2025, 10, 8, 20, 0, tzinfo=BOISE)
    assert dt.utcoffset() == timedelta(hours=-6)


@pytest.mark.parametrize("date_text", ["10/8/2025 8pm", "Oct 8, 2025 @ 8:00 PM", "October 8, 2025, 8 pm"])
def test_parse_datetime_reads_time_from_date_text(date_text):
    expected = datetime(2025, 10, 8, 20, 0, tzinfo=BOISE)
    assert normalize.parse_datetime(date_text, None, BOISE) == expected
    # an unparseable time_text still falls back to the one in the date
    assert normalize.parse_datetime(date_text, "TBA", BOISE) == expected


def test_parse_datetime_explicit_time_wins_over_date_text():
    dt = normalize.parse_datetime("10/8/2025 8pm", "7:30 pm", BOISE)
    assert dt == datetime(2025, 10, 8, 19, 30, tzinfo=BOISE)


def test_parse_datetime_time_without_a_date_is_none():
    assert normalize.parse_datetime("Someday 8pm", None, BOISE) is None


def test_parse_datetime_ambiguous_fall_back_takes_earlier_instant():
    # 2025-11-02 01:30 happens twice in Boise (MDT, then MST)
    dt = normalize.parse_datetime("11/2/2025", "1:30 am", BOISE)
    assert dt.utcoffset() == timedelta(hours=-6)
    assert dt.astimezone(timezone.utc) == datetime(2025, 11, 2, 7, 30, tzinfo=timezone.utc)


def test_parse_datetime_spring_forward_gap_gives_none():
    # 2025-03-09 02:30 doesn't exist in Boise
    assert normalize.parse_datetime("3/9/2025", "2:30 am", BOISE) is None


def test_combine_with_date_reuses_calendar_day():
    show = datetime(2025, 10, 8, 20, 0, tzinfo=BOISE)
    doors = normalize.combine_with_date(show, "Doors 7pm", BOISE)
    assert doors == datetime(2025, 10, 8, 19, 0, tzinfo=BOISE)
    assert normalize.combine_with_date(show, "TBA", BOISE) is None


def test_absolute_url():
    base = "https://treefortmusichall.com/shows/"
    assert normalize.absolute_url(base, "/shows/pup") == "https://treefortmusichall.com/shows/pup"
    assert normalize.absolute_url(base, "pup") == "https://treefortmusichall.com/shows/pup"
    assert normalize.absolute_url(base, "https://link.dice.fm/x") == "https://link.dice.fm/x"
    assert normalize.absolute_url(base, None) is None


@pytest.mark.parametrize("text, expected", [
    ("All Ages", True),
    ("all-ages show", True),
    ("21+", False),
    ("18+ w/ ID", False),
    ("21 & Over", False),
    ("Tickets at door", None),
])
def test_parse_age_flag(text, expected):
    assert normalize.parse_age_flag(text) is expected


@pytest.mark.parametrize("text, expected", [
    ("$15 ADV / $20 DOS", (1500, 2000)),
    ("$12.50", (1250, 1250)),
    ("FREE SHOW", (0, 0)),
    ("TBA", (None, None)),
])
def test_parse_price_range(text, expected):
    assert normalize.parse_price_range(text) == expected


def test_build_event_identity_is_deterministic(make_event):
    first = make_event(ticket_url="https://a.example/1", extra={"run": 1})
    second = make_event(artists=["PUP", "Someone Else"], ticket_url="https://b.example/2", is_all_ages=True)
    assert first.id == second.id

    expected = hashlib.sha256(b"treefort|2025-10-09T01:00:00+00:00|PUP").hexdigest()
    assert first.id == expected


def test_build_event_identity_changes_with_headliner_venue_or_time(make_event):
    base = make_event()
    assert make_event(artists=["Chase Petra"]).id != base.id
    assert make_event(venue_id="revolution").id != base.id
    assert make_event(start=datetime(2025, 10, 8, 20, 0, tzinfo=BOISE)).id != base.id


def test_build_event_fields(make_event):
    event = make_event(ticket_url="https://tix.example/1", price_text="$20")
    assert event.event_url == "https://tix.example/1"
    assert event.start_utc == datetime(2025, 10, 9, 1, 0, tzinfo=timezone.utc)
    assert event.start_local.utcoffset() == timedelta(hours=-6)
    assert event.source == event.venue_id == "treefort"
    assert (event.price_min_cents, event.price_max_cents, event.currency) == (2000, 2000, "USD")
    assert event.tags == []
    assert event.title == "PUP"


def test_build_event_without_artists_hashes_unknown(make_event):
    event = make_event(artists=[])
    assert event.title == "Untitled Event"
    assert event.id == hashlib.sha256(b"treefort|2025-10-09T01:00:00+00:00|unknown").hexdigest()


def test_fail_if_empty():
    assert normalize.fail_if_empty("treefort", [1]) == [1]
    with pytest.raises(EmptyScrapeError, match="no events scraped for treefort"):
        normalize.fail_if_empty("treefort", [])
