import argparse
import asyncio
import logging
import sys
from pathlib import Path

from showscrape import __version__
import showscrape.config as cfg_module
from showscrape.buckets import BUCKETS
from showscrape.errors import ShowScrapeError
from showscrape.service import ShowService


def _venues(args, service: ShowService):
    for info in service.list_adapters():
        print(f"{info.id:<12} {info.display_name:<28} {info.url}")


def _scrape(args, service: ShowService):
    target = args.venue or "all venues"
    print(f"Scraping {target} ...", end=" ", flush=True)
    saved = asyncio.run(service.scrape(args.venue))
    print(f"{saved} events saved.")


def _pending(args, service: ShowService):
    buckets = asyncio.run(service.list_pending_bucketed(enrich=args.enrich))
    for name in BUCKETS:
        events = buckets[name]
        if not events:
            continue
        print(f"{name} ({len(events)})")
        for event in events:
            when = (event.start_local or event.start_utc).strftime("%a %b %d %I:%M %p")
            tags = f"  [{', '.join(event.tags)}]" if event.tags else ""
            print(f"  {event.id[:12]}  {when}  {event.venue_name or event.venue_id}: {event.title}{tags}")


def _show(args, service: ShowService):
    event = asyncio.run(service.get(args.event_id))
    for key, value in event.to_dict().items():
        print(f"{key:<16} {value}")


def _mark_posted(args, service: ShowService):
    asyncio.run(service.mark_posted(args.event_id, args.ref))
    print(f"Marked {args.event_id} as posted.")


def main():
    parser = argparse.ArgumentParser(
        prog="showscrape",
        description="Scrape venue show listings into a local database",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config", default="config.toml", metavar="PATH",
        help="Path to config.toml (default: config.toml)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("venues", help="List registered venue scrapers")

    sp_scrape = subparsers.add_parser("scrape", help="Run scrapers and update the database")
    sp_scrape.add_argument(
        "--venue", metavar="KEY",
        help="Only scrape this venue (by its key, see 'venues')",
    )

    sp_pending = subparsers.add_parser("pending", help="List unposted upcoming shows by time bucket")
    sp_pending.add_argument("--enrich", action="store_true", help="Add MusicBrainz genres")

    sp_show = subparsers.add_parser("show", help="Print one stored event")
    sp_show.add_argument("event_id")

    sp_posted = subparsers.add_parser("mark-posted", help="Record that an event was posted")
    sp_posted.add_argument("event_id")
    sp_posted.add_argument("ref", help="External reference, e.g. the published post's id")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cfg = cfg_module.load(Path(args.config))
    service = ShowService.from_config(cfg)

    commands = {
        "venues": _venues,
        "scrape": _scrape,
        "pending": _pending,
        "show": _show,
        "mark-posted": _mark_posted,
    }
    try:
        commands[args.command](args, service)
    except ShowScrapeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
