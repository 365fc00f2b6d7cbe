#!/usr/bin/env python3
"""CLI entry point for the discovery, matching and pricing engine.

Usage:
    # Events near downtown Cleveland, soonest first
    python cli.py discover --lat 41.4993 --lng -81.6944 --radius 25

    # Only sports, most popular first
    python cli.py discover --category sports --sort popular

    # Resolve a free-text destination
    python cli.py smart-add "browns game"

    # Price a ride
    python cli.py quote --distance 12.5 --destination "CLE Airport" --pickup-time 2025-11-05T18:30:00

    # Coupons
    python cli.py coupons list
    python cli.py coupons apply WELCOME50 --user u1 --amount 80 --first-ride
"""

import argparse
from datetime import datetime
from zoneinfo import ZoneInfo

import settings
from coupons import AppliedCoupon, get_engine
from event_discovery import EventDiscoveryFilters, discover_events, sort_events
from utils.pricing import calculate_ride_quote
from venue_scout import smart_add


def _format_start(start_iso: str) -> str:
    start = datetime.fromisoformat(start_iso.replace("Z", "+00:00"))
    return start.astimezone(ZoneInfo(settings.REGION_TIMEZONE)).strftime("%a %b %d %I:%M %p")


def cmd_discover(args):
    """Discover and print events."""
    filters = EventDiscoveryFilters(
        latitude=args.lat,
        longitude=args.lng,
        radius=args.radius,
        category=args.category,
        keyword=args.keyword,
    )
    result = discover_events(filters)

    for warning in result.warnings:
        print(f"  [{warning.source}] unavailable: {warning.reason}")

    if not result.events:
        print("No events found")
        return

    events = sort_events(result.events, args.sort, filters.origin)
    if args.limit:
        events = events[: args.limit]

    print(f"Found {len(result.events)} events ({', '.join(f'{k}: {v}' for k, v in result.source_counts.items())})\n")
    for event in events:
        print(f"{_format_start(event['startISO'])}  {event['title']}")
        print(f"    @ {event['venue']} [{event['category']}, {event['source']}]")


def cmd_smart_add(args):
    """Resolve a query to a place."""
    origin = {"lat": args.lat, "lng": args.lng} if args.lat is not None and args.lng is not None else None
    result = smart_add(args.query, origin=origin, radius_miles=args.radius, surge=args.surge)

    if not result.ok:
        print(result.notes)
        return

    primary = result.primary
    print(f"{primary['name']} - {primary['address']}")
    if primary.get("distanceMiles") is not None:
        print(f"  {primary['distanceMiles']:.1f} mi, est. ${result.ride_estimate_usd:.2f}")

    others = result.candidates[1:]
    if others:
        print("\nAlso nearby:")
        for place in others:
            print(f"  {place['name']} ({place.get('distanceMiles', 0):.1f} mi)")


def cmd_quote(args):
    """Print a ride quote."""
    quote = calculate_ride_quote(
        args.distance,
        destination=args.destination,
        pickup_time=args.pickup_time or datetime.now(ZoneInfo(settings.REGION_TIMEZONE)),
        venue=args.venue,
        event_date=args.event_date,
    )
    for line in quote.breakdown:
        print(f"  {line}")
    print(f"Total: ${quote.total:.2f} (surge x{quote.surge:g})")


def cmd_coupons(args):
    """List or apply coupons."""
    engine = get_engine()

    if args.action == "list":
        coupons = engine.get_active_coupons()
        if not coupons:
            print("No active coupons")
            return
        for coupon in coupons:
            print(f"{coupon.code:<12} {coupon.description}")
        return

    if not args.code or not args.user or args.amount is None:
        print("apply requires CODE, --user and --amount")
        return

    result = engine.apply_coupon(args.code, args.user, args.amount, args.venue, args.first_ride)
    if not isinstance(result, AppliedCoupon):
        print(result.error)
        return

    print(f"{result.coupon.code}: -${result.discount_amount:.2f}, you pay ${result.final_amount:.2f}")


def main():
    parser = argparse.ArgumentParser(
        description="Discover events, resolve destinations, price rides and coupons",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    discover_parser = subparsers.add_parser("discover", help="Discover events near a location")
    discover_parser.add_argument("--lat", type=float, default=settings.REFERENCE_LAT)
    discover_parser.add_argument("--lng", type=float, default=settings.REFERENCE_LNG)
    discover_parser.add_argument("--radius", type=float, default=settings.SMART_ADD_DEFAULT_RADIUS_MILES, help="Miles")
    discover_parser.add_argument("--category", help="Event category (default: all)")
    discover_parser.add_argument("--keyword", help="Keyword to search for")
    discover_parser.add_argument("--sort", choices=["soonest", "nearest", "popular"], default="soonest")
    discover_parser.add_argument("--limit", type=int, help="Max events to print")

    smart_parser = subparsers.add_parser("smart-add", help="Resolve a free-text destination")
    smart_parser.add_argument("query", help='e.g. "browns game" or "drinks at barley house"')
    smart_parser.add_argument("--lat", type=float)
    smart_parser.add_argument("--lng", type=float)
    smart_parser.add_argument("--radius", type=float, default=settings.SMART_ADD_DEFAULT_RADIUS_MILES)
    smart_parser.add_argument("--surge", type=float, default=1.0)

    quote_parser = subparsers.add_parser("quote", help="Price a ride")
    quote_parser.add_argument("--distance", type=float, required=True, help="Trip distance in miles")
    quote_parser.add_argument("--destination", default="", help="Destination address or airport")
    quote_parser.add_argument("--pickup-time", help="ISO-8601 pickup time (default: now)")
    quote_parser.add_argument("--venue", help="Venue name for venue surge")
    quote_parser.add_argument("--event-date", help="Event date (enables event-day surge)")

    coupons_parser = subparsers.add_parser("coupons", help="List or apply coupons")
    coupons_parser.add_argument("action", choices=["list", "apply"])
    coupons_parser.add_argument("code", nargs="?")
    coupons_parser.add_argument("--user", help="User id")
    coupons_parser.add_argument("--amount", type=float, help="Ride amount in dollars")
    coupons_parser.add_argument("--venue")
    coupons_parser.add_argument("--first-ride", action="store_true")

    args = parser.parse_args()

    if args.command == "discover":
        cmd_discover(args)
    elif args.command == "smart-add":
        cmd_smart_add(args)
    elif args.command == "quote":
        cmd_quote(args)
    elif args.command == "coupons":
        cmd_coupons(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
