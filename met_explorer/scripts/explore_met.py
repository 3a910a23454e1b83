"""
Console front-end for browsing and searching the MET collection.

Usage:
    met-explorer browse
    met-explorer search "sunflowers" --department 11
    met-explorer detail 436535
"""
import argparse
import asyncio
import logging
import sys

import aiohttp

from met_explorer.api.executor import RequestExecutor
from met_explorer.api.rate_limit import RateLimitTracker
from met_explorer.config import LOG_LEVEL
from met_explorer.data.cleaners import clean_records_frame, department_counts, records_to_dataframe
from met_explorer.services.gallery import GalleryService, GalleryState

OK_STATES = (GalleryState.SUCCESS, GalleryState.NO_RESULTS)


def banner(title):
    print(f"\n{'='*60}")
    print(title)
    print('='*60)


def show_advisory(message):
    print(f"⚠️  {message}")


def show_state(result):
    if result.state == GalleryState.LOADING:
        print("Loading...")
    elif result.message:
        marker = "✓" if result.state in OK_STATES else "✗"
        print(f"{marker} {result.message}")


def print_gallery(result):
    banner(f"RESULTS ({result.state.value.upper()})")

    if not result.records:
        return

    for record in result.records:
        print(f"[{record.id}] {record.title}")
        print(f"    {record.artist} | {record.department}")
        if record.date:
            print(f"    {record.date}")

    df = clean_records_frame(records_to_dataframe(result.records))
    print(f"\nTotal artworks: {len(df)}")
    print("\nDepartments represented:")
    print(department_counts(df))


def print_detail(artwork, related):
    banner(artwork.title)
    print(f"Artist: {artwork.artist}")
    for label, value in [
        ("Bio", artwork.artist_bio),
        ("Nationality", artwork.artist_nationality),
        ("Dates", artwork.artist_dates),
        ("Object", artwork.object_name),
        ("Date", artwork.date),
        ("Medium", artwork.medium),
        ("Dimensions", artwork.dimensions),
        ("Classification", artwork.classification),
        ("Culture", artwork.culture),
        ("Period", artwork.period),
        ("Dynasty", artwork.dynasty),
        ("Geography", artwork.geography),
        ("Department", artwork.department),
        ("Accession number", artwork.accession_number),
        ("Credit line", artwork.credit_line),
        ("Gallery", artwork.gallery_number),
        ("Rights", artwork.rights_and_reproduction),
        ("Image", artwork.image_url),
        ("MET website", artwork.object_url),
        ("Wikidata", artwork.wikidata_url),
    ]:
        if value:
            print(f"{label}: {value}")
    print(f"Public domain: {'Yes' if artwork.is_public_domain else 'No'}")
    if artwork.tags:
        print(f"Tags: {', '.join(artwork.tags)}")

    if related:
        print("\nRelated artworks:")
        for item in related:
            print(f"  [{item.id}] {item.title}")


async def run(args):
    tracker = RateLimitTracker()

    async with aiohttp.ClientSession() as session:
        executor = RequestExecutor(session, tracker=tracker, on_advisory=show_advisory)
        service = GalleryService(executor, on_state=show_state)

        if args.command == "detail":
            result = await service.load_artwork(args.object_id)
            if result.state != GalleryState.SUCCESS:
                status = tracker.status()
                print(f"API Calls Made: {status['call_count']} | "
                      f"Rate Limited: {'Yes' if status['is_limited'] else 'No'}")
                return 1
            related = await service.load_related(result.artwork)
            print_detail(result.artwork, related)
            return 0

        if args.command == "search":
            result = await service.search(args.query, department_id=args.department)
        else:
            result = await service.browse()

        print_gallery(result)
        return 0 if result.state in OK_STATES else 1


def build_parser():
    parser = argparse.ArgumentParser(description="Browse and search the MET collection")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("browse", help="Show a random selection of artworks")

    search_parser = subparsers.add_parser("search", help="Search artworks with images")
    search_parser.add_argument("query", help="Search term")
    search_parser.add_argument("--department", type=int, default=None, help="Department ID")

    detail_parser = subparsers.add_parser("detail", help="Show one artwork in detail")
    detail_parser.add_argument("object_id", type=int, help="MET object ID")

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
