import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from gig_scrapers.config import get_settings
from gig_scrapers.database import SinkConfigurationError
from gig_scrapers.scrapers.dice_venue import DiceVenueScraper
from gig_scrapers.sentry_setup import init_sentry
from gig_scrapers.utils import setup_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gig_scrapers",
        description="Scrape upcoming events from a dice.fm venue page into JSON and MongoDB."
    )
    parser.add_argument("--url", help="Venue listing URL (overrides DICE_VENUE_TARGET_URL).")
    parser.add_argument("--headed", action="store_true", help="Show the browser window.")
    parser.add_argument("--no-db", action="store_true", help="Skip the MongoDB insert.")
    parser.add_argument("--no-json", action="store_true", help="Skip the JSON file.")
    parser.add_argument("--output", type=Path, help="Path of the JSON file to write.")
    parser.add_argument("--log-level", default=None, help="Logging level (default: APP_LOG_LEVEL or INFO).")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    level_name = (args.log_level or settings.log_level).upper()
    logger = setup_logger(
        "gig_scrapers",
        "dice_venue",
        level=getattr(logging, level_name, logging.INFO),
        log_dir=settings.file_outputs.log_output_directory,
    )
    init_sentry(settings)

    if args.url:
        settings.dice_venue.target_url = args.url
    if args.headed:
        settings.scraper_globals.default_headless_browser = False

    try:
        scraper = DiceVenueScraper(
            settings=settings,
            use_sink=False if args.no_db else None,
            write_json=False if args.no_json else None,
            json_output_path=args.output,
        )
        result = asyncio.run(scraper.run())
    except SinkConfigurationError as e:
        logger.critical(f"{e}. Set MONGO_URI, DB_NAME and COLLECTION_NAME or pass --no-db.")
        return 2

    logger.info(
        f"Run finished: {len(result.links)} links, {len(result.records)} events, "
        f"inserted={result.inserted_count}, json={result.output_path}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
