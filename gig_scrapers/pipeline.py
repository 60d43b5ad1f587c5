import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from gig_scrapers.browser import DriverSession
from gig_scrapers.collector import collect_links
from gig_scrapers.config import GlobalScraperSettings
from gig_scrapers.database import MongoEventSink, SinkWriteError
from gig_scrapers.extraction import SiteSelectors, extract_details
from gig_scrapers.schemas import EventRecord
from gig_scrapers.utils import save_events_to_json_file

logger = logging.getLogger(__name__)


@dataclass
class PipelineOptions:
    settle_delay_sec: float = 2.0
    max_scroll_iterations: Optional[int] = None
    navigation_max_attempts: int = 3
    navigation_retry_delay_sec: float = 1.0
    strict_dates: bool = False

    @classmethod
    def from_settings(cls, settings: GlobalScraperSettings) -> "PipelineOptions":
        return cls(
            settle_delay_sec=settings.scroll_settle_delay_sec,
            max_scroll_iterations=settings.max_scroll_iterations,
            navigation_max_attempts=settings.navigation_max_attempts,
            navigation_retry_delay_sec=settings.navigation_retry_delay_sec,
            strict_dates=settings.strict_dates,
        )


@dataclass
class PipelineResult:
    links: Tuple[str, ...] = ()
    records: List[EventRecord] = field(default_factory=list)
    inserted_count: Optional[int] = None
    output_path: Optional[Path] = None
    failed: bool = False
    sink_error: Optional[str] = None


async def run_pipeline(
    session: DriverSession,
    listing_url: str,
    selectors: SiteSelectors,
    options: Optional[PipelineOptions] = None,
    sink: Optional[MongoEventSink] = None,
    json_output_path: Optional[Path] = None,
) -> PipelineResult:
    """
    Collects the listing's links, extracts each detail page in order and hands
    the records to the JSON file and the sink.

    Only a sink configuration error escapes (before the browser starts). Every
    other failure is logged; the session is always closed and whatever was
    extracted is still handed off.
    """
    options = options or PipelineOptions()
    if sink is not None:
        sink.validate_configuration()

    result = PipelineResult()
    try:
        driver = await session.start()
        await driver.navigate(listing_url)
        await driver.wait_for_selector(selectors.link_selector)

        result.links = await collect_links(
            driver,
            selectors.link_selector,
            settle_delay_sec=options.settle_delay_sec,
            max_iterations=options.max_scroll_iterations,
        )
        logger.info(f"Collected {len(result.links)} event links")

        for link in result.links:
            record = await extract_details(
                driver,
                link,
                selectors.fields,
                max_attempts=options.navigation_max_attempts,
                retry_delay_sec=options.navigation_retry_delay_sec,
                strict_dates=options.strict_dates,
            )
            if record is not None:
                result.records.append(record)

        logger.info(f"Scraped {len(result.records)} event details")
    except Exception as e:
        result.failed = True
        logger.error(f"Error during the main process: {e}", exc_info=True)
    finally:
        try:
            await session.close()
        except Exception as e:
            logger.error(f"Error releasing the browser session: {e}", exc_info=True)

    if not result.records:
        logger.info("No data to save.")
        return result

    if json_output_path is not None:
        result.output_path = save_events_to_json_file(result.records, json_output_path)

    if sink is not None:
        try:
            result.inserted_count = await asyncio.to_thread(sink.insert_events, list(result.records))
        except SinkWriteError as e:
            result.sink_error = str(e)
            logger.error(f"Events were not stored: {e}")

    return result
