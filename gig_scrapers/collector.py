import asyncio
import logging
from typing import Dict, Optional, Tuple

from gig_scrapers.browser import PageDriver, SCROLL_TO_BOTTOM_SCRIPT

logger = logging.getLogger(__name__)


async def collect_links(
    driver: PageDriver,
    selector: str,
    settle_delay_sec: float = 2.0,
    max_iterations: Optional[int] = None,
) -> Tuple[str, ...]:
    """
    Scrolls the listing until a pass over ``selector`` turns up no new hrefs.

    Links are deduplicated by exact string and returned in discovery order.
    Only terminates if the feed eventually stops growing (or ``max_iterations``
    is set). Errors end the loop early; whatever was collected is returned.
    """
    links: Dict[str, None] = {}
    iteration = 0
    try:
        while True:
            iteration += 1
            previous_size = len(links)
            for handle in await driver.query_all(selector):
                href = await driver.get_property(handle, "href")
                if href:
                    links.setdefault(str(href), None)

            added = len(links) - previous_size
            logger.debug(f"Scroll pass {iteration}: {added} new links, {len(links)} total")
            if not added:
                break
            if max_iterations is not None and iteration >= max_iterations:
                logger.warning(f"Stopping link collection after {iteration} passes (limit reached)")
                break

            await driver.evaluate(SCROLL_TO_BOTTOM_SCRIPT)
            await asyncio.sleep(settle_delay_sec)
    except Exception as e:
        logger.error(f"Error during dynamic scroll and link collection, keeping {len(links)} links: {e}", exc_info=True)

    return tuple(links)
