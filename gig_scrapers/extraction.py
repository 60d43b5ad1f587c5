import logging
from pathlib import Path
from typing import Dict, List, Literal, Mapping, Optional, Sequence

import yaml
from pydantic import BaseModel, Field, model_validator

from gig_scrapers.browser import PageDriver
from gig_scrapers.data_quality import (
    classify_genre,
    compose_excerpt,
    format_event_date,
    normalize_whitespace,
    parse_event_date,
    split_date_time,
    to_iso_midnight_utc,
)
from gig_scrapers.schemas import EventRecord
from gig_scrapers.utils import retry

logger = logging.getLogger(__name__)

# Raw fields read off a detail page, in extraction order.
RAW_FIELDS = ("title", "date_time", "location", "price", "image", "excerpt", "buy_link")


class ElementNotFoundError(LookupError):
    """No element on the page matched a strategy's selector."""

    def __init__(self, selector: str):
        super().__init__(f"No element matches selector '{selector}'")
        self.selector = selector


class FieldStrategy(BaseModel):
    """One way of reading a field: a selector plus how to read the matched element."""
    selector: str
    read: Literal["text", "attribute", "property", "closest_link"] = "text"
    name: Optional[str] = Field(None, description="Attribute or property name for attribute/property reads.")
    normalize: bool = Field(True, description="Collapse whitespace; otherwise only strip.")

    @model_validator(mode="after")
    def check_name(self) -> "FieldStrategy":
        if self.read in ("attribute", "property") and not self.name:
            raise ValueError(f"'{self.read}' strategy for '{self.selector}' needs a name")
        return self


class SiteSelectors(BaseModel):
    link_selector: str
    fields: Dict[str, List[FieldStrategy]] = Field(default_factory=dict)


def load_site_selectors(path: Path) -> SiteSelectors:
    try:
        with open(path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error(f"Selector file not found: {path}")
        raise
    except yaml.YAMLError as e:
        logger.error(f"Error parsing selector file {path}: {e}", exc_info=True)
        raise
    selectors = SiteSelectors.model_validate(config_data)
    logger.info(f"Loaded selectors for {len(selectors.fields)} fields from {path}")
    return selectors


async def apply_strategy(driver: PageDriver, strategy: FieldStrategy) -> Optional[str]:
    handle = await driver.query_one(strategy.selector)
    if handle is None:
        raise ElementNotFoundError(strategy.selector)

    if strategy.read == "text":
        value = await driver.text_content(handle)
    elif strategy.read == "attribute":
        value = await driver.get_attribute(handle, strategy.name)
    elif strategy.read == "property":
        value = await driver.get_property(handle, strategy.name)
    else:
        value = await driver.closest_link(handle)

    if value is None:
        return None
    value = str(value)
    if strategy.normalize:
        return normalize_whitespace(value)
    return value.strip() or None


async def extract_field(driver: PageDriver, field_name: str, strategies: Sequence[FieldStrategy]) -> Optional[str]:
    """Tries each strategy in order and returns the first non-empty value, else None."""
    for index, strategy in enumerate(strategies, start=1):
        try:
            value = await apply_strategy(driver, strategy)
        except Exception as e:
            logger.debug(f"Strategy {index}/{len(strategies)} for '{field_name}' failed: {e}")
            continue
        if value:
            return value
        logger.debug(f"Strategy {index}/{len(strategies)} for '{field_name}' matched an empty element")

    if strategies:
        logger.warning(f"Could not find '{field_name}' with any of {len(strategies)} selector(s)")
    return None


async def extract_details(
    driver: PageDriver,
    link: str,
    fields: Mapping[str, Sequence[FieldStrategy]],
    max_attempts: int = 3,
    retry_delay_sec: float = 1.0,
    strict_dates: bool = False,
) -> Optional[EventRecord]:
    """
    Loads one detail page and builds its EventRecord.

    Returns None only when the page could not be loaded (after retries) or
    the extraction crashed; missing fields just end up as None.
    """
    try:
        await retry(lambda: driver.navigate(link), max_attempts, retry_delay_sec, description=f"navigation to {link}")
    except Exception as e:
        logger.error(f"Error loading {link}, skipping: {e}")
        return None

    try:
        raw: Dict[str, Optional[str]] = {}
        for field_name in RAW_FIELDS:
            raw[field_name] = await extract_field(driver, field_name, fields.get(field_name, ()))

        date_text, time_text = split_date_time(raw["date_time"])
        buy_now_link = link
        if raw["buy_link"] and raw["buy_link"] != buy_now_link:
            logger.debug(f"Page buy link {raw['buy_link']} differs from {buy_now_link}; using the page URL")

        if strict_dates:
            parsed = parse_event_date(date_text)
            event_date = to_iso_midnight_utc(parsed) if parsed else None
        else:
            event_date = format_event_date(date_text)

        return EventRecord(
            title=raw["title"],
            date=event_date,
            genre=classify_genre(raw["excerpt"]),
            time=time_text,
            location=raw["location"],
            price=raw["price"],
            image=raw["image"],
            excerpt=compose_excerpt(raw["excerpt"], buy_now_link),
            is_featured=False,
        )
    except Exception as e:
        logger.error(f"Error scraping details from {link}: {e}", exc_info=True)
        return None
