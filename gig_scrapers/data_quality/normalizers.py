import logging
import re
from datetime import date, datetime
from typing import Optional, Sequence, Tuple

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

UNCLASSIFIED_GENRE = "unclassified"

# Ordered: the first genre with a matching keyword wins, so narrower genres
# must sit above the broader genre their keywords contain.
GENRE_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("black metal", ("black metal",)),
    ("nu metal", ("nu metal",)),
    ("metal", ("metal",)),
    ("post punk", ("post punk", "post - punk", "post-punk")),
    ("punk", ("punk",)),
    ("stoner rock", ("stoner rock",)),
    ("post rock", ("post rock", "post - rock", "post-rock")),
    ("rock", ("rock",)),
    ("edm", ("edm",)),
    ("synth", ("synth",)),
    ("industrial", ("industrial",)),
    ("pop", ("pop",)),
    ("hip-hop", ("hip-hop", "hip hop")),
    ("oi", ("oi",)),
    ("emo", ("emo",)),
    ("other", ("other",)),
)

BUY_TICKETS_TEMPLATE = "<br><br><ul><li><a href='{link}'>BUY TICKETS</a></li></ul>"

ISO_MIDNIGHT_UTC_SUFFIX = "T00:00:00.000+00:00"


def normalize_whitespace(text: Optional[str]) -> Optional[str]:
    """
    Strips the text and collapses runs of whitespace into single spaces.
    Returns None for None or for text that is empty after stripping.
    """
    if text is None:
        return None
    text = re.sub(r'\s+', ' ', text.strip())
    return text or None


def classify_genre(text: Optional[str], table: Sequence[Tuple[str, Sequence[str]]] = GENRE_KEYWORDS) -> str:
    """Returns the first genre in ``table`` with a keyword contained in ``text``."""
    if not text:
        return UNCLASSIFIED_GENRE
    folded = text.casefold()
    for genre, keywords in table:
        if any(keyword in folded for keyword in keywords):
            return genre
    return UNCLASSIFIED_GENRE


def split_date_time(text: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Splits the combined "<month-day>, <weekday>, <time>" header into
    (date text, time text). Segments past the third are ignored.
    """
    if not text:
        return None, None
    parts = [part.strip() for part in text.split(",")]
    date_text = ", ".join(part for part in parts[:2] if part) or None
    time_text = parts[2] if len(parts) > 2 and parts[2] else None
    return date_text, time_text


def parse_event_date(text: Optional[str], year: Optional[int] = None) -> Optional[date]:
    """
    Parses a year-less date such as "Jan 5, Friday" into a date in ``year``
    (the current year by default). Returns None when nothing usable is found.
    """
    if not text or not text.strip():
        return None
    default = datetime(year or date.today().year, 1, 1)
    try:
        return date_parser.parse(text, default=default).date()
    except (ValueError, OverflowError) as e:
        logger.debug(f"Could not parse date text '{text}': {e}")
        return None


def to_iso_midnight_utc(value: date) -> str:
    return f"{value.isoformat()}{ISO_MIDNIGHT_UTC_SUFFIX}"


def format_event_date(text: Optional[str], today: Optional[date] = None) -> str:
    """
    Canonicalizes scraped date text to ``YYYY-MM-DDT00:00:00.000+00:00``.

    Never fails: empty or unparsable text is replaced by ``today`` (the current
    date by default) and a warning is logged, so the output is always a
    well-formed timestamp even though it may be fabricated. Use
    ``parse_event_date`` where absence has to be visible.
    """
    today = today or date.today()
    parsed = parse_event_date(text, year=today.year)
    if parsed is None:
        logger.warning(f"Unusable event date '{text or ''}', falling back to {today.isoformat()}")
        parsed = today
    return to_iso_midnight_utc(parsed)


def compose_excerpt(text: Optional[str], link: Optional[str]) -> str:
    """
    Builds the excerpt HTML: the description paragraph followed by a
    "BUY TICKETS" link list. Without a description only the link list is
    produced; with neither the result is an empty string.
    """
    if text:
        return f"<p>{text}</p>" + BUY_TICKETS_TEMPLATE.format(link=link or "")
    if link:
        return BUY_TICKETS_TEMPLATE.format(link=link)
    return ""
