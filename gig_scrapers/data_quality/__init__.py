from .normalizers import (
    UNCLASSIFIED_GENRE,
    GENRE_KEYWORDS,
    classify_genre,
    compose_excerpt,
    format_event_date,
    normalize_whitespace,
    parse_event_date,
    split_date_time,
    to_iso_midnight_utc,
)

__all__ = [
    "UNCLASSIFIED_GENRE",
    "GENRE_KEYWORDS",
    "classify_genre",
    "compose_excerpt",
    "format_event_date",
    "normalize_whitespace",
    "parse_event_date",
    "split_date_time",
    "to_iso_midnight_utc",
]
