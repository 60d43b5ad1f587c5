"""Scrapers that turn venue listing pages into canonical event records."""

__version__ = "0.1.0"
