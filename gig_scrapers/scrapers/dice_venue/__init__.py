from .scraper import DiceVenueScraper

__all__ = ["DiceVenueScraper"]
