# deal_tracker/scrapers/pitchground_extractor.py

"""Extractor for pitchground.com deals.

PitchGround renders class names that change between builds, so cards are
found with regex heuristics rather than selectors.
"""

from deal_tracker.scrapers.regex_extractor import RegexExtractor
from deal_tracker.scrapers.scraping_client import ScrapingClient


class PitchGroundExtractor(RegexExtractor):
    """PitchGround deal cards."""

    def __init__(self, client: ScrapingClient | None = None) -> None:
        super().__init__("pitchground", client)
