import logging
from pathlib import Path
from typing import Optional

from gig_scrapers.browser import DriverSession, PlaywrightSession
from gig_scrapers.config import Settings, get_settings
from gig_scrapers.database import MongoEventSink
from gig_scrapers.extraction import SiteSelectors, load_site_selectors
from gig_scrapers.pipeline import PipelineOptions, PipelineResult, run_pipeline

logger = logging.getLogger(__name__)


class DiceVenueScraper:
    """Scrapes every upcoming event on a dice.fm venue page."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        selectors_path: Optional[Path] = None,
        session: Optional[DriverSession] = None,
        sink: Optional[MongoEventSink] = None,
        use_sink: Optional[bool] = None,
        write_json: Optional[bool] = None,
        json_output_path: Optional[Path] = None,
    ):
        self.settings = settings or get_settings()
        venue_settings = self.settings.dice_venue

        self.target_url = str(venue_settings.target_url)
        # Selector file path is relative to this scraper.py file
        self.selectors_path = selectors_path or Path(__file__).resolve().parent / venue_settings.selectors_filename
        self.selectors: SiteSelectors = load_site_selectors(self.selectors_path)
        self.options = PipelineOptions.from_settings(self.settings.scraper_globals)

        self.session = session or PlaywrightSession(self.settings.scraper_globals)

        use_sink = self.settings.mongodb.enabled if use_sink is None else use_sink
        if not use_sink:
            self.sink = None
        else:
            self.sink = sink or MongoEventSink(self.settings.mongodb)

        outputs = self.settings.file_outputs
        write_json = outputs.enable_json_output if write_json is None else write_json
        if not write_json:
            self.json_output_path = None
        else:
            self.json_output_path = json_output_path or (
                outputs.base_output_directory / venue_settings.output_subfolder / outputs.json_filename
            )

        logger.info(f"DiceVenueScraper initialized for {self.target_url} (sink={'on' if self.sink else 'off'}, json={self.json_output_path})")

    async def run(self) -> PipelineResult:
        return await run_pipeline(
            self.session,
            self.target_url,
            self.selectors,
            options=self.options,
            sink=self.sink,
            json_output_path=self.json_output_path,
        )
