from __future__ import annotations
import logging
from datetime import datetime
from typing import Callable, Optional

import pytz

from .config import Settings
from .errors import AuroraError
from .models import DataSource, GeoPoint, Outcome, RunConfig, RunResult
from .parsers import parser_for
from .render import RenderContext, Rendered, render
from .transport import HttpFetcher, NominatimGeocoder, raise_for_status
from .window import build_window, truncate_to_minute

SOURCE_LABELS = {
    DataSource.GFZ: 'GFZ/ESA Hp30 forecast',
    DataSource.NOAA: 'NOAA Planetary Kp-index forecast',
}


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


class ForecastEngine:
    """
    Runs one forecast: geocode, fetch, parse, window, render.
    The engine does not print. `run` hands back the rendered lines and an
    outcome; callers decide where the lines go.
    """
    def __init__(self,
                 config: RunConfig,
                 settings: Optional[Settings] = None,
                 geocoder=None,
                 fetcher=None,
                 clock: Callable[[], datetime] = utc_now,
                 color: bool = False,
                 program: str = 'aurora'):
        self.config = config
        self.settings = settings or Settings()
        self.fetcher = fetcher or HttpFetcher(self.settings)
        self.geocoder = geocoder or NominatimGeocoder(self.settings, self.fetcher)
        self.clock = clock
        self.color = color
        self.program = program

    def source_url(self) -> str:
        if self.config.data_source is DataSource.GFZ:
            return self.settings.gfz_url
        return self.settings.noaa_url

    def locate(self, location: str) -> GeoPoint:
        logging.info("Fetching coordinates for: %s", location)
        return self.geocoder.geocode(location)

    def fetch_payload(self) -> str:
        label = SOURCE_LABELS[self.config.data_source]
        logging.info("Retrieving %s...", label)
        service = f"{self.config.data_source.value} API"
        result = self.fetcher.fetch(self.source_url(), service=service)
        raise_for_status(result, service)
        return result.body

    def forecast(self, location: str) -> Rendered:
        """Run every stage; raises AuroraError on the first failure."""
        config = self.config.validate()
        point = self.locate(location)
        payload = self.fetch_payload()
        series = parser_for(config).parse(payload)
        now = truncate_to_minute(self.clock())
        window = build_window(series, now, config, point.latitude)
        logging.debug(
            "Window: %d historical, %d forecast rows",
            len(window.historical), len(window.forecast),
        )
        ctx = RenderContext(location=point, config=config, generated_at=now, program=self.program)
        return render(window, ctx, raw=config.raw_output, color=self.color)

    def run(self, location: str) -> RunResult:
        try:
            rendered = self.forecast(location)
        except AuroraError as e:
            return RunResult(outcome=Outcome.FAILURE, error=e)
        outcome = Outcome.SUCCESS if rendered.had_results else Outcome.NO_RESULTS
        return RunResult(outcome=outcome, lines=rendered.lines)
