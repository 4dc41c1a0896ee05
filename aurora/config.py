from __future__ import annotations
import math
import os
from dataclasses import dataclass

from dotenv import load_dotenv

VERSION = '0.6.0'

DEFAULT_GEOCODING_URL = 'https://nominatim.openstreetmap.org/search'
DEFAULT_GFZ_URL = (
    'https://spaceweather.gfz.de/fileadmin/SW-Monitor/'
    'hp30_product_file_FORECAST_HP30_SWIFT_DRIVEN_LAST.csv'
)
DEFAULT_NOAA_URL = 'https://services.swpc.noaa.gov/products/noaa-planetary-k-index-forecast.json'
DEFAULT_USER_AGENT = f"aurora-cli/{VERSION} (https://github.com/ppseprus/aurora-cli)"
DEFAULT_HTTP_TIMEOUT = 30.0


@dataclass(frozen=True)
class Settings:
    geocoding_url: str = DEFAULT_GEOCODING_URL
    gfz_url: str = DEFAULT_GFZ_URL
    noaa_url: str = DEFAULT_NOAA_URL
    user_agent: str = DEFAULT_USER_AGENT
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    no_color: bool = False

    @classmethod
    def from_env(cls) -> 'Settings':
        """Read overrides from the environment (and a .env file if present)."""
        load_dotenv()
        try:
            timeout = float(os.getenv('AURORA_HTTP_TIMEOUT', str(DEFAULT_HTTP_TIMEOUT)))
        except ValueError:
            timeout = DEFAULT_HTTP_TIMEOUT
        if not math.isfinite(timeout) or timeout <= 0:
            timeout = DEFAULT_HTTP_TIMEOUT
        return cls(
            geocoding_url=os.getenv('AURORA_GEOCODING_URL') or DEFAULT_GEOCODING_URL,
            gfz_url=os.getenv('AURORA_GFZ_URL') or DEFAULT_GFZ_URL,
            noaa_url=os.getenv('AURORA_NOAA_URL') or DEFAULT_NOAA_URL,
            user_agent=os.getenv('AURORA_USER_AGENT') or DEFAULT_USER_AGENT,
            http_timeout=timeout,
            # https://no-color.org: any non-empty value disables color
            no_color=bool(os.getenv('NO_COLOR')),
        )
