from __future__ import annotations
import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from .config import Settings
from .errors import GeocodingNotFound, NetworkError, RateLimited, Timeout, Unavailable
from .models import GeoPoint


@dataclass(frozen=True)
class FetchResult:
    body: str
    status: int


class HttpFetcher:
    """GET with the configured User-Agent and timeout.

    Transport problems surface as NetworkError / Timeout; the HTTP status
    is returned untouched for `raise_for_status` to classify.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def fetch(self, url: str, params: Optional[Dict[str, Any]] = None, service: str = 'remote service') -> FetchResult:
        headers = {'User-Agent': self.settings.user_agent}
        logging.debug("GET %s params=%s", url, params)
        try:
            r = requests.get(url, params=params, headers=headers, timeout=self.settings.http_timeout)
        except requests.exceptions.Timeout:
            raise Timeout(f"Request to {service} timed out after {self.settings.http_timeout:g}s.")
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Failed to connect to {service} ({e.__class__.__name__}).")
        return FetchResult(body=r.text, status=r.status_code)


def raise_for_status(result: FetchResult, service: str) -> None:
    status = result.status
    if status == 200:
        return
    if status == 429:
        raise RateLimited(f"{service} rate limit exceeded (HTTP 429). Please try again later.")
    if 500 <= status < 600:
        raise Unavailable(f"{service} is unavailable (HTTP {status}). Please try again later.")
    raise NetworkError(f"Failed to connect to {service} (HTTP {status}).")


class NominatimGeocoder:
    """Resolves free text to coordinates through OpenStreetMap Nominatim."""

    service = 'geocoding service'

    def __init__(self, settings: Settings, fetcher: Optional[HttpFetcher] = None):
        self.settings = settings
        self.fetcher = fetcher or HttpFetcher(settings)

    def geocode(self, location: str) -> GeoPoint:
        result = self.fetcher.fetch(
            self.settings.geocoding_url,
            params={'q': location, 'format': 'json', 'limit': 1},
            service=self.service,
        )
        raise_for_status(result, self.service)
        not_found = GeocodingNotFound(
            f"Location not found: {location}",
            hint=(
                "Try using a more specific format:\n"
                "  • City, Country (e.g., 'Stockholm, Sweden')\n"
                "  • City, State, Country (e.g., 'Portland, Oregon, USA')"
            ),
        )
        try:
            j = json.loads(result.body)
        except ValueError:
            raise not_found
        if not isinstance(j, list) or not j or not isinstance(j[0], dict):
            raise not_found
        first = j[0]
        try:
            # the rest of the pipeline works with 2-decimal coordinates
            lat = float(f"{float(first.get('lat')):.2f}")
            lon = float(f"{float(first.get('lon')):.2f}")
        except (TypeError, ValueError):
            raise not_found
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise not_found
        name = str(first.get('display_name') or location)
        logging.debug("Geocoded %r to %.2f, %.2f", location, lat, lon)
        return GeoPoint(latitude=lat, longitude=lon, display_name=name)
