import os
import sys
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Union

import pytest
import pytz

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from aurora.config import Settings
from aurora.errors import GeocodingNotFound
from aurora.models import GeoPoint, IndexSample
from aurora.transport import FetchResult

# 06:15:30 UTC; windows are cut at 06:15
NOW = pytz.utc.localize(datetime(2026, 1, 21, 6, 15, 30))

STOCKHOLM = GeoPoint(latitude=59.33, longitude=18.07, display_name='Stockholm, Sweden')

GFZ_CSV = """\
Time (UTC),min,sd_min,median,sd_max,max,status
21-01-2026 05:30,1.00,0.1,2.00,0.1,3.00,forecast
21-01-2026 06:00,1.33,0.1,2.33,0.1,3.33,forecast
21-01-2026 06:30,5.33,0.2,6.00,0.2,7.10,forecast
21-01-2026 07:00,4.00,0.2,5.00,0.2,6.50,forecast
21-01-2026 07:30,3.67,0.2,4.67,0.2,5.67,forecast
21-01-2026 08:00,2.00,0.3,3.00,0.3,4.00,forecast
"""

NOAA_JSON = """[
["time_tag","kp","observed","noaa_scale"],
["2026-01-20 18:00:00","2.33","observed",null],
["2026-01-20 21:00:00","3.00","observed",null],
["2026-01-21 00:00:00","4.67","observed",null],
["2026-01-21 03:00:00","5.33","estimated","G1"],
["2026-01-21 06:00:00","6.67","estimated","G2"],
["2026-01-21 09:00:00","5.00","predicted","G1"],
["2026-01-21 12:00:00",4.33,"predicted",null],
["2026-01-21 15:00:00","3.67","predicted",null],
["2026-01-21 18:00:00","2.67","predicted",null]
]"""


def make_series(start: datetime, step_minutes: int, values: List[float]) -> List[IndexSample]:
    return [
        IndexSample(timestamp=start + timedelta(minutes=step_minutes * i), value=v)
        for i, v in enumerate(values)
    ]


class FakeGeocoder:
    def __init__(self, point: Optional[GeoPoint] = STOCKHOLM, error: Optional[Exception] = None):
        self.point = point
        self.error = error
        self.calls: List[str] = []

    def geocode(self, location: str) -> GeoPoint:
        self.calls.append(location)
        if self.error is not None:
            raise self.error
        if self.point is None:
            raise GeocodingNotFound(f"Location not found: {location}")
        return self.point


class FakeFetcher:
    """Maps URL -> (body, status) or an exception to raise."""

    def __init__(self, responses: Dict[str, Union[tuple, Exception]]):
        self.responses = responses
        self.calls: List[str] = []

    def fetch(self, url, params=None, service='remote service'):
        self.calls.append(url)
        resp = self.responses[url]
        if isinstance(resp, Exception):
            raise resp
        body, status = resp
        return FetchResult(body=body, status=status)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def sources(settings):
    """Both providers answering with the sample payloads."""
    return {
        settings.gfz_url: (GFZ_CSV, 200),
        settings.noaa_url: (NOAA_JSON, 200),
    }
