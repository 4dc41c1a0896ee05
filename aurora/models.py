from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from .errors import AuroraError, IncompatibleOptionsError, InvalidArgumentError

TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M'

DEFAULT_FORECAST_HOURS = 24
MAX_FORECAST_HOURS = 72
MAX_HISTORICAL_ENTRIES = 16


class DataSource(Enum):
    GFZ = 'GFZ'
    NOAA = 'NOAA'

    @property
    def index_name(self) -> str:
        return 'Hp30' if self is DataSource.GFZ else 'Kp'

    def max_entries(self, hours: int) -> int:
        """Number of samples covering `hours` at the provider's cadence."""
        if self is DataSource.GFZ:
            # 30-minute resolution
            return hours * 2
        # 3-hour resolution, rounded up
        return (hours + 2) // 3


class Estimate(Enum):
    LOW = 'low'
    MEDIAN = 'median'
    HIGH = 'high'

    @property
    def column(self) -> int:
        """1-based CSV column in the GFZ Hp30 ensemble file."""
        return {'low': 2, 'median': 4, 'high': 6}[self.value]

    @property
    def label(self) -> str:
        return {
            'low': 'minimum (conservative)',
            'median': 'median',
            'high': 'maximum (optimistic)',
        }[self.value]


class Outlook(Enum):
    NONE = 'None'
    LOW = 'Low'
    FAIR = 'Fair'
    GOOD = 'Good'
    EXCELLENT = 'Excellent'


class Outcome(Enum):
    SUCCESS = 'success'
    NO_RESULTS = 'no_results'
    FAILURE = 'failure'


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float
    display_name: str


@dataclass(frozen=True)
class IndexSample:
    timestamp: datetime
    value: float

    @property
    def label(self) -> str:
        return self.timestamp.strftime(TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class EnrichedSample:
    timestamp: datetime
    value: float
    min_latitude: int
    probability: int
    outlook: Outlook

    @property
    def label(self) -> str:
        return self.timestamp.strftime(TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class ForecastWindow:
    historical: Tuple[EnrichedSample, ...] = ()
    forecast: Tuple[EnrichedSample, ...] = ()


@dataclass(frozen=True)
class RunConfig:
    data_source: DataSource = DataSource.GFZ
    forecast_hours: int = DEFAULT_FORECAST_HOURS
    min_magnitude: int = 0
    # None means "not chosen"; GFZ falls back to the median column
    estimate: Optional[Estimate] = None
    show_historical: bool = False
    raw_output: bool = False

    @property
    def estimate_or_default(self) -> Estimate:
        return self.estimate or Estimate.MEDIAN

    def validate(self) -> 'RunConfig':
        if isinstance(self.forecast_hours, bool) or not isinstance(self.forecast_hours, int):
            raise InvalidArgumentError(f"Invalid hours value: {self.forecast_hours}. Must be a positive integer.")
        if not 1 <= self.forecast_hours <= MAX_FORECAST_HOURS:
            raise InvalidArgumentError(
                f"Hours must be between 1 and {MAX_FORECAST_HOURS}. Got: {self.forecast_hours}"
            )
        if isinstance(self.min_magnitude, bool) or not isinstance(self.min_magnitude, int) or self.min_magnitude < 0:
            raise InvalidArgumentError(
                f"Invalid magnitude value: {self.min_magnitude}. Must be a non-negative integer."
            )
        if self.show_historical and self.data_source is DataSource.GFZ:
            raise IncompatibleOptionsError(
                "Historical data (--hist) is only available with NOAA data source (--Kp or --NOAA)."
            )
        if self.estimate is not None and self.data_source is DataSource.NOAA:
            raise IncompatibleOptionsError(
                "The --estimate option is only available with GFZ data source (--Hp30 or --GFZ)."
            )
        return self


@dataclass
class RunResult:
    outcome: Outcome
    lines: List[str] = field(default_factory=list)
    error: Optional[AuroraError] = None

    @property
    def exit_code(self) -> int:
        if self.outcome is Outcome.SUCCESS:
            return 0
        if self.outcome is Outcome.NO_RESULTS:
            return 1
        return self.error.exit_code if self.error else 1
