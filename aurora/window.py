from __future__ import annotations
from datetime import datetime
from typing import Iterable, List, Sequence

from .models import (
    MAX_HISTORICAL_ENTRIES,
    EnrichedSample,
    ForecastWindow,
    IndexSample,
    RunConfig,
)
from .visibility import minimum_latitude, outlook, visibility_probability


def truncate_to_minute(now: datetime) -> datetime:
    return now.replace(second=0, microsecond=0)


def enrich(sample: IndexSample, latitude: float) -> EnrichedSample:
    min_lat = minimum_latitude(sample.value)
    prob = visibility_probability(latitude, min_lat)
    return EnrichedSample(
        timestamp=sample.timestamp,
        value=sample.value,
        min_latitude=min_lat,
        probability=prob,
        outlook=outlook(prob),
    )


def _magnitude_filter(samples: Iterable[IndexSample], min_magnitude: int) -> List[IndexSample]:
    if min_magnitude <= 0:
        return list(samples)
    return [s for s in samples if s.value >= min_magnitude]


def build_window(series: Sequence[IndexSample], now: datetime, config: RunConfig, latitude: float) -> ForecastWindow:
    """Split `series` around `now` and enrich what survives.

    The magnitude filter runs before truncation, so a strict filter can
    leave fewer rows than the nominal window size. Forecast rows keep the
    provider order; historical rows are re-sorted and the most recent
    MAX_HISTORICAL_ENTRIES are kept.
    """
    now = truncate_to_minute(now)

    historical: List[IndexSample] = []
    if config.show_historical:
        past = _magnitude_filter((s for s in series if s.timestamp < now), config.min_magnitude)
        past.sort(key=lambda s: s.timestamp)
        historical = past[-MAX_HISTORICAL_ENTRIES:] if past else []

    upcoming = _magnitude_filter((s for s in series if s.timestamp >= now), config.min_magnitude)
    upcoming = upcoming[:config.data_source.max_entries(config.forecast_hours)]

    return ForecastWindow(
        historical=tuple(enrich(s, latitude) for s in historical),
        forecast=tuple(enrich(s, latitude) for s in upcoming),
    )
