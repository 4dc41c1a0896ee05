from __future__ import annotations
import json
import logging
import math
from datetime import datetime
from typing import Any, List, Optional

import pytz

from .errors import ParseFailure, UpstreamEmpty, UpstreamInvalid
from .models import DataSource, Estimate, IndexSample, RunConfig

GFZ_TIME_FORMATS = ('%d-%m-%Y %H:%M', '%d-%m-%Y %H:%M:%S')
NOAA_TIME_FORMATS = ('%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M')


def _parse_time(text: str, formats) -> Optional[datetime]:
    for fmt in formats:
        try:
            return pytz.utc.localize(datetime.strptime(text, fmt))
        except ValueError:
            continue
    return None


def _parse_value(raw: Any) -> Optional[float]:
    if isinstance(raw, bool):
        return None
    try:
        value = float(str(raw).strip()) if isinstance(raw, str) else float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


class IndexSeriesParser:
    """Turns a provider payload into an ordered list of IndexSample."""

    def parse(self, payload: str) -> List[IndexSample]:
        raise NotImplementedError


class GFZParser(IndexSeriesParser):
    """GFZ Hp30 ensemble forecast, delivered as CSV.

    The first line is a header. Each row is `time,low,_,median,_,high,...`
    with the time given as `DD-MM-YYYY HH:MM` in UTC.
    """

    def __init__(self, estimate: Estimate = Estimate.MEDIAN):
        self.estimate = estimate

    def _parse_row(self, line: str) -> Optional[IndexSample]:
        fields = [f.strip() for f in line.split(',')]
        col = self.estimate.column - 1
        if len(fields) <= col:
            return None
        # day and month swap places; no timezone conversion
        ts = _parse_time(fields[0], GFZ_TIME_FORMATS)
        if ts is None:
            return None
        value = _parse_value(fields[col])
        if value is None:
            return None
        return IndexSample(timestamp=ts, value=value)

    def parse(self, payload: str) -> List[IndexSample]:
        if not payload or not payload.strip():
            raise UpstreamEmpty("Empty response from GFZ API. Please try again later.")
        rows = [line for line in payload.splitlines()[1:] if line.strip()]
        if not rows:
            raise ParseFailure("Failed to parse GFZ Hp30 data: response contains no data rows.")
        first = self._parse_row(rows[0])
        if first is None:
            raise ParseFailure(f"Failed to parse GFZ Hp30 data: unreadable first row {rows[0].strip()!r}.")
        samples = [first]
        for line in rows[1:]:
            sample = self._parse_row(line)
            if sample is None:
                logging.warning("Skipping malformed GFZ row: %r", line.strip())
                continue
            samples.append(sample)
        logging.debug("Parsed %d GFZ %s samples", len(samples), self.estimate.value)
        return samples


class NOAAParser(IndexSeriesParser):
    """NOAA SWPC planetary Kp forecast, delivered as a JSON array of rows.

    Row 0 holds the column labels; each following row starts with
    `[time_tag, kp, ...]` where kp may be a string or a number.
    """

    def parse(self, payload: str) -> List[IndexSample]:
        if not payload or not payload.strip():
            raise UpstreamEmpty("Empty response from NOAA API. Please try again later.")
        try:
            data = json.loads(payload)
        except ValueError:
            raise UpstreamInvalid("Invalid response from NOAA API. Please try again later.")
        if not isinstance(data, list) or not data or not isinstance(data[0], list) or not data[0]:
            raise UpstreamInvalid("Invalid response from NOAA API. Please try again later.")
        samples: List[IndexSample] = []
        for row in data[1:]:
            if not isinstance(row, list) or len(row) < 2:
                logging.warning("Skipping malformed NOAA row: %r", row)
                continue
            ts = _parse_time(row[0].strip().replace('T', ' '), NOAA_TIME_FORMATS) if isinstance(row[0], str) else None
            value = _parse_value(row[1])
            if ts is None or value is None:
                logging.warning("Skipping malformed NOAA row: %r", row)
                continue
            samples.append(IndexSample(timestamp=ts, value=value))
        if not samples:
            raise ParseFailure("Failed to parse NOAA Kp data: response contains no valid rows.")
        logging.debug("Parsed %d NOAA samples", len(samples))
        return samples


def parser_for(config: RunConfig) -> IndexSeriesParser:
    if config.data_source is DataSource.GFZ:
        return GFZParser(config.estimate_or_default)
    return NOAAParser()
