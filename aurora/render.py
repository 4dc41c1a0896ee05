from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import List, Sequence

from .models import (
    DataSource,
    EnrichedSample,
    ForecastWindow,
    GeoPoint,
    RunConfig,
    TIMESTAMP_FORMAT,
)
from .visibility import (
    MIN_LATITUDE_BY_INDEX,
    MIN_LATITUDE_EXTREME,
    PROBABILITY_INCREMENT_PER_DEGREE,
)

RESET = '\033[0m'
BOLD = '\033[1m'
RED = '\033[0;31m'
GREEN = '\033[0;32m'
YELLOW = '\033[0;33m'
BLUE = '\033[0;34m'
CYAN = '\033[0;36m'

TITLE = 'AURORA VISIBILITY FORECAST'
RULE = '=' * 80
DIVIDER = '━━━━━ PRESENT ━━━━━'
COLUMN_GAP = '  '


class Palette:
    """ANSI codes, or empty strings when color is off."""

    def __init__(self, enabled: bool):
        self.enabled = enabled

    def wrap(self, code: str, text: str) -> str:
        return f"{code}{text}{RESET}" if self.enabled else text

    def bold(self, text: str) -> str:
        return self.wrap(BOLD, text)

    def cyan(self, text: str) -> str:
        return self.wrap(CYAN, text)


@dataclass(frozen=True)
class RenderContext:
    location: GeoPoint
    config: RunConfig
    generated_at: datetime
    program: str = 'aurora'


@dataclass
class Rendered:
    lines: List[str]
    had_results: bool


def format_value(value: float) -> str:
    return f"{value:.2f}"


def raw_line(row: EnrichedSample) -> str:
    return '\t'.join([
        row.label,
        format_value(row.value),
        str(row.min_latitude),
        str(row.probability),
        row.outlook.value,
    ])


def _table_cells(row: EnrichedSample) -> List[str]:
    return [
        row.label,
        format_value(row.value),
        f"≥{row.min_latitude}°",
        f"{row.probability}%",
        row.outlook.value,
    ]


def align_columns(rows: Sequence[Sequence[str]]) -> List[str]:
    """Left-align cells into columns, two spaces apart."""
    if not rows:
        return []
    ncols = max(len(r) for r in rows)
    widths = [0] * ncols
    for r in rows:
        for i, cell in enumerate(r):
            widths[i] = max(widths[i], len(cell))
    out = []
    for r in rows:
        cells = list(r) + [''] * (ncols - len(r))
        line = COLUMN_GAP.join(cell.ljust(widths[i]) for i, cell in enumerate(cells))
        out.append(line.rstrip())
    return out


def _header_lines(ctx: RenderContext, palette: Palette) -> List[str]:
    cfg = ctx.config
    loc = ctx.location

    def field(label: str, value: str) -> str:
        # labels padded to a common width so values line up
        return f"  {palette.cyan(label + ':')}{' ' * (14 - len(label))}{value}"

    lines = [
        '',
        f"  {palette.bold(TITLE)}",
        palette.bold(RULE),
        '',
        field('Location', loc.display_name),
        field('Coordinates', f"{loc.latitude:.2f}°, {loc.longitude:.2f}°"),
        field('Data Source', f"{cfg.data_source.value} {cfg.data_source.index_name}"),
    ]
    if cfg.data_source is DataSource.GFZ:
        lines.append(field('Estimate', cfg.estimate_or_default.label))
    lines.append(field('Magnitude', f"≥{cfg.min_magnitude}"))
    lines.append(field('Forecast Time', f"{ctx.generated_at.strftime(TIMESTAMP_FORMAT)} UTC"))
    lines.append('')
    lines.append(
        f"  {palette.bold('Note:')} Each degree above minimum latitude adds "
        f"~{PROBABILITY_INCREMENT_PER_DEGREE}% visibility probability"
    )
    lines.append('')
    return lines


def render_table(window: ForecastWindow, ctx: RenderContext, color: bool = False) -> List[str]:
    palette = Palette(color)
    index_name = ctx.config.data_source.index_name

    rows: List[List[str]] = [['Time_(UTC)', index_name, 'Min_Lat', 'Probability', 'Outlook']]
    for row in window.historical:
        rows.append(_table_cells(row))
    if window.historical:
        rows.append([DIVIDER])
    for row in window.forecast:
        rows.append(_table_cells(row))

    table = align_columns(rows)
    lines = _header_lines(ctx, palette)
    for i, line in enumerate(table):
        if i == 0 or line.startswith(DIVIDER):
            line = palette.bold(line)
        lines.append(line)
    if not window.forecast:
        lines.append('')
        lines.append(f"  No forecast entries match the selected filters (magnitude ≥{ctx.config.min_magnitude}).")
    lines.append('')
    lines.append(f"  {palette.cyan('Tip:')} Run '{ctx.program} --explain' for detailed probability calculations")
    lines.append('')
    return lines


def render_raw(window: ForecastWindow) -> List[str]:
    # historical rows are never part of the machine-readable stream
    return [raw_line(row) for row in window.forecast]


def render(window: ForecastWindow, ctx: RenderContext, raw: bool = False, color: bool = False) -> Rendered:
    lines = render_raw(window) if raw else render_table(window, ctx, color=color)
    return Rendered(lines=lines, had_results=bool(window.forecast))


LATITUDE_DESCRIPTIONS = [
    'Auroras barely visible near poles',
    'Weak aurora activity',
    'Low aurora activity',
    'Moderate aurora activity',
    'Active aurora conditions',
    'Minor geomagnetic storm (G1)',
    'Moderate geomagnetic storm (G2)',
    'Strong geomagnetic storm (G3)',
    'Severe geomagnetic storm (G4)',
    'Extreme geomagnetic storm (G5)',
]


def explain_lines(color: bool = False) -> List[str]:
    """Long-form description of the indices and the probability model."""
    p = Palette(color)
    inc = PROBABILITY_INCREMENT_PER_DEGREE
    lines = [
        p.bold('Aurora Visibility Probability Mapping'),
        '',
        p.cyan('About Geomagnetic Indices:'),
        '',
        f"  {p.bold('Hp30 (GFZ/ESA)')} - Default source",
        '  • 30-minute resolution, suitable for short-term aurora probabilities',
        '  • Open-ended scale, can exceed 9 during extreme storms',
        '  • Ensemble forecast with minimum, median and maximum estimates',
        '  • Produced by GFZ Potsdam, distributed via the ESA Space Weather Service Network',
        '',
        f"  {p.bold('Kp (NOAA)')} - Alternative source",
        '  • 3-hour resolution, capped at 9.0',
        '  • Forecast values from the NOAA Space Weather Prediction Center',
        '  • Optional historical data (--hist)',
        '',
        p.cyan('Index Scale and Minimum Latitude Mapping:'),
        '',
        '  Index values are rounded to the nearest integer (halves round up):',
        '',
        '  Index  Min Latitude  Description',
    ]
    for idx, desc in enumerate(LATITUDE_DESCRIPTIONS):
        if idx < 9:
            label, lat = f" {idx}", MIN_LATITUDE_BY_INDEX[idx]
        else:
            label, lat = ' 9+', MIN_LATITUDE_EXTREME
        lines.append(f"  {label:<5}  {'≥' + str(lat) + '°':>8}      {desc}")
    lines += [
        '',
        p.cyan('Probability Calculation:'),
        '',
        '  • If |latitude| is at or below the minimum latitude → 0%',
        f"  • Each degree above the minimum adds {inc}%, truncated to a whole percent",
        '  • Probability caps at 100% at 5° or more above the minimum',
        f"  • probability = floor(min(100, max(0, (|latitude| - min_latitude) × {inc})))",
        '',
        '  Outlook: 0% None, 1-20% Low, 21-50% Fair, 51-75% Good, 76-100% Excellent',
        '',
        p.cyan('Latitude Effect:'),
        '',
        f"  {p.wrap(GREEN, 'Higher latitudes (closer to poles):')} Better aurora visibility",
        f"  {p.wrap(YELLOW, 'Lower latitudes (closer to equator):')} Rare aurora, only during storms",
        '',
        p.cyan('Example:'),
        '',
        '  Location: Stockholm, Sweden (59.3°N)',
        '  Index 5.33 rounds to 5, minimum latitude 60° → 59.3° < 60° → 0%',
        f"  Index 6.67 rounds to 7, minimum latitude 54° → 5.3° × {inc} → 100%",
        '',
        p.cyan('Why Hp30 is Better for Aurora Watching:'),
        '',
        "  Substorms often last only tens of minutes. Hp30's 30-minute resolution",
        "  captures them where Kp's 3-hour average smooths them out.",
        '',
        f"{p.bold('Note:')} Actual visibility also depends on weather, light pollution and time of day.",
        '',
    ]
    return lines
