from __future__ import annotations
import argparse
import logging
import re
import sys
from typing import List, Optional, Sequence

from .config import VERSION, Settings
from .errors import (
    AuroraError,
    InvalidArgumentError,
    MissingArgumentError,
    UsageError,
)
from .forecast import ForecastEngine
from .models import DEFAULT_FORECAST_HOURS, MAX_FORECAST_HOURS, DataSource, Estimate, RunConfig
from .render import BLUE, RED, RESET, explain_lines

PROG = 'aurora'
HOURS_SHORTHAND = re.compile(r'^--(\d+)$')
DIGITS = re.compile(r'^[0-9]+$')
HELP_FLAGS = ('-h', '--help')
VERSION_FLAGS = ('-v', '--version')

EPILOG = f"""\
location format:
  City names such as "Stockholm, Sweden" or "City, State, Country", or
  coordinates such as "68.4363°N 17.3983°E". Geocoded with OpenStreetMap Nominatim.

notes:
  --estimate only works with GFZ Hp30, --hist only works with NOAA Kp.

exit codes:
  0 results found, 1 no forecast rows matched, 20-23 invalid usage,
  30-34 network or geocoding failure, 40-42 unusable forecast data.

examples:
  {PROG} "Stockholm, Sweden"
  {PROG} --48 "Reykjavik, Iceland"
  {PROG} --Kp --hist -f 12 "Tromsø, Norway"
  {PROG} --raw -m 5 "Fairbanks, Alaska"
"""


class ArgumentParser(argparse.ArgumentParser):
    """argparse that raises UsageError instead of exiting with status 2."""

    def error(self, message):
        if 'expected one argument' in message:
            option = message.split(':', 1)[0].replace('argument ', '').split('/')[-1]
            message = f"Option {option} requires an argument."
        raise UsageError(message, hint=f"Run '{self.prog} --help' for usage information.")


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog=PROG,
        usage=(
            f"{PROG} [--Hp30|--GFZ] [-f HOURS] [-m MAGNITUDE] [-e ESTIMATE] [--raw] LOCATION\n"
            f"       {PROG} [--Kp|--NOAA] [-f HOURS] [-m MAGNITUDE] [--hist] [--raw] LOCATION"
        ),
        description=(
            'Display aurora visibility forecast based on geomagnetic indices and your location. '
            'The closer you are to the magnetic poles, the higher your chances of seeing aurora.'
        ),
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    source = parser.add_argument_group('index / data source')
    source.add_argument('--Hp30', '--GFZ', dest='data_source', action='store_const', const=DataSource.GFZ,
                        help='GFZ Hp30 index, 30-minute resolution [default]')
    source.add_argument('--Kp', '--NOAA', dest='data_source', action='store_const', const=DataSource.NOAA,
                        help='NOAA Kp index, 3-hour resolution')

    settings = parser.add_argument_group('forecast settings')
    settings.add_argument('-f', '--forecast', dest='hours', metavar='HOURS',
                          help=f"limit forecast to the next N hours, 1-{MAX_FORECAST_HOURS} "
                               f"[default: {DEFAULT_FORECAST_HOURS}]; --N is shorthand")
    settings.add_argument('-m', '--magnitude', dest='magnitude', metavar='MAGNITUDE',
                          help='only show entries with index value at or above MAGNITUDE [default: 0]')
    settings.add_argument('-e', '--estimate', dest='estimate', metavar='ESTIMATE',
                          help='GFZ ensemble column: median [default], low (conservative), high (optimistic)')
    settings.add_argument('--hist', dest='hist', action='store_true',
                          help='include up to 16 past entries (NOAA only)')

    output = parser.add_argument_group('output')
    output.add_argument('--raw', dest='raw', action='store_true',
                        help='tab-separated forecast rows only, for scripts')
    output.add_argument('--verbose', dest='verbose', action='store_true', help='debug logging')
    output.add_argument('--explain', action='store_true',
                        help='show detailed explanation of probability calculations')
    output.add_argument('-v', '--version', action='version', version=f"aurora-cli {VERSION}")

    parser.add_argument('location', nargs='*', help='place name or coordinates')
    parser.set_defaults(data_source=DataSource.GFZ)
    return parser


def expand_shorthand(argv: Sequence[str]) -> List[str]:
    """Rewrite `--12` as `--forecast=12`."""
    out = []
    for arg in argv:
        m = HOURS_SHORTHAND.match(arg)
        out.append(f"--forecast={m.group(1)}" if m else arg)
    return out


def _parse_hours(raw: Optional[str]) -> int:
    if raw is None:
        return DEFAULT_FORECAST_HOURS
    if not DIGITS.match(raw):
        raise InvalidArgumentError(f"Invalid hours value: {raw}. Must be a positive integer.")
    hours = int(raw)
    if not 1 <= hours <= MAX_FORECAST_HOURS:
        raise InvalidArgumentError(f"Hours must be between 1 and {MAX_FORECAST_HOURS}. Got: {hours}")
    return hours


def _parse_magnitude(raw: Optional[str]) -> int:
    if raw is None:
        return 0
    if not DIGITS.match(raw):
        raise InvalidArgumentError(f"Invalid magnitude value: {raw}. Must be a non-negative integer.")
    return int(raw)


def _parse_estimate(raw: Optional[str]) -> Optional[Estimate]:
    if raw is None:
        return None
    try:
        return Estimate(raw)
    except ValueError:
        raise InvalidArgumentError(f"Invalid estimate value: {raw}. Must be one of: median, low, high")


def config_from_args(args: argparse.Namespace) -> RunConfig:
    """Validate parsed flags in the order users expect to hear about problems."""
    hours = _parse_hours(args.hours)
    magnitude = _parse_magnitude(args.magnitude)
    estimate = _parse_estimate(args.estimate)
    if len(args.location) > 1:
        raise InvalidArgumentError("Multiple locations specified. Please provide only one location.")
    if not args.location or not args.location[0].strip():
        raise MissingArgumentError(
            "Location is required.", hint=f"Run '{PROG} --help' for usage information."
        )
    config = RunConfig(
        data_source=args.data_source,
        forecast_hours=hours,
        min_magnitude=magnitude,
        estimate=estimate,
        show_historical=args.hist,
        raw_output=args.raw,
    )
    return config.validate()


def log_format(color: bool) -> str:
    arrow = f"{BLUE}→{RESET}" if color else '→'
    return f"{arrow} %(message)s"


def configure_logging(raw: bool, verbose: bool, color: bool = False) -> None:
    if verbose:
        level = logging.DEBUG
    elif raw:
        # keep stderr quiet for pipelines
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format=log_format(color), stream=sys.stderr)
    logging.getLogger().setLevel(level)
    # urllib3 connection chatter is only useful with --verbose
    logging.getLogger('urllib3').setLevel(logging.DEBUG if verbose else logging.WARNING)


def _use_color(stream, settings: Settings) -> bool:
    return not settings.no_color and hasattr(stream, 'isatty') and stream.isatty()


def report_error(err: AuroraError, settings: Settings) -> None:
    prefix = f"{RED}Error:{RESET}" if _use_color(sys.stderr, settings) else 'Error:'
    print(f"{prefix} {err}", file=sys.stderr)


def main(argv: Optional[Sequence[str]] = None, engine_factory=ForecastEngine) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    settings = Settings.from_env()
    parser = build_parser()

    if not argv:
        parser.print_help(sys.stderr)
        return MissingArgumentError.exit_code

    try:
        # information flags win over everything else on the line, first one found
        for arg in argv:
            if arg in HELP_FLAGS:
                parser.print_help()
                return 0
            if arg in VERSION_FLAGS:
                print(f"aurora-cli {VERSION}")
                return 0
            if arg == '--explain':
                print('\n'.join(explain_lines(color=_use_color(sys.stdout, settings))))
                return 0
        args, unknown = parser.parse_known_args(expand_shorthand(argv))
        options = [u for u in unknown if u.startswith('-') and u != '-']
        if options:
            raise UsageError(
                f"Unknown option: {options[0]}",
                hint=f"Run '{PROG} --help' for usage information.",
            )
        # positionals after an option land in `unknown`
        args.location.extend(unknown)
        config = config_from_args(args)
    except AuroraError as e:
        report_error(e, settings)
        return e.exit_code

    configure_logging(config.raw_output, args.verbose, color=_use_color(sys.stderr, settings))
    engine = engine_factory(
        config,
        settings=settings,
        color=not config.raw_output and _use_color(sys.stdout, settings),
        program=PROG,
    )
    result = engine.run(args.location[0])
    if result.error is not None:
        report_error(result.error, settings)
    elif result.lines:
        print('\n'.join(result.lines))
    return result.exit_code


def entrypoint() -> None:
    sys.exit(main())


if __name__ == '__main__':
    entrypoint()
