from aurora.errors import (
    GeocodingNotFound,
    IncompatibleOptionsError,
    NetworkError,
    ParseFailure,
    RateLimited,
    Timeout,
    Unavailable,
    UpstreamEmpty,
    UpstreamInvalid,
)
from aurora.forecast import ForecastEngine
from aurora.models import DataSource, Estimate, Outcome, RunConfig

from conftest import FakeFetcher, FakeGeocoder


def make_engine(config, settings, sources, clock, geocoder=None):
    geocoder = geocoder or FakeGeocoder()
    fetcher = FakeFetcher(sources)
    engine = ForecastEngine(config, settings=settings, geocoder=geocoder, fetcher=fetcher, clock=clock)
    return engine, geocoder, fetcher


def test_gfz_success(settings, sources, clock):
    engine, geocoder, fetcher = make_engine(RunConfig(), settings, sources, clock)
    result = engine.run('Stockholm')
    assert result.outcome is Outcome.SUCCESS
    assert result.exit_code == 0
    assert result.error is None
    assert geocoder.calls == ['Stockholm']
    assert fetcher.calls == [settings.gfz_url]
    text = '\n'.join(result.lines)
    assert 'AURORA VISIBILITY FORECAST' in text
    assert 'GFZ Hp30' in text
    assert 'Forecast Time: 2026-01-21 06:15 UTC' in text
    # 05:30 and 06:00 are already past
    assert '2026-01-21 06:00' not in text
    assert '2026-01-21 06:30' in text


def test_gfz_raw_rows(settings, sources, clock):
    cfg = RunConfig(raw_output=True, forecast_hours=1)
    engine, _, _ = make_engine(cfg, settings, sources, clock)
    result = engine.run('Stockholm')
    assert result.lines == [
        '2026-01-21 06:30\t6.00\t57\t46\tFair',
        '2026-01-21 07:00\t5.00\t60\t0\tNone',
    ]


def test_gfz_estimate_changes_values(settings, sources, clock):
    cfg = RunConfig(raw_output=True, forecast_hours=1, estimate=Estimate.HIGH)
    engine, _, _ = make_engine(cfg, settings, sources, clock)
    lines = engine.run('Stockholm').lines
    assert [line.split('\t')[1] for line in lines] == ['7.10', '6.50']


def test_noaa_history_in_table_but_not_raw(settings, sources, clock):
    table_cfg = RunConfig(data_source=DataSource.NOAA, show_historical=True)
    engine, _, fetcher = make_engine(table_cfg, settings, sources, clock)
    table = engine.run('Stockholm')
    assert fetcher.calls == [settings.noaa_url]
    text = '\n'.join(table.lines)
    assert 'PRESENT' in text
    assert '2026-01-20 18:00' in text

    raw_cfg = RunConfig(data_source=DataSource.NOAA, show_historical=True, raw_output=True)
    engine, _, _ = make_engine(raw_cfg, settings, sources, clock)
    raw = engine.run('Stockholm')
    assert raw.outcome is Outcome.SUCCESS
    assert [line[:16] for line in raw.lines] == [
        '2026-01-21 09:00',
        '2026-01-21 12:00',
        '2026-01-21 15:00',
        '2026-01-21 18:00',
    ]


def test_no_results_is_not_a_failure(settings, sources, clock):
    engine, _, _ = make_engine(RunConfig(min_magnitude=10), settings, sources, clock)
    result = engine.run('Stockholm')
    assert result.outcome is Outcome.NO_RESULTS
    assert result.exit_code == 1
    assert result.error is None
    assert any('Location:' in line for line in result.lines)

    engine, _, _ = make_engine(RunConfig(min_magnitude=10, raw_output=True), settings, sources, clock)
    raw = engine.run('Stockholm')
    assert raw.outcome is Outcome.NO_RESULTS
    assert raw.lines == []


def test_geocoding_failure_stops_before_fetch(settings, sources, clock):
    engine, _, fetcher = make_engine(RunConfig(), settings, sources, clock, geocoder=FakeGeocoder(point=None))
    result = engine.run('NonexistentPlace123456')
    assert result.outcome is Outcome.FAILURE
    assert isinstance(result.error, GeocodingNotFound)
    assert result.exit_code == 34
    assert result.lines == []
    assert fetcher.calls == []


def test_geocoder_transport_failures_pass_through(settings, sources, clock):
    for error, code in [
        (NetworkError('down'), 30),
        (Timeout('slow'), 31),
        (Unavailable('503'), 32),
        (RateLimited('429'), 33),
    ]:
        engine, _, fetcher = make_engine(RunConfig(), settings, sources, clock, geocoder=FakeGeocoder(error=error))
        result = engine.run('Stockholm')
        assert result.error is error
        assert result.exit_code == code
        assert fetcher.calls == []


def test_fetch_status_is_checked_before_parsing(settings, sources, clock):
    sources[settings.gfz_url] = ('', 503)
    engine, _, _ = make_engine(RunConfig(), settings, sources, clock)
    result = engine.run('Stockholm')
    assert isinstance(result.error, Unavailable)
    assert result.exit_code == 32

    sources[settings.gfz_url] = ('slow down', 429)
    result = make_engine(RunConfig(), settings, sources, clock)[0].run('Stockholm')
    assert isinstance(result.error, RateLimited)


def test_fetch_transport_error(settings, sources, clock):
    sources[settings.noaa_url] = Timeout('Request to NOAA API timed out after 30s.')
    engine, _, _ = make_engine(RunConfig(data_source=DataSource.NOAA), settings, sources, clock)
    result = engine.run('Stockholm')
    assert isinstance(result.error, Timeout)
    assert result.exit_code == 31


def test_payload_failures(settings, sources, clock):
    sources[settings.gfz_url] = ('', 200)
    result = make_engine(RunConfig(), settings, sources, clock)[0].run('Stockholm')
    assert isinstance(result.error, UpstreamEmpty)
    assert result.exit_code == 41

    sources[settings.gfz_url] = ('Time (UTC),min,sd,median\n21-01-2026 06:30,1,0,abc\n', 200)
    result = make_engine(RunConfig(), settings, sources, clock)[0].run('Stockholm')
    assert isinstance(result.error, ParseFailure)
    assert result.exit_code == 42

    sources[settings.noaa_url] = ('{"status": "maintenance"}', 200)
    result = make_engine(RunConfig(data_source=DataSource.NOAA), settings, sources, clock)[0].run('Stockholm')
    assert isinstance(result.error, UpstreamInvalid)
    assert result.exit_code == 40


def test_invalid_config_fails_before_any_io(settings, sources, clock):
    engine, geocoder, fetcher = make_engine(RunConfig(show_historical=True), settings, sources, clock)
    result = engine.run('Stockholm')
    assert isinstance(result.error, IncompatibleOptionsError)
    assert result.exit_code == 23
    assert geocoder.calls == []
    assert fetcher.calls == []
