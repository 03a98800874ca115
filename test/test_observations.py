import io

import pytest

from tracking_layer.errors import ObservationParseError
from tracking_layer.observations import Observation, ObservationFeed, format_observation, parse_line, read_observations
from tracking_layer.sensor_model import GpsFix, ImuReading


def test_parse_line():
    obs = parse_line("10 0.05 0.0 0.05 0.0 5.0 0.0")
    assert obs.t_ms == 10
    assert (obs.vehicle_x, obs.vehicle_y) == (0.05, 0.0)
    assert obs.gps == GpsFix(0.05, 0.0)
    assert obs.imu == ImuReading(5.0, 0.0)


def test_format_round_trips_exactly():
    obs = Observation(120, 1.0 / 3.0, -2.5, GpsFix(0.1, 0.2), ImuReading(1.7, 6.1))
    assert parse_line(format_observation(obs)) == obs


@pytest.mark.parametrize(
    "line, message",
    [
        ("10 0.0 0.0 0.0 0.0 0.0", "expected 7 fields"),
        ("1.5 0.0 0.0 0.0 0.0 0.0 0.0", "not an integer"),
        ("10 0.0 zero 0.0 0.0 0.0 0.0", "zero"),
    ],
)
def test_parse_errors(line, message):
    with pytest.raises(ObservationParseError, match=message) as excinfo:
        parse_line(line, 4)
    assert excinfo.value.line_number == 4
    assert str(excinfo.value).startswith("line 4: ")


def test_read_skips_blank_and_comment_lines():
    stream = io.StringIO("# t x y gx gy r t\n\n0 0 0 0 0 0 0\n   \n10 1 1 1 1 1 1\n")
    assert [obs.t_ms for obs in read_observations(stream)] == [0, 10]


def test_read_reports_line_number():
    stream = io.StringIO("0 0 0 0 0 0 0\n\n10 1 1\n")
    with pytest.raises(ObservationParseError) as excinfo:
        list(read_observations(stream))
    assert excinfo.value.line_number == 3


def _obs(t_ms):
    return Observation(t_ms, 0.0, 0.0, GpsFix(0.0, 0.0), ImuReading(0.0, 0.0))


def test_feed_first_observation_only_sets_clock():
    ticks = list(ObservationFeed([_obs(100), _obs(110), _obs(130)]))
    assert [tick.observation.t_ms for tick in ticks] == [110, 130]
    assert ticks[0].dt == pytest.approx(0.01)
    assert ticks[1].dt == pytest.approx(0.02)
    assert ticks[1].t == pytest.approx(0.13)
    assert not any(tick.report for tick in ticks)


def test_feed_report_schedule():
    ticks = list(ObservationFeed([_obs(t) for t in range(0, 60, 10)], report_every_ms=20))
    assert [tick.report for tick in ticks] == [False, True, False, True, False]


def test_feed_empty():
    assert list(ObservationFeed([])) == []
