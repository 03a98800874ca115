from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, NamedTuple, TextIO

from .errors import ObservationParseError
from .sensor_model import GpsFix, ImuReading

NUM_FIELDS = 7


class Observation(NamedTuple):
    t_ms: int
    vehicle_x: float
    vehicle_y: float
    gps: GpsFix
    imu: ImuReading


class Tick(NamedTuple):
    observation: Observation
    t: float
    dt: float
    report: bool


def parse_line(line: str, line_number: int | None = None) -> Observation:
    """Parse ``t_ms x y gps_x gps_y imu_r imu_t``."""
    parts = line.split()
    if len(parts) != NUM_FIELDS:
        raise ObservationParseError(f"expected {NUM_FIELDS} fields, got {len(parts)}", line_number)
    try:
        t_ms = int(parts[0])
    except ValueError:
        raise ObservationParseError(f"timestamp {parts[0]!r} is not an integer", line_number) from None
    try:
        values = [float(p) for p in parts[1:]]
    except ValueError as exc:
        raise ObservationParseError(str(exc), line_number) from None
    x, y, gps_x, gps_y, imu_r, imu_t = values
    return Observation(t_ms, x, y, GpsFix(gps_x, gps_y), ImuReading(imu_r, imu_t))


def format_observation(obs: Observation) -> str:
    return (
        f"{obs.t_ms} {obs.vehicle_x!r} {obs.vehicle_y!r} "
        f"{obs.gps.x!r} {obs.gps.y!r} {obs.imu.r!r} {obs.imu.t!r}"
    )


def read_observations(stream: TextIO) -> Iterator[Observation]:
    for line_number, line in enumerate(stream, start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        yield parse_line(stripped, line_number)


@dataclass
class ObservationFeed:
    """Turns timestamped observations into filter ticks.

    The first observation only fixes the starting time. Later ones carry the
    elapsed seconds and whether ``report_every_ms`` has passed since the last
    report.
    """

    observations: Iterable[Observation]
    report_every_ms: int = 0

    def __iter__(self) -> Iterator[Tick]:
        iterator = iter(self.observations)
        first = next(iterator, None)
        if first is None:
            return
        t = first.t_ms / 1000.0
        t_last = 0
        for obs in iterator:
            t0 = obs.t_ms / 1000.0
            dt = t0 - t
            report = self.report_every_ms > 0 and obs.t_ms - t_last >= self.report_every_ms
            t = t0
            if report:
                t_last = obs.t_ms
            yield Tick(obs, t, dt, report)
