from __future__ import annotations

import argparse
import logging
import math
import sys
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from .motion_model import VehicleMotionModel, VehicleState
from .observations import Observation, format_observation
from .random_source import DEFAULT_SEED, RandomSource
from .sensor_model import GpsImuSensorModel

logger = logging.getLogger(__name__)


@dataclass
class VehicleSimulator:
    """Ground-truth vehicle that emits noisy GPS and IMU observations."""

    dt: float = 0.01
    duration: float = 10.0
    motion_model: VehicleMotionModel = field(default_factory=VehicleMotionModel)
    sensor_model: GpsImuSensorModel = field(default_factory=GpsImuSensorModel)
    rng: RandomSource = field(default_factory=RandomSource)
    vehicle: VehicleState = field(init=False)

    def __post_init__(self) -> None:
        if self.dt <= 0.0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        self.vehicle = VehicleState.random(self.rng, self.motion_model.box)

    def run(self) -> Iterator[Observation]:
        t = 0.0
        while t <= self.duration:
            msec = int(math.floor(t * 1000.0 + 0.5))
            self.motion_model.update_state(self.vehicle, self.dt, False, self.rng)
            gps = self.sensor_model.gps_measure(self.vehicle.x, self.vehicle.y, self.rng)
            imu = self.sensor_model.imu_measure(self.vehicle.r, self.vehicle.t, self.dt, self.rng)
            yield Observation(msec, self.vehicle.x, self.vehicle.y, gps, imu)
            t += self.dt


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Write a simulated vehicle observation file.")
    parser.add_argument("--duration", type=float, default=10.0, help="seconds to simulate")
    parser.add_argument("--dt", type=float, default=0.01, help="tick length in seconds")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED)
    parser.add_argument("--gps-var", type=float, default=GpsImuSensorModel.gps_var)
    parser.add_argument("--output", "-o", default="-", help="output file, '-' for stdout")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] [%(name)s]: %(message)s")
    sim = VehicleSimulator(
        dt=args.dt,
        duration=args.duration,
        sensor_model=GpsImuSensorModel(gps_var=args.gps_var),
        rng=RandomSource(args.seed),
    )
    out = sys.stdout if args.output == "-" else open(args.output, "w", encoding="utf-8")
    try:
        count = 0
        for obs in sim.run():
            out.write(format_observation(obs) + "\n")
            count += 1
    finally:
        if out is not sys.stdout:
            out.close()
    logger.info("Simulated %d observations", count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
