from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from .config import FilterConfig
from .errors import ConfigurationError, FilterCollapseError
from .motion_model import VehicleMotionModel
from .numeric import normalize_angle
from .particle import ParticleEnsemble
from .random_source import RandomSource
from .reporter import ParticleReporter
from .resampler import Resampler, make_resampler
from .sensor_model import GpsFix, GpsImuSensorModel, ImuReading

logger = logging.getLogger(__name__)

COLLAPSE_THRESHOLD = 1e-5


@dataclass
class StepEstimate:
    """Outputs of one filter step."""

    best_x: float
    best_y: float
    best_index: int
    best_weight: float
    mean_x: Optional[float] = None
    mean_y: Optional[float] = None
    mean_r: Optional[float] = None
    mean_t: Optional[float] = None
    total_weight: float = 0.0
    resampled: bool = False


@dataclass
class BootstrapParticleFilter:
    """Sequential importance resampling filter for one vehicle in a box.

    Two particle generations are allocated up front; resampling writes the
    spare generation and then flips which one is current.
    """

    num_particles: int = 100
    resampler_name: str = "naive"
    sort: bool = False
    resample_interval: int = 1
    best_particle_only: bool = False
    noise_boost: bool = True
    strict: bool = False
    motion_model: VehicleMotionModel = field(default_factory=VehicleMotionModel)
    sensor_model: GpsImuSensorModel = field(default_factory=GpsImuSensorModel)
    rng: RandomSource = field(default_factory=RandomSource)
    reporter: Optional[ParticleReporter] = None

    generations: Tuple[ParticleEnsemble, ParticleEnsemble] = field(init=False)
    resampler: Resampler = field(init=False)
    which: int = field(init=False, default=0)
    resample_count: int = field(init=False, default=0)
    step_count: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        if self.num_particles < 1:
            raise ConfigurationError(f"num_particles must be >= 1, got {self.num_particles}")
        if self.resample_interval < 1:
            raise ConfigurationError(f"resample_interval must be >= 1, got {self.resample_interval}")
        self.resampler = make_resampler(self.resampler_name, self.num_particles, self.strict)
        self.generations = (ParticleEnsemble(self.num_particles), ParticleEnsemble(self.num_particles))
        self._gps_probs = np.zeros(self.num_particles)
        self._imu_probs = np.zeros(self.num_particles)
        self.init_particles()

    @classmethod
    def from_config(cls, config: FilterConfig, reporter: Optional[ParticleReporter] = None) -> "BootstrapParticleFilter":
        return cls(
            num_particles=config.num_particles,
            resampler_name=config.resampler,
            sort=config.sort,
            resample_interval=config.resample_interval,
            best_particle_only=config.best_particle_only,
            noise_boost=config.noise_boost,
            strict=config.strict,
            motion_model=VehicleMotionModel(
                rvar=config.rvar,
                avar=config.avar,
                fast_direction=config.fast_direction,
            ),
            sensor_model=GpsImuSensorModel(
                gps_var=config.gps_var,
                imu_r_var=config.imu_r_var,
                imu_a_var=config.imu_a_var,
            ),
            rng=RandomSource(config.seed),
            reporter=reporter,
        )

    @property
    def current(self) -> ParticleEnsemble:
        return self.generations[self.which]

    @property
    def spare(self) -> ParticleEnsemble:
        return self.generations[1 - self.which]

    def init_particles(self) -> None:
        self.which = 0
        self.resample_count = 0
        self.generations[0].init_particles(self.rng, self.motion_model.box)

    def step(self, dt: float, gps: GpsFix, imu: ImuReading, report: bool = False, t: float = 0.0) -> StepEstimate:
        if dt <= 0.0:
            raise ValueError(f"time step must be positive, got {dt}")
        ensemble = self.current
        self.predict(ensemble, dt)
        total = self.update(ensemble, gps, imu, dt)

        mean = None
        if not self.best_particle_only:
            mean = self.weighted_mean(ensemble)

        if report and self.reporter is not None:
            self.reporter.publish(t, ensemble)

        resampled = False
        self.resample_count = (self.resample_count + 1) % self.resample_interval
        if self.resample_count == 0:
            self.resample()
            resampled = True

        ensemble = self.current
        best = ensemble.best_index()
        self.step_count += 1
        estimate = StepEstimate(
            best_x=float(ensemble.posn_x[best]),
            best_y=float(ensemble.posn_y[best]),
            best_index=best,
            best_weight=float(ensemble.weight[best]),
            total_weight=total,
            resampled=resampled,
        )
        if mean is not None:
            estimate.mean_x, estimate.mean_y, estimate.mean_r, estimate.mean_t = mean
        return estimate

    def predict(self, ensemble: ParticleEnsemble, dt: float) -> None:
        # sequential: every particle consumes the shared random stream in order
        for i in range(len(ensemble)):
            ensemble.set_state(i, self.motion_model.sample(ensemble.state(i), dt, self.noise_boost, self.rng))

    def update(self, ensemble: ParticleEnsemble, gps: GpsFix, imu: ImuReading, dt: float) -> float:
        """Weight by GPS and IMU likelihoods and normalize; returns the raw total."""
        self.sensor_model.gps_prob_batch(ensemble.posn_x, ensemble.posn_y, gps, out=self._gps_probs)
        self.sensor_model.imu_prob_batch(ensemble.vel_r, ensemble.vel_t, imu, dt, out=self._imu_probs)
        ensemble.weight *= self._gps_probs * self._imu_probs
        total = float(np.sum(ensemble.weight))
        if self.strict and not total > COLLAPSE_THRESHOLD:
            raise FilterCollapseError(f"total weight {total!r} <= {COLLAPSE_THRESHOLD} at step {self.step_count}")
        if total == 0.0 or not math.isfinite(total):
            logger.warning("Particle weights collapsed (total %r) at step %d", total, self.step_count)
        ensemble.normalize_weights(total)
        return total

    @staticmethod
    def weighted_mean(ensemble: ParticleEnsemble) -> Tuple[float, float, float, float]:
        w = ensemble.weight
        mean_x = float(np.dot(w, ensemble.posn_x))
        mean_y = float(np.dot(w, ensemble.posn_y))
        mean_r = float(np.dot(w, ensemble.vel_r))
        sin_sum = float(np.dot(w, np.sin(ensemble.vel_t)))
        cos_sum = float(np.dot(w, np.cos(ensemble.vel_t)))
        mean_t = normalize_angle(math.atan2(sin_sum, cos_sum))
        return mean_x, mean_y, mean_r, mean_t

    def resample(self) -> int:
        source = self.current
        destination = self.spare
        total = source.total_weight()
        best = self.resampler.resample(
            total,
            len(source),
            source,
            len(destination),
            destination,
            self.sort,
            self.rng,
        )
        self.which = 1 - self.which
        self.current.weight.fill(1.0 / self.num_particles)
        return best
