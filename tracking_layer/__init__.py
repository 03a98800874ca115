"""Bootstrap particle filter for tracking a vehicle from GPS and IMU readings.
"""

from .bpf import BootstrapParticleFilter, StepEstimate
from .config import FilterConfig, load_params
from .motion_model import BounceProblem, VehicleMotionModel, VehicleState
from .observations import Observation, ObservationFeed, parse_line
from .particle import ParticleEnsemble
from .random_source import RandomSource
from .reporter import ParticleReporter
from .resampler import (
    LogmResampler,
    NaiveResampler,
    OptimalResampler,
    RegularResampler,
    Resampler,
    make_resampler,
)
from .sensor_model import GpsFix, GpsImuSensorModel, ImuReading
from .simulator import VehicleSimulator

__all__ = [
    "BootstrapParticleFilter",
    "StepEstimate",
    "FilterConfig",
    "load_params",
    "BounceProblem",
    "VehicleMotionModel",
    "VehicleState",
    "Observation",
    "ObservationFeed",
    "parse_line",
    "ParticleEnsemble",
    "RandomSource",
    "ParticleReporter",
    "LogmResampler",
    "NaiveResampler",
    "OptimalResampler",
    "RegularResampler",
    "Resampler",
    "make_resampler",
    "GpsFix",
    "GpsImuSensorModel",
    "ImuReading",
    "VehicleSimulator",
]
