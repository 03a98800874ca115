from __future__ import annotations

import math
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from .errors import ConfigurationError
from .numeric import AVAR, DEFAULT_GPS_VAR, IMU_A_VAR, IMU_R_VAR, RVAR
from .random_source import DEFAULT_SEED
from .resampler import RESAMPLERS


@dataclass
class FilterConfig:
    """Plain-value parameters of one filter run."""

    num_particles: int = 100
    resampler: str = "naive"
    sort: bool = False
    resample_interval: int = 1
    best_particle_only: bool = False
    gps_var: float = DEFAULT_GPS_VAR
    imu_r_var: float = IMU_R_VAR
    imu_a_var: float = IMU_A_VAR
    rvar: float = RVAR
    avar: float = AVAR
    fast_direction: bool = False
    noise_boost: bool = True
    strict: bool = False
    seed: int = DEFAULT_SEED
    report_every_ms: int = 1000
    report_dir: str = "benchtmp"

    def __post_init__(self) -> None:
        if self.resampler not in RESAMPLERS:
            raise ConfigurationError(
                f"unknown resampler {self.resampler!r}; expected one of {', '.join(sorted(RESAMPLERS))}"
            )
        if self.num_particles < 1:
            raise ConfigurationError(f"num_particles must be >= 1, got {self.num_particles}")
        if self.resample_interval < 1:
            raise ConfigurationError(f"resample_interval must be >= 1, got {self.resample_interval}")
        for name in ("gps_var", "imu_r_var", "imu_a_var"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0.0:
                raise ConfigurationError(f"{name} must be a positive number, got {value}")
        for name in ("rvar", "avar"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0.0:
                raise ConfigurationError(f"{name} must be non-negative, got {value}")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "FilterConfig":
        """Build a config, converting each value to the type of its default."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"unknown parameters: {', '.join(unknown)}")
        defaults = cls()
        return cls(**{name: _coerce(name, value, getattr(defaults, name)) for name, value in values.items()})


def _coerce(name: str, value: Any, default: Any) -> Any:
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ConfigurationError(f"{name} must be true or false, got {value!r}")
        return value
    try:
        return type(default)(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name}: cannot use {value!r} as {type(default).__name__}") from None


def load_params(path: str | Path) -> Dict[str, Any]:
    """Read a YAML params file; parameters may sit under a ``tracker_node`` key."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"{path}: {exc}") from None
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a mapping of parameters")
    if "tracker_node" in data:
        data = data["tracker_node"] or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path}: 'tracker_node' must be a mapping")
    return data
