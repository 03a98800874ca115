from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple, Optional

import numpy as np

from .numeric import (
    BOX_DIM,
    DEFAULT_GPS_VAR,
    IMU_A_VAR,
    IMU_R_VAR,
    MAX_SPEED,
    angle_distance,
    clip_box,
    clip_speed,
    gprob,
    normalize_angle,
)
from .random_source import RandomSource


class GpsFix(NamedTuple):
    x: float
    y: float


class ImuReading(NamedTuple):
    r: float
    t: float


@dataclass
class GpsImuSensorModel:
    """Gaussian GPS position and IMU velocity likelihoods.

    The kernels omit the 1/(sigma*sqrt(2*pi)) factor; only relative weights
    matter. IMU deviations are scaled by 1/dt, so the IMU is trusted less
    over short ticks.
    """

    gps_var: float = DEFAULT_GPS_VAR
    imu_r_var: float = IMU_R_VAR
    imu_a_var: float = IMU_A_VAR
    box: float = BOX_DIM
    max_speed: float = MAX_SPEED

    def gps_prob(self, x: float, y: float, gps: GpsFix) -> float:
        if x != clip_box(x, self.box) or y != clip_box(y, self.box):
            return 0.0
        return gprob(x - gps.x, self.gps_var) * gprob(y - gps.y, self.gps_var)

    def imu_prob(self, r: float, t: float, imu: ImuReading, dt: float) -> float:
        if r != clip_speed(r, self.max_speed):
            return 0.0
        pr = gprob(r - imu.r, self.imu_r_var / dt)
        pt = gprob(angle_distance(t, imu.t), self.imu_a_var / dt)
        return pr * pt

    def gps_prob_batch(
        self,
        posn_x: np.ndarray,
        posn_y: np.ndarray,
        gps: GpsFix,
        out: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        inside = (posn_x >= -self.box) & (posn_x <= self.box) & (posn_y >= -self.box) & (posn_y <= self.box)
        prob = gprob(posn_x - gps.x, self.gps_var) * gprob(posn_y - gps.y, self.gps_var)
        if out is None:
            out = np.empty_like(prob)
        np.copyto(out, np.where(inside, prob, 0.0))
        return out

    def imu_prob_batch(
        self,
        vel_r: np.ndarray,
        vel_t: np.ndarray,
        imu: ImuReading,
        dt: float,
        out: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        valid = (vel_r >= 0.0) & (vel_r <= self.max_speed)
        pr = gprob(vel_r - imu.r, self.imu_r_var / dt)
        pt = gprob(angle_distance(vel_t, imu.t), self.imu_a_var / dt)
        if out is None:
            out = np.empty_like(pr)
        np.copyto(out, np.where(valid, pr * pt, 0.0))
        return out

    def gps_measure(self, x: float, y: float, rng: RandomSource) -> GpsFix:
        gx = x + rng.gaussian(self.gps_var)
        gy = y + rng.gaussian(self.gps_var)
        return GpsFix(gx, gy)

    def imu_measure(self, r: float, t: float, dt: float, rng: RandomSource) -> ImuReading:
        mr = r + rng.gaussian(self.imu_r_var * dt)
        mt = normalize_angle(t + rng.gaussian(self.imu_a_var * dt))
        if mr < 0.0:
            mr = -mr
            mt = normalize_angle(mt + math.pi)
        return ImuReading(mr, mt)
