from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .errors import BoundaryResolutionError
from .numeric import (
    AVAR,
    BOX_DIM,
    COS_DIRN,
    MAX_SPEED,
    NDIRNS,
    RVAR,
    TWO_PI,
    angle_dirn,
    clip_box,
    clip_speed,
    normalize_angle,
    normalize_dirn,
)
from .random_source import RandomSource

# (x, y, speed, heading)
State = Tuple[float, float, float, float]

_COS_TABLE = COS_DIRN.tolist()


class BounceProblem(Enum):
    OK = "ok"
    X = "x"
    Y = "y"
    XY = "xy"


@dataclass
class VehicleState:
    """Kinematic state of the simulated vehicle or of one particle."""

    x: float = 0.0
    y: float = 0.0
    r: float = 0.0
    t: float = 0.0

    @classmethod
    def random(cls, rng: RandomSource, box: float = BOX_DIM) -> "VehicleState":
        x = (rng.uniform() * 2.0 - 1.0) * box
        y = (rng.uniform() * 2.0 - 1.0) * box
        r = rng.uniform()
        t = normalize_angle(rng.uniform() * (math.pi / 2.0))
        return cls(x, y, r, t)

    def as_tuple(self) -> State:
        return self.x, self.y, self.r, self.t


@dataclass
class VehicleMotionModel:
    """Noisy constant-velocity motion confined to a square box.

    A proposed move that leaves the box is retried with the prior velocity
    and, failing that, with the heading reflected off the violated wall.
    """

    rvar: float = RVAR
    avar: float = AVAR
    box: float = BOX_DIM
    max_speed: float = MAX_SPEED
    fast_direction: bool = False

    def sample(self, prev_state: State, dt: float, noise: bool, rng: RandomSource) -> State:
        x, y, r, t = prev_state
        scale = 1.0 + 8.0 * int(noise)
        r0 = clip_speed(r + rng.gaussian(self.rvar) * scale, self.max_speed)
        t0 = normalize_angle(t + rng.gaussian(self.avar) * scale)

        problem, x1, y1 = self._bounce(x, y, r0, t0, dt)
        if problem is not BounceProblem.OK:
            r0, t0 = r, t
            problem, x1, y1 = self._bounce(x, y, r0, t0, dt)
            if problem is not BounceProblem.OK:
                t0 = self._reflect(t0, problem)
                problem, x1, y1 = self._bounce(x, y, r0, t0, dt)
        if problem is not BounceProblem.OK:
            raise BoundaryResolutionError(
                f"{problem.name} violation unresolved from ({x}, {y}) "
                f"with speed {r0} heading {t0} over dt={dt}"
            )
        return x1, y1, r0, t0

    def update_state(self, state: VehicleState, dt: float, noise: bool, rng: RandomSource) -> None:
        state.x, state.y, state.r, state.t = self.sample(state.as_tuple(), dt, noise, rng)

    def _bounce(self, x: float, y: float, r: float, t: float, dt: float) -> Tuple[BounceProblem, float, float]:
        if self.fast_direction:
            dc0 = angle_dirn(t)
            dms0 = normalize_dirn(dc0 + NDIRNS // 4)
            x0 = x + r * _COS_TABLE[dc0] * dt
            y0 = y + r * _COS_TABLE[dms0] * dt
        else:
            x0, y0 = self._integrate(x, y, r, t, dt)
        x1 = clip_box(x0, self.box)
        y1 = clip_box(y0, self.box)
        if x0 == x1 and y0 == y1:
            return BounceProblem.OK, x1, y1

        if self.fast_direction:
            # table quantization can push a boundary move just outside
            x0, y0 = self._integrate(x, y, r, t, dt)
            x1 = clip_box(x0, self.box)
            y1 = clip_box(y0, self.box)
            if x0 == x1 and y0 == y1:
                return BounceProblem.OK, x1, y1

        if y0 == y1:
            return BounceProblem.X, x1, y1
        if x0 == x1:
            return BounceProblem.Y, x1, y1
        return BounceProblem.XY, x1, y1

    @staticmethod
    def _integrate(x: float, y: float, r: float, t: float, dt: float) -> Tuple[float, float]:
        return x + r * math.cos(t) * dt, y - r * math.sin(t) * dt

    @staticmethod
    def _reflect(t: float, problem: BounceProblem) -> float:
        if problem is BounceProblem.X:
            return normalize_angle(math.pi - t)
        if problem is BounceProblem.Y:
            return normalize_angle(TWO_PI - t)
        return normalize_angle(math.pi + t)
