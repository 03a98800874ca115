from __future__ import annotations

import math

import numpy as np

BOX_DIM = 20.0
MAX_SPEED = 2.0

AVAR = math.pi / 32.0
RVAR = 0.1
DEFAULT_GPS_VAR = 1.0
IMU_R_VAR = 0.5
IMU_A_VAR = math.pi / 8.0

NDIRNS = 1024
TWO_PI = 2.0 * math.pi

# cos(2*pi*i/NDIRNS); index d + NDIRNS/4 yields -sin of bin d.
COS_DIRN = np.cos(np.arange(NDIRNS, dtype=np.float64) * TWO_PI / NDIRNS)
COS_DIRN.setflags(write=False)


def normalize_angle(t: float) -> float:
    """Wrap an angle into [0, 2*pi)."""
    t = math.fmod(t, TWO_PI)
    if t < 0.0:
        t += TWO_PI
    # fmod of a tiny negative angle can round up to exactly 2*pi
    if t >= TWO_PI:
        t = 0.0
    return t


def angle_dirn(t: float) -> int:
    return int(math.floor(t * NDIRNS / TWO_PI)) % NDIRNS


def normalize_dirn(d: int) -> int:
    return d % NDIRNS


def clip(x: float, low: float, high: float) -> float:
    return min(high, max(x, low))


def clip_box(x: float, box: float = BOX_DIM) -> float:
    return clip(x, -box, box)


def clip_speed(r: float, max_speed: float = MAX_SPEED) -> float:
    return clip(r, 0.0, max_speed)


def gprob(delta, sd):
    """Unnormalized gaussian kernel exp(-0.5 * (delta / sd)**2).

    Works for floats and numpy arrays alike.
    """
    scaled = delta / sd
    if isinstance(scaled, np.ndarray):
        return np.exp(-0.5 * scaled * scaled)
    return math.exp(-0.5 * scaled * scaled)


def angle_distance(a, b):
    """Shortest angular distance between headings in [0, 2*pi)."""
    diff = abs(a - b)
    if isinstance(diff, np.ndarray):
        return np.minimum(diff, np.abs(TWO_PI - diff))
    return min(diff, abs(TWO_PI - diff))
