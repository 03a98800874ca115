from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Sequence, Tuple

import numpy as np

from .motion_model import State, VehicleState
from .numeric import BOX_DIM
from .random_source import RandomSource

FIELDS = ("posn_x", "posn_y", "vel_r", "vel_t", "weight")


@dataclass
class ParticleEnsemble:
    """One generation of particles stored as parallel arrays."""

    size: int
    posn_x: np.ndarray = field(init=False)
    posn_y: np.ndarray = field(init=False)
    vel_r: np.ndarray = field(init=False)
    vel_t: np.ndarray = field(init=False)
    weight: np.ndarray = field(init=False)

    def __post_init__(self) -> None:
        if self.size < 1:
            raise ValueError(f"ensemble size must be positive, got {self.size}")
        for name in FIELDS:
            setattr(self, name, np.zeros(self.size, dtype=np.float64))

    def __len__(self) -> int:
        return self.size

    def init_particles(self, rng: RandomSource, box: float = BOX_DIM) -> None:
        for i in range(self.size):
            self.set_state(i, VehicleState.random(rng, box).as_tuple())
        self.weight.fill(1.0 / self.size)

    def state(self, i: int) -> State:
        return (
            float(self.posn_x[i]),
            float(self.posn_y[i]),
            float(self.vel_r[i]),
            float(self.vel_t[i]),
        )

    def set_state(self, i: int, state: State) -> None:
        self.posn_x[i], self.posn_y[i], self.vel_r[i], self.vel_t[i] = state

    def arrays(self) -> Iterator[np.ndarray]:
        for name in FIELDS:
            yield getattr(self, name)

    def total_weight(self, count: int | None = None) -> float:
        return float(np.sum(self.weight[: self.size if count is None else count]))

    def normalize_weights(self, total_weight: float) -> None:
        with np.errstate(divide="ignore", invalid="ignore"):
            inv_total = np.float64(1.0) / np.float64(total_weight)
            self.weight *= inv_total

    def best_index(self) -> int:
        return int(np.argmax(self.weight))

    def permute(self, order: Sequence[int], count: int) -> None:
        """Reorder the first ``count`` particles so slot i holds old ``order[i]``."""
        index = np.asarray(order, dtype=np.intp)
        for arr in self.arrays():
            arr[:count] = arr[index]

    def sort_by_weight(self, count: int) -> None:
        """Stable sort of the first ``count`` particles by descending weight."""
        order = np.argsort(-self.weight[:count], kind="stable")
        self.permute(order, count)

    def take_from(self, source: "ParticleEnsemble", indices: np.ndarray, inv_scale: float) -> None:
        """Copy ``source[indices[i]]`` into slot i and rescale its weight."""
        count = len(indices)
        for dst, src in zip(self.arrays(), source.arrays()):
            np.take(src, indices, out=dst[:count])
        self.weight[:count] *= inv_scale

    def particles(self) -> Iterator[Tuple[float, float, float]]:
        for x, y, w in zip(self.posn_x.tolist(), self.posn_y.tolist(), self.weight.tolist()):
            yield x, y, w
