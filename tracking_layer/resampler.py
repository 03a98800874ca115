from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple, Type

import numpy as np

from .errors import ConfigurationError, ResamplingError
from .particle import ParticleEnsemble
from .random_source import RandomSource

logger = logging.getLogger(__name__)


class Resampler:
    """Common contract for drawing a new generation from a weighted one.

    ``resample`` reads the first ``m`` particles of ``source`` (it may
    reorder them in place), writes slots ``[0, n)`` of ``destination``,
    rescales every copied weight by ``1 / total_weight`` and returns the first
    destination slot holding the largest weight.

    A search that runs past the last source particle clamps to it; with
    ``strict`` it raises :class:`ResamplingError` instead.
    """

    name = ""

    def __init__(self, max_particles: int = 0, strict: bool = False) -> None:
        self.strict = strict
        self._indices = np.zeros(max_particles, dtype=np.intp)

    def resample(
        self,
        total_weight: float,
        m: int,
        source: ParticleEnsemble,
        n: int,
        destination: ParticleEnsemble,
        sort: bool,
        rng: RandomSource,
    ) -> int:
        raise NotImplementedError

    def _check_call(self, m: int, source: ParticleEnsemble, n: int, destination: ParticleEnsemble) -> None:
        if destination is source:
            raise ValueError("destination must not alias source")
        if not 0 < m <= len(source):
            raise ValueError(f"source count {m} outside ensemble of {len(source)}")
        if not 0 < n <= len(destination):
            raise ValueError(f"target count {n} outside ensemble of {len(destination)}")

    def _index_buffer(self, n: int) -> np.ndarray:
        if len(self._indices) < n:
            self._indices = np.zeros(n, dtype=np.intp)
        return self._indices[:n]

    def _overrun(self, detail: str) -> None:
        if self.strict:
            raise ResamplingError(f"{self.name}: {detail}")
        logger.debug("%s resampler clamped overrun: %s", self.name, detail)

    def _clamp_indices(self, indices: np.ndarray, m: int, cumulative: float, total_weight: float) -> None:
        if indices.size and indices.max() >= m:
            self._overrun(f"cumulative weight {cumulative!r} < draw near total {total_weight!r}")
            np.minimum(indices, m - 1, out=indices)

    @staticmethod
    def _copy_and_scale(
        source: ParticleEnsemble,
        destination: ParticleEnsemble,
        indices: np.ndarray,
        inv_scale: float,
    ) -> int:
        destination.take_from(source, indices, inv_scale)
        return int(np.argmax(destination.weight[: len(indices)]))


class _CumulativeResampler(Resampler):
    """Resampler that searches a prefix-sum array of the source weights."""

    def __init__(self, max_particles: int = 0, strict: bool = False) -> None:
        super().__init__(max_particles, strict)
        self._cumsum = np.zeros(max_particles, dtype=np.float64)

    def _prefix_sum(self, source: ParticleEnsemble, m: int) -> np.ndarray:
        if len(self._cumsum) < m:
            self._cumsum = np.zeros(m, dtype=np.float64)
        cumsum = self._cumsum[:m]
        np.cumsum(source.weight[:m], out=cumsum)
        return cumsum


class NaiveResampler(_CumulativeResampler):
    """Multinomial resampling by binary search over the cumulative weights.

    With ``sort`` the source is first ordered by descending weight, which
    changes search locality but not the sampling distribution.
    """

    name = "naive"

    def resample(
        self,
        total_weight: float,
        m: int,
        source: ParticleEnsemble,
        n: int,
        destination: ParticleEnsemble,
        sort: bool,
        rng: RandomSource,
    ) -> int:
        self._check_call(m, source, n, destination)
        if sort:
            source.sort_by_weight(m)
        cumsum = self._prefix_sum(source, m)
        draws = rng.uniforms(n) * total_weight
        indices = self._index_buffer(n)
        indices[:] = np.searchsorted(cumsum, draws, side="left")
        self._clamp_indices(indices, m, cumsum[-1], total_weight)
        return self._copy_and_scale(source, destination, indices, 1.0 / total_weight)


class LogmResampler(Resampler):
    """Multinomial resampling in O(log m) per draw over an implicit tree.

    Node i has children 2i+1 and 2i+2; ``tweight[i]`` holds the weight of
    particle i plus every particle below it. With ``sort`` the source is
    heapified by weight first so the root is the heaviest particle.
    """

    name = "logm"

    def __init__(self, max_particles: int = 0, strict: bool = False) -> None:
        super().__init__(max_particles, strict)
        self.tweight: List[float] = [0.0] * max_particles

    def resample(
        self,
        total_weight: float,
        m: int,
        source: ParticleEnsemble,
        n: int,
        destination: ParticleEnsemble,
        sort: bool,
        rng: RandomSource,
    ) -> int:
        self._check_call(m, source, n, destination)
        if len(self.tweight) < m:
            self.tweight = [0.0] * m
        weights = source.weight[:m].tolist()
        if sort:
            order, tweight = self.heapify(weights, self.tweight)
            source.permute(order, m)
        else:
            tweight = self.subtree_weights(weights, self.tweight)

        root = tweight[0]
        indices = self._index_buffer(n)
        for i in range(n):
            indices[i] = self._weighted_sample(rng.uniform() * root, m, weights, tweight)
        return self._copy_and_scale(source, destination, indices, 1.0 / total_weight)

    @staticmethod
    def subtree_weights(weights: List[float], tweight: Optional[List[float]] = None) -> List[float]:
        """Fill ``tweight[:m]`` with subtree sums, allocating it when not given."""
        m = len(weights)
        if tweight is None:
            tweight = [0.0] * m
        for i in range(m - 1, -1, -1):
            left = 2 * i + 1
            right = left + 1
            total = weights[i]
            if left < m:
                total += tweight[left]
            if right < m:
                total += tweight[right]
            tweight[i] = total
        return tweight

    @staticmethod
    def heapify(weights: List[float], tweight: Optional[List[float]] = None) -> Tuple[List[int], List[float]]:
        """Turn ``weights`` into a max-heap in place, tracking subtree sums.

        Returns the permutation applied (slot i now holds old ``order[i]``)
        and the subtree weights of the heap, written into ``tweight`` when given.
        """
        m = len(weights)
        order = list(range(m))
        if tweight is None:
            tweight = [0.0] * m
        for i in range(m - 1, -1, -1):
            left = 2 * i + 1
            right = left + 1
            tweight[i] = weights[i]
            if left < m:
                tweight[i] += tweight[left]
            if right < m:
                tweight[i] += tweight[right]
            j = i
            while 2 * j + 1 < m:
                left = 2 * j + 1
                right = left + 1
                wj = weights[j]
                wleft = weights[left]
                nextj = left
                if right < m:
                    wright = weights[right]
                    if wj >= wleft and wj >= wright:
                        break
                    if wj < wright and (wj >= wleft or wright > wleft):
                        nextj = right
                elif wj >= wleft:
                    break
                weights[j], weights[nextj] = weights[nextj], weights[j]
                order[j], order[nextj] = order[nextj], order[j]
                # the demoted child's subtree traded a heavy particle for a light one
                tweight[nextj] -= weights[j] - weights[nextj]
                j = nextj
        return order, tweight

    def _weighted_sample(self, w: float, m: int, weights: List[float], tweight: List[float]) -> int:
        i = 0
        last = 0
        while i < m:
            left = 2 * i + 1
            lweight = tweight[left] if left < m else 0.0
            if w < lweight:
                i = left
                continue
            own = weights[i]
            if w <= lweight + own:
                return i
            w -= lweight + own
            last = i
            i = left + 1
        self._overrun(f"fell off tree below node {last} with {w!r} left to place")
        return last


class OptimalResampler(Resampler):
    """Single-pass resampling driven by sorted uniform order statistics.

    Each threshold is the next order statistic of the remaining draws, so the
    source is walked once from the front without sorting or a tree.
    """

    name = "optimal"

    def resample(
        self,
        total_weight: float,
        m: int,
        source: ParticleEnsemble,
        n: int,
        destination: ParticleEnsemble,
        sort: bool,
        rng: RandomSource,
    ) -> int:
        self._check_call(m, source, n, destination)
        weights = source.weight[:m].tolist()
        indices = self._index_buffer(n)
        u = self._nform(n - 1, sort, rng) * total_weight
        j = 0
        t = 0.0
        overrun = False
        for i in range(n):
            while j < m and t + weights[j] < u:
                t += weights[j]
                j += 1
            if j < m:
                indices[i] = j
            else:
                if not overrun:
                    self._overrun(f"running sum {t!r} < threshold {u!r}")
                    overrun = True
                indices[i] = m - 1
            u = u + (total_weight - u) * self._nform(n - i - 1, sort, rng)
        return self._copy_and_scale(source, destination, indices, 1.0 / total_weight)

    @staticmethod
    def _nform(k: int, sort: bool, rng: RandomSource) -> float:
        if sort:
            return rng.polynomial(k)
        return 1.0 - rng.uniform() ** (1.0 / (k + 1))


class RegularResampler(_CumulativeResampler):
    """Systematic resampling with thresholds spaced total/(n+1) apart.

    With ``sort`` the source is shuffled first so the fixed stride does not
    line up with any ordering left over from the previous step.
    """

    name = "regular"

    def resample(
        self,
        total_weight: float,
        m: int,
        source: ParticleEnsemble,
        n: int,
        destination: ParticleEnsemble,
        sort: bool,
        rng: RandomSource,
    ) -> int:
        self._check_call(m, source, n, destination)
        if sort:
            order = list(range(m))
            for i in range(m - 1):
                j = rng.rand32() % (m - i) + i
                order[i], order[j] = order[j], order[i]
            source.permute(order, m)
        cumsum = self._prefix_sum(source, m)
        step = total_weight / (n + 1)
        thresholds = np.arange(1, n + 1, dtype=np.float64) * step
        indices = self._index_buffer(n)
        # thresholds ascend, so this matches a forward-only walk over cumsum
        indices[:] = np.searchsorted(cumsum, thresholds, side="left")
        self._clamp_indices(indices, m, cumsum[-1], total_weight)
        return self._copy_and_scale(source, destination, indices, 1.0 / total_weight)


RESAMPLERS: Dict[str, Type[Resampler]] = {
    cls.name: cls for cls in (NaiveResampler, LogmResampler, OptimalResampler, RegularResampler)
}


def make_resampler(name: str, max_particles: int = 0, strict: bool = False) -> Resampler:
    try:
        cls = RESAMPLERS[name]
    except KeyError:
        raise ConfigurationError(
            f"unknown resampler {name!r}; expected one of {', '.join(sorted(RESAMPLERS))}"
        ) from None
    return cls(max_particles, strict)
