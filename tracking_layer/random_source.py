from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

DEFAULT_SEED = 17


@dataclass
class RandomSource:
    """Seedable variate stream shared by propagation and resampling.

    Every draw advances one ``numpy.random.Generator``; two sources built
    from the same seed produce identical sequences.
    """

    seed: int = DEFAULT_SEED
    generator: np.random.Generator = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.generator = np.random.Generator(np.random.PCG64(self.seed))

    def uniform(self) -> float:
        """Uniform variate in [0, 1)."""
        return float(self.generator.random())

    def uniforms(self, count: int) -> np.ndarray:
        """``count`` consecutive uniform variates as one array."""
        return self.generator.random(count)

    def normal(self) -> float:
        return float(self.generator.standard_normal())

    def gaussian(self, sigma: float) -> float:
        return self.normal() * sigma

    def polynomial(self, n: int) -> float:
        """Variate on [0, 1) with density proportional to (1 - x)**n."""
        return 1.0 - self.uniform() ** (1.0 / (n + 1.0))

    def rand32(self) -> int:
        return int(self.generator.integers(0, 1 << 32, dtype=np.uint64))
