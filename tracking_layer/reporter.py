from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .particle import ParticleEnsemble

logger = logging.getLogger(__name__)


@dataclass
class ParticleReporter:
    """Appends ``x y w`` lines for every particle to particles-<t>.dat."""

    directory: Path | str = "benchtmp"

    def path_for(self, t: float) -> Path:
        return Path(self.directory) / f"particles-{t!r}.dat"

    def publish(self, t: float, ensemble: ParticleEnsemble) -> Path:
        path = self.path_for(t)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            for x, y, w in ensemble.particles():
                f.write(f"{x!r} {y!r} {w!r}\n")
        logger.debug("wrote %d particles to %s", len(ensemble), path)
        return path
