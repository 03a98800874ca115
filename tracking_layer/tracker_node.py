from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import fields
from typing import Any, Dict, List, Optional, TextIO

from .bpf import BootstrapParticleFilter, StepEstimate
from .config import FilterConfig, load_params
from .errors import TrackingError
from .observations import Observation, ObservationFeed, Tick, read_observations
from .reporter import ParticleReporter

logger = logging.getLogger(__name__)


class TrackerNode:
    """Feeds an observation file through the particle filter."""

    def __init__(self, params: Optional[Dict[str, Any]] = None, output: Optional[TextIO] = None) -> None:
        self._params = dict(params or {})
        self._declared: set = set()
        self.output = output if output is not None else sys.stdout

        defaults = FilterConfig()
        values = {
            f.name: self._declare_default_parameter(f.name, getattr(defaults, f.name)) for f in fields(FilterConfig)
        }

        unused = sorted(set(self._params) - self._declared)
        if unused:
            logger.warning("Ignoring unknown parameters: %s", ", ".join(unused))

        self.config = FilterConfig.from_mapping(values)
        reporter = ParticleReporter(self.config.report_dir) if self.config.report_every_ms > 0 else None
        self.bpf = BootstrapParticleFilter.from_config(self.config, reporter=reporter)
        logger.info(
            "Tracker initialized: %d particles, %s resampler (sort=%s), interval %d",
            self.config.num_particles,
            self.config.resampler,
            self.config.sort,
            self.config.resample_interval,
        )

    def run(self, stream: TextIO) -> int:
        feed = ObservationFeed(read_observations(stream), self.config.report_every_ms)
        steps = 0
        for tick in feed:
            estimate = self._tick_callback(tick)
            self.output.write(self.format_step(tick.observation, estimate) + "\n")
            steps += 1
        logger.info("Processed %d filter steps", steps)
        return steps

    def _tick_callback(self, tick: Tick) -> StepEstimate:
        obs = tick.observation
        return self.bpf.step(tick.dt, obs.gps, obs.imu, report=tick.report, t=tick.t)

    @staticmethod
    def format_step(obs: Observation, estimate: StepEstimate) -> str:
        line = f"{obs.vehicle_x!r} {obs.vehicle_y!r}  {estimate.best_x!r} {estimate.best_y!r}"
        if estimate.mean_x is not None:
            line += f"  {estimate.mean_x!r} {estimate.mean_y!r}"
        return line

    def _declare_default_parameter(self, name: str, default_value):
        self._declared.add(name)
        return self._params.get(name, default_value)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Bootstrap particle filter over a vehicle observation file.")
    parser.add_argument("--file", required=True, help="observation file, '-' for stdin")
    parser.add_argument("--params-file", help="YAML file with tracker parameters")
    parser.add_argument("--nparticles", dest="num_particles", type=int)
    parser.add_argument("--sampler", dest="resampler", choices=["naive", "logm", "optimal", "regular"])
    parser.add_argument("--sort", action="store_true", default=None)
    parser.add_argument("--report-particles", dest="report_every_ms", type=int)
    parser.add_argument("--report-dir")
    parser.add_argument("--best-particle", dest="best_particle_only", action="store_true", default=None)
    parser.add_argument("--resample-interval", type=int)
    parser.add_argument("--fast-direction", action="store_true", default=None)
    parser.add_argument("--strict", action="store_true", default=None)
    parser.add_argument("--avar", type=float)
    parser.add_argument("--rvar", type=float)
    parser.add_argument("--gps-var", type=float)
    parser.add_argument("--imu-r-var", type=float)
    parser.add_argument("--imu-a-var", type=float)
    parser.add_argument("--seed", type=int)
    parser.add_argument("--log-level", default="WARNING")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="[%(levelname)s] [%(name)s]: %(message)s")

    try:
        params: Dict[str, Any] = load_params(args.params_file) if args.params_file else {}
        overrides = {
            key: value
            for key, value in vars(args).items()
            if key not in ("file", "params_file", "log_level") and value is not None
        }
        params.update(overrides)
        node = TrackerNode(params)
        if args.file == "-":
            node.run(sys.stdin)
        else:
            with open(args.file, "r", encoding="utf-8") as stream:
                node.run(stream)
    except (TrackingError, OSError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
