from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pandas as pd

from stochvol.runner.config.loader import build_process, load_config
from stochvol.runner.config.models import SimulationRunConfig
from stochvol.sde.simulators.path_generator import (
    generate_paths,
    paths_to_frame,
    uniform_time_grid,
)

LOGGER = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    config: SimulationRunConfig
    times: np.ndarray
    paths: np.ndarray
    frame: pd.DataFrame

    def terminal(self) -> pd.DataFrame:
        """Rows of the last time step, one per path."""
        last = self.frame["step"].max()
        return self.frame[self.frame["step"] == last].reset_index(drop=True)

    def summary(self) -> dict[str, float]:
        term = self.terminal()
        return {
            "mean_terminal_spot": float(term["spot"].mean()),
            "mean_terminal_variance": float(term["variance"].mean()),
            "negative_variance_fraction": float((self.frame["variance"] < 0.0).mean()),
        }


def run_simulation(
    cfg: SimulationRunConfig, output_path: str | Path | None = None
) -> SimulationResult:
    if cfg.heston.feller_satisfied():
        LOGGER.info("Feller condition satisfied.")
    else:
        LOGGER.info("Feller condition violated; variance may touch zero.")

    process = build_process(cfg)
    try:
        sim = cfg.simulation
        times = uniform_time_grid(sim.n_steps, sim.dt)
        paths = generate_paths(process, sim)
    finally:
        process.close()

    frame = paths_to_frame(paths, times, process.state_names)

    out = output_path if output_path is not None else cfg.output_path
    if out is not None:
        out = Path(out)
        out.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(out, index=False)
        LOGGER.info("Saved %d rows to %s", len(frame), out)

    return SimulationResult(config=cfg, times=times, paths=paths, frame=frame)


def run_from_config(
    path: str | Path,
    output_path: str | Path | None = None,
) -> SimulationResult:
    LOGGER.info("Loading config: %s", path)
    cfg = load_config(path)
    return run_simulation(cfg, output_path=output_path)
