# src/stochvol/sde/simulators/path_generator.py
from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
import pandas as pd

from stochvol.sde.process import StochasticProcess
from stochvol.sde.schemas import SimConfig

LOGGER = logging.getLogger(__name__)


def rng_with_seed(seed: int | None) -> np.random.Generator:
    """Create a numpy Generator deterministically from seed if provided."""
    return np.random.default_rng(seed)


def uniform_time_grid(n_steps: int, dt: float) -> np.ndarray:
    """Times 0, dt, ..., n_steps * dt."""
    if n_steps < 1:
        raise ValueError("n_steps must be >= 1")
    if dt <= 0.0:
        raise ValueError("dt must be positive")
    return np.arange(n_steps + 1, dtype=float) * dt


def generate_paths(process: StochasticProcess, sim: SimConfig) -> np.ndarray:
    """
    Simulate `sim.n_paths` paths of `process` on a uniform grid.

    Each step calls `process.evolve(t, x, dt, z)` with z ~ N(0, I) of
    dimension `process.factors()`.

    Returns:
        paths: np.ndarray shaped (n_paths, n_steps + 1, process.size())
    """
    rng = rng_with_seed(sim.seed)
    n_paths, n_steps, dt = sim.n_paths, sim.n_steps, sim.dt
    times = uniform_time_grid(n_steps, dt)
    size = process.size()
    factors = process.factors()

    LOGGER.info(
        "Generating %d paths x %d steps (dt=%.6f) for %s",
        n_paths,
        n_steps,
        dt,
        type(process).__name__,
    )

    x0 = process.initial_values()
    paths = np.empty((n_paths, n_steps + 1, size), dtype=float)
    paths[:, 0, :] = x0

    z = rng.standard_normal(size=(n_paths, n_steps, factors))
    for i in range(n_paths):
        x = x0
        for k in range(n_steps):
            x = process.evolve(times[k], x, dt, z[i, k])
            paths[i, k + 1, :] = x

    LOGGER.info("Path generation finished.")
    return paths


def paths_to_frame(
    paths: np.ndarray,
    times: np.ndarray,
    state_names: Sequence[str] | None = None,
) -> pd.DataFrame:
    """
    Long-format table of simulated paths.

    Columns: path, step, time, then one column per state variable.
    """
    if paths.ndim != 3:
        raise ValueError("paths must be shaped (n_paths, n_steps + 1, size)")
    n_paths, n_points, size = paths.shape
    if times.shape != (n_points,):
        raise ValueError(
            f"times must have length {n_points}, got shape {times.shape}"
        )
    if state_names is None:
        state_names = [f"x{j}" for j in range(size)]
    if len(state_names) != size:
        raise ValueError("state_names length must match state dimension")

    frame = pd.DataFrame(
        {
            "path": np.repeat(np.arange(n_paths), n_points),
            "step": np.tile(np.arange(n_points), n_paths),
            "time": np.tile(times, n_paths),
        }
    )
    flat = paths.reshape(n_paths * n_points, size)
    for j, name in enumerate(state_names):
        frame[name] = flat[:, j]
    return frame


__all__ = ["rng_with_seed", "uniform_time_grid", "generate_paths", "paths_to_frame"]
