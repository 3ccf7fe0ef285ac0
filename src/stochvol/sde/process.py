# src/stochvol/sde/process.py
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from datetime import date
from typing import Optional, Protocol, Sequence

import numpy as np

from stochvol.core.observer import Observable, Observer


class Discretization(Protocol):
    """Turns drift and diffusion into a finite-step increment."""

    def drift(
        self, process: "StochasticProcess", t0: float, x0: np.ndarray, dt: float
    ) -> np.ndarray:
        ...

    def diffusion(
        self, process: "StochasticProcess", t0: float, x0: np.ndarray, dt: float
    ) -> np.ndarray:
        ...

    def covariance(
        self, process: "StochasticProcess", t0: float, x0: np.ndarray, dt: float
    ) -> np.ndarray:
        ...


class EulerDiscretization:
    """
    Euler scheme:
        drift     -> mu(t0, x0) * dt
        diffusion -> sigma(t0, x0) * sqrt(dt)
        covariance-> sigma sigma^T dt
    """

    def drift(self, process, t0, x0, dt):
        return process.drift(t0, x0) * dt

    def diffusion(self, process, t0, x0, dt):
        return process.diffusion(t0, x0) * math.sqrt(dt)

    def covariance(self, process, t0, x0, dt):
        sigma = process.diffusion(t0, x0)
        return sigma @ sigma.T * dt


class StochasticProcess(Observable, Observer, ABC):
    """
    Multi-dimensional SDE  dx = mu(t, x) dt + sigma(t, x) dW.

    A process is a per-step evaluator: a driver asks for drift/diffusion (or
    calls `evolve`) at each point of its time grid. The process observes its
    inputs and forwards their notifications to its own observers.
    """

    def __init__(self, discretization: Optional[Discretization] = None) -> None:
        super().__init__()
        self.discretization: Discretization = (
            discretization if discretization is not None else EulerDiscretization()
        )

    @abstractmethod
    def size(self) -> int:
        ...

    def factors(self) -> int:
        """Number of Brownian drivers."""
        return self.size()

    @abstractmethod
    def initial_values(self) -> np.ndarray:
        ...

    @abstractmethod
    def drift(self, t: float, x: Sequence[float]) -> np.ndarray:
        ...

    @abstractmethod
    def diffusion(self, t: float, x: Sequence[float]) -> np.ndarray:
        ...

    def expectation(self, t0: float, x0: Sequence[float], dt: float) -> np.ndarray:
        x0 = np.asarray(x0, dtype=float)
        return self.apply(x0, self.discretization.drift(self, t0, x0, dt))

    def std_deviation(self, t0: float, x0: Sequence[float], dt: float) -> np.ndarray:
        x0 = np.asarray(x0, dtype=float)
        return self.discretization.diffusion(self, t0, x0, dt)

    def covariance(self, t0: float, x0: Sequence[float], dt: float) -> np.ndarray:
        x0 = np.asarray(x0, dtype=float)
        return self.discretization.covariance(self, t0, x0, dt)

    def evolve(
        self, t0: float, x0: Sequence[float], dt: float, dw: Sequence[float]
    ) -> np.ndarray:
        """
        One step of the process given independent standard normal draws `dw`
        (length `factors()`).
        """
        dw = np.asarray(dw, dtype=float)
        return self.apply(
            self.expectation(t0, x0, dt), self.std_deviation(t0, x0, dt) @ dw
        )

    def apply(self, x0: Sequence[float], dx: Sequence[float]) -> np.ndarray:
        return np.asarray(x0, dtype=float) + np.asarray(dx, dtype=float)

    def time(self, d: date) -> float:
        raise NotImplementedError(
            f"{type(self).__name__} does not map dates to times"
        )

    def update(self) -> None:
        self.notify_observers()

    def close(self) -> None:
        """Drop every subscription this process holds."""
        self.unregister_with_all()


__all__ = ["Discretization", "EulerDiscretization", "StochasticProcess"]
