# src/stochvol/sde/heston.py
"""
Heston stochastic-volatility process.

    dS_t = (r_t - q_t) S_t dt + sqrt(v_t) S_t dW^S_t
    dv_t = kappa (theta - v_t) dt + sigma sqrt(v_t) dW^v_t
    d<W^S, W^v>_t = rho dt

The state vector is x = [S, v]. Drift and diffusion are written for the
log-price, and `apply` maps the log increment back multiplicatively, so the
price stays positive under any Gaussian step.

The variance may go negative between steps under Euler-type schemes. It is
never clamped when the state is updated; drift and diffusion floor it at
zero when they read it ("full truncation", see Lord, Koekkoek and van Dijk
(2006), "A comparison of biased simulation schemes for stochastic
volatility models"), which gives the smallest bias among the plain
truncation variants.
"""
from __future__ import annotations

import logging
import math
from datetime import date
from typing import Optional, Sequence

import numpy as np

from stochvol.core.handle import Handle, RelinkableHandle
from stochvol.market.quote import Quote, SimpleQuote
from stochvol.market.term_structure import Compounding, YieldTermStructure
from stochvol.sde.process import Discretization, StochasticProcess

LOGGER = logging.getLogger(__name__)


def _as_handle(obj) -> Handle:
    if isinstance(obj, Handle):
        return obj
    return Handle(obj)


def _as_quote_handle(obj) -> Handle:
    if isinstance(obj, (Handle, Quote)):
        return _as_handle(obj)
    return Handle(SimpleQuote(obj))


class HestonProcess(StochasticProcess):
    """
    Parameters
    ----------
    risk_free_rate, dividend_yield : Handle[YieldTermStructure] | YieldTermStructure
        Curves supplying the instantaneous forward rates r_t and q_t.
    s0 : Handle[Quote] | Quote | float
        Spot price.
    v0, kappa, theta, sigma, rho : float
        Initial variance, mean-reversion speed, long-run variance,
        volatility of variance and spot/variance correlation. Each one is
        wrapped in its own relinkable handle so it can be rebound later
        without rebuilding the process. Values are not validated.
    discretization : Discretization, optional
        Scheme used by `expectation`/`std_deviation`/`evolve`;
        Euler by default.
    """

    state_names = ("spot", "variance")

    def __init__(
        self,
        risk_free_rate: Handle | YieldTermStructure,
        dividend_yield: Handle | YieldTermStructure,
        s0: Handle | Quote | float,
        v0: float,
        kappa: float,
        theta: float,
        sigma: float,
        rho: float,
        discretization: Optional[Discretization] = None,
    ) -> None:
        super().__init__(discretization)
        self._risk_free_rate = _as_handle(risk_free_rate)
        self._dividend_yield = _as_handle(dividend_yield)
        self._s0 = _as_quote_handle(s0)
        self._v0 = RelinkableHandle(SimpleQuote(v0))
        self._kappa = RelinkableHandle(SimpleQuote(kappa))
        self._theta = RelinkableHandle(SimpleQuote(theta))
        self._sigma = RelinkableHandle(SimpleQuote(sigma))
        self._rho = RelinkableHandle(SimpleQuote(rho))

        for h in (
            self._risk_free_rate,
            self._dividend_yield,
            self._s0,
            self._v0,
            self._kappa,
            self._theta,
            self._sigma,
            self._rho,
        ):
            self.register_with(h)

        LOGGER.debug(
            "HestonProcess created: v0=%s kappa=%s theta=%s sigma=%s rho=%s",
            v0,
            kappa,
            theta,
            sigma,
            rho,
        )

    # ------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------
    @property
    def risk_free_rate(self) -> Handle:
        return self._risk_free_rate

    @property
    def dividend_yield(self) -> Handle:
        return self._dividend_yield

    @property
    def s0(self) -> Handle:
        return self._s0

    @property
    def v0(self) -> RelinkableHandle:
        return self._v0

    @property
    def kappa(self) -> RelinkableHandle:
        return self._kappa

    @property
    def theta(self) -> RelinkableHandle:
        return self._theta

    @property
    def sigma(self) -> RelinkableHandle:
        return self._sigma

    @property
    def rho(self) -> RelinkableHandle:
        return self._rho

    # ------------------------------------------------------------
    # Process contract
    # ------------------------------------------------------------
    def size(self) -> int:
        return 2

    def initial_values(self) -> np.ndarray:
        return np.array(
            [
                self._s0.current_link().value(),
                self._v0.current_link().value(),
            ]
        )

    def drift(self, t: float, x: Sequence[float]) -> np.ndarray:
        vol = math.sqrt(x[1]) if x[1] > 0.0 else 0.0
        r = self._risk_free_rate.current_link().forward_rate(
            t, t, Compounding.CONTINUOUS
        )
        q = self._dividend_yield.current_link().forward_rate(
            t, t, Compounding.CONTINUOUS
        )
        kappa = self._kappa.current_link().value()
        theta = self._theta.current_link().value()
        # floored variance in both components (full truncation)
        return np.array([r - q - 0.5 * vol * vol, kappa * (theta - vol * vol)])

    def diffusion(self, t: float, x: Sequence[float]) -> np.ndarray:
        # correlation matrix [[1, rho], [rho, 1]] has the square root
        # [[1, 0], [rho, sqrt(1 - rho^2)]]
        rho = self._rho.current_link().value()
        sigma1 = math.sqrt(x[1]) if x[1] > 0.0 else 0.0
        sigma2 = self._sigma.current_link().value() * sigma1
        return np.array(
            [
                [sigma1, 0.0],
                [rho * sigma2, math.sqrt(1.0 - rho * rho) * sigma2],
            ]
        )

    def apply(self, x0: Sequence[float], dx: Sequence[float]) -> np.ndarray:
        return np.array([x0[0] * math.exp(dx[0]), x0[1] + dx[1]])

    def time(self, d: date) -> float:
        curve = self._risk_free_rate.current_link()
        return curve.day_counter().year_fraction(curve.reference_date(), d)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={self.size()})"


__all__ = ["HestonProcess"]
