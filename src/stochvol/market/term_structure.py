# src/stochvol/market/term_structure.py
from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np
from scipy.optimize import minimize

from stochvol.core.handle import Handle
from stochvol.core.observer import Observable, Observer
from stochvol.market.daycount import Actual365Fixed, DayCounter
from stochvol.market.quote import Quote, SimpleQuote

LOGGER = logging.getLogger(__name__)

# window used to approximate an instantaneous forward when t1 == t2
_FORWARD_DT = 1.0e-4


class Compounding(str, Enum):
    SIMPLE = "simple"
    CONTINUOUS = "continuous"


# ------------------------------------------------------------
# Base curve
# ------------------------------------------------------------
class YieldTermStructure(Observable, Observer, ABC):
    """
    Interest-rate curve anchored at a reference date.

    Subclasses provide `_discount_impl(t)`; rates are derived from discount
    factors. Times are year fractions under the curve's day counter.
    """

    def __init__(
        self, reference_date: date, day_counter: Optional[DayCounter] = None
    ) -> None:
        super().__init__()
        self._reference_date = reference_date
        self._day_counter = day_counter or Actual365Fixed()

    def reference_date(self) -> date:
        return self._reference_date

    def day_counter(self) -> DayCounter:
        return self._day_counter

    def time_from_reference(self, d: date) -> float:
        return self._day_counter.year_fraction(self._reference_date, d)

    def update(self) -> None:
        self.notify_observers()

    @abstractmethod
    def _discount_impl(self, t: float) -> float:
        ...

    def discount(self, t: float) -> float:
        if t < 0.0:
            raise ValueError(f"negative time ({t}) given")
        return float(self._discount_impl(t))

    def zero_rate(self, t: float) -> float:
        """Continuously compounded zero rate to time t."""
        if t == 0.0:
            return self.forward_rate(0.0, 0.0)
        return -math.log(self.discount(t)) / t

    def forward_rate(
        self,
        t1: float,
        t2: float,
        compounding: Compounding = Compounding.CONTINUOUS,
    ) -> float:
        """
        Forward rate between t1 and t2.

        For t1 == t2 the instantaneous forward is approximated over a short
        window around t1 (clamped at the reference date).
        """
        if t2 < t1:
            raise ValueError(f"t2 ({t2}) < t1 ({t1})")
        if t2 == t1:
            t1 = max(t1 - _FORWARD_DT / 2.0, 0.0)
            t2 = t1 + _FORWARD_DT
        ratio = self.discount(t1) / self.discount(t2)
        if compounding is Compounding.CONTINUOUS:
            return math.log(ratio) / (t2 - t1)
        if compounding is Compounding.SIMPLE:
            return (ratio - 1.0) / (t2 - t1)
        raise ValueError(f"unknown compounding: {compounding}")


# ------------------------------------------------------------
# Flat forward curve
# ------------------------------------------------------------
class FlatForward(YieldTermStructure):
    """
    Constant continuously-compounded forward rate.

    `forward` may be a number, a Quote or a Handle to a Quote; the curve
    observes it so that rate changes reach dependents.
    """

    def __init__(
        self,
        reference_date: date,
        forward: float | Quote | Handle,
        day_counter: Optional[DayCounter] = None,
    ) -> None:
        super().__init__(reference_date, day_counter)
        if isinstance(forward, Handle):
            self._forward = forward
        elif isinstance(forward, Quote):
            self._forward = Handle(forward)
        else:
            self._forward = Handle(SimpleQuote(float(forward)))
        self.register_with(self._forward)

    def rate(self) -> float:
        return self._forward.current_link().value()

    def _discount_impl(self, t: float) -> float:
        return math.exp(-self.rate() * t)

    def forward_rate(
        self,
        t1: float,
        t2: float,
        compounding: Compounding = Compounding.CONTINUOUS,
    ) -> float:
        if compounding is Compounding.CONTINUOUS:
            if t1 < 0.0 or t2 < t1:
                raise ValueError(f"invalid interval [{t1}, {t2}]")
            return self.rate()
        return super().forward_rate(t1, t2, compounding)


# ------------------------------------------------------------
# Nelson–Siegel zero curve
# ------------------------------------------------------------
@dataclass
class NSParams:
    beta0: float
    beta1: float
    beta2: float
    tau: float


def ns_yield(maturities: np.ndarray | float, params: NSParams) -> np.ndarray | float:
    """
    Nelson–Siegel yield(s). **Returns yields in percent** (e.g. 2.5 means 2.5%).
    Accepts scalar or array maturities (years).
    """
    m = np.asarray(maturities, dtype=float)
    tau = float(params.tau)
    if tau <= 0:
        raise ValueError("tau must be positive")

    with np.errstate(divide="ignore", invalid="ignore"):
        x = np.where(m == 0, 1.0, m / tau)
        term1 = np.where(m == 0, 1.0, (1 - np.exp(-x)) / x)
        term2 = np.where(m == 0, 0.0, term1 - np.exp(-x))

    y = params.beta0 + params.beta1 * term1 + params.beta2 * term2
    return float(y) if np.isscalar(maturities) else y


def fit_ns(
    maturities: Sequence[float] | np.ndarray,
    yields: Sequence[float] | np.ndarray,
    initial: Optional[Sequence[float]] = None,
) -> Tuple[NSParams, Dict[str, Any]]:
    """
    Least-squares Nelson–Siegel fit to observed zero yields (in percent).

    Returns (NSParams, optimization_result).
    """
    t = np.asarray(maturities, dtype=float)
    y_obs = np.asarray(yields, dtype=float)
    if t.shape != y_obs.shape or t.ndim != 1:
        raise ValueError("maturities and yields must be 1D arrays of equal length")
    if t.size < 4:
        raise ValueError("Nelson–Siegel fit needs at least 4 points")

    if initial is None:
        beta0_0 = float(y_obs[-1])
        beta1_0 = float(y_obs[0] - y_obs[-1])
        beta2_0 = 0.0
        tau_0 = max(0.5, float(np.median(t)))
        initial = [beta0_0, beta1_0, beta2_0, tau_0]

    def loss(theta):
        b0, b1, b2, tau = theta
        if tau <= 0:
            return 1e8 + abs(tau) * 1e4
        y_pred = ns_yield(t, NSParams(b0, b1, b2, tau))
        return float(np.sum((y_pred - y_obs) ** 2))

    bounds = [(None, None), (None, None), (None, None), (1e-6, None)]
    res = minimize(loss, x0=initial, bounds=bounds, method="L-BFGS-B")
    if not res.success:
        LOGGER.warning("Nelson–Siegel fit did not converge: %s", res.message)
    return NSParams(*(float(v) for v in res.x)), res


class NelsonSiegelCurve(YieldTermStructure):
    """Zero curve driven by Nelson–Siegel parameters (yields quoted in percent)."""

    def __init__(
        self,
        reference_date: date,
        params: NSParams,
        day_counter: Optional[DayCounter] = None,
    ) -> None:
        super().__init__(reference_date, day_counter)
        if params.tau <= 0:
            raise ValueError("tau must be positive")
        self._params = params

    @classmethod
    def fit(
        cls,
        reference_date: date,
        maturities: Sequence[float] | np.ndarray,
        yields_pct: Sequence[float] | np.ndarray,
        day_counter: Optional[DayCounter] = None,
    ) -> "NelsonSiegelCurve":
        params, _ = fit_ns(maturities, yields_pct)
        return cls(reference_date, params, day_counter)

    @property
    def params(self) -> NSParams:
        return self._params

    def set_params(self, params: NSParams) -> None:
        if params.tau <= 0:
            raise ValueError("tau must be positive")
        self._params = params
        self.notify_observers()

    def zero_rate(self, t: float) -> float:
        if t < 0.0:
            raise ValueError(f"negative time ({t}) given")
        return ns_yield(float(t), self._params) / 100.0

    def _discount_impl(self, t: float) -> float:
        return math.exp(-self.zero_rate(t) * t)


__all__ = [
    "Compounding",
    "YieldTermStructure",
    "FlatForward",
    "NSParams",
    "ns_yield",
    "fit_ns",
    "NelsonSiegelCurve",
]
