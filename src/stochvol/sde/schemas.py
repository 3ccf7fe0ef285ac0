# src/stochvol/sde/schemas.py
from __future__ import annotations

import datetime as _dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stochvol.market.daycount import day_counter_from_name


class SimConfig(BaseModel):
    """
    Generic simulation configuration.

    n_paths: number of Monte-Carlo paths
    n_steps: number of time steps (path length will be n_steps + 1 including t=0)
    dt: timestep size (in years)
    seed: Optional RNG seed for deterministic runs
    """

    model_config = ConfigDict(extra="forbid")

    n_paths: int = Field(..., ge=1)
    n_steps: int = Field(..., ge=1)
    dt: float = Field(..., gt=0.0)
    seed: Optional[int] = None


class HestonParams(BaseModel):
    """
    Heston model parameters:

        dS_t = (r - q) S_t dt + sqrt(v_t) S_t dW^S_t
        dv_t = kappa (theta - v_t) dt + sigma sqrt(v_t) dW^v_t

    Only the correlation is constrained; whether the remaining values make
    sense is left to whoever builds the process.
    """

    model_config = ConfigDict(extra="forbid")

    v0: float = Field(..., description="Initial variance.")
    kappa: float = Field(..., description="Mean reversion speed.")
    theta: float = Field(..., description="Long-run variance.")
    sigma: float = Field(..., description="Volatility of variance.")
    rho: float = Field(..., ge=-1.0, le=1.0, description="Spot/variance correlation.")

    def feller_satisfied(self) -> bool:
        """2 kappa theta >= sigma^2: variance stays strictly positive."""
        return 2.0 * self.kappa * self.theta >= self.sigma**2


class MarketConfig(BaseModel):
    """
    Flat market used to drive the process.

    risk_free_rate / dividend_yield are continuously-compounded decimals
    (0.03 means 3%).
    """

    model_config = ConfigDict(extra="forbid")

    reference_date: _dt.date
    spot: float = Field(..., gt=0.0)
    risk_free_rate: float
    dividend_yield: float = 0.0
    day_counter: str = "Actual/365 (Fixed)"

    @field_validator("day_counter")
    @classmethod
    def _known_day_counter(cls, v: str) -> str:
        day_counter_from_name(v)
        return v


__all__ = ["SimConfig", "HestonParams", "MarketConfig"]
