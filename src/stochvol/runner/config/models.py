from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from stochvol.sde.schemas import HestonParams, MarketConfig, SimConfig


# ============================================================
# Top-level run configuration
# ============================================================


class SimulationRunConfig(BaseModel):
    """
    Everything needed to build a Heston process on a flat market and
    simulate it.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = "default_run"

    market: MarketConfig
    heston: HestonParams
    simulation: SimConfig

    output_path: Optional[str] = None
