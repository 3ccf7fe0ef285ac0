from __future__ import annotations

import json
from pathlib import Path

import yaml
from pydantic import ValidationError

from stochvol.market.daycount import day_counter_from_name
from stochvol.market.quote import SimpleQuote
from stochvol.market.term_structure import FlatForward
from stochvol.runner.config.models import SimulationRunConfig
from stochvol.sde.heston import HestonProcess


def load_config(path: str | Path) -> SimulationRunConfig:
    """
    Load a SimulationRunConfig from YAML or JSON.

    Validated with Pydantic v2.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    text = path.read_text()

    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            raw = yaml.safe_load(text)
        elif path.suffix.lower() == ".json":
            raw = json.loads(text)
        else:
            raise ValueError("Config path must be YAML or JSON.")
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ValueError(f"Failed to parse config: {e}") from e

    try:
        return SimulationRunConfig.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid SimulationRunConfig: {e}") from e


def build_process(cfg: SimulationRunConfig) -> HestonProcess:
    """Flat risk-free / dividend curves + spot quote + HestonProcess."""
    market = cfg.market
    day_counter = day_counter_from_name(market.day_counter)
    risk_free = FlatForward(market.reference_date, market.risk_free_rate, day_counter)
    dividend = FlatForward(market.reference_date, market.dividend_yield, day_counter)
    p = cfg.heston
    return HestonProcess(
        risk_free,
        dividend,
        SimpleQuote(market.spot),
        v0=p.v0,
        kappa=p.kappa,
        theta=p.theta,
        sigma=p.sigma,
        rho=p.rho,
    )
