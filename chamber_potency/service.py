from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import logging

from .config import DEFAULTS, ConfigurationError
from .models.scenario import Scenario, build_catalog, load_catalog_from_json
from .simulation.potency import SimulationConfig, run_potency_catalog
from .analytics.outputs import PotencyChartData

logger = logging.getLogger(__name__)


# --------- User input schema ---------


@dataclass
class ScenarioInput:
    """One inline scenario: a label and its daily injection volume (oz/day)."""

    label: str
    daily_injection_volume: float


@dataclass
class UserConfig:
    """Top-level request for building one potency chart."""

    chamber_volume: float = DEFAULTS.chamber_volume
    half_life_days: float = DEFAULTS.half_life_days
    horizon_days: int = DEFAULTS.horizon_days
    granularity: str = DEFAULTS.granularity

    # Scenario source: inline scenarios win over a catalog file; with neither
    # the built-in catalog is used.
    scenarios: List[ScenarioInput] = field(default_factory=list)
    catalog_path: Optional[str] = None

    include_baseline: bool = True
    baseline_reference_day: float = DEFAULTS.baseline_reference_day


# --------- Helper functions ---------


def _resolve_scenarios(user_config: UserConfig) -> List[Scenario]:
    if user_config.scenarios:
        return [
            Scenario(label=s.label, daily_injection_volume=float(s.daily_injection_volume))
            for s in user_config.scenarios
        ]
    if user_config.catalog_path is not None:
        return load_catalog_from_json(Path(user_config.catalog_path))
    return build_catalog()


def build_simulation_config(user_config: UserConfig) -> SimulationConfig:
    return SimulationConfig(
        chamber_volume=float(user_config.chamber_volume),
        half_life_days=float(user_config.half_life_days),
        granularity=user_config.granularity,  # type: ignore[arg-type]
        horizon_days=user_config.horizon_days,
    )


# --------- Public API ---------


def run_potency_chart(user_config: UserConfig) -> PotencyChartData:
    """High-level entry point: resolve scenarios, simulate, return chart data."""
    sim_cfg = build_simulation_config(user_config)
    scenarios = _resolve_scenarios(user_config)
    if not scenarios:
        raise ConfigurationError("At least one scenario is required")

    chart = run_potency_catalog(
        scenarios,
        sim_cfg,
        reference_day=float(user_config.baseline_reference_day),
        include_baseline=user_config.include_baseline,
    )
    logger.info(
        "Potency chart: %d scenarios, %s sampling over %d days (V=%.2f, half-life=%.4f d)",
        len(scenarios), sim_cfg.granularity, sim_cfg.horizon_days,
        sim_cfg.chamber_volume, sim_cfg.half_life_days,
    )
    return chart
