from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..models.scenario import Scenario, target_from_label
from ..models.units import oz_per_day_to_gph
from ..simulation.potency import steady_state_potency
from .outputs import PotencyChartData, PotencySeries


@dataclass
class ScenarioSummary:
    label: str
    daily_injection_volume: float
    flow_rate_gph: float
    target_potency: Optional[float]
    steady_state_pct: float
    final_from_full_pct: float
    final_from_empty_pct: float
    convergence_gap_pct: float
    days_to_target_from_empty: Optional[float]


def _first_crossing(series: PotencySeries, target: Optional[float]) -> Optional[float]:
    if target is None:
        return None
    hits = np.flatnonzero(series.potency_pct >= target)
    if hits.size == 0:
        return None
    return float(series.time_days[int(hits[0])])


def compute_scenario_summaries(chart: PotencyChartData) -> List[ScenarioSummary]:
    """Per-scenario summary metrics, highest injection volume first."""
    entries: List[ScenarioSummary] = []
    for label, full in chart.maintenance.items():
        volume = chart.volumes.get(label, 0.0)
        empty = chart.recovery.get(label)
        target = target_from_label(label)
        steady = steady_state_potency(
            Scenario(label=label, daily_injection_volume=volume), chart.config
        )
        final_empty = empty.final_potency if empty is not None else float("nan")

        entries.append(
            ScenarioSummary(
                label=label,
                daily_injection_volume=volume,
                flow_rate_gph=oz_per_day_to_gph(volume),
                target_potency=target,
                steady_state_pct=steady,
                final_from_full_pct=full.final_potency,
                final_from_empty_pct=final_empty,
                convergence_gap_pct=abs(full.final_potency - final_empty),
                days_to_target_from_empty=_first_crossing(empty, target) if empty is not None else None,
            )
        )

    entries.sort(key=lambda e: e.daily_injection_volume, reverse=True)
    return entries
