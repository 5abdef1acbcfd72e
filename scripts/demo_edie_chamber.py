from __future__ import annotations

import logging

from chamber_potency.logging_config import setup_logging
from chamber_potency.models.scenario import build_catalog
from chamber_potency.models.units import format_gph
from chamber_potency.simulation.potency import (
    SimulationConfig,
    run_potency_catalog,
    simulate_ramp_up,
)
from chamber_potency.analytics.summary import compute_scenario_summaries


def main() -> None:
    setup_logging(logging.INFO)

    scenarios = build_catalog()
    for granularity in ("daily", "twice_daily"):
        sim_cfg = SimulationConfig(granularity=granularity, horizon_days=14)
        chart = run_potency_catalog(scenarios, sim_cfg)
        print(chart.to_dict())

        for s in compute_scenario_summaries(chart):
            reach = "never" if s.days_to_target_from_empty is None else f"{s.days_to_target_from_empty:.1f} d"
            print(
                f"  {s.label:>6}: {s.daily_injection_volume:.2f} oz/day ({format_gph(s.daily_injection_volume)} gph)"
                f"  steady {s.steady_state_pct:6.2f}%  from empty reaches target: {reach}"
            )

    # Recovery protocol: double rate from empty, standard rate once on target.
    sim_cfg = SimulationConfig()
    for scenario in scenarios:
        ramp = simulate_ramp_up(scenario, sim_cfg)
        print(
            f"  ramp {scenario.label:>6}: {ramp.ramp_daily_volume:.2f} oz/day until "
            f"{ramp.target_potency:.0f}% (switch at day {ramp.switch_day})"
        )


if __name__ == "__main__":
    main()
