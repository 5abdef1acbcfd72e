from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Literal, Optional

import logging
import math

import numpy as np

from ..config import DEFAULTS, ConfigurationError
from ..models.scenario import Scenario
from ..analytics.outputs import PotencyChartData, PotencySeries
from .baseline import corrected_baseline

logger = logging.getLogger(__name__)

Granularity = Literal["daily", "twice_daily"]

STEPS_PER_DAY: Dict[str, int] = {"daily": 1, "twice_daily": 2}


@dataclass
class SimulationConfig:
    """Chamber and sampling configuration shared by every scenario in a run.

    Each step first decays potency by ``step_decay_factor`` and then mixes in
    the per-step injection volume:

        P <- P * g
        P <- P * (1 - v / V) + v * 100 / V

    With ``twice_daily`` sampling a day is two half-steps: ``g`` is the square
    root of the daily factor and ``v`` half the daily injection volume.
    """

    chamber_volume: float = DEFAULTS.chamber_volume
    half_life_days: float = DEFAULTS.half_life_days
    granularity: Granularity = "daily"
    horizon_days: int = DEFAULTS.horizon_days

    def __post_init__(self) -> None:
        if not math.isfinite(self.chamber_volume) or self.chamber_volume <= 0.0:
            raise ConfigurationError(f"chamber_volume must be > 0, got {self.chamber_volume}")
        if not math.isfinite(self.half_life_days) or self.half_life_days <= 0.0:
            raise ConfigurationError(f"half_life_days must be > 0, got {self.half_life_days}")
        if self.granularity not in STEPS_PER_DAY:
            raise ConfigurationError(
                f"Unsupported granularity={self.granularity!r}, expected one of {sorted(STEPS_PER_DAY)}"
            )
        if (
            not math.isfinite(self.horizon_days)
            or int(self.horizon_days) != self.horizon_days
            or self.horizon_days < 1
        ):
            raise ConfigurationError(f"horizon_days must be a positive integer, got {self.horizon_days}")
        self.horizon_days = int(self.horizon_days)

    @property
    def steps_per_day(self) -> int:
        return STEPS_PER_DAY[self.granularity]

    @property
    def n_steps(self) -> int:
        return self.horizon_days * self.steps_per_day

    @property
    def daily_decay_factor(self) -> float:
        return 0.5 ** (1.0 / self.half_life_days)

    @property
    def step_decay_factor(self) -> float:
        if self.steps_per_day == 1:
            return self.daily_decay_factor
        return self.daily_decay_factor ** 0.5

    def sample_times(self) -> np.ndarray:
        return np.arange(self.n_steps + 1, dtype=float) / self.steps_per_day


def _check_volume(scenario: Scenario, config: SimulationConfig) -> None:
    # Volumes above capacity turn the mixing coefficient negative.
    if scenario.daily_injection_volume > config.chamber_volume:
        raise ConfigurationError(
            f"Scenario {scenario.label!r}: daily_injection_volume={scenario.daily_injection_volume} "
            f"exceeds chamber_volume={config.chamber_volume}"
        )


def _advance(potency: float, decay: float, volume: float, chamber_volume: float) -> float:
    """One decay-then-displacement step."""
    potency *= decay
    return potency * (1 - volume / chamber_volume) + (volume * 100) / chamber_volume


def simulate(scenario: Scenario, config: SimulationConfig) -> PotencySeries:
    """Run the decay-displacement recurrence for one scenario.

    Returns ``horizon_days * steps_per_day + 1`` samples; the first equals
    ``scenario.start_potency`` exactly.
    """
    _check_volume(scenario, config)

    n = config.n_steps
    decay = config.step_decay_factor
    volume = scenario.daily_injection_volume / config.steps_per_day
    V = config.chamber_volume

    values = np.zeros(n + 1, dtype=float)
    potency = float(scenario.start_potency)
    values[0] = potency
    for i in range(1, n + 1):
        potency = _advance(potency, decay, volume, V)
        values[i] = potency

    logger.debug(
        "Simulated %s from %.1f%%: %d samples, final %.4f%%",
        scenario.label, scenario.start_potency, n + 1, potency,
    )
    return PotencySeries(
        label=scenario.label,
        start_potency=float(scenario.start_potency),
        time_days=config.sample_times(),
        potency_pct=values,
    )


def steady_state_potency(scenario: Scenario, config: SimulationConfig) -> float:
    """Fixed point of the per-step update; every start potency converges to it."""
    _check_volume(scenario, config)
    f = (scenario.daily_injection_volume / config.steps_per_day) / config.chamber_volume
    g = config.step_decay_factor
    return float(100.0 * f / (1.0 - g * (1.0 - f)))


@dataclass
class RampUpResult:
    """Recovery from an empty chamber at an elevated rate, then the standard rate."""

    series: PotencySeries
    ramp_daily_volume: float
    target_potency: float
    switch_day: Optional[float]  # None if the target was never reached


def simulate_ramp_up(
    scenario: Scenario,
    config: SimulationConfig,
    ramp_multiplier: float = DEFAULTS.ramp_multiplier,
    target_potency: Optional[float] = None,
) -> RampUpResult:
    """Start at 0 %, inject ``ramp_multiplier`` times the daily volume until the
    target potency is reached, then continue at the scenario's standard rate.

    The target defaults to the scenario's labelled target, or the standard-rate
    steady state when the label carries none. The ramp volume is capped at the
    chamber volume.
    """
    _check_volume(scenario, config)
    if ramp_multiplier <= 0.0:
        raise ConfigurationError(f"ramp_multiplier must be > 0, got {ramp_multiplier}")

    if target_potency is None:
        target_potency = scenario.target_potency
    if target_potency is None:
        target_potency = steady_state_potency(scenario, config)

    V = config.chamber_volume
    ramp_daily = ramp_multiplier * scenario.daily_injection_volume
    if ramp_daily > V:
        logger.warning(
            "Ramp volume %.3f for %s exceeds chamber volume %.3f; capping",
            ramp_daily, scenario.label, V,
        )
        ramp_daily = V

    n = config.n_steps
    spd = config.steps_per_day
    decay = config.step_decay_factor
    standard_volume = scenario.daily_injection_volume / spd
    ramp_volume = ramp_daily / spd

    values = np.zeros(n + 1, dtype=float)
    potency = 0.0
    values[0] = potency
    switch_day: Optional[float] = 0.0 if potency >= target_potency else None
    for i in range(1, n + 1):
        volume = standard_volume if switch_day is not None else ramp_volume
        potency = _advance(potency, decay, volume, V)
        values[i] = potency
        if switch_day is None and potency >= target_potency:
            switch_day = i / spd

    logger.debug(
        "Ramp-up %s: target %.2f%%, ramp %.3f/day, switch at %s",
        scenario.label, target_potency, ramp_daily, switch_day,
    )
    series = PotencySeries(
        label=f"{scenario.label}_ramp",
        start_potency=0.0,
        time_days=config.sample_times(),
        potency_pct=values,
    )
    return RampUpResult(
        series=series,
        ramp_daily_volume=float(ramp_daily),
        target_potency=float(target_potency),
        switch_day=switch_day,
    )


def run_potency_catalog(
    scenarios: Iterable[Scenario],
    config: SimulationConfig,
    reference_day: float = DEFAULTS.baseline_reference_day,
    include_baseline: bool = True,
) -> PotencyChartData:
    """Simulate every scenario from 100 % and from 0 % and attach the baseline."""
    chart = PotencyChartData(config=config)
    for scenario in scenarios:
        if scenario.label in chart.maintenance:
            raise ConfigurationError(f"Duplicate scenario label {scenario.label!r}")
        chart.maintenance[scenario.label] = simulate(scenario.with_start(100.0), config)
        chart.recovery[scenario.label] = simulate(scenario.with_start(0.0), config)
        chart.volumes[scenario.label] = float(scenario.daily_injection_volume)

    if include_baseline:
        chart.baseline = corrected_baseline(config, reference_day=reference_day)
    return chart
