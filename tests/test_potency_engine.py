"""
Decay-displacement engine tests.

Covers:
1. Exact arithmetic of the first step for the 95 % catalog scenario
2. Series length / sample grid for both granularities
3. Boundedness, convergence and determinism of the recurrence
4. Configuration validation at construction time
"""

import math

import numpy as np
import pytest

from chamber_potency.config import DEFAULTS, ConfigurationError
from chamber_potency.models.scenario import Scenario, build_catalog
from chamber_potency.simulation.potency import (
    SimulationConfig,
    simulate,
    steady_state_potency,
)

HALF_LIFE = 5 / math.log(2)


class TestReferenceScenario:
    """Reference catalog scenario: V=8, v=5, start 100 %, daily, 14 days"""

    def test_first_two_samples(self) -> None:
        config = SimulationConfig(chamber_volume=8.0, half_life_days=HALF_LIFE, horizon_days=14)
        series = simulate(Scenario("95_14", 5.0), config)

        expected_day1 = 100 * 0.5 ** (1 / HALF_LIFE) * (1 - 5 / 8) + 5 * 100 / 8
        assert series.potency_pct[0] == 100.0
        assert series.potency_pct[1] == pytest.approx(expected_day1, abs=1e-12)

    def test_matches_reference_loop(self) -> None:
        config = SimulationConfig()
        series = simulate(Scenario("75_14", 3.0), config)

        decay = 0.5 ** (1 / HALF_LIFE)
        p = 100.0
        expected = [p]
        for _ in range(14):
            p *= decay
            p = p * (1 - 3.0 / 8.0) + (3.0 * 100) / 8.0
            expected.append(p)
        np.testing.assert_allclose(series.potency_pct, expected, rtol=0, atol=1e-12)

    def test_default_half_life_is_literal_constant(self) -> None:
        assert DEFAULTS.half_life_days == pytest.approx(HALF_LIFE)
        assert SimulationConfig().daily_decay_factor == pytest.approx(0.5 ** (math.log(2) / 5))


class TestSampleGrid:
    """Series length and time offsets"""

    def test_daily_length(self) -> None:
        series = simulate(Scenario("50_14", 1.0), SimulationConfig(horizon_days=14))
        assert len(series) == 15
        assert series.time_days[-1] == 14.0

    def test_twice_daily_length(self) -> None:
        config = SimulationConfig(granularity="twice_daily", horizon_days=14)
        series = simulate(Scenario("50_14", 1.0), config)
        assert len(series) == 29
        assert series.time_days[1] == 0.5
        assert series.time_days[-1] == 14.0

    def test_twice_daily_uses_root_of_daily_decay(self) -> None:
        daily = SimulationConfig()
        twice = SimulationConfig(granularity="twice_daily")
        assert twice.step_decay_factor ** 2 == pytest.approx(daily.daily_decay_factor)

    @pytest.mark.parametrize("start", [0.0, 37.5, 100.0])
    def test_first_value_is_start_potency(self, start: float) -> None:
        for granularity in ("daily", "twice_daily"):
            config = SimulationConfig(granularity=granularity)
            series = simulate(Scenario("25_14", 0.5, start_potency=start), config)
            assert series.potency_pct[0] == start
            assert series.start_potency == start


class TestRecurrenceProperties:
    """Boundedness, convergence, determinism"""

    @pytest.mark.parametrize("granularity", ["daily", "twice_daily"])
    def test_catalog_stays_within_bounds(self, granularity: str) -> None:
        config = SimulationConfig(granularity=granularity, horizon_days=60)
        for scenario in build_catalog():
            for start in (0.0, 100.0):
                series = simulate(scenario.with_start(start), config)
                assert np.all(series.potency_pct >= -1e-9)
                assert np.all(series.potency_pct <= 100.0 + 1e-9)

    def test_full_volume_replaces_chamber(self) -> None:
        series = simulate(Scenario("full", 8.0, start_potency=0.0), SimulationConfig())
        assert np.all(series.potency_pct[1:] == 100.0)

    def test_no_injection_is_pure_decay(self) -> None:
        config = SimulationConfig(horizon_days=10)
        series = simulate(Scenario("none", 0.0), config)
        expected = 100.0 * config.daily_decay_factor ** np.arange(11)
        np.testing.assert_allclose(series.potency_pct, expected, rtol=1e-12)

    @pytest.mark.parametrize("granularity", ["daily", "twice_daily"])
    def test_full_and_empty_starts_converge(self, granularity: str) -> None:
        config = SimulationConfig(granularity=granularity, horizon_days=200)
        for scenario in build_catalog():
            full = simulate(scenario.with_start(100.0), config)
            empty = simulate(scenario.with_start(0.0), config)
            steady = steady_state_potency(scenario, config)
            assert abs(full.final_potency - empty.final_potency) < 1e-6
            assert full.final_potency == pytest.approx(steady, abs=1e-6)

    def test_gap_between_starts_shrinks(self) -> None:
        config = SimulationConfig(horizon_days=30)
        scenario = Scenario("50_14", 1.0)
        gap = np.abs(
            simulate(scenario.with_start(100.0), config).potency_pct
            - simulate(scenario.with_start(0.0), config).potency_pct
        )
        assert np.all(np.diff(gap) < 0)

    def test_deterministic(self) -> None:
        config = SimulationConfig(granularity="twice_daily", horizon_days=30)
        scenario = Scenario("75_14", 3.0, start_potency=42.0)
        a = simulate(scenario, config)
        b = simulate(scenario, config)
        assert np.array_equal(a.potency_pct, b.potency_pct)
        assert np.array_equal(a.time_days, b.time_days)

    def test_granularities_agree_on_day_grid(self) -> None:
        # Half-volume half-steps are not an exact refinement of the daily
        # step, so whole-day values stay close rather than identical.
        daily_cfg = SimulationConfig(horizon_days=14)
        twice_cfg = SimulationConfig(granularity="twice_daily", horizon_days=14)
        for scenario in build_catalog():
            daily = simulate(scenario, daily_cfg)
            twice = simulate(scenario, twice_cfg).whole_days()
            np.testing.assert_array_equal(daily.time_days, twice.time_days)
            assert twice.potency_pct[0] == daily.potency_pct[0]
            assert np.max(np.abs(daily.potency_pct - twice.potency_pct)) < 5.0

    def test_series_is_read_only(self) -> None:
        series = simulate(Scenario("50_14", 1.0), SimulationConfig())
        with pytest.raises(ValueError):
            series.potency_pct[0] = 0.0


class TestSteadyState:
    """Analytic fixed point of the per-step update"""

    def test_reference_value(self) -> None:
        config = SimulationConfig()
        g = config.daily_decay_factor
        f = 5.0 / 8.0
        expected = 100 * f / (1 - g * (1 - f))
        assert steady_state_potency(Scenario("95_14", 5.0), config) == pytest.approx(expected)

    def test_fixed_point_is_stationary(self) -> None:
        config = SimulationConfig(horizon_days=5)
        scenario = Scenario("75_14", 3.0)
        steady = steady_state_potency(scenario, config)
        series = simulate(scenario.with_start(steady), config)
        np.testing.assert_allclose(series.potency_pct, steady, rtol=1e-12)

    def test_zero_injection_decays_to_zero(self) -> None:
        assert steady_state_potency(Scenario("none", 0.0), SimulationConfig()) == 0.0


class TestConfigValidation:
    """Invalid configurations fail fast"""

    @pytest.mark.parametrize("volume", [0.0, -8.0, float("nan")])
    def test_bad_chamber_volume(self, volume: float) -> None:
        with pytest.raises(ConfigurationError):
            SimulationConfig(chamber_volume=volume)

    @pytest.mark.parametrize("half_life", [0.0, -1.0, float("inf")])
    def test_bad_half_life(self, half_life: float) -> None:
        with pytest.raises(ConfigurationError):
            SimulationConfig(half_life_days=half_life)

    def test_bad_granularity(self) -> None:
        with pytest.raises(ConfigurationError, match="granularity"):
            SimulationConfig(granularity="hourly")  # type: ignore[arg-type]

    @pytest.mark.parametrize("horizon", [0, -3, 2.5, float("nan"), float("inf")])
    def test_bad_horizon(self, horizon) -> None:
        with pytest.raises(ConfigurationError):
            SimulationConfig(horizon_days=horizon)

    def test_integral_float_horizon_is_coerced(self) -> None:
        config = SimulationConfig(horizon_days=14.0)  # type: ignore[arg-type]
        assert config.horizon_days == 14
        assert isinstance(config.horizon_days, int)

    def test_volume_above_chamber_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="exceeds chamber_volume"):
            simulate(Scenario("too_much", 9.0), SimulationConfig(chamber_volume=8.0))

    def test_configuration_error_is_value_error(self) -> None:
        assert issubclass(ConfigurationError, ValueError)
