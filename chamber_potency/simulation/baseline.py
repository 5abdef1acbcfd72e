from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from ..config import DEFAULTS, ConfigurationError
from ..analytics.outputs import BASELINE_LABEL, PotencySeries

if TYPE_CHECKING:
    from .potency import SimulationConfig


def corrected_baseline(
    config: "SimulationConfig",
    reference_day: float = DEFAULTS.baseline_reference_day,
) -> PotencySeries:
    """No-injection reference: straight line from 100 % at day 0 to 0 % at
    ``reference_day``, flat at 0 % afterwards.

    Independent of the decay-displacement recurrence; sampled on the same
    grid as the simulated series.
    """
    if reference_day <= 0.0:
        raise ConfigurationError(f"reference_day must be > 0, got {reference_day}")

    t = config.sample_times()
    potency = np.where(t <= reference_day, 100.0 * (1.0 - t / reference_day), 0.0)
    return PotencySeries(
        label=BASELINE_LABEL,
        start_potency=100.0,
        time_days=t,
        potency_pct=potency,
    )
