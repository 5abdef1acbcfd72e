from __future__ import annotations

import math
from dataclasses import dataclass


class ConfigurationError(ValueError):
    """Raised when a chamber, scenario or catalog configuration is invalid."""


@dataclass
class SimulationDefaults:
    """Default knobs for the EDIE chamber potency charts."""
    chamber_volume: float = 8.0  # oz
    # Literal "5-day" constant as used by the reference charts. Fed into
    # 0.5 ** (1 / h), so the effective half-life is 5 / ln(2) days.
    half_life_days: float = 5.0 / math.log(2.0)
    horizon_days: int = 14
    granularity: str = "daily"
    baseline_reference_day: float = 7.0
    ramp_multiplier: float = 2.0


DEFAULTS = SimulationDefaults()
