from __future__ import annotations

OZ_PER_GALLON: float = 128.0
# Injection pumps run a 16-hour operating window per day.
OPERATING_HOURS_PER_DAY: float = 16.0


def oz_per_day_to_gph(oz_per_day: float) -> float:
    """Convert a daily injection volume (oz/day) to a pump flow rate (gallons/hour)."""
    if oz_per_day < 0.0:
        raise ValueError(f"oz_per_day must be non-negative, got {oz_per_day}")
    gallons_per_day = oz_per_day / OZ_PER_GALLON
    return float(gallons_per_day / OPERATING_HOURS_PER_DAY)


def format_gph(oz_per_day: float) -> str:
    """Flow rate as shown next to each scenario, always four decimals."""
    return f"{oz_per_day_to_gph(oz_per_day):.4f}"
