from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import List, Optional

import logging

from fastapi import FastAPI, HTTPException, Query

from ..config import DEFAULTS, ConfigurationError
from ..models.scenario import DEFAULT_CATALOG, target_from_label
from ..models.units import format_gph, oz_per_day_to_gph
from ..analytics.summary import compute_scenario_summaries
from ..service import ScenarioInput, UserConfig, run_potency_chart

logger = logging.getLogger(__name__)

app = FastAPI(title="EDIE Chamber Potency API")


@dataclass
class SimulationRequest:
    chamber_volume: float = DEFAULTS.chamber_volume
    half_life_days: float = DEFAULTS.half_life_days
    horizon_days: int = DEFAULTS.horizon_days
    granularity: str = DEFAULTS.granularity
    scenarios: List[ScenarioInput] = field(default_factory=list)
    include_baseline: bool = True
    baseline_reference_day: float = DEFAULTS.baseline_reference_day
    # Tooltip precision; None returns full-precision values.
    decimals: Optional[int] = 2


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.get("/scenarios")
def list_scenarios() -> dict:
    return {
        "scenarios": [
            {
                "label": label,
                "daily_injection_volume": volume,
                "target_potency": target_from_label(label),
                "gph": oz_per_day_to_gph(volume),
                "gph_display": format_gph(volume),
                # Rate used to recover from an empty chamber.
                "ramp_daily_volume": DEFAULTS.ramp_multiplier * volume,
                "ramp_gph_display": format_gph(DEFAULTS.ramp_multiplier * volume),
            }
            for label, volume in DEFAULT_CATALOG.items()
        ]
    }


@app.post("/simulate")
def simulate_chart(request: SimulationRequest) -> dict:
    user_cfg = UserConfig(
        chamber_volume=request.chamber_volume,
        half_life_days=request.half_life_days,
        horizon_days=request.horizon_days,
        granularity=request.granularity,
        scenarios=list(request.scenarios),
        include_baseline=request.include_baseline,
        baseline_reference_day=request.baseline_reference_day,
    )
    try:
        chart = run_potency_chart(user_cfg)
        summaries = compute_scenario_summaries(chart)
    except ConfigurationError as exc:
        logger.info("Rejected simulation request: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return {
        "summary": chart.to_dict(),
        "records": chart.to_records(decimals=request.decimals),
        "scenarios": [asdict(s) for s in summaries],
    }


@app.get("/convert")
def convert(oz_per_day: float = Query(..., ge=0.0)) -> dict:
    return {
        "oz_per_day": oz_per_day,
        "gph": oz_per_day_to_gph(oz_per_day),
        "gph_display": format_gph(oz_per_day),
    }
