from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import numpy as np

if TYPE_CHECKING:
    from ..simulation.potency import SimulationConfig


BASELINE_LABEL = "0_corrected"


@dataclass(frozen=True, eq=False)
class PotencySeries:
    """Potency percentages at fixed sample times, day 0 to horizon inclusive.

    Arrays are frozen on construction so a series can be shared between
    consumers without copying.
    """

    label: str
    start_potency: float
    time_days: np.ndarray
    potency_pct: np.ndarray

    def __post_init__(self) -> None:
        t = np.array(self.time_days, dtype=float)
        p = np.array(self.potency_pct, dtype=float)
        if t.shape != p.shape:
            raise ValueError(
                f"time_days and potency_pct must have the same shape, got {t.shape} vs {p.shape}"
            )
        t.flags.writeable = False
        p.flags.writeable = False
        object.__setattr__(self, "time_days", t)
        object.__setattr__(self, "potency_pct", p)

    def __len__(self) -> int:
        return int(self.potency_pct.size)

    @property
    def final_potency(self) -> float:
        return float(self.potency_pct[-1])

    def points(self) -> List[Tuple[float, float]]:
        """(time_days, potency_pct) pairs."""
        return [(float(t), float(p)) for t, p in zip(self.time_days, self.potency_pct)]

    def at_day(self, day: float) -> float:
        """Potency at an exact sample time; raises KeyError off-grid."""
        idx = np.flatnonzero(np.isclose(self.time_days, day, rtol=0.0, atol=1e-9))
        if idx.size == 0:
            raise KeyError(f"No sample at day {day} in series {self.label!r}")
        return float(self.potency_pct[int(idx[0])])

    def whole_days(self) -> "PotencySeries":
        """Sub-series at whole-day sample points only."""
        mask = np.isclose(self.time_days, np.round(self.time_days), rtol=0.0, atol=1e-9)
        return PotencySeries(
            label=self.label,
            start_potency=self.start_potency,
            time_days=self.time_days[mask],
            potency_pct=self.potency_pct[mask],
        )


@dataclass
class PotencyChartData:
    """Everything a potency chart needs for one configuration.

    ``maintenance`` holds the series started at 100 % potency, ``recovery``
    the series started at 0 %, both keyed by scenario label.
    """

    config: "SimulationConfig"
    maintenance: Dict[str, PotencySeries] = field(default_factory=dict)
    recovery: Dict[str, PotencySeries] = field(default_factory=dict)
    baseline: Optional[PotencySeries] = None

    # Injection volumes keyed by label, kept for legends and summaries.
    volumes: Dict[str, float] = field(default_factory=dict)

    @property
    def labels(self) -> List[str]:
        return list(self.maintenance.keys())

    def sample_times(self) -> np.ndarray:
        if self.baseline is not None:
            return self.baseline.time_days
        for series in self.maintenance.values():
            return series.time_days
        return np.zeros(0, dtype=float)

    def to_records(self, decimals: Optional[int] = None) -> List[Dict[str, float]]:
        """One row per sample point, ready for a line-chart data source.

        Keys are ``time_days``, ``potency_<label>_100``, ``potency_<label>_0``
        and ``potency_0_corrected``. ``decimals`` rounds potency values
        (2 for tooltip display).
        """

        def _fmt(value: float) -> float:
            value = float(value)
            return round(value, decimals) if decimals is not None else value

        times = self.sample_times()
        rows: List[Dict[str, float]] = []
        for i, t in enumerate(times):
            row: Dict[str, float] = {"time_days": float(t)}
            for label in self.labels:
                row[f"potency_{label}_100"] = _fmt(self.maintenance[label].potency_pct[i])
                if label in self.recovery:
                    row[f"potency_{label}_0"] = _fmt(self.recovery[label].potency_pct[i])
            if self.baseline is not None:
                row[f"potency_{BASELINE_LABEL}"] = _fmt(self.baseline.potency_pct[i])
            rows.append(row)
        return rows

    def to_dict(self) -> Dict[str, Any]:
        """Small JSON-friendly summary of the run."""
        return {
            "chamber_volume": float(self.config.chamber_volume),
            "half_life_days": float(self.config.half_life_days),
            "granularity": self.config.granularity,
            "horizon_days": int(self.config.horizon_days),
            "n_samples": int(self.sample_times().size),
            "final_potency_from_full": {
                label: s.final_potency for label, s in self.maintenance.items()
            },
            "final_potency_from_empty": {
                label: s.final_potency for label, s in self.recovery.items()
            },
        }
