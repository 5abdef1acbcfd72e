from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

import json
import math

from ..config import ConfigurationError


# Label -> daily injection volume (oz/day). The label prefix is the potency
# the rate is meant to hold, the suffix the nominal horizon in days.
DEFAULT_CATALOG: Dict[str, float] = {
    "95_14": 5.0,
    "75_14": 3.0,
    "50_14": 1.0,
    "25_14": 0.5,
    "0_1": 0.1,
}


def target_from_label(label: str) -> Optional[float]:
    """Parse the target potency from a catalog label ("95_14" -> 95.0)."""
    head = label.split("_", 1)[0]
    try:
        value = float(head)
    except ValueError:
        return None
    if 0.0 <= value <= 100.0:
        return value
    return None


@dataclass(frozen=True)
class Scenario:
    """One operating target: a named daily injection volume and a start potency."""

    label: str
    daily_injection_volume: float
    start_potency: float = 100.0
    target_potency: Optional[float] = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.daily_injection_volume) or self.daily_injection_volume < 0.0:
            raise ConfigurationError(
                f"Scenario {self.label!r}: daily_injection_volume must be a finite value >= 0, "
                f"got {self.daily_injection_volume}"
            )
        if not 0.0 <= self.start_potency <= 100.0:
            raise ConfigurationError(
                f"Scenario {self.label!r}: start_potency must be in [0, 100], "
                f"got {self.start_potency}"
            )
        if self.target_potency is None:
            object.__setattr__(self, "target_potency", target_from_label(self.label))

    def with_start(self, start_potency: float) -> "Scenario":
        return replace(self, start_potency=float(start_potency))


def build_catalog(mapping: Optional[Mapping[str, float]] = None) -> List[Scenario]:
    """Build scenarios (start potency 100 %) from a label -> oz/day mapping."""
    if mapping is None:
        mapping = DEFAULT_CATALOG
    return [
        Scenario(label=str(label), daily_injection_volume=float(volume))
        for label, volume in mapping.items()
    ]


# ---- JSON loader helpers ----

JsonPath = Union[str, Path]


def load_catalog_from_json(path: JsonPath) -> List[Scenario]:
    """Load a scenario catalog from a JSON file.

    Two layouts are accepted: a ``{"95_14": 5.0, ...}`` object, or a list of
    ``{"label": ..., "daily_injection_volume": ..., "start_potency": ...}``
    objects (``start_potency`` optional).
    """
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        try:
            cfg = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Catalog {p} is not valid JSON: {exc}") from exc

    if isinstance(cfg, dict):
        try:
            return build_catalog({str(k): float(v) for k, v in cfg.items()})
        except ConfigurationError:
            raise
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Catalog {p}: volumes must be numbers") from exc

    if isinstance(cfg, list):
        scenarios: List[Scenario] = []
        for i, entry in enumerate(cfg):
            if not isinstance(entry, dict) or "label" not in entry or "daily_injection_volume" not in entry:
                raise ConfigurationError(
                    f"Catalog {p}: entry {i} needs 'label' and 'daily_injection_volume'"
                )
            try:
                scenarios.append(
                    Scenario(
                        label=str(entry["label"]),
                        daily_injection_volume=float(entry["daily_injection_volume"]),
                        start_potency=float(entry.get("start_potency", 100.0)),
                    )
                )
            except ConfigurationError:
                raise
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"Catalog {p}: entry {i} has non-numeric values") from exc
        return scenarios

    raise ConfigurationError(f"Catalog {p}: expected a JSON object or list, got {type(cfg).__name__}")
