"""
Parameters - the configuration bundle for one simulation run.
"""

import math
from dataclasses import MISSING, dataclass, fields
from typing import Any, Dict

from factorysim.common.constants import (
    DEFAULT_INITIAL_BREAKDOWN_TIME,
    DEFAULT_TIME_UNITS,
    SERVICE_DETERMINISTIC,
    SERVICE_DISTRIBUTIONS,
)


@dataclass(frozen=True)
class Parameters:
    """
    Immutable parameter set supplied once at engine construction.

    Attributes:
        seed: Seed for the run's random variate source
        T: Simulation horizon (the run stops once the clock reaches T)
        n_queues: Number of admission queues, one per server slot
        mean_interarrival: Mean time between order arrivals (exponential)
        mean_construction_time: Construction (service) time of one order
        mean_interbreakdown_time: Mean time between machine breakdowns (exponential)
        mean_repair_time: Mean machine repair time (exponential)
        time_units: Units of all times above, used for labelling output only
        initial_breakdown_time: Time of the first, seeded breakdown
        service_distribution: "deterministic" (mean returned as-is) or "exponential"
    """
    seed: int
    T: float
    n_queues: int
    mean_interarrival: float
    mean_construction_time: float
    mean_interbreakdown_time: float
    mean_repair_time: float
    time_units: str = DEFAULT_TIME_UNITS
    initial_breakdown_time: float = DEFAULT_INITIAL_BREAKDOWN_TIME
    service_distribution: str = SERVICE_DETERMINISTIC

    def __post_init__(self):
        """Validate parameter ranges."""
        if self.n_queues < 1:
            raise ValueError(f"n_queues must be at least 1, got {self.n_queues}")
        if not self.T >= 0:
            raise ValueError(f"Horizon T must be non-negative, got {self.T}")
        for name in ("mean_interarrival", "mean_construction_time",
                     "mean_interbreakdown_time", "mean_repair_time"):
            value = getattr(self, name)
            if not value > 0 or math.isinf(value):
                raise ValueError(f"{name} must be a positive finite number, got {value}")
        if self.initial_breakdown_time < 0:
            raise ValueError(
                f"initial_breakdown_time must be non-negative, got {self.initial_breakdown_time}"
            )
        if self.service_distribution not in SERVICE_DISTRIBUTIONS:
            raise ValueError(
                f"service_distribution must be one of {SERVICE_DISTRIBUTIONS}, "
                f"got {self.service_distribution!r}"
            )

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'Parameters':
        """
        Create Parameters from a configuration dict.

        Args:
            config: Mapping of parameter name to value, e.g.
                   {
                       'seed': 1,
                       'T': 1000.0,
                       'n_queues': 1,
                       'mean_interarrival': 60.0,
                       ...
                   }
                   Unknown keys are rejected.

        Returns:
            Initialized Parameters
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config) - known)
        if unknown:
            raise ValueError(f"Unknown simulation parameters: {', '.join(unknown)}")

        missing = sorted(
            f.name for f in fields(cls)
            if f.name not in config and f.default is MISSING
        )
        if missing:
            raise ValueError(f"Missing simulation parameters: {', '.join(missing)}")

        values = dict(config)
        values['seed'] = int(values['seed'])
        values['n_queues'] = int(values['n_queues'])
        for name in ("T", "mean_interarrival", "mean_construction_time",
                     "mean_interbreakdown_time", "mean_repair_time", "initial_breakdown_time"):
            if name in values:
                values[name] = float(values[name])
        return cls(**values)

    def as_dict(self) -> Dict[str, Any]:
        """Parameter name -> value, in declaration order."""
        return {f.name: getattr(self, f.name) for f in fields(self)}
