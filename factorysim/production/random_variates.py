"""
RandomVariateSource - draws the stochastic durations of the production model.
"""

import numpy as np

from factorysim.common.constants import SERVICE_EXPONENTIAL
from factorysim.simulator.parameters import Parameters


class RandomVariateSource:
    """
    Generates interarrival, service, inter-breakdown and repair durations.

    Each source owns a private numpy Generator seeded from the parameters, so
    the whole draw sequence is reproducible for a given seed and call order,
    and independent replications never share random state.
    """

    def __init__(self, parameters: Parameters):
        """
        Initialize the random variate source.

        Args:
            parameters: Run parameters (seed and distribution means)
        """
        self.parameters = parameters
        self.rng = np.random.default_rng(parameters.seed)

    def _exponential(self, mean: float) -> float:
        return float(self.rng.exponential(mean))

    def next_interarrival(self) -> float:
        """Time until the next order arrives ~ Exponential(mean_interarrival)."""
        return self._exponential(self.parameters.mean_interarrival)

    def next_service_duration(self) -> float:
        """
        Construction time of one order.

        Deterministic at mean_construction_time unless the parameters select
        an exponential service distribution. The deterministic case consumes
        no random draw.
        """
        if self.parameters.service_distribution == SERVICE_EXPONENTIAL:
            return self._exponential(self.parameters.mean_construction_time)
        return self.parameters.mean_construction_time

    def next_interbreakdown(self) -> float:
        """Machine uptime until the next breakdown ~ Exponential(mean_interbreakdown_time)."""
        return self._exponential(self.parameters.mean_interbreakdown_time)

    def next_repair_duration(self) -> float:
        """Machine repair time ~ Exponential(mean_repair_time)."""
        return self._exponential(self.parameters.mean_repair_time)
