"""
Order - one customer order (lawnmower) flowing through the production line.
"""

import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional


@dataclass
class Order:
    """
    Customer order, the entity of the simulation.

    Attributes:
        id: Unique, monotonically assigned identifier
        arrival_time: When the order arrived at the factory (simulation time)
        server: Index of the server whose queue the order joined
        start_service_time: When construction started (inf until then)
        completion_time: When construction finished (inf until then)
    """
    id: int
    arrival_time: float
    server: Optional[int] = field(default=None)
    start_service_time: float = field(default=math.inf)
    completion_time: float = field(default=math.inf)

    def is_in_service(self) -> bool:
        return math.isfinite(self.start_service_time) and not math.isfinite(self.completion_time)

    def is_completed(self) -> bool:
        return math.isfinite(self.completion_time)

    def get_waiting_time(self) -> Optional[float]:
        """
        Time spent in the admission queue.

        Returns:
            start_service_time - arrival_time, or None if not started
        """
        if not math.isfinite(self.start_service_time):
            return None
        return self.start_service_time - self.arrival_time

    def get_flow_time(self) -> Optional[float]:
        """
        Time spent in the system (completion_time - arrival_time).

        Returns:
            Flow time, or None if the order has not departed
        """
        if not self.is_completed():
            return None
        return self.completion_time - self.arrival_time

    def as_row(self) -> Dict[str, Any]:
        """Field name -> value, in declaration order."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def __repr__(self) -> str:
        """String representation for debugging."""
        flow = self.get_flow_time()
        flow_str = f"{flow:.3f}" if flow is not None else "N/A"
        return (f"Order(id={self.id}, server={self.server}, "
                f"arrival={self.arrival_time:.3f}, start={self.start_service_time:.3f}, "
                f"flow={flow_str})")
