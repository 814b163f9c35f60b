"""
SystemState - aggregate mutable state of the production line.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, List, Optional, Tuple

from factorysim.common.constants import INITIAL_ARRIVAL_TIME
from factorysim.simulator.event import Event, EventQueue
from factorysim.simulator.parameters import Parameters
from factorysim.production.order import Order


class MachineStatus(Enum):
    """Health of the machine. Values are the codes written to state traces."""
    OPERATIONAL = 0
    BROKEN = 1


@dataclass(frozen=True)
class StateSnapshot:
    """
    Read-only view of the system handed to recorders after each event.

    Attributes:
        time: Simulation time of the processed event
        event_id: Id of the processed event
        event_kind: Name of the processed event type
        pending_events: Number of events left in the event queue
        queue_lengths: Orders waiting in each admission queue
        in_service: 1 for each occupied server slot, else 0
        machine_status: Machine health after the event
        entities_created: Orders created so far
        entities_departed: Orders completed so far
        events_processed: Events dispatched so far, this one included
    """
    time: float
    event_id: int
    event_kind: str
    pending_events: int
    queue_lengths: Tuple[int, ...]
    in_service: Tuple[int, ...]
    machine_status: MachineStatus
    entities_created: int
    entities_departed: int
    events_processed: int


@dataclass
class SystemState:
    """
    Current state of the system.

    Invariants:
        - in_service[s] is occupied iff a Finish event for server s is pending
        - entities_created == entities_departed + waiting + in service
    """
    n_queues: int
    time: float = 0.0
    entities_created: int = 0
    entities_departed: int = 0
    events_created: int = 0
    events_processed: int = 0
    pending_events: EventQueue = field(default_factory=EventQueue)
    queues: List[Deque[Order]] = field(default_factory=list)
    in_service: List[Optional[Order]] = field(default_factory=list)
    machine_status: MachineStatus = MachineStatus.OPERATIONAL

    def __post_init__(self):
        if not self.queues:
            self.queues = [deque() for _ in range(self.n_queues)]
        if not self.in_service:
            self.in_service = [None] * self.n_queues

    @classmethod
    def initial(cls, parameters: Parameters) -> 'SystemState':
        """
        Create the state at time 0 with its two seed events.

        An Arrival at t=0 and a Breakdown at parameters.initial_breakdown_time.
        """
        state = cls(n_queues=parameters.n_queues)
        state.pending_events.push(Event.arrival(state.new_event_id(), INITIAL_ARRIVAL_TIME))
        state.pending_events.push(
            Event.breakdown(state.new_event_id(), parameters.initial_breakdown_time)
        )
        return state

    def new_event_id(self) -> int:
        self.events_created += 1
        return self.events_created

    def new_entity_id(self) -> int:
        self.entities_created += 1
        return self.entities_created

    def queue_lengths(self) -> Tuple[int, ...]:
        return tuple(len(queue) for queue in self.queues)

    def occupancy(self) -> Tuple[int, ...]:
        return tuple(0 if order is None else 1 for order in self.in_service)

    def loads(self) -> List[int]:
        """Waiting plus in-service orders per server."""
        return [waiting + busy for waiting, busy in zip(self.queue_lengths(), self.occupancy())]

    def entities_in_system(self) -> int:
        return sum(self.queue_lengths()) + sum(self.occupancy())

    @property
    def is_operational(self) -> bool:
        return self.machine_status == MachineStatus.OPERATIONAL

    def snapshot(self, event: Event) -> StateSnapshot:
        """Capture the state after processing the given event."""
        return StateSnapshot(
            time=self.time,
            event_id=event.event_id,
            event_kind=event.kind,
            pending_events=len(self.pending_events),
            queue_lengths=self.queue_lengths(),
            in_service=self.occupancy(),
            machine_status=self.machine_status,
            entities_created=self.entities_created,
            entities_departed=self.entities_departed,
            events_processed=self.events_processed,
        )
