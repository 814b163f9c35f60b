"""
Event system for discrete-event simulation.

Key design decision: events are immutable and ordered by (time, event_id).
The only sanctioned change to a pending event is EventQueue.reschedule(),
which swaps the queued event for a copy carrying the new time.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Iterator
from heapq import heappush, heappop
from itertools import count


class EventType(Enum):
    """Types of events in the simulation."""
    ARRIVAL = "Arrival"      # New order arrives at the factory
    FINISH = "Finish"        # Server finishes constructing an order
    BREAKDOWN = "Breakdown"  # Machine breaks down
    REPAIR = "Repair"        # Machine is repaired


@dataclass(frozen=True, order=True)
class Event:
    """
    Discrete event in the simulation.

    Events are ordered by time (primary) and event_id (secondary), so two
    events scheduled for the same instant are processed in creation order.

    Attributes:
        time: Simulation time when event occurs
        event_id: Unique, monotonically assigned id (tiebreaker)
        event_type: Type of event
        server: Server index, only meaningful for FINISH events
    """
    time: float
    event_id: int
    event_type: EventType = field(compare=False)
    server: Optional[int] = field(default=None, compare=False)

    def __post_init__(self):
        """Validate time is non-negative and FINISH events name a server."""
        if self.time < 0:
            raise ValueError(f"Event time must be non-negative, got {self.time}")
        if self.event_type == EventType.FINISH and self.server is None:
            raise ValueError("FINISH events must carry a server index")

    @classmethod
    def arrival(cls, event_id: int, time: float) -> 'Event':
        return cls(time=time, event_id=event_id, event_type=EventType.ARRIVAL)

    @classmethod
    def finish(cls, event_id: int, time: float, server: int) -> 'Event':
        return cls(time=time, event_id=event_id, event_type=EventType.FINISH, server=server)

    @classmethod
    def breakdown(cls, event_id: int, time: float) -> 'Event':
        return cls(time=time, event_id=event_id, event_type=EventType.BREAKDOWN)

    @classmethod
    def repair(cls, event_id: int, time: float) -> 'Event':
        return cls(time=time, event_id=event_id, event_type=EventType.REPAIR)

    @property
    def kind(self) -> str:
        """Name of the event type as written to traces."""
        return self.event_type.value


class EventQueue:
    """
    Priority queue for simulation events, ordered by (time, event_id).

    Uses heapq for O(log n) push/pop operations. An index from event id to
    heap entry supports rescheduling a pending event: the old entry is
    invalidated in place and a new one is pushed (lazy deletion).
    """

    def __init__(self):
        self._heap: List[list] = []
        self._entries: Dict[int, list] = {}  # event_id -> [time, event_id, seq, event]
        self._sequence = count()

    def push(self, event: Event) -> None:
        """
        Add an event to the queue.

        Args:
            event: Event to schedule

        Raises:
            ValueError: If an event with the same id is already pending
        """
        if event.event_id in self._entries:
            raise ValueError(f"Event id {event.event_id} is already pending")
        entry = [event.time, event.event_id, next(self._sequence), event]
        self._entries[event.event_id] = entry
        heappush(self._heap, entry)

    def pop(self) -> Event:
        """
        Remove and return the next event (earliest time, lowest id on ties).

        Returns:
            Next event to process

        Raises:
            IndexError: If queue is empty
        """
        self._discard_invalidated()
        if not self._heap:
            raise IndexError("Cannot pop from empty EventQueue")
        _, event_id, _, event = heappop(self._heap)
        del self._entries[event_id]
        return event

    def peek(self) -> Optional[Event]:
        """
        Get the next event without removing it.

        Returns:
            Next event, or None if queue is empty
        """
        self._discard_invalidated()
        return self._heap[0][3] if self._heap else None

    def get(self, event_id: int) -> Optional[Event]:
        """Get a pending event by id, or None if it is not pending."""
        entry = self._entries.get(event_id)
        return entry[3] if entry is not None else None

    def reschedule(self, event_id: int, new_time: float) -> Event:
        """
        Move a pending event to a new time, keeping its id.

        Args:
            event_id: Id of the pending event
            new_time: New scheduled time

        Returns:
            The rescheduled event

        Raises:
            KeyError: If no event with this id is pending
        """
        old_entry = self._entries.pop(event_id)
        event = replace(old_entry[3], time=new_time)
        old_entry[3] = None  # invalidated, dropped when it reaches the top
        entry = [new_time, event_id, next(self._sequence), event]
        self._entries[event_id] = entry
        heappush(self._heap, entry)
        return event

    def events(self) -> Iterator[Event]:
        """Iterate over pending events in processing order."""
        return iter(sorted(entry[3] for entry in self._entries.values()))

    def is_empty(self) -> bool:
        """Check if queue has no events."""
        return len(self._entries) == 0

    def size(self) -> int:
        """Get number of events in queue."""
        return len(self._entries)

    def clear(self) -> None:
        """Remove all events from queue."""
        self._heap.clear()
        self._entries.clear()

    def _discard_invalidated(self) -> None:
        while self._heap and self._heap[0][3] is None:
            heappop(self._heap)

    def __contains__(self, event_id: int) -> bool:
        return event_id in self._entries

    def __len__(self) -> int:
        """Support len() function."""
        return len(self._entries)

    def __bool__(self) -> bool:
        """Support bool() function - True if queue has events."""
        return bool(self._entries)
