"""
Errors raised by the simulation core.

Every one of them is fatal: a run is replayed from its seed, never resumed.
"""


class SimulationError(Exception):
    """Base class for simulation failures."""


class UnknownEventKind(SimulationError):
    """Dispatch received an event type with no registered handler."""

    def __init__(self, event):
        self.event = event
        super().__init__(f"No handler registered for event type {event.event_type!r} (event id {event.event_id})")


class RescheduleError(SimulationError):
    """An occupied server has no pending FINISH event to push back."""

    def __init__(self, server: int, time: float):
        self.server = server
        self.time = time
        super().__init__(f"Server {server} is occupied at t={time} but has no pending Finish event")


class EmptyQueuePromotion(AssertionError):
    """move_to_service was called on a server whose queue is empty."""

    def __init__(self, server: int):
        self.server = server
        super().__init__(f"Cannot move an order into service: queue {server} is empty")
