"""
SimulationEngine - core discrete-event simulation loop.

Key design: a single server slot per admission queue, one machine whose
breakdowns pause every order in service. A breakdown pushes the pending
FINISH events back by the repair duration instead of cancelling them.
"""

import logging
from typing import Callable, Dict, List, Optional

from factorysim.simulator.event import Event, EventType
from factorysim.simulator.errors import (
    EmptyQueuePromotion,
    RescheduleError,
    SimulationError,
    UnknownEventKind,
)
from factorysim.simulator.parameters import Parameters
from factorysim.simulator.state import MachineStatus, SystemState
from factorysim.production.order import Order
from factorysim.production.random_variates import RandomVariateSource
from factorysim.metrics.recorder import NullRecorder, Recorder

logger = logging.getLogger(__name__)


class SimulationEngine:
    """
    Discrete-event simulator of a production line with machine breakdowns.

    Architecture:
    - EventQueue holds ARRIVAL, FINISH, BREAKDOWN and REPAIR events
    - Each step pops the earliest event (lowest id on ties), advances time
      and dispatches to the handler registered for the event type
    - Handlers mutate SystemState and schedule follow-up events
    - The recorder observes every event and every departure

    Attributes:
        parameters: Immutable run parameters
        random: Source of all random durations
        recorder: Observer notified after each event
        state: Current system state
        completed_orders: Orders that departed, in departure order
    """

    def __init__(self,
                 parameters: Parameters,
                 recorder: Optional[Recorder] = None,
                 random_source: Optional[RandomVariateSource] = None):
        """
        Initialize simulation engine.

        Args:
            parameters: Run parameters
            recorder: Optional Recorder for traces and metrics
            random_source: Optional variate source (built from parameters if omitted)
        """
        self.parameters = parameters
        self.recorder = recorder if recorder is not None else NullRecorder()
        self.random = random_source if random_source is not None else RandomVariateSource(parameters)
        self.state = SystemState.initial(parameters)

        self.completed_orders: List[Order] = []

        # Pending FINISH event id per occupied server
        self._finish_events: Dict[int, int] = {}
        self._started = False

        self._handlers: Dict[EventType, Callable[[Event], Optional[Order]]] = {
            EventType.ARRIVAL: self._handle_arrival,
            EventType.FINISH: self._handle_finish,
            EventType.BREAKDOWN: self._handle_breakdown,
            EventType.REPAIR: self._handle_repair,
        }

    @property
    def current_time(self) -> float:
        return self.state.time

    def schedule_event(self, event: Event) -> None:
        """
        Add an event to the queue.

        Use state.new_event_id() for the id so ordering stays deterministic.

        Args:
            event: Event to schedule

        Raises:
            ValueError: If the event lies in the simulated past
        """
        if event.time < self.state.time:
            raise ValueError(
                f"Cannot schedule event at t={event.time} before current time t={self.state.time}"
            )
        self.state.pending_events.push(event)

    def run(self, until: Optional[float] = None, max_steps: Optional[int] = None) -> SystemState:
        """
        Run simulation until the horizon or max steps.

        The horizon is checked only before popping: while the current time is
        below it the next event is processed, so the first event at or past
        the horizon is still dispatched and everything after it is abandoned.

        Args:
            until: Horizon (defaults to parameters.T)
            max_steps: Maximum number of events to process (None for unlimited)

        Returns:
            The system state at the end of the run
        """
        horizon = self.parameters.T if until is None else until
        if not self._started:
            self._started = True
            self.recorder.on_start(self.parameters)
            logger.info(
                "Starting run: seed=%d, horizon=%s %s, n_queues=%d",
                self.parameters.seed, horizon, self.parameters.time_units, self.parameters.n_queues
            )

        steps = 0
        pending = self.state.pending_events
        while pending and self.state.time < horizon:
            if max_steps is not None and steps >= max_steps:
                break
            self.step()
            steps += 1

        logger.info(
            "Run stopped at t=%.3f after %d events: %d orders created, %d completed, %d pending events",
            self.state.time, self.state.events_processed, self.state.entities_created,
            self.state.entities_departed, len(pending)
        )
        self.recorder.on_finish(self.state)
        return self.state

    def step(self) -> Event:
        """
        Process the next event.

        Returns:
            The processed event

        Raises:
            IndexError: If no event is pending
        """
        event = self.state.pending_events.pop()
        self.state.time = event.time
        self.state.events_processed += 1

        departure = self._dispatch(event)
        logger.debug(
            "t=%.3f %s id=%d queues=%s in_service=%s machine=%s",
            event.time, event.kind, event.event_id, self.state.queue_lengths(),
            self.state.occupancy(), self.state.machine_status.name
        )

        self.recorder.on_event(self.state.snapshot(event), event)
        if departure is not None:
            self.completed_orders.append(departure)
            self.recorder.on_departure(departure)
        return event

    def _dispatch(self, event: Event) -> Optional[Order]:
        handler = self._handlers.get(event.event_type)
        if handler is None:
            raise UnknownEventKind(event)
        return handler(event)

    def move_to_service(self, server: int) -> None:
        """
        Move the head of a server's queue into its service slot.

        Sets the order's start time and schedules its FINISH event.

        Args:
            server: Server index

        Raises:
            EmptyQueuePromotion: If the server's queue is empty
        """
        state = self.state
        queue = state.queues[server]
        if not queue:
            raise EmptyQueuePromotion(server)
        if state.in_service[server] is not None:
            raise SimulationError(f"Server {server} is already serving order {state.in_service[server].id}")

        order = queue.popleft()
        state.in_service[server] = order
        order.start_service_time = state.time

        duration = self.random.next_service_duration()
        finish_event = Event.finish(state.new_event_id(), state.time + duration, server)
        state.pending_events.push(finish_event)
        self._finish_events[server] = finish_event.event_id

    def _handle_arrival(self, event: Event) -> None:
        """
        Handle ARRIVAL event.

        The new order joins the server with the fewest orders waiting or in
        service (lowest index on ties), the next arrival is scheduled, and the
        order starts at once if that server is idle and the machine works.
        """
        state = self.state
        order = Order(id=state.new_entity_id(), arrival_time=event.time)

        loads = state.loads()
        server = loads.index(min(loads))
        order.server = server
        state.queues[server].append(order)

        next_arrival = Event.arrival(state.new_event_id(), state.time + self.random.next_interarrival())
        state.pending_events.push(next_arrival)

        if state.in_service[server] is None and state.is_operational:
            self.move_to_service(server)
        return None

    def _handle_finish(self, event: Event) -> Order:
        """
        Handle FINISH event.

        The order in service departs; the next waiting order on the same
        server starts if the machine is operational.

        Returns:
            The departed order
        """
        state = self.state
        server = event.server
        order = state.in_service[server]
        if order is None:
            raise SimulationError(f"Finish event {event.event_id} for idle server {server}")

        state.in_service[server] = None
        self._finish_events.pop(server, None)
        order.completion_time = state.time
        state.entities_departed += 1

        if state.queues[server] and state.is_operational:
            self.move_to_service(server)
        return order

    def _handle_breakdown(self, event: Event) -> None:
        """
        Handle BREAKDOWN event.

        Schedules the repair and pushes back every pending FINISH by the
        repair duration, so work in progress is paused rather than lost.
        A breakdown while already broken is ignored.
        """
        state = self.state
        if state.machine_status == MachineStatus.BROKEN:
            logger.warning("Ignoring breakdown %d at t=%.3f: machine is already broken",
                           event.event_id, state.time)
            return None

        state.machine_status = MachineStatus.BROKEN
        repair_duration = self.random.next_repair_duration()
        state.pending_events.push(Event.repair(state.new_event_id(), state.time + repair_duration))

        for server, order in enumerate(state.in_service):
            if order is None:
                continue
            finish_id = self._finish_events.get(server)
            finish_event = state.pending_events.get(finish_id) if finish_id is not None else None
            if finish_event is None:
                raise RescheduleError(server, state.time)
            state.pending_events.reschedule(finish_id, finish_event.time + repair_duration)
        return None

    def _handle_repair(self, event: Event) -> None:
        """
        Handle REPAIR event.

        Schedules the next breakdown and starts waiting orders on idle servers.
        """
        state = self.state
        state.machine_status = MachineStatus.OPERATIONAL
        next_breakdown = Event.breakdown(state.new_event_id(), state.time + self.random.next_interbreakdown())
        state.pending_events.push(next_breakdown)

        for server in range(state.n_queues):
            if state.in_service[server] is None and state.queues[server]:
                self.move_to_service(server)
        return None

    def get_statistics(self) -> Dict:
        """
        Get simulation statistics.

        Returns:
            Dictionary with statistics
        """
        flow_times = [order.get_flow_time() for order in self.completed_orders]

        return {
            'current_time': self.state.time,
            'events_processed': self.state.events_processed,
            'orders_created': self.state.entities_created,
            'orders_completed': self.state.entities_departed,
            'orders_waiting': sum(self.state.queue_lengths()),
            'orders_in_service': sum(self.state.occupancy()),
            'pending_events': len(self.state.pending_events),
            'machine_status': self.state.machine_status.name,
            'mean_flow_time': sum(flow_times) / len(flow_times) if flow_times else 0.0,
            'max_flow_time': max(flow_times) if flow_times else 0.0,
        }
