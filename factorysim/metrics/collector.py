"""
MetricsCollector - collects simulation output in memory and summarises it.
"""

from typing import Dict, List, Optional
import numpy as np

from factorysim.metrics.recorder import Recorder
from factorysim.simulator.event import Event
from factorysim.simulator.parameters import Parameters
from factorysim.simulator.state import MachineStatus, StateSnapshot, SystemState
from factorysim.production.order import Order


class MetricsCollector(Recorder):
    """
    Recorder that keeps every state snapshot and departed order.

    Tracks:
    - Event trace (one snapshot per processed event)
    - Departed orders (waiting and flow times)
    - Machine availability and server occupancy over time
    """

    def __init__(self):
        """Initialize metrics collector."""
        self.parameters: Optional[Parameters] = None

        # One snapshot per processed event, in processing order
        self.snapshots: List[StateSnapshot] = []

        # Departed orders, in departure order
        self.departures: List[Order] = []

        self.simulation_start_time: Optional[float] = None
        self.simulation_end_time: Optional[float] = None

    def on_start(self, parameters: Parameters) -> None:
        self.parameters = parameters
        self.simulation_start_time = 0.0

    def on_event(self, snapshot: StateSnapshot, event: Event) -> None:
        """
        Record the state after an event.

        Args:
            snapshot: State after the event was processed
            event: The processed event
        """
        self.snapshots.append(snapshot)

    def on_departure(self, order: Order) -> None:
        """
        Record a completed order.

        Args:
            order: Departed order with all times set
        """
        self.departures.append(order)

    def on_finish(self, state: SystemState) -> None:
        self.simulation_end_time = state.time

    def event_trace(self) -> List[tuple]:
        """(event kind, time) pairs in processing order."""
        return [(snapshot.event_kind, snapshot.time) for snapshot in self.snapshots]

    def get_order_statistics(self) -> Dict:
        """
        Get waiting and flow time statistics of departed orders.

        Returns:
            Dictionary with count and mean/max waiting and flow times
        """
        if not self.departures:
            return {
                'count': 0,
                'mean_waiting_time': 0.0,
                'max_waiting_time': 0.0,
                'mean_flow_time': 0.0,
                'max_flow_time': 0.0,
            }

        waiting = np.array([order.get_waiting_time() for order in self.departures])
        flow = np.array([order.get_flow_time() for order in self.departures])

        return {
            'count': len(self.departures),
            'mean_waiting_time': float(np.mean(waiting)),
            'max_waiting_time': float(np.max(waiting)),
            'mean_flow_time': float(np.mean(flow)),
            'max_flow_time': float(np.max(flow)),
        }

    def get_time_weighted_state(self) -> Dict:
        """
        Get time-weighted machine availability and server occupancy.

        Each snapshot's state holds until the next snapshot; the last one
        holds until the end of the run.

        Returns:
            Dictionary with availability, per-server occupancy and mean queue length
        """
        if not self.snapshots:
            return {}

        times = np.array([snapshot.time for snapshot in self.snapshots])
        end_time = self.simulation_end_time if self.simulation_end_time is not None else times[-1]
        durations = np.diff(np.append(times, max(end_time, times[-1])))
        total_time = float(durations.sum())

        if total_time <= 0:
            return {}

        operational = np.array([
            snapshot.machine_status == MachineStatus.OPERATIONAL for snapshot in self.snapshots
        ], dtype=float)
        occupancy = np.array([snapshot.in_service for snapshot in self.snapshots], dtype=float)
        queue_lengths = np.array([snapshot.queue_lengths for snapshot in self.snapshots], dtype=float)

        return {
            'duration': total_time,
            'availability': float(operational @ durations / total_time),
            'occupancy': [float(x) for x in durations @ occupancy / total_time],
            'mean_queue_length': [float(x) for x in durations @ queue_lengths / total_time],
        }

    def get_summary(self) -> Dict:
        """
        Get comprehensive summary of all metrics.

        Returns:
            Dictionary with all metrics
        """
        last = self.snapshots[-1] if self.snapshots else None
        return {
            'events_processed': last.events_processed if last else 0,
            'orders_created': last.entities_created if last else 0,
            'orders': self.get_order_statistics(),
            'state': self.get_time_weighted_state(),
        }

    def print_summary(self) -> None:
        """Print a formatted summary of metrics."""
        summary = self.get_summary()
        units = self.parameters.time_units if self.parameters is not None else ""

        print("\n" + "="*80)
        print("SIMULATION METRICS SUMMARY")
        print("="*80)

        print(f"\nEvents processed: {summary['events_processed']}")
        print(f"Orders created:   {summary['orders_created']}")

        orders = summary['orders']
        print("\nORDERS:")
        print("-" * 80)
        print(f"  Completed:         {orders['count']}")
        print(f"  Mean waiting time: {orders['mean_waiting_time']:.3f} {units}")
        print(f"  Max waiting time:  {orders['max_waiting_time']:.3f} {units}")
        print(f"  Mean flow time:    {orders['mean_flow_time']:.3f} {units}")
        print(f"  Max flow time:     {orders['max_flow_time']:.3f} {units}")

        state = summary['state']
        if state:
            print("\nMACHINE:")
            print("-" * 80)
            print(f"  Availability: {state['availability']*100:.1f}%")
            for server, occupied in enumerate(state['occupancy']):
                print(f"  Server {server + 1} busy: {occupied*100:.1f}%  "
                      f"mean queue: {state['mean_queue_length'][server]:.2f}")

        print("\n" + "="*80)
