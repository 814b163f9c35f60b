"""
Demo script to exercise the production line simulation.
"""

from factorysim.metrics.collector import MetricsCollector
from factorysim.production.random_variates import RandomVariateSource
from factorysim.simulator.event import EventType
from factorysim.simulator.parameters import Parameters
from factorysim.simulator.simulation_engine import SimulationEngine
from factorysim.simulator.state import MachineStatus


class FixedVariates(RandomVariateSource):
    """Variate source returning fixed durations, for hand-checkable runs."""

    def __init__(self, parameters, interarrival, repair, interbreakdown):
        super().__init__(parameters)
        self._interarrival = interarrival
        self._repair = repair
        self._interbreakdown = interbreakdown

    def next_interarrival(self):
        return self._interarrival

    def next_repair_duration(self):
        return self._repair

    def next_interbreakdown(self):
        return self._interbreakdown


def reference_parameters(**overrides):
    values = dict(
        seed=1,
        T=1000.0,
        n_queues=1,
        mean_interarrival=60.0,
        mean_construction_time=45.0,
        mean_interbreakdown_time=2880.0,
        mean_repair_time=180.0,
    )
    values.update(overrides)
    return Parameters(**values)


def run_reference_scenario():
    """Run: the reference lawnmower factory, seed 1, 1000 minutes."""
    print("\n" + "="*80)
    print("RUN 1: Reference scenario (seed=1, T=1000 minutes)")
    print("="*80)

    parameters = reference_parameters()
    collector = MetricsCollector()
    engine = SimulationEngine(parameters, recorder=collector)
    engine.run()

    first_kind, first_time = collector.event_trace()[0]
    print(f"First event: {first_kind} at t={first_time}")
    print(f"First order started at t={collector.departures[0].start_service_time}")
    print(f"Events processed: {engine.state.events_processed}")

    assert first_kind == EventType.ARRIVAL.value and first_time == 0.0
    assert collector.departures[0].start_service_time == 0.0
    collector.print_summary()
    print("[PASS] Run passed!")


def run_breakdown_pauses_work():
    """Run: a breakdown during construction delays the finish by the repair time."""
    print("\n" + "="*80)
    print("RUN 2: Breakdown during construction")
    print("="*80)

    # Order 1 arrives at 0 and would finish at 200; breakdown at 150, repair 30
    parameters = reference_parameters(T=400.0, mean_construction_time=200.0)
    variates = FixedVariates(parameters, interarrival=1000.0, repair=30.0, interbreakdown=1000.0)
    collector = MetricsCollector()
    engine = SimulationEngine(parameters, recorder=collector, random_source=variates)
    engine.run()

    order = collector.departures[0]
    print("Trace:")
    for kind, time in collector.event_trace():
        print(f"  t={time:8.3f}  {kind}")
    print(f"Order 1 completed at t={order.completion_time} (expected 230.0)")

    assert order.completion_time == 230.0, f"Expected 230.0, got {order.completion_time}"
    assert engine.state.machine_status == MachineStatus.OPERATIONAL
    print("[PASS] Run passed!")


if __name__ == '__main__':
    print("\n" + "="*80)
    print("FACTORY BREAKDOWN SIMULATION - DEMO")
    print("="*80)

    run_reference_scenario()
    run_breakdown_pauses_work()

    print("\n" + "="*80)
    print("ALL RUNS PASSED!!!")
    print("="*80)
