"""
Tests for recorders: in-memory metrics and CSV traces.
"""

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from factorysim.metrics.collector import MetricsCollector
from factorysim.metrics.csv_recorder import (
    ENTITY_FIELDS,
    STATE_HEADER,
    CsvRecorder,
    output_dir_for,
)
from factorysim.metrics.recorder import FanOutRecorder
from factorysim.production.random_variates import RandomVariateSource
from factorysim.simulator.parameters import Parameters
from factorysim.simulator.simulation_engine import SimulationEngine


class FixedVariates(RandomVariateSource):
    """Variate source with fixed durations for hand-checkable runs."""

    def __init__(self, parameters, interarrival=1000.0, repair=30.0, interbreakdown=1000.0):
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


def make_parameters(**overrides):
    """Parameters of the one-order scenario, overridable per test."""
    values = dict(
        seed=1,
        T=400.0,
        n_queues=1,
        mean_interarrival=60.0,
        mean_construction_time=200.0,
        mean_interbreakdown_time=2880.0,
        mean_repair_time=180.0,
    )
    values.update(overrides)
    return Parameters(**values)


def data_lines(path):
    return [line for line in Path(path).read_text(encoding='utf-8').splitlines()
            if not line.startswith("#")]


class TestMetricsCollector(unittest.TestCase):
    """Test in-memory metrics collection."""

    def setUp(self):
        """Run Arrival 0, Breakdown 150, Repair 180, Finish 230."""
        parameters = make_parameters(T=230.0)
        self.collector = MetricsCollector()
        self.engine = SimulationEngine(parameters, recorder=self.collector,
                                       random_source=FixedVariates(parameters))
        self.engine.run()

    def test_snapshots_follow_events(self):
        """Test: One snapshot per event, taken after the transition."""
        self.assertEqual(len(self.collector.snapshots), 4)
        breakdown = self.collector.snapshots[1]
        self.assertEqual(breakdown.event_kind, "Breakdown")
        self.assertEqual(breakdown.in_service, (1,))
        self.assertEqual(breakdown.queue_lengths, (0,))
        self.assertEqual(breakdown.machine_status.value, 1)
        self.assertEqual(self.collector.snapshots[-1].entities_departed, 1)

    def test_order_statistics(self):
        """Test: Waiting and flow times of the departed order."""
        stats = self.collector.get_order_statistics()
        self.assertEqual(stats['count'], 1)
        self.assertEqual(stats['mean_waiting_time'], 0.0)
        self.assertEqual(stats['mean_flow_time'], 230.0)

    def test_time_weighted_state(self):
        """Test: Availability excludes the repair window, the server stays occupied."""
        state = self.collector.get_time_weighted_state()
        self.assertAlmostEqual(state['duration'], 230.0)
        self.assertAlmostEqual(state['availability'], 200.0 / 230.0)
        self.assertEqual(state['occupancy'], [1.0])
        self.assertEqual(state['mean_queue_length'], [0.0])

    def test_summary(self):
        """Test: Summary combines counters and order statistics."""
        summary = self.collector.get_summary()
        self.assertEqual(summary['events_processed'], 4)
        self.assertEqual(summary['orders_created'], 1)
        self.assertEqual(summary['orders']['count'], 1)

    def test_empty_collector(self):
        """Test: A collector that saw no events reports empty statistics."""
        collector = MetricsCollector()
        self.assertEqual(collector.get_order_statistics()['count'], 0)
        self.assertEqual(collector.get_time_weighted_state(), {})
        self.assertEqual(collector.get_summary()['events_processed'], 0)


class TestCsvRecorder(unittest.TestCase):
    """Test CSV trace files and output levels."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def run_with(self, output_level, **overrides):
        """Run the scenario with arrivals every 100 time units into a CsvRecorder."""
        parameters = make_parameters(**overrides)
        output_dir = output_dir_for(self.tmp, parameters)
        with CsvRecorder(output_dir, output_level=output_level) as recorder:
            SimulationEngine(parameters, recorder=recorder,
                             random_source=FixedVariates(parameters, interarrival=100.0)).run()
        return recorder

    def test_output_dir_layout(self):
        """Test: Replications are stored under seed and queue count directories."""
        parameters = make_parameters(seed=3, n_queues=2)
        self.assertEqual(output_dir_for("data", parameters), Path("data") / "seed3" / "n_queues2")

    def test_full_trace(self):
        """Test: Level 2 writes metadata, parameters, every event and every departure."""
        recorder = self.run_with(output_level=2)

        state_text = recorder.state_path.read_text(encoding='utf-8')
        self.assertIn("# file created by code in factorysim", state_text)
        self.assertIn("# parameter: seed = 1", state_text)
        self.assertIn("# parameter: mean_repair_time = 180.0", state_text)

        state_rows = data_lines(recorder.state_path)
        self.assertEqual(state_rows[0], STATE_HEADER)
        first = [field.strip() for field in state_rows[1].split(",")]
        self.assertEqual(first, ["0.000", "1", "Arrival", "3", "0", "1", "0"])
        self.assertTrue(any("Breakdown" in row and row.endswith("1") for row in state_rows[1:]))

        entity_rows = data_lines(recorder.entities_path)
        self.assertEqual(entity_rows[0], ",".join(ENTITY_FIELDS))
        self.assertEqual(entity_rows[1], "1,0.0,0,0.0,230.0")

    def test_arrivals_only(self):
        """Test: Level 1 keeps only the arrival rows and no departures."""
        recorder = self.run_with(output_level=1)

        rows = data_lines(recorder.state_path)[1:]
        self.assertEqual(len(rows), 5)  # arrivals at 0, 100, 200, 300, 400
        self.assertTrue(all("Arrival" in row for row in rows))
        self.assertEqual(data_lines(recorder.entities_path), [",".join(ENTITY_FIELDS)])

    def test_headers_only(self):
        """Test: Level 0 writes the headers and nothing else."""
        recorder = self.run_with(output_level=0)
        self.assertEqual(data_lines(recorder.state_path), [STATE_HEADER])

    def test_invalid_output_level(self):
        """Test: Unknown output levels are rejected."""
        with self.assertRaises(ValueError):
            CsvRecorder(self.tmp, output_level=3)

    def test_failed_open_closes_state_file(self):
        """Test: If entities.csv cannot be opened, state.csv is not left open."""
        parameters = make_parameters()
        recorder = CsvRecorder(self.tmp)
        recorder.entities_path.mkdir()

        opened = []
        real_open = open

        def tracking_open(*args, **kwargs):
            handle = real_open(*args, **kwargs)
            opened.append(handle)
            return handle

        with mock.patch('factorysim.metrics.csv_recorder.open', side_effect=tracking_open, create=True):
            with self.assertRaises(OSError):
                recorder.on_start(parameters)

        self.assertEqual(len(opened), 1)
        self.assertTrue(opened[0].closed)
        self.assertIsNone(recorder._state_file)
        self.assertIsNone(recorder._entities_file)


class TestFanOutRecorder(unittest.TestCase):
    """Test forwarding to several recorders."""

    def test_forwards_to_all(self):
        """Test: Every recorder sees the same events and departures."""
        parameters = make_parameters(T=230.0)
        first, second = MetricsCollector(), MetricsCollector()
        SimulationEngine(parameters, recorder=FanOutRecorder(first, second),
                         random_source=FixedVariates(parameters)).run()

        self.assertEqual(first.event_trace(), second.event_trace())
        self.assertEqual(len(first.departures), 1)
        self.assertEqual(second.simulation_end_time, 230.0)


if __name__ == '__main__':
    unittest.main()
