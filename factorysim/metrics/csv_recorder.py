"""
CsvRecorder - writes state and entity traces of a run to CSV files.

Two files are produced in the output directory:
    state.csv     one row per processed event
    entities.csv  one row per departed order
Both start with '#' comment lines naming the producer, the creation time and
every run parameter.
"""

import logging
from contextlib import ExitStack
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO, Union

from factorysim.metrics.recorder import Recorder
from factorysim.simulator.event import Event, EventType
from factorysim.simulator.parameters import Parameters
from factorysim.simulator.state import StateSnapshot, SystemState
from factorysim.production.order import Order

logger = logging.getLogger(__name__)

STATE_HEADER = "time,event_id,event_type,length_event_list,length_queue,in_service,machine_status"
ENTITY_FIELDS = ("id", "arrival_time", "server", "start_service_time", "completion_time")

# Headers only, arrival rows, everything
OUTPUT_LEVELS = (0, 1, 2)


def output_dir_for(base_dir: Union[str, Path], parameters: Parameters) -> Path:
    """Directory for one replication: <base>/seed<seed>/n_queues<n_queues>."""
    return Path(base_dir) / f"seed{parameters.seed}" / f"n_queues{parameters.n_queues}"


def write_metadata(output: TextIO, program: str) -> None:
    output.write(f"# file created by code in {program}\n")
    output.write(f"# file created on {datetime.now():%Y-%m-%d at %H:%M:%S}\n")


def write_parameters(output: TextIO, parameters: Parameters) -> None:
    for name, value in parameters.as_dict().items():
        output.write(f"# parameter: {name} = {value}\n")


def format_state_row(snapshot: StateSnapshot) -> str:
    return "%12.3f,%6d,%9s,%6d,%4d,%6d,%4d" % (
        snapshot.time,
        snapshot.event_id,
        snapshot.event_kind,
        snapshot.pending_events,
        sum(snapshot.queue_lengths),
        sum(snapshot.in_service),
        snapshot.machine_status.value,
    )


def format_entity_row(order: Order) -> str:
    row = order.as_row()
    return ",".join("" if row[name] is None else str(row[name]) for name in ENTITY_FIELDS)


class CsvRecorder(Recorder):
    """
    Recorder writing state.csv and entities.csv.

    Files are opened on on_start and closed by close() (or on leaving the
    context manager); on_finish only flushes, so a run may be resumed.

    Attributes:
        output_dir: Directory receiving the two files (created if missing)
        output_level: 0 writes only the headers, 1 adds the ARRIVAL rows of
            the state trace, 2 writes every event row and every departure
        program: Producer name written to the metadata lines
    """

    def __init__(self, output_dir: Union[str, Path], output_level: int = 2, program: str = "factorysim"):
        if output_level not in OUTPUT_LEVELS:
            raise ValueError(f"output_level must be one of {OUTPUT_LEVELS}, got {output_level}")
        self.output_dir = Path(output_dir)
        self.output_level = output_level
        self.program = program
        self.state_path = self.output_dir / "state.csv"
        self.entities_path = self.output_dir / "entities.csv"
        self._state_file: Optional[TextIO] = None
        self._entities_file: Optional[TextIO] = None

    def on_start(self, parameters: Parameters) -> None:
        """Create the output directory and write both file headers."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        with ExitStack() as stack:
            state_file = stack.enter_context(open(self.state_path, 'w', encoding='utf-8'))
            entities_file = stack.enter_context(open(self.entities_path, 'w', encoding='utf-8'))
            stack.pop_all()
        self._state_file = state_file
        self._entities_file = entities_file

        for output in (self._entities_file, self._state_file):
            write_metadata(output, self.program)
            write_parameters(output, parameters)

        self._entities_file.write(",".join(ENTITY_FIELDS) + "\n")
        self._state_file.write(STATE_HEADER + "\n")
        logger.info("Writing traces to %s", self.output_dir)

    def on_event(self, snapshot: StateSnapshot, event: Event) -> None:
        if self._state_file is None:
            raise RuntimeError("CsvRecorder received an event before on_start")
        if self.output_level >= 2 or (self.output_level == 1 and event.event_type == EventType.ARRIVAL):
            self._state_file.write(format_state_row(snapshot) + "\n")

    def on_departure(self, order: Order) -> None:
        if self._entities_file is None:
            raise RuntimeError("CsvRecorder received a departure before on_start")
        if self.output_level >= 2:
            self._entities_file.write(format_entity_row(order) + "\n")

    def on_finish(self, state: SystemState) -> None:
        for output in (self._state_file, self._entities_file):
            if output is not None:
                output.flush()

    def close(self) -> None:
        """Close both files."""
        for output in (self._state_file, self._entities_file):
            if output is not None:
                output.close()
        self._state_file = None
        self._entities_file = None

    def __enter__(self) -> 'CsvRecorder':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
