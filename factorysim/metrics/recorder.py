"""
Recorder - observer interface the simulation engine reports to.
"""

from abc import ABC, abstractmethod

from factorysim.simulator.event import Event
from factorysim.simulator.parameters import Parameters
from factorysim.simulator.state import StateSnapshot, SystemState
from factorysim.production.order import Order


class Recorder(ABC):
    """
    Purely observational sink for simulation output.

    The engine calls on_event after every dispatched event and on_departure
    once per completed order. Recorders must not mutate what they receive.
    """

    def on_start(self, parameters: Parameters) -> None:
        """Called once before the first event is processed."""

    @abstractmethod
    def on_event(self, snapshot: StateSnapshot, event: Event) -> None:
        pass

    @abstractmethod
    def on_departure(self, order: Order) -> None:
        pass

    def on_finish(self, state: SystemState) -> None:
        """Called once after the run reaches its horizon."""


class NullRecorder(Recorder):

    def on_event(self, snapshot: StateSnapshot, event: Event) -> None:
        pass

    def on_departure(self, order: Order) -> None:
        pass


class FanOutRecorder(Recorder):
    """Forwards every notification to several recorders, in order."""

    def __init__(self, *recorders: Recorder):
        self.recorders = recorders

    def on_start(self, parameters: Parameters) -> None:
        for recorder in self.recorders:
            recorder.on_start(parameters)

    def on_event(self, snapshot: StateSnapshot, event: Event) -> None:
        for recorder in self.recorders:
            recorder.on_event(snapshot, event)

    def on_departure(self, order: Order) -> None:
        for recorder in self.recorders:
            recorder.on_departure(order)

    def on_finish(self, state: SystemState) -> None:
        for recorder in self.recorders:
            recorder.on_finish(state)
