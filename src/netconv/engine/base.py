from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict

from netconv.core.types import Callback, FiveTuple, FlowRecord, NodeId, VirtualTime


class SimulationEngine(ABC):
    """Primitives the instrumentation layer consumes from the simulator.

    Callbacks run single-threaded in non-decreasing virtual time; callbacks
    queued for the same instant run in submission order. There is no way to
    cancel a queued callback.
    """

    @abstractmethod
    def schedule(self, at: VirtualTime, callback: Callback) -> None:
        raise NotImplementedError

    @abstractmethod
    def now(self) -> VirtualTime:
        raise NotImplementedError

    @abstractmethod
    def routing_table_text(self, node: NodeId) -> str:
        """Render the node's routing table; the first line carries the current time."""
        raise NotImplementedError

    @abstractmethod
    def set_interface_up(self, node: NodeId, iface: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_interface_down(self, node: NodeId, iface: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def flow_stats(self) -> Dict[int, FlowRecord]:
        raise NotImplementedError

    @abstractmethod
    def classify_flow(self, flow_id: int) -> FiveTuple:
        raise NotImplementedError

    @abstractmethod
    def run(self, until: VirtualTime) -> None:
        raise NotImplementedError
