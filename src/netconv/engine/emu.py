from __future__ import annotations

import logging
from typing import Dict, Optional

import simpy

from netconv.core.types import Callback, FiveTuple, FlowRecord, NodeId, VirtualTime
from netconv.engine.base import SimulationEngine
from netconv.engine.routing import EmulatedRouting
from netconv.engine.traffic import CbrClient, FlowMonitor
from netconv.topology.topology import Topology

TIME_EPSILON = 1e-9


class SimpyEngine(SimulationEngine):
    """Engine backed by a simpy environment and an emulated routing plane.

    Callbacks are attached to simpy timeout events, which simpy processes in
    (time, creation) order, so same-instant callbacks keep submission order.
    """

    def __init__(
        self,
        topology: Topology,
        routing: EmulatedRouting,
        monitor: Optional[FlowMonitor] = None,
        env: Optional[simpy.Environment] = None,
    ) -> None:
        self.env = env or simpy.Environment()
        self.topology = topology
        self.routing = routing
        self.monitor = monitor or FlowMonitor()
        self._log = logging.getLogger("netconv.engine")

    @classmethod
    def build(cls, topology: Topology, protocol: str, protocol_params: Optional[dict] = None) -> "SimpyEngine":
        engine = cls(topology, EmulatedRouting(topology, protocol, protocol_params))
        engine.routing.boot(engine.now(), engine.schedule)
        return engine

    def schedule(self, at: VirtualTime, callback: Callback) -> None:
        delay = float(at) - self.env.now
        if delay < -TIME_EPSILON:
            raise ValueError(f"Cannot schedule at t={at} in the past (now={self.env.now})")
        event = self.env.timeout(max(0.0, delay))
        event.callbacks.append(lambda _event: callback())

    def now(self) -> VirtualTime:
        return float(self.env.now)

    def routing_table_text(self, node: NodeId) -> str:
        return self.routing.render(node, self.now())

    def set_interface_up(self, node: NodeId, iface: int) -> None:
        self.topology.set_interface(node, iface, True)
        self.routing.on_interface_change(node, iface, True, self.now(), self.schedule)

    def set_interface_down(self, node: NodeId, iface: int) -> None:
        self.topology.set_interface(node, iface, False)
        self.routing.on_interface_change(node, iface, False, self.now(), self.schedule)

    def flow_stats(self) -> Dict[int, FlowRecord]:
        return self.monitor.stats()

    def classify_flow(self, flow_id: int) -> FiveTuple:
        return self.monitor.classify(flow_id)

    def add_client(self, client: CbrClient) -> CbrClient:
        client.start()
        return client

    def run(self, until: VirtualTime) -> None:
        # Created after every setup-time event, so those due at `until` still run.
        stop = self.env.timeout(max(0.0, float(until) - self.env.now))
        self._log.info("running until t=%.3f", until)
        self.env.run(until=stop)
