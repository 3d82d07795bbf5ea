from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

import pytest

from netconv.engine.emu import SimpyEngine
from netconv.topology.topology import Topology


class ScriptedRouting:
    """Routing plane whose tables are set directly by the test."""

    def __init__(self, nodes: List[str]) -> None:
        self.tables: Dict[str, str] = {n: "10.0.0.0/24 0.0.0.0 1 0\n" for n in nodes}
        self.interface_events: List[Tuple[float, str, int, bool]] = []

    def set_table(self, node: str, text: str) -> None:
        self.tables[node] = text

    def render(self, node: str, now: float) -> str:
        return f"Node: {node}, Time: +{now:.2f}s, Local time: +{now:.2f}s, Scripted table\n" + self.tables[node]

    def on_interface_change(
        self,
        node: str,
        iface: int,
        up: bool,
        now: float,
        schedule: Callable[[float, Callable[[], None]], None],
    ) -> None:
        self.interface_events.append((now, node, iface, up))

    def forward(self, src: str, dst_address: str) -> Optional[list]:
        return None


def make_scripted_engine(topology: Topology) -> Tuple[SimpyEngine, ScriptedRouting]:
    routing = ScriptedRouting(topology.nodes())
    return SimpyEngine(topology, routing), routing


@pytest.fixture
def line_topology() -> Topology:
    return Topology.line(["A", "B", "C", "D"])


@pytest.fixture
def scripted(line_topology: Topology) -> Tuple[SimpyEngine, ScriptedRouting]:
    return make_scripted_engine(line_topology)


@pytest.fixture
def engine_for() -> Callable[[Topology], Tuple[SimpyEngine, ScriptedRouting]]:
    return make_scripted_engine
