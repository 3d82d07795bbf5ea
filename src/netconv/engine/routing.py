from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import networkx as nx

from netconv.topology.topology import Link, NodeId, Topology

SUPPORTED_PROTOCOLS: tuple[str, ...] = ("rip", "olsr")

PROTOCOL_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "rip": {
        "table_name": "Ipv4RipRouting",
        "down_detect_delay": 0.0,
        "up_detect_delay": 1.0,
        "hop_delay": 3.0,
        "withdraw_on_down": True,
    },
    "olsr": {
        "table_name": "OlsrRoutingProtocol",
        "down_detect_delay": 6.0,
        "up_detect_delay": 2.0,
        "hop_delay": 0.5,
        "withdraw_on_down": False,
    },
}

MAX_HOPS = 64


@dataclass(frozen=True)
class Route:
    destination: str
    gateway: str
    iface: int
    metric: float


@dataclass(frozen=True)
class ReactionTimers:
    table_name: str
    down_detect_delay: float
    up_detect_delay: float
    hop_delay: float
    withdraw_on_down: bool

    @classmethod
    def for_protocol(cls, protocol: str, params: Optional[Dict[str, Any]] = None) -> "ReactionTimers":
        if protocol not in PROTOCOL_DEFAULTS:
            raise ValueError(f"Unknown routing protocol: {protocol}. Available: {list(SUPPORTED_PROTOCOLS)}")
        merged = dict(PROTOCOL_DEFAULTS[protocol])
        merged.update(params or {})
        return cls(
            table_name=str(merged["table_name"]),
            down_detect_delay=float(merged["down_detect_delay"]),
            up_detect_delay=float(merged["up_detect_delay"]),
            hop_delay=float(merged["hop_delay"]),
            withdraw_on_down=bool(merged["withdraw_on_down"]),
        )


Scheduler = Callable[[float, Callable[[], None]], None]


class EmulatedRouting:
    """Routing tables as a simulated protocol would eventually install them.

    Target tables are shortest paths over the links that are currently up.
    After an interface change each node installs its new table with a lag
    that grows with its hop distance from the changed link, which is what the
    convergence tracker observes. No routing messages are exchanged.
    """

    def __init__(self, topology: Topology, protocol: str, params: Optional[Dict[str, Any]] = None) -> None:
        self.topology = topology
        self.protocol = protocol
        self.timers = ReactionTimers.for_protocol(protocol, params)
        self._tables: Dict[NodeId, Dict[str, Route]] = {n: {} for n in topology.nodes()}
        self._log = logging.getLogger("netconv.engine.routing")

    def boot(self, now: float, schedule: Scheduler) -> None:
        static = self.topology.graph(only_up=False)
        for node in self.topology.nodes():
            self._tables[node] = self._connected_routes(node)
            reach = nx.single_source_shortest_path_length(static, node)
            delay = self.timers.up_detect_delay + self.timers.hop_delay * max(reach.values(), default=0)
            schedule(now + delay, lambda n=node: self.install(n))

    def on_interface_change(self, node: NodeId, iface: int, up: bool, now: float, schedule: Scheduler) -> None:
        link = self.topology.link_at(node, iface)
        if not up and self.timers.withdraw_on_down:
            self._withdraw(node, iface)
        detect = self.timers.up_detect_delay if up else self.timers.down_detect_delay
        for other, hops in self._hops_from(link).items():
            schedule(now + detect + self.timers.hop_delay * hops, lambda n=other: self.install(n))

    def install(self, node: NodeId) -> bool:
        table = self.compute_table(node)
        if table == self._tables.get(node):
            return False
        self._tables[node] = table
        self._log.debug("installed %d routes on %s", len(table), node)
        return True

    def table(self, node: NodeId) -> Dict[str, Route]:
        return dict(self._tables.get(node, {}))

    def compute_table(self, node: NodeId) -> Dict[str, Route]:
        routes = self._connected_routes(node)
        g = self.topology.graph()
        dist, paths = nx.single_source_dijkstra(g, node, weight="metric")
        for link in self.topology.links():
            dst = str(link.subnet)
            if dst in routes or not self.topology.link_is_up(link):
                continue
            reachable = [e for e in (link.a, link.b) if e in dist]
            if not reachable:
                continue
            endpoint = min(reachable, key=lambda e: (dist[e], e))
            path = paths[endpoint]
            first_hop = g.edges[path[0], path[1]]["link"]
            routes[dst] = Route(
                destination=dst,
                gateway=first_hop.address_of(path[1]),
                iface=first_hop.iface_of(node),
                metric=dist[endpoint] + 1.0,
            )
        return routes

    def render(self, node: NodeId, now: float) -> str:
        lines = [
            f"Node: {node}, Time: +{now:.2f}s, Local time: +{now:.2f}s, {self.timers.table_name} table",
            "Destination         Gateway         Iface  Metric",
        ]
        for dst in sorted(self._tables.get(node, {})):
            r = self._tables[node][dst]
            lines.append(f"{r.destination:<19} {r.gateway:<15} {r.iface:<6} {r.metric:g}")
        return "\n".join(lines) + "\n"

    def forward(self, src: NodeId, dst_address: str) -> Optional[List[Link]]:
        """Follow installed next hops from ``src``; ``None`` when the packet is dropped."""
        dst_node, _ = self.topology.owner_of(dst_address)
        addr = ipaddress.IPv4Address(dst_address)
        current = src
        hops: List[Link] = []
        for _ in range(MAX_HOPS):
            if current == dst_node:
                return hops
            route = self._lookup(current, addr)
            if route is None or not self.topology.interface_up(current, route.iface):
                return None
            link = self.topology.link_at(current, route.iface)
            if not self.topology.link_is_up(link):
                return None
            hops.append(link)
            current = link.peer(current)
        return None

    def _lookup(self, node: NodeId, addr: ipaddress.IPv4Address) -> Optional[Route]:
        for dst, route in self._tables.get(node, {}).items():
            if addr in ipaddress.IPv4Network(dst):
                return route
        return None

    def _connected_routes(self, node: NodeId) -> Dict[str, Route]:
        out: Dict[str, Route] = {}
        for iface, link in self.topology.interfaces(node).items():
            if not self.topology.interface_up(node, iface):
                continue
            out[str(link.subnet)] = Route(destination=str(link.subnet), gateway="0.0.0.0", iface=iface, metric=0.0)
        return out

    def _withdraw(self, node: NodeId, iface: int) -> None:
        table = self._tables.get(node, {})
        self._tables[node] = {dst: r for dst, r in table.items() if r.iface != iface}

    def _hops_from(self, link: Link) -> Dict[NodeId, int]:
        static = self.topology.graph(only_up=False)
        from_a = nx.single_source_shortest_path_length(static, link.a)
        from_b = nx.single_source_shortest_path_length(static, link.b)
        return {
            node: min(from_a.get(node, MAX_HOPS), from_b.get(node, MAX_HOPS))
            for node in self.topology.nodes()
        }
