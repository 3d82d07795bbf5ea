from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

import networkx as nx

NodeId = str


@dataclass(frozen=True)
class Link:
    a: NodeId
    b: NodeId
    iface_a: int
    iface_b: int
    subnet: ipaddress.IPv4Network
    metric: float = 1.0
    delay: float = 0.002
    data_rate: float = 5_000_000.0

    @property
    def addr_a(self) -> str:
        return str(self.subnet.network_address + 1)

    @property
    def addr_b(self) -> str:
        return str(self.subnet.network_address + 2)

    def address_of(self, node: NodeId) -> str:
        if node == self.a:
            return self.addr_a
        if node == self.b:
            return self.addr_b
        raise KeyError(node)

    def iface_of(self, node: NodeId) -> int:
        if node == self.a:
            return self.iface_a
        if node == self.b:
            return self.iface_b
        raise KeyError(node)

    def peer(self, node: NodeId) -> NodeId:
        if node == self.a:
            return self.b
        if node == self.b:
            return self.a
        raise KeyError(node)

    def transit_time(self, size_bytes: int) -> float:
        return self.delay + size_bytes * 8.0 / self.data_rate


class Topology:
    """Named nodes joined by point-to-point links with numbered interfaces.

    Interface 0 is the loopback; link interfaces are numbered from 1 in the
    order links are added to a node unless given explicitly.
    """

    def __init__(self) -> None:
        self._nodes: List[NodeId] = []
        self._links: List[Link] = []
        self._by_iface: Dict[Tuple[NodeId, int], Link] = {}
        self._down: Set[Tuple[NodeId, int]] = set()

    def add_node(self, node: NodeId) -> None:
        if node not in self._nodes:
            self._nodes.append(node)

    def nodes(self) -> List[NodeId]:
        return list(self._nodes)

    def links(self) -> List[Link]:
        return list(self._links)

    def add_link(
        self,
        a: NodeId,
        b: NodeId,
        subnet: str,
        metric: float = 1.0,
        delay: float = 0.002,
        data_rate: float = 5_000_000.0,
        iface_a: Optional[int] = None,
        iface_b: Optional[int] = None,
    ) -> Link:
        if a == b:
            raise ValueError(f"Self-link on node {a!r}")
        if self.link_between(a, b) is not None:
            raise ValueError(f"Duplicate link {a}-{b}")
        self.add_node(a)
        self.add_node(b)
        link = Link(
            a=a,
            b=b,
            iface_a=int(iface_a) if iface_a is not None else self._next_iface(a),
            iface_b=int(iface_b) if iface_b is not None else self._next_iface(b),
            subnet=ipaddress.IPv4Network(subnet),
            metric=float(metric),
            delay=float(delay),
            data_rate=float(data_rate),
        )
        for key in ((a, link.iface_a), (b, link.iface_b)):
            if key in self._by_iface:
                raise ValueError(f"Interface {key[1]} already in use on {key[0]!r}")
        self._by_iface[(a, link.iface_a)] = link
        self._by_iface[(b, link.iface_b)] = link
        self._links.append(link)
        return link

    def _next_iface(self, node: NodeId) -> int:
        used = [iface for (n, iface) in self._by_iface if n == node]
        return max(used, default=0) + 1

    def link_between(self, a: NodeId, b: NodeId) -> Optional[Link]:
        for link in self._links:
            if {link.a, link.b} == {a, b}:
                return link
        return None

    def link_at(self, node: NodeId, iface: int) -> Link:
        try:
            return self._by_iface[(node, iface)]
        except KeyError:
            raise KeyError(f"No interface {iface} on node {node!r}") from None

    def interfaces(self, node: NodeId) -> Dict[int, Link]:
        return {iface: link for (n, iface), link in sorted(self._by_iface.items()) if n == node}

    def primary_address(self, node: NodeId) -> str:
        ifaces = self.interfaces(node)
        if not ifaces:
            raise KeyError(f"Node {node!r} has no interfaces")
        iface = min(ifaces)
        return ifaces[iface].address_of(node)

    def owner_of(self, address: str) -> Tuple[NodeId, Link]:
        for link in self._links:
            if address == link.addr_a:
                return link.a, link
            if address == link.addr_b:
                return link.b, link
        raise KeyError(f"Unknown address {address}")

    def set_interface(self, node: NodeId, iface: int, up: bool) -> Link:
        link = self.link_at(node, iface)
        if up:
            self._down.discard((node, iface))
        else:
            self._down.add((node, iface))
        return link

    def interface_up(self, node: NodeId, iface: int) -> bool:
        return (node, iface) not in self._down

    def link_is_up(self, link: Link) -> bool:
        return self.interface_up(link.a, link.iface_a) and self.interface_up(link.b, link.iface_b)

    def graph(self, only_up: bool = True) -> nx.Graph:
        g = nx.Graph()
        g.add_nodes_from(self._nodes)
        for link in self._links:
            if only_up and not self.link_is_up(link):
                continue
            g.add_edge(link.a, link.b, metric=link.metric, link=link)
        return g

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "Topology":
        t = cls()
        for node in cfg.get("nodes", []):
            t.add_node(str(node))
        for idx, row in enumerate(cfg.get("links", [])):
            t.add_link(
                str(row["a"]),
                str(row["b"]),
                subnet=str(row.get("subnet", f"10.0.{idx}.0/24")),
                metric=float(row.get("metric", 1.0)),
                delay=float(row.get("delay", 0.002)),
                data_rate=float(row.get("data_rate", 5_000_000.0)),
                iface_a=row.get("iface_a"),
                iface_b=row.get("iface_b"),
            )
        return t

    @classmethod
    def line(cls, names: Iterable[NodeId], base: str = "10.0") -> "Topology":
        t = cls()
        names = list(names)
        for name in names:
            t.add_node(name)
        for i in range(len(names) - 1):
            t.add_link(names[i], names[i + 1], subnet=f"{base}.{i}.0/24")
        return t
