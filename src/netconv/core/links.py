from __future__ import annotations

import logging
from typing import Dict, Optional, Set, Tuple

from netconv.core.errors import UnknownLinkError
from netconv.core.logging import JsonlLogger
from netconv.core.types import LinkEndpoint, LinkRecord, NodeId


class LinkRegistry:
    """Maps a node pair to the interfaces that must be toggled together."""

    def __init__(self) -> None:
        self._by_pair: Dict[Tuple[NodeId, NodeId], LinkRecord] = {}
        self._records: list[LinkRecord] = []

    def register_link(self, node_a: NodeId, node_b: NodeId, iface_a: int, iface_b: int) -> LinkRecord:
        if node_a == node_b:
            raise ValueError(f"Self-link on node {node_a!r}")
        if (node_a, node_b) in self._by_pair:
            raise ValueError(f"Link between {node_a!r} and {node_b!r} already registered")
        record = LinkRecord(
            a=LinkEndpoint(node=node_a, interface_index=int(iface_a)),
            b=LinkEndpoint(node=node_b, interface_index=int(iface_b)),
        )
        self._by_pair[(node_a, node_b)] = record
        self._by_pair[(node_b, node_a)] = record
        self._records.append(record)
        return record

    def record(self, node_a: NodeId, node_b: NodeId) -> LinkRecord:
        try:
            return self._by_pair[(node_a, node_b)]
        except KeyError:
            raise UnknownLinkError(node_a, node_b) from None

    def lookup(self, node_a: NodeId, node_b: NodeId) -> Tuple[int, int]:
        """Return ``(iface on node_a, iface on node_b)``."""
        record = self.record(node_a, node_b)
        return (
            record.endpoint(node_a).interface_index,
            record.endpoint(node_b).interface_index,
        )

    def __len__(self) -> int:
        return len(self._records)


class LinkController:
    def __init__(
        self,
        engine,
        registry: LinkRegistry,
        logger: Optional[JsonlLogger] = None,
    ) -> None:
        self._engine = engine
        self._registry = registry
        self._events = logger or JsonlLogger(path=None)
        self._log = logging.getLogger("netconv.links")
        self._down: Set[LinkRecord] = set()

    def tear_down(self, node_a: NodeId, node_b: NodeId) -> None:
        iface_a, iface_b = self._registry.lookup(node_a, node_b)
        self._engine.set_interface_down(node_a, iface_a)
        self._engine.set_interface_down(node_b, iface_b)
        self._down.add(self._registry.record(node_a, node_b))
        self._log.info("link %s-%s down at t=%.3f", node_a, node_b, self._engine.now())
        self._events.log("link_down", a=node_a, b=node_b, iface_a=iface_a, iface_b=iface_b)

    def bring_up(self, node_a: NodeId, node_b: NodeId) -> None:
        iface_a, iface_b = self._registry.lookup(node_a, node_b)
        self._engine.set_interface_up(node_a, iface_a)
        self._engine.set_interface_up(node_b, iface_b)
        self._down.discard(self._registry.record(node_a, node_b))
        self._log.info("link %s-%s up at t=%.3f", node_a, node_b, self._engine.now())
        self._events.log("link_up", a=node_a, b=node_b, iface_a=iface_a, iface_b=iface_b)

    def is_down(self, node_a: NodeId, node_b: NodeId) -> bool:
        return self._registry.record(node_a, node_b) in self._down
