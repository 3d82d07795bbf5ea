from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional

NodeId = str
VirtualTime = float
Callback = Callable[[], None]


class ActionKind(str, Enum):
    TRACKER_STOP = "tracker_stop"
    TRACKER_START = "tracker_start"
    STATS_REPORT = "stats_report"
    LINK_DOWN = "link_down"
    LINK_UP = "link_up"


# Same-instant execution order; lower runs first.
ACTION_RANK: Dict[ActionKind, int] = {
    ActionKind.TRACKER_STOP: 0,
    ActionKind.TRACKER_START: 1,
    ActionKind.STATS_REPORT: 2,
    ActionKind.LINK_DOWN: 3,
    ActionKind.LINK_UP: 3,
}


@dataclass(frozen=True)
class LinkEndpoint:
    node: NodeId
    interface_index: int


@dataclass(frozen=True)
class LinkRecord:
    a: LinkEndpoint
    b: LinkEndpoint

    def endpoint(self, node: NodeId) -> LinkEndpoint:
        if node == self.a.node:
            return self.a
        if node == self.b.node:
            return self.b
        raise KeyError(node)


@dataclass(frozen=True)
class FiveTuple:
    source_address: str
    destination_address: str
    protocol: int
    source_port: int
    destination_port: int


@dataclass(frozen=True)
class FlowRecord:
    tx_packets: int = 0
    rx_packets: int = 0
    lost_packets: int = 0
    tx_bytes: int = 0
    rx_bytes: int = 0
    delay_sum: float = 0.0
    jitter_sum: float = 0.0


@dataclass(frozen=True)
class ConvergenceResult:
    window_label: str
    elapsed: float

    def to_dict(self) -> Dict[str, Any]:
        return {"window": self.window_label, "elapsed": float(self.elapsed)}


@dataclass(frozen=True)
class ScheduledAction:
    time: VirtualTime
    kind: ActionKind
    run: Callback = field(compare=False, repr=False)
    label: Optional[str] = None

    def sort_key(self) -> tuple[float, int]:
        return (self.time, ACTION_RANK[self.kind])
