from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from netconv.core.types import FiveTuple, FlowRecord

UDP_PROTOCOL = 17
IPV4_UDP_HEADER_BYTES = 28
FIRST_EPHEMERAL_PORT = 49153


@dataclass
class _Counters:
    tx_packets: int = 0
    rx_packets: int = 0
    lost_packets: int = 0
    tx_bytes: int = 0
    rx_bytes: int = 0
    delay_sum: float = 0.0
    jitter_sum: float = 0.0
    last_delay: Optional[float] = None

    def freeze(self) -> FlowRecord:
        return FlowRecord(
            tx_packets=self.tx_packets,
            rx_packets=self.rx_packets,
            lost_packets=self.lost_packets,
            tx_bytes=self.tx_bytes,
            rx_bytes=self.rx_bytes,
            delay_sum=self.delay_sum,
            jitter_sum=self.jitter_sum,
        )


class FlowMonitor:
    """Cumulative per-flow counters keyed by flow id, with a five-tuple classifier."""

    def __init__(self) -> None:
        self._counters: Dict[int, _Counters] = {}
        self._tuples: Dict[int, FiveTuple] = {}
        self._ids: Dict[FiveTuple, int] = {}

    def flow_id(self, five_tuple: FiveTuple) -> int:
        if five_tuple not in self._ids:
            fid = len(self._ids) + 1
            self._ids[five_tuple] = fid
            self._tuples[fid] = five_tuple
            self._counters[fid] = _Counters()
        return self._ids[five_tuple]

    def on_tx(self, flow_id: int, size: int) -> None:
        c = self._counters[flow_id]
        c.tx_packets += 1
        c.tx_bytes += size

    def on_rx(self, flow_id: int, size: int, delay: float) -> None:
        c = self._counters[flow_id]
        c.rx_packets += 1
        c.rx_bytes += size
        c.delay_sum += delay
        if c.last_delay is not None:
            c.jitter_sum += abs(delay - c.last_delay)
        c.last_delay = delay

    def on_lost(self, flow_id: int) -> None:
        self._counters[flow_id].lost_packets += 1

    def stats(self) -> Dict[int, FlowRecord]:
        return {fid: c.freeze() for fid, c in self._counters.items()}

    def classify(self, flow_id: int) -> FiveTuple:
        try:
            return self._tuples[flow_id]
        except KeyError:
            raise KeyError(f"Unknown flow id: {flow_id}") from None


class CbrClient:
    """Constant-bit-rate UDP sender whose packets follow the installed routes."""

    def __init__(
        self,
        engine,
        src: str,
        dst: str,
        port: int = 9,
        interval: float = 0.1,
        packet_size: int = 1024,
        max_packets: int = 10000,
        start: float = 0.0,
        source_port: int = FIRST_EPHEMERAL_PORT,
    ) -> None:
        self._engine = engine
        self.src = src
        self.dst = dst
        self.interval = float(interval)
        self.packet_size = int(packet_size)
        self.max_packets = int(max_packets)
        self.start_time = float(start)
        topology = engine.topology
        self.dst_address = topology.primary_address(dst)
        self.five_tuple = FiveTuple(
            source_address=topology.primary_address(src),
            destination_address=self.dst_address,
            protocol=UDP_PROTOCOL,
            source_port=int(source_port),
            destination_port=int(port),
        )
        self.sent = 0
        self._log = logging.getLogger("netconv.engine.traffic")

    @property
    def wire_size(self) -> int:
        return self.packet_size + IPV4_UDP_HEADER_BYTES

    def start(self) -> None:
        self._engine.schedule(self.start_time, self._send)

    def _send(self) -> None:
        monitor = self._engine.monitor
        fid = monitor.flow_id(self.five_tuple)
        size = self.wire_size
        monitor.on_tx(fid, size)
        self.sent += 1
        path = self._engine.routing.forward(self.src, self.dst_address)
        if path is None:
            monitor.on_lost(fid)
        else:
            delay = sum(link.transit_time(size) for link in path)
            self._engine.schedule(self._engine.now() + delay, lambda: monitor.on_rx(fid, size, delay))
        if self.sent < self.max_packets:
            self._engine.schedule(round(self.start_time + self.sent * self.interval, 9), self._send)
