from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from netconv.core.logging import JsonlLogger
from netconv.core.types import FiveTuple, FlowRecord, VirtualTime


@dataclass(frozen=True)
class FlowMetrics:
    flow_id: Optional[int]
    five_tuple: Optional[FiveTuple]
    flow_count: int
    tx_packets: int
    rx_packets: int
    lost_packets: int
    tx_bytes: int
    rx_bytes: int
    loss_ratio: float
    avg_packet_size: float
    throughput_mbps: float
    avg_delay: float
    avg_jitter: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FlowReport:
    time: VirtualTime
    label: Optional[str]
    flows: List[FlowMetrics] = field(default_factory=list)
    aggregate: Optional[FlowMetrics] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": float(self.time),
            "label": self.label,
            "flows": [f.to_dict() for f in self.flows],
            "aggregate": self.aggregate.to_dict() if self.aggregate else None,
        }


def _ratio(num: float, den: float) -> float:
    return float(num) / den if den > 0 else 0.0


def derive_metrics(
    record: FlowRecord,
    duration: float,
    flow_id: Optional[int] = None,
    five_tuple: Optional[FiveTuple] = None,
    flow_count: int = 1,
) -> FlowMetrics:
    """Apply the flow monitor conventions to one set of cumulative counters.

    Throughput is taken over the whole simulation ``duration``, not the time
    elapsed so far. Every ratio is zero when its denominator is empty.
    """
    return FlowMetrics(
        flow_id=flow_id,
        five_tuple=five_tuple,
        flow_count=flow_count,
        tx_packets=record.tx_packets,
        rx_packets=record.rx_packets,
        lost_packets=record.lost_packets,
        tx_bytes=record.tx_bytes,
        rx_bytes=record.rx_bytes,
        loss_ratio=_ratio(record.lost_packets, record.tx_packets),
        avg_packet_size=_ratio(record.tx_bytes, record.tx_packets),
        throughput_mbps=_ratio(record.rx_bytes * 8.0, duration) / 1e6,
        avg_delay=_ratio(record.delay_sum, record.rx_packets),
        avg_jitter=_ratio(record.jitter_sum, record.rx_packets - 1) if record.rx_packets > 1 else 0.0,
    )


def sum_records(records: Iterable[FlowRecord]) -> FlowRecord:
    tx = rx = lost = tx_bytes = rx_bytes = 0
    delay_sum = jitter_sum = 0.0
    for r in records:
        tx += r.tx_packets
        rx += r.rx_packets
        lost += r.lost_packets
        tx_bytes += r.tx_bytes
        rx_bytes += r.rx_bytes
        delay_sum += r.delay_sum
        # A single received packet has no jitter baseline.
        if r.rx_packets > 1:
            jitter_sum += r.jitter_sum
    return FlowRecord(
        tx_packets=tx,
        rx_packets=rx,
        lost_packets=lost,
        tx_bytes=tx_bytes,
        rx_bytes=rx_bytes,
        delay_sum=delay_sum,
        jitter_sum=jitter_sum,
    )


class FlowStatsAggregator:
    def __init__(
        self,
        engine,
        simulation_duration: float,
        logger: Optional[JsonlLogger] = None,
    ) -> None:
        if simulation_duration <= 0:
            raise ValueError(f"simulation_duration must be > 0, got {simulation_duration}")
        self._engine = engine
        self.simulation_duration = float(simulation_duration)
        self._events = logger or JsonlLogger(path=None)
        self._log = logging.getLogger("netconv.flowstats")

    def matched_flows(
        self,
        src: Optional[str] = None,
        dst: Optional[str] = None,
    ) -> List[Tuple[int, FiveTuple, FlowRecord]]:
        out = []
        for flow_id, record in sorted(self._engine.flow_stats().items()):
            t = self._engine.classify_flow(flow_id)
            if src is not None and t.source_address != src:
                continue
            if dst is not None and t.destination_address != dst:
                continue
            out.append((flow_id, t, record))
        return out

    def per_flow(self, src: Optional[str] = None, dst: Optional[str] = None) -> List[FlowMetrics]:
        return [
            derive_metrics(record, self.simulation_duration, flow_id=flow_id, five_tuple=t)
            for flow_id, t, record in self.matched_flows(src, dst)
        ]

    def aggregate(self, src: Optional[str] = None, dst: Optional[str] = None) -> FlowMetrics:
        matched = self.matched_flows(src, dst)
        total = sum_records(record for _, _, record in matched)
        return derive_metrics(total, self.simulation_duration, flow_count=len(matched))

    def report(
        self,
        src: Optional[str] = None,
        dst: Optional[str] = None,
        label: Optional[str] = None,
    ) -> FlowReport:
        matched = self.matched_flows(src, dst)
        flows = [
            derive_metrics(record, self.simulation_duration, flow_id=flow_id, five_tuple=t)
            for flow_id, t, record in matched
        ]
        total = sum_records(record for _, _, record in matched)
        report = FlowReport(
            time=self._engine.now(),
            label=label,
            flows=flows,
            aggregate=derive_metrics(total, self.simulation_duration, flow_count=len(matched)),
        )
        self._log.info(
            "flow report %r at t=%.3f: %d flows, loss=%.4f",
            label,
            report.time,
            len(flows),
            report.aggregate.loss_ratio,
        )
        self._events.log("flow_report", **report.to_dict())
        return report
