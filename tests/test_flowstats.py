from __future__ import annotations

from typing import Dict

import pytest

from netconv.core.flowstats import FlowStatsAggregator, derive_metrics, sum_records
from netconv.core.types import FiveTuple, FlowRecord


class FixedFlows:
    """Engine stub exposing a fixed flow-monitor snapshot."""

    def __init__(self, flows: Dict[int, tuple[FiveTuple, FlowRecord]], now: float = 300.0) -> None:
        self._flows = flows
        self._now = now

    def now(self) -> float:
        return self._now

    def flow_stats(self) -> Dict[int, FlowRecord]:
        return {fid: rec for fid, (_, rec) in self._flows.items()}

    def classify_flow(self, flow_id: int) -> FiveTuple:
        return self._flows[flow_id][0]


def _tuple(src: str, dst: str, sport: int = 49153) -> FiveTuple:
    return FiveTuple(src, dst, 17, sport, 9)


def test_single_flow_metrics() -> None:
    record = FlowRecord(
        tx_packets=1000,
        rx_packets=950,
        lost_packets=50,
        tx_bytes=1024000,
        rx_bytes=972800,
        delay_sum=19.0,
        jitter_sum=0.949,
    )
    m = derive_metrics(record, duration=300.0)

    assert m.loss_ratio == pytest.approx(0.05)
    assert m.avg_packet_size == pytest.approx(1024.0)
    assert m.throughput_mbps == pytest.approx(972800 * 8 / 300 / 1e6)
    assert m.throughput_mbps == pytest.approx(0.02594, abs=1e-5)
    assert m.avg_delay == pytest.approx(0.02)
    assert m.avg_jitter == pytest.approx(0.949 / 949)


def test_empty_flow_is_all_zero() -> None:
    m = derive_metrics(FlowRecord(), duration=300.0)
    assert m.loss_ratio == 0.0
    assert m.avg_packet_size == 0.0
    assert m.throughput_mbps == 0.0
    assert m.avg_delay == 0.0
    assert m.avg_jitter == 0.0


def test_jitter_needs_two_received_packets() -> None:
    one = derive_metrics(FlowRecord(tx_packets=3, rx_packets=1, delay_sum=0.5, jitter_sum=0.2), 10.0)
    assert one.avg_jitter == 0.0
    assert one.avg_delay == pytest.approx(0.5)


@pytest.mark.parametrize("lost", [0, 1, 37, 100])
def test_loss_ratio_bounds(lost: int) -> None:
    m = derive_metrics(FlowRecord(tx_packets=100, rx_packets=100 - lost, lost_packets=lost), 300.0)
    assert 0.0 <= m.loss_ratio <= 1.0
    assert m.loss_ratio == pytest.approx(lost / 100)


def test_aggregate_skips_jitter_of_single_packet_flows() -> None:
    total = sum_records(
        [
            FlowRecord(tx_packets=10, rx_packets=10, tx_bytes=100, rx_bytes=100, delay_sum=1.0, jitter_sum=0.9),
            FlowRecord(tx_packets=5, rx_packets=1, tx_bytes=50, rx_bytes=10, delay_sum=0.3, jitter_sum=7.0),
        ]
    )
    assert total.tx_packets == 15
    assert total.rx_packets == 11
    assert total.delay_sum == pytest.approx(1.3)
    assert total.jitter_sum == pytest.approx(0.9)


def test_aggregator_filters_by_pair_and_aggregates() -> None:
    engine = FixedFlows(
        {
            1: (_tuple("10.0.0.1", "10.0.3.2"), FlowRecord(tx_packets=100, rx_packets=90, lost_packets=10, tx_bytes=105200, rx_bytes=94680, delay_sum=0.9, jitter_sum=0.089)),
            2: (_tuple("10.0.3.2", "10.0.0.1", sport=49154), FlowRecord(tx_packets=50, rx_packets=50, tx_bytes=52600, rx_bytes=52600, delay_sum=0.5)),
            3: (_tuple("10.0.0.1", "10.0.3.2", sport=49155), FlowRecord()),
        }
    )
    aggregator = FlowStatsAggregator(engine, simulation_duration=300.0)

    matched = aggregator.per_flow(src="10.0.0.1", dst="10.0.3.2")
    assert [m.flow_id for m in matched] == [1, 3]

    agg = aggregator.aggregate(src="10.0.0.1", dst="10.0.3.2")
    assert agg.flow_count == 2
    assert agg.tx_packets == 100
    assert agg.loss_ratio == pytest.approx(0.1)

    everything = aggregator.report(label="final")
    assert everything.time == 300.0
    assert len(everything.flows) == 3
    assert everything.aggregate.flow_count == 3
    assert everything.aggregate.tx_packets == 150
    assert everything.aggregate.avg_delay == pytest.approx(1.4 / 140)
    assert everything.to_dict()["flows"][0]["five_tuple"]["source_address"] == "10.0.0.1"


def test_aggregator_requires_positive_duration() -> None:
    with pytest.raises(ValueError):
        FlowStatsAggregator(FixedFlows({}), simulation_duration=0.0)
