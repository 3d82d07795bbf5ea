from __future__ import annotations

import pytest

from netconv.core.types import FiveTuple
from netconv.engine.emu import SimpyEngine
from netconv.engine.routing import ReactionTimers
from netconv.engine.traffic import CbrClient, FlowMonitor


def test_same_instant_callbacks_keep_submission_order(scripted) -> None:
    engine, _ = scripted
    seen: list[int] = []
    for i in range(3):
        engine.schedule(5.0, lambda i=i: seen.append(i))
    engine.schedule(4.0, lambda: seen.append(-1))
    engine.run(10.0)
    assert seen == [-1, 0, 1, 2]


def test_events_at_run_horizon_still_fire(scripted) -> None:
    engine, _ = scripted
    seen: list[float] = []
    engine.schedule(10.0, lambda: seen.append(engine.now()))
    engine.run(10.0)
    assert seen == [10.0]
    assert engine.now() == 10.0


def test_schedule_in_the_past_raises(scripted) -> None:
    engine, _ = scripted
    engine.run(5.0)
    with pytest.raises(ValueError):
        engine.schedule(4.0, lambda: None)


def test_rip_tables_converge_to_shortest_paths(line_topology) -> None:
    engine = SimpyEngine.build(line_topology, "rip")
    assert engine.routing.forward("A", line_topology.primary_address("D")) is None

    engine.run(20.0)
    table = engine.routing.table("A")
    assert sorted(table) == ["10.0.0.0/24", "10.0.1.0/24", "10.0.2.0/24"]
    assert table["10.0.0.0/24"].gateway == "0.0.0.0"
    assert table["10.0.2.0/24"].gateway == "10.0.0.2"
    assert table["10.0.2.0/24"].metric == 3.0

    path = engine.routing.forward("A", line_topology.primary_address("D"))
    assert [(link.a, link.b) for link in path] == [("A", "B"), ("B", "C"), ("C", "D")]

    text = engine.routing_table_text("A")
    header, columns = text.splitlines()[:2]
    assert header.startswith("Node: A, Time: +20.00s")
    assert "Ipv4RipRouting" in header
    assert columns.split() == ["Destination", "Gateway", "Iface", "Metric"]


def test_rip_withdraws_routes_on_interface_down(line_topology) -> None:
    engine = SimpyEngine.build(line_topology, "rip")
    engine.run(20.0)
    iface = line_topology.link_between("B", "C").iface_of("B")

    engine.set_interface_down("B", iface)
    assert "10.0.2.0/24" not in engine.routing.table("B")
    assert engine.routing.forward("A", line_topology.primary_address("D")) is None


def test_olsr_keeps_stale_routes_until_detection(line_topology) -> None:
    engine = SimpyEngine.build(line_topology, "olsr")
    engine.run(20.0)
    before = engine.routing.table("B")
    iface = line_topology.link_between("B", "C").iface_of("B")

    engine.set_interface_down("B", iface)
    assert engine.routing.table("B") == before
    engine.run(40.0)
    assert "10.0.2.0/24" not in engine.routing.table("B")
    assert "10.0.2.0/24" not in engine.routing.table("A")


def test_reaction_timers() -> None:
    timers = ReactionTimers.for_protocol("olsr", {"hop_delay": 1.5})
    assert timers.table_name == "OlsrRoutingProtocol"
    assert timers.hop_delay == 1.5
    assert timers.down_detect_delay == 6.0
    with pytest.raises(ValueError):
        ReactionTimers.for_protocol("ospf")


def test_flow_monitor_accumulates_jitter() -> None:
    monitor = FlowMonitor()
    flow = FiveTuple("10.0.0.1", "10.0.0.2", 17, 49153, 9)
    fid = monitor.flow_id(flow)
    assert fid == 1
    assert monitor.flow_id(flow) == 1
    monitor.on_tx(fid, 100)
    for delay in (0.01, 0.03, 0.02):
        monitor.on_rx(fid, 100, delay)
    monitor.on_lost(fid)

    record = monitor.stats()[fid]
    assert record.rx_packets == 3
    assert record.lost_packets == 1
    assert record.delay_sum == pytest.approx(0.06)
    assert record.jitter_sum == pytest.approx(0.03)
    assert monitor.classify(fid) == flow
    with pytest.raises(KeyError):
        monitor.classify(2)


def test_cbr_client_delivers_over_installed_routes(line_topology) -> None:
    engine = SimpyEngine.build(line_topology, "rip")
    client = engine.add_client(CbrClient(engine, "A", "D", interval=1.0, max_packets=5, start=20.0))
    engine.run(30.0)

    assert client.sent == 5
    (fid, record), = engine.flow_stats().items()
    assert engine.classify_flow(fid).source_address == "10.0.0.1"
    assert engine.classify_flow(fid).destination_address == "10.0.2.2"
    assert record.tx_packets == 5
    assert record.rx_packets == 5
    assert record.tx_bytes == 5 * 1052
    per_hop = 0.002 + 1052 * 8 / 5_000_000
    assert record.delay_sum == pytest.approx(5 * 3 * per_hop)
    assert record.jitter_sum == pytest.approx(0.0, abs=1e-12)
