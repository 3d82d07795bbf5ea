from __future__ import annotations

from netconv.core.links import LinkController, LinkRegistry
from netconv.core.sampler import RoutingStateSampler, strip_volatile_header


def test_strip_volatile_header_drops_time_line() -> None:
    text = "Node: 1, Time: +12.30s\nDestination Gateway\n10.0.1.0/24 10.0.0.2\n"
    assert strip_volatile_header(text) == "Destination Gateway\n10.0.1.0/24 10.0.0.2\n"
    assert strip_volatile_header("single line") == "single line"


def test_baseline_is_not_a_change(scripted) -> None:
    engine, _ = scripted
    sampler = RoutingStateSampler(engine, "B")
    engine.schedule(5.0, sampler.start)
    engine.run(20.0)

    assert sampler.changes == 0
    assert sampler.last_change_time == 5.0
    assert sampler.ticks > 100


def test_identical_samples_never_advance_last_change(scripted) -> None:
    engine, routing = scripted
    sampler = RoutingStateSampler(engine, "B")
    sampler.start()
    # The rendered header carries a new time on every sample.
    engine.schedule(3.0, lambda: routing.set_table("B", "10.0.0.0/24 0.0.0.0 1 0\n"))
    engine.run(10.0)

    assert sampler.changes == 0
    assert sampler.last_change_time == 0.0


def test_change_recorded_at_first_tick_after_it(scripted) -> None:
    engine, routing = scripted
    sampler = RoutingStateSampler(engine, "B", period=0.1, first_delay=1.0)
    sampler.start()
    engine.schedule(2.05, lambda: routing.set_table("B", "10.0.9.0/24 10.0.0.1 1 2\n"))
    engine.run(5.0)

    assert sampler.changes == 1
    assert sampler.last_change_time == 2.1
    assert sampler.table == "10.0.9.0/24 10.0.0.1 1 2\n"


def test_tick_after_stop_is_noop(scripted) -> None:
    engine, routing = scripted
    sampler = RoutingStateSampler(engine, "B")
    sampler.start()
    engine.schedule(4.0, sampler.stop)
    engine.schedule(6.0, lambda: routing.set_table("B", "changed\n"))
    engine.run(10.0)

    assert sampler.active is False
    assert sampler.tick() is False
    assert sampler.changes == 0
    assert sampler.last_change_time == 0.0


def test_stop_samples_the_boundary_instant(scripted) -> None:
    engine, routing = scripted
    sampler = RoutingStateSampler(engine, "B", period=1.0, first_delay=1.0)
    sampler.start()
    engine.schedule(4.5, lambda: routing.set_table("B", "changed\n"))
    engine.schedule(4.5, sampler.stop)
    engine.run(10.0)

    assert sampler.changes == 1
    assert sampler.last_change_time == 4.5


def test_link_flap_between_ticks_is_not_a_change(scripted, line_topology) -> None:
    engine, routing = scripted
    registry = LinkRegistry()
    for link in line_topology.links():
        registry.register_link(link.a, link.b, link.iface_a, link.iface_b)
    controller = LinkController(engine, registry)
    sampler = RoutingStateSampler(engine, "B", period=1.0, first_delay=1.0)
    sampler.start()
    engine.schedule(2.2, lambda: controller.tear_down("B", "C"))
    engine.schedule(2.6, lambda: controller.bring_up("B", "C"))
    engine.run(6.0)

    assert [e[3] for e in routing.interface_events] == [False, False, True, True]
    assert sampler.changes == 0
    assert sampler.last_change_time == 0.0
