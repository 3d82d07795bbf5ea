from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from netconv.cli.validate import validate_config
from netconv.core.flowstats import FlowStatsAggregator
from netconv.core.links import LinkRegistry
from netconv.core.logging import JsonlLogger
from netconv.core.scenario import FaultScenario
from netconv.engine.emu import SimpyEngine
from netconv.engine.traffic import CbrClient
from netconv.runtime.config import ExperimentConfig, parse_experiment
from netconv.topology.topology import Topology
from netconv.utils.io import dump_json, ensure_dir

log = logging.getLogger("netconv.backend")


class EmuBackend:
    """Runs one experiment config on the emulated engine and writes its artifacts."""

    def run(self, config: Dict[str, Any]) -> Dict[str, Any]:
        errors = validate_config(config, check_output=True)
        if errors:
            raise ValueError("Invalid config: " + "; ".join(errors))
        exp = parse_experiment(config)

        topology = Topology.from_config(exp.topology)
        run_id = f"{exp.name}_{exp.protocol}"
        run_dir = ensure_dir(Path(exp.subfolder) / run_id)

        engine = SimpyEngine.build(topology, exp.protocol, exp.protocol_params)
        events = JsonlLogger(run_dir / "events.jsonl", clock=engine.now)
        try:
            scenario = self._build_scenario(exp, topology, engine, events)
            for flow in exp.flows:
                engine.add_client(
                    CbrClient(
                        engine,
                        src=flow.src,
                        dst=flow.dst,
                        port=flow.port,
                        interval=flow.interval,
                        packet_size=flow.packet_size,
                        max_packets=flow.max_packets,
                        start=flow.start,
                    )
                )
            scenario.submit()
            log.info("running %s with protocol %s for %.1fs", exp.name, exp.protocol, exp.simulation_time)
            engine.run(exp.simulation_time)
        finally:
            events.close()

        result_payload = {
            "run_id": run_id,
            "name": exp.name,
            "protocol": exp.protocol,
            "simulation_time": exp.simulation_time,
            "routers": exp.routers,
            "convergence": [r.to_dict() for r in scenario.convergence_results()],
            "reports": [r.to_dict() for r in scenario.reports],
            "events_logged": events.rows,
            "topology_links": [
                {
                    "a": link.a,
                    "b": link.b,
                    "iface_a": link.iface_a,
                    "iface_b": link.iface_b,
                    "subnet": str(link.subnet),
                    "metric": link.metric,
                }
                for link in topology.links()
            ],
        }
        dump_json(run_dir / "result.json", result_payload)
        dump_json(run_dir / "config.effective.json", config)
        return result_payload

    @staticmethod
    def _build_scenario(
        exp: ExperimentConfig,
        topology: Topology,
        engine: SimpyEngine,
        events: JsonlLogger,
    ) -> FaultScenario:
        registry = LinkRegistry()
        for link in topology.links():
            registry.register_link(link.a, link.b, link.iface_a, link.iface_b)
        log.debug("registered %d links", len(registry))

        scenario = FaultScenario(
            engine,
            registry,
            aggregator=FlowStatsAggregator(engine, exp.simulation_time, logger=events),
            period=exp.sampling.period,
            first_delay=exp.sampling.first_delay,
            logger=events,
        )
        for fault in exp.faults:
            scenario.fault(fault.link[0], fault.link[1], down_at=fault.down, up_at=fault.up)

        tracking = exp.tracking
        if tracking.mode == "single_shot":
            scenario.single_shot(tracking.label, tracking.stop_at, exp.routers)
        else:
            for window in tracking.windows:
                scenario.window(window.label, window.start, window.stop, exp.routers)

        src = topology.primary_address(exp.reports.src) if exp.reports.src else None
        dst = topology.primary_address(exp.reports.dst) if exp.reports.dst else None
        for at in exp.reports.at:
            scenario.report(at, src=src, dst=dst, label=f"{at:g}s")
        return scenario
