from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from netconv.engine.routing import SUPPORTED_PROTOCOLS


def validate_config(cfg: Dict[str, Any], check_output: bool = False) -> list[str]:
    errors: list[str] = []

    protocol = str(cfg.get("protocol", "")).lower()
    if not protocol:
        errors.append("Missing 'protocol' config")
    elif protocol not in SUPPORTED_PROTOCOLS:
        errors.append(f"Unknown routing protocol '{protocol}' (expected one of {list(SUPPORTED_PROTOCOLS)})")

    if float(cfg.get("simulation_time", 0)) <= 0:
        errors.append("simulation_time must be > 0")

    topo = cfg.get("topology")
    if not isinstance(topo, dict):
        errors.append("'topology' must be a dict")
        return errors

    nodes = {str(n) for n in topo.get("nodes", [])}
    pairs = set()
    for row in topo.get("links", []):
        a, b = str(row.get("a")), str(row.get("b"))
        nodes.update((a, b))
        pairs.add(frozenset((a, b)))
    if not pairs:
        errors.append("topology.links must not be empty")

    routers = [str(r) for r in topo.get("routers", [])]
    if not routers:
        errors.append("topology.routers must list the nodes to monitor")
    for r in routers:
        if r not in nodes:
            errors.append(f"Router '{r}' is not a topology node")

    for fault in cfg.get("faults", []):
        link = fault.get("link", [])
        if len(link) != 2 or frozenset(str(n) for n in link) not in pairs:
            errors.append(f"Fault references undeclared link {link}")

    for flow in cfg.get("flows", []):
        for key in ("src", "dst"):
            if str(flow.get(key)) not in nodes:
                errors.append(f"Flow {key} '{flow.get(key)}' is not a topology node")

    reports = cfg.get("reports", {})
    for key in ("src", "dst"):
        node = reports.get(key)
        if node is not None and str(node) not in nodes:
            errors.append(f"Report {key} '{node}' is not a topology node")

    tracking = cfg.get("tracking", {})
    mode = tracking.get("mode", "windows")
    if mode == "windows":
        if not tracking.get("windows"):
            errors.append("tracking.windows is required in windows mode")
    elif mode == "single_shot":
        if tracking.get("stop_at") is None:
            errors.append("tracking.stop_at is required in single_shot mode")
    else:
        errors.append(f"Unknown tracking mode '{mode}'")

    if check_output:
        subfolder = Path(str(cfg.get("subfolder", ".")))
        if not subfolder.is_dir():
            errors.append(f"Output subfolder does not exist: {subfolder}")

    return errors
