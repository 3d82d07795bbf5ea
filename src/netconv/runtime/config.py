from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from netconv.utils.io import deep_merge, load_yaml

DEFAULTS_FILE = "defaults.yaml"


@dataclass(frozen=True)
class SamplingConfig:
    period: float = 0.1
    first_delay: float = 1.0


@dataclass(frozen=True)
class FlowConfig:
    src: str
    dst: str
    port: int = 9
    start: float = 50.0
    interval: float = 0.1
    packet_size: int = 1024
    max_packets: int = 10000


@dataclass(frozen=True)
class FaultConfig:
    link: Tuple[str, str]
    down: float
    up: Optional[float] = None


@dataclass(frozen=True)
class WindowConfig:
    label: str
    start: float
    stop: float


@dataclass(frozen=True)
class TrackingConfig:
    mode: str = "windows"
    windows: List[WindowConfig] = field(default_factory=list)
    stop_at: Optional[float] = None
    label: str = "network"


@dataclass(frozen=True)
class ReportConfig:
    at: List[float] = field(default_factory=list)
    src: Optional[str] = None
    dst: Optional[str] = None


@dataclass(frozen=True)
class ExperimentConfig:
    name: str
    protocol: str
    simulation_time: float
    subfolder: str
    protocol_params: Dict[str, Any]
    sampling: SamplingConfig
    topology: Dict[str, Any]
    routers: List[str]
    flows: List[FlowConfig]
    faults: List[FaultConfig]
    tracking: TrackingConfig
    reports: ReportConfig


def load_effective_config(config_path: str | Path) -> Dict[str, Any]:
    """Merge an experiment file over ``defaults.yaml`` found next to it."""
    cfg_path = Path(config_path).resolve()
    cfg: Dict[str, Any] = {}
    defaults_path = cfg_path.parent / DEFAULTS_FILE
    if defaults_path.exists() and defaults_path != cfg_path:
        cfg = load_yaml(defaults_path)
    return deep_merge(cfg, load_yaml(cfg_path))


def parse_experiment(raw: Dict[str, Any]) -> ExperimentConfig:
    protocol = str(raw.get("protocol", "rip")).lower()
    protocol_params_all = dict(raw.get("protocol_params", {}))
    sampling = dict(raw.get("sampling", {}))
    topology = dict(raw.get("topology", {}))
    tracking_raw = dict(raw.get("tracking", {}))
    reports_raw = dict(raw.get("reports", {}))

    flows = [
        FlowConfig(
            src=str(item["src"]),
            dst=str(item["dst"]),
            port=int(item.get("port", 9)),
            start=float(item.get("start", 50.0)),
            interval=float(item.get("interval", 0.1)),
            packet_size=int(item.get("packet_size", 1024)),
            max_packets=int(item.get("max_packets", 10000)),
        )
        for item in raw.get("flows", [])
    ]

    faults = [
        FaultConfig(
            link=(str(item["link"][0]), str(item["link"][1])),
            down=float(item["down"]),
            up=float(item["up"]) if item.get("up") is not None else None,
        )
        for item in raw.get("faults", [])
    ]

    stop_at = tracking_raw.get("stop_at")
    tracking = TrackingConfig(
        mode=str(tracking_raw.get("mode", "windows")),
        windows=[
            WindowConfig(label=str(w["label"]), start=float(w["start"]), stop=float(w["stop"]))
            for w in tracking_raw.get("windows", [])
        ],
        stop_at=float(stop_at) if stop_at is not None else None,
        label=str(tracking_raw.get("label", "network")),
    )

    return ExperimentConfig(
        name=str(raw.get("name", "experiment")),
        protocol=protocol,
        simulation_time=float(raw.get("simulation_time", 300.0)),
        subfolder=str(raw.get("subfolder", ".")),
        protocol_params=dict(protocol_params_all.get(protocol, {})),
        sampling=SamplingConfig(
            period=float(sampling.get("period", 0.1)),
            first_delay=float(sampling.get("first_delay", 1.0)),
        ),
        topology=topology,
        routers=[str(r) for r in topology.get("routers", [])],
        flows=flows,
        faults=faults,
        tracking=tracking,
        reports=ReportConfig(
            at=[float(t) for t in reports_raw.get("at", [])],
            src=_opt_str(reports_raw.get("src")),
            dst=_opt_str(reports_raw.get("dst")),
        ),
    )


def _opt_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)
