"""Experiment configuration."""

from netconv.runtime.config import (
    ExperimentConfig,
    FaultConfig,
    FlowConfig,
    ReportConfig,
    SamplingConfig,
    TrackingConfig,
    WindowConfig,
    load_effective_config,
    parse_experiment,
)

__all__ = [
    "ExperimentConfig",
    "FaultConfig",
    "FlowConfig",
    "ReportConfig",
    "SamplingConfig",
    "TrackingConfig",
    "WindowConfig",
    "load_effective_config",
    "parse_experiment",
]
