"""Instrumentation and fault-injection core."""

from netconv.core.convergence import ConvergenceTracker
from netconv.core.errors import UnknownLinkError
from netconv.core.flowstats import FlowMetrics, FlowReport, FlowStatsAggregator
from netconv.core.links import LinkController, LinkRegistry
from netconv.core.sampler import RoutingStateSampler, strip_volatile_header
from netconv.core.scenario import FaultScenario
from netconv.core.timer import RepeatingTimer
from netconv.core.types import (
    ActionKind,
    ConvergenceResult,
    FiveTuple,
    FlowRecord,
    LinkEndpoint,
    LinkRecord,
    ScheduledAction,
)

__all__ = [
    "ActionKind",
    "ConvergenceResult",
    "ConvergenceTracker",
    "FaultScenario",
    "FiveTuple",
    "FlowMetrics",
    "FlowRecord",
    "FlowReport",
    "FlowStatsAggregator",
    "LinkController",
    "LinkEndpoint",
    "LinkRecord",
    "LinkRegistry",
    "RepeatingTimer",
    "RoutingStateSampler",
    "ScheduledAction",
    "UnknownLinkError",
    "strip_volatile_header",
]
