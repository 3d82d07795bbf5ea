"""Simulator collaborators: the engine contract and an emulated implementation."""

from netconv.engine.base import SimulationEngine
from netconv.engine.emu import SimpyEngine
from netconv.engine.routing import SUPPORTED_PROTOCOLS, EmulatedRouting, ReactionTimers, Route
from netconv.engine.traffic import CbrClient, FlowMonitor

__all__ = [
    "SUPPORTED_PROTOCOLS",
    "CbrClient",
    "EmulatedRouting",
    "FlowMonitor",
    "ReactionTimers",
    "Route",
    "SimpyEngine",
    "SimulationEngine",
]
