from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from netconv.core.logging import JsonlLogger
from netconv.core.sampler import (
    DEFAULT_FIRST_DELAY,
    DEFAULT_PERIOD,
    RoutingStateSampler,
    table_digest,
)
from netconv.core.types import ConvergenceResult, NodeId, VirtualTime


class ConvergenceTracker:
    """Measures how long a set of nodes keeps changing routes within a window.

    The convergence time of a window is the last observed table change of
    the slowest node, relative to the window start. A window in which no
    table changed reports zero.
    """

    def __init__(
        self,
        engine,
        nodes: Iterable[NodeId],
        label: str = "",
        period: float = DEFAULT_PERIOD,
        first_delay: float = DEFAULT_FIRST_DELAY,
        logger: Optional[JsonlLogger] = None,
    ) -> None:
        self._engine = engine
        self.label = label
        self._events = logger or JsonlLogger(path=None)
        self._log = logging.getLogger("netconv.convergence")
        self.samplers: List[RoutingStateSampler] = [
            RoutingStateSampler(
                engine,
                node,
                period=period,
                first_delay=first_delay,
                on_change=self._record_change,
            )
            for node in nodes
        ]
        self.start_time: Optional[VirtualTime] = None
        self.stop_time: Optional[VirtualTime] = None
        self.active = False

    @property
    def nodes(self) -> List[NodeId]:
        return [s.node for s in self.samplers]

    def start(self) -> None:
        self.start_time = self._engine.now()
        self.stop_time = None
        for sampler in self.samplers:
            sampler.start()
        self.active = True
        self._log.info("window %r started at t=%.3f over %s", self.label, self.start_time, self.nodes)
        self._events.log("window_start", window=self.label, nodes=self.nodes)

    def stop(self) -> None:
        if not self.active:
            return
        for sampler in self.samplers:
            sampler.stop()
        self.active = False
        self.stop_time = self._engine.now()
        self._log.info(
            "window %r stopped at t=%.3f, convergence %.3fs",
            self.label,
            self.stop_time,
            self.network_convergence_time(),
        )
        self._events.log(
            "window_stop",
            window=self.label,
            convergence=self.network_convergence_time(),
        )

    def track_until(self, stop_at: VirtualTime) -> None:
        """Start now and stop at ``stop_at``, discarding whatever happens later."""
        self.start()
        self._engine.schedule(stop_at, self.stop)

    def last_change_time(self) -> Optional[VirtualTime]:
        if self.start_time is None:
            return None
        latest = self.start_time
        for sampler in self.samplers:
            if sampler.last_change_time > latest:
                latest = sampler.last_change_time
        return latest

    def network_convergence_time(self) -> float:
        latest = self.last_change_time()
        if latest is None:
            return 0.0
        return max(0.0, round(latest - self.start_time, 9))

    def result(self) -> ConvergenceResult:
        return ConvergenceResult(window_label=self.label, elapsed=self.network_convergence_time())

    def _record_change(self, sampler: RoutingStateSampler) -> None:
        self._events.log(
            "table_change",
            window=self.label,
            node=sampler.node,
            digest=table_digest(sampler.table or ""),
        )
