from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from netconv.core.convergence import ConvergenceTracker
from netconv.core.flowstats import FlowReport, FlowStatsAggregator
from netconv.core.links import LinkController, LinkRegistry
from netconv.core.logging import JsonlLogger
from netconv.core.sampler import DEFAULT_FIRST_DELAY, DEFAULT_PERIOD
from netconv.core.types import (
    ActionKind,
    ConvergenceResult,
    NodeId,
    ScheduledAction,
    VirtualTime,
)


class FaultScenario:
    """Timeline of fault actions, tracking windows and stats reports.

    Nothing here keeps time: every action is handed to the engine scheduler
    by :meth:`submit`. Actions sharing an instant run stop, start, report,
    then link changes; ties within a kind keep declaration order.
    """

    def __init__(
        self,
        engine,
        registry: LinkRegistry,
        aggregator: Optional[FlowStatsAggregator] = None,
        period: float = DEFAULT_PERIOD,
        first_delay: float = DEFAULT_FIRST_DELAY,
        logger: Optional[JsonlLogger] = None,
    ) -> None:
        self._engine = engine
        self.registry = registry
        self.aggregator = aggregator
        self.period = period
        self.first_delay = first_delay
        self._events = logger or JsonlLogger(path=None)
        self._log = logging.getLogger("netconv.scenario")
        self.controller = LinkController(engine, registry, logger=self._events)
        self.trackers: Dict[str, ConvergenceTracker] = {}
        self.reports: List[FlowReport] = []
        self._actions: List[ScheduledAction] = []
        self._submitted = False

    def link_down(self, at: VirtualTime, node_a: NodeId, node_b: NodeId) -> None:
        self._add(
            at,
            ActionKind.LINK_DOWN,
            lambda: self.controller.tear_down(node_a, node_b),
        )

    def link_up(self, at: VirtualTime, node_a: NodeId, node_b: NodeId) -> None:
        self._add(
            at,
            ActionKind.LINK_UP,
            lambda: self.controller.bring_up(node_a, node_b),
        )

    def fault(
        self,
        node_a: NodeId,
        node_b: NodeId,
        down_at: VirtualTime,
        up_at: Optional[VirtualTime] = None,
    ) -> None:
        if up_at is not None and up_at < down_at:
            raise ValueError(f"Link {node_a}-{node_b} restored at {up_at} before failing at {down_at}")
        self.link_down(down_at, node_a, node_b)
        if up_at is not None:
            self.link_up(up_at, node_a, node_b)

    def window(
        self,
        label: str,
        start: VirtualTime,
        stop: VirtualTime,
        nodes: Iterable[NodeId],
    ) -> ConvergenceTracker:
        if label in self.trackers:
            raise ValueError(f"Duplicate window label: {label}")
        if stop < start:
            raise ValueError(f"Window {label!r} stops at {stop} before starting at {start}")
        tracker = ConvergenceTracker(
            self._engine,
            nodes,
            label=label,
            period=self.period,
            first_delay=self.first_delay,
            logger=self._events,
        )
        self.trackers[label] = tracker
        self._add(start, ActionKind.TRACKER_START, tracker.start, label=label)
        self._add(stop, ActionKind.TRACKER_STOP, tracker.stop, label=label)
        return tracker

    def single_shot(
        self,
        label: str,
        stop_at: VirtualTime,
        nodes: Iterable[NodeId],
        start: VirtualTime = 0.0,
    ) -> ConvergenceTracker:
        """Track from run start and stop exactly at the fault under study."""
        return self.window(label, start, stop_at, nodes)

    def report(
        self,
        at: VirtualTime,
        src: Optional[str] = None,
        dst: Optional[str] = None,
        label: Optional[str] = None,
    ) -> None:
        if self.aggregator is None:
            raise ValueError("Scenario has no flow statistics aggregator")
        aggregator = self.aggregator

        def _report() -> None:
            self.reports.append(aggregator.report(src=src, dst=dst, label=label))

        self._add(at, ActionKind.STATS_REPORT, _report, label=label)

    @property
    def actions(self) -> List[ScheduledAction]:
        return sorted(self._actions, key=lambda a: a.sort_key())

    def submit(self) -> None:
        if self._submitted:
            raise RuntimeError("Scenario already submitted")
        now = self._engine.now()
        actions = self.actions
        for action in actions:
            if action.time < now:
                raise ValueError(f"Action {action.kind.value} at {action.time} is in the past (now={now})")
        for action in actions:
            self._engine.schedule(action.time, action.run)
        self._submitted = True
        self._log.info("submitted %d scenario actions", len(actions))

    def convergence_results(self) -> List[ConvergenceResult]:
        return [tracker.result() for tracker in self.trackers.values()]

    def _add(self, at: VirtualTime, kind: ActionKind, run, label: Optional[str] = None) -> None:
        if self._submitted:
            raise RuntimeError("Scenario already submitted")
        self._actions.append(
            ScheduledAction(time=float(at), kind=kind, run=run, label=label)
        )
