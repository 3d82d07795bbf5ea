from __future__ import annotations

import hashlib
import logging
from typing import Callable, Optional

from netconv.core.timer import RepeatingTimer
from netconv.core.types import NodeId

DEFAULT_PERIOD = 0.1
DEFAULT_FIRST_DELAY = 1.0

ChangeHook = Callable[["RoutingStateSampler"], None]


def strip_volatile_header(text: str) -> str:
    """Drop the first line of a table rendering (it carries the current time)."""
    pos = text.find("\n")
    if pos == -1:
        return text
    return text[pos + 1 :]


def table_digest(table: str) -> str:
    return hashlib.sha256(table.encode("utf-8")).hexdigest()


class RoutingStateSampler:
    """Tracks when one node's routing table last changed.

    ``last_change_time`` starts at the instant :meth:`start` captured the
    baseline and only moves forward when a sample differs from the stored
    table. Ticks after :meth:`stop` are no-ops.
    """

    def __init__(
        self,
        engine,
        node: NodeId,
        period: float = DEFAULT_PERIOD,
        first_delay: float = DEFAULT_FIRST_DELAY,
        on_change: Optional[ChangeHook] = None,
    ) -> None:
        self._engine = engine
        self.node = node
        self._on_change = on_change
        self._timer = RepeatingTimer(engine, period, self.tick, first_delay=first_delay)
        self._log = logging.getLogger("netconv.sampler")
        self.table: Optional[str] = None
        self.last_change_time = 0.0
        self.changes = 0
        self.active = False

    def capture(self) -> str:
        return strip_volatile_header(self._engine.routing_table_text(self.node))

    def start(self) -> None:
        self.table = self.capture()
        self.last_change_time = self._engine.now()
        self.changes = 0
        self.active = True
        self._timer.start()

    def tick(self) -> bool:
        if not self.active:
            return False
        current = self.capture()
        if current == self.table:
            return False
        now = self._engine.now()
        self.table = current
        self.last_change_time = max(self.last_change_time, now)
        self.changes += 1
        self._log.debug("routing table of %s changed at t=%.3f", self.node, now)
        if self._on_change is not None:
            self._on_change(self)
        return True

    def stop(self) -> None:
        if not self.active:
            return
        # Changes at the stop instant still count toward this window.
        self.tick()
        self.active = False
        self._timer.cancel()

    @property
    def ticks(self) -> int:
        return self._timer.fired
