from __future__ import annotations

from typing import Optional

from netconv.core.types import Callback


class RepeatingTimer:
    """Fires ``callback`` every ``period`` seconds of virtual time.

    The first firing happens ``first_delay`` after :meth:`start` (defaults to
    ``period``). Firing instants are derived from the start anchor instead of
    being accumulated, so a long-running timer stays on its grid.

    :meth:`cancel` only flips a flag: firings already queued on the engine
    still run, see the flag and return without calling ``callback``.
    Restarting bumps a generation counter so stale firings from a previous
    run are ignored as well.
    """

    def __init__(
        self,
        engine,
        period: float,
        callback: Callback,
        first_delay: Optional[float] = None,
    ) -> None:
        if period <= 0:
            raise ValueError(f"period must be > 0, got {period}")
        self._engine = engine
        self.period = float(period)
        self.first_delay = float(period if first_delay is None else first_delay)
        if self.first_delay < 0:
            raise ValueError(f"first_delay must be >= 0, got {first_delay}")
        self._callback = callback
        self._generation = 0
        self._anchor = 0.0
        self._fired = 0
        self.running = False

    def start(self) -> None:
        self._generation += 1
        self._anchor = self._engine.now() + self.first_delay
        self._fired = 0
        self.running = True
        self._arm(self._generation)

    def cancel(self) -> None:
        self.running = False

    @property
    def fired(self) -> int:
        return self._fired

    def next_fire_time(self) -> float:
        return round(self._anchor + self._fired * self.period, 9)

    def _arm(self, generation: int) -> None:
        self._engine.schedule(self.next_fire_time(), lambda: self._fire(generation))

    def _fire(self, generation: int) -> None:
        if not self.running or generation != self._generation:
            return
        self._fired += 1
        self._callback()
        if self.running and generation == self._generation:
            self._arm(generation)
