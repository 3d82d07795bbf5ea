from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional


class JsonlLogger:
    """Structured run trace, one JSON object per line.

    Rows are stamped with the virtual time from ``clock`` when one is bound.
    Without a path the logger only counts rows.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._path = Path(path) if path else None
        self._clock = clock
        self._fh = None
        self.rows = 0
        if self._path:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = self._path.open("w", encoding="utf-8")

    def log(self, event: str, **kwargs: Any) -> None:
        self.rows += 1
        if not self._fh:
            return
        row = {"event": event, **kwargs}
        if self._clock is not None:
            row.setdefault("t", round(float(self._clock()), 9))
        self._fh.write(json.dumps(row, sort_keys=True, default=str) + "\n")
        self._fh.flush()

    def close(self) -> None:
        if self._fh:
            self._fh.close()
            self._fh = None

    def __enter__(self) -> "JsonlLogger":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
