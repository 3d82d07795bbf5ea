from __future__ import annotations

import csv
from pathlib import Path

from netconv.eval.metrics import compute_metrics
from netconv.utils.io import load_json


def summarize_runs(runs_dir: str, out_csv: str) -> int:
    runs_path = Path(runs_dir)
    rows = [compute_metrics(load_json(p)) for p in sorted(runs_path.rglob("result.json"))]

    fields: list[str] = []
    for row in rows:
        for key in row:
            if key not in fields:
                fields.append(key)

    out_path = Path(out_csv)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fields)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
    return len(rows)
