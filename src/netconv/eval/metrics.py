from __future__ import annotations

from typing import Dict, Optional


def compute_metrics(run: Dict) -> Dict:
    row = {
        "run_id": run.get("run_id"),
        "name": run.get("name"),
        "protocol": run.get("protocol"),
        "simulation_time": run.get("simulation_time"),
        "max_convergence": _max_convergence(run.get("convergence", [])),
    }
    for window in run.get("convergence", []):
        row[f"convergence_{window['window']}"] = window["elapsed"]
    final = _final_aggregate(run.get("reports", []))
    if final is not None:
        for key in ("tx_packets", "rx_packets", "lost_packets", "loss_ratio", "throughput_mbps", "avg_delay", "avg_jitter"):
            row[key] = final[key]
    return row


def _max_convergence(windows: list) -> Optional[float]:
    if not windows:
        return None
    return max(float(w["elapsed"]) for w in windows)


def _final_aggregate(reports: list) -> Optional[Dict]:
    if not reports:
        return None
    return reports[-1].get("aggregate")
