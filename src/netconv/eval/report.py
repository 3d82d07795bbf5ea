from __future__ import annotations

from typing import Any, Dict, List


def format_metrics(m: Dict[str, Any], indent: str = "  ") -> List[str]:
    return [
        f"{indent}Tx Packets: {m['tx_packets']}",
        f"{indent}Rx Packets: {m['rx_packets']}",
        f"{indent}Lost Packets: {m['lost_packets']}",
        f"{indent}Packet Loss Ratio: {m['loss_ratio']:.6g}",
        f"{indent}Average Packet Size: {m['avg_packet_size']:.6g} bytes",
        f"{indent}Throughput: {m['throughput_mbps']:.6g} Mbps",
        f"{indent}Delay: {m['avg_delay']:.6g} s",
        f"{indent}Jitter: {m['avg_jitter']:.6g} s",
    ]


def format_report(report: Dict[str, Any]) -> str:
    lines = [f"=== Flow statistics at {report['time']:g} s ==="]
    for flow in report["flows"]:
        t = flow["five_tuple"]
        lines.append(f"Flow {flow['flow_id']} ({t['source_address']} -> {t['destination_address']})")
        lines.extend(format_metrics(flow))
    agg = report.get("aggregate")
    if agg is not None:
        lines.append(f"All matched flows ({agg['flow_count']})")
        lines.extend(format_metrics(agg))
    return "\n".join(lines)


def format_convergence(protocol: str, convergence: List[Dict[str, Any]]) -> str:
    lines = [f"Convergence times for protocol {protocol}:"]
    for row in convergence:
        lines.append(f"  {row['window']}: {row['elapsed']:g} s")
    return "\n".join(lines)


def format_run(result: Dict[str, Any]) -> str:
    blocks = [format_report(r) for r in result.get("reports", [])]
    blocks.append(format_convergence(result["protocol"], result.get("convergence", [])))
    return "\n\n".join(blocks)
