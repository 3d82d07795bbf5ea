from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Dict, Optional, Sequence

from netconv.backends.emu import EmuBackend
from netconv.cli.validate import validate_config
from netconv.engine.routing import SUPPORTED_PROTOCOLS
from netconv.eval.report import format_run
from netconv.eval.summarize import summarize_runs
from netconv.runtime.config import load_effective_config

log = logging.getLogger("netconv.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="netconv", description="Routing convergence experiments")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_run = sub.add_parser("run", help="Run a fault-injection experiment")
    p_run.add_argument("--config", required=True, help="Experiment YAML file.")
    p_run.add_argument(
        "--routing-protocol",
        default=None,
        help=f"Routing protocol selector ({', '.join(SUPPORTED_PROTOCOLS)}).",
    )
    p_run.add_argument("--subfolder", default=None, help="Existing directory for run outputs.")
    p_run.add_argument("--json", action="store_true", help="Print the result as JSON.")

    p_validate = sub.add_parser("validate", help="Validate an experiment file")
    p_validate.add_argument("--config", required=True)

    p_sum = sub.add_parser("summarize", help="Collect result.json files into a CSV")
    p_sum.add_argument("--runs", required=True, help="Directory containing run folders")
    p_sum.add_argument("--out", required=True, help="Output CSV path")

    return parser


def apply_overrides(cfg: Dict[str, Any], protocol: Optional[str], subfolder: Optional[str]) -> Dict[str, Any]:
    out = dict(cfg)
    if protocol is not None:
        out["protocol"] = protocol.lower()
    if subfolder is not None:
        out["subfolder"] = subfolder
    return out


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "run":
        try:
            cfg = apply_overrides(load_effective_config(args.config), args.routing_protocol, args.subfolder)
            result = EmuBackend().run(cfg)
        except (OSError, ValueError) as exc:
            log.error("%s", exc)
            return 2
        if args.json:
            print(json.dumps(result, indent=2, ensure_ascii=False, sort_keys=True))
        else:
            print(format_run(result))
        return 0

    if args.cmd == "validate":
        try:
            errors = validate_config(load_effective_config(args.config))
        except (OSError, ValueError) as exc:
            log.error("%s", exc)
            return 2
        if errors:
            print(json.dumps({"ok": False, "errors": errors}, ensure_ascii=False, indent=2))
            return 1
        print(json.dumps({"ok": True}, ensure_ascii=False, indent=2))
        return 0

    if args.cmd == "summarize":
        count = summarize_runs(args.runs, args.out)
        print(json.dumps({"runs": count, "out": args.out}, ensure_ascii=False, indent=2))
        return 0

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
