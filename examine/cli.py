"""CLI for running the engine on a CSV column: python -m examine run --input <csv> --column <name>"""
from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional

import pandas as pd

from .config import ExamineConfig, load_config, save_config, validate_config
from .engine import handle_request
from .utils import ensure_dir


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="examine",
        description="Robust location and dispersion statistics for one variable",
    )
    sub = parser.add_subparsers(dest="command")

    # run subcommand
    run = sub.add_parser("run", help="Examine one column of a CSV file")
    run.add_argument("--input", type=str, required=True, help="CSV file to read")
    run.add_argument("--column", type=str, required=True, help="Numeric column to examine")
    run.add_argument("--weights", type=str, default=None, help="Optional frequency-weight column")
    run.add_argument("--case-column", type=str, default=None,
                     help="Optional integer case-id column (default: 1-based row number)")
    run.add_argument("--config", type=str, default=None, help="Path to YAML config")
    run.add_argument("--output", type=str, default=None,
                     help="Write the JSON result here instead of stdout")

    # config subcommand
    cfg = sub.add_parser("config", help="Write the default configuration as YAML")
    cfg.add_argument("--output", type=str, default="examine.yaml", help="Destination YAML path")

    args = parser.parse_args(argv)

    if args.command == "run":
        _run(args)
    elif args.command == "config":
        save_config(ExamineConfig(), args.output)
        print(f"Saved {args.output}")
    else:
        parser.print_help()


def _column(df: pd.DataFrame, name: Optional[str]) -> Optional[list]:
    if name is None:
        return None
    if name not in df.columns:
        print(f"ERROR: column '{name}' not found in input")
        sys.exit(1)
    # Blank or non-numeric cells become None and are dropped by the engine.
    numeric = pd.to_numeric(df[name], errors="coerce")
    return [None if pd.isna(v) else float(v) for v in numeric]


def _run(args: argparse.Namespace) -> None:
    if not os.path.exists(args.input):
        print(f"ERROR: {args.input} not found")
        sys.exit(1)

    config = load_config(args.config) if args.config else ExamineConfig()
    validate_config(config)

    df = pd.read_csv(args.input)
    data = _column(df, args.column)
    weights = _column(df, args.weights)
    case_indexes = _column(df, args.case_column)
    if weights is not None:
        # A blank weight means unweighted, not missing.
        weights = [1.0 if w is None else w for w in weights]

    response = handle_request({
        "data": data,
        "weights": weights,
        "caseIndexes": case_indexes,
        "options": _options(config),
    })
    if not response["success"]:
        print(f"ERROR: {response['error']}")
        sys.exit(1)

    print(f"=== Examine: {args.column} ({len(df)} rows) ===")
    _print_summary(response)

    text = json.dumps(response, indent=2)
    if args.output:
        ensure_dir(os.path.dirname(args.output) or ".")
        with open(args.output, "w") as f:
            f.write(text + "\n")
        print(f"\nSaved {args.output}")
    else:
        print(text)


def _options(config: ExamineConfig) -> Dict[str, Any]:
    return {
        "confidenceLevel": config.confidence_level,
        "extremeCount": config.extreme_count,
        "computeTrimmedMean": config.compute_trimmed_mean,
        "computeMEstimators": config.compute_m_estimators,
        "computeExtremeValues": config.compute_extreme_values,
        "computeDescriptives": config.compute_descriptives,
        "computePercentiles": config.compute_percentiles,
        "percentileMethod": config.percentile_method,
        "maxIterations": config.m_estimator.max_iterations,
        "epsilon": config.m_estimator.epsilon,
        "madWeighting": config.m_estimator.mad_weighting,
    }


def _fmt(x: Optional[float]) -> str:
    return "-" if x is None else f"{x:.6g}"


def _print_summary(response: Dict[str, Any]) -> None:
    print(f"  5% trimmed mean: {_fmt(response['trimmedMean'])}")

    m = response["mEstimators"]
    if m is not None:
        print("  M-estimators: " + ", ".join(f"{k}={_fmt(v)}" for k, v in m.items()))

    ci = response["confidenceInterval"]
    if ci is not None:
        print(f"  {ci['level']}% CI for mean: [{_fmt(ci['lower'])}, {_fmt(ci['upper'])}]")

    ev = response["extremeValues"]
    if ev is not None:
        rows = [dict(side="highest", **e) for e in ev["highest"]]
        rows += [dict(side="lowest", **e) for e in ev["lowest"]]
        table = pd.DataFrame(rows, columns=["side", "caseIndex", "value", "type", "tie"])
        print("  Extreme values" + (" (truncated)" if ev["isTruncated"] else "") + ":")
        print(table.to_string(index=False))

    for field, message in response["errors"].items():
        print(f"  WARNING: {field} could not be computed ({message})")
