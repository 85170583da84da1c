"""
Inflation Risk Engine — Main Orchestrator
=========================================
Console entry point for the complete inflation risk analysis.

Execution Flow:
    1. Load already-fetched series (one CSV per series)
    2. Monthly alignment and growth-rate transforms
    3. OLS fit, VIF, holdout evaluation
    4. Diagnostics (correlation, ADF, residual shape)
    5. Historical VaR & CVaR
    6. Monte Carlo VaR & CVaR (baseline and stressed)
    7. Results comparison table
"""

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Sequence

import pandas as pd

from inflation_risk.alignment import load_series_csv
from inflation_risk.config import (
    DEFAULT_ALPHA,
    DEFAULT_HOLDOUT,
    DEFAULT_NUM_SIMULATIONS,
    DEFAULT_SEED,
    DEFAULT_SERIES_FREQUENCIES,
    PipelineConfig,
)
from inflation_risk.pipeline import run_pipeline
from inflation_risk.risk_metrics import risk_table

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"


def print_header(text: str) -> None:
    """Print formatted section header."""
    width = 60
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width)


def print_metrics(metrics: dict, indent: int = 4) -> None:
    """Print dictionary of metrics with formatting."""
    prefix = " " * indent
    for key, val in metrics.items():
        if isinstance(val, float):
            print(f"{prefix}{key:.<35} {val:>12.6f}")
        elif val is None:
            print(f"{prefix}{key:.<35} {'undefined':>12}")
        else:
            print(f"{prefix}{key:.<35} {str(val):>12}")


def load_raw_series(data_dir: Path, names: Sequence[str]) -> Dict[str, pd.Series]:
    """Load ``<data_dir>/<name>.csv`` for every series name."""
    series = {}
    for name in names:
        path = data_dir / f"{name}.csv"
        if not path.exists():
            raise FileNotFoundError(
                f"Missing input {path}; export the series as two columns (date, value)"
            )
        series[name] = load_series_csv(path, name)
    return series


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Macro inflation tail-risk engine")
    parser.add_argument("--data-dir", type=Path, default=DATA_DIR)
    parser.add_argument("--results-dir", type=Path, default=None)
    parser.add_argument("--holdout", type=int, default=DEFAULT_HOLDOUT)
    parser.add_argument("--alpha", type=float, default=DEFAULT_ALPHA)
    parser.add_argument("--simulations", type=int, default=DEFAULT_NUM_SIMULATIONS)
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED)
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Execute the complete inflation risk pipeline."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = PipelineConfig(
        holdout=args.holdout,
        alpha=args.alpha,
        n_simulations=args.simulations,
        seed=args.seed,
    )

    # ── PHASE 1: Data ─────────────────────────────────────────
    print_header("PHASE 1 — LOAD SERIES")
    raw = load_raw_series(args.data_dir, list(DEFAULT_SERIES_FREQUENCIES))
    for name, series in raw.items():
        print(f"  {name:<15} {len(series):>5} obs  "
              f"{series.index[0].date()} → {series.index[-1].date()}")

    result = run_pipeline(raw, config)

    # ── PHASE 2: Alignment ────────────────────────────────────
    print_header("PHASE 2 — ALIGNMENT & TRANSFORMS")
    print(f"  Aligned months:   {len(result.aligned_panel)}")
    print(f"  Modeling rows:    {len(result.modeling_panel)}")
    print(f"  Dropped rows:     {result.dropped_rows} (incomplete required fields)")
    for field, shift in result.log_shifts.items():
        print(f"  Log shift {field}: {shift:.6f}")

    # ── PHASE 3: Regression ───────────────────────────────────
    print_header("PHASE 3 — OLS REGRESSION")
    print_metrics(result.model.summary())

    print("\n  In-sample fit:")
    print_metrics(result.in_sample_metrics.as_dict())
    if result.holdout_metrics is not None:
        print(f"\n  Holdout ({config.holdout} months):")
        print_metrics(result.holdout_metrics.as_dict())

    # ── PHASE 4: Diagnostics ──────────────────────────────────
    print_header("PHASE 4 — DIAGNOSTICS")
    print("\n  Correlation Matrix:")
    print(result.diagnostics["correlation"].to_string(float_format=lambda x: f"{x:.4f}"))

    print("\n  ADF (unit root) p-values:")
    print_metrics({f: r["p_value"] for f, r in result.diagnostics["adf"].items()})

    print("\n  Residual shape:")
    print_metrics(result.diagnostics["residuals"])

    # ── PHASE 5: Risk ─────────────────────────────────────────
    print_header(f"PHASE 5 — INFLATION TAIL RISK (α = {config.alpha})")
    table = risk_table(result.risk)
    print("\n" + table.to_string(float_format=lambda x: f"{x:.6f}"))

    if result.stress_impact:
        print("\n  ┌─ Stress Impact ──────────────────────────────┐")
        print_metrics(result.stress_impact)

    if args.results_dir is not None:
        args.results_dir.mkdir(parents=True, exist_ok=True)
        table.to_csv(args.results_dir / "risk_metrics_comparison.csv")

        all_results = {
            "model": result.model.summary(),
            "holdout": result.holdout_metrics.as_dict() if result.holdout_metrics else None,
            "risk": {k: v.as_dict() for k, v in result.risk.items()},
            "stress_impact": result.stress_impact,
            "dropped_rows": result.dropped_rows,
        }
        results_path = args.results_dir / "full_results.json"
        with open(results_path, "w") as f:
            json.dump(all_results, f, indent=2, default=str)
        print(f"\n  Results saved to: {results_path}")


if __name__ == "__main__":
    main()
