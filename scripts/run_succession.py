#!/usr/bin/env python3
"""Run a resource-ratio succession scenario from YAML configuration.

Loads a base config (plus optional scenario override), integrates the
model, prints a summary and writes the trajectory as npz/csv, a JSON
summary, and optionally PNG plots.

Usage:
    python scripts/run_succession.py configs/default.yaml
    python scripts/run_succession.py configs/default.yaml --scenario my_override.yaml
    python scripts/run_succession.py configs/default.yaml --t-end 200 --dt 0.05 --plots
"""

import argparse
import json
import sys
import time
from pathlib import Path

# ── Project imports ──────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from rstar_succession.analysis import summarize
from rstar_succession.config import load_config
from rstar_succession.model import SuccessionSimulator
from rstar_succession.types import ModelParams


def _report_progress(step: int, n_steps: int) -> None:
    if step % max(1, n_steps // 10) == 0 or step == n_steps:
        print(f"  step {step:>6}/{n_steps}", flush=True)


def main():
    parser = argparse.ArgumentParser(
        description="Run a resource-ratio succession simulation.",
        epilog="Example: python scripts/run_succession.py configs/default.yaml",
    )
    parser.add_argument(
        "config",
        help="Base configuration YAML",
    )
    parser.add_argument(
        "--scenario", type=str, default=None,
        help="Scenario override YAML merged on top of the base config",
    )
    parser.add_argument(
        "--t-end", type=float, default=None,
        help="Override simulation.t_end",
    )
    parser.add_argument(
        "--dt", type=float, default=None,
        help="Override simulation.dt",
    )
    parser.add_argument(
        "--output-dir", type=str, default=None,
        help="Override output directory (default: from YAML)",
    )
    parser.add_argument(
        "--plots", action="store_true",
        help="Write PNG plots regardless of output.save_plots",
    )
    parser.add_argument(
        "--quiet", action="store_true",
        help="Suppress progress output",
    )
    args = parser.parse_args()

    overrides = {}
    if args.t_end is not None:
        overrides.setdefault('simulation', {})['t_end'] = args.t_end
    if args.dt is not None:
        overrides.setdefault('simulation', {})['dt'] = args.dt

    config = load_config(args.config, scenario_path=args.scenario,
                         sweep_overrides=overrides or None)
    params = ModelParams.from_config(config)
    out_dir = Path(args.output_dir or config.output.directory)

    print("=" * 60)
    print("R*-Succession Runner")
    print("=" * 60)
    print(f"  species: {config.n_species}   R_max: {params.R_max:g}")
    print(f"  grid: [{config.simulation.t_start:g}, "
          f"{config.simulation.t_end:g}] dt={config.simulation.dt:g}")

    sim = SuccessionSimulator.from_config(
        config,
        progress_callback=None if args.quiet else _report_progress,
    )
    t0 = time.perf_counter()
    result = sim.run()
    elapsed = time.perf_counter() - t0

    summary = summarize(result, params)
    print(f"\n  {result.n_steps} RK4 steps in {elapsed:.3f}s")
    print(f"  final resource: {summary['final_resource']:.4f}")
    print(f"  dominant: {summary['dominant_species']} "
          f"(predicted: {summary['predicted_winner']})")
    print(f"  succession order: {' → '.join(summary['succession_order'])}")

    out_dir.mkdir(parents=True, exist_ok=True)
    if config.output.save_npz:
        result.save(out_dir / "trajectory.npz")
    if config.output.save_csv:
        result.save_csv(out_dir / "trajectory.csv")
    with open(out_dir / "summary.json", 'w') as f:
        json.dump(summary, f, indent=2, allow_nan=False)

    if args.plots or config.output.save_plots:
        from rstar_succession.viz import (
            plot_growth_rates,
            plot_population_shares,
            plot_population_trajectories,
            plot_resource_trajectory,
        )
        plot_population_trajectories(result, save_path=out_dir / "populations.png")
        plot_resource_trajectory(result, R_star=params.R_star,
                                 save_path=out_dir / "resource.png")
        plot_growth_rates(result, save_path=out_dir / "growth_rates.png")
        plot_population_shares(result, save_path=out_dir / "shares.png")

    print(f"\n✅ Done. Output in {out_dir}/")


if __name__ == "__main__":
    main()
