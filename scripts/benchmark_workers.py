"""
Grid-fill timings per worker count and backend.

Renders one fractal repeatedly with 1..N workers, checks every run produces
the same grid, and writes:

    results/fill_timings.csv
    figures/fill_timings.png

Run:
    python -m scripts.benchmark_workers --config configs/mandelbrot_default.yaml
"""

from __future__ import annotations

import argparse
import os
import sys
import time
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from escape_fractals.config import load_config
from escape_fractals.fractal import mandelbrot
from escape_fractals.grid import BACKENDS, fill_divergence_grid


def time_fill(spec, workers: int, backend: str):
    start = time.perf_counter()
    grid = fill_divergence_grid(spec, workers=workers, backend=backend)
    return time.perf_counter() - start, grid


def run_benchmark(spec, worker_counts, backends, repeats: int = 1) -> pd.DataFrame:
    rows = []
    reference = None
    for backend in backends:
        for workers in worker_counts:
            for rep in range(repeats):
                elapsed, grid = time_fill(spec, workers, backend)
                if reference is None:
                    reference = grid
                elif not np.array_equal(reference, grid):
                    raise RuntimeError(f"Grid differs for backend={backend}, workers={workers}")
                rows.append({
                    "backend": backend,
                    "workers": workers,
                    "repeat": rep,
                    "seconds": elapsed,
                })
                print(f"  {backend:<8} workers={workers:<3} run {rep}: {elapsed:.2f}s")
    return pd.DataFrame(rows)


def plot_timings(df: pd.DataFrame, out_path: Path):
    summary = df.groupby(["backend", "workers"])["seconds"].mean().reset_index()
    plt.figure(figsize=(7, 5))
    for backend, group in summary.groupby("backend"):
        plt.plot(group["workers"], group["seconds"], marker="o", label=backend)
    plt.xlabel("Workers")
    plt.ylabel("Fill time (s)")
    plt.title("Divergence grid fill time")
    plt.legend()
    plt.grid(alpha=0.3)
    plt.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close()


def main():
    parser = argparse.ArgumentParser(description="Benchmark the divergence grid fill")
    parser.add_argument("--config", type=str, default=None, help="YAML run configuration")
    parser.add_argument("--max-workers", type=int, default=os.cpu_count() or 1)
    parser.add_argument("--backend", choices=BACKENDS + ("all",), default="all")
    parser.add_argument("--repeats", type=int, default=1)
    args = parser.parse_args()

    if args.config:
        spec, _ = load_config(args.config)
    else:
        spec = mandelbrot(discrete_step=0.01, max_iteration=200)

    worker_counts = sorted({1, 2, 4, args.max_workers} & set(range(1, args.max_workers + 1)))
    backends = BACKENDS if args.backend == "all" else (args.backend,)

    print(f"[run] {spec.kind.name} {spec.image_width}x{spec.image_height}, workers={worker_counts}")
    df = run_benchmark(spec, worker_counts, backends, repeats=args.repeats)

    os.makedirs("results", exist_ok=True)
    os.makedirs("figures", exist_ok=True)
    df.to_csv("results/fill_timings.csv", index=False)
    plot_timings(df, Path("figures/fill_timings.png"))

    print(df.groupby(["backend", "workers"])["seconds"].describe())
    print("[run] saved results/fill_timings.csv and figures/fill_timings.png")
    return 0


if __name__ == "__main__":
    sys.exit(main())
