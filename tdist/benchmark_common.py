"""Shared benchmarking infrastructure for thresholded distance screening.

This module provides common classes for benchmarking `tdist` against a
brute-force all-pairs computation across projected ranks and filter modes.
"""

import time
import tracemalloc
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Callable, List, Optional, Set, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import scipy.sparse as sp
from scipy.spatial.distance import pdist

from .arguments import default_threshold
from .bounds import match_method
from .core import tdist

PDIST_METRICS = {
    "euclidean": "euclidean",
    "manhattan": "cityblock",
    "chebyshev": "chebyshev",
}


def brute_force_pairs(A, t: float, method: str = "euclidean") -> Set[Tuple[int, int]]:
    """All column pairs (i < j) within distance t, from the full distance matrix."""
    method = match_method(method)
    X = A.toarray() if sp.issparse(A) else np.asarray(A, dtype=np.float64)
    n = X.shape[1]
    if n < 2:
        return set()
    d = pdist(X.T, metric=PDIST_METRICS[method])
    i, j = np.triu_indices(n, k=1)
    keep = d <= t
    return set(zip(i[keep].tolist(), j[keep].tolist()))


@dataclass
class BenchmarkResult:
    """Store results for a single screening configuration at a single rank."""

    method_name: str
    rank: int
    time_sec: float
    svd_time_sec: float
    candidates: int
    found: int
    expected: int
    recall: float
    memory_bytes: int
    success: bool = True
    error_message: str = ""


class ScreeningBenchmark:
    """Benchmark one screening configuration."""

    def __init__(self, name: str, filter: str = "local", factorizer: str = "svds"):
        """
        Args:
            name: Display name for the configuration
            filter: verification mode passed to tdist
            factorizer: rank-p backend passed to tdist
        """
        self.name = name
        self.filter = filter
        self.factorizer = factorizer

    def run(self, A, t: float, rank: int, method: str, expected: Set[Tuple[int, int]]) -> BenchmarkResult:
        """
        Run screening for a given matrix and rank.

        Args:
            A: input matrix
            t: distance threshold
            rank: projected rank
            method: distance metric
            expected: brute-force pair set used to measure recall

        Returns:
            BenchmarkResult with all metrics
        """
        try:
            tracemalloc.start()

            start_time = time.perf_counter()
            result = tdist(
                A, t=t, p=rank, filter=self.filter, method=method,
                factorizer=self.factorizer,
            )
            time_sec = time.perf_counter() - start_time

            _, peak = tracemalloc.get_traced_memory()
            tracemalloc.stop()

            found = result.pairs()
            recall = len(found & expected) / len(expected) if expected else 1.0

            return BenchmarkResult(
                method_name=self.name,
                rank=result.p,
                time_sec=time_sec,
                svd_time_sec=result.svd_time,
                candidates=result.n,
                found=len(found),
                expected=len(expected),
                recall=recall,
                memory_bytes=peak,
                success=True,
            )

        except Exception as e:
            if tracemalloc.is_tracing():
                tracemalloc.stop()
            return BenchmarkResult(
                method_name=self.name,
                rank=rank,
                time_sec=0.0,
                svd_time_sec=0.0,
                candidates=0,
                found=0,
                expected=len(expected),
                recall=0.0,
                memory_bytes=0,
                success=False,
                error_message=str(e),
            )


class ComparisonRunner:
    """Run screening across ranks and compare with brute force."""

    def __init__(
        self,
        matrix=None,
        matrix_generator: Optional[Callable] = None,
        max_rank: int = 10,
        num_ranks: Optional[int] = None,
        t: Optional[float] = None,
        method: str = "euclidean",
        factorizer: str = "svds",
        matrix_description: str = "test matrix",
    ):
        """
        Initialize comparison runner.

        Args:
            matrix: Pre-generated matrix (optional)
            matrix_generator: Function that returns a matrix (optional)
            max_rank: maximum projected rank to test
            num_ranks: number of ranks to test (evenly distributed from 1 to
                       max_rank); if None, tests every rank from 1 to max_rank
            t: distance threshold (default: smallest column norm)
            method: distance metric
            factorizer: rank-p backend
            matrix_description: description for logging
        """
        if (matrix is None) == (matrix_generator is None):
            raise ValueError("Must provide exactly one of: matrix or matrix_generator")

        self.matrix = matrix
        self.matrix_generator = matrix_generator
        self.max_rank = max_rank
        self.num_ranks = num_ranks
        self.t = t
        self.method = match_method(method)
        self.matrix_description = matrix_description
        self.A = None
        self.expected: Set[Tuple[int, int]] = set()
        self.brute_force_time = 0.0
        self.results: List[BenchmarkResult] = []

        self.configurations = [
            ScreeningBenchmark("local", filter="local", factorizer=factorizer),
            ScreeningBenchmark("distributed", filter="distributed", factorizer=factorizer),
        ]

    def setup(self):
        """Generate/validate the test matrix and compute the reference pairs."""
        if self.matrix is not None:
            self.A = self.matrix
            print(f"Using provided {self.matrix_description}...")
        else:
            print(f"Generating {self.matrix_description}...")
            self.A = self.matrix_generator()

        self._validate_inputs()

        if self.t is None:
            self.t = default_threshold(self.A)

        start_time = time.perf_counter()
        self.expected = brute_force_pairs(self.A, self.t, self.method)
        self.brute_force_time = time.perf_counter() - start_time
        print(
            f"Brute force: {len(self.expected)} pairs within t={self.t:.4g} "
            f"in {self.brute_force_time:.4f}s\n"
        )

    def run_all(self) -> List[BenchmarkResult]:
        """Run all configurations for all ranks."""
        if self.A is None:
            raise RuntimeError("Must call setup() before run_all()")

        if self.num_ranks is None:
            ranks_to_test = list(range(1, self.max_rank + 1))
        else:
            ranks_to_test = np.linspace(1, self.max_rank, self.num_ranks, dtype=int)
            ranks_to_test = sorted(set(int(r) for r in ranks_to_test))

        print(f"Running screening for {len(ranks_to_test)} ranks up to {self.max_rank}...")
        print(f"Testing ranks: {ranks_to_test}\n")

        for idx, rank in enumerate(ranks_to_test, 1):
            print(f"Rank {rank} ({idx}/{len(ranks_to_test)}):")

            for config in self.configurations:
                result = config.run(self.A, self.t, rank, self.method, self.expected)
                self.results.append(result)

                if result.success:
                    print(
                        f"  {config.name:12s}: {result.time_sec:.4f}s "
                        f"(svd {result.svd_time_sec:.4f}s), "
                        f"candidates={result.candidates}, found={result.found}, "
                        f"recall={result.recall:.3f}, "
                        f"mem={result.memory_bytes // 1024}KB"
                    )
                else:
                    print(f"  {config.name:12s}: FAILED - {result.error_message}")

            print()

        return self.results

    def to_frame(self) -> pd.DataFrame:
        """Results as a DataFrame, one row per configuration and rank."""
        return pd.DataFrame([asdict(r) for r in self.results])

    def _validate_inputs(self):
        """Validate matrix dimensions, max_rank, and num_ranks."""
        if self.A is None:
            raise RuntimeError("Matrix not initialized")

        m, n = self.A.shape

        if m < 2 or n < 2:
            raise ValueError(f"Matrix dimensions must be at least 2×2, got {m}×{n}")

        if self.max_rank < 1:
            raise ValueError(f"Max rank must be at least 1, got {self.max_rank}")

        if self.max_rank >= min(m, n):
            raise ValueError(
                f"Max rank ({self.max_rank}) must be less than "
                f"min matrix dimension ({min(m, n)})"
            )

        if self.num_ranks is not None:
            if self.num_ranks < 1:
                raise ValueError(
                    f"Number of ranks must be at least 1, got {self.num_ranks}"
                )
            if self.num_ranks > self.max_rank:
                raise ValueError(
                    f"Number of ranks ({self.num_ranks}) cannot exceed "
                    f"max rank ({self.max_rank})"
                )


class ResultsVisualizer:
    """Create visualization plots from benchmark results."""

    def __init__(self, results: List[BenchmarkResult], brute_force_time: float = None,
                 matrix_type_label: str = ""):
        """
        Initialize visualizer.

        Args:
            results: List of benchmark results
            brute_force_time: all-pairs baseline time, drawn as a reference line
            matrix_type_label: Label for the output folder (e.g., "clustered_n2000")
        """
        self.results = results
        self.brute_force_time = brute_force_time
        self.matrix_type_label = matrix_type_label or "screening"
        self.methods = sorted(set(r.method_name for r in results if r.success))

        self.colors = {
            "local": "#1f77b4",
            "distributed": "#ff7f0e",
        }
        self.markers = {
            "local": "o",
            "distributed": "s",
        }

    def plot_all(self, save_dir: str = "."):
        """Generate all plots and save to files."""
        experiment_dir = Path(save_dir) / self.matrix_type_label
        experiment_dir.mkdir(parents=True, exist_ok=True)

        self.plot_time_vs_rank(experiment_dir / "time_vs_rank.png")
        self.plot_candidates_vs_rank(experiment_dir / "candidates_vs_rank.png")
        self.plot_memory_vs_rank(experiment_dir / "memory_vs_rank.png")

        print(f"\nPlots saved to {experiment_dir}:")
        print("  - time_vs_rank.png")
        print("  - candidates_vs_rank.png")
        print("  - memory_vs_rank.png")
        return experiment_dir

    def _plot_metric(self, ax, value: Callable[[BenchmarkResult], float]):
        for method in self.methods:
            data = [
                (r.rank, value(r))
                for r in self.results
                if r.method_name == method and r.success
            ]
            if data:
                ranks, values = zip(*data)
                ax.plot(
                    ranks,
                    values,
                    marker=self.markers.get(method, "o"),
                    color=self.colors.get(method, "gray"),
                    linewidth=2,
                    markersize=6,
                    label=method,
                )

    def plot_time_vs_rank(self, save_path: Path):
        """Plot screening time vs rank, with the brute-force time for reference."""
        fig, ax = plt.subplots(figsize=(10, 6))
        self._plot_metric(ax, lambda r: r.time_sec)
        if self.brute_force_time:
            ax.axhline(self.brute_force_time, color="#d62728", linestyle="--",
                       label="brute force")

        self._format_plot(
            ax,
            title="Execution Time vs Rank",
            xlabel="Rank",
            ylabel="Time (seconds)",
            use_log_scale=True,
        )
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        plt.close(fig)

    def plot_candidates_vs_rank(self, save_path: Path):
        """Plot candidate pair count vs rank."""
        fig, ax = plt.subplots(figsize=(10, 6))
        self._plot_metric(ax, lambda r: max(r.candidates, 1))
        found = [r.found for r in self.results if r.success]
        if found:
            ax.axhline(max(max(found), 1), color="#2ca02c", linestyle="--",
                       label="pairs within t")

        self._format_plot(
            ax,
            title="Candidate Pairs vs Rank",
            xlabel="Rank",
            ylabel="Candidates",
            use_log_scale=True,
        )
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        plt.close(fig)

    def plot_memory_vs_rank(self, save_path: Path):
        """Plot peak traced memory vs rank."""
        fig, ax = plt.subplots(figsize=(10, 6))
        self._plot_metric(ax, lambda r: r.memory_bytes / (1024 * 1024))

        self._format_plot(
            ax,
            title="Peak Memory Usage vs Rank",
            xlabel="Rank",
            ylabel="Memory (MB)",
            use_log_scale=False,
        )
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        plt.close(fig)

    def _format_plot(
        self, ax, title: str, xlabel: str, ylabel: str, use_log_scale: bool = False
    ):
        """Helper to format plot with consistent style."""
        ax.set_title(title, fontsize=14, fontweight="bold")
        ax.set_xlabel(xlabel, fontsize=12)
        ax.set_ylabel(ylabel, fontsize=12)
        ax.grid(True, alpha=0.3, linestyle="--")
        ax.legend(fontsize=10, loc="best")

        if use_log_scale:
            ax.set_yscale("log")
