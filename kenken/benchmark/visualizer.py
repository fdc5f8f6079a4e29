"""Visualization utilities for benchmark results and puzzles."""

from __future__ import annotations
import os
from typing import Dict, List, Optional, Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from .benchmark import BenchmarkResult
from ..core.cage import OperationType
from ..core.definitions import CageDefinition
from ..core.grid import Grid


class Visualizer:
    """
    Chart generator for KenKen benchmark results.

    Compares generation cost, solution counts and operator mix across
    (size, difficulty) configurations.
    """

    # Color palette for operators
    COLORS = {
        "ADD": "#2ecc71",   # Green
        "SUB": "#3498db",   # Blue
        "MUL": "#9b59b6",   # Purple
        "DIV": "#e74c3c",   # Red
        "NONE": "#95a5a6"   # Grey
    }

    def __init__(self, results: List[BenchmarkResult], output_dir: str = "results"):
        """
        Initialize the visualizer.

        Args:
            results: List of benchmark results.
            output_dir: Directory to save generated charts.
        """
        self.results = [r for r in results if r.generated]
        self.output_dir = output_dir
        os.makedirs(output_dir, exist_ok=True)

        plt.style.use('seaborn-v0_8-whitegrid')
        sns.set_palette("husl")

    def _configs(self) -> List[str]:
        seen: Dict[str, None] = {}
        for r in self.results:
            seen.setdefault(r.config, None)
        return list(seen)

    def generate_all(self) -> List[str]:
        """
        Generate all charts.

        Returns:
            List of paths to generated chart files.
        """
        if not self.results:
            return []
        return [
            self.plot_generation_time(),
            self.plot_solutions_found(),
            self.plot_operation_mix(),
        ]

    def plot_generation_time(self) -> str:
        """Bar chart of average generation and solve time per configuration."""
        fig, ax = plt.subplots(figsize=(10, 6))

        configs = self._configs()
        gen_times = [np.mean([r.generation_seconds for r in self.results if r.config == c])
                     for c in configs]
        solve_times = [np.mean([r.solve_seconds for r in self.results if r.config == c])
                       for c in configs]

        x = np.arange(len(configs))
        width = 0.4
        ax.bar(x - width / 2, gen_times, width, label='Generation', edgecolor='black', linewidth=0.5)
        ax.bar(x + width / 2, solve_times, width, label='Re-solve', edgecolor='black', linewidth=0.5)

        ax.set_xticks(x)
        ax.set_xticklabels(configs, rotation=30, ha='right')
        ax.set_ylabel('Average Time (seconds)', fontsize=12)
        ax.set_title('Generation and Solve Time by Configuration', fontsize=14, fontweight='bold')
        ax.legend()
        ax.set_ylim(bottom=0)

        plt.tight_layout()
        path = os.path.join(self.output_dir, "generation_time.png")
        plt.savefig(path, dpi=150, bbox_inches='tight')
        plt.close()

        return path

    def plot_solutions_found(self) -> str:
        """Strip plot of solution counts (up to the cap) per configuration."""
        fig, ax = plt.subplots(figsize=(10, 6))

        configs = [r.config for r in self.results]
        counts = [r.solutions_found for r in self.results]
        sns.stripplot(x=configs, y=counts, ax=ax, jitter=0.2, size=6)

        ax.set_xlabel('Configuration', fontsize=12)
        ax.set_ylabel('Solutions Found', fontsize=12)
        ax.set_title('Solutions per Generated Puzzle', fontsize=14, fontweight='bold')
        plt.setp(ax.get_xticklabels(), rotation=30, ha='right')

        plt.tight_layout()
        path = os.path.join(self.output_dir, "solutions_found.png")
        plt.savefig(path, dpi=150, bbox_inches='tight')
        plt.close()

        return path

    def plot_operation_mix(self) -> str:
        """Stacked bar chart of the share of each operator per configuration."""
        fig, ax = plt.subplots(figsize=(10, 6))

        configs = self._configs()
        bottom = np.zeros(len(configs))
        for op in OperationType:
            shares = []
            for c in configs:
                totals = [sum(r.operation_counts.values()) for r in self.results if r.config == c]
                used = [r.operation_counts.get(op.value, 0) for r in self.results if r.config == c]
                shares.append(sum(used) / max(sum(totals), 1))
            ax.bar(configs, shares, bottom=bottom, label=op.value,
                   color=self.COLORS[op.value], edgecolor='black', linewidth=0.5)
            bottom += np.array(shares)

        ax.set_ylabel('Share of Cages', fontsize=12)
        ax.set_title('Operator Mix by Configuration', fontsize=14, fontweight='bold')
        ax.set_ylim(0, 1)
        ax.legend(loc='upper left', bbox_to_anchor=(1.0, 1.0))
        plt.setp(ax.get_xticklabels(), rotation=30, ha='right')

        plt.tight_layout()
        path = os.path.join(self.output_dir, "operation_mix.png")
        plt.savefig(path, dpi=150, bbox_inches='tight')
        plt.close()

        return path


def render_puzzle(
    definitions: Sequence[CageDefinition],
    size: int,
    path: str,
    solution: Optional[Grid] = None,
) -> str:
    """
    Draw a puzzle as a PNG: thin cell lines, thick cage borders and a
    target/operator label in the first cell of every cage.

    Args:
        definitions: Cage definitions covering the grid.
        size: Grid size N.
        path: Output file path.
        solution: Optional grid whose values are written into the cells.

    Returns:
        The path written.
    """
    owner = np.full((size, size), -1, dtype=np.int32)
    for index, definition in enumerate(definitions):
        for r, c in definition.cells:
            owner[r, c] = index

    fig, ax = plt.subplots(figsize=(size * 0.9, size * 0.9))
    ax.set_xlim(0, size)
    ax.set_ylim(size, 0)
    ax.set_aspect('equal')
    ax.axis('off')

    for i in range(size + 1):
        ax.plot([0, size], [i, i], color='#bbbbbb', linewidth=0.8)
        ax.plot([i, i], [0, size], color='#bbbbbb', linewidth=0.8)

    # Cage borders: edge between two cells of different cages, or the outer frame
    for r in range(size):
        for c in range(size):
            if r == 0 or owner[r - 1, c] != owner[r, c]:
                ax.plot([c, c + 1], [r, r], color='black', linewidth=2.5)
            if c == 0 or owner[r, c - 1] != owner[r, c]:
                ax.plot([c, c], [r, r + 1], color='black', linewidth=2.5)
    ax.plot([0, size], [size, size], color='black', linewidth=2.5)
    ax.plot([size, size], [0, size], color='black', linewidth=2.5)

    for definition in definitions:
        r, c = min(definition.cells)
        ax.text(c + 0.06, r + 0.08, f"{definition.target}{definition.operation.symbol}",
                ha='left', va='top', fontsize=9, fontweight='bold')

    if solution is not None:
        for r in range(size):
            for c in range(size):
                value = int(solution.values[r, c])
                if value:
                    ax.text(c + 0.5, r + 0.58, str(value), ha='center', va='center', fontsize=16)

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    plt.savefig(path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return path
