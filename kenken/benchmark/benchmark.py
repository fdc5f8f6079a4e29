"""Benchmarking framework for KenKen generation and solving."""

from __future__ import annotations
import json
import os
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from tqdm import tqdm

from ..core.definitions import CageDefinition, build_cages, definitions_to_json
from ..core.exceptions import GenerationFailedError, InvalidConfigurationError
from ..core.grid import Grid, MAX_SIZE, MIN_SIZE
from ..generator import Difficulty, PuzzleGenerator, allowed_operations
from ..generator.generator import DEFAULT_VERIFICATION_CAP
from ..solvers import BacktrackingSolver
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)


@dataclass
class BenchmarkResult:
    """Measurements for one generated puzzle."""
    puzzle_id: int
    size: int
    difficulty: str
    generated: bool
    generation_seconds: float
    attempts: int
    cage_count: int = 0
    mean_cage_size: float = 0.0
    operation_counts: Dict[str, int] = field(default_factory=dict)
    solve_seconds: float = 0.0
    memory_bytes: int = 0
    iterations: int = 0
    backtracks: int = 0
    nodes_explored: int = 0
    solutions_found: int = 0
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def config(self) -> str:
        return config_label(self.size, self.difficulty)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "puzzle_id": self.puzzle_id,
            "size": self.size,
            "difficulty": self.difficulty,
            "generated": self.generated,
            "generation_seconds": self.generation_seconds,
            "attempts": self.attempts,
            "cage_count": self.cage_count,
            "mean_cage_size": self.mean_cage_size,
            "operation_counts": dict(self.operation_counts),
            "solve_seconds": self.solve_seconds,
            "memory_bytes": self.memory_bytes,
            "memory_mb": self.memory_bytes / (1024 * 1024),
            "iterations": self.iterations,
            "backtracks": self.backtracks,
            "nodes_explored": self.nodes_explored,
            "solutions_found": self.solutions_found,
            **self.extra
        }


def config_label(size: int, difficulty: str) -> str:
    return f"{size}x{size} {difficulty}"


def supported_configurations(
    sizes: Optional[Sequence[int]] = None,
    difficulties: Optional[Sequence[Difficulty]] = None,
) -> List[Tuple[int, Difficulty]]:
    """All (size, difficulty) pairs the generator accepts, in size order."""
    sizes = sizes or range(MIN_SIZE, MAX_SIZE + 1)
    difficulties = difficulties or list(Difficulty)
    pairs = []
    for size in sizes:
        for difficulty in difficulties:
            try:
                allowed_operations(size, difficulty)
            except InvalidConfigurationError:
                continue
            pairs.append((size, difficulty))
    return pairs


class Benchmark:
    """
    Benchmark framework for the KenKen generator and solver.

    Generates puzzles for every supported (size, difficulty) pair and
    re-solves each one from an empty grid, collecting timing and search
    metrics.
    """

    def __init__(
        self,
        sizes: Optional[Sequence[int]] = None,
        difficulties: Optional[Sequence[Difficulty]] = None,
        puzzles_per_config: int = 5,
        solution_cap: int = DEFAULT_VERIFICATION_CAP,
        track_memory: bool = False,
        seed: Optional[int] = None
    ):
        """
        Initialize the benchmark.

        Args:
            sizes: Grid sizes to test (default: 3 to 6).
            difficulties: Difficulties to test (default: all).
            puzzles_per_config: Puzzles generated per (size, difficulty) pair.
            solution_cap: Maximum solutions enumerated when re-solving.
            track_memory: Record peak solver memory with tracemalloc.
            seed: Random seed for reproducibility.
        """
        self.configurations = supported_configurations(sizes, difficulties)
        if not self.configurations:
            raise InvalidConfigurationError("No supported size/difficulty combination selected")

        self.puzzles_per_config = puzzles_per_config
        self.solution_cap = solution_cap
        self.track_memory = track_memory
        self.seed = seed

        self.puzzles: Dict[str, List[List[CageDefinition]]] = {}
        self.results: List[BenchmarkResult] = []

    def run(self, show_progress: bool = True) -> List[BenchmarkResult]:
        """
        Run the full benchmark suite.

        Returns:
            List of BenchmarkResult objects.
        """
        generator = PuzzleGenerator(seed=self.seed)
        self.results = []
        self.puzzles = {}

        total = len(self.configurations) * self.puzzles_per_config
        pbar = tqdm(total=total, desc="Benchmarking", disable=not show_progress)

        for size, difficulty in self.configurations:
            label = config_label(size, difficulty.value)
            self.puzzles[label] = []
            for puzzle_id in range(self.puzzles_per_config):
                self.results.append(self._run_single(generator, size, difficulty, puzzle_id))
                pbar.update(1)

        pbar.close()
        return self.results

    def _run_single(
        self,
        generator: PuzzleGenerator,
        size: int,
        difficulty: Difficulty,
        puzzle_id: int
    ) -> BenchmarkResult:
        """Generate one puzzle and re-solve it."""
        start = time.perf_counter()
        try:
            definitions = generator.generate(size, difficulty)
        except GenerationFailedError as e:
            LOGGER.warning("Generation failed for %s: %s", config_label(size, difficulty.value), e)
            return BenchmarkResult(
                puzzle_id=puzzle_id,
                size=size,
                difficulty=difficulty.value,
                generated=False,
                generation_seconds=time.perf_counter() - start,
                attempts=generator.last_attempts,
                extra={"error": str(e)}
            )
        generation_seconds = time.perf_counter() - start
        self.puzzles[config_label(size, difficulty.value)].append(definitions)

        grid = Grid(size)
        solver = BacktrackingSolver(grid, build_cages(grid, definitions), size,
                                    track_memory=self.track_memory)
        solver.solve(self.solution_cap)
        stats = solver.stats

        operations = Counter(d.operation.value for d in definitions)
        return BenchmarkResult(
            puzzle_id=puzzle_id,
            size=size,
            difficulty=difficulty.value,
            generated=True,
            generation_seconds=generation_seconds,
            attempts=generator.last_attempts,
            cage_count=len(definitions),
            mean_cage_size=size * size / len(definitions),
            operation_counts=dict(operations),
            solve_seconds=stats.time_seconds,
            memory_bytes=stats.memory_bytes,
            iterations=stats.iterations,
            backtracks=stats.backtracks,
            nodes_explored=stats.nodes_explored,
            solutions_found=stats.solutions_found,
        )

    def get_summary(self) -> Dict[str, Any]:
        """Get summary statistics from benchmark results."""
        summary = {
            "total_puzzles": len(self.results),
            "solution_cap": self.solution_cap,
            "configurations": [config_label(s, d.value) for s, d in self.configurations],
            "results_by_configuration": {}
        }

        for size, difficulty in self.configurations:
            label = config_label(size, difficulty.value)
            config_results = [r for r in self.results if r.config == label]
            generated = [r for r in config_results if r.generated]
            if not config_results:
                continue

            entry = {
                "generated": len(generated),
                "tested": len(config_results),
                "avg_generation_seconds": sum(r.generation_seconds for r in config_results) / len(config_results),
                "avg_attempts": sum(r.attempts for r in config_results) / len(config_results),
            }
            if generated:
                entry.update({
                    "avg_solve_seconds": sum(r.solve_seconds for r in generated) / len(generated),
                    "avg_cage_count": sum(r.cage_count for r in generated) / len(generated),
                    "unique_solutions": sum(1 for r in generated if r.solutions_found == 1),
                    "capped": sum(1 for r in generated if r.solutions_found >= self.solution_cap),
                })
            summary["results_by_configuration"][label] = entry

        return summary

    def save_results(self, output_dir: str) -> None:
        """Save benchmark results and generated puzzles to files."""
        os.makedirs(output_dir, exist_ok=True)

        results_file = os.path.join(output_dir, "benchmark_results.json")
        with open(results_file, "w") as f:
            json.dump([r.to_dict() for r in self.results], f, indent=2)

        summary_file = os.path.join(output_dir, "benchmark_summary.json")
        with open(summary_file, "w") as f:
            json.dump(self.get_summary(), f, indent=2)

        puzzles_dir = os.path.join(output_dir, "puzzles")
        os.makedirs(puzzles_dir, exist_ok=True)

        for size, difficulty in self.configurations:
            label = config_label(size, difficulty.value)
            for i, definitions in enumerate(self.puzzles.get(label, []), 1):
                path = os.path.join(puzzles_dir, f"puzzle_{size}x{size}_{difficulty.value.lower()}_{i}.json")
                with open(path, "w") as f:
                    f.write(definitions_to_json(definitions, size, indent=2))

        LOGGER.info("Results and puzzles saved to %s", output_dir)
