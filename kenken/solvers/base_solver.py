"""Base solver interface and common utilities."""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List
import time
import tracemalloc

from ..core.grid import Grid

#: Cap used when a caller asks for a negative number of solutions.
DEFAULT_MAX_SOLUTIONS = 100


@dataclass
class SolverStats:
    """Statistics from a solver run."""
    # Core metrics
    solved: bool = False
    solutions_found: int = 0
    time_seconds: float = 0.0
    memory_bytes: int = 0
    iterations: int = 0

    # Search metrics
    backtracks: int = 0
    nodes_explored: int = 0
    rejected_candidates: int = 0

    # Additional metadata
    algorithm: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert stats to dictionary."""
        return {
            "solved": self.solved,
            "solutions_found": self.solutions_found,
            "time_seconds": self.time_seconds,
            "memory_bytes": self.memory_bytes,
            "iterations": self.iterations,
            "backtracks": self.backtracks,
            "nodes_explored": self.nodes_explored,
            "rejected_candidates": self.rejected_candidates,
            "algorithm": self.algorithm,
            **self.extra
        }


class BaseSolver(ABC):
    """Abstract base class for KenKen solvers."""

    name: str = "BaseSolver"

    def __init__(self, track_memory: bool = False):
        """
        Args:
            track_memory: Record peak memory with tracemalloc. This slows the
                search noticeably, so it is off unless benchmarking.
        """
        self.track_memory = track_memory
        self.stats = SolverStats(algorithm=self.name)

    def solve(self, max_solutions: int = DEFAULT_MAX_SOLUTIONS) -> List[Grid]:
        """
        Enumerate up to ``max_solutions`` solutions with timing (and optional
        memory) tracking.

        Args:
            max_solutions: Solution cap. 0 returns an empty list immediately,
                negative values fall back to DEFAULT_MAX_SOLUTIONS.

        Returns:
            Solution grids in discovery order. Empty when unsatisfiable.
        """
        self.stats = SolverStats(algorithm=self.name)
        if max_solutions == 0:
            return []
        if max_solutions < 0:
            max_solutions = DEFAULT_MAX_SOLUTIONS

        tracing = self.track_memory and not tracemalloc.is_tracing()
        if tracing:
            tracemalloc.start()

        start_time = time.perf_counter()
        try:
            solutions = self._solve(max_solutions)
        finally:
            self.stats.time_seconds = time.perf_counter() - start_time
            if tracing:
                _, peak = tracemalloc.get_traced_memory()
                tracemalloc.stop()
                self.stats.memory_bytes = peak

        self.stats.solutions_found = len(solutions)
        self.stats.solved = bool(solutions)
        return solutions

    @abstractmethod
    def _solve(self, max_solutions: int) -> List[Grid]:
        """
        Internal solve method to be implemented by subclasses.

        Args:
            max_solutions: Positive solution cap.

        Returns:
            The solutions found, at most ``max_solutions`` of them.
        """
        pass

    def reset_stats(self) -> None:
        """Reset solver statistics."""
        self.stats = SolverStats(algorithm=self.name)
