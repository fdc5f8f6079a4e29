"""Solvers module for KenKen puzzles."""

from .base_solver import BaseSolver, SolverStats, DEFAULT_MAX_SOLUTIONS
from .backtracking_solver import BacktrackingSolver, solve, solve_definitions, count_solutions

__all__ = [
    "BaseSolver",
    "SolverStats",
    "DEFAULT_MAX_SOLUTIONS",
    "BacktrackingSolver",
    "solve",
    "solve_definitions",
    "count_solutions",
]
