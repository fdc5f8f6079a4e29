"""KenKen puzzle generator and backtracking solver.

Public entry points:

- ``kenken.generate_puzzle(size, difficulty)``: a verified list of cage definitions.
- ``kenken.solve(grid, cages, size, max_solutions)``: up to ``max_solutions`` solutions.
"""

from .core import CageDefinition, Coordinates, Grid, Cage, OperationType
from .core.exceptions import (
    KenKenError,
    InvalidConfigurationError,
    GenerationFailedError,
    StructuralViolationError,
)
from .generator import Difficulty, PuzzleGenerator, generate_puzzle
from .solvers import BacktrackingSolver, solve, solve_definitions

__all__ = [
    "CageDefinition",
    "Coordinates",
    "Grid",
    "Cage",
    "OperationType",
    "KenKenError",
    "InvalidConfigurationError",
    "GenerationFailedError",
    "StructuralViolationError",
    "Difficulty",
    "PuzzleGenerator",
    "generate_puzzle",
    "BacktrackingSolver",
    "solve",
    "solve_definitions",
]

__version__ = "1.0.0"
