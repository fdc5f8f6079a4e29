"""Core module for KenKen grid, cage and validation primitives."""

from .grid import Cell, Grid, MIN_SIZE, MAX_SIZE
from .cage import Cage, OperationType
from .definitions import (
    CageDefinition,
    Coordinates,
    build_cages,
    definitions_from_cages,
    definitions_from_json,
    definitions_to_json,
    puzzles_from_json,
    validate_partition,
)
from .exceptions import (
    KenKenError,
    InvalidConfigurationError,
    InvalidSizeError,
    OutOfBoundsError,
    StructuralViolationError,
    GenerationFailedError,
)
from .validator import is_valid_placement, is_valid_solution, find_conflicts, validate_solution

__all__ = [
    "Cell",
    "Grid",
    "MIN_SIZE",
    "MAX_SIZE",
    "Cage",
    "OperationType",
    "CageDefinition",
    "Coordinates",
    "build_cages",
    "definitions_from_cages",
    "definitions_from_json",
    "definitions_to_json",
    "puzzles_from_json",
    "validate_partition",
    "KenKenError",
    "InvalidConfigurationError",
    "InvalidSizeError",
    "OutOfBoundsError",
    "StructuralViolationError",
    "GenerationFailedError",
    "is_valid_placement",
    "is_valid_solution",
    "find_conflicts",
    "validate_solution",
]
