"""KenKen puzzle generator with difficulty-dependent operator sets."""

from __future__ import annotations
import random
from collections import deque
from dataclasses import dataclass
from enum import Enum
from math import prod
from typing import FrozenSet, List, Optional, Sequence, Tuple, Union

from ..core.cage import OperationType
from ..core.definitions import CageDefinition, Coordinates, build_cages
from ..core.exceptions import GenerationFailedError, InvalidConfigurationError, InvalidSizeError
from ..core.grid import Grid, MAX_SIZE, MIN_SIZE
from ..solvers.backtracking_solver import BacktrackingSolver
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_MAX_GENERATION_ATTEMPTS = 100
DEFAULT_VERIFICATION_CAP = 100

# Up, down, left, right.
NEIGHBOR_STEPS: Tuple[Tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))


class Difficulty(str, Enum):
    """Difficulty levels for KenKen puzzles."""
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"

    @property
    def operations(self) -> FrozenSet[OperationType]:
        """Operators a puzzle of this difficulty may use."""
        return _OPERATIONS[self]

    @property
    def min_size(self) -> int:
        """Smallest grid size that supports this difficulty."""
        return {Difficulty.EASY: 3, Difficulty.MEDIUM: 4, Difficulty.HARD: 6}[self]

    @classmethod
    def parse(cls, value: Union[str, Difficulty, None]) -> Difficulty:
        """Parse a difficulty label, ignoring case and surrounding whitespace."""
        if isinstance(value, cls):
            return value
        if value is None or not str(value).strip():
            raise InvalidConfigurationError("Difficulty must not be empty")
        key = str(value).strip().upper()
        if key not in cls.__members__:
            supported = ", ".join(d.value for d in cls)
            raise InvalidConfigurationError(
                f"Unsupported difficulty: {value}. Supported levels are: {supported}."
            )
        return cls[key]


_OPERATIONS = {
    Difficulty.EASY: frozenset({OperationType.ADD, OperationType.SUB, OperationType.NONE}),
    Difficulty.MEDIUM: frozenset({
        OperationType.ADD, OperationType.SUB, OperationType.MUL, OperationType.NONE,
    }),
    Difficulty.HARD: frozenset({
        OperationType.ADD, OperationType.SUB, OperationType.MUL, OperationType.DIV,
        OperationType.NONE,
    }),
}


def _check_size(size: int) -> None:
    if not MIN_SIZE <= size <= MAX_SIZE:
        raise InvalidSizeError(
            f"Puzzle size must be between {MIN_SIZE} and {MAX_SIZE}, got {size}"
        )


def highest_supported_difficulty(size: int) -> Difficulty:
    """The hardest difficulty available for a grid of ``size``."""
    _check_size(size)
    for difficulty in reversed(list(Difficulty)):
        if size >= difficulty.min_size:
            return difficulty
    return Difficulty.EASY


def allowed_operations(size: int, difficulty: Union[str, Difficulty]) -> FrozenSet[OperationType]:
    """
    Operator set for a (size, difficulty) pair.

    Raises:
        InvalidConfigurationError: for a bad size, an unknown difficulty, or a
            difficulty the size does not support (the message names the
            hardest supported one).
    """
    _check_size(size)
    level = Difficulty.parse(difficulty)
    if size < level.min_size:
        fallback = highest_supported_difficulty(size)
        raise InvalidConfigurationError(
            f"{level.value} is not supported for {size}x{size} puzzles; "
            f"the hardest supported difficulty is {fallback.value}."
        )
    return level.operations


def cage_size_range(size: int, difficulty: Union[str, Difficulty]) -> Tuple[int, int]:
    """(min, max) cell count for ADD/MUL cages."""
    level = Difficulty.parse(difficulty)
    if size <= 3:
        return (2, 2)
    if size == 6 and level is Difficulty.HARD:
        return (2, 5)
    if size > 4 and level in (Difficulty.EASY, Difficulty.MEDIUM):
        return (2, 3)
    return (2, 4)


@dataclass
class GeneratorConfig:
    """Tunables for :class:`PuzzleGenerator`."""
    max_attempts: int = DEFAULT_MAX_GENERATION_ATTEMPTS
    verification_cap: int = DEFAULT_VERIFICATION_CAP
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise InvalidConfigurationError(
                f"max_attempts must be at least 1, got {self.max_attempts}"
            )
        if self.verification_cap < 1:
            raise InvalidConfigurationError(
                f"verification_cap must be at least 1, got {self.verification_cap}"
            )


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of solving a freshly generated puzzle."""
    is_valid: bool
    has_unique_solution: bool
    solutions_found: int


class PuzzleGenerator:
    """
    Generator for KenKen puzzles.

    Algorithm:
    1. Fill a random Latin square with randomized backtracking
    2. Partition the grid into cages by randomized region growth
    3. Pick each cage's operator and derive its target from the filled grid
    4. Verify with the solver that the puzzle has a solution; otherwise retry
    """

    def __init__(self, config: Optional[GeneratorConfig] = None, seed: Optional[int] = None):
        """
        Initialize the generator.

        Args:
            config: Attempt and verification limits.
            seed: Random seed for reproducibility. Overrides ``config.seed``.
        """
        self.config = config or GeneratorConfig()
        if seed is None:
            seed = self.config.seed
        self._rng = random.Random(seed)
        self.last_attempts = 0
        self.last_verification: Optional[VerificationResult] = None

    def generate(self, size: int, difficulty: Union[str, Difficulty] = Difficulty.EASY) -> List[CageDefinition]:
        """
        Generate a puzzle.

        Args:
            size: Grid size N (3 to 6).
            difficulty: EASY, MEDIUM or HARD (case-insensitive).

        Returns:
            Cage definitions covering the whole grid. Solved values are not
            included.

        Raises:
            InvalidConfigurationError: for a bad size/difficulty combination.
            GenerationFailedError: when no verified puzzle is found within
                ``config.max_attempts`` attempts.
        """
        definitions, _ = self.generate_with_solution(size, difficulty)
        return definitions

    def generate_with_solution(
        self, size: int, difficulty: Union[str, Difficulty] = Difficulty.EASY
    ) -> Tuple[List[CageDefinition], Grid]:
        """
        Generate a puzzle along with the filled grid it was derived from.

        Returns:
            Tuple of (cage definitions, solved grid).
        """
        level = Difficulty.parse(difficulty)
        operations = allowed_operations(size, level)

        last_failure = "no attempt made"
        for attempt in range(1, self.config.max_attempts + 1):
            solution = self._generate_solved_grid(size)
            partitions = self._partition_into_cages(size, level, operations)
            definitions = self._define_cage_constraints(solution, partitions, operations)

            result = self.verify(definitions, size)
            self.last_verification = result
            if result.is_valid:
                self.last_attempts = attempt
                LOGGER.info(
                    "Generated %dx%d %s puzzle with %d cages after %d attempt(s) (%d solution(s) up to cap %d)",
                    size, size, level.value, len(definitions), attempt,
                    result.solutions_found, self.config.verification_cap,
                )
                return definitions, solution

            last_failure = "solver found no solution for the generated cages"
            LOGGER.debug("Attempt %d for %dx%d %s rejected: %s",
                         attempt, size, size, level.value, last_failure)

        self.last_attempts = self.config.max_attempts
        LOGGER.error("Giving up on %dx%d %s after %d attempts",
                     size, size, level.value, self.config.max_attempts)
        raise GenerationFailedError(
            f"Could not generate a {size}x{size} {level.value} puzzle after "
            f"{self.config.max_attempts} attempts: {last_failure}"
        )

    def generate_batch(
        self, count: int, size: int, difficulty: Union[str, Difficulty] = Difficulty.EASY
    ) -> List[List[CageDefinition]]:
        """
        Generate multiple puzzles of the same size and difficulty.

        Args:
            count: Number of puzzles to generate.
            size: Grid size N.
            difficulty: Desired difficulty level.

        Returns:
            One list of cage definitions per puzzle.
        """
        return [self.generate(size, difficulty) for _ in range(count)]

    def verify(self, definitions: Sequence[CageDefinition], size: int) -> VerificationResult:
        """
        Solve the puzzle from an empty grid, up to ``config.verification_cap`` solutions.
        """
        grid = Grid(size)
        cages = build_cages(grid, definitions)
        solutions = BacktrackingSolver(grid, cages, size).solve(self.config.verification_cap)
        return VerificationResult(
            is_valid=bool(solutions),
            has_unique_solution=len(solutions) == 1,
            solutions_found=len(solutions),
        )

    def _generate_solved_grid(self, size: int) -> Grid:
        """Generate a complete Latin square using randomized backtracking."""
        grid = Grid(size)
        if not self._fill_grid(grid, 0):
            raise GenerationFailedError(f"Could not fill a {size}x{size} solution grid")
        return grid

    def _fill_grid(self, grid: Grid, index: int) -> bool:
        """Fill cells row-major from ``index``, trying values in random order."""
        size = grid.size
        if index == size * size:
            return True

        row, col = divmod(index, size)
        if grid.values[row, col] != 0:
            return self._fill_grid(grid, index + 1)

        candidates = list(range(1, size + 1))
        self._rng.shuffle(candidates)

        for value in candidates:
            if value in grid.values[row, :] or value in grid.values[:, col]:
                continue
            grid.values[row, col] = value
            if self._fill_grid(grid, index + 1):
                return True
            grid.values[row, col] = 0

        return False

    def _partition_into_cages(
        self,
        size: int,
        difficulty: Difficulty,
        operations: FrozenSet[OperationType],
    ) -> List[List[Coordinates]]:
        """
        Split the grid into connected regions.

        Each unassigned cell (row-major) seeds a region. An operator drawn from
        the allowed set fixes the intended region size, then the region grows
        breadth-first through unassigned neighbours in shuffled direction order.
        """
        assigned = [[False] * size for _ in range(size)]
        remaining = size * size
        min_size, max_size = cage_size_range(size, difficulty)
        ordered_ops = [op for op in OperationType if op in operations]
        regions: List[List[Coordinates]] = []

        for r in range(size):
            for c in range(size):
                if assigned[r][c]:
                    continue

                candidates = list(ordered_ops)
                if remaining < 2:
                    candidates = [op for op in candidates
                                  if op not in (OperationType.SUB, OperationType.DIV)]
                if not candidates:
                    candidates = [OperationType.NONE]
                operation = self._rng.choice(candidates)

                required = operation.required_cells
                if required is not None:
                    target_size = required
                else:
                    target_size = self._rng.randint(min_size, max_size)
                target_size = max(1, min(target_size, remaining))

                region = [Coordinates(r, c)]
                assigned[r][c] = True
                remaining -= 1
                queue = deque(region)

                while queue and len(region) < target_size:
                    current = queue.popleft()
                    steps = list(NEIGHBOR_STEPS)
                    self._rng.shuffle(steps)
                    for dr, dc in steps:
                        if len(region) >= target_size:
                            break
                        nr, nc = current.row + dr, current.col + dc
                        if 0 <= nr < size and 0 <= nc < size and not assigned[nr][nc]:
                            assigned[nr][nc] = True
                            remaining -= 1
                            neighbor = Coordinates(nr, nc)
                            region.append(neighbor)
                            queue.append(neighbor)

                regions.append(region)

        for r in range(size):
            for c in range(size):
                if not assigned[r][c]:
                    LOGGER.debug("Adding fallback single-cell cage at (%d, %d)", r, c)
                    assigned[r][c] = True
                    regions.append([Coordinates(r, c)])

        return regions

    def _define_cage_constraints(
        self,
        solution: Grid,
        regions: Sequence[Sequence[Coordinates]],
        operations: FrozenSet[OperationType],
    ) -> List[CageDefinition]:
        """Choose each region's operator and compute its target from the solved grid."""
        definitions = []
        for region in regions:
            if not region:
                continue
            values = [int(solution.values[r, c]) for r, c in region]
            operation = self._choose_operation(values, operations)
            definitions.append(
                CageDefinition(compute_target(operation, values), operation, region)
            )
        return definitions

    def _choose_operation(self, values: Sequence[int], operations: FrozenSet[OperationType]) -> OperationType:
        if len(values) == 1:
            return OperationType.NONE

        if len(values) == 2:
            v1, v2 = values
            possible = [op for op in (OperationType.ADD, OperationType.SUB, OperationType.MUL)
                        if op in operations]
            if OperationType.DIV in operations and (v1 % v2 == 0 or v2 % v1 == 0):
                possible.append(OperationType.DIV)
        else:
            possible = [op for op in (OperationType.ADD, OperationType.MUL) if op in operations]

        if not possible:
            return OperationType.ADD
        return self._rng.choice(possible)


def compute_target(operation: OperationType, values: Sequence[int]) -> int:
    """Target value of a cage holding ``values`` under ``operation``."""
    if operation is OperationType.ADD:
        return sum(values)
    if operation is OperationType.MUL:
        return prod(values)
    if operation is OperationType.SUB:
        return abs(values[0] - values[1])
    if operation is OperationType.DIV:
        high, low = max(values[0], values[1]), min(values[0], values[1])
        return high // low
    if operation is OperationType.NONE:
        return values[0]
    raise ValueError(f"Unexpected operation: {operation}")


def generate_puzzle(
    size: int,
    difficulty: Union[str, Difficulty],
    seed: Optional[int] = None,
) -> List[CageDefinition]:
    """Generate one verified puzzle. See :meth:`PuzzleGenerator.generate`."""
    return PuzzleGenerator(seed=seed).generate(size, difficulty)
