"""Exhaustive backtracking solver for KenKen puzzles."""

from __future__ import annotations
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from .base_solver import BaseSolver, DEFAULT_MAX_SOLUTIONS
from ..core.cage import Cage, evaluate
from ..core.definitions import CageDefinition, build_cages
from ..core.exceptions import StructuralViolationError
from ..core.grid import Grid
from ..core.validator import is_valid_solution
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)


class BacktrackingSolver(BaseSolver):
    """
    Depth-first search over empty cells in row-major order.

    Features:
    - Candidates 1..N tried in increasing order, so solutions come out in
      lexicographic row-major order
    - Row/column pruning plus a cage check whenever a placement completes a cage
    - End-to-end re-validation of every complete filling before it is kept
    - Early exit as soon as the solution cap is reached

    The solver works on a private copy of the grid and cages; the caller's
    objects are never modified.
    """

    name = "Backtracking"

    def __init__(self, grid: Grid, cages: Sequence[Cage], size: int, track_memory: bool = False):
        """
        Initialize the solver.

        Args:
            grid: Puzzle grid. Non-editable cells are treated as givens; all
                other cells are solved from scratch.
            cages: Cages bound to ``grid``.
            size: Expected grid size N.
            track_memory: Record peak memory in the stats.

        Raises:
            StructuralViolationError: if the grid is missing or its size is
                not ``size``, if ``cages`` is None, or if two cages share an id.
        """
        super().__init__(track_memory=track_memory)
        if grid is None or grid.size != size:
            raise StructuralViolationError(
                f"Solver needs a {size}x{size} grid, got {grid!r}"
            )
        if cages is None:
            raise StructuralViolationError("Solver needs a cage list, got None")

        self.size = size
        self.working_grid = Grid(size)

        for r in range(size):
            for c in range(size):
                if not grid.editable[r, c]:
                    self.working_grid.fix(r, c, int(grid.values[r, c]))

        self.cages: List[Cage] = []
        self._cage_index: Dict[int, Cage] = {}
        for original in cages:
            if original is None:
                LOGGER.warning("Ignoring a None entry in the cage list")
                continue
            if original.cage_id in self._cage_index:
                raise StructuralViolationError(f"Duplicate cage id {original.cage_id}")
            cage = Cage(original.cage_id, original.target, original.operation, self.working_grid)
            for row, col in original.cells:
                cage.add_cell(self.working_grid.cell_at(row, col))
            self.cages.append(cage)
            self._cage_index[cage.cage_id] = cage

        self._order: List[Tuple[int, int]] = []
        self._solutions: List[Grid] = []
        self._limit = DEFAULT_MAX_SOLUTIONS
        self._values: List[List[int]] = []
        self._rows: List[Set[int]] = []
        self._cols: List[Set[int]] = []
        self._cell_cage: Dict[Tuple[int, int], Cage] = {}

    def _solve(self, max_solutions: int) -> List[Grid]:
        """Solve using recursive backtracking."""
        size = self.size
        self._limit = max_solutions
        self._solutions = []

        # Search state is kept in plain lists; the working grid is synced
        # from it only when a complete filling is checked.
        self._values = self.working_grid.values.tolist()
        self._rows = [set(v for v in row if v) for row in self._values]
        self._cols = [set(self._values[r][c] for r in range(size) if self._values[r][c])
                      for c in range(size)]
        self._cell_cage = {
            cell: cage for cage in self.cages for cell in cage.cells
        }
        self._order = [
            (r, c)
            for r in range(size)
            for c in range(size)
            if self.working_grid.editable[r, c] and self._values[r][c] == 0
        ]

        try:
            self._backtrack(0)
        finally:
            for r, c in self._order:
                self.working_grid.values[r, c] = 0

        return self._solutions

    def _backtrack(self, index: int) -> bool:
        """
        Fill the cell at ``self._order[index]`` and recurse.

        Returns True once the solution cap is reached, which unwinds the
        whole search without undoing further placements.
        """
        self.stats.iterations += 1
        if len(self._solutions) >= self._limit:
            return True

        if index == len(self._order):
            return self._record_candidate()

        row, col = self._order[index]
        row_used, col_used = self._rows[row], self._cols[col]
        cage = self._cell_cage.get((row, col))

        for value in range(1, self.size + 1):
            if value in row_used or value in col_used:
                continue
            if cage is not None and not self._cage_allows(cage, row, col, value):
                continue

            self.stats.nodes_explored += 1
            self._values[row][col] = value
            row_used.add(value)
            col_used.add(value)
            if self._backtrack(index + 1):
                return True
            self._values[row][col] = 0
            row_used.discard(value)
            col_used.discard(value)
            self.stats.backtracks += 1

        return False

    def _cage_allows(self, cage: Cage, row: int, col: int, value: int) -> bool:
        """Would ``value`` at (row, col) keep its cage satisfiable?

        Only a placement that completes the cage is checked; the search
        state is not modified.
        """
        hypothetical = []
        for r, c in cage.cells:
            v = value if (r == row and c == col) else self._values[r][c]
            if v == 0:
                return True
            hypothetical.append(v)
        try:
            return evaluate(cage.operation, cage.target, hypothetical)
        except StructuralViolationError:
            return False

    def _record_candidate(self) -> bool:
        """Re-validate a complete filling and keep it if it holds."""
        self.working_grid.values[:, :] = self._values
        if not is_valid_solution(self.working_grid, self.cages):
            self.stats.rejected_candidates += 1
            LOGGER.debug("Rejected complete filling %s", self.working_grid.to_string())
            return False

        self._solutions.append(_snapshot(self.working_grid))
        return len(self._solutions) >= self._limit


def _snapshot(grid: Grid) -> Grid:
    """Read-only copy of a grid's values."""
    snapshot = grid.values_copy()
    snapshot.editable[:, :] = False
    snapshot.values.setflags(write=False)
    return snapshot


def solve(
    grid: Grid,
    cages: Sequence[Cage],
    size: int,
    max_solutions: int = DEFAULT_MAX_SOLUTIONS,
) -> List[Grid]:
    """
    Enumerate up to ``max_solutions`` solutions of a puzzle.

    Args:
        grid: Puzzle grid (non-editable cells are givens).
        cages: Cages bound to ``grid``.
        size: Grid size N.
        max_solutions: Solution cap (0 -> empty result, negative -> default cap).

    Returns:
        Read-only solution grids in lexicographic row-major order.
    """
    return BacktrackingSolver(grid, cages, size).solve(max_solutions)


def solve_definitions(
    definitions: Sequence[CageDefinition],
    size: int,
    max_solutions: int = DEFAULT_MAX_SOLUTIONS,
    fixed: Optional[Mapping[Tuple[int, int], int]] = None,
) -> List[Grid]:
    """
    Build a fresh grid from cage definitions (plus optional givens) and solve it.

    Args:
        definitions: Cage definitions of the puzzle.
        size: Grid size N.
        max_solutions: Solution cap.
        fixed: Optional (row, col) -> value givens.
    """
    grid = Grid(size)
    for (row, col), value in (fixed or {}).items():
        grid.fix(row, col, value)
    cages = build_cages(grid, definitions)
    return solve(grid, cages, size, max_solutions)


def count_solutions(definitions: Sequence[CageDefinition], size: int, limit: int = 2) -> int:
    """
    Count the solutions of a puzzle, stopping once ``limit`` is reached.
    """
    return len(solve_definitions(definitions, size, max_solutions=limit))
