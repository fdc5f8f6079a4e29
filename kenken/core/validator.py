"""Validation utilities for KenKen grids."""

from __future__ import annotations
from typing import Dict, Iterable, Mapping, Optional, Set, Tuple, Union, TYPE_CHECKING

from .cage import evaluate
from .exceptions import StructuralViolationError
from .grid import NO_CAGE

if TYPE_CHECKING:
    from .cage import Cage
    from .grid import Grid

CageCollection = Union[Mapping[int, "Cage"], Iterable["Cage"]]


def index_cages(cages: Optional[CageCollection]) -> Dict[int, Cage]:
    """Return a cage-id -> cage mapping from either a mapping or an iterable."""
    if cages is None:
        return {}
    if isinstance(cages, Mapping):
        return dict(cages)
    return {cage.cage_id: cage for cage in cages}


def is_valid_placement(
    grid: Grid,
    row: int,
    col: int,
    value: int,
    cages: Optional[CageCollection] = None,
) -> bool:
    """
    Check whether placing ``value`` at (row, col) would be legal.

    The grid is not modified. A placement is legal when the value does not
    already appear elsewhere in the row or column and, if it would complete
    the cell's cage, the cage law holds for the resulting values.

    Args:
        grid: The grid.
        row: Row index.
        col: Column index.
        value: Candidate value (1 to grid.size).
        cages: Cages bound to the grid, as a list or an id -> cage mapping.

    Returns:
        True if the placement is legal.
    """
    size = grid.size
    if value < 1 or value > size:
        return False

    values = grid.values
    for c in range(size):
        if c != col and values[row, c] == value:
            return False
    for r in range(size):
        if r != row and values[r, col] == value:
            return False

    cage_id = int(grid.cage_ids[row, col])
    if cage_id == NO_CAGE or cages is None:
        return True

    cage = cages.get(cage_id) if isinstance(cages, Mapping) else index_cages(cages).get(cage_id)
    if cage is None:
        return True

    hypothetical = [
        value if (r, c) == (row, col) else int(values[r, c]) for r, c in cage.cells
    ]
    if 0 in hypothetical:
        return True

    try:
        return evaluate(cage.operation, cage.target, hypothetical)
    except StructuralViolationError:
        return False


def is_valid_solution(grid: Grid, cages: Iterable[Cage]) -> bool:
    """
    Check a filled grid end to end: Latin-square rows/columns and every cage law.

    Returns False (never raises) for incomplete grids or malformed cages.
    """
    if not grid.is_latin_square():
        return False

    for cage in cages:
        try:
            if not cage.check_constraint():
                return False
        except StructuralViolationError:
            return False
    return True


def find_conflicts(grid: Grid, cages: Iterable[Cage]) -> Set[Tuple[int, int]]:
    """
    Collect the cells currently breaking a rule.

    A cell is reported when its non-zero value repeats in its row or column,
    or when it belongs to a fully filled cage whose law fails.
    """
    size = grid.size
    conflicts: Set[Tuple[int, int]] = set()

    for i in range(size):
        for line in ([(i, c) for c in range(size)], [(r, i) for r in range(size)]):
            seen: Dict[int, list] = {}
            for r, c in line:
                v = int(grid.values[r, c])
                if v:
                    seen.setdefault(v, []).append((r, c))
            for positions in seen.values():
                if len(positions) > 1:
                    conflicts.update(positions)

    for cage in cages:
        if not cage.is_complete():
            continue
        try:
            satisfied = cage.check_constraint()
        except StructuralViolationError:
            satisfied = False
        if not satisfied:
            conflicts.update(cage.cells)

    return conflicts


def validate_solution(puzzle: Grid, solution: Grid, cages: Iterable[Cage]) -> bool:
    """
    Validate that ``solution`` solves ``puzzle``.

    Fixed (non-editable) cells of the puzzle must keep their value and the
    solution must satisfy every cage, evaluated against the solution values.
    """
    if puzzle.size != solution.size:
        return False

    for i in range(puzzle.size):
        for j in range(puzzle.size):
            if not puzzle.editable[i, j] and puzzle.values[i, j] != solution.values[i, j]:
                return False

    if not solution.is_latin_square():
        return False

    for cage in cages:
        try:
            if not evaluate(cage.operation, cage.target,
                            [int(solution.values[r, c]) for r, c in cage.cells]):
                return False
        except StructuralViolationError:
            return False
    return True
