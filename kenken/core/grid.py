"""KenKen grid representation.

The grid is an arena: cell values, editability flags and parent-cage ids
live in three numpy matrices owned by the :class:`Grid`. :class:`Cell`
objects are lightweight handles into that arena, created once per position
when the grid is built.
"""

from __future__ import annotations
from typing import List, Optional, Set, Tuple

import numpy as np

from .exceptions import InvalidSizeError, OutOfBoundsError, StructuralViolationError

MIN_SIZE = 3
MAX_SIZE = 6

#: Marker stored in ``Grid.cage_ids`` for cells that belong to no cage.
NO_CAGE = -1


class Cell:
    """Handle on a single grid position.

    A cell reads and writes through its owning grid, so every (row, col)
    pair maps to exactly one ``Cell`` instance for the grid's lifetime.
    """

    __slots__ = ("_grid", "row", "col")

    def __init__(self, grid: Grid, row: int, col: int):
        self._grid = grid
        self.row = row
        self.col = col

    @property
    def grid(self) -> Grid:
        return self._grid

    @property
    def coordinates(self) -> Tuple[int, int]:
        return (self.row, self.col)

    @property
    def value(self) -> int:
        return int(self._grid.values[self.row, self.col])

    @value.setter
    def value(self, value: int) -> None:
        if not self.editable:
            raise StructuralViolationError(
                f"Cell ({self.row}, {self.col}) is fixed and cannot be changed"
            )
        if value < 0 or value > self._grid.size:
            raise ValueError(f"Value must be 0-{self._grid.size}, got {value}")
        self._grid.values[self.row, self.col] = value

    @property
    def editable(self) -> bool:
        return bool(self._grid.editable[self.row, self.col])

    @editable.setter
    def editable(self, editable: bool) -> None:
        self._grid.editable[self.row, self.col] = editable

    @property
    def cage_id(self) -> Optional[int]:
        cage_id = int(self._grid.cage_ids[self.row, self.col])
        return None if cage_id == NO_CAGE else cage_id

    def bind_cage(self, cage_id: int) -> None:
        """Record the parent cage. A cell belongs to at most one cage."""
        current = self.cage_id
        if current is not None and current != cage_id:
            raise StructuralViolationError(
                f"Cell ({self.row}, {self.col}) already belongs to cage {current}"
            )
        self._grid.cage_ids[self.row, self.col] = cage_id

    def is_empty(self) -> bool:
        return self.value == 0

    def clear(self) -> None:
        """Reset the value to empty. Fixed cells are left untouched."""
        if self.editable:
            self._grid.values[self.row, self.col] = 0

    def fix(self, value: int) -> None:
        """Set the value and lock the cell against further edits.

        Re-fixing a locked cell with its current value is a no-op; any other
        value raises StructuralViolationError and the cell stays locked.
        """
        if not self.editable:
            if value != self.value:
                raise StructuralViolationError(
                    f"Cell ({self.row}, {self.col}) is already fixed to {self.value}"
                )
            return
        self.value = value
        self.editable = False

    def __repr__(self) -> str:
        flag = "" if self.editable else ", fixed"
        return f"Cell(({self.row}, {self.col}), value={self.value}{flag}, cage={self.cage_id})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cell):
            return False
        return self._grid is other._grid and self.row == other.row and self.col == other.col

    def __hash__(self) -> int:
        return hash((id(self._grid), self.row, self.col))


class Grid:
    """
    An N x N KenKen grid, 3 <= N <= 6.

    Values are 0 for empty cells and 1..N otherwise. The size is fixed at
    construction time.
    """

    def __init__(self, size: int, values: Optional[np.ndarray] = None):
        """
        Initialize a grid.

        Args:
            size: Grid size N (3 to 6).
            values: Optional initial N x N value matrix. If None, the grid is empty.
        """
        if not MIN_SIZE <= size <= MAX_SIZE:
            raise InvalidSizeError(
                f"Grid size must be between {MIN_SIZE} and {MAX_SIZE}, got {size}"
            )

        self._size = size

        if values is not None:
            values = np.asarray(values)
            if values.shape != (size, size):
                raise ValueError(f"Grid shape must be ({size}, {size})")
            if values.min() < 0 or values.max() > size:
                raise ValueError(f"Values must be 0-{size}")
            self.values = values.astype(np.int32)
        else:
            self.values = np.zeros((size, size), dtype=np.int32)

        self.editable = np.ones((size, size), dtype=bool)
        self.cage_ids = np.full((size, size), NO_CAGE, dtype=np.int32)
        self._cells = [[Cell(self, r, c) for c in range(size)] for r in range(size)]

    @classmethod
    def create(cls, size: int) -> Grid:
        """Create an empty grid of the given size."""
        return cls(size)

    @property
    def size(self) -> int:
        return self._size

    def copy(self) -> Grid:
        """Create an independent copy (values, editability and cage ids)."""
        new_grid = Grid(self._size, self.values)
        new_grid.editable = self.editable.copy()
        new_grid.cage_ids = self.cage_ids.copy()
        return new_grid

    def values_copy(self) -> Grid:
        """Create a fresh, fully editable grid holding only this grid's values."""
        return Grid(self._size, self.values)

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self._size and 0 <= col < self._size

    def cell_at(self, row: int, col: int) -> Cell:
        """Return the cell at (row, col)."""
        if not self.in_bounds(row, col):
            raise OutOfBoundsError(
                f"Cell ({row}, {col}) is outside a {self._size}x{self._size} grid"
            )
        return self._cells[row][col]

    def cells(self) -> List[Cell]:
        """All cells in row-major order."""
        return [cell for row in self._cells for cell in row]

    def get(self, row: int, col: int) -> int:
        """Get value at position (row, col). 0 means empty."""
        return self.cell_at(row, col).value

    def set(self, row: int, col: int, value: int) -> None:
        """Set value at position (row, col). Use 0 to clear."""
        self.cell_at(row, col).value = value

    def clear(self, row: int, col: int) -> None:
        """Clear the cell at position (row, col)."""
        self.cell_at(row, col).clear()

    def fix(self, row: int, col: int, value: int) -> None:
        """Place a given value and make the cell non-editable."""
        self.cell_at(row, col).fix(value)

    def is_empty(self, row: int, col: int) -> bool:
        """Check if cell is empty (value is 0)."""
        return self.get(row, col) == 0

    def get_row(self, row: int) -> np.ndarray:
        """Get all values in a row."""
        return self.values[row, :]

    def get_col(self, col: int) -> np.ndarray:
        """Get all values in a column."""
        return self.values[:, col]

    def get_candidates(self, row: int, col: int) -> Set[int]:
        """
        Get the values that row and column uniqueness still allow at (row, col).

        Cage arithmetic is not considered here.

        Returns:
            Set of values (1 to size). Empty if the cell is already filled.
        """
        if not self.is_empty(row, col):
            return set()

        used = set(int(v) for v in self.get_row(row)) | set(int(v) for v in self.get_col(col))
        return set(range(1, self._size + 1)) - used

    def get_empty_cells(self) -> List[Tuple[int, int]]:
        """Get list of all empty cell positions in row-major order."""
        return [(int(r), int(c)) for r, c in zip(*np.nonzero(self.values == 0))]

    def count_empty(self) -> int:
        """Count the number of empty cells."""
        return int(np.sum(self.values == 0))

    def count_filled(self) -> int:
        """Count the number of filled cells."""
        return int(np.sum(self.values != 0))

    def is_complete(self) -> bool:
        """Check if all cells are filled."""
        return self.count_empty() == 0

    def is_valid(self) -> bool:
        """
        Check that no row or column repeats a non-zero value.
        Does not check completeness or cage arithmetic.
        """
        for i in range(self._size):
            for line in (self.get_row(i), self.get_col(i)):
                non_zero = line[line != 0]
                if len(non_zero) != len(set(non_zero.tolist())):
                    return False
        return True

    def is_latin_square(self) -> bool:
        """Check that every row and column holds each of 1..N exactly once."""
        return self.is_complete() and self.is_valid()

    def to_string(self) -> str:
        """Compact row-major string, 0 for empty cells."""
        return "".join(str(int(v)) for v in self.values.flatten())

    @classmethod
    def from_string(cls, s: str, size: int) -> Grid:
        """
        Create a grid from a string representation.

        Args:
            s: String of length size*size. 0 or . for empty, digits for values.
            size: Grid size.
        """
        if len(s) != size * size:
            raise ValueError(f"String length must be {size * size}, got {len(s)}")

        values = [0 if ch in "0." else int(ch) for ch in s]
        return cls(size, np.array(values, dtype=np.int32).reshape(size, size))

    @classmethod
    def from_2d_list(cls, data: List[List[int]]) -> Grid:
        """Create a grid from a 2D list."""
        arr = np.array(data, dtype=np.int32)
        return cls(arr.shape[0], arr)

    def to_2d_list(self) -> List[List[int]]:
        return self.values.tolist()

    def __str__(self) -> str:
        """Pretty-print the grid."""
        horizontal_sep = "+" + "-" * (self._size * 2 + 1) + "+"
        lines = [horizontal_sep]
        for i in range(self._size):
            cells = " ".join("." if v == 0 else str(int(v)) for v in self.values[i])
            lines.append(f"| {cells} |")
        lines.append(horizontal_sep)
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"Grid(size={self._size}, filled={self.count_filled()})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return False
        return self._size == other._size and np.array_equal(self.values, other.values)

    def __hash__(self) -> int:
        return hash(self.to_string())
