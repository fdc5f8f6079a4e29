"""Cage arithmetic constraints."""

from __future__ import annotations
from enum import Enum
from math import prod
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

from .exceptions import StructuralViolationError

if TYPE_CHECKING:
    from .grid import Cell, Grid


class OperationType(str, Enum):
    """Arithmetic operator of a cage. NONE marks a single given value."""

    ADD = "ADD"
    SUB = "SUB"
    MUL = "MUL"
    DIV = "DIV"
    NONE = "NONE"

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]

    @property
    def required_cells(self) -> Optional[int]:
        """Exact cell count the operator needs, or None when any count >= 1 works."""
        if self is OperationType.NONE:
            return 1
        if self in (OperationType.SUB, OperationType.DIV):
            return 2
        return None

    @classmethod
    def parse(cls, text: str) -> OperationType:
        """Parse an operator from its name or display symbol."""
        if isinstance(text, cls):
            return text
        key = str(text).strip()
        if key.upper() in cls.__members__:
            return cls[key.upper()]
        if key in _SYMBOL_ALIASES:
            return _SYMBOL_ALIASES[key]
        raise ValueError(f"Unknown cage operation: {text!r}")


_SYMBOLS = {
    OperationType.ADD: "+",
    OperationType.SUB: "-",
    OperationType.MUL: "x",
    OperationType.DIV: "/",
    OperationType.NONE: "",
}

_SYMBOL_ALIASES = {
    "+": OperationType.ADD,
    "-": OperationType.SUB,
    "x": OperationType.MUL,
    "*": OperationType.MUL,
    "/": OperationType.DIV,
    "÷": OperationType.DIV,
    "": OperationType.NONE,
}


def evaluate(operation: OperationType, target: int, values: Sequence[int]) -> bool:
    """
    Check a cage law over a sequence of cell values.

    Args:
        operation: Cage operator.
        target: Cage target value.
        values: One value per cage cell, in cage order.

    Returns:
        True if the values satisfy the law.

    Raises:
        StructuralViolationError: if there are no values, a value is empty (0),
            or SUB/DIV is applied to anything but exactly two values.
    """
    if not values:
        raise StructuralViolationError("Cannot evaluate a cage with no cells")
    if any(v == 0 for v in values):
        raise StructuralViolationError("Cannot evaluate a cage with empty cells")

    if operation is OperationType.NONE:
        return len(values) == 1 and values[0] == target

    if operation is OperationType.ADD:
        return sum(values) == target

    if operation is OperationType.MUL:
        return prod(values) == target

    if len(values) != 2:
        raise StructuralViolationError(
            f"{operation.value} is only defined for two cells, got {len(values)}"
        )
    v1, v2 = values

    if operation is OperationType.SUB:
        return abs(v1 - v2) == target

    if operation is OperationType.DIV:
        return (
            (v1 > v2 and v1 % v2 == 0 and v1 // v2 == target)
            or (v2 > v1 and v2 % v1 == 0 and v2 // v1 == target)
            or (v1 == v2 and target == 1)
        )

    raise StructuralViolationError(f"Unsupported operation: {operation}")


class Cage:
    """
    A group of cells bound by one arithmetic constraint.

    The identifier is assigned by whoever builds the cage (usually
    :func:`kenken.core.definitions.build_cages`), so two grids never share
    cage state. Target and operator are fixed; cells are added one at a
    time during setup.
    """

    def __init__(self, cage_id: int, target: int, operation: OperationType, grid: Grid):
        if operation is None:
            raise StructuralViolationError("Cage operation must not be None")
        self._cage_id = cage_id
        self._target = int(target)
        try:
            self._operation = OperationType.parse(operation)
        except ValueError as e:
            raise StructuralViolationError(str(e)) from e
        self._grid = grid
        self._cells: List[Tuple[int, int]] = []

    @property
    def cage_id(self) -> int:
        return self._cage_id

    @property
    def target(self) -> int:
        return self._target

    @property
    def operation(self) -> OperationType:
        return self._operation

    @property
    def grid(self) -> Grid:
        return self._grid

    @property
    def cells(self) -> Tuple[Tuple[int, int], ...]:
        """Coordinates of the cage cells, in insertion order."""
        return tuple(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, coordinates: Tuple[int, int]) -> bool:
        return tuple(coordinates) in self._cells

    def add_cell(self, cell: Cell) -> None:
        """Append a cell and back-link it to this cage."""
        if cell is None:
            raise StructuralViolationError("Cannot add a null cell to a cage")
        if cell.grid is not self._grid:
            raise StructuralViolationError(
                f"Cell ({cell.row}, {cell.col}) belongs to a different grid"
            )
        if cell.coordinates in self._cells:
            raise StructuralViolationError(
                f"Cell ({cell.row}, {cell.col}) is already in cage {self._cage_id}"
            )
        required = self._operation.required_cells
        if required is not None and len(self._cells) >= required:
            raise StructuralViolationError(
                f"A {self._operation.value} cage holds exactly {required} cell(s)"
            )

        cell.bind_cage(self._cage_id)
        self._cells.append(cell.coordinates)

    def get_cells(self) -> List[Cell]:
        return [self._grid.cell_at(r, c) for r, c in self._cells]

    def values(self) -> List[int]:
        return [int(self._grid.values[r, c]) for r, c in self._cells]

    def is_complete(self) -> bool:
        """True when every cell of the cage holds a value."""
        return bool(self._cells) and all(v != 0 for v in self.values())

    def validate_structure(self) -> None:
        """Raise if the cell count does not fit the operator."""
        if not self._cells:
            raise StructuralViolationError(f"Cage {self._cage_id} has no cells")
        required = self._operation.required_cells
        if required is not None and len(self._cells) != required:
            raise StructuralViolationError(
                f"Cage {self._cage_id} ({self._operation.value}) needs {required} "
                f"cell(s), has {len(self._cells)}"
            )

    def check_constraint(self) -> bool:
        """
        Evaluate the cage law against the current cell values.

        Only call this once every cell of the cage is filled.

        Raises:
            StructuralViolationError: for an empty cage, an unfilled cell, or a
                SUB/DIV cage that does not hold exactly two cells.
        """
        return evaluate(self._operation, self._target, self.values())

    def label(self) -> str:
        """Display label, e.g. ``12x`` or ``3``."""
        return f"{self._target}{self._operation.symbol}"

    def __repr__(self) -> str:
        return (
            f"Cage(id={self._cage_id}, target={self._target}, "
            f"operation={self._operation.value}, cells={list(self._cells)})"
        )
