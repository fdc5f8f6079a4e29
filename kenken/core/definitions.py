"""Reference-free cage descriptions shared between generator, solver and callers."""

from __future__ import annotations
import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, NamedTuple, Sequence, Tuple

from .cage import Cage, OperationType
from .exceptions import OutOfBoundsError, StructuralViolationError
from .grid import Grid


class Coordinates(NamedTuple):
    """A (row, col) grid position."""

    row: int
    col: int


@dataclass(frozen=True)
class CageDefinition:
    """
    Portable description of a cage: target, operator and cell coordinates.

    This is the only structure needed to rebuild a puzzle, so it is what
    gets saved, loaded and passed around instead of live Cage objects.
    """

    target: int
    operation: OperationType
    cells: Tuple[Coordinates, ...]

    def __post_init__(self) -> None:
        if self.operation is None:
            raise StructuralViolationError("CageDefinition operation must not be None")
        if self.cells is None:
            raise StructuralViolationError("CageDefinition cells must not be None")
        object.__setattr__(self, "target", int(self.target))
        object.__setattr__(self, "operation", OperationType.parse(self.operation))
        object.__setattr__(
            self, "cells", tuple(Coordinates(int(r), int(c)) for r, c in self.cells)
        )

    @property
    def size(self) -> int:
        return len(self.cells)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "operation": self.operation.value,
            "cells": [[c.row, c.col] for c in self.cells],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CageDefinition:
        try:
            return cls(
                target=data["target"],
                operation=OperationType.parse(data["operation"]),
                cells=[tuple(cell) for cell in data["cells"]],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise StructuralViolationError(f"Malformed cage definition {data!r}: {e}") from e

    def __str__(self) -> str:
        cells = " ".join(f"({r},{c})" for r, c in self.cells)
        return f"{self.target}{self.operation.symbol} [{self.operation.value}] {cells}"


def definitions_to_json(definitions: Sequence[CageDefinition], size: int, **kwargs) -> str:
    """Serialize a puzzle as ``{"size": N, "cages": [...]}``."""
    payload = {"size": size, "cages": [d.to_dict() for d in definitions]}
    return json.dumps(payload, **kwargs)


def definitions_from_json(text: str) -> Tuple[int, List[CageDefinition]]:
    """Inverse of :func:`definitions_to_json`. Returns (size, definitions)."""
    return _puzzle_from_payload(_load_json(text))


def puzzles_from_json(text: str) -> List[Tuple[int, List[CageDefinition]]]:
    """
    Parse a puzzle file holding either one puzzle (``{"size", "cages"}``)
    or a batch (``{"puzzles": [{"size", "cages", ...}, ...]}``).

    Returns:
        List of (size, definitions) pairs in file order.
    """
    payload = _load_json(text)
    if isinstance(payload, dict) and "puzzles" in payload:
        entries = payload["puzzles"]
        if not isinstance(entries, list):
            raise StructuralViolationError("Malformed puzzle document: \"puzzles\" must be a list")
        return [_puzzle_from_payload(entry) for entry in entries]
    return [_puzzle_from_payload(payload)]


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as e:
        raise StructuralViolationError(f"Puzzle document is not valid JSON: {e}") from e


def _puzzle_from_payload(payload: Any) -> Tuple[int, List[CageDefinition]]:
    try:
        size = int(payload["size"])
        cages = payload["cages"]
    except (KeyError, TypeError, ValueError) as e:
        raise StructuralViolationError(f"Malformed puzzle document: {e}") from e
    if not isinstance(cages, list):
        raise StructuralViolationError("Malformed puzzle document: \"cages\" must be a list")
    return size, [CageDefinition.from_dict(item) for item in cages]


def build_cages(grid: Grid, definitions: Iterable[CageDefinition]) -> List[Cage]:
    """
    Create cages bound to ``grid`` from definitions.

    Cage ids are assigned 0..k-1 in definition order.

    Raises:
        StructuralViolationError: for out-of-range coordinates, overlapping
            cages or a cell count that does not fit the operator.
    """
    cages = []
    for cage_id, definition in enumerate(definitions):
        cage = Cage(cage_id, definition.target, definition.operation, grid)
        for row, col in definition.cells:
            try:
                cell = grid.cell_at(row, col)
            except OutOfBoundsError as e:
                raise StructuralViolationError(str(e)) from e
            cage.add_cell(cell)
        cage.validate_structure()
        cages.append(cage)
    return cages


def definitions_from_cages(cages: Iterable[Cage]) -> List[CageDefinition]:
    """Describe live cages as portable definitions."""
    return [CageDefinition(cage.target, cage.operation, cage.cells) for cage in cages]


def validate_partition(definitions: Sequence[CageDefinition], size: int) -> None:
    """
    Check that the definitions cover every cell of a size x size grid exactly once.

    Raises:
        StructuralViolationError: on a gap, an overlap or an out-of-range cell.
    """
    seen = set()
    for definition in definitions:
        for row, col in definition.cells:
            if not (0 <= row < size and 0 <= col < size):
                raise StructuralViolationError(f"Cell ({row}, {col}) is outside the grid")
            if (row, col) in seen:
                raise StructuralViolationError(f"Cell ({row}, {col}) is in more than one cage")
            seen.add((row, col))

    missing = size * size - len(seen)
    if missing:
        raise StructuralViolationError(f"{missing} cell(s) are not covered by any cage")
