"""Unit tests for cages and cage definitions."""

import json

import pytest
from kenken.core.cage import Cage, OperationType, evaluate
from kenken.core.definitions import (
    CageDefinition,
    Coordinates,
    build_cages,
    definitions_from_cages,
    definitions_from_json,
    definitions_to_json,
    puzzles_from_json,
    validate_partition,
)
from kenken.core.exceptions import StructuralViolationError
from kenken.core.grid import Grid


def _cage(grid, operation, target, cells, cage_id=0):
    cage = Cage(cage_id, target, operation, grid)
    for row, col in cells:
        cage.add_cell(grid.cell_at(row, col))
    return cage


def _fill(grid, values):
    for (row, col), value in values.items():
        grid.set(row, col, value)


class TestOperationType:
    """Tests for the operator enumeration."""

    def test_symbols(self):
        assert [op.symbol for op in OperationType] == ["+", "-", "x", "/", ""]

    def test_required_cells(self):
        assert OperationType.NONE.required_cells == 1
        assert OperationType.SUB.required_cells == 2
        assert OperationType.DIV.required_cells == 2
        assert OperationType.ADD.required_cells is None
        assert OperationType.MUL.required_cells is None

    def test_parse(self):
        assert OperationType.parse("add") is OperationType.ADD
        assert OperationType.parse("*") is OperationType.MUL
        assert OperationType.parse("/") is OperationType.DIV
        assert OperationType.parse(OperationType.SUB) is OperationType.SUB
        with pytest.raises(ValueError):
            OperationType.parse("pow")


class TestCage:
    """Tests for Cage construction and constraint checks."""

    def test_add_cell_back_links(self):
        grid = Grid(3)
        cage = _cage(grid, OperationType.ADD, 3, [(0, 0), (0, 1)], cage_id=7)

        assert cage.cells == ((0, 0), (0, 1))
        assert grid.cell_at(0, 0).cage_id == 7
        assert grid.cell_at(1, 1).cage_id is None
        assert len(cage) == 2
        assert (0, 1) in cage

    def test_add_duplicate_cell(self):
        grid = Grid(3)
        cage = _cage(grid, OperationType.ADD, 3, [(0, 0)])
        with pytest.raises(StructuralViolationError):
            cage.add_cell(grid.cell_at(0, 0))

    def test_unknown_operation(self):
        """An unknown operator is a malformed cage."""
        with pytest.raises(StructuralViolationError):
            Cage(0, 3, "pow", Grid(3))

    def test_add_null_cell(self):
        cage = Cage(0, 3, OperationType.ADD, Grid(3))
        with pytest.raises(StructuralViolationError):
            cage.add_cell(None)

    def test_add_cell_from_other_cage(self):
        grid = Grid(3)
        _cage(grid, OperationType.ADD, 3, [(0, 0), (0, 1)], cage_id=0)
        other = Cage(1, 1, OperationType.NONE, grid)
        with pytest.raises(StructuralViolationError):
            other.add_cell(grid.cell_at(0, 0))

    def test_add_cell_from_other_grid(self):
        cage = Cage(0, 3, OperationType.ADD, Grid(3))
        with pytest.raises(StructuralViolationError):
            cage.add_cell(Grid(3).cell_at(0, 0))

    @pytest.mark.parametrize("operation, limit", [
        (OperationType.NONE, 1),
        (OperationType.SUB, 2),
        (OperationType.DIV, 2),
    ])
    def test_fixed_size_operations(self, operation, limit):
        """NONE cages hold one cell, SUB/DIV cages hold two."""
        grid = Grid(4)
        cage = _cage(grid, operation, 1, [(0, c) for c in range(limit)])
        with pytest.raises(StructuralViolationError):
            cage.add_cell(grid.cell_at(3, 3))

    def test_none_constraint(self):
        grid = Grid(3)
        cage = _cage(grid, OperationType.NONE, 2, [(1, 1)])
        grid.set(1, 1, 2)
        assert cage.check_constraint()
        grid.set(1, 1, 3)
        assert not cage.check_constraint()

    def test_add_constraint_round_trip(self):
        """Satisfied cage flips to unsatisfied when one cell changes."""
        grid = Grid(4)
        cage = _cage(grid, OperationType.ADD, 7, [(0, 0), (0, 1), (1, 0)])
        _fill(grid, {(0, 0): 1, (0, 1): 4, (1, 0): 2})
        assert cage.check_constraint()

        grid.set(1, 0, 3)
        assert not cage.check_constraint()

    def test_mul_constraint(self):
        grid = Grid(4)
        cage = _cage(grid, OperationType.MUL, 24, [(0, 0), (0, 1), (1, 1)])
        _fill(grid, {(0, 0): 2, (0, 1): 3, (1, 1): 4})
        assert cage.check_constraint()
        grid.set(1, 1, 1)
        assert not cage.check_constraint()

    def test_sub_constraint_either_order(self):
        grid = Grid(4)
        cage = _cage(grid, OperationType.SUB, 3, [(0, 0), (0, 1)])
        _fill(grid, {(0, 0): 1, (0, 1): 4})
        assert cage.check_constraint()
        _fill(grid, {(0, 0): 4, (0, 1): 1})
        assert cage.check_constraint()
        grid.set(0, 1, 2)
        assert not cage.check_constraint()

    @pytest.mark.parametrize("v1, v2, target, expected", [
        (6, 3, 2, True),
        (3, 6, 2, True),
        (4, 1, 4, True),
        (4, 4, 1, True),
        (5, 2, 2, False),
        (6, 2, 2, False),
        (4, 4, 2, False),
    ])
    def test_div_constraint(self, v1, v2, target, expected):
        grid = Grid(6)
        cage = _cage(grid, OperationType.DIV, target, [(0, 0), (1, 0)])
        _fill(grid, {(0, 0): v1, (1, 0): v2})
        assert cage.check_constraint() is expected

    def test_check_constraint_with_empty_cell(self):
        """Evaluating an unfilled cage is a structural error, not False."""
        grid = Grid(3)
        cage = _cage(grid, OperationType.ADD, 3, [(0, 0), (0, 1)])
        grid.set(0, 0, 1)
        with pytest.raises(StructuralViolationError):
            cage.check_constraint()

    def test_check_constraint_without_cells(self):
        with pytest.raises(StructuralViolationError):
            Cage(0, 3, OperationType.ADD, Grid(3)).check_constraint()

    def test_sub_with_one_cell(self):
        grid = Grid(3)
        cage = _cage(grid, OperationType.SUB, 1, [(0, 0)])
        grid.set(0, 0, 2)
        with pytest.raises(StructuralViolationError):
            cage.check_constraint()
        with pytest.raises(StructuralViolationError):
            cage.validate_structure()

    def test_evaluate_is_pure(self):
        assert evaluate(OperationType.ADD, 6, [1, 2, 3])
        assert not evaluate(OperationType.MUL, 5, [1, 2])
        with pytest.raises(StructuralViolationError):
            evaluate(OperationType.DIV, 2, [1, 2, 4])

    def test_is_complete_and_label(self):
        grid = Grid(3)
        cage = _cage(grid, OperationType.MUL, 6, [(0, 0), (0, 1)])
        assert not cage.is_complete()
        _fill(grid, {(0, 0): 2, (0, 1): 3})
        assert cage.is_complete()
        assert cage.label() == "6x"


class TestCageDefinition:
    """Tests for portable cage definitions."""

    def test_coerces_cells(self):
        definition = CageDefinition(3, "SUB", [[0, 0], (0, 1)])
        assert definition.operation is OperationType.SUB
        assert definition.cells == (Coordinates(0, 0), Coordinates(0, 1))
        assert definition.size == 2

    def test_dict_shape(self):
        definition = CageDefinition(12, OperationType.MUL, [(1, 1), (1, 2), (2, 2)])
        assert definition.to_dict() == {
            "target": 12,
            "operation": "MUL",
            "cells": [[1, 1], [1, 2], [2, 2]],
        }
        assert CageDefinition.from_dict(definition.to_dict()) == definition

    def test_from_dict_malformed(self):
        with pytest.raises(StructuralViolationError):
            CageDefinition.from_dict({"target": 3, "cells": [[0, 0]]})
        with pytest.raises(StructuralViolationError):
            CageDefinition.from_dict({"target": 3, "operation": "POW", "cells": [[0, 0]]})

    def test_json_document(self):
        definitions = [
            CageDefinition(1, OperationType.NONE, [(0, 0)]),
            CageDefinition(5, OperationType.ADD, [(0, 1), (0, 2)]),
        ]
        text = definitions_to_json(definitions, 3)
        assert json.loads(text)["size"] == 3

        size, loaded = definitions_from_json(text)
        assert size == 3
        assert loaded == definitions

    def test_json_document_malformed(self):
        with pytest.raises(StructuralViolationError):
            definitions_from_json('{"cages": []}')
        with pytest.raises(StructuralViolationError):
            definitions_from_json("{not json")
        with pytest.raises(StructuralViolationError):
            definitions_from_json('{"size": 3, "cages": 5}')

    def test_puzzle_batch_document(self):
        """Single-puzzle and batch documents load through one entry point."""
        first = [CageDefinition(6, OperationType.ADD, [(0, 0), (0, 1), (0, 2)])]
        second = [CageDefinition(2, OperationType.NONE, [(1, 1)])]
        batch = json.dumps({"puzzles": [
            json.loads(definitions_to_json(first, 3)),
            json.loads(definitions_to_json(second, 4)),
        ]})

        assert puzzles_from_json(batch) == [(3, first), (4, second)]
        assert puzzles_from_json(definitions_to_json(first, 3)) == [(3, first)]
        with pytest.raises(StructuralViolationError):
            puzzles_from_json('{"puzzles": {}}')

    def test_build_cages(self):
        grid = Grid(3)
        definitions = [
            CageDefinition(1, OperationType.NONE, [(0, 0)]),
            CageDefinition(1, OperationType.SUB, [(0, 1), (0, 2)]),
        ]
        cages = build_cages(grid, definitions)

        assert [c.cage_id for c in cages] == [0, 1]
        assert grid.cell_at(0, 2).cage_id == 1
        assert definitions_from_cages(cages) == definitions

    def test_build_cages_rejects_overlap(self):
        grid = Grid(3)
        definitions = [
            CageDefinition(3, OperationType.ADD, [(0, 0), (0, 1)]),
            CageDefinition(1, OperationType.NONE, [(0, 1)]),
        ]
        with pytest.raises(StructuralViolationError):
            build_cages(grid, definitions)

    def test_build_cages_rejects_out_of_range(self):
        with pytest.raises(StructuralViolationError):
            build_cages(Grid(3), [CageDefinition(1, OperationType.NONE, [(3, 3)])])

    def test_build_cages_rejects_short_sub(self):
        with pytest.raises(StructuralViolationError):
            build_cages(Grid(3), [CageDefinition(1, OperationType.SUB, [(0, 0)])])

    def test_validate_partition(self):
        full = [CageDefinition(6, OperationType.ADD, [(r, 0), (r, 1), (r, 2)]) for r in range(3)]
        validate_partition(full, 3)

        with pytest.raises(StructuralViolationError):
            validate_partition(full[:2], 3)
        with pytest.raises(StructuralViolationError):
            validate_partition(full + [CageDefinition(1, OperationType.NONE, [(0, 0)])], 3)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
