"""Unit tests for the KenKen grid and validation helpers."""

import pytest
from kenken.core.grid import Grid
from kenken.core.cage import OperationType
from kenken.core.definitions import CageDefinition, build_cages
from kenken.core.exceptions import (
    InvalidConfigurationError,
    InvalidSizeError,
    OutOfBoundsError,
    StructuralViolationError,
)
from kenken.core.validator import (
    find_conflicts,
    is_valid_placement,
    is_valid_solution,
    validate_solution,
)

SOLVED_3X3 = [[1, 2, 3], [3, 1, 2], [2, 3, 1]]


class TestGrid:
    """Tests for Grid class."""

    def test_create_empty_grid(self):
        """Test creating an empty 4x4 grid."""
        grid = Grid.create(4)
        assert grid.size == 4
        assert grid.count_empty() == 16
        assert grid.count_filled() == 0

    @pytest.mark.parametrize("size", [0, 2, 7, 9])
    def test_invalid_size(self, size):
        """Sizes outside 3..6 are rejected."""
        with pytest.raises(InvalidSizeError):
            Grid(size)

    def test_invalid_size_is_configuration_error(self):
        with pytest.raises(InvalidConfigurationError):
            Grid.create(7)
        with pytest.raises(ValueError):
            Grid.create(2)

    def test_cell_at_out_of_bounds(self):
        """Test index checks on cell lookup."""
        grid = Grid(3)
        for row, col in [(-1, 0), (0, -1), (3, 0), (0, 3)]:
            with pytest.raises(OutOfBoundsError):
                grid.cell_at(row, col)
        with pytest.raises(IndexError):
            grid.cell_at(5, 5)

    def test_cell_identity(self):
        """Every position maps to one Cell instance."""
        grid = Grid(4)
        cell = grid.cell_at(2, 3)
        assert grid.cell_at(2, 3) is cell
        assert (cell.row, cell.col) == (2, 3)
        assert len(grid.cells()) == 16

    def test_set_and_get(self):
        """Test setting and getting values."""
        grid = Grid(4)
        grid.set(0, 0, 3)
        assert grid.get(0, 0) == 3
        assert grid.cell_at(0, 0).value == 3
        assert not grid.is_empty(0, 0)

        grid.clear(0, 0)
        assert grid.is_empty(0, 0)

    def test_set_out_of_range_value(self):
        grid = Grid(3)
        with pytest.raises(ValueError):
            grid.set(0, 0, 4)
        with pytest.raises(ValueError):
            grid.set(0, 0, -1)

    def test_fixed_cell_is_immutable(self):
        """A fixed cell rejects new values and ignores clear()."""
        grid = Grid(3)
        grid.fix(1, 1, 2)
        cell = grid.cell_at(1, 1)
        assert not cell.editable

        with pytest.raises(StructuralViolationError):
            cell.value = 3
        cell.clear()
        assert cell.value == 2

    def test_refix_fixed_cell(self):
        """Re-fixing keeps the original value; a different value is rejected."""
        grid = Grid(3)
        grid.fix(0, 0, 2)
        grid.fix(0, 0, 2)

        with pytest.raises(StructuralViolationError):
            grid.fix(0, 0, 3)
        assert grid.get(0, 0) == 2
        assert not grid.cell_at(0, 0).editable

    def test_failed_fix_keeps_cell_locked(self):
        """An out-of-range value on a fixed cell neither changes nor unlocks it."""
        grid = Grid(3)
        grid.fix(0, 0, 2)

        with pytest.raises(StructuralViolationError):
            grid.fix(0, 0, 9)
        assert grid.get(0, 0) == 2
        assert not grid.cell_at(0, 0).editable

    def test_fix_out_of_range_on_editable_cell(self):
        """A rejected value leaves an editable cell empty and editable."""
        grid = Grid(3)

        with pytest.raises(ValueError):
            grid.fix(1, 1, 4)
        assert grid.get(1, 1) == 0
        assert grid.cell_at(1, 1).editable

    def test_get_candidates(self):
        """Candidates exclude values in the same row and column."""
        grid = Grid(4)
        grid.set(0, 0, 1)
        grid.set(0, 1, 2)
        grid.set(3, 2, 3)

        assert grid.get_candidates(0, 2) == {4}
        assert grid.get_candidates(0, 0) == set()

    def test_get_empty_cells_row_major(self):
        grid = Grid.from_2d_list([[1, 0, 3], [0, 0, 0], [2, 3, 0]])
        assert grid.get_empty_cells() == [(0, 1), (1, 0), (1, 1), (1, 2), (2, 2)]

    def test_is_valid(self):
        """Test row/column duplicate detection."""
        grid = Grid(4)
        assert grid.is_valid()

        grid.set(0, 0, 2)
        grid.set(3, 0, 2)  # Duplicate in column
        assert not grid.is_valid()

    def test_is_latin_square(self):
        assert Grid.from_2d_list(SOLVED_3X3).is_latin_square()
        assert not Grid.from_2d_list([[1, 2, 3], [3, 1, 2], [2, 3, 0]]).is_latin_square()

    def test_from_string(self):
        """Test creating grid from string."""
        grid = Grid.from_string("123312231", 3)
        assert grid.to_2d_list() == SOLVED_3X3
        assert grid.to_string() == "123312231"

        with pytest.raises(ValueError):
            Grid.from_string("1234", 3)

    def test_copy(self):
        """Test grid copy."""
        grid = Grid(3)
        grid.set(1, 1, 2)
        grid.fix(0, 0, 1)
        copy = grid.copy()

        assert copy.get(1, 1) == 2
        assert not copy.cell_at(0, 0).editable

        # Modify copy, original should be unchanged
        copy.set(1, 1, 3)
        assert grid.get(1, 1) == 2

    def test_equality(self):
        assert Grid.from_2d_list(SOLVED_3X3) == Grid.from_2d_list(SOLVED_3X3)
        assert Grid(3) != Grid(4)

    def test_str(self):
        text = str(Grid.from_2d_list([[1, 0, 3], [3, 1, 2], [2, 3, 1]]))
        assert "| 1 . 3 |" in text


def _row_cages(grid):
    """One ADD cage per row of a 3x3 grid."""
    definitions = [
        CageDefinition(6, OperationType.ADD, [(r, 0), (r, 1), (r, 2)]) for r in range(3)
    ]
    return build_cages(grid, definitions)


class TestValidator:
    """Tests for validation utilities."""

    def test_is_valid_placement_row_and_column(self):
        """Test placement validation."""
        grid = Grid(4)
        grid.set(0, 0, 3)

        # Can't place 3 in same row
        assert not is_valid_placement(grid, 0, 2, 3)

        # Can't place 3 in same column
        assert not is_valid_placement(grid, 2, 0, 3)

        # Can place different value
        assert is_valid_placement(grid, 0, 2, 4)

        # Out of range values are never legal
        assert not is_valid_placement(grid, 1, 1, 0)
        assert not is_valid_placement(grid, 1, 1, 5)

    def test_is_valid_placement_ignores_own_cell(self):
        grid = Grid(3)
        grid.set(0, 0, 2)
        assert is_valid_placement(grid, 0, 0, 2)

    def test_is_valid_placement_checks_completed_cage(self):
        """The cage law is checked only when the placement completes the cage."""
        grid = Grid(3)
        cages = build_cages(grid, [CageDefinition(5, OperationType.ADD, [(0, 0), (0, 1)])])

        assert is_valid_placement(grid, 0, 0, 1, cages)  # cage not complete yet
        grid.set(0, 0, 2)
        assert is_valid_placement(grid, 0, 1, 3, cages)
        assert not is_valid_placement(grid, 0, 1, 1, cages)
        assert grid.get(0, 1) == 0  # grid untouched

    def test_is_valid_solution(self):
        grid = Grid.from_2d_list(SOLVED_3X3)
        assert is_valid_solution(grid, _row_cages(grid))

        bad = Grid(3)
        cages = build_cages(bad, [CageDefinition(4, OperationType.ADD, [(0, 0), (0, 1)])])
        bad.values[:, :] = SOLVED_3X3
        assert not is_valid_solution(bad, cages)  # 1 + 2 != 4

    def test_is_valid_solution_incomplete_grid(self):
        grid = Grid(3)
        assert not is_valid_solution(grid, _row_cages(grid))

    def test_find_conflicts(self):
        grid = Grid(3)
        cages = build_cages(grid, [CageDefinition(3, OperationType.SUB, [(2, 1), (2, 2)])])
        grid.set(0, 0, 1)
        grid.set(0, 2, 1)
        grid.set(2, 1, 2)
        grid.set(2, 2, 3)

        assert find_conflicts(grid, cages) == {(0, 0), (0, 2), (2, 1), (2, 2)}

    def test_validate_solution_respects_givens(self):
        puzzle = Grid(3)
        puzzle.fix(0, 0, 2)
        solution = Grid.from_2d_list(SOLVED_3X3)
        assert not validate_solution(puzzle, solution, [])

        puzzle = Grid(3)
        puzzle.fix(0, 0, 1)
        assert validate_solution(puzzle, solution, [])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
