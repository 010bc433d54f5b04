"""Tests for the grid model — loading, segments and definition lookup."""

import pytest

from gridsync.core.grid import (
    Definition,
    Direction,
    GridFormatError,
    grid_from_dict,
)
from conftest import make_grid_dict


class TestGridFromDict:
    def test_dimensions(self, grid):
        assert grid.rows == 5
        assert grid.cols == 5

    def test_black_and_letter_cells(self, grid):
        assert grid.is_black(0, 3)
        assert not grid.is_black(0, 0)
        assert grid.is_letter(0, 0)
        assert not grid.is_letter(0, 3)
        assert not grid.is_letter(-1, 0)
        assert not grid.is_letter(0, 5)

    def test_definitions_parsed(self, grid):
        cell = grid.cell(2, 2)
        assert cell.definition(Direction.RIGHT) == Definition("E", Direction.RIGHT)
        assert cell.definition(Direction.DOWN) == Definition("F", Direction.DOWN)

    def test_black_cell_without_definitions(self):
        grid = grid_from_dict(make_grid_dict(["#."]))
        assert grid.cell(0, 0).definitions == ()

    def test_null_definitions_accepted(self):
        data = make_grid_dict(["#."])
        data["cells"][0][0]["definitions"] = None
        assert grid_from_dict(data).cell(0, 0).definitions == ()

    def test_extra_fields_ignored(self, grid_dict):
        grid_dict["id"] = "abc123"
        grid_dict["created_at"] = "2025-01-01T00:00:00Z"
        assert grid_from_dict(grid_dict).rows == 5

    def test_missing_cells_rejected(self):
        with pytest.raises(GridFormatError):
            grid_from_dict({"rows": 1, "cols": 1})

    def test_bad_direction_rejected(self):
        data = make_grid_dict(["#."], {(0, 0): [{"text": "X", "direction": "up"}]})
        with pytest.raises(GridFormatError):
            grid_from_dict(data)

    def test_size_mismatch_rejected(self):
        data = make_grid_dict(["..", ".."])
        data["rows"] = 3
        with pytest.raises(GridFormatError, match="3x2"):
            grid_from_dict(data)

    def test_ragged_rows_rejected(self):
        data = make_grid_dict(["..", ".."])
        data["cells"][1].pop()
        with pytest.raises(GridFormatError):
            grid_from_dict(data)

    def test_duplicate_direction_rejected(self):
        data = make_grid_dict(
            ["#."],
            {(0, 0): [
                {"text": "A", "direction": "right"},
                {"text": "B", "direction": "right"},
            ]},
        )
        with pytest.raises(GridFormatError, match="one clue per direction"):
            grid_from_dict(data)

    def test_too_many_definitions_rejected(self):
        data = make_grid_dict(
            ["#."],
            {(0, 0): [
                {"text": "A", "direction": "right"},
                {"text": "B", "direction": "down"},
                {"text": "C", "direction": "down"},
            ]},
        )
        with pytest.raises(GridFormatError):
            grid_from_dict(data)


class TestSegments:
    def test_letter_cells_row_major(self, grid):
        cells = grid.letter_cells()
        assert cells[:4] == [(0, 0), (0, 1), (0, 2), (0, 4)]
        assert (0, 3) not in cells

    def test_horizontal_segment_bounded_by_black(self, grid):
        assert grid.segment(0, 1, Direction.RIGHT) == [(0, 0), (0, 1), (0, 2)]

    def test_vertical_segment(self, grid):
        assert grid.segment(2, 1, Direction.DOWN) == [(0, 1), (1, 1), (2, 1), (3, 1)]

    def test_length_one_segment(self, grid):
        assert grid.segment(0, 4, Direction.RIGHT) == [(0, 4)]

    def test_black_cell_has_no_segment(self, grid):
        assert grid.segment(0, 3, Direction.RIGHT) == []

    def test_every_letter_cell_in_one_segment_per_direction(self, grid):
        for direction in Direction:
            for r, c in grid.letter_cells():
                seg = grid.segment(r, c, direction)
                assert (r, c) in seg
                # Every member of the segment reports the same segment
                for rr, cc in seg:
                    assert grid.segment(rr, cc, direction) == seg


class TestDefinitionLookup:
    def test_right_definition_from_preceding_black_cell(self, grid):
        assert grid.definition_for(0, 4, Direction.RIGHT).text == "ABC"
        assert grid.definition_for(1, 3, Direction.RIGHT).text == "R1"

    def test_down_definition(self, grid):
        assert grid.definition_for(4, 0, Direction.DOWN).text == "D2"
        assert grid.definition_for(3, 2, Direction.DOWN).text == "F"

    def test_segment_at_edge_has_no_definition(self, grid):
        assert grid.definition_for(0, 1, Direction.RIGHT) is None
        assert grid.definition_for(0, 1, Direction.DOWN) is None

    def test_black_cell_without_matching_direction(self, grid):
        # (0,3) only carries a right clue; (1,3)'s down segment starts below it
        assert grid.definition_for(1, 3, Direction.DOWN) is None

    def test_label_arrows(self):
        assert Definition("ABC", Direction.RIGHT).label() == "→ ABC"
        assert Definition("ABC", Direction.DOWN).label() == "↓ ABC"
