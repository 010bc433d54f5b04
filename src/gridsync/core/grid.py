"""GridModel — immutable description of a mots fléchés grid.

A cell is either a black definition cell (carrying up to one clue per
direction) or a letter cell where players write. Word segments are
maximal runs of letter cells bounded by the grid edge or a black cell.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from gridsync.core.schemas import load_schema, schema_violation

_GRID_SCHEMA = load_schema("grid")

_ARROWS = {"right": "→", "down": "↓"}


class GridFormatError(ValueError):
    """Raised when grid JSON does not describe a well-formed grid."""


class Direction(Enum):
    RIGHT = "right"
    DOWN = "down"

    def flipped(self) -> Direction:
        return Direction.DOWN if self is Direction.RIGHT else Direction.RIGHT

    @property
    def step(self) -> tuple[int, int]:
        """(d_row, d_col) of one step forward along this direction."""
        return (0, 1) if self is Direction.RIGHT else (1, 0)


@dataclass(frozen=True)
class Definition:
    text: str
    direction: Direction

    def label(self) -> str:
        """Display form shown in the definition panel, e.g. '→ ABC'."""
        return f"{_ARROWS[self.direction.value]} {self.text}"


@dataclass(frozen=True)
class Cell:
    black: bool
    definitions: tuple[Definition, ...] = ()

    def definition(self, direction: Direction) -> Definition | None:
        for d in self.definitions:
            if d.direction is direction:
                return d
        return None


@dataclass(frozen=True)
class Grid:
    """Puzzle layout. Loaded once per game and never mutated."""

    rows: int
    cols: int
    cells: tuple[tuple[Cell, ...], ...]

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def cell(self, row: int, col: int) -> Cell:
        return self.cells[row][col]

    def is_black(self, row: int, col: int) -> bool:
        return self.cells[row][col].black

    def is_letter(self, row: int, col: int) -> bool:
        """True for an in-bounds, non-black cell."""
        return self.in_bounds(row, col) and not self.cells[row][col].black

    def letter_cells(self) -> list[tuple[int, int]]:
        """All non-black positions in row-major order."""
        return [
            (r, c)
            for r in range(self.rows)
            for c in range(self.cols)
            if not self.cells[r][c].black
        ]

    def segment_start(
        self, row: int, col: int, direction: Direction
    ) -> tuple[int, int]:
        """Walk backward while the preceding cell is a letter cell."""
        dr, dc = direction.step
        while self.is_letter(row - dr, col - dc):
            row -= dr
            col -= dc
        return row, col

    def segment(
        self, row: int, col: int, direction: Direction
    ) -> list[tuple[int, int]]:
        """Maximal run of letter cells through (row, col) along direction.

        Empty if (row, col) is not a letter cell.
        """
        if not self.is_letter(row, col):
            return []
        dr, dc = direction.step
        r, c = self.segment_start(row, col, direction)
        cells: list[tuple[int, int]] = []
        while self.is_letter(r, c):
            cells.append((r, c))
            r += dr
            c += dc
        return cells

    def definition_for(
        self, row: int, col: int, direction: Direction
    ) -> Definition | None:
        """Clue for the segment through (row, col), if any.

        Only the black cell immediately before the segment start is
        consulted; a segment starting at the grid edge has no clue.
        """
        if not self.is_letter(row, col):
            return None
        dr, dc = direction.step
        r, c = self.segment_start(row, col, direction)
        r, c = r - dr, c - dc
        if not self.in_bounds(r, c):
            return None
        return self.cells[r][c].definition(direction)


def grid_from_dict(data: dict) -> Grid:
    """Build a Grid from its JSON form.

    Raises GridFormatError on schema violations or when the cell matrix
    does not match the declared dimensions.
    """
    violation = schema_violation(data, _GRID_SCHEMA)
    if violation is not None:
        raise GridFormatError(f"Schema validation: {violation}")

    rows, cols = data["rows"], data["cols"]
    raw_cells = data["cells"]
    if len(raw_cells) != rows or any(len(row) != cols for row in raw_cells):
        raise GridFormatError(
            f"cells matrix does not match declared size {rows}x{cols}"
        )

    cells = []
    for raw_row in raw_cells:
        row = []
        for raw in raw_row:
            black = raw["black"]
            defs: tuple[Definition, ...] = ()
            if black:
                defs = tuple(
                    Definition(text=d["text"], direction=Direction(d["direction"]))
                    for d in raw.get("definitions") or []
                )
                if len({d.direction for d in defs}) != len(defs):
                    raise GridFormatError(
                        "a definition cell carries at most one clue per direction"
                    )
            row.append(Cell(black=black, definitions=defs))
        cells.append(tuple(row))

    return Grid(rows=rows, cols=cols, cells=tuple(cells))
